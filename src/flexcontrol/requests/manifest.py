# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 flexcontrol developers

"""
Request manifest parsing.

flex_extract's submit step writes ``mars_requests.csv``, one retrieval
request per row. Each row becomes a :class:`RetrievalRequest` whose fields
map 1:1 onto archive request keywords, except for the internal
``request_number`` column, which the archive rejects.
"""

import csv
import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Union

import pandas as pd

from flexcontrol.core.constants import ManifestColumns
from flexcontrol.core.exceptions import ManifestParseError
from flexcontrol.core.validation import validate_file_exists

logger = logging.getLogger(__name__)

_INVALID_IDENTIFIER_CHARS = re.compile(r'[^0-9a-zA-Z_]')


@dataclass
class RetrievalRequest(Mapping):
    """
    One archive retrieval request.

    Behaves as an ordered read-only mapping of archive field -> value.
    ``row_number`` keeps the manifest's numbering for logging only.
    """
    fields: Dict[str, str] = field(default_factory=dict)
    row_number: Optional[str] = None

    def __getitem__(self, key: str) -> str:
        return self.fields[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    @property
    def target(self) -> Optional[str]:
        return self.fields.get('target')

    def as_dict(self) -> Dict[str, str]:
        return dict(self.fields)


def normalize_column_name(name: str) -> str:
    """
    Turn a header cell into an identifier.

    Surrounding whitespace is removed, other non-identifier characters become
    ``_``, and names starting with a digit get a leading ``_``. Archive
    keywords such as ``class`` are kept as they are.
    """
    normalized = _INVALID_IDENTIFIER_CHARS.sub('_', str(name).strip())
    if not normalized or normalized[0].isdigit():
        normalized = f"_{normalized}"
    return normalized


def format_value(raw: object) -> str:
    """Trimmed cell text; values starting with ``/`` are wrapped in quotes."""
    text = str(raw).strip()
    if text.startswith('/'):
        return f'"{text}"'
    return text


def request_from_row(row: Mapping) -> RetrievalRequest:
    """
    Build a request from one manifest row.

    Empty cells are skipped, renamed columns take their archive name and the
    row-numbering column is moved out of the fields.
    """
    fields: Dict[str, str] = {}
    for column, raw in row.items():
        value = format_value(raw)
        if not value:
            continue
        key = ManifestColumns.RENAMES.get(column, column)
        fields[key] = value

    row_number = None
    for skipped in ManifestColumns.SKIPPED:
        removed = fields.pop(skipped, None)
        if skipped == ManifestColumns.ROW_NUMBER:
            row_number = removed
    return RetrievalRequest(fields=fields, row_number=row_number)


def _check_row_lengths(path: Path) -> None:
    """Raise if a non-blank row has fewer cells than the header."""
    with open(path, newline='', encoding='utf-8') as f:
        reader = csv.reader(f)
        header = next(reader, None)
        if header is None:
            return
        for row in reader:
            if not any(cell.strip() for cell in row):
                continue
            if len(row) < len(header):
                raise ManifestParseError(
                    f"Request manifest {path} line {reader.line_num}: expected "
                    f"{len(header)} fields, got {len(row)}"
                )


def read_manifest_table(path: Union[str, Path]) -> pd.DataFrame:
    """
    Read the manifest as a table of strings with normalized column names.

    Raises:
        MissingResourceError: If the file does not exist
        ManifestParseError: If the file is empty or malformed
    """
    path = validate_file_exists(path, "request manifest")
    try:
        table = pd.read_csv(path, dtype=str, keep_default_na=False)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
        raise ManifestParseError(f"Request manifest {path} could not be parsed: {e}") from e
    _check_row_lengths(path)
    table.columns = [normalize_column_name(c) for c in table.columns]
    return table


def parse_manifest(path: Union[str, Path]) -> List[RetrievalRequest]:
    """
    Parse a request manifest into requests, in row order.

    Raises:
        MissingResourceError: If the file does not exist
        ManifestParseError: If the file is empty or malformed
    """
    table = read_manifest_table(path)
    requests = [request_from_row(row) for row in table.to_dict(orient='records')]
    logger.info(f"Parsed {len(requests)} retrieval requests from {path}")
    return requests
