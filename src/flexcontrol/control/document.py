# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 flexcontrol developers

"""
Ordered store of flex_extract control directives.

A control file holds one directive per line, ``NAME value``, with blank lines
ignored. Directive names are case-insensitive and written back in upper case;
values are kept verbatim.
"""

import logging
import re
from collections.abc import MutableMapping
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

from flexcontrol.core.exceptions import ConfigurationError, ControlParseError, DomainRangeError
from flexcontrol.core.validation import validate_file_exists

logger = logging.getLogger(__name__)

_LINE_PATTERN = re.compile(r'^(\S+)\s+(.*)$')

PathLike = Union[str, Path]


def canonical_name(name: Any) -> str:
    """Canonical (upper case) form of a directive name."""
    return str(name).strip().upper()


def parse_control_lines(
    lines: Iterable[str],
    source: str = '<control>'
) -> List[Tuple[str, str]]:
    """
    Split control file lines into ``(name, value)`` pairs.

    Args:
        lines: Lines of a control file, with or without line terminators
        source: Name used in error messages

    Returns:
        Pairs in file order, names canonicalized

    Raises:
        ControlParseError: If a non-blank line is not of the form ``NAME value``
    """
    pairs = []
    for line_number, raw in enumerate(lines, start=1):
        line = raw.rstrip('\r\n')
        if not line.strip():
            continue
        match = _LINE_PATTERN.match(line)
        if match is None:
            raise ControlParseError(
                f"{source}:{line_number}: line '{line}' could not be parsed",
                line=line,
                line_number=line_number,
            )
        pairs.append((canonical_name(match.group(1)), match.group(2)))
    return pairs


class ControlDocument(MutableMapping):
    """
    Ordered mapping of control directives backed by a control file.

    Insertion order is preserved and is the order in which directives are
    written back. Overwriting a directive keeps its position; new directives
    are appended.

    Example:
        >>> doc = ControlDocument.load('CONTROL_OD.OPER.FC.eta.highres')
        >>> doc.merge({'GRID': 0.5})
        >>> doc.save()
    """

    def __init__(
        self,
        entries: Optional[Union[Mapping[str, Any], Iterable[Tuple[str, Any]]]] = None,
        path: Optional[PathLike] = None,
    ):
        self._entries: Dict[str, Any] = {}
        self.path = Path(path).resolve() if path is not None else None
        if entries:
            self.merge(entries)

    # ------------------------------------------------------------------
    # Loading and saving
    # ------------------------------------------------------------------

    @classmethod
    def load(cls, path: PathLike) -> 'ControlDocument':
        """
        Read a control file.

        Raises:
            MissingResourceError: If the file does not exist
            ControlParseError: If a line cannot be parsed
        """
        path = validate_file_exists(path, "control file")
        with open(path, 'r') as f:
            pairs = parse_control_lines(f, source=str(path))

        doc = cls(path=path)
        for name, value in pairs:
            doc._entries[name] = value
        logger.debug(f"Loaded {len(doc)} directives from {path}")
        return doc

    @classmethod
    def from_text(cls, text: str, path: Optional[PathLike] = None) -> 'ControlDocument':
        """Parse control file content held in memory."""
        doc = cls(path=path)
        for name, value in parse_control_lines(text.splitlines()):
            doc._entries[name] = value
        return doc

    def format(self) -> List[str]:
        """Serialized ``NAME value`` lines in document order."""
        return [f"{name} {value}" for name, value in self._entries.items()]

    def to_text(self) -> str:
        return ''.join(f"{line}\n" for line in self.format())

    def save(self, path: Optional[PathLike] = None) -> Path:
        """
        Write the document, overwriting the destination.

        Args:
            path: Destination; defaults to the file the document was loaded from

        Returns:
            The path written
        """
        dest = Path(path) if path is not None else self.path
        if dest is None:
            raise ConfigurationError("ControlDocument has no backing file; pass a path to save()")
        dest.write_text(self.to_text())
        logger.debug(f"Saved {len(self)} directives to {dest}")
        return dest

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def merge(
        self,
        updates: Union[Mapping[str, Any], Iterable[Tuple[str, Any]]]
    ) -> 'ControlDocument':
        """
        Insert or overwrite directives.

        New names are appended at the end; existing names keep their
        position. Returns the document itself.
        """
        items = updates.items() if isinstance(updates, Mapping) else updates
        for name, value in items:
            self._entries[canonical_name(name)] = value
        return self

    def copy(self) -> 'ControlDocument':
        doc = type(self)(path=self.path)
        doc._entries = dict(self._entries)
        return doc

    # ------------------------------------------------------------------
    # MutableMapping interface
    # ------------------------------------------------------------------

    def __getitem__(self, name: str) -> Any:
        return self._entries[canonical_name(name)]

    def __setitem__(self, name: str, value: Any) -> None:
        self._entries[canonical_name(name)] = value

    def __delitem__(self, name: str) -> None:
        del self._entries[canonical_name(name)]

    def __contains__(self, name: object) -> bool:
        return canonical_name(name) in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        location = f" @ {self.path}" if self.path else ''
        return f"ControlDocument({len(self)} directives{location})"

    # ------------------------------------------------------------------
    # Typed accessors
    # ------------------------------------------------------------------

    def get_str(self, name: str, default: Optional[str] = None) -> Optional[str]:
        value = self.get(name)
        return default if value is None else str(value)

    def get_int(self, name: str, default: Optional[int] = None) -> Optional[int]:
        value = self.get(name)
        if value is None:
            return default
        try:
            return int(str(value).strip())
        except ValueError as e:
            raise DomainRangeError(f"Directive {canonical_name(name)}='{value}' is not an integer") from e

    def get_float(self, name: str, default: Optional[float] = None) -> Optional[float]:
        value = self.get(name)
        if value is None:
            return default
        try:
            return float(str(value).strip())
        except ValueError as e:
            raise DomainRangeError(f"Directive {canonical_name(name)}='{value}' is not a number") from e

    def get_list(self, name: str) -> List[str]:
        """
        List-valued directive, split on ``/`` when present, else on whitespace.

        ``NUMBER 1/5/7`` gives ``['1', '5', '7']`` and ``TIME 00 12`` gives
        ``['00', '12']``. A missing directive gives an empty list.
        """
        value = self.get(name)
        if value is None:
            return []
        text = str(value).strip()
        if '/' in text:
            return [part.strip() for part in text.split('/') if part.strip()]
        return text.split()
