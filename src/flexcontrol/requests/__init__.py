# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 flexcontrol developers

"""Request manifest parsing and retrieval dispatch."""

from .manifest import RetrievalRequest, normalize_column_name, parse_manifest, request_from_row
from .retrieval import RetrievalBackend, RetrievalRegistry, retrieve

__all__ = [
    'RetrievalRequest',
    'normalize_column_name',
    'parse_manifest',
    'request_from_row',
    'RetrievalBackend',
    'RetrievalRegistry',
    'retrieve',
]
