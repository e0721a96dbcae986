# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 flexcontrol developers
try:
    from .flexcontrol_version import __version__
except ImportError:
    try:
        from importlib.metadata import version, PackageNotFoundError
        __version__ = version("flexcontrol")
    except (ImportError, PackageNotFoundError):
        __version__ = "0.0.0"

from .control import ControlDocument, set_area, set_ensemble_rest, set_steps
from .core.config import FlexExtractSettings
from .requests import RetrievalRequest, parse_manifest
from .workspace import FlexExtractDir

__all__ = [
    "ControlDocument",
    "FlexExtractDir",
    "FlexExtractSettings",
    "RetrievalRequest",
    "parse_manifest",
    "set_area",
    "set_ensemble_rest",
    "set_steps",
    "__version__",
]
