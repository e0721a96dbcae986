# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 flexcontrol developers

"""Exceptions, constants, settings and shared helpers."""

from .constants import Directives, StepCodes, EnsembleDefaults, GridBounds, WorkspaceLayout, ManifestColumns
from .exceptions import (
    FlexControlError,
    ConfigurationError,
    ParseError,
    ControlParseError,
    ManifestParseError,
    MissingResourceError,
    DomainRangeError,
    ExtractionProcessError,
    RetrievalError,
)
from .logging_utils import configure_logging
from .mixins import LoggingMixin

__all__ = [
    'Directives',
    'StepCodes',
    'EnsembleDefaults',
    'GridBounds',
    'WorkspaceLayout',
    'ManifestColumns',
    'FlexControlError',
    'ConfigurationError',
    'ParseError',
    'ControlParseError',
    'ManifestParseError',
    'MissingResourceError',
    'DomainRangeError',
    'ExtractionProcessError',
    'RetrievalError',
    'configure_logging',
    'LoggingMixin',
]
