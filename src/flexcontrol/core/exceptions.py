# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 flexcontrol developers

"""
Custom exception hierarchy for flexcontrol.

This module defines a hierarchy of exceptions that provide clear, specific
error types for the failure modes of control file handling, parameter
derivation, manifest parsing and the extraction collaborators.
"""

import logging
from contextlib import contextmanager
from typing import Optional, TypeVar


class FlexControlError(Exception):
    """
    Base exception for all flexcontrol-specific errors.

    All custom exceptions in flexcontrol inherit from this class, so callers
    can catch every library error with a single except clause.
    """
    pass


class ConfigurationError(FlexControlError):
    """
    Settings-related errors.

    Raised when:
    - The settings file cannot be loaded or parsed
    - A settings value fails validation
    - A path required by an operation is not configured
    """
    pass


class ParseError(FlexControlError):
    """
    A control file line or manifest row cannot be decomposed into the
    expected fields.
    """
    pass


class ControlParseError(ParseError):
    """
    Control file parsing failures.

    Raised when a non-blank line of a control file is not of the form
    ``NAME value``.
    """

    def __init__(self, message: str, line: Optional[str] = None,
                 line_number: Optional[int] = None):
        super().__init__(message)
        self.line = line
        self.line_number = line_number


class ManifestParseError(ParseError):
    """
    Request manifest parsing failures.

    Raised when the manifest table cannot be read (malformed CSV, missing
    header row).
    """
    pass


class MissingResourceError(FlexControlError, FileNotFoundError):
    """
    An expected file or directory is absent.

    Raised when:
    - The request manifest is missing before retrieval
    - No ``.grb`` file carrying a process id exists in the input directory
    - No control file can be found in a run directory
    - A control template is missing from the flex_extract installation
    """
    pass


class DomainRangeError(FlexControlError, ValueError):
    """
    An input lies outside the domain an operation can handle.

    Raised when:
    - A bounding box is inverted or falls outside the snapping grid
    - A date range is empty or inverted, or the timestep is not positive
    - An ensemble draw asks for more members than the population holds
    """
    pass


class ExtractionProcessError(FlexControlError):
    """
    External flex_extract process failures.

    Raised when the submit or prepare script exits with a non-zero code or
    cannot be started.
    """

    def __init__(self, message: str, return_code: Optional[int] = None):
        super().__init__(message)
        self.return_code = return_code


class RetrievalError(FlexControlError):
    """
    Archive retrieval failures.

    Raised when a retrieval backend rejects a request or fails while
    fetching it. No retry is attempted.
    """
    pass


# =============================================================================
# Validation Helpers
# =============================================================================

T = TypeVar('T')


def require(condition: bool, message: str, error_type: type = None) -> None:
    """
    Validate a condition, raising an exception if it fails.

    Args:
        condition: The condition that must be True
        message: Error message if condition is False
        error_type: Exception type to raise (default: DomainRangeError)

    Raises:
        DomainRangeError (or specified error_type) if condition is False

    Example:
        >>> require(north > south, "North bound must exceed south bound")
    """
    if error_type is None:
        error_type = DomainRangeError
    if not condition:
        raise error_type(message)


def require_not_none(value: Optional[T], name: str, error_type: type = None) -> T:
    """
    Validate that a value is not None, returning it if valid.

    Args:
        value: The value to check
        name: Name of the value (for error message)
        error_type: Exception type to raise (default: ConfigurationError)

    Returns:
        The value if it is not None

    Raises:
        ConfigurationError (or specified error_type) if value is None
    """
    if error_type is None:
        error_type = ConfigurationError
    if value is None:
        raise error_type(f"{name} must not be None")
    return value


@contextmanager
def flexcontrol_error_handler(
    operation: str,
    logger: Optional[logging.Logger] = None,
    reraise: bool = True,
    error_type: type = FlexControlError
):
    """
    Context manager for standardized error handling.

    Library errors pass through unchanged; any other exception is converted
    to ``error_type`` with the original chained as its cause.

    Args:
        operation: Description of the operation being performed (for logging)
        logger: Logger instance for error messages. If None, errors are not logged.
        reraise: Whether to re-raise the exception after handling (default: True)
        error_type: flexcontrol exception type to convert generic exceptions to

    Example:
        >>> with flexcontrol_error_handler("MARS retrieval", logger, error_type=RetrievalError):
        ...     server.execute(request, target)
    """
    try:
        yield
    except FlexControlError:
        if logger:
            logger.error(f"Error during {operation}", exc_info=True)
        if reraise:
            raise
    except Exception as e:
        if logger:
            logger.error(f"Error during {operation}: {e}", exc_info=True)
        if reraise:
            raise error_type(f"Failed during {operation}: {e}") from e


__all__ = [
    'FlexControlError',
    'ConfigurationError',
    'ParseError',
    'ControlParseError',
    'ManifestParseError',
    'MissingResourceError',
    'DomainRangeError',
    'ExtractionProcessError',
    'RetrievalError',
    'require',
    'require_not_none',
    'flexcontrol_error_handler',
]
