# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 flexcontrol developers

"""
Validation utilities for flexcontrol.

Provides standardized validation helpers for files, directories, bounding
boxes, date ranges and sample sizes.
"""

from datetime import datetime
from pathlib import Path
from typing import Sequence, Union

from flexcontrol.core.exceptions import DomainRangeError, MissingResourceError


def validate_file_exists(
    file_path: Union[str, Path],
    file_description: str = "file"
) -> Path:
    """
    Validate that a file exists.

    Args:
        file_path: Path to file
        file_description: Human-readable description of the file

    Returns:
        Path object if valid

    Raises:
        MissingResourceError: If file doesn't exist or isn't a file
    """
    path = Path(file_path)

    if not path.exists():
        raise MissingResourceError(
            f"Required {file_description} not found: {file_path}"
        )

    if not path.is_file():
        raise MissingResourceError(
            f"{file_description} is not a file: {file_path}"
        )

    return path


def validate_directory_exists(
    dir_path: Union[str, Path],
    dir_description: str = "directory"
) -> Path:
    """
    Validate that a directory exists.

    Raises:
        MissingResourceError: If directory doesn't exist or isn't a directory
    """
    path = Path(dir_path)

    if not path.exists():
        raise MissingResourceError(
            f"Required {dir_description} not found: {dir_path}"
        )

    if not path.is_dir():
        raise MissingResourceError(
            f"{dir_description} is not a directory: {dir_path}"
        )

    return path


def validate_bounding_box(area: Sequence[float]) -> tuple:
    """
    Validate a ``[north, west, south, east]`` bounding box.

    Returns:
        The bounds as a tuple of floats

    Raises:
        DomainRangeError: If the box does not have four bounds or is inverted
    """
    if len(area) != 4:
        raise DomainRangeError(
            f"Bounding box must have 4 values [north, west, south, east], got {len(area)}"
        )
    north, west, south, east = (float(v) for v in area)
    if north <= south:
        raise DomainRangeError(
            f"Bounding box north ({north}) must be greater than south ({south})"
        )
    if west >= east:
        raise DomainRangeError(
            f"Bounding box west ({west}) must be less than east ({east})"
        )
    return north, west, south, east


def validate_date_range(start: datetime, end: datetime) -> None:
    """
    Validate that ``start`` lies strictly before ``end``.

    Raises:
        DomainRangeError: If the range is empty or inverted
    """
    if end <= start:
        raise DomainRangeError(
            f"End date {end} must be after start date {start}"
        )


def validate_positive(value: float, name: str) -> None:
    """
    Validate that a numeric value is strictly positive.

    Raises:
        DomainRangeError: If value is zero or negative
    """
    if value <= 0:
        raise DomainRangeError(f"{name} must be positive, got {value}")


def validate_sample_size(sample_size: int, population_size: int) -> None:
    """
    Validate a draw without replacement.

    Raises:
        DomainRangeError: If the sample is empty or larger than the population
    """
    if sample_size <= 0:
        raise DomainRangeError(f"Sample size must be positive, got {sample_size}")
    if sample_size > population_size:
        raise DomainRangeError(
            f"Cannot draw {sample_size} members without replacement "
            f"from a population of {population_size}"
        )
