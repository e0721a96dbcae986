# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 flexcontrol developers

"""
Area directives: bounding box and optional outward snapping to a global grid.

The resolved box always contains the requested box; snapping only enlarges it.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Tuple

import numpy as np

from flexcontrol.core.constants import Directives, GridBounds
from flexcontrol.core.exceptions import DomainRangeError
from flexcontrol.core.validation import validate_bounding_box, validate_positive

from .document import ControlDocument

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BoundingBox:
    """Geographic bounds in degrees."""
    north: float
    west: float
    south: float
    east: float

    @classmethod
    def from_area(cls, area: Sequence[float]) -> 'BoundingBox':
        """Build from a ``[north, west, south, east]`` sequence."""
        north, west, south, east = validate_bounding_box(area)
        return cls(north=north, west=west, south=south, east=east)

    def as_area(self) -> Tuple[float, float, float, float]:
        return self.north, self.west, self.south, self.east

    def contains(self, other: 'BoundingBox') -> bool:
        return (
            self.north >= other.north
            and self.south <= other.south
            and self.west <= other.west
            and self.east >= other.east
        )

    def directives(self) -> Dict[str, float]:
        return {
            Directives.LOWER: self.south,
            Directives.UPPER: self.north,
            Directives.LEFT: self.west,
            Directives.RIGHT: self.east,
        }


def regular_grid(start: float, stop: float, spacing: float) -> np.ndarray:
    """
    Grid ``start, start + spacing, ...`` up to and including ``stop`` when
    the spacing divides the extent.
    """
    validate_positive(spacing, "Grid spacing")
    count = int(np.floor((stop - start) / spacing + 1e-9))
    values = start + spacing * np.arange(count + 1)
    return np.round(values, GridBounds.DECIMALS)


def outer_values(grid: np.ndarray, bounds: Tuple[float, float]) -> Tuple[float, float]:
    """
    Grid cell straddling ``(low, high)``.

    Returns the largest grid value not above ``low`` and the smallest grid
    value not below ``high``. A bound lying on a grid line resolves to that
    line.

    Raises:
        DomainRangeError: If a bound lies outside the grid
    """
    low, high = bounds
    below = grid[grid <= low]
    above = grid[grid >= high]
    if below.size == 0:
        raise DomainRangeError(
            f"Bound {low} lies below the grid, which starts at {grid[0]}"
        )
    if above.size == 0:
        raise DomainRangeError(
            f"Bound {high} lies above the grid, which ends at {grid[-1]}"
        )
    return float(below.max()), float(above.min())


def snap_to_grid(box: BoundingBox, grid: float) -> BoundingBox:
    """Expand ``box`` outward onto the global grid of the given spacing."""
    lons = regular_grid(*GridBounds.LONGITUDE, grid)
    lats = regular_grid(*GridBounds.LATITUDE, grid)
    west, east = outer_values(lons, (box.west, box.east))
    south, north = outer_values(lats, (box.south, box.north))
    return BoundingBox(north=north, west=west, south=south, east=east)


def resolve_area(area: Sequence[float], grid: Optional[float] = None) -> Dict[str, float]:
    """
    Area directives for a requested box.

    Args:
        area: ``[north, west, south, east]`` in degrees
        grid: Optional grid spacing in degrees; when given the box is
            snapped outward and ``GRID`` is included

    Returns:
        Directive updates, ``GRID`` first when present
    """
    box = BoundingBox.from_area(area)
    updates: Dict[str, float] = {}
    if grid is not None:
        snapped = snap_to_grid(box, grid)
        if snapped != box:
            logger.info(f"Snapped area {box.as_area()} to {snapped.as_area()} on a {grid} degree grid")
        box = snapped
        updates[Directives.GRID] = grid
    updates.update(box.directives())
    return updates


def set_area(document: ControlDocument, area: Sequence[float],
             grid: Optional[float] = None) -> ControlDocument:
    """
    Set LOWER/UPPER/LEFT/RIGHT (and GRID) on a control document.

    Every value is computed before the document is touched, so a rejected
    box leaves it unchanged.
    """
    updates = resolve_area(area, grid)
    logger.debug(f"Setting area directives {updates}")
    return document.merge(updates)
