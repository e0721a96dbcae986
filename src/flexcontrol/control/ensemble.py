# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 flexcontrol developers

"""
Ensemble member sampling.

A random subset of perturbed-forecast members is drawn without replacement
and written to NUMBER together with the fixed directives every ensemble
retrieval needs.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

import numpy as np

from flexcontrol.core.constants import Directives, EnsembleDefaults
from flexcontrol.core.validation import validate_sample_size

from .document import ControlDocument

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EnsembleSelection:
    """Drawn member ids, in draw order, and the auxiliary directives."""
    members: Tuple[int, ...]
    auxiliary: Dict[str, object] = field(
        default_factory=lambda: dict(EnsembleDefaults.AUXILIARY_DIRECTIVES)
    )

    @property
    def number(self) -> str:
        return '/'.join(str(m) for m in self.members)

    def directives(self) -> Dict[str, object]:
        updates: Dict[str, object] = {Directives.NUMBER: self.number}
        updates.update(self.auxiliary)
        return updates


def sample_members(
    rng: Optional[np.random.Generator] = None,
    sample_size: int = EnsembleDefaults.SAMPLE_SIZE,
    population_size: int = EnsembleDefaults.POPULATION_SIZE,
) -> EnsembleSelection:
    """
    Draw distinct member ids from ``1..population_size``.

    Args:
        rng: Random generator; pass a seeded one for reproducible draws
        sample_size: Number of members to draw
        population_size: Largest member id

    Raises:
        DomainRangeError: If more members are requested than exist
    """
    validate_sample_size(sample_size, population_size)
    rng = rng or np.random.default_rng()
    drawn = rng.choice(np.arange(1, population_size + 1), size=sample_size, replace=False)
    return EnsembleSelection(members=tuple(int(m) for m in drawn))


def set_ensemble_rest(
    document: ControlDocument,
    rng: Optional[np.random.Generator] = None,
) -> ControlDocument:
    """Set NUMBER, LEVELIST, RESOL, FORMAT and GAUSS on a control document."""
    selection = sample_members(rng)
    logger.info(f"Selected ensemble members {selection.number}")
    return document.merge(selection.directives())
