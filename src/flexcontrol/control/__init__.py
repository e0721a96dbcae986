# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 flexcontrol developers

"""Control document and the derivations that populate it."""

from .document import ControlDocument, parse_control_lines
from .area import BoundingBox, outer_values, regular_grid, resolve_area, set_area, snap_to_grid
from .steps import StepPlan, StepRegime, derive_step_plan, select_regime, set_steps
from .ensemble import EnsembleSelection, sample_members, set_ensemble_rest

__all__ = [
    'ControlDocument',
    'parse_control_lines',
    'BoundingBox',
    'outer_values',
    'regular_grid',
    'resolve_area',
    'set_area',
    'snap_to_grid',
    'StepPlan',
    'StepRegime',
    'derive_step_plan',
    'select_regime',
    'set_steps',
    'EnsembleSelection',
    'sample_members',
    'set_ensemble_rest',
]
