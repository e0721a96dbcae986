# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 flexcontrol developers

"""
Constants for flexcontrol.

Centralizes directive names, regime markers, file layout names and the
fixed ensemble settings used across the package.
"""

from typing import Dict, Tuple


class Directives:
    """Names of the control file directives written by flexcontrol."""

    CLASS = 'CLASS'
    STREAM = 'STREAM'

    # Area
    GRID = 'GRID'
    LOWER = 'LOWER'
    UPPER = 'UPPER'
    LEFT = 'LEFT'
    RIGHT = 'RIGHT'

    # Time stepping
    START_DATE = 'START_DATE'
    END_DATE = 'END_DATE'
    TYPE = 'TYPE'
    TIME = 'TIME'
    STEP = 'STEP'
    DTIME = 'DTIME'
    ACCTIME = 'ACCTIME'

    # Ensemble
    NUMBER = 'NUMBER'
    LEVELIST = 'LEVELIST'
    RESOL = 'RESOL'
    FORMAT = 'FORMAT'
    GAUSS = 'GAUSS'

    EXEDIR = 'EXEDIR'
    """Directory holding the calc_etadot executable."""


class StepCodes:
    """Retrieval type codes and regime markers used when deriving steps."""

    ANALYSIS = 'AN'
    FORECAST = 'FC'
    PERTURBED_FORECAST = 'PF'

    REANALYSIS_CLASS_MARKER = 'EA'
    """Substring of CLASS selecting the reanalysis regime."""

    ENSEMBLE_STREAM_MARKER = 'ENFO'
    """Substring of STREAM selecting the ensemble-forecast regime."""

    ENSEMBLE_LOOKBACK_HOURS = 36
    """Hours stepped back from the end date to find the forecast base time."""

    FORECAST_CYCLE_HOURS = 12
    """Spacing of forecast base times in the operational and ensemble regimes."""

    HOURS_PER_DAY = 24
    DATE_FORMAT = '%Y%m%d'


class EnsembleDefaults:
    """Fixed ensemble configuration."""

    POPULATION_SIZE = 50
    """Members are drawn from 1..POPULATION_SIZE."""

    SAMPLE_SIZE = 9

    AUXILIARY_DIRECTIVES: Dict[str, object] = {
        Directives.LEVELIST: '1/to/137',
        Directives.RESOL: 799,
        Directives.FORMAT: 'GRIB2',
        Directives.GAUSS: 0,
    }


class GridBounds:
    """Extent of the global grids used for area snapping."""

    LONGITUDE: Tuple[float, float] = (-180.0, 180.0)
    LATITUDE: Tuple[float, float] = (-90.0, 90.0)
    DECIMALS = 10
    """Grid values are rounded to this many decimals to keep them exact."""


class WorkspaceLayout:
    """File and directory names of a flex_extract run directory."""

    INPUT_DIR = 'input'
    OUTPUT_DIR = 'output'
    CONTROL_MARKER = 'CONTROL'
    MANIFEST_NAME = 'mars_requests.csv'
    GRIB_SUFFIX = '.grb'
    PPID_FIELD_INDEX = 3
    """Zero-based index of the process id among the dot-separated name fields."""

    CONTROL_FILE_MODE = 0o664

    DEFAULT_CONTROL = 'CONTROL_OD.OPER.FC.eta.highres'
    ENSEMBLE_CONTROL = 'CONTROL_OD.ENFO.PF.36hours'


class ManifestColumns:
    """Column handling rules for the request manifest."""

    RENAMES: Dict[str, str] = {
        'marsclass': 'class',
    }
    """Manifest column name -> archive field name."""

    ROW_NUMBER = 'request_number'
    """Internal numbering column; the archive rejects it."""

    SKIPPED: Tuple[str, ...] = (ROW_NUMBER,)
