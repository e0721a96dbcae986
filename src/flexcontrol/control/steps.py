# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 flexcontrol developers

"""
Date stepping directives.

For every step of a date range the retrieval type, base time and forecast
step are derived under exactly one of three regimes, selected from the
document's CLASS and STREAM directives:

- reanalysis (CLASS contains ``EA``): analyses at every step;
- ensemble forecast (STREAM contains ``ENFO``): perturbed forecasts from a
  single base time 36 hours before the end date, rounded up to 12 hours;
- operational (default): analyses at 00/12 UTC, forecasts in between.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Union

import pandas as pd

from flexcontrol.core.constants import Directives, StepCodes
from flexcontrol.core.exceptions import DomainRangeError
from flexcontrol.core.validation import validate_date_range, validate_positive

from .document import ControlDocument

logger = logging.getLogger(__name__)

DateLike = Union[str, datetime, pd.Timestamp]


class StepRegime(Enum):
    """Date stepping regime."""
    REANALYSIS = 'reanalysis'
    ENSEMBLE = 'ensemble'
    OPERATIONAL = 'operational'


@dataclass
class StepPlan:
    """Parallel per-step sequences plus the resolved date bounds."""
    regime: StepRegime
    types: List[str]
    times: List[str]
    steps: List[str]
    dtime: str
    start_date: pd.Timestamp
    end_date: pd.Timestamp
    acctime: Optional[str] = None
    dates: List[pd.Timestamp] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.types)

    def directives(self) -> Dict[str, str]:
        """
        Directive updates for this plan.

        END_DATE is only included when it falls on a different calendar date
        than START_DATE.
        """
        updates = {
            Directives.START_DATE: self.start_date.strftime(StepCodes.DATE_FORMAT),
        }
        if self.start_date.date() != self.end_date.date():
            updates[Directives.END_DATE] = self.end_date.strftime(StepCodes.DATE_FORMAT)
        updates.update({
            Directives.TYPE: ' '.join(self.types),
            Directives.TIME: ' '.join(self.times),
            Directives.STEP: ' '.join(self.steps),
            Directives.DTIME: self.dtime,
        })
        if self.acctime is not None:
            updates[Directives.ACCTIME] = self.acctime
        return updates


def format_hour(value: int) -> str:
    """Two-digit zero-padded hour."""
    return f"{value:02d}"


def select_regime(class_text: str, stream_text: str) -> StepRegime:
    """Pick the stepping regime from CLASS and STREAM directive text."""
    if StepCodes.REANALYSIS_CLASS_MARKER in class_text:
        return StepRegime.REANALYSIS
    if StepCodes.ENSEMBLE_STREAM_MARKER in stream_text:
        return StepRegime.ENSEMBLE
    return StepRegime.OPERATIONAL


def ensemble_base_time(end_date: pd.Timestamp) -> pd.Timestamp:
    """
    Forecast base time for the ensemble regime.

    Steps back 36 hours from ``end_date`` and takes the later of the two
    surrounding 12-hour marks.
    """
    lookback = end_date - pd.Timedelta(hours=StepCodes.ENSEMBLE_LOOKBACK_HOURS)
    return lookback.ceil(pd.Timedelta(hours=StepCodes.FORECAST_CYCLE_HOURS))


def _parse_timestep(timestep: Union[int, str]) -> int:
    try:
        hours = int(str(timestep).strip())
    except ValueError as e:
        raise DomainRangeError(f"Timestep must be a whole number of hours, got '{timestep}'") from e
    validate_positive(hours, "Timestep")
    return hours


def derive_step_plan(
    start: DateLike,
    end: DateLike,
    timestep: Union[int, str],
    class_text: str = '',
    stream_text: str = '',
) -> StepPlan:
    """
    Compute the step sequences for ``[start, end)`` without touching any document.

    Args:
        start: First step
        end: Exclusive end of the range
        timestep: Hours between steps
        class_text: Value of the CLASS directive
        stream_text: Value of the STREAM directive

    Raises:
        DomainRangeError: If the range is empty, the timestep is not a
            positive number of hours, or an ensemble step precedes the base time
    """
    start_date = pd.Timestamp(start)
    end_date = pd.Timestamp(end)
    hours = _parse_timestep(timestep)
    validate_date_range(start_date, end_date)

    dates = list(pd.date_range(start_date, end_date, freq=pd.Timedelta(hours=hours), inclusive='left'))
    regime = select_regime(class_text, stream_text)

    types: List[str] = []
    times: List[str] = []
    steps: List[str] = []
    acctime = None

    if regime is StepRegime.REANALYSIS:
        for st in dates:
            times.append(format_hour(st.hour % StepCodes.HOURS_PER_DAY))
            types.append(StepCodes.ANALYSIS)
            steps.append(format_hour(0))
    elif regime is StepRegime.ENSEMBLE:
        base = ensemble_base_time(end_date)
        for st in dates:
            offset = int((st - base) / pd.Timedelta(hours=1))
            if offset < 0:
                raise DomainRangeError(
                    f"Step {st} precedes the ensemble forecast base time {base}"
                )
            times.append(format_hour(base.hour))
            types.append(StepCodes.PERTURBED_FORECAST)
            steps.append(format_hour(offset))
        start_date = base
        end_date = base
        acctime = times[0]
    else:
        cycle = StepCodes.FORECAST_CYCLE_HOURS
        for st in dates:
            times.append(format_hour(st.hour // cycle * cycle))
            step = st.hour % cycle
            types.append(StepCodes.ANALYSIS if step == 0 else StepCodes.FORECAST)
            steps.append(format_hour(step))

    return StepPlan(
        regime=regime,
        types=types,
        times=times,
        steps=steps,
        dtime=str(hours),
        start_date=start_date,
        end_date=end_date,
        acctime=acctime,
        dates=dates,
    )


def set_steps(
    document: ControlDocument,
    start: DateLike,
    end: DateLike,
    timestep: Union[int, str],
) -> ControlDocument:
    """
    Set START_DATE, END_DATE, TYPE, TIME, STEP and DTIME (and ACCTIME for
    ensemble streams) on a control document.

    The document is only modified once the whole plan has been computed.
    END_DATE is only written for multi-day plans; an END_DATE already in the
    document is left as it is when the new plan stays within one day or uses
    the ensemble regime.
    """
    plan = derive_step_plan(
        start,
        end,
        timestep,
        class_text=document.get_str(Directives.CLASS, ''),
        stream_text=document.get_str(Directives.STREAM, ''),
    )
    logger.info(f"Derived {len(plan)} {plan.regime.value} steps from {start} to {end} every {plan.dtime}h")
    return document.merge(plan.directives())
