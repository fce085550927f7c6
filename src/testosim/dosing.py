# src/testosim/dosing.py
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterator, Optional, Sequence

from .config import MAX_SCHEDULE_STEPS
from .types import (
    DoseTarget, LabSample, Regimen, Route, SimpleRegimen, days_between,
)
from .validation import validate_positive

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Schedule:
    """
    Ordered administration timestamps.

    dates      : strictly increasing timestamps
    truncated  : True when the step cap was hit before the window was exhausted
    """
    dates: tuple[datetime, ...] = ()
    truncated: bool = False

    def __iter__(self) -> Iterator[datetime]:
        return iter(self.dates)

    def __len__(self) -> int:
        return len(self.dates)

    def __getitem__(self, idx: int | slice):
        return self.dates[idx]


def schedule_dates(regimen_start: datetime, frequency_days: float,
                   window_start: datetime, window_end: datetime,
                   *, max_steps: int = MAX_SCHEDULE_STEPS) -> Schedule:
    """
    Administration times regimen_start + k*frequency_days (k >= 0) inside
    [window_start, window_end].

    frequency_days <= 0 means a single administration at regimen_start.
    The first k is computed directly so long-running regimens with a late
    window cost nothing extra. At most `max_steps` candidates are visited;
    hitting the cap returns what was found with truncated=True.
    """
    if window_end < window_start:
        return Schedule()

    if frequency_days <= 0:
        if window_start <= regimen_start <= window_end:
            return Schedule((regimen_start,))
        return Schedule()

    k = 0
    if window_start > regimen_start:
        k = math.floor(days_between(regimen_start, window_start) / frequency_days)

    dates: list[datetime] = []
    for _ in range(max_steps):
        current = regimen_start + timedelta(days=k * frequency_days)
        if current > window_end:
            return Schedule(tuple(dates))
        if current >= window_start:
            dates.append(current)
        k += 1

    # The cap is only a problem if there was more to generate.
    if regimen_start + timedelta(days=k * frequency_days) > window_end:
        return Schedule(tuple(dates))
    logger.warning(
        "Schedule generation stopped after %d steps (start=%s, every %.3g days, window end=%s); "
        "returning a truncated schedule.", max_steps, regimen_start, frequency_days, window_end,
    )
    return Schedule(tuple(dates), truncated=True)


@dataclass(frozen=True)
class AdministrationPlan:
    """
    One target dosed on one schedule.

    target          : what is injected (compound or blend)
    dose_mg         : amount per administration
    frequency_days  : spacing between administrations (<= 0: single dose)
    route           : administration route
    schedule        : when it is injected
    stage           : owning stage name for advanced regimens, else None
    """
    target: DoseTarget
    dose_mg: float
    frequency_days: float
    route: str
    schedule: Schedule
    stage: Optional[str] = None


def administration_plans(regimen: Regimen, window_end: datetime,
                         since: Optional[datetime] = None) -> list[AdministrationPlan]:
    """
    Expand a regimen into per-target plans up to `window_end`.

    Simple regimens dose from their start onwards. Stage doses run from the
    stage start up to (not including) the stage end, never past the regimen end.
    `since` drops administrations before it; the schedule then starts at the
    first on-schedule date at or after it instead of the regimen start.
    """
    if isinstance(regimen, SimpleRegimen):
        first = regimen.start if since is None else max(regimen.start, since)
        sched = schedule_dates(regimen.start, regimen.frequency_days, first, window_end)
        return [AdministrationPlan(target=regimen.target, dose_mg=regimen.dose_mg,
                                   frequency_days=regimen.frequency_days,
                                   route=regimen.route, schedule=sched)]

    plans: list[AdministrationPlan] = []
    for stage in regimen.stages:
        stage_start = stage.start_date(regimen.start)
        upper = min(stage.end_date(regimen.start), regimen.end_date)
        for dose in stage.doses:
            first = stage_start if since is None else max(stage_start, since)
            sched = schedule_dates(stage_start, dose.frequency_days, first, min(upper, window_end))
            kept = tuple(d for d in sched if d < upper)
            plans.append(AdministrationPlan(
                target=dose.target, dose_mg=dose.dose_mg, frequency_days=dose.frequency_days,
                route=dose.route, schedule=Schedule(kept, truncated=sched.truncated),
                stage=stage.name,
            ))
    return plans


# --------------------------
# Regimen builders
# --------------------------
def single_dose(name: str, start: datetime, dose_mg: float, target: DoseTarget,
                route: Route = "intramuscular") -> SimpleRegimen:
    """
    A simple regimen with exactly one administration.
    Example: 250 mg testosterone enanthate IM once.
    """
    validate_positive("dose_mg", dose_mg)
    return SimpleRegimen(name=name, start=start, dose_mg=float(dose_mg),
                         frequency_days=0.0, target=target, route=route)


def every_n_days(name: str, start: datetime, dose_mg: float, every_days: float,
                 target: DoseTarget, route: Route = "intramuscular",
                 lab_samples: Sequence[LabSample] = ()) -> SimpleRegimen:
    """
    Repeated fixed dosing, e.g. 125 mg every 3.5 days.

    dose_mg     : size of each dose, mg
    every_days  : spacing between doses in days (fractions allowed)
    """
    validate_positive("dose_mg", dose_mg)
    validate_positive("every_days", every_days)
    return SimpleRegimen(name=name, start=start, dose_mg=float(dose_mg),
                         frequency_days=float(every_days), target=target, route=route,
                         lab_samples=tuple(lab_samples))
