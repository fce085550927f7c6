# src/testosim/effects.py
"""
Anabolic / androgenic effect indices.

An index is the weekly-equivalent dose of every compound weighted by its
class multiplier (see potency.POTENCY). Advanced regimens average their
stages weighted by stage duration.
"""
from datetime import datetime
from typing import Literal, Sequence

import numpy as np

from .helpers import component_doses
from .library import ReferenceTable
from .potency import potency_for
from .types import AdvancedRegimen, Regimen, Stage

IndexKind = Literal["anabolic", "androgenic"]


def weekly_dose(dose_mg: float, frequency_days: float) -> float:
    """mg per week; single administrations (frequency <= 0) count as 0."""
    if frequency_days > 0:
        return dose_mg * (7.0 / frequency_days)
    return 0.0


def _multiplier(potency_class: str, kind: IndexKind) -> float:
    p = potency_for(potency_class)
    return p.anabolic if kind == "anabolic" else p.androgenic


def _dose_index(target, dose_mg: float, frequency_days: float,
                library: ReferenceTable, kind: IndexKind) -> float:
    return sum(
        weekly_dose(mg, frequency_days) * _multiplier(compound.potency_class, kind)
        for compound, mg in component_doses(target, dose_mg, library)
    )


def stage_index(stage: Stage, library: ReferenceTable, kind: IndexKind) -> float:
    """Sum of every sub-dose's contribution within one stage."""
    return sum(_dose_index(d.target, d.dose_mg, d.frequency_days, library, kind) for d in stage.doses)


def effect_index(regimen: Regimen, library: ReferenceTable, kind: IndexKind) -> float:
    if not isinstance(regimen, AdvancedRegimen):
        return _dose_index(regimen.target, regimen.dose_mg, regimen.frequency_days, library, kind)

    weighted = 0.0
    total_weeks = 0
    for stage in regimen.stages:
        if stage.duration_weeks <= 0:
            continue
        weighted += stage_index(stage, library, kind) * stage.duration_weeks
        total_weeks += stage.duration_weeks
    if total_weeks == 0:
        return 0.0
    return weighted / total_weeks


def anabolic_index(regimen: Regimen, library: ReferenceTable) -> float:
    return effect_index(regimen, library, "anabolic")


def androgenic_index(regimen: Regimen, library: ReferenceTable) -> float:
    return effect_index(regimen, library, "androgenic")


def index_series(regimen: Regimen, library: ReferenceTable, grid: Sequence[datetime],
                 kind: IndexKind) -> np.ndarray:
    """
    Index value at each grid time.

    Simple regimens are constant. Advanced regimens take the mean index of
    the stages active at that moment (start <= t <= end), 0 when none is.
    Zero-week stages are never active.
    """
    if not isinstance(regimen, AdvancedRegimen):
        return np.full(len(grid), effect_index(regimen, library, kind), dtype=float)

    windows = [
        (s.start_date(regimen.start), s.end_date(regimen.start), stage_index(s, library, kind))
        for s in regimen.stages
        if s.duration_weeks > 0
    ]
    out = np.zeros(len(grid), dtype=float)
    for i, when in enumerate(grid):
        active = [value for start, end, value in windows if start <= when <= end]
        if active:
            out[i] = sum(active) / len(active)
    return out
