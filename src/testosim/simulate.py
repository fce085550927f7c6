# src/testosim/simulate.py
import logging
import math
from datetime import datetime, timedelta
from typing import Optional

import numpy as np

from .concentration import PKModel, endogenous_baseline, route_constants
from .config import DEFAULT_CALIBRATION_FACTOR, DEFAULT_WEIGHT_KG, LOOKBACK_HALF_LIVES, MAX_GRID_POINTS
from .dosing import administration_plans
from .effects import index_series
from .helpers import component_doses
from .library import ReferenceTable
from .potency import color_for
from .solvers import superpose
from .types import AdvancedRegimen, BlendTarget, Regimen, days_between
from .visualization import ANABOLIC_COLOR, ANDROGENIC_COLOR, TOTAL_COLOR, Visualization

logger = logging.getLogger(__name__)

Window = tuple[datetime, datetime]


def simulation_grid(start: datetime, end: datetime, step_days: float = 1.0,
                    max_points: int = MAX_GRID_POINTS) -> list[datetime]:
    """
    Evenly spaced timestamps from start to end, end always included.
    The step is widened when the window would need more than `max_points`.
    """
    if end < start:
        return []
    span = days_between(start, end)
    if span == 0:
        return [start]
    if step_days <= 0:
        step_days = 1.0
    if math.floor(span / step_days) + 1 > max_points:
        widened = span / (max_points - 1)
        logger.debug("Grid step widened from %.4g to %.4g days (cap %d points)", step_days, widened, max_points)
        step_days = widened

    n = math.floor(span / step_days + 1e-9)
    grid = [start + timedelta(days=i * step_days) for i in range(n + 1)]
    if grid[-1] < end:
        grid.append(end)
    return grid


def lookback_days(regimen: Regimen, library: ReferenceTable, model: PKModel) -> float:
    """
    How far before a window administrations still matter: LOOKBACK_HALF_LIVES
    terminal half-lives of the slowest component the regimen doses.
    """
    if isinstance(regimen, AdvancedRegimen):
        doses = [(d.target, d.route) for s in regimen.stages for d in s.doses]
    else:
        doses = [(regimen.target, regimen.route)]

    longest = 0.0
    for target, route in doses:
        for compound, _ in component_doses(target, 1.0, library):
            _, ka = route_constants(compound, route)
            longest = max(longest, model.terminal_half_life(compound.half_life_days, ka))
    return LOOKBACK_HALF_LIVES * longest


def _window(regimen: Regimen, window: Optional[Window]) -> Window:
    if window is None:
        return regimen.start, regimen.end_date
    return window


def simulate_regimen(regimen: Regimen, library: ReferenceTable, *,
                     window: Optional[Window] = None,
                     weight_kg: float = DEFAULT_WEIGHT_KG,
                     calibration_factor: float = DEFAULT_CALIBRATION_FACTOR,
                     model: PKModel = PKModel(),
                     step_days: float = 1.0,
                     include_endogenous: bool = False) -> Visualization:
    """
    Layers for one regimen over `window` (default: regimen start to its end date).

    Layer order: one curve per compound component (per stage for advanced
    regimens), the total, then the anabolic and androgenic index curves
    (hidden by default).
    """
    start, end = _window(regimen, window)
    viz = Visualization(start=start, end=end)
    grid = simulation_grid(start, end, step_days)
    if not grid:
        return viz

    since = start - timedelta(days=lookback_days(regimen, library, model))
    total = np.zeros(len(grid))
    for plan in administration_plans(regimen, end, since=since):
        if plan.schedule.truncated:
            viz.truncated = True
        is_blend = isinstance(plan.target, BlendTarget)
        for compound, mg in component_doses(plan.target, plan.dose_mg, library):
            values = superpose(grid, plan.schedule.dates, [(compound, mg)], plan.route,
                               model=model, weight_kg=weight_kg, calibration_factor=calibration_factor)
            total += values
            name = compound.full_display_name
            if plan.stage is not None:
                name = f"{plan.stage} - {name}"
            viz.add_layer("compound_curve", name, color_for(compound.potency_class), grid, values,
                          opacity=0.8 if (is_blend or plan.stage is not None) else 1.0)

    if include_endogenous and weight_kg > 0:
        total += endogenous_baseline(weight_kg)
    viz.add_layer("total_curve", "Total Concentration", TOTAL_COLOR, grid, total)

    viz.add_layer("anabolic_index", "Anabolic Effect", ANABOLIC_COLOR, grid,
                  index_series(regimen, library, grid, "anabolic"), opacity=0.7, visible=False)
    viz.add_layer("androgenic_index", "Androgenic Effect", ANDROGENIC_COLOR, grid,
                  index_series(regimen, library, grid, "androgenic"), opacity=0.7, visible=False)
    return viz


def level_at(regimen: Regimen, library: ReferenceTable, when: datetime, *,
             weight_kg: float = DEFAULT_WEIGHT_KG,
             calibration_factor: float = DEFAULT_CALIBRATION_FACTOR,
             model: PKModel = PKModel(),
             include_endogenous: bool = False) -> float:
    """Aggregate level of every administration of the regimen at one timestamp."""
    level = 0.0
    since = when - timedelta(days=lookback_days(regimen, library, model))
    for plan in administration_plans(regimen, when, since=since):
        components = component_doses(plan.target, plan.dose_mg, library)
        if components:
            level += float(superpose([when], plan.schedule.dates, components, plan.route,
                                     model=model, weight_kg=weight_kg,
                                     calibration_factor=calibration_factor)[0])
    if include_endogenous and weight_kg > 0:
        level += endogenous_baseline(weight_kg)
    return level


def total_curve(regimen: Regimen, library: ReferenceTable, *,
                window: Optional[Window] = None, step_days: float = 1.0, **kwargs):
    """
    Plain arrays for metrics:
      t : days since the window start
      C : total concentration (mg/L)
    """
    viz = simulate_regimen(regimen, library, window=window, step_days=step_days, **kwargs)
    layer = viz.total
    if layer is None:
        return np.zeros(0), np.zeros(0)
    t = np.array([days_between(viz.start, p.timestamp) for p in layer.data], dtype=float)
    return t, layer.values
