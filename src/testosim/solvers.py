# src/testosim/solvers.py
from datetime import datetime
from typing import Sequence

import numpy as np
from scipy.integrate import solve_ivp

from .concentration import PKModel, elimination_rate, route_constants
from .config import REFERENCE_WEIGHT_KG
from .models.one_compartment import one_compartment_first_order
from .models.two_compartment import two_compartment_first_order
from .types import Compound, days_between

# (dose_mg, half_life_days, ka_per_day, bioavailability) for one component of an administration
ComponentParams = tuple[float, float, float, float]


def superpose_days(t_days, dose_times_days: Sequence[float], components: Sequence[ComponentParams],
                   model: PKModel, weight_kg: float = REFERENCE_WEIGHT_KG,
                   calibration_factor: float = 1.0) -> np.ndarray:
    """
    Linear superposition on a plain day axis.

    Every administration at or before an evaluation time adds the single-dose
    curve of every component at the elapsed time; later administrations add 0
    because the model is 0 for elapsed <= 0.
    """
    t = np.asarray(t_days, dtype=float)
    total = np.zeros_like(t)
    for t_dose in dose_times_days:
        elapsed = t - t_dose
        for dose_mg, half_life, ka, F in components:
            total += model.concentration(elapsed, dose_mg, half_life, ka, F,
                                         weight_kg=weight_kg, calibration_factor=calibration_factor)
    return total


def superpose(eval_times: Sequence[datetime], administrations: Sequence[datetime],
              components: Sequence[tuple[Compound, float]], route: str, *,
              model: PKModel = PKModel(), weight_kg: float = REFERENCE_WEIGHT_KG,
              calibration_factor: float = 1.0) -> np.ndarray:
    """
    Aggregate concentration at each evaluation timestamp.

    eval_times       : timestamps to evaluate (any order)
    administrations  : timestamps at which the dose was given
    components       : (compound, mg per administration) pairs sharing `route`

    Returns one value per evaluation timestamp, in input order.
    """
    if len(eval_times) == 0:
        return np.zeros(0)
    origin = eval_times[0]
    t = np.array([days_between(origin, e) for e in eval_times], dtype=float)
    dose_times = [days_between(origin, a) for a in administrations]

    params: list[ComponentParams] = []
    for compound, dose_mg in components:
        F, ka = route_constants(compound, route)
        params.append((dose_mg, compound.half_life_days, ka, F))
    return superpose_days(t, dose_times, params, model, weight_kg, calibration_factor)


def simulate_ode(model: PKModel, half_life_days: float, ka_per_day: float, bioavailability: float,
                 doses: Sequence[tuple[float, float]], t_end_days: float, dt_days: float = 0.25,
                 weight_kg: float = REFERENCE_WEIGHT_KG):
    """
    Numerical reference for the analytical model (depot -> central [<-> peripheral]).

    Doses enter the depot as instantaneous jumps of F*amount at their scheduled
    times; the system is integrated piecewise between dose times. Intended for
    ka > ke, where the analytical model uses the same absorption kinetics.

    doses : (time_days, amount_mg) pairs

    Returns:
      t : array of time points (days)
      C : array of central concentrations (mg/L)
    """
    ke = elimination_rate(half_life_days)
    V = model.volume_of_distribution(weight_kg)

    if model.two_compartment:
        def rhs(t, y):
            return two_compartment_first_order(t, y, ka_per_day, ke, model.k12, model.k21)
        y0 = [0.0, 0.0, 0.0]
    else:
        def rhs(t, y):
            return one_compartment_first_order(t, y, ka_per_day, ke)
        y0 = [0.0, 0.0]

    t_grid = np.arange(0.0, t_end_days + dt_days / 2.0, dt_days)

    # Segment boundaries at every dose time so each jump lands exactly
    boundaries = sorted({0.0, float(t_end_days)} |
                        {float(d) for d, _ in doses if 0.0 <= d <= t_end_days})

    def dose_into_depot(at: float) -> None:
        for d, amount in doses:
            if np.isclose(d, at):
                y0[0] += bioavailability * float(amount)

    dose_into_depot(0.0)

    t_out: list[float] = []
    Ac_out: list[float] = []
    prev = boundaries[0]
    for curr in boundaries[1:]:
        if len(t_out) == 0:
            t_eval_seg = t_grid[(t_grid >= prev) & (t_grid <= curr)]
        else:
            t_eval_seg = t_grid[(t_grid > prev) & (t_grid <= curr)]

        sol = solve_ivp(rhs, t_span=(prev, curr), y0=y0, method="RK45",
                        t_eval=t_eval_seg if t_eval_seg.size else None,
                        rtol=1e-8, atol=1e-10, dense_output=True)
        if t_eval_seg.size:
            t_out.extend(sol.t.tolist())
            Ac_out.extend(sol.y[1].tolist())

        # state exactly at the boundary, not at the last sampled grid point
        y0 = [float(v) for v in sol.sol(curr)]
        dose_into_depot(curr)
        prev = curr

    t_arr = np.asarray(t_out, dtype=float)
    C = np.maximum(np.asarray(Ac_out, dtype=float) / V, 0.0)
    return t_arr, C
