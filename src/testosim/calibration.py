# src/testosim/calibration.py
"""
Fit elimination/absorption constants to measured blood levels.

The fit is bounded nonlinear least squares on (log ke, log ka), started from
the literature values and limited to half/double of them. It is fully
deterministic: the same samples always give the same constants.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Sequence, Union

import numpy as np
from scipy.optimize import least_squares

from .concentration import LN2, PKModel, elimination_rate
from .config import FALLBACK_BIOAVAILABILITY, REFERENCE_WEIGHT_KG
from .dosing import schedule_dates
from .library import ReferenceTable
from .solvers import superpose_days
from .types import Compound, CompoundTarget, LabSample, SimpleRegimen, days_between

logger = logging.getLogger(__name__)

MIN_SAMPLES = 2


@dataclass(frozen=True)
class InsufficientData:
    """Normal outcome when the record cannot support a fit."""
    reason: str
    sample_count: int


@dataclass(frozen=True)
class CalibrationResult:
    """
    adjusted_ke / adjusted_ka  : fitted constants (1/day)
    original_ke / original_ka  : literature constants the fit started from
    correlation                : Pearson r between observed and fitted levels
    rmse                       : root-mean-square residual, in lab units
    cost                       : 0.5 * sum of squared residuals at the optimum
    converged                  : optimizer reported success
    """
    adjusted_ke: float
    adjusted_ka: float
    original_ke: float
    original_ka: float
    correlation: float
    rmse: float
    cost: float
    converged: bool
    samples: tuple[LabSample, ...]

    @property
    def half_life_days(self) -> float:
        return LN2 / self.adjusted_ke

    @property
    def original_half_life_days(self) -> float:
        return LN2 / self.original_ke

    @property
    def half_life_change_percent(self) -> float:
        return (self.half_life_days / self.original_half_life_days - 1.0) * 100.0


CalibrationOutcome = Union[CalibrationResult, InsufficientData]


def _pearson(observed: np.ndarray, predicted: np.ndarray) -> float:
    if observed.size < 2 or np.std(observed) == 0 or np.std(predicted) == 0:
        return 0.0
    return float(np.corrcoef(observed, predicted)[0, 1])


def calibrate(samples: Sequence[LabSample], administrations: Sequence[datetime],
              compound: Compound, dose_mg: float, route: str,
              body_weight_kg: float = REFERENCE_WEIGHT_KG, *,
              model: PKModel = PKModel(), calibration_factor: float = 1.0,
              bound_factor: float = 2.0) -> CalibrationOutcome:
    """
    Refine (ke, ka) of `compound` so the superposed model best matches `samples`.

    Returns InsufficientData for fewer than two samples, a route without an
    absorption constant, or when no administration precedes the last sample.
    """
    ordered = tuple(sorted(samples, key=lambda s: s.timestamp))
    if len(ordered) < MIN_SAMPLES:
        return InsufficientData(f"at least {MIN_SAMPLES} lab samples are required", len(ordered))
    ka0 = compound.ka_per_day.get(route)
    if ka0 is None:
        return InsufficientData(f"{compound.name} has no absorption rate for route '{route}'", len(ordered))
    if not any(a <= ordered[-1].timestamp for a in administrations):
        return InsufficientData("no administration precedes the lab samples", len(ordered))

    F = compound.bioavailability.get(route, FALLBACK_BIOAVAILABILITY)
    ke0 = elimination_rate(compound.half_life_days)

    origin = ordered[0].timestamp
    t_obs = np.array([days_between(origin, s.timestamp) for s in ordered], dtype=float)
    y_obs = np.array([s.value for s in ordered], dtype=float)
    dose_times = [days_between(origin, a) for a in administrations]

    def predict(ke: float, ka: float) -> np.ndarray:
        return superpose_days(t_obs, dose_times, [(dose_mg, LN2 / ke, ka, F)], model,
                              weight_kg=body_weight_kg, calibration_factor=calibration_factor)

    def residuals(x: np.ndarray) -> np.ndarray:
        ke, ka = np.exp(x)
        return predict(ke, ka) - y_obs

    x0 = np.log([ke0, ka0])
    spread = np.log(bound_factor)
    res = least_squares(residuals, x0, bounds=(x0 - spread, x0 + spread), method="trf")

    ke_fit, ka_fit = (float(v) for v in np.exp(res.x))
    fitted = predict(ke_fit, ka_fit)
    rmse = float(np.sqrt(np.mean((fitted - y_obs) ** 2)))
    if res.success:
        logger.info("Calibrated %s: ke %.4f -> %.4f, ka %.4f -> %.4f (RMSE %.4g)",
                    compound.name, ke0, ke_fit, ka0, ka_fit, rmse)
    else:
        logger.warning("Calibration of %s did not converge: %s", compound.name, res.message)

    return CalibrationResult(
        adjusted_ke=ke_fit, adjusted_ka=ka_fit, original_ke=ke0, original_ka=float(ka0),
        correlation=_pearson(y_obs, fitted), rmse=rmse, cost=float(res.cost),
        converged=bool(res.success), samples=ordered,
    )


def calibrate_regimen(regimen: SimpleRegimen, library: ReferenceTable,
                      body_weight_kg: float = REFERENCE_WEIGHT_KG, *,
                      model: PKModel = PKModel(), calibration_factor: float = 1.0) -> CalibrationOutcome:
    """calibrate() driven by a single-compound regimen and its recorded lab samples."""
    samples = tuple(regimen.lab_samples)
    if not isinstance(regimen.target, CompoundTarget):
        return InsufficientData("calibration needs a single-compound regimen", len(samples))
    compound = library.compound(regimen.target.compound_id)
    if compound is None:
        return InsufficientData(f"unknown compound '{regimen.target.compound_id}'", len(samples))
    if len(samples) < MIN_SAMPLES:
        return InsufficientData(f"at least {MIN_SAMPLES} lab samples are required", len(samples))

    last = max(s.timestamp for s in samples)
    administrations = schedule_dates(regimen.start, regimen.frequency_days, regimen.start, last)
    return calibrate(samples, list(administrations), compound, regimen.dose_mg, regimen.route,
                     body_weight_kg, model=model, calibration_factor=calibration_factor)


def rescale_calibration_factor(current: float, observed: float, predicted: float,
                               low: float = 0.1, high: float = 10.0) -> float:
    """
    Single-sample correction of the global calibration multiplier:
    current * observed / predicted, clamped to [low, high]. An unusable
    prediction leaves the factor unchanged.
    """
    if not np.isfinite(predicted) or predicted <= 0.01:
        logger.warning("Cannot rescale calibration factor: model prediction is %r.", predicted)
        return current
    return float(min(high, max(low, current * observed / predicted)))
