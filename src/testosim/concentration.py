# src/testosim/concentration.py
import logging
import math
from dataclasses import dataclass

import numpy as np
from scipy.optimize import minimize_scalar

from .config import (
    CLEARANCE_REF_L_PER_DAY, ENDOGENOUS_PRODUCTION_MG_PER_DAY, FALLBACK_BIOAVAILABILITY,
    FALLBACK_KA_PER_DAY, K12_PER_DAY, K21_PER_DAY, REFERENCE_WEIGHT_KG, USE_TWO_COMPARTMENT,
    VD_REF_L,
)
from .models.one_compartment import bateman, bolus, peak_time
from .models.two_compartment import first_order_absorption, hybrid_constants
from .types import Compound

logger = logging.getLogger(__name__)

LN2 = math.log(2.0)


def elimination_rate(half_life_days: float) -> float:
    """ke = ln2 / t_half (1/day)."""
    return LN2 / half_life_days


def route_constants(compound: Compound, route: str) -> tuple[float, float]:
    """
    (bioavailability, ka) for a compound on a route. A route the compound has
    no figures for falls back to full bioavailability and ka = 0.7/day.
    """
    F = compound.bioavailability.get(route)
    ka = compound.ka_per_day.get(route)
    if F is None or ka is None:
        logger.debug("%s has no %s constants; using fallbacks", compound.name, route)
    return (
        FALLBACK_BIOAVAILABILITY if F is None else F,
        FALLBACK_KA_PER_DAY if ka is None else ka,
    )


def endogenous_baseline(weight_kg: float) -> float:
    """
    Steady-state level from natural production (mg/L):
      production / (CL_ref * (weight/70)^0.75)
    """
    clearance = CLEARANCE_REF_L_PER_DAY * (weight_kg / REFERENCE_WEIGHT_KG) ** 0.75
    return ENDOGENOUS_PRODUCTION_MG_PER_DAY / clearance


@dataclass(frozen=True)
class PKModel:
    """
    Analytical single-dose concentration model.

    two_compartment : use the central/peripheral tri-exponential solution
    k12, k21        : inter-compartment transfer rates (1/day)
    vd_ref_L        : volume of distribution at the 70 kg reference weight
    """
    two_compartment: bool = USE_TWO_COMPARTMENT
    k12: float = K12_PER_DAY
    k21: float = K21_PER_DAY
    vd_ref_L: float = VD_REF_L

    def volume_of_distribution(self, weight_kg: float) -> float:
        """Allometric (linear) scaling from the 70 kg reference."""
        return self.vd_ref_L * (weight_kg / REFERENCE_WEIGHT_KG)

    def concentration(self, elapsed_days, dose_mg: float, half_life_days: float, ka: float,
                      bioavailability: float, weight_kg: float = REFERENCE_WEIGHT_KG,
                      calibration_factor: float = 1.0):
        """
        Concentration after one administration, `elapsed_days` after it.

        Accepts a scalar (returns float) or an array of elapsed times (returns
        an array). Elapsed <= 0, half-life <= 0 or weight <= 0 give 0. The
        calibration factor is applied last in every branch and the result is
        never negative.
        """
        t = np.asarray(elapsed_days, dtype=float)
        if half_life_days <= 0 or weight_kg <= 0:
            C = np.zeros_like(t)
        else:
            C = self._exogenous(np.where(t > 0, t, 0.0), dose_mg, elimination_rate(half_life_days),
                                ka, bioavailability, self.volume_of_distribution(weight_kg))
            C = np.where(t > 0, C, 0.0)
            C = np.maximum(C * calibration_factor, 0.0)
        if C.ndim == 0:
            return float(C)
        return C

    def _exogenous(self, t, dose_mg, ke, ka, F, V):
        if ka <= ke:
            return bolus(t, dose_mg, ke, F, V)
        if not self.two_compartment:
            return bateman(t, dose_mg, ke, ka, F, V)

        alpha, beta = hybrid_constants(self.k12, self.k21, ke)
        if math.isclose(ka, alpha, rel_tol=1e-6) or math.isclose(ka, beta, rel_tol=1e-6):
            logger.debug("ka=%g coincides with a disposition rate; using one-compartment curve", ka)
            return bateman(t, dose_mg, ke, ka, F, V)
        C = first_order_absorption(t, dose_mg, ka, alpha, beta, self.k21, F, V)
        if not np.all(np.isfinite(C)):
            logger.debug("Two-compartment result not finite (ka=%g, ke=%g); using one-compartment curve", ka, ke)
            return bateman(t, dose_mg, ke, ka, F, V)
        return C

    def compound_concentration(self, elapsed_days, compound: Compound, dose_mg: float, route: str,
                               weight_kg: float = REFERENCE_WEIGHT_KG, calibration_factor: float = 1.0):
        """concentration() with half-life, F and ka taken from a library compound."""
        F, ka = route_constants(compound, route)
        return self.concentration(elapsed_days, dose_mg, compound.half_life_days, ka, F,
                                  weight_kg=weight_kg, calibration_factor=calibration_factor)

    def time_to_peak(self, dose_mg: float, half_life_days: float, ka: float,
                     bioavailability: float = 1.0, weight_kg: float = REFERENCE_WEIGHT_KG) -> float:
        """
        Days from administration to the maximum of a single dose.
        Closed form for one compartment; bracketed search otherwise.
        """
        if half_life_days <= 0 or ka <= 0:
            return 0.0
        ke = elimination_rate(half_life_days)
        if ka <= ke:
            return 0.0
        if not self.two_compartment:
            return peak_time(ke, ka)

        # coarse grid, then a bounded refinement around the best grid point
        search_end = 5.0 * max(half_life_days, LN2 / ka)
        grid = np.linspace(0.0, search_end, 251)
        C = self.concentration(grid, dose_mg, half_life_days, ka, bioavailability, weight_kg)
        i = int(np.argmax(C))
        step = grid[1] - grid[0]
        lo, hi = max(grid[i] - step, 0.0), grid[i] + step
        res = minimize_scalar(
            lambda x: -self.concentration(x, dose_mg, half_life_days, ka, bioavailability, weight_kg),
            bounds=(lo, hi), method="bounded",
        )
        return float(res.x)

    def terminal_half_life(self, half_life_days: float, ka: float) -> float:
        """Half-life of the slowest exponential in a single-dose curve (days)."""
        ke = elimination_rate(half_life_days)
        if ka <= ke:
            return half_life_days
        slowest = ke
        if self.two_compartment:
            slowest = hybrid_constants(self.k12, self.k21, ke)[1]
        return LN2 / slowest

    def max_concentration(self, dose_mg: float, half_life_days: float, ka: float,
                          bioavailability: float = 1.0, weight_kg: float = REFERENCE_WEIGHT_KG,
                          calibration_factor: float = 1.0) -> float:
        tp = self.time_to_peak(dose_mg, half_life_days, ka, bioavailability, weight_kg)
        if tp <= 0:
            # bolus: the supremum is the t -> 0+ limit
            tp = 1e-9
        return self.concentration(tp, dose_mg, half_life_days, ka, bioavailability,
                                  weight_kg=weight_kg, calibration_factor=calibration_factor)
