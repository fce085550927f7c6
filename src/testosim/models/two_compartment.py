# src/testosim/models/two_compartment.py
import math

import numpy as np


def hybrid_constants(k12: float, k21: float, ke: float) -> tuple[float, float]:
    """
    Disposition rate constants (alpha > beta) of the central/peripheral system.

      beta  = 1/2 * [(k12+k21+ke) - sqrt((k12+k21+ke)^2 - 4*k21*ke)]
      alpha = k21*ke / beta

    The discriminant is >= (k21-ke)^2, so it never goes negative.
    """
    s = k12 + k21 + ke
    beta = 0.5 * (s - math.sqrt(s * s - 4.0 * k21 * ke))
    alpha = k21 * ke / beta
    return alpha, beta


def first_order_absorption(t, dose_mg, ka, alpha, beta, k21, F, V):
    """
    Central-compartment concentration after a depot dose:

      C(t) = F*D*ka/V * [ A exp(-alpha t) + B exp(-beta t) + C exp(-ka t) ]

    with partial-fraction weights over the rates {alpha, beta, ka}
      A = (k21-alpha) / ((ka-alpha)(beta-alpha))
      B = (k21-beta)  / ((ka-beta)(alpha-beta))
      C = (k21-ka)    / ((alpha-ka)(beta-ka))
    which sum to zero, so C(0) = 0.
    """
    t = np.asarray(t, dtype=float)
    a = (k21 - alpha) / ((ka - alpha) * (beta - alpha))
    b = (k21 - beta) / ((ka - beta) * (alpha - beta))
    c = (k21 - ka) / ((alpha - ka) * (beta - ka))
    return (F * dose_mg * ka / V) * (
        a * np.exp(-alpha * t) + b * np.exp(-beta * t) + c * np.exp(-ka * t)
    )


def two_compartment_first_order(t, y, ka, ke, k12, k21):
    """
    ODE form used by the numerical reference solver.
      y[0] = depot amount (mg)
      y[1] = central amount (mg)
      y[2] = peripheral amount (mg)
    """
    A_depot, A_c, A_p = y
    dA_depot_dt = -ka * A_depot
    dA_c_dt = ka * A_depot - (ke + k12) * A_c + k21 * A_p
    dA_p_dt = k12 * A_c - k21 * A_p
    return [dA_depot_dt, dA_c_dt, dA_p_dt]
