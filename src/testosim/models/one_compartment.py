# src/testosim/models/one_compartment.py
import numpy as np


def bolus(t, dose_mg, ke, F, V):
    """
    Instantaneous absorption, first-order elimination:
      C(t) = F*D/V * exp(-ke t)

    t      : time since administration (days), scalar or array
    ke     : elimination rate constant (1/day)
    F      : bioavailable fraction
    V      : volume of distribution (L)
    """
    return (F * dose_mg / V) * np.exp(-ke * np.asarray(t, dtype=float))


def bateman(t, dose_mg, ke, ka, F, V):
    """
    First-order absorption and elimination (Bateman function):
      C(t) = F*D*ka / (V*(ka-ke)) * (exp(-ke t) - exp(-ka t))

    Only meaningful for ka != ke; callers route ka <= ke to bolus().
    """
    t = np.asarray(t, dtype=float)
    return (F * dose_mg * ka) / (V * (ka - ke)) * (np.exp(-ke * t) - np.exp(-ka * t))


def peak_time(ke: float, ka: float) -> float:
    """Time of the Bateman maximum, ln(ka/ke)/(ka-ke); 0 when there is no absorption phase."""
    if ka <= ke or ke <= 0:
        return 0.0
    return float(np.log(ka / ke) / (ka - ke))


def one_compartment_first_order(t, y, ka, ke):
    """
    ODE form of the same model, used by the numerical reference solver.
      y[0] = drug in the injection depot (mg)
      y[1] = drug in the central compartment (mg)
    """
    A_depot, A_c = y
    dA_depot_dt = -ka * A_depot
    dA_c_dt = ka * A_depot - ke * A_c
    return [dA_depot_dt, dA_c_dt]
