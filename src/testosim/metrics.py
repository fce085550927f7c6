# src/testosim/metrics.py
"""
Summary numbers for a concentration curve sampled on a day axis.

All functions take `t` in days (float array, increasing) and `C` in mg/L.
Curves on datetime grids are converted with `day_axis` first.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Sequence

import numpy as np

from .types import days_between


def day_axis(grid: Sequence[datetime]) -> np.ndarray:
    """Days since the first grid timestamp."""
    if len(grid) == 0:
        return np.zeros(0)
    return np.array([days_between(grid[0], g) for g in grid], dtype=float)


def cmax_tmax(t: np.ndarray, C: np.ndarray) -> tuple[float, float]:
    """Peak concentration (mg/L) and the day it occurs."""
    idx = int(np.argmax(C))
    return float(C[idx]), float(t[idx])


def auc_trapz(t: np.ndarray, C: np.ndarray) -> float:
    """Area under the curve by the trapezoidal rule (mg*day/L)."""
    return float(np.trapezoid(C, t))


def cavg(t: np.ndarray, C: np.ndarray) -> float:
    """Time-weighted average: AUC over the sampled span."""
    span = float(t[-1] - t[0])
    if span <= 0:
        return float(C[0])
    return auc_trapz(t, C) / span


def _last_interval(t: np.ndarray, interval_days: float | None) -> np.ndarray:
    # last full dosing interval [edge - interval, edge]; whole series when none fits
    if not interval_days or interval_days <= 0:
        return np.ones_like(t, dtype=bool)
    last_edge = t[0] + ((t[-1] - t[0]) // interval_days) * interval_days
    start = last_edge - interval_days
    if start < t[0]:
        return np.ones_like(t, dtype=bool)
    return (t >= start) & (t <= last_edge)


def ctrough(t: np.ndarray, C: np.ndarray, interval_days: float) -> float:
    """Level just before the last full interval's closing dose; nan when no interval closes."""
    n = int((t[-1] - t[0]) // interval_days)
    if n < 1:
        return float("nan")
    idx = int(np.argmin(np.abs(t - (t[0] + n * interval_days))))
    return float(C[idx])


def peak_to_trough_ratio(t: np.ndarray, C: np.ndarray, interval_days: float | None = None) -> float:
    """Cmax / Cmin over the last full interval (or the whole series); inf if Cmin <= 0."""
    Cw = C[_last_interval(t, interval_days)]
    lo = float(np.min(Cw))
    if lo <= 0:
        return float("inf")
    return float(np.max(Cw)) / lo


def fluctuation_index(t: np.ndarray, C: np.ndarray, interval_days: float | None = None) -> float:
    """(Cmax - Cmin) / Cavg over the last full interval (or the whole series)."""
    Cw = C[_last_interval(t, interval_days)]
    mean = float(np.mean(Cw))
    if mean == 0.0:
        return float("inf")
    return (float(np.max(Cw)) - float(np.min(Cw))) / mean


@dataclass(frozen=True)
class CurveSummary:
    peak: float
    peak_day: float
    auc: float
    average: float
    trough: float
    peak_to_trough: float
    fluctuation: float


def summarize(t: np.ndarray, C: np.ndarray, interval_days: float | None = None) -> CurveSummary:
    """Every metric above at once; trough and ratios use the dosing interval when given."""
    t = np.asarray(t, dtype=float)
    C = np.asarray(C, dtype=float)
    if t.size == 0:
        nan = float("nan")
        return CurveSummary(nan, nan, 0.0, nan, nan, nan, nan)
    peak, peak_day = cmax_tmax(t, C)
    trough = ctrough(t, C, interval_days) if interval_days and interval_days > 0 else float(np.min(C))
    return CurveSummary(
        peak=peak,
        peak_day=peak_day,
        auc=auc_trapz(t, C),
        average=cavg(t, C),
        trough=trough,
        peak_to_trough=peak_to_trough_ratio(t, C, interval_days),
        fluctuation=fluctuation_index(t, C, interval_days),
    )
