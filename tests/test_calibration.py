from datetime import datetime, timedelta

import numpy as np

from testosim.calibration import (
    CalibrationResult, InsufficientData, calibrate, calibrate_regimen, rescale_calibration_factor,
)
from testosim.concentration import LN2, PKModel, elimination_rate
from testosim.dosing import every_n_days
from testosim.library import default_library
from testosim.solvers import superpose_days
from testosim.types import BlendTarget, CompoundTarget, LabSample

START = datetime(2024, 1, 1)
LIB = default_library()
ENANTHATE = LIB.compound("testosterone-enanthate")
MODEL = PKModel(two_compartment=False)


def _weekly(n):
    return [START + timedelta(days=7 * i) for i in range(n)]


def _synthetic_samples(ke, ka, sample_days, dose_mg=250.0):
    """Noise-free lab values produced by the model itself with known constants."""
    dose_days = [7.0 * i for i in range(9)]
    values = superpose_days(np.array(sample_days, dtype=float), dose_days,
                            [(dose_mg, LN2 / ke, ka, 1.0)], MODEL)
    return [LabSample(START + timedelta(days=d), float(v), unit="mg/L") for d, v in zip(sample_days, values)]


def test_single_sample_is_insufficient():
    samples = [LabSample(START + timedelta(days=3), 12.0)]
    out = calibrate(samples, _weekly(2), ENANTHATE, 250, "intramuscular")
    assert isinstance(out, InsufficientData)
    assert out.sample_count == 1


def test_route_without_absorption_rate_is_insufficient():
    samples = [LabSample(START + timedelta(days=d), 10.0) for d in (2, 5)]
    out = calibrate(samples, _weekly(2), ENANTHATE, 250, "oral")
    assert isinstance(out, InsufficientData)


def test_samples_before_any_dose_are_insufficient():
    samples = [LabSample(START - timedelta(days=d), 10.0) for d in (2, 5)]
    out = calibrate(samples, _weekly(2), ENANTHATE, 250, "intramuscular")
    assert isinstance(out, InsufficientData)
    assert out.sample_count == 2


def test_recovers_known_constants():
    """
    Levels generated with ke and ka 20% above the literature values are fitted
    back to those constants.
    """
    ke0 = elimination_rate(ENANTHATE.half_life_days)
    ka0 = ENANTHATE.ka_per_day["intramuscular"]
    true_ke, true_ka = ke0 * 1.2, ka0 * 1.2
    days = [1, 2, 3, 5, 8, 10, 13, 16, 20, 24, 30, 36, 43, 50, 57]
    samples = _synthetic_samples(true_ke, true_ka, days)

    out = calibrate(samples, _weekly(9), ENANTHATE, 250, "intramuscular", model=MODEL)
    assert isinstance(out, CalibrationResult)
    assert out.converged
    assert np.isclose(out.adjusted_ke, true_ke, rtol=1e-2)
    assert np.isclose(out.adjusted_ka, true_ka, rtol=1e-2)
    assert np.isclose(out.original_ke, ke0) and np.isclose(out.original_ka, ka0)
    assert out.correlation > 0.999
    assert out.rmse < 0.05
    assert np.isclose(out.half_life_days, LN2 / out.adjusted_ke)
    assert np.isclose(out.half_life_change_percent, (1 / 1.2 - 1) * 100, atol=1.5)


def test_fit_stays_within_bounds():
    """Constants far outside the literature range are clamped at half/double."""
    ke0 = elimination_rate(ENANTHATE.half_life_days)
    ka0 = ENANTHATE.ka_per_day["intramuscular"]
    samples = _synthetic_samples(ke0 * 5.0, ka0 * 1.0, [2, 4, 6, 9, 12, 15, 20])
    out = calibrate(samples, _weekly(9), ENANTHATE, 250, "intramuscular", model=MODEL)
    assert isinstance(out, CalibrationResult)
    assert ke0 * 0.5 * (1 - 1e-9) <= out.adjusted_ke <= ke0 * 2.0 * (1 + 1e-9)
    assert ka0 * 0.5 * (1 - 1e-9) <= out.adjusted_ka <= ka0 * 2.0 * (1 + 1e-9)


def test_calibration_is_deterministic():
    ke0 = elimination_rate(ENANTHATE.half_life_days)
    samples = _synthetic_samples(ke0 * 0.9, 0.33, [3, 6, 10, 17, 24])
    a = calibrate(samples, _weekly(9), ENANTHATE, 250, "intramuscular", model=MODEL)
    b = calibrate(samples, _weekly(9), ENANTHATE, 250, "intramuscular", model=MODEL)
    assert a == b


def test_calibrate_regimen_uses_recorded_samples():
    ke0 = elimination_rate(ENANTHATE.half_life_days)
    samples = _synthetic_samples(ke0, 0.3, [2, 5, 9, 16, 23, 30])
    reg = every_n_days("te", START, 250, 7, CompoundTarget("testosterone-enanthate"), lab_samples=samples)
    out = calibrate_regimen(reg, LIB, model=MODEL)
    assert isinstance(out, CalibrationResult)
    assert np.isclose(out.adjusted_ke, ke0, rtol=1e-2)
    assert len(out.samples) == len(samples)

    blend = every_n_days("sust", START, 250, 7, BlendTarget("sustanon-250"), lab_samples=samples)
    assert isinstance(calibrate_regimen(blend, LIB), InsufficientData)


def test_rescale_calibration_factor():
    assert np.isclose(rescale_calibration_factor(1.0, 600.0, 400.0), 1.5)
    assert rescale_calibration_factor(1.0, 1000.0, 1.0) == 10.0
    assert rescale_calibration_factor(1.0, 1.0, 1000.0) == 0.1
    assert rescale_calibration_factor(1.3, 500.0, 0.0) == 1.3
    assert rescale_calibration_factor(1.3, 500.0, float("nan")) == 1.3
