import math
import numpy as np

from testosim.concentration import LN2, PKModel, elimination_rate
from testosim.models.one_compartment import peak_time
from testosim.models.two_compartment import first_order_absorption, hybrid_constants
from testosim.solvers import simulate_ode, superpose_days

ONE = PKModel(two_compartment=False)
TWO = PKModel(two_compartment=True)


def test_no_concentration_before_administration():
    """Elapsed time <= 0 gives exactly 0, for scalars and arrays, in both models."""
    for model in (ONE, TWO):
        assert model.concentration(0.0, 250, 4.5, 0.3, 1.0) == 0.0
        assert model.concentration(-3.0, 250, 4.5, 0.3, 1.0) == 0.0
        C = model.concentration(np.array([-2.0, -0.5, 0.0]), 250, 4.5, 0.3, 1.0)
        assert np.all(C == 0.0)


def test_invalid_half_life_or_weight_gives_zero():
    assert ONE.concentration(2.0, 250, 0.0, 0.3, 1.0) == 0.0
    assert ONE.concentration(2.0, 250, -1.0, 0.3, 1.0) == 0.0
    assert TWO.concentration(2.0, 250, 4.5, 0.3, 1.0, weight_kg=0.0) == 0.0


def test_bateman_rise_peak_decay():
    """
    One-compartment single dose rises, peaks at ln(ka/ke)/(ka-ke) and decays.
    """
    t_half, ka = 4.5, 0.3
    ke = elimination_rate(t_half)
    t = np.linspace(0.0, 40.0, 40001)
    C = ONE.concentration(t, 250, t_half, ka, 1.0)

    i = int(np.argmax(C))
    tp = math.log(ka / ke) / (ka - ke)
    assert np.isclose(t[i], tp, atol=2e-3)
    assert np.all(np.diff(C[1:i]) > 0)
    assert np.all(np.diff(C[i + 1:]) < 0)
    assert np.isclose(ONE.time_to_peak(250, t_half, ka), tp)
    assert np.isclose(peak_time(ke, ka), tp)


def test_bolus_when_absorption_not_faster_than_elimination():
    """ka <= ke means C = F*D/V * exp(-ke t)."""
    t_half, ka, F, D = 1.0, 0.5, 0.8, 100.0
    ke = LN2 / t_half
    t = np.array([0.5, 1.0, 3.0])
    expected = F * D / 15.0 * np.exp(-ke * t)
    for model in (ONE, TWO):
        assert np.allclose(model.concentration(t, D, t_half, ka, F), expected)
        assert model.time_to_peak(D, t_half, ka, F) == 0.0
        assert np.isclose(model.max_concentration(D, t_half, ka, F), F * D / 15.0)


def test_bateman_limit_as_ka_approaches_ke():
    """
    As ka -> ke+ the Bateman curve tends to F*D*ke*t/V * exp(-ke t); at
    t = 1/ke that limit coincides with the bolus curve.
    """
    t_half, D, F, V = 4.5, 250.0, 1.0, 15.0
    ke = elimination_rate(t_half)
    t = np.array([0.5, 2.0, 1.0 / ke, 10.0, 30.0])
    limit = F * D * ke * t / V * np.exp(-ke * t)

    C = ONE.concentration(t, D, t_half, ke * (1.0 + 1e-6), F)
    assert np.allclose(C, limit, rtol=1e-4)

    at_inverse_ke = ONE.concentration(1.0 / ke, D, t_half, ke * (1.0 + 1e-6), F)
    bolus_value = ONE.concentration(1.0 / ke, D, t_half, ke, F)
    assert np.isclose(at_inverse_ke, bolus_value, rtol=1e-4)


def test_volume_scales_with_weight_and_calibration_is_last():
    base = TWO.concentration(5.0, 250, 4.5, 0.3, 1.0, weight_kg=70)
    heavy = TWO.concentration(5.0, 250, 4.5, 0.3, 1.0, weight_kg=140)
    scaled = TWO.concentration(5.0, 250, 4.5, 0.3, 1.0, weight_kg=70, calibration_factor=1.7)
    assert np.isclose(heavy, base / 2.0)
    assert np.isclose(scaled, base * 1.7)
    assert np.isclose(TWO.volume_of_distribution(91.0), 15.0 * 91.0 / 70.0)


def test_hybrid_constants_relations():
    """alpha + beta = k12 + k21 + ke and alpha * beta = k21 * ke."""
    ke = elimination_rate(7.0)
    alpha, beta = hybrid_constants(0.3, 0.15, ke)
    assert alpha > beta > 0
    assert np.isclose(alpha + beta, 0.3 + 0.15 + ke)
    assert np.isclose(alpha * beta, 0.15 * ke)


def test_two_compartment_starts_at_zero_and_stays_positive():
    ke = elimination_rate(4.5)
    alpha, beta = hybrid_constants(0.3, 0.15, ke)
    assert abs(float(first_order_absorption(0.0, 250, 0.3, alpha, beta, 0.15, 1.0, 15.0))) < 1e-12

    t = np.linspace(0.01, 60.0, 600)
    C = TWO.concentration(t, 250, 4.5, 0.3, 1.0)
    assert np.all(C > 0)
    # peak is found numerically and lies at the curve maximum
    tp = TWO.time_to_peak(250, 4.5, 0.3)
    fine = np.linspace(0.0, 30.0, 30001)
    assert np.isclose(tp, fine[int(np.argmax(TWO.concentration(fine, 250, 4.5, 0.3, 1.0)))], atol=2e-3)


def test_two_compartment_matches_ode_single_dose():
    """
    The analytic tri-exponential curve agrees with direct integration of
    depot -> central <-> peripheral.
    """
    t, C_ode = simulate_ode(TWO, 4.5, 0.3, 1.0, doses=[(0.0, 250.0)], t_end_days=42.0, dt_days=0.25)
    C_analytic = TWO.concentration(t, 250, 4.5, 0.3, 1.0)
    assert np.isclose(t[0], 0.0) and np.isclose(t[-1], 42.0)
    assert np.allclose(C_ode, C_analytic, rtol=1e-5, atol=1e-7)


def test_repeated_doses_match_ode_in_both_models():
    """Superposition of weekly doses equals the piecewise-integrated ODE."""
    doses = [(0.0, 250.0), (7.0, 250.0), (14.0, 250.0), (21.0, 250.0)]
    for model in (ONE, TWO):
        t, C_ode = simulate_ode(model, 7.0, 0.25, 0.9, doses=doses, t_end_days=35.0, dt_days=0.5)
        C_sup = superpose_days(t, [d for d, _ in doses], [(250.0, 7.0, 0.25, 0.9)], model)
        assert np.allclose(C_ode, C_sup, rtol=1e-5, atol=1e-7)


def test_terminal_half_life():
    """Slowest exponential of the single-dose curve in each model."""
    assert np.isclose(ONE.terminal_half_life(4.5, 0.3), 4.5)
    assert np.isclose(ONE.terminal_half_life(1.0, 0.5), 1.0)  # bolus branch
    _, beta = hybrid_constants(0.3, 0.15, elimination_rate(4.5))
    assert np.isclose(TWO.terminal_half_life(4.5, 0.3), LN2 / beta)
    assert TWO.terminal_half_life(4.5, 0.3) > 4.5
