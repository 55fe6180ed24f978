#!/usr/bin/env python3
"""Systematic tests: analytic mode gradients vs numerical central differences.

Three levels:
1. Response identities (known special cases of each family)
2. Per-family partial derivatives at random (omega, p) pairs
3. Reparameterization Jacobians and bounds
"""

import numpy as np
import pytest
from damping_analysis.fitting.modes import (
    ModeFamily, ReparamBounds, FAMILY_REGISTRY, get_family_spec,
)
from damping_analysis.fitting.modes import zero_day, unicorn, two_cities, three_wise_men


# ---------------------------------------------------------------------------
# Helper
# ---------------------------------------------------------------------------

def numerical_gradient(spec, omega, p, eps=1e-6):
    """Central-difference d zeta / d p, shape (num_para, N).

    Uses relative step sizing: h = eps * max(|p_j|, 1).
    """
    p = np.asarray(p, dtype=float)
    grad = np.zeros((len(p), len(omega)))
    for j in range(len(p)):
        h = eps * max(abs(p[j]), 1.0)
        p_fwd, p_bwd = p.copy(), p.copy()
        p_fwd[j] += h
        p_bwd[j] -= h
        grad[j] = (spec.response(omega, p_fwd) - spec.response(omega, p_bwd)) / (2 * h)
    return grad


def assert_gradient_close(spec, omega, p, rtol=1e-6):
    """Assert analytic partials match numerical ones element by element.

    The absolute floor is tied to each row's scale so that partials
    crossing zero are compared against rounding noise only.
    """
    analytic = spec.gradient(omega, p)
    numeric = numerical_gradient(spec, omega, p)

    np.testing.assert_allclose(analytic[0], spec.response(omega, p), rtol=1e-12, atol=0)

    for j in range(numeric.shape[0]):
        scale = np.max(np.abs(numeric[j]))
        np.testing.assert_allclose(
            analytic[j + 1], numeric[j], rtol=rtol, atol=1e-8 * scale + 1e-300,
            err_msg=f"{spec.family.value} row {j} at p={p}",
        )


def random_parameters(family, rng):
    corner = 10 ** rng.uniform(-1, 3)
    peak = rng.uniform(0.005, 0.2)
    if family is ModeFamily.ZERO_DAY:
        return np.array([corner, peak])
    if family is ModeFamily.UNICORN:
        return np.array([corner, peak, rng.uniform(0.05, 4.9)])
    if family is ModeFamily.TWO_CITIES:
        return np.array([corner, peak, rng.uniform(0.05, 4.9), rng.uniform(0.05, 4.9)])
    return np.array([corner, peak, rng.uniform(-0.9, 5.0)])


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def omega():
    """60 points from 1e-3 to 1e5 rad/s (log-spaced)."""
    return np.logspace(-3, 5, 60)


@pytest.fixture
def bounds():
    return ReparamBounds(min_omega=-1.1, range_omega=4.2, max_zeta=0.08, max_order=5.0)


FAMILIES = list(ModeFamily)


# ---------------------------------------------------------------------------
# Level 1: Response identities
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("family", FAMILIES, ids=[f.value for f in FAMILIES])
def test_peak_value_at_corner(family):
    """Every family reaches the peak ratio exactly at the corner frequency."""
    rng = np.random.default_rng(1)
    spec = get_family_spec(family)
    for _ in range(10):
        p = random_parameters(family, rng)
        assert spec.response(np.array([p[0]]), p)[0] == pytest.approx(p[1], rel=1e-12)


def test_unicorn_order_zero_is_zero_day(omega):
    z = zero_day.response(omega, np.array([10.0, 0.05]))
    u = unicorn.response(omega, np.array([10.0, 0.05, 0.0]))
    np.testing.assert_allclose(u, z, rtol=1e-12)


def test_three_wise_men_gamma_one_is_zero_day(omega):
    z = zero_day.response(omega, np.array([10.0, 0.05]))
    t = three_wise_men.response(omega, np.array([10.0, 0.05, 1.0]))
    np.testing.assert_allclose(t, z, rtol=1e-12)


def test_two_cities_equal_zero_orders_is_zero_day(omega):
    z = zero_day.response(omega, np.array([10.0, 0.05]))
    t = two_cities.response(omega, np.array([10.0, 0.05, 0.0, 0.0]))
    np.testing.assert_allclose(t, z, rtol=1e-12)


def test_two_cities_flank_slopes():
    """Left flank rises as w^(2 n_l + 1), right flank falls as w^-(2 n_r + 1)."""
    p = np.array([1.0, 0.1, 2.0, 1.0])
    low = two_cities.response(np.array([1e-4, 1e-3]), p)
    high = two_cities.response(np.array([1e4, 1e5]), p)
    assert np.log10(low[1] / low[0]) == pytest.approx(3.0, abs=1e-3)
    assert np.log10(high[1] / high[0]) == pytest.approx(-5.0, abs=1e-3)


def test_two_cities_no_overflow_far_from_corner():
    p = np.array([1.0, 0.1, 4.9, 4.9])
    zeta = two_cities.response(np.array([1e-30, 1e30]), p)
    assert np.all(np.isfinite(zeta))
    assert np.all(zeta >= 0)


def test_unicorn_no_overflow_far_from_corner():
    p = np.array([1.0, 0.1, 4.9])
    g = unicorn.gradient(np.array([1e-200, 1e200]), p)
    assert np.all(np.isfinite(g))


# ---------------------------------------------------------------------------
# Level 2: Partial derivatives
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("family", FAMILIES, ids=[f.value for f in FAMILIES])
def test_gradient_matches_finite_difference(family, omega):
    """20 random parameter vectors per family, omega_r over several decades."""
    rng = np.random.default_rng(2024)
    spec = get_family_spec(family)
    for _ in range(20):
        assert_gradient_close(spec, omega, random_parameters(family, rng))


@pytest.mark.parametrize("family", FAMILIES, ids=[f.value for f in FAMILIES])
def test_gradient_finite_at_corner(family):
    """omega_r = 1 is a regular point of every formula."""
    rng = np.random.default_rng(7)
    spec = get_family_spec(family)
    p = random_parameters(family, rng)
    g = spec.gradient(np.array([p[0]]), p)
    assert g.shape == (spec.num_para + 1, 1)
    assert np.all(np.isfinite(g))


@pytest.mark.parametrize("family", FAMILIES, ids=[f.value for f in FAMILIES])
def test_gradient_shape(family, omega):
    spec = get_family_spec(family)
    p = random_parameters(family, np.random.default_rng(0))
    assert spec.gradient(omega, p).shape == (spec.num_para + 1, len(omega))


def test_three_wise_men_gradient_near_lower_gamma_bound(omega):
    spec = get_family_spec('three_wise_men')
    assert_gradient_close(spec, omega, np.array([10.0, 0.05, -0.97]))


# ---------------------------------------------------------------------------
# Level 3: Reparameterization
# ---------------------------------------------------------------------------

def numerical_constrain_jacobian(spec, raw, bounds, h=1e-4):
    jac = np.zeros(len(raw))
    for j in range(len(raw)):
        r_fwd, r_bwd = raw.copy(), raw.copy()
        r_fwd[j] += h
        r_bwd[j] -= h
        jac[j] = (spec.constrain(r_fwd, bounds)[j] - spec.constrain(r_bwd, bounds)[j]) / (2 * h)
    return jac


@pytest.mark.parametrize("family", FAMILIES, ids=[f.value for f in FAMILIES])
def test_constrain_jacobian_matches_finite_difference(family, bounds):
    spec = get_family_spec(family)
    for value in np.linspace(-10, 10, 41):
        raw = np.full(spec.num_para, value)
        analytic = spec.constrain_jacobian(raw, bounds)
        numeric = numerical_constrain_jacobian(spec, raw, bounds)
        np.testing.assert_allclose(analytic, numeric, rtol=1e-6, atol=1e-14)


@pytest.mark.parametrize("family", FAMILIES, ids=[f.value for f in FAMILIES])
def test_constrain_respects_bounds(family, bounds):
    spec = get_family_spec(family)
    lo_corner = 10 ** bounds.min_omega
    hi_corner = 10 ** (bounds.min_omega + bounds.range_omega)
    for value in np.linspace(-50, 50, 201):
        p = spec.constrain(np.full(spec.num_para, value), bounds)
        assert lo_corner * (1 - 1e-12) <= p[0] <= hi_corner * (1 + 1e-12)
        assert 0.0 <= p[1] <= bounds.max_zeta
        for slot in spec.order_slots:
            assert 0.0 <= p[slot] <= bounds.max_order
        if family is ModeFamily.THREE_WISE_MEN:
            assert p[2] >= -0.98


def test_constrain_centre_values(bounds):
    """raw = 0 maps to the middle of every sigmoid range."""
    p = two_cities.constrain(np.zeros(4), bounds)
    assert np.log10(p[0]) == pytest.approx(bounds.min_omega + 0.5 * bounds.range_omega)
    assert p[1] == pytest.approx(0.5 * bounds.max_zeta)
    assert p[2] == p[3] == pytest.approx(0.5 * bounds.max_order)


def test_registry_is_complete():
    assert set(FAMILY_REGISTRY) == set(ModeFamily)
    assert [get_family_spec(f).num_para for f in FAMILIES] == [2, 3, 4, 3]


@pytest.mark.parametrize("name,expected", [
    ("Zero Day", ModeFamily.ZERO_DAY),
    ("zero_day", ModeFamily.ZERO_DAY),
    ("Unicorn", ModeFamily.UNICORN),
    ("TwoCities", ModeFamily.TWO_CITIES),
    ("Three Wise Men", ModeFamily.THREE_WISE_MEN),
    ("THREE_WISE_MEN", ModeFamily.THREE_WISE_MEN),
])
def test_family_from_name(name, expected):
    assert ModeFamily.from_name(name) is expected


def test_family_from_unknown_name():
    from damping_analysis.utils.errors import InvalidInputError
    with pytest.raises(InvalidInputError):
        ModeFamily.from_name("Four Horsemen")
