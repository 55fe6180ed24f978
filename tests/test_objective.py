#!/usr/bin/env python3
"""
Tests for MultiModeObjective.

Covers:
1. Loss/gradient consistency and central-difference gradient checks
2. Mini-batch evaluation (batch residuals + full soft-integer penalty)
3. Constraint interface layout used by the augmented Lagrangian
4. Shuffling and parameter decoding
"""

import numpy as np
import pytest

from damping_analysis.fitting import (
    MultiModeObjective, ModeFamily, decimal_part, soft_integer_penalty, evaluate_modes,
)
from damping_analysis.utils.errors import InvalidInputError, NumericDegenerateError


FAMILIES = list(ModeFamily)


# =============================================================================
# Helpers and fixtures
# =============================================================================

def numerical_objective_gradient(fun, x, h=1e-6):
    """Central-difference gradient of a scalar function."""
    grad = np.zeros_like(x)
    for j in range(len(x)):
        x_fwd, x_bwd = x.copy(), x.copy()
        x_fwd[j] += h
        x_bwd[j] -= h
        grad[j] = (fun(x_fwd) - fun(x_bwd)) / (2 * h)
    return grad


def assert_vector_close(analytic, numeric, tol=1e-5):
    scale = max(np.max(np.abs(numeric)), 1e-12)
    rel_err = np.max(np.abs(analytic - numeric)) / scale
    assert rel_err < tol, f"Gradient mismatch: relative error {rel_err:.2e}"


@pytest.fixture
def two_peak_samples():
    """Two ZeroDay peaks sampled at 40 log-spaced points."""
    omega = np.logspace(-1, 3, 40)
    zeta, _ = evaluate_modes('zero_day', [[1.0, 0.04], [100.0, 0.02]], omega)
    return np.vstack([omega, zeta])


def random_raw(objective, seed=3):
    return np.random.default_rng(seed).normal(0.0, 1.5, objective.size)


# =============================================================================
# Loss and gradient
# =============================================================================

@pytest.mark.parametrize("family", FAMILIES, ids=[f.value for f in FAMILIES])
def test_evaluate_matches_evaluate_with_gradient(family, two_peak_samples):
    obj = MultiModeObjective(family, 2, two_peak_samples, weight=1e-2)
    x = random_raw(obj)
    loss, grad = obj.evaluate_with_gradient(x)
    assert obj.evaluate(x) == pytest.approx(loss, rel=1e-12)
    np.testing.assert_allclose(obj.gradient(x), grad, rtol=1e-12)
    assert grad.shape == (obj.size,)


@pytest.mark.parametrize("family", ['unicorn', 'two_cities'])
def test_evaluate_matches_evaluate_with_gradient_without_penalty(family, two_peak_samples):
    obj = MultiModeObjective(family, 2, two_peak_samples, weight=0.0)
    x = random_raw(obj)
    loss, grad = obj.evaluate_with_gradient(x)
    assert obj.evaluate(x) == pytest.approx(loss, rel=1e-12)
    np.testing.assert_allclose(obj.gradient(x), grad, rtol=1e-12)

    residual = np.sum((obj.response_cache.sum(axis=0) - obj.dataset.zeta) ** 2)
    assert loss == pytest.approx(residual, rel=1e-12)


@pytest.mark.parametrize("family", FAMILIES, ids=[f.value for f in FAMILIES])
def test_gradient_matches_finite_difference(family, two_peak_samples):
    obj = MultiModeObjective(family, 2, two_peak_samples, weight=1e-2)
    for seed in range(5):
        x = random_raw(obj, seed)
        analytic = obj.gradient(x)
        numeric = numerical_objective_gradient(obj.evaluate, x)
        assert_vector_close(analytic, numeric)


def test_loss_is_residual_sum_plus_penalty(two_peak_samples):
    obj = MultiModeObjective('unicorn', 2, two_peak_samples, weight=0.5)
    x = random_raw(obj)
    total, _ = evaluate_modes('unicorn', obj.decode(x), obj.dataset.omega)
    residual = np.sum((total - obj.dataset.zeta) ** 2)
    assert obj.evaluate(x) == pytest.approx(residual + obj.penalty(x), rel=1e-12)


def test_response_cache_holds_mode_responses(two_peak_samples):
    obj = MultiModeObjective('zero_day', 2, two_peak_samples)
    x = random_raw(obj)
    obj.evaluate(x)
    _, per_mode = evaluate_modes('zero_day', obj.decode(x), obj.dataset.omega)
    np.testing.assert_allclose(obj.response_cache, per_mode, rtol=1e-12)


def test_penalty_zero_for_integer_orders(two_peak_samples):
    """sigmoid(0) = 1/2, so max_order = 4 puts every order at exactly 2."""
    obj = MultiModeObjective('two_cities', 2, two_peak_samples, weight=1.0, max_order=4.0)
    x = random_raw(obj)
    x[[2, 3, 6, 7]] = 0.0
    np.testing.assert_array_equal(obj.decode(x)[:, 2:], 2.0)
    assert obj.penalty(x) == 0.0
    assert soft_integer_penalty([0.0, 1.0, 2.0, 3.0], 1.0) == 0.0


def test_penalty_zero_for_families_without_orders(two_peak_samples):
    for family in ('zero_day', 'three_wise_men'):
        obj = MultiModeObjective(family, 2, two_peak_samples, weight=10.0)
        assert obj.penalty(random_raw(obj)) == 0.0


def test_decimal_part_is_signed():
    np.testing.assert_allclose(decimal_part([0.2, 0.8, 2.4, 3.6]), [0.2, -0.2, 0.4, -0.4])
    assert soft_integer_penalty([0.25, 1.75], 2.0) == pytest.approx(2.0 * (0.0625 + 0.0625))


def test_non_finite_point_raises(two_peak_samples):
    obj = MultiModeObjective('zero_day', 1, two_peak_samples)
    with pytest.raises(NumericDegenerateError):
        obj.evaluate(np.array([np.nan, 0.0]))


# =============================================================================
# Mini-batches
# =============================================================================

def test_batch_loss_is_batch_residual_plus_full_penalty(two_peak_samples):
    obj = MultiModeObjective('two_cities', 2, two_peak_samples, weight=0.1)
    x = random_raw(obj)
    total, _ = evaluate_modes('two_cities', obj.decode(x), obj.dataset.omega[2:5])
    residual = np.sum((total - obj.dataset.zeta[2:5]) ** 2)
    assert obj.evaluate(x, 2, 3) == pytest.approx(residual + obj.penalty(x), rel=1e-12)


def test_batches_partition_the_residual(two_peak_samples):
    obj = MultiModeObjective('unicorn', 2, two_peak_samples, weight=0.1)
    x = random_raw(obj)
    penalty = obj.penalty(x)
    n = obj.num_functions()
    parts = [obj.evaluate(x, b, min(16, n - b)) - penalty for b in range(0, n, 16)]
    assert sum(parts) == pytest.approx(obj.evaluate(x) - penalty, rel=1e-10)


def test_batch_gradient_matches_finite_difference(two_peak_samples):
    obj = MultiModeObjective('two_cities', 2, two_peak_samples, weight=1e-2)
    x = random_raw(obj, 11)
    analytic = obj.gradient(x, 10, 8)
    numeric = numerical_objective_gradient(lambda z: obj.evaluate(z, 10, 8), x)
    assert_vector_close(analytic, numeric)


@pytest.mark.parametrize("begin,size", [(-1, 3), (38, 3), (0, 0), (0, None), (None, 4)])
def test_invalid_batch_rejected(two_peak_samples, begin, size):
    obj = MultiModeObjective('zero_day', 1, two_peak_samples)
    with pytest.raises(InvalidInputError):
        obj.evaluate(np.zeros(2), begin, size)


# =============================================================================
# Constraint interface
# =============================================================================

@pytest.mark.parametrize("family,expected", [
    ('zero_day', 0), ('unicorn', 3), ('two_cities', 6), ('three_wise_men', 0),
])
def test_num_constraints(two_peak_samples, family, expected):
    obj = MultiModeObjective(family, 3, two_peak_samples)
    assert obj.num_constraints() == expected


def test_constraint_layout_two_cities(two_peak_samples):
    """Constraint k belongs to mode k // 2, order slot 2 + k % 2."""
    obj = MultiModeObjective('two_cities', 2, two_peak_samples, weight=0.3)
    x = random_raw(obj)
    table = obj.decode(x)

    for k in range(obj.num_constraints()):
        mode, slot = k // 2, 2 + k % 2
        d = table[mode, slot] - np.round(table[mode, slot])
        assert obj.evaluate_constraint(k, x) == pytest.approx(0.3 * d * d, rel=1e-12)

        g = obj.gradient_constraint(k, x)
        index = obj.num_para * mode + slot
        assert np.count_nonzero(np.delete(g, index)) == 0, f"Constraint {k} leaks into other slots"

        numeric = numerical_objective_gradient(lambda z: obj.evaluate_constraint(k, z), x)
        assert g[index] == pytest.approx(numeric[index], rel=1e-5)


def test_constraints_sum_to_penalty(two_peak_samples):
    obj = MultiModeObjective('unicorn', 3, two_peak_samples, weight=0.7)
    x = random_raw(obj)
    total = sum(obj.evaluate_constraint(k, x) for k in range(obj.num_constraints()))
    assert total == pytest.approx(obj.penalty(x), rel=1e-12)


def test_constraint_index_out_of_range(two_peak_samples):
    obj = MultiModeObjective('unicorn', 2, two_peak_samples)
    with pytest.raises(InvalidInputError):
        obj.evaluate_constraint(2, np.zeros(obj.size))


# =============================================================================
# Layout, decoding and shuffling
# =============================================================================

@pytest.mark.parametrize("family", FAMILIES, ids=[f.value for f in FAMILIES])
def test_decode_shape(family, two_peak_samples):
    obj = MultiModeObjective(family, 3, two_peak_samples)
    table = obj.decode(random_raw(obj))
    assert table.shape == (3, obj.num_para)
    assert np.all(table[:, 0] > 0)
    assert np.all(table[:, 1] > 0)


def test_zero_modes_rejected(two_peak_samples):
    with pytest.raises(InvalidInputError):
        MultiModeObjective('zero_day', 0, two_peak_samples)


def test_wrong_vector_length_rejected(two_peak_samples):
    obj = MultiModeObjective('unicorn', 2, two_peak_samples)
    with pytest.raises(InvalidInputError):
        obj.evaluate(np.zeros(5))


def test_shuffle_keeps_dataset_and_full_loss(two_peak_samples):
    obj = MultiModeObjective('unicorn', 2, two_peak_samples, weight=0.1)
    x = random_raw(obj)
    omega_before = obj.dataset.omega
    loss_before = obj.evaluate(x)

    obj.shuffle(np.random.default_rng(5))

    np.testing.assert_array_equal(obj.dataset.omega, omega_before)
    np.testing.assert_array_equal(np.sort(obj.permutation), np.arange(obj.num_functions()))
    assert obj.evaluate(x) == pytest.approx(loss_before, rel=1e-12)


def test_shuffled_batch_uses_permuted_samples(two_peak_samples):
    obj = MultiModeObjective('zero_day', 2, two_peak_samples)
    x = random_raw(obj)
    obj.shuffle(np.random.default_rng(8))

    perm = obj.permutation[:5]
    total, _ = evaluate_modes('zero_day', obj.decode(x), obj.dataset.omega[perm])
    expected = np.sum((total - obj.dataset.zeta[perm]) ** 2)
    assert obj.evaluate(x, 0, 5) == pytest.approx(expected, rel=1e-12)


def test_shuffled_cache_follows_samples(two_peak_samples):
    obj = MultiModeObjective('zero_day', 2, two_peak_samples)
    x = random_raw(obj)
    obj.evaluate(x)
    cache_before = obj.response_cache.copy()

    obj.shuffle(np.random.default_rng(9))
    np.testing.assert_array_equal(obj.response_cache, cache_before[:, obj.permutation])
