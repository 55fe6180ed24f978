"""
TwoCities mode: asymmetric peak with independent flank orders.

    zeta(w) = z * (1 + r) * w_r^a / (1 + r * w_r^b)

    a = 2 n_l + 1,  b = 2 (1 + n_r + n_l),  r = a / (2 n_r + 1)

Parameters [w_c, z, n_r, n_l]. The left flank rises as w^(2 n_l + 1),
the right flank falls as w^-(2 n_r + 1); both orders are soft-integer.
At w = w_c the response equals z.

The ratio is evaluated in log space,

    ln F = ln(1 + r) + a L - ln(1 + exp(u)),   u = ln r + b L,

so large w_r cannot overflow. With s = sigmoid(u):

Derivatives
-----------
dzeta/dw_c = -zeta * (a - b s) / w_c
dzeta/dz   = F
dzeta/dn_r = zeta * [-2 r / ((2 n_r + 1)(1 + r)) - s (-2 / (2 n_r + 1) + 2 L)]
dzeta/dn_l = zeta * [2 / ((2 n_r + 1)(1 + r)) + 2 L - s (2 / a + 2 L)]
"""

import numpy as np
from numpy.typing import NDArray

from .base import (
    ModeFamily, ModeFamilySpec, ReparamBounds,
    constrain_common, constrain_common_jacobian,
    sigmoid, sigmoid_derivative,
)

NUM_PARA = 4
PARAM_LABELS = ('corner', 'peak', 'n_r', 'n_l')


def _terms(omega, p):
    L = np.log(np.atleast_1d(np.asarray(omega, dtype=float)) / p[0])
    a = 2.0 * p[3] + 1.0
    rb = 2.0 * p[2] + 1.0
    b = 2.0 * (1.0 + p[2] + p[3])
    r = a / rb
    u = np.log(r) + b * L
    log_shape = np.log1p(r) + a * L - np.logaddexp(0.0, u)
    return L, a, b, rb, r, u, np.exp(log_shape)


def response(omega: NDArray[np.float64], p: NDArray[np.float64]) -> NDArray[np.float64]:
    return p[1] * _terms(omega, p)[-1]


def gradient(omega: NDArray[np.float64], p: NDArray[np.float64]) -> NDArray[np.float64]:
    """Return [zeta, dzeta/dw_c, dzeta/dz, dzeta/dn_r, dzeta/dn_l], shape (5, N)."""
    L, a, b, rb, r, u, shape = _terms(omega, p)
    s = sigmoid(u)
    zeta = p[1] * shape

    grad = np.empty((NUM_PARA + 1, L.size))
    grad[0] = zeta
    grad[1] = -zeta * (a - b * s) / p[0]
    grad[2] = shape
    grad[3] = zeta * (-2.0 * r / (rb * (1.0 + r)) - s * (-2.0 / rb + 2.0 * L))
    grad[4] = zeta * (2.0 / (rb * (1.0 + r)) + 2.0 * L - s * (2.0 / a + 2.0 * L))
    return grad


def constrain(raw: NDArray[np.float64], bounds: ReparamBounds) -> NDArray[np.float64]:
    corner, peak = constrain_common(raw, bounds)
    return np.array([
        corner,
        peak,
        bounds.max_order * sigmoid(raw[2]),
        bounds.max_order * sigmoid(raw[3]),
    ])


def constrain_jacobian(raw: NDArray[np.float64], bounds: ReparamBounds) -> NDArray[np.float64]:
    d_corner, d_peak = constrain_common_jacobian(raw, bounds)
    return np.array([
        d_corner,
        d_peak,
        bounds.max_order * sigmoid_derivative(raw[2]),
        bounds.max_order * sigmoid_derivative(raw[3]),
    ])


SPEC = ModeFamilySpec(
    family=ModeFamily.TWO_CITIES,
    num_para=NUM_PARA,
    param_labels=PARAM_LABELS,
    order_slots=(2, 3),
    response=response,
    gradient=gradient,
    constrain=constrain,
    constrain_jacobian=constrain_jacobian,
)

__all__ = ['response', 'gradient', 'constrain', 'constrain_jacobian', 'SPEC']
