"""
Unicorn mode: symmetric peak with adjustable sharpness.

    zeta(w) = z * cosh(L)^(-2n-1),    L = ln(w / w_c)

Parameters [w_c, z, n]. The order n is soft-integer; n = 0 reproduces
the ZeroDay shape since 1/cosh(L) = 2 w_r / (1 + w_r^2).

cosh(L)^(-2n-1) is evaluated as exp(-(2n+1) ln cosh L) so that very
large |L| underflows to zero instead of overflowing.

Derivatives (c = cosh L)
------------------------
dzeta/dw_c = (2n+1) * zeta * tanh(L) / w_c
dzeta/dz   = c^(-2n-1)
dzeta/dn   = -2 * zeta * ln(c)
"""

import numpy as np
from numpy.typing import NDArray

from .base import (
    ModeFamily, ModeFamilySpec, ReparamBounds,
    constrain_common, constrain_common_jacobian,
    sigmoid, sigmoid_derivative, log_cosh,
)

NUM_PARA = 3
PARAM_LABELS = ('corner', 'peak', 'n')


def _shape(omega, p):
    L = np.log(np.atleast_1d(np.asarray(omega, dtype=float)) / p[0])
    lc = log_cosh(L)
    return L, lc, np.exp(-(2.0 * p[2] + 1.0) * lc)


def response(omega: NDArray[np.float64], p: NDArray[np.float64]) -> NDArray[np.float64]:
    return p[1] * _shape(omega, p)[2]


def gradient(omega: NDArray[np.float64], p: NDArray[np.float64]) -> NDArray[np.float64]:
    """Return [zeta, dzeta/dw_c, dzeta/dz, dzeta/dn], shape (4, N)."""
    L, lc, shape = _shape(omega, p)
    zeta = p[1] * shape

    grad = np.empty((NUM_PARA + 1, L.size))
    grad[0] = zeta
    grad[1] = (2.0 * p[2] + 1.0) * zeta * np.tanh(L) / p[0]
    grad[2] = shape
    grad[3] = -2.0 * zeta * lc
    return grad


def constrain(raw: NDArray[np.float64], bounds: ReparamBounds) -> NDArray[np.float64]:
    corner, peak = constrain_common(raw, bounds)
    return np.array([corner, peak, bounds.max_order * sigmoid(raw[2])])


def constrain_jacobian(raw: NDArray[np.float64], bounds: ReparamBounds) -> NDArray[np.float64]:
    d_corner, d_peak = constrain_common_jacobian(raw, bounds)
    return np.array([d_corner, d_peak, bounds.max_order * sigmoid_derivative(raw[2])])


SPEC = ModeFamilySpec(
    family=ModeFamily.UNICORN,
    num_para=NUM_PARA,
    param_labels=PARAM_LABELS,
    order_slots=(2,),
    response=response,
    gradient=gradient,
    constrain=constrain,
    constrain_jacobian=constrain_jacobian,
)

__all__ = ['response', 'gradient', 'constrain', 'constrain_jacobian', 'SPEC']
