"""
ZeroDay mode: single-peak damping with two parameters.

    zeta(w) = z * 2 w_r / (1 + w_r^2),    w_r = w / w_c

Parameters [w_c, z]: corner frequency and peak damping ratio. The peak
value z is reached at w = w_c.

Derivatives
-----------
dzeta/dw_c = zeta / w_c * (w_r^2 - 1) / (1 + w_r^2)
dzeta/dz   = 2 w_r / (1 + w_r^2)
"""

import numpy as np
from numpy.typing import NDArray

from .base import (
    ModeFamily, ModeFamilySpec, ReparamBounds,
    constrain_common, constrain_common_jacobian,
)

NUM_PARA = 2
PARAM_LABELS = ('corner', 'peak')


def response(omega: NDArray[np.float64], p: NDArray[np.float64]) -> NDArray[np.float64]:
    wr = np.asarray(omega, dtype=float) / p[0]
    return p[1] * 2.0 * wr / (1.0 + wr * wr)


def gradient(omega: NDArray[np.float64], p: NDArray[np.float64]) -> NDArray[np.float64]:
    """
    Response and analytic partials.

    Returns
    -------
    grad : ndarray, shape (3, N)
        [zeta, dzeta/dw_c, dzeta/dz]
    """
    wr = np.atleast_1d(np.asarray(omega, dtype=float)) / p[0]
    wr2 = wr * wr
    shape = 2.0 * wr / (1.0 + wr2)
    zeta = p[1] * shape

    grad = np.empty((NUM_PARA + 1, wr.size))
    grad[0] = zeta
    grad[1] = zeta / p[0] * (wr2 - 1.0) / (1.0 + wr2)
    grad[2] = shape
    return grad


def constrain(raw: NDArray[np.float64], bounds: ReparamBounds) -> NDArray[np.float64]:
    return np.array(constrain_common(raw, bounds))


def constrain_jacobian(raw: NDArray[np.float64], bounds: ReparamBounds) -> NDArray[np.float64]:
    return np.array(constrain_common_jacobian(raw, bounds))


SPEC = ModeFamilySpec(
    family=ModeFamily.ZERO_DAY,
    num_para=NUM_PARA,
    param_labels=PARAM_LABELS,
    order_slots=(),
    response=response,
    gradient=gradient,
    constrain=constrain,
    constrain_jacobian=constrain_jacobian,
)

__all__ = ['response', 'gradient', 'constrain', 'constrain_jacobian', 'SPEC']
