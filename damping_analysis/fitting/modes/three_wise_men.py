"""
ThreeWiseMen mode: peak with a tunable flat top or notch.

    zeta(w) = z * (1 + g) * c / (c^2 + g),    c = cosh(ln(w / w_c))

Parameters [w_c, z, g] with g > -0.98 (guaranteed by g = x^2 - 0.98),
hence c^2 + g >= 0.02. g = 1 gives the ZeroDay shape.

Derivatives
-----------
dzeta/dw_c = z (1 + g) (c^2 - g) sinh(L) / (w_c (c^2 + g)^2)
dzeta/dz   = (1 + g) c / (c^2 + g)
dzeta/dg   = z c (c^2 - 1) / (c^2 + g)^2
"""

import numpy as np
from numpy.typing import NDArray

from .base import (
    ModeFamily, ModeFamilySpec, ReparamBounds,
    constrain_common, constrain_common_jacobian,
)
from ..config import GAMMA_OFFSET

NUM_PARA = 3
PARAM_LABELS = ('corner', 'peak', 'gamma')


def response(omega: NDArray[np.float64], p: NDArray[np.float64]) -> NDArray[np.float64]:
    c = np.cosh(np.log(np.asarray(omega, dtype=float) / p[0]))
    return p[1] * (1.0 + p[2]) * c / (c * c + p[2])


def gradient(omega: NDArray[np.float64], p: NDArray[np.float64]) -> NDArray[np.float64]:
    """Return [zeta, dzeta/dw_c, dzeta/dz, dzeta/dg], shape (4, N)."""
    w, z, g = p[0], p[1], p[2]
    L = np.log(np.atleast_1d(np.asarray(omega, dtype=float)) / w)
    c = np.cosh(L)
    c2 = c * c
    factor = c2 + g

    grad = np.empty((NUM_PARA + 1, L.size))
    grad[2] = (1.0 + g) * c / factor
    grad[0] = z * grad[2]
    grad[1] = z * (1.0 + g) * (c2 - g) * np.sinh(L) / (w * factor ** 2)
    grad[3] = z * c * (c2 - 1.0) / factor ** 2
    return grad


def constrain(raw: NDArray[np.float64], bounds: ReparamBounds) -> NDArray[np.float64]:
    corner, peak = constrain_common(raw, bounds)
    return np.array([corner, peak, raw[2] * raw[2] - GAMMA_OFFSET])


def constrain_jacobian(raw: NDArray[np.float64], bounds: ReparamBounds) -> NDArray[np.float64]:
    d_corner, d_peak = constrain_common_jacobian(raw, bounds)
    return np.array([d_corner, d_peak, 2.0 * raw[2]])


SPEC = ModeFamilySpec(
    family=ModeFamily.THREE_WISE_MEN,
    num_para=NUM_PARA,
    param_labels=PARAM_LABELS,
    order_slots=(),
    response=response,
    gradient=gradient,
    constrain=constrain,
    constrain_jacobian=constrain_jacobian,
)

__all__ = ['response', 'gradient', 'constrain', 'constrain_jacobian', 'SPEC']
