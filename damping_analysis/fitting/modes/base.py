"""
Shared pieces of the damping mode families.

Every family is a closed-form function zeta(w; p) of the angular
frequency w and a short physical parameter vector p that always starts
with [corner frequency, peak damping ratio]. The optimizers never see p
directly: they work on an unbounded raw vector x which is mapped onto
the admissible physical range by smooth sigmoid/quadratic maps.

Reparameterization
------------------
corner = 10^(min_omega + range_omega * sigmoid(x0))   in the sampled band
peak   = max_zeta * sigmoid(x1)                       in (0, max_zeta)
order  = max_order * sigmoid(x)                       in (0, max_order)
gamma  = x^2 - 0.98                                   in [-0.98, inf)

Derivatives use sigmoid'(x) = exp(-|x|) / (1 + exp(-|x|))^2, which does
not overflow for large |x|.
"""

import enum
import logging
from dataclasses import dataclass
from typing import Callable, Tuple

import numpy as np
from numpy.typing import NDArray
from scipy.special import expit

from ..config import DEFAULT_MAX_ORDER
from ...utils.errors import InvalidInputError

logger = logging.getLogger(__name__)

LN10 = np.log(10.0)


# =============================================================================
# Family identity
# =============================================================================

class ModeFamily(enum.Enum):
    """Closed set of damping mode families."""

    ZERO_DAY = 'zero_day'
    UNICORN = 'unicorn'
    TWO_CITIES = 'two_cities'
    THREE_WISE_MEN = 'three_wise_men'

    @classmethod
    def from_name(cls, name) -> 'ModeFamily':
        """
        Resolve a family from a loose name.

        Accepts the enum itself, its value ('two_cities'), its member
        name ('TWO_CITIES') and display names ('Two Cities', 'TwoCities').
        """
        if isinstance(name, cls):
            return name
        key = ''.join(ch for ch in str(name).lower() if ch.isalnum())
        for family in cls:
            if key == family.value.replace('_', ''):
                return family
        valid = ', '.join(f.value for f in cls)
        raise InvalidInputError(f"Unknown mode family '{name}'. Valid: {valid}")

    @property
    def display_name(self) -> str:
        return self.value.replace('_', ' ').title()


# =============================================================================
# Reparameterization bounds
# =============================================================================

@dataclass(frozen=True)
class ReparamBounds:
    """
    Range scalars consumed by the constrain maps.

    Attributes
    ----------
    min_omega : float
        Lower end of the corner band [log10 rad/s]
    range_omega : float
        Width of the corner band [decades]
    max_zeta : float
        Upper bound of the peak damping ratio
    max_order : float
        Upper bound of soft-integer order parameters
    """
    min_omega: float
    range_omega: float
    max_zeta: float
    max_order: float = DEFAULT_MAX_ORDER

    @classmethod
    def from_dataset(cls, dataset, max_order: float = DEFAULT_MAX_ORDER) -> 'ReparamBounds':
        return cls(
            min_omega=dataset.min_omega,
            range_omega=dataset.range_omega,
            max_zeta=dataset.max_zeta,
            max_order=max_order,
        )


# =============================================================================
# Sigmoid maps
# =============================================================================

def sigmoid(x):
    """Logistic function 1 / (1 + exp(-x))."""
    return expit(x)


def sigmoid_derivative(x):
    """Overflow-free derivative of the logistic function."""
    e = np.exp(-np.abs(x))
    return e / (1.0 + e) ** 2


def constrain_corner(x: float, bounds: ReparamBounds) -> float:
    return 10.0 ** (bounds.min_omega + bounds.range_omega * sigmoid(x))


def constrain_corner_derivative(x: float, bounds: ReparamBounds) -> float:
    return LN10 * constrain_corner(x, bounds) * bounds.range_omega * sigmoid_derivative(x)


def constrain_common(raw: NDArray[np.float64], bounds: ReparamBounds
                     ) -> Tuple[float, float]:
    """Map raw[0], raw[1] onto (corner, peak)."""
    return constrain_corner(raw[0], bounds), bounds.max_zeta * sigmoid(raw[1])


def constrain_common_jacobian(raw: NDArray[np.float64], bounds: ReparamBounds
                              ) -> Tuple[float, float]:
    """Derivatives d corner / d raw[0] and d peak / d raw[1]."""
    return (constrain_corner_derivative(raw[0], bounds),
            bounds.max_zeta * sigmoid_derivative(raw[1]))


def log_cosh(L):
    """ln(cosh(L)) without overflow for large |L|."""
    return np.logaddexp(L, -L) - np.log(2.0)


# =============================================================================
# Capability bundle
# =============================================================================

@dataclass(frozen=True)
class ModeFamilySpec:
    """
    Everything the objective needs to know about one family.

    Attributes
    ----------
    family : ModeFamily
    num_para : int
        Length of the physical (and raw) parameter vector of one mode
    param_labels : tuple of str
        Physical parameter names, in vector order
    order_slots : tuple of int
        Positions of soft-integer parameters (penalised, constrained)
    response : callable(omega, p) -> zeta
    gradient : callable(omega, p) -> ndarray (num_para + 1, N)
        Row 0 is the response, rows 1.. are d zeta / d p_i
    constrain : callable(raw, bounds) -> p
    constrain_jacobian : callable(raw, bounds) -> dp/draw (elementwise)
    """
    family: ModeFamily
    num_para: int
    param_labels: Tuple[str, ...]
    order_slots: Tuple[int, ...]
    response: Callable
    gradient: Callable
    constrain: Callable
    constrain_jacobian: Callable

    @property
    def has_orders(self) -> bool:
        return len(self.order_slots) > 0


__all__ = [
    'ModeFamily',
    'ReparamBounds',
    'ModeFamilySpec',
    'sigmoid',
    'sigmoid_derivative',
    'constrain_corner',
    'constrain_corner_derivative',
    'constrain_common',
    'constrain_common_jacobian',
    'log_cosh',
    'LN10',
]
