"""
Least-squares objective for fitting a sum of damping modes.

The raw parameter vector x has length num_para * M; mode J owns
x[num_para*J : num_para*(J+1)]. For every evaluation each raw slice is
mapped onto physical parameters (constrain), the mode responses are
written into a response cache of shape (M, n_samples) and the residual

    f_i = sum_J cache[J, i] - zeta_i

is squared and summed. Families with soft-integer orders add

    weight * sum(decimal(order)^2),    decimal(v) = v - round(v)

The gradient is assembled by the chain rule:

    dL/dx = sum_i 2 f_i * (dzeta_i/dp * dp/dx)  (+ penalty term on order slots)

Mini-batch evaluations work on samples [begin, begin + batch_size) of the
current (possibly shuffled) sample order but always add the full
soft-integer penalty, which does not depend on the batch.

Author: Damping Analysis Toolkit
"""

import logging
from typing import Optional, Tuple

import numpy as np
from numpy.typing import NDArray, ArrayLike

from .config import DEFAULT_PENALTY_WEIGHT, DEFAULT_MAX_ORDER
from .dataset import SampleDataset, as_dataset
from .modes import ModeFamily, ModeFamilySpec, ReparamBounds, get_family_spec
from ..utils.errors import InvalidInputError, NumericDegenerateError

logger = logging.getLogger(__name__)


def decimal_part(values: ArrayLike) -> NDArray[np.float64]:
    """Signed distance to the nearest integer, v - round(v)."""
    values = np.asarray(values, dtype=float)
    return values - np.round(values)


def soft_integer_penalty(orders: ArrayLike, weight: float) -> float:
    """
    Penalty pulling order parameters towards integers.

    Parameters
    ----------
    orders : array_like
        Physical order values (any shape)
    weight : float
        Penalty weight

    Returns
    -------
    penalty : float
        weight * sum(decimal(orders)^2); exactly zero for integer orders
    """
    d = decimal_part(orders)
    return float(weight * np.sum(d * d))


class MultiModeObjective:
    """
    Sum-of-modes least-squares objective with soft-integer penalty.

    Parameters
    ----------
    family : ModeFamily or str
        Mode family shared by all modes
    num_modes : int
        Number of modes M (>= 1)
    dataset : SampleDataset or array_like (2, N)
        Target curve
    weight : float, optional
        Soft-integer penalty weight (default: 1e-4)
    max_order : float, optional
        Upper bound of order parameters (default: 5)

    Raises
    ------
    InvalidInputError
        If num_modes < 1 or the dataset is invalid.
    """

    def __init__(
        self,
        family,
        num_modes: int,
        dataset,
        weight: float = DEFAULT_PENALTY_WEIGHT,
        max_order: float = DEFAULT_MAX_ORDER
    ):
        if int(num_modes) != num_modes or num_modes < 1:
            raise InvalidInputError(f"Number of modes must be a positive integer, got {num_modes}")

        self.spec: ModeFamilySpec = get_family_spec(family)
        self.num_modes = int(num_modes)
        self.dataset: SampleDataset = as_dataset(dataset)
        self.weight = float(weight)
        self.max_order = float(max_order)

        n = self.dataset.n_samples
        self._permutation = np.arange(n)
        self._omega = self.dataset.omega
        self._zeta = self.dataset.zeta
        self.response_cache = np.zeros((self.num_modes, n))

    # -------------------------------------------------------------------------
    # Layout
    # -------------------------------------------------------------------------

    @property
    def family(self) -> ModeFamily:
        return self.spec.family

    @property
    def num_para(self) -> int:
        return self.spec.num_para

    @property
    def size(self) -> int:
        """Length of the raw parameter vector."""
        return self.spec.num_para * self.num_modes

    @property
    def bounds(self) -> ReparamBounds:
        return ReparamBounds.from_dataset(self.dataset, self.max_order)

    @property
    def permutation(self) -> NDArray[np.int64]:
        """Current sample order relative to the dataset."""
        return self._permutation.copy()

    def num_functions(self) -> int:
        """Number of separable terms (samples) for mini-batch optimizers."""
        return self.dataset.n_samples

    def _rows(self, x: ArrayLike) -> NDArray[np.float64]:
        x = np.asarray(x, dtype=float).ravel()
        if x.size != self.size:
            raise InvalidInputError(
                f"Parameter vector has {x.size} entries, expected {self.size}"
            )
        return x.reshape(self.num_modes, self.num_para)

    def _batch(self, begin: Optional[int], batch_size: Optional[int]) -> slice:
        n = self.dataset.n_samples
        if begin is None and batch_size is None:
            return slice(0, n)
        if begin is None or batch_size is None:
            raise InvalidInputError("Mini-batch evaluation needs both begin and batch_size")
        if begin < 0 or batch_size < 1 or begin + batch_size > n:
            raise InvalidInputError(
                f"Batch [{begin}, {begin + batch_size}) outside of {n} samples"
            )
        return slice(begin, begin + batch_size)

    # -------------------------------------------------------------------------
    # Reparameterization
    # -------------------------------------------------------------------------

    def decode(self, x: ArrayLike) -> NDArray[np.float64]:
        """
        Map a raw vector onto the physical parameter table.

        Returns
        -------
        table : ndarray, shape (M, num_para)
            One row per mode: corner, peak, then family shape parameters.
        """
        bounds = self.bounds
        return np.array([self.spec.constrain(raw, bounds) for raw in self._rows(x)])

    def _orders(self, rows, bounds) -> Tuple[NDArray[np.float64], NDArray[np.float64]]:
        """Physical orders and their raw derivatives, shape (M, n_slots)."""
        slots = list(self.spec.order_slots)
        orders = np.empty((self.num_modes, len(slots)))
        d_orders = np.empty_like(orders)
        for J, raw in enumerate(rows):
            orders[J] = self.spec.constrain(raw, bounds)[slots]
            d_orders[J] = self.spec.constrain_jacobian(raw, bounds)[slots]
        return orders, d_orders

    # -------------------------------------------------------------------------
    # Evaluation
    # -------------------------------------------------------------------------

    def _assemble(self, x, begin, batch_size, with_gradient):
        rows = self._rows(x)
        batch = self._batch(begin, batch_size)
        bounds = self.bounds
        omega = self._omega[batch]
        spec = self.spec

        partials = []
        for J, raw in enumerate(rows):
            p = spec.constrain(raw, bounds)
            if with_gradient:
                grad = spec.gradient(omega, p)
                self.response_cache[J, batch] = grad[0]
                partials.append(grad[1:] * spec.constrain_jacobian(raw, bounds)[:, None])
            else:
                self.response_cache[J, batch] = spec.response(omega, p)

        fi = self.response_cache[:, batch].sum(axis=0) - self._zeta[batch]
        loss = float(fi @ fi)

        g = None
        if with_gradient:
            g = np.array([dp @ (2.0 * fi) for dp in partials])

        if spec.has_orders:
            orders, d_orders = self._orders(rows, bounds)
            floor_diff = decimal_part(orders)
            loss += self.weight * float(np.sum(floor_diff ** 2))
            if with_gradient:
                g[:, list(spec.order_slots)] += 2.0 * self.weight * floor_diff * d_orders

        if not np.isfinite(loss) or (g is not None and not np.all(np.isfinite(g))):
            raise NumericDegenerateError(
                f"Non-finite objective for {spec.family.display_name} at x = {np.asarray(x).ravel()}"
            )

        return loss, (g.ravel() if g is not None else None)

    def evaluate(self, x: ArrayLike, begin: Optional[int] = None,
                 batch_size: Optional[int] = None) -> float:
        """Loss over all samples, or over one mini-batch."""
        return self._assemble(x, begin, batch_size, False)[0]

    def gradient(self, x: ArrayLike, begin: Optional[int] = None,
                 batch_size: Optional[int] = None) -> NDArray[np.float64]:
        """Gradient with respect to the raw vector, same length as x."""
        return self._assemble(x, begin, batch_size, True)[1]

    def evaluate_with_gradient(
        self,
        x: ArrayLike,
        begin: Optional[int] = None,
        batch_size: Optional[int] = None
    ) -> Tuple[float, NDArray[np.float64]]:
        """Loss and gradient in one pass."""
        return self._assemble(x, begin, batch_size, True)

    def penalty(self, x: ArrayLike) -> float:
        """Soft-integer penalty alone (zero for families without orders)."""
        if not self.spec.has_orders:
            return 0.0
        orders, _ = self._orders(self._rows(x), self.bounds)
        return soft_integer_penalty(orders, self.weight)

    def shuffle(self, rng: Optional[np.random.Generator] = None) -> None:
        """
        Permute the sample order for the next mini-batch epoch.

        The permutation is applied to the sample view and the response
        cache together; the dataset itself is left untouched.
        """
        rng = np.random.default_rng() if rng is None else rng
        perm = rng.permutation(self.dataset.n_samples)
        self._permutation = self._permutation[perm]
        self._omega = self._omega[perm]
        self._zeta = self._zeta[perm]
        self.response_cache = self.response_cache[:, perm]

    # -------------------------------------------------------------------------
    # Constraint interface
    # -------------------------------------------------------------------------

    def num_constraints(self) -> int:
        """One constraint per soft-integer order of every mode."""
        return len(self.spec.order_slots) * self.num_modes

    def _constraint_slot(self, k: int) -> Tuple[int, int]:
        n_slots = len(self.spec.order_slots)
        if k < 0 or k >= self.num_constraints():
            raise InvalidInputError(
                f"Constraint index {k} out of range for {self.num_constraints()} constraints"
            )
        return k // n_slots, self.spec.order_slots[k % n_slots]

    def evaluate_constraint(self, k: int, x: ArrayLike) -> float:
        """weight * decimal(order_k)^2."""
        mode, slot = self._constraint_slot(k)
        raw = self._rows(x)[mode]
        d = decimal_part(self.spec.constrain(raw, self.bounds)[slot])
        return float(self.weight * d * d)

    def gradient_constraint(self, k: int, x: ArrayLike) -> NDArray[np.float64]:
        """Full-length gradient of constraint k; non-zero only at its raw slot."""
        mode, slot = self._constraint_slot(k)
        raw = self._rows(x)[mode]
        bounds = self.bounds
        d = decimal_part(self.spec.constrain(raw, bounds)[slot])

        g = np.zeros(self.size)
        g[self.num_para * mode + slot] = 2.0 * self.weight * d * self.spec.constrain_jacobian(raw, bounds)[slot]
        return g

    def __repr__(self) -> str:
        return (
            f"MultiModeObjective(family={self.family.display_name!r}, "
            f"num_modes={self.num_modes}, n_samples={self.dataset.n_samples}, "
            f"weight={self.weight:g}, max_order={self.max_order:g})"
        )


__all__ = [
    'MultiModeObjective',
    'decimal_part',
    'soft_integer_penalty',
]
