"""
Evaluation of fitted mode tables on arbitrary frequency grids.

Works on the physical (M, num_para) tables produced by
MultiModeObjective.decode, independently of any dataset.
"""

import logging
from typing import Tuple

import numpy as np
from numpy.typing import NDArray, ArrayLike

from .modes import get_family_spec
from ..utils.errors import InvalidInputError

logger = logging.getLogger(__name__)


def _as_table(spec, table: ArrayLike) -> NDArray[np.float64]:
    table = np.atleast_2d(np.asarray(table, dtype=float))
    if table.shape[1] != spec.num_para:
        raise InvalidInputError(
            f"{spec.family.display_name} modes have {spec.num_para} parameters, "
            f"table has {table.shape[1]} columns"
        )
    return table


def evaluate_modes(
    family,
    table: ArrayLike,
    omega: ArrayLike
) -> Tuple[NDArray[np.float64], NDArray[np.float64]]:
    """
    Evaluate every mode of a parameter table and their sum.

    Parameters
    ----------
    family : ModeFamily or str
        Mode family of the table
    table : array_like, shape (M, num_para)
        Physical parameters, one row per mode
    omega : array_like
        Angular frequencies (> 0)

    Returns
    -------
    total : ndarray, shape (N,)
        Sum of all modes
    per_mode : ndarray, shape (M, N)
        Individual mode responses
    """
    spec = get_family_spec(family)
    table = _as_table(spec, table)
    omega = np.atleast_1d(np.asarray(omega, dtype=float))
    if np.any(omega <= 0):
        raise InvalidInputError("Only positive frequencies are supported")

    per_mode = np.array([spec.response(omega, p) for p in table])
    return per_mode.sum(axis=0), per_mode


def round_orders(family, table: ArrayLike) -> NDArray[np.float64]:
    """
    Snap soft-integer order columns of a table to the nearest integer.

    Families without orders are returned as an unchanged copy.
    """
    spec = get_family_spec(family)
    table = _as_table(spec, table).copy()
    if spec.has_orders:
        slots = list(spec.order_slots)
        before = table[:, slots].copy()
        table[:, slots] = np.round(before)
        logger.debug(f"Rounded orders: max shift {np.max(np.abs(table[:, slots] - before)):.3f}")
    return table


__all__ = [
    'evaluate_modes',
    'round_orders',
]
