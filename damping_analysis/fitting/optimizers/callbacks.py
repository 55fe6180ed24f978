"""
Cooperative cancellation for optimizer runs.

A CancellationToken is handed to the dispatcher by the caller. The
EarlyQuit observer is consulted at fixed checkpoints of every optimizer
(before the run, after each objective evaluation, after each gradient
evaluation and after each accepted step) and aborts the run by raising
OptimizationStopped once the token is set. The observer keeps the last
accepted iterate so the dispatcher can still return a parameter table.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Optional

import numpy as np
from numpy.typing import NDArray

logger = logging.getLogger(__name__)


class CancellationToken:
    """Thread-safe cancellation flag shared between caller and run."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    def reset(self) -> None:
        self._event.clear()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self.cancelled})"


class OptimizationStopped(Exception):
    """Raised inside an optimizer loop when the run was cancelled."""
    pass


@dataclass
class OptimizerOutcome:
    """Raw outcome of one optimizer backend."""
    x: NDArray[np.float64]
    loss: float
    n_iterations: int
    converged: bool
    message: str


class EarlyQuit:
    """
    Checkpoint observer shared by all optimizer backends.

    Parameters
    ----------
    token : CancellationToken, optional
        Cancellation source; None never cancels.
    """

    def __init__(self, token: Optional[CancellationToken] = None):
        self.token = token
        self.last_x: Optional[NDArray[np.float64]] = None
        self.last_loss = float('inf')
        self.n_evaluations = 0
        self.n_gradients = 0
        self.n_steps = 0

    def _check(self, where: str) -> None:
        if self.token is not None and self.token.cancelled:
            logger.debug(f"Cancellation requested ({where}, step {self.n_steps})")
            raise OptimizationStopped(where)

    def begin_optimization(self, x0: NDArray[np.float64]) -> None:
        self.last_x = np.array(x0, dtype=float, copy=True)
        self._check('begin')

    def evaluate(self, x: NDArray[np.float64], loss: float) -> None:
        self.n_evaluations += 1
        self._check('evaluate')

    def gradient(self, x: NDArray[np.float64], grad: NDArray[np.float64]) -> None:
        self.n_gradients += 1
        self._check('gradient')

    def step_taken(self, x: NDArray[np.float64], loss: Optional[float] = None) -> None:
        self.n_steps += 1
        self.last_x = np.array(x, dtype=float, copy=True)
        if loss is not None:
            self.last_loss = float(loss)
        self._check('step')


__all__ = [
    'CancellationToken',
    'OptimizationStopped',
    'OptimizerOutcome',
    'EarlyQuit',
]
