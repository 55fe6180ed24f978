"""
First-order optimizers for the multi-mode objective.

Two drivers share the update policies below:

- full-batch loop (gradient_descent, delta_bar_delta,
  momentum_delta_bar_delta): one gradient of the whole objective per
  iteration; stops when the objective changes by less than ``tolerance``
  between consecutive iterations.
- mini-batch loop (sgd, adam, demon_sgd): one update per batch of
  samples, reshuffling the sample order after every epoch; the summed
  epoch objective is compared against the previous epoch.

``max_iter`` counts parameter updates in both drivers.

Update policies
---------------
Vanilla:        x -= step * g
DeltaBarDelta:  per-parameter steps grow by kappa while the gradient
                agrees in sign with its running average, shrink by
                phi * step otherwise
MomentumDBD:    per-parameter gains on a momentum velocity
Adam:           bias-corrected first/second moment scaling
Demon:          momentum decayed towards zero over the run
"""

import logging
from typing import Dict

import numpy as np
from numpy.typing import NDArray

from ..config import (
    DBD_KAPPA, DBD_PHI, DBD_THETA, DBD_MIN_STEP,
    MDBD_KAPPA, MDBD_PHI, MDBD_MOMENTUM, MDBD_MIN_GAIN,
    ADAM_BETA1, ADAM_BETA2, ADAM_EPSILON,
    DEMON_MOMENTUM,
)
from .callbacks import EarlyQuit, OptimizerOutcome

logger = logging.getLogger(__name__)


# =============================================================================
# Update policies
# =============================================================================

class VanillaUpdate:
    def __init__(self, step_size: float, n_params: int):
        self.step_size = step_size

    def update(self, x: NDArray[np.float64], grad: NDArray[np.float64]) -> NDArray[np.float64]:
        return x - self.step_size * grad


class DeltaBarDeltaUpdate:
    """Jacobs' delta-bar-delta rule with per-parameter step sizes."""

    def __init__(self, step_size: float, n_params: int, kappa: float = DBD_KAPPA,
                 phi: float = DBD_PHI, theta: float = DBD_THETA,
                 min_step: float = DBD_MIN_STEP):
        self.kappa = kappa
        self.phi = phi
        self.theta = theta
        self.min_step = min_step
        self.delta_bar = np.zeros(n_params)
        self.epsilon = np.full(n_params, step_size)

    def update(self, x, grad):
        sign = np.sign(grad * self.delta_bar)
        self.epsilon += np.where(sign > 0, self.kappa, 0.0) - np.where(sign < 0, self.phi * self.epsilon, 0.0)
        np.clip(self.epsilon, self.min_step, None, out=self.epsilon)

        self.delta_bar = self.theta * self.delta_bar + (1.0 - self.theta) * grad
        return x - self.epsilon * grad


class MomentumDeltaBarDeltaUpdate:
    """Delta-bar-delta gains applied to a momentum velocity."""

    def __init__(self, step_size: float, n_params: int, kappa: float = MDBD_KAPPA,
                 phi: float = MDBD_PHI, momentum: float = MDBD_MOMENTUM,
                 min_gain: float = MDBD_MIN_GAIN):
        self.step_size = step_size
        self.kappa = kappa
        self.phi = phi
        self.momentum = momentum
        self.min_gain = min_gain
        self.gains = np.ones(n_params)
        self.velocity = np.zeros(n_params)

    def update(self, x, grad):
        same = np.sign(grad) == np.sign(self.velocity)
        self.gains += np.where(same, -(1.0 - self.phi) * self.gains, self.kappa)
        np.clip(self.gains, self.min_gain, None, out=self.gains)

        self.velocity = self.momentum * self.velocity - self.step_size * self.gains * grad
        return x + self.velocity


class AdamUpdate:
    def __init__(self, step_size: float, n_params: int, beta1: float = ADAM_BETA1,
                 beta2: float = ADAM_BETA2, epsilon: float = ADAM_EPSILON):
        self.step_size = step_size
        self.beta1 = beta1
        self.beta2 = beta2
        self.epsilon = epsilon
        self.m = np.zeros(n_params)
        self.v = np.zeros(n_params)
        self.t = 0

    def update(self, x, grad):
        self.t += 1
        self.m = self.beta1 * self.m + (1.0 - self.beta1) * grad
        self.v = self.beta2 * self.v + (1.0 - self.beta2) * grad * grad
        m_hat = self.m / (1.0 - self.beta1 ** self.t)
        v_hat = self.v / (1.0 - self.beta2 ** self.t)
        return x - self.step_size * m_hat / (np.sqrt(v_hat) + self.epsilon)


class DemonUpdate:
    """
    Decaying momentum (Demon).

    beta_t = beta0 * (1 - t/T) / ((1 - beta0) + beta0 * (1 - t/T)),
    reaching zero at the last update T.
    """

    def __init__(self, step_size: float, n_params: int, horizon: int,
                 momentum: float = DEMON_MOMENTUM):
        self.step_size = step_size
        self.momentum = momentum
        self.horizon = max(int(horizon), 1)
        self.velocity = np.zeros(n_params)
        self.t = 0

    def beta(self) -> float:
        decay = max(1.0 - self.t / self.horizon, 0.0)
        beta_decay = self.momentum * decay
        return beta_decay / ((1.0 - self.momentum) + beta_decay)

    def update(self, x, grad):
        self.t += 1
        self.velocity = self.beta() * self.velocity - self.step_size * grad
        return x + self.velocity


# =============================================================================
# Drivers
# =============================================================================

def _run_full_batch(objective, x0, params: Dict, observer: EarlyQuit, policy) -> OptimizerOutcome:
    x = np.array(x0, dtype=float, copy=True)
    tol = params['tolerance']
    last_loss = np.inf

    for it in range(1, params['max_iter'] + 1):
        loss, grad = objective.evaluate_with_gradient(x)
        observer.evaluate(x, loss)
        observer.gradient(x, grad)

        if abs(last_loss - loss) < tol:
            return OptimizerOutcome(
                x=x, loss=loss, n_iterations=it - 1, converged=True,
                message="Objective change below tolerance",
            )
        last_loss = loss

        x = policy.update(x, grad)
        observer.step_taken(x)

    loss = objective.evaluate(x)
    return OptimizerOutcome(
        x=x, loss=loss, n_iterations=params['max_iter'], converged=False,
        message="Maximum number of iterations reached",
    )


def _run_mini_batch(objective, x0, params: Dict, observer: EarlyQuit, policy,
                    rng) -> OptimizerOutcome:
    x = np.array(x0, dtype=float, copy=True)
    tol = params['tolerance']
    n = objective.num_functions()
    batch_size = max(1, min(params['batch_size'], n))
    rng = np.random.default_rng() if rng is None else rng

    objective.shuffle(rng)
    last_epoch_loss = np.inf
    epoch_loss = 0.0
    begin = 0
    n_epochs = 0

    for it in range(1, params['max_iter'] + 1):
        size = min(batch_size, n - begin)
        loss, grad = objective.evaluate_with_gradient(x, begin, size)
        observer.evaluate(x, loss)
        observer.gradient(x, grad)
        epoch_loss += loss

        x = policy.update(x, grad)
        observer.step_taken(x)

        begin += size
        if begin >= n:
            n_epochs += 1
            logger.debug(f"Epoch {n_epochs}: objective {epoch_loss:.6e}")
            if abs(last_epoch_loss - epoch_loss) < tol:
                return OptimizerOutcome(
                    x=x, loss=objective.evaluate(x), n_iterations=it, converged=True,
                    message=f"Epoch objective change below tolerance after {n_epochs} epochs",
                )
            last_epoch_loss = epoch_loss
            epoch_loss = 0.0
            begin = 0
            objective.shuffle(rng)

    return OptimizerOutcome(
        x=x, loss=objective.evaluate(x), n_iterations=params['max_iter'], converged=False,
        message="Maximum number of iterations reached",
    )


# =============================================================================
# Public runners
# =============================================================================

def run_gradient_descent(objective, x0, params, observer, rng=None):
    policy = VanillaUpdate(params['step_size'], objective.size)
    return _run_full_batch(objective, x0, params, observer, policy)


def run_delta_bar_delta(objective, x0, params, observer, rng=None):
    policy = DeltaBarDeltaUpdate(params['step_size'], objective.size)
    return _run_full_batch(objective, x0, params, observer, policy)


def run_momentum_delta_bar_delta(objective, x0, params, observer, rng=None):
    policy = MomentumDeltaBarDeltaUpdate(params['step_size'], objective.size)
    return _run_full_batch(objective, x0, params, observer, policy)


def run_sgd(objective, x0, params, observer, rng=None):
    policy = VanillaUpdate(params['step_size'], objective.size)
    return _run_mini_batch(objective, x0, params, observer, policy, rng)


def run_adam(objective, x0, params, observer, rng=None):
    policy = AdamUpdate(params['step_size'], objective.size)
    return _run_mini_batch(objective, x0, params, observer, policy, rng)


def run_demon_sgd(objective, x0, params, observer, rng=None):
    policy = DemonUpdate(params['step_size'], objective.size, horizon=params['max_iter'])
    return _run_mini_batch(objective, x0, params, observer, policy, rng)


__all__ = [
    'VanillaUpdate',
    'DeltaBarDeltaUpdate',
    'MomentumDeltaBarDeltaUpdate',
    'AdamUpdate',
    'DemonUpdate',
    'run_gradient_descent',
    'run_delta_bar_delta',
    'run_momentum_delta_bar_delta',
    'run_sgd',
    'run_adam',
    'run_demon_sgd',
]
