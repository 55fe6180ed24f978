"""
Optimizer backends for the multi-mode objective.

Every backend has the signature

    run(objective, x0, params, observer, rng) -> OptimizerOutcome

where ``params`` holds only the hyperparameters the backend supports
(see dispatch.OPTIMIZERS) and ``observer`` is the EarlyQuit checkpoint
object carrying the cancellation token.
"""

from .callbacks import CancellationToken, EarlyQuit, OptimizationStopped, OptimizerOutcome
from .scipy_backend import run_lbfgs, run_cg, run_differential_evolution
from .first_order import (
    run_gradient_descent,
    run_delta_bar_delta,
    run_momentum_delta_bar_delta,
    run_sgd,
    run_adam,
    run_demon_sgd,
)
from .aug_lagrangian import run_aug_lagrangian

__all__ = [
    'CancellationToken',
    'EarlyQuit',
    'OptimizationStopped',
    'OptimizerOutcome',
    'run_lbfgs',
    'run_cg',
    'run_differential_evolution',
    'run_gradient_descent',
    'run_delta_bar_delta',
    'run_momentum_delta_bar_delta',
    'run_sgd',
    'run_adam',
    'run_demon_sgd',
    'run_aug_lagrangian',
]
