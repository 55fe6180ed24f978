"""
Optimizer backends built on scipy.optimize.

- lbfgs: L-BFGS-B with analytic gradient (no bounds; the raw vector is
  unconstrained by construction)
- cg: nonlinear conjugate gradient with analytic gradient
- differential_evolution: population search over a symmetric raw box

Each backend takes the resolved hyperparameters (only the knobs the
optimizer supports) and reports progress through the EarlyQuit observer.
"""

import logging
from typing import Dict

import numpy as np
from numpy.typing import NDArray
from scipy.optimize import minimize, differential_evolution

from ..config import DE_RAW_BOUND, DE_POPSIZE
from .callbacks import EarlyQuit, OptimizerOutcome

logger = logging.getLogger(__name__)


def _observed_fun_and_grad(objective, observer: EarlyQuit):
    def fun(x):
        loss, grad = objective.evaluate_with_gradient(x)
        observer.evaluate(x, loss)
        observer.gradient(x, grad)
        return loss, grad
    return fun


def _step_callback(observer: EarlyQuit):
    def callback(intermediate_result):
        observer.step_taken(intermediate_result.x, intermediate_result.fun)
    return callback


def run_lbfgs(objective, x0: NDArray[np.float64], params: Dict,
              observer: EarlyQuit, rng=None) -> OptimizerOutcome:
    """
    Limited-memory BFGS.

    ``tolerance`` is used for both the relative objective reduction
    (ftol) and the projected gradient (gtol); ``basis_size`` is the
    number of stored correction pairs.
    """
    tol = params['tolerance']
    options = {
        'maxiter': params['max_iter'],
        'maxcor': params['basis_size'],
        'ftol': tol,
        'gtol': tol,
    }
    logger.debug(f"L-BFGS-B options: {options}")

    res = minimize(
        _observed_fun_and_grad(objective, observer),
        x0,
        jac=True,
        method='L-BFGS-B',
        callback=_step_callback(observer),
        options=options,
    )
    return OptimizerOutcome(
        x=res.x, loss=float(res.fun), n_iterations=int(res.nit),
        converged=bool(res.success), message=str(res.message),
    )


def run_cg(objective, x0: NDArray[np.float64], params: Dict,
           observer: EarlyQuit, rng=None) -> OptimizerOutcome:
    """Polak-Ribiere conjugate gradient, stopping on gradient norm < tolerance."""
    res = minimize(
        _observed_fun_and_grad(objective, observer),
        x0,
        jac=True,
        method='CG',
        callback=_step_callback(observer),
        options={'maxiter': params['max_iter'], 'gtol': params['tolerance']},
    )
    return OptimizerOutcome(
        x=res.x, loss=float(res.fun), n_iterations=int(res.nit),
        converged=bool(res.success), message=str(res.message),
    )


class _DECostFunction:
    """Objective wrapper for differential evolution (loss only)."""

    def __init__(self, objective, observer: EarlyQuit):
        self.objective = objective
        self.observer = observer

    def __call__(self, x):
        loss = self.objective.evaluate(x)
        self.observer.evaluate(x, loss)
        return loss


def run_differential_evolution(objective, x0: NDArray[np.float64], params: Dict,
                               observer: EarlyQuit, rng=None) -> OptimizerOutcome:
    """
    Differential evolution on the box [-6, 6]^n of raw parameters.

    The random initial point seeds the population; ``max_iter`` is the
    number of generations and ``tolerance`` the relative population
    spread at which the search stops. No gradient polishing is done.
    """
    bounds = [(-DE_RAW_BOUND, DE_RAW_BOUND)] * objective.size
    x_start = np.clip(x0, -DE_RAW_BOUND, DE_RAW_BOUND)

    res = differential_evolution(
        _DECostFunction(objective, observer),
        bounds,
        x0=x_start,
        strategy='randtobest1bin',
        popsize=DE_POPSIZE,
        maxiter=params['max_iter'],
        tol=params['tolerance'],
        polish=False,
        rng=rng,
        disp=False,
        updating='immediate',
        callback=_step_callback(observer),
    )
    return OptimizerOutcome(
        x=res.x, loss=float(res.fun), n_iterations=int(res.nit),
        converged=bool(res.success), message=str(res.message),
    )


__all__ = [
    'run_lbfgs',
    'run_cg',
    'run_differential_evolution',
]
