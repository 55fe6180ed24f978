"""
Augmented Lagrangian treatment of the soft-integer constraints.

Each soft-integer order contributes an equality constraint
c_k(x) = weight * decimal(order_k)^2 = 0. The outer loop minimises

    L(x) = f(x) - sum_k lambda_k c_k(x) + sigma/2 * sum_k c_k(x)^2

with L-BFGS-B, then either updates the multipliers (violation shrank by
at least a factor of four) or grows sigma. Families without orders have
no constraints and reduce to a single L-BFGS-B solve.
"""

import logging
from typing import Dict

import numpy as np
from numpy.typing import NDArray
from scipy.optimize import minimize

from ..config import (
    AUGLAG_PENALTY_INIT,
    AUGLAG_PENALTY_GROWTH,
    AUGLAG_MAX_OUTER,
    AUGLAG_CONSTRAINT_TOL,
)
from .callbacks import EarlyQuit, OptimizerOutcome

logger = logging.getLogger(__name__)


def _constraints(objective, x):
    m = objective.num_constraints()
    c = np.array([objective.evaluate_constraint(k, x) for k in range(m)])
    dc = [objective.gradient_constraint(k, x) for k in range(m)]
    return c, dc


def run_aug_lagrangian(objective, x0: NDArray[np.float64], params: Dict,
                       observer: EarlyQuit, rng=None) -> OptimizerOutcome:
    """
    Outer multiplier loop around L-BFGS-B inner solves.

    ``max_iter`` bounds the total number of inner iterations;
    ``basis_size`` is passed to the inner quasi-Newton solver.
    """
    m = objective.num_constraints()
    lam = np.zeros(m)
    sigma = AUGLAG_PENALTY_INIT
    budget = params['max_iter']

    x = np.array(x0, dtype=float, copy=True)
    last_violation = np.inf
    total_iter = 0

    def lagrangian(z):
        loss, grad = objective.evaluate_with_gradient(z)
        observer.evaluate(z, loss)
        if m:
            c, dc = _constraints(objective, z)
            loss += float(np.sum((-lam + 0.5 * sigma * c) * c))
            for k in range(m):
                grad = grad + (-lam[k] + sigma * c[k]) * dc[k]
        observer.gradient(z, grad)
        return loss, grad

    def callback(intermediate_result):
        observer.step_taken(intermediate_result.x)

    for outer in range(1, AUGLAG_MAX_OUTER + 1):
        res = minimize(
            lagrangian,
            x,
            jac=True,
            method='L-BFGS-B',
            callback=callback,
            options={'maxiter': budget - total_iter, 'maxcor': params['basis_size']},
        )
        x = res.x
        total_iter += int(res.nit)

        c = _constraints(objective, x)[0] if m else np.zeros(0)
        violation = float(np.sum(c))
        logger.debug(
            f"Augmented Lagrangian outer {outer}: violation {violation:.3e}, sigma {sigma:.1e}"
        )

        if violation < AUGLAG_CONSTRAINT_TOL:
            return OptimizerOutcome(
                x=x, loss=objective.evaluate(x), n_iterations=total_iter, converged=True,
                message=f"Constraints satisfied after {outer} outer iterations",
            )
        if total_iter >= budget:
            break

        if violation < 0.25 * last_violation:
            lam = lam - sigma * c
        else:
            sigma *= AUGLAG_PENALTY_GROWTH
        last_violation = violation

    return OptimizerOutcome(
        x=x, loss=objective.evaluate(x), n_iterations=total_iter, converged=False,
        message="Iteration budget exhausted before constraints were satisfied",
    )


__all__ = ['run_aug_lagrangian']
