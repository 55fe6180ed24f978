"""
Workflow handlers for the damping CLI.

Each handler takes the loaded curve and/or parsed arguments, runs one
step and logs its outcome.
"""

import argparse
import logging
from typing import Optional

import numpy as np

from .logging import log_separator
from .utils import LoadedCurve, build_setting
from ..fitting import (
    OPTIMIZERS,
    FitResult,
    SampleDataset,
    fit_damping_curve,
    round_orders,
    evaluate_modes,
    compute_fit_metrics,
    check_mode_diagnostics,
    log_fit_results,
)
from ..fitting.dispatch import settings_dict

logger = logging.getLogger(__name__)


def run_list_optimizers() -> None:
    """Log the optimizer capability table."""
    log_separator(78)
    logger.info(f"{'optimizer':26s} {'step':>5s} {'tol':>5s} {'batch':>6s} "
                f"{'basis':>6s} {'grad':>5s} {'constr':>7s} {'stoch':>6s}")
    log_separator(78, '-')

    def mark(flag):
        return 'x' if flag else '-'

    for name, caps in OPTIMIZERS.items():
        logger.info(
            f"{name:26s} {mark(caps.supports_step_size):>5s} {mark(caps.supports_tolerance):>5s} "
            f"{mark(caps.supports_batch_size):>6s} {mark(caps.supports_basis_size):>6s} "
            f"{mark(caps.uses_gradient):>5s} {mark(caps.uses_constraints):>7s} "
            f"{mark(caps.stochastic):>6s}"
        )
    log_separator(78)


def run_fitting(curve: LoadedCurve, args: argparse.Namespace) -> FitResult:
    """
    Fit the curve with the family, mode count and optimizer from args.

    Parameters
    ----------
    curve : LoadedCurve
        Curve to fit
    args : argparse.Namespace
        CLI arguments (uses: family, modes, optimizer, samples,
        linear_interp, seed and all optimizer settings)

    Returns
    -------
    result : FitResult
    """
    setting = build_setting(args)

    log_separator()
    logger.info(f"Fitting {args.modes} {args.family} mode(s) to '{curve.title}'")
    log_separator()
    logger.debug(f"Settings: {settings_dict(setting)}")

    dataset = SampleDataset(curve.samples)
    if args.samples is not None:
        logger.info(f"Resampling onto {args.samples} points "
                    f"({'linear' if args.linear_interp else 'log'} interpolation)")

    result = fit_damping_curve(
        dataset,
        family=args.family,
        num_modes=args.modes,
        optimizer=args.optimizer,
        setting=setting,
        rng=args.seed,
        resample=args.samples,
        log_scale=not args.linear_interp,
    )

    log_fit_results(result)
    check_mode_diagnostics(result, dataset)

    logger.info("")
    logger.info("Mode summary:")
    for line in result.describe():
        logger.info(f"  {line}")

    return result


def run_order_rounding(result: FitResult, curve: LoadedCurve) -> Optional[np.ndarray]:
    """
    Report the fit with orders snapped to integers.

    Returns the rounded table, or None for families without orders.
    """
    table = round_orders(result.family, result.params)
    if np.array_equal(table, result.params):
        logger.info("Orders already integral (or family has no orders)")
        return None

    zeta_fit, _ = evaluate_modes(result.family, table, curve.omega)
    rel, abs_err, quality = compute_fit_metrics(curve.zeta, zeta_fit)

    logger.info("")
    logger.info("Rounded orders:")
    for i, row in enumerate(table):
        logger.info(f"    {i + 1:3d}  " + "  ".join(f"{v:12.5e}" for v in row))
    logger.info(f"  Fit error after rounding: {rel:.2f}% (rel), {abs_err:.3e} (abs), {quality}")
    return table


__all__ = [
    'run_list_optimizers',
    'run_fitting',
    'run_order_rounding',
]
