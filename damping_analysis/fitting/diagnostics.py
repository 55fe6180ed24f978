"""
Fit diagnostics and quality assessment for damping fits.

Provides fit quality metrics, per-mode plausibility checks (orders far
from integers, corners pinned to the band edge, vanishing modes) and
result logging.

Author: Damping Analysis Toolkit
"""

import numpy as np
import logging
from typing import List, Tuple
from numpy.typing import NDArray

from .config import FIT_QUALITY_EXCELLENT_ERROR, FIT_QUALITY_GOOD_ERROR, OMEGA_MARGIN_DECADES
from .modes import get_family_spec

logger = logging.getLogger(__name__)


def compute_fit_metrics(
    zeta: NDArray[np.float64],
    zeta_fit: NDArray[np.float64]
) -> Tuple[float, float, str]:
    """
    Compute fit error metrics and quality assessment.

    Parameters
    ----------
    zeta : ndarray of float
        Target damping ratios
    zeta_fit : ndarray of float
        Fitted damping ratios

    Returns
    -------
    fit_error_rel : float
        RMS error relative to the largest |zeta| [%]
    fit_error_abs : float
        RMS error [-]
    quality : str
        Quality assessment: 'excellent', 'good', 'acceptable', 'poor'

    Notes
    -----
    Damping curves often approach zero at the band edges, so the error
    is normalised by the curve magnitude instead of pointwise.
    """
    zeta = np.asarray(zeta, dtype=float)
    zeta_fit = np.asarray(zeta_fit, dtype=float)

    fit_error_abs = float(np.sqrt(np.mean((zeta - zeta_fit) ** 2)))
    scale = max(float(np.max(np.abs(zeta))), 1e-15)
    fit_error_rel = fit_error_abs / scale * 100

    # Quality assessment
    if fit_error_rel < FIT_QUALITY_EXCELLENT_ERROR:
        quality = 'excellent'
    elif fit_error_rel < FIT_QUALITY_GOOD_ERROR:
        quality = 'good'
    elif fit_error_rel < FIT_QUALITY_GOOD_ERROR * 2:
        quality = 'acceptable'
    else:
        quality = 'poor'

    return fit_error_rel, fit_error_abs, quality


def check_mode_diagnostics(result, dataset, order_tolerance: float = 0.1) -> List[str]:
    """
    Check fitted modes for implausible values.

    Parameters
    ----------
    result : FitResult
        Fit to inspect
    dataset : SampleDataset
        Dataset the fit was run on
    order_tolerance : float, optional
        Allowed distance of orders from the nearest integer (default: 0.1)

    Returns
    -------
    warnings : list of str
        Human-readable findings (also logged as warnings)
    """
    spec = get_family_spec(result.family)
    findings = []

    log_corner = np.log10(result.params[:, 0])
    edge = 0.5 * OMEGA_MARGIN_DECADES
    for i, lc in enumerate(log_corner):
        if lc < dataset.min_omega + edge or lc > dataset.max_omega - edge:
            findings.append(f"Mode {i + 1}: corner {10 ** lc:.3g} at the edge of the sampled band")

    peak_floor = 1e-3 * max(abs(dataset.max_zeta), 1e-15)
    for i, peak in enumerate(result.params[:, 1]):
        if peak < peak_floor:
            findings.append(f"Mode {i + 1}: peak {peak:.3g} is negligible (redundant mode?)")

    for slot in spec.order_slots:
        label = spec.param_labels[slot]
        for i, order in enumerate(result.params[:, slot]):
            if abs(order - np.round(order)) > order_tolerance:
                findings.append(f"Mode {i + 1}: {label} = {order:.3f} is not close to an integer")

    if findings:
        logger.warning("=" * 50)
        logger.warning("WARNING: Some fitted modes look implausible!")
        for msg in findings:
            logger.warning(f"  {msg}")
        if spec.has_orders:
            logger.warning("  Recommendation: increase the penalty weight or use aug_lagrangian")
        logger.warning("=" * 50)

    return findings


def log_fit_results(result) -> None:
    """
    Log fit results to console.

    Parameters
    ----------
    result : FitResult
        Fit to report
    """
    logger.info("")
    logger.info("Fit results:")
    logger.info(f"  Optimizer: {result.optimizer} ({result.message})")
    logger.info(f"  Iterations: {result.n_iterations}, evaluations: {result.n_evaluations}")
    logger.info("  Modes:")

    header = "  ".join(f"{label:>12s}" for label in result.param_labels)
    logger.info(f"    {'#':>3s}  {header}")
    for i, row in enumerate(result.params):
        values = "  ".join(f"{v:12.5e}" for v in row)
        logger.info(f"    {i + 1:3d}  {values}")

    logger.info(f"  Objective: {result.loss:.6e}")
    logger.info(f"  Fit error: {result.fit_error_rel:.2f}% (rel), {result.fit_error_abs:.3e} (abs)")

    if result.cancelled:
        logger.warning("  Optimization was cancelled; parameters are the last accepted iterate")
    elif not result.converged:
        logger.warning("  Optimizer did not converge within the iteration budget")

    if result.quality == 'excellent':
        logger.info(f"  Quality: Excellent (<{FIT_QUALITY_EXCELLENT_ERROR}%)")
    elif result.quality == 'good':
        logger.info(f"  Quality: Good (<{FIT_QUALITY_GOOD_ERROR}%)")
    elif result.quality == 'acceptable':
        logger.warning("  Quality: Acceptable (consider more modes or another family)")
    else:
        logger.warning("  Quality: POOR! Modes do not fit the curve")


__all__ = [
    'compute_fit_metrics',
    'check_mode_diagnostics',
    'log_fit_results',
]
