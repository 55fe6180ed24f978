"""
Synthetic damping curves for testing and demonstration.
"""

import numpy as np
import logging
from typing import Optional, Tuple
from numpy.typing import NDArray, ArrayLike

from ..fitting.curve import evaluate_modes
from ..fitting.modes import get_family_spec

logger = logging.getLogger(__name__)


def generate_synthetic_curve(
    family='zero_day',
    modes: ArrayLike = ((10.0, 0.05),),
    omega_range: Tuple[float, float] = (1e-1, 1e3),
    n_points: int = 40,
    noise: float = 0.0,
    rng: Optional[np.random.Generator] = None
) -> Tuple[NDArray[np.float64], NDArray[np.float64]]:
    """
    Generate a damping curve from known modes.

    Parameters
    ----------
    family : ModeFamily or str
        Mode family of ``modes``
    modes : array_like, shape (M, num_para)
        Physical parameters of each mode
    omega_range : tuple (w_min, w_max)
        Frequency band [rad/s], sampled log-uniformly
    n_points : int
        Number of samples
    noise : float
        Relative Gaussian noise level (0.01 = 1%)
    rng : numpy Generator, optional
        Random source for the noise

    Returns
    -------
    omega : ndarray of float
        Angular frequencies [rad/s]
    zeta : ndarray of float
        Damping ratios [-]
    """
    spec = get_family_spec(family)
    modes = np.atleast_2d(np.asarray(modes, dtype=float))

    logger.info("="*60)
    logger.info("Generating synthetic damping curve")
    logger.info("="*60)
    logger.info(f"Family: {spec.family.display_name}, {len(modes)} mode(s)")
    for i, p in enumerate(modes):
        values = ", ".join(f"{label}={v:.4g}" for label, v in zip(spec.param_labels, p))
        logger.info(f"  Mode {i + 1}: {values}")

    omega = np.logspace(np.log10(omega_range[0]), np.log10(omega_range[1]), n_points)
    zeta, _ = evaluate_modes(spec.family, modes, omega)

    if noise > 0:
        rng = np.random.default_rng() if rng is None else rng
        zeta = zeta + noise * np.abs(zeta) * rng.standard_normal(len(zeta))

    return omega, zeta


__all__ = ['generate_synthetic_curve']
