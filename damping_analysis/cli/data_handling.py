"""
Curve preparation for the damping CLI.

Contains:
- load_curve: Generate the synthetic demo curve
- filter_by_frequency: Apply frequency range filter
"""

import argparse
import logging

import numpy as np

from .utils import LoadedCurve, parse_mode_table
from ..io import generate_synthetic_curve
from ..utils.errors import InvalidInputError

logger = logging.getLogger(__name__)


# =============================================================================
# Synthetic Curve Configuration
# =============================================================================
# Default parameters for the synthetic curve demo
# Two well separated ZeroDay peaks, as in a Rayleigh-like damping band

SYNTHETIC_CURVE_PARAMS = {
    'family': 'zero_day',
    'modes': '10,0.04; 300,0.02',   # (corner [rad/s], peak [-]) per mode
    'omega_range': (1e-1, 1e4),      # Sampled band [rad/s]
    'n_points': 60,
    'noise': 0.0,                    # Relative noise level
}


# =============================================================================
# Curve Loading
# =============================================================================

def load_curve(args: argparse.Namespace) -> LoadedCurve:
    """
    Generate the synthetic damping curve described by the arguments.

    Parameters
    ----------
    args : argparse.Namespace
        Parsed command line arguments. Uses:
        - args.demo_family, args.demo_modes: curve definition
        - args.omega_min, args.omega_max, args.points, args.noise, args.seed

    Returns
    -------
    LoadedCurve
        Container with omega, zeta and title
    """
    family = args.demo_family or SYNTHETIC_CURVE_PARAMS['family']
    modes = parse_mode_table(args.demo_modes or SYNTHETIC_CURVE_PARAMS['modes'], family)

    omega_min, omega_max = SYNTHETIC_CURVE_PARAMS['omega_range']
    omega_min = args.omega_min if args.omega_min is not None else omega_min
    omega_max = args.omega_max if args.omega_max is not None else omega_max
    if not 0 < omega_min < omega_max:
        raise InvalidInputError(
            f"Invalid frequency band [{omega_min}, {omega_max}]: need 0 < min < max"
        )

    omega, zeta = generate_synthetic_curve(
        family=family,
        modes=modes,
        omega_range=(omega_min, omega_max),
        n_points=args.points or SYNTHETIC_CURVE_PARAMS['n_points'],
        noise=args.noise if args.noise is not None else SYNTHETIC_CURVE_PARAMS['noise'],
        rng=np.random.default_rng(args.seed),
    )
    return LoadedCurve(omega=omega, zeta=zeta, title="Synthetic curve")


# =============================================================================
# Data Filtering
# =============================================================================

def filter_by_frequency(curve: LoadedCurve, args: argparse.Namespace) -> LoadedCurve:
    """
    Keep only samples inside [args.fit_min, args.fit_max].

    Raises
    ------
    InvalidInputError
        If no samples remain after filtering
    """
    if args.fit_min is None and args.fit_max is None:
        return curve

    mask = np.ones(len(curve.omega), dtype=bool)
    if args.fit_min is not None:
        mask &= (curve.omega >= args.fit_min)
        logger.info(f"Applying fit_min = {args.fit_min} rad/s")
    if args.fit_max is not None:
        mask &= (curve.omega <= args.fit_max)
        logger.info(f"Applying fit_max = {args.fit_max} rad/s")

    if not np.any(mask):
        raise InvalidInputError("No samples left after frequency filtering!")

    logger.info(f"Samples: {len(curve.omega)} -> {int(np.sum(mask))}")
    return LoadedCurve(omega=curve.omega[mask], zeta=curve.zeta[mask], title=curve.title)


__all__ = [
    'SYNTHETIC_CURVE_PARAMS',
    'load_curve',
    'filter_by_frequency',
]
