"""
Utility functions and dataclasses for the damping CLI.

Contains:
- Data containers (dataclasses)
- Helper functions (parse_mode_table, build_setting)
"""

import argparse
import logging
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from ..fitting import OptimizerSetting, get_family_spec
from ..utils.errors import InvalidInputError

logger = logging.getLogger(__name__)


# =============================================================================
# Data Classes
# =============================================================================

@dataclass
class LoadedCurve:
    """
    Container for a damping curve to be fitted.

    Attributes
    ----------
    omega : ndarray
        Angular frequencies [rad/s]
    zeta : ndarray
        Damping ratios [-]
    title : str
        Curve title ("Synthetic curve")
    """
    omega: NDArray[np.float64]
    zeta: NDArray[np.float64]
    title: str

    @property
    def samples(self) -> NDArray[np.float64]:
        return np.vstack([self.omega, self.zeta])


# =============================================================================
# Helpers
# =============================================================================

def parse_mode_table(expr: str, family) -> NDArray[np.float64]:
    """
    Parse a mode table from the command line.

    Modes are separated by ';', parameters by ','. Example for two
    ZeroDay modes: "10,0.05; 300,0.02".

    Raises
    ------
    InvalidInputError
        If a value is not a number or a mode has the wrong parameter count
    """
    spec = get_family_spec(family)
    rows = []
    for chunk in expr.split(';'):
        if not chunk.strip():
            continue
        try:
            row = [float(v) for v in chunk.split(',')]
        except ValueError as e:
            raise InvalidInputError(f"Invalid mode definition '{chunk.strip()}': {e}") from e
        if len(row) != spec.num_para:
            raise InvalidInputError(
                f"{spec.family.display_name} mode needs {spec.num_para} values "
                f"({', '.join(spec.param_labels)}), got '{chunk.strip()}'"
            )
        rows.append(row)
    if not rows:
        raise InvalidInputError(f"No modes in '{expr}'")
    return np.array(rows)


def build_setting(args: argparse.Namespace) -> OptimizerSetting:
    """Collect optimizer knobs from parsed arguments."""
    setting = OptimizerSetting(
        step_size=args.step_size,
        tolerance=args.tolerance,
        max_iter=args.max_iter,
        weight=args.weight,
        max_order=args.max_order,
        batch_size=args.batch_size,
        basis_size=args.basis_size,
    )
    setting.validate()
    return setting


__all__ = [
    'LoadedCurve',
    'parse_mode_table',
    'build_setting',
]
