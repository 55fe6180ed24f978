"""
Multi-mode damping curve fitting.

Architecture:
- dataset.py: SampleDataset (sorted target samples, range scalars)
- modes/: mode families with closed-form responses and analytic gradients
- objective.py: MultiModeObjective (least squares + soft-integer penalty)
- optimizers/: scipy and in-package optimizer backends, cancellation
- dispatch.py: optimizer selection, settings, FitResult
- session.py: background runs with at most one active fit
- curve.py: evaluation of fitted tables on arbitrary grids
- diagnostics.py: fit metrics and result logging
- config.py: configuration constants with documentation

Public API
----------
Mode Families:
- ModeFamily: ZERO_DAY, UNICORN, TWO_CITIES, THREE_WISE_MEN

Main Functions:
- fit_damping_curve: Fit a sum of modes to a damping curve
- run_optimizer: Run one optimizer on a prepared objective

Usage Example
-------------
```python
import numpy as np
from damping_analysis.fitting import fit_damping_curve, OptimizerSetting

omega = np.logspace(0, 2, 5)
zeta = 0.05 * 2 * (omega / 10) / (1 + (omega / 10) ** 2)

result = fit_damping_curve(np.vstack([omega, zeta]), 'zero_day', 1,
                           optimizer='lbfgs',
                           setting=OptimizerSetting(tolerance=1e-10), rng=0)
print(result.params)  # [[10.0, 0.05]]
```
"""

from .dataset import SampleDataset
from .modes import ModeFamily, ModeFamilySpec, ReparamBounds, get_family_spec
from .objective import MultiModeObjective, decimal_part, soft_integer_penalty
from .optimizers import CancellationToken
from .dispatch import (
    OptimizerSetting,
    OptimizerCapabilities,
    OPTIMIZERS,
    FitResult,
    resolve_hyperparameters,
    draw_initial_point,
    run_optimizer,
    fit_damping_curve,
)
from .session import FitSession
from .curve import evaluate_modes, round_orders
from .diagnostics import compute_fit_metrics, check_mode_diagnostics, log_fit_results

__all__ = [
    # Data
    'SampleDataset',

    # Mode families
    'ModeFamily',
    'ModeFamilySpec',
    'ReparamBounds',
    'get_family_spec',

    # Objective
    'MultiModeObjective',
    'decimal_part',
    'soft_integer_penalty',

    # Dispatch
    'OptimizerSetting',
    'OptimizerCapabilities',
    'OPTIMIZERS',
    'FitResult',
    'CancellationToken',
    'resolve_hyperparameters',
    'draw_initial_point',
    'run_optimizer',
    'fit_damping_curve',
    'FitSession',

    # Curves and diagnostics
    'evaluate_modes',
    'round_orders',
    'compute_fit_metrics',
    'check_mode_diagnostics',
    'log_fit_results',
]
