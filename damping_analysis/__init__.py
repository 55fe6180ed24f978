"""
Damping Analysis Toolkit
========================

Fitting of frequency-dependent damping curves with sums of closed-form
damping modes (ZeroDay, Unicorn, TwoCities, ThreeWiseMen).

Modules:
- io: Synthetic curve generation
- fitting: Mode families, objective, optimizers and fitting sessions
- utils: Exception hierarchy
- cli: Command line interface

Version is imported from damping_analysis.version (single source of truth).
"""

# Import version from single source of truth
from .version import __version__, __version_info__, get_version_string

# Errors
from .utils import DampingAnalysisError, InvalidInputError, NumericDegenerateError

# I/O
from .io import generate_synthetic_curve

# Fitting
from .fitting import (
    SampleDataset,
    ModeFamily,
    MultiModeObjective,
    OptimizerSetting,
    OPTIMIZERS,
    FitResult,
    CancellationToken,
    run_optimizer,
    fit_damping_curve,
    FitSession,
    evaluate_modes,
    round_orders,
)

__all__ = [
    # Version info
    '__version__',
    '__version_info__',
    'get_version_string',
    # Errors
    'DampingAnalysisError',
    'InvalidInputError',
    'NumericDegenerateError',
    # I/O
    'generate_synthetic_curve',
    # Fitting
    'SampleDataset',
    'ModeFamily',
    'MultiModeObjective',
    'OptimizerSetting',
    'OPTIMIZERS',
    'FitResult',
    'CancellationToken',
    'run_optimizer',
    'fit_damping_curve',
    'FitSession',
    'evaluate_modes',
    'round_orders',
]
