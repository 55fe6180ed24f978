"""
Optimizer dispatch for multi-mode damping fits.

Maps an optimizer name onto a backend, applies the subset of
OptimizerSetting knobs the backend understands, draws the random
initial point, wires the cancellation token into the run and decodes
the final raw vector into a physical parameter table.

Optimizer capabilities
----------------------
Knobs an optimizer does not support are dropped silently (logged at
DEBUG level). The table is explicit:

=========================  ====  ===  =====  =====  ========  ==========
name                       step  tol  batch  basis  gradient  stochastic
=========================  ====  ===  =====  =====  ========  ==========
lbfgs                       -     x     -      x       x          -
cg                          -     x     -      -       x          -
gradient_descent            x     x     -      -       x          -
delta_bar_delta             x     x     -      -       x          -
momentum_delta_bar_delta    x     x     -      -       x          -
sgd                         x     x     x      -       x          x
adam                        x     x     x      -       x          x
demon_sgd                   x     x     x      -       x          x
aug_lagrangian              -     -     -      x       x          -
differential_evolution      -     x     -      -       -          x
=========================  ====  ===  =====  =====  ========  ==========

max_iter applies to every optimizer.
"""

import logging
from dataclasses import dataclass, field, asdict
from typing import Callable, Dict, List, Optional

import numpy as np
from numpy.typing import NDArray

from .config import (
    DEFAULT_STEP_SIZE, DEFAULT_TOLERANCE, DEFAULT_MAX_ITER,
    DEFAULT_PENALTY_WEIGHT, DEFAULT_MAX_ORDER, DEFAULT_BATCH_SIZE,
    DEFAULT_BASIS_SIZE, INIT_SPREAD,
)
from .curve import evaluate_modes
from .dataset import as_dataset
from .diagnostics import compute_fit_metrics
from .modes import ModeFamily, TYPE_CODES
from .objective import MultiModeObjective
from .optimizers import (
    CancellationToken, EarlyQuit, OptimizationStopped, OptimizerOutcome,
    run_lbfgs, run_cg, run_differential_evolution,
    run_gradient_descent, run_delta_bar_delta, run_momentum_delta_bar_delta,
    run_sgd, run_adam, run_demon_sgd, run_aug_lagrangian,
)
from ..utils.errors import DampingAnalysisError, InvalidInputError

logger = logging.getLogger(__name__)


# =============================================================================
# Settings and capabilities
# =============================================================================

@dataclass
class OptimizerSetting:
    """
    Hyperparameters of one fitting run.

    Attributes
    ----------
    step_size : float
        Step size of first-order optimizers (default: 1e-3)
    tolerance : float
        Convergence tolerance (default: 1e-8)
    max_iter : int
        Iteration budget (default: 20000)
    weight : float
        Soft-integer penalty weight (default: 1e-4)
    max_order : float
        Upper bound of order parameters (default: 5)
    batch_size : int
        Mini-batch size of stochastic optimizers (default: 32)
    basis_size : int
        Quasi-Newton history length (default: 10)
    """
    step_size: float = DEFAULT_STEP_SIZE
    tolerance: float = DEFAULT_TOLERANCE
    max_iter: int = DEFAULT_MAX_ITER
    weight: float = DEFAULT_PENALTY_WEIGHT
    max_order: float = DEFAULT_MAX_ORDER
    batch_size: int = DEFAULT_BATCH_SIZE
    basis_size: int = DEFAULT_BASIS_SIZE

    def validate(self) -> None:
        """Raise InvalidInputError for out-of-range values."""
        if not self.step_size > 0:
            raise InvalidInputError(f"step_size must be > 0, got {self.step_size}")
        if not self.tolerance >= 0:
            raise InvalidInputError(f"tolerance must be >= 0, got {self.tolerance}")
        if int(self.max_iter) != self.max_iter or self.max_iter < 1:
            raise InvalidInputError(f"max_iter must be a positive integer, got {self.max_iter}")
        if not self.weight >= 0:
            raise InvalidInputError(f"weight must be >= 0, got {self.weight}")
        if not self.max_order > 0:
            raise InvalidInputError(f"max_order must be > 0, got {self.max_order}")
        if int(self.batch_size) != self.batch_size or self.batch_size < 1:
            raise InvalidInputError(f"batch_size must be a positive integer, got {self.batch_size}")
        if int(self.basis_size) != self.basis_size or self.basis_size < 1:
            raise InvalidInputError(f"basis_size must be a positive integer, got {self.basis_size}")


@dataclass(frozen=True)
class OptimizerCapabilities:
    """Which OptimizerSetting knobs an optimizer honours, and how it works."""
    runner: Callable
    supports_step_size: bool = False
    supports_tolerance: bool = False
    supports_batch_size: bool = False
    supports_basis_size: bool = False
    supports_max_iter: bool = True
    uses_gradient: bool = True
    uses_constraints: bool = False
    stochastic: bool = False


OPTIMIZERS: Dict[str, OptimizerCapabilities] = {
    'lbfgs': OptimizerCapabilities(
        run_lbfgs, supports_tolerance=True, supports_basis_size=True),
    'cg': OptimizerCapabilities(
        run_cg, supports_tolerance=True),
    'gradient_descent': OptimizerCapabilities(
        run_gradient_descent, supports_step_size=True, supports_tolerance=True),
    'delta_bar_delta': OptimizerCapabilities(
        run_delta_bar_delta, supports_step_size=True, supports_tolerance=True),
    'momentum_delta_bar_delta': OptimizerCapabilities(
        run_momentum_delta_bar_delta, supports_step_size=True, supports_tolerance=True),
    'sgd': OptimizerCapabilities(
        run_sgd, supports_step_size=True, supports_tolerance=True,
        supports_batch_size=True, stochastic=True),
    'adam': OptimizerCapabilities(
        run_adam, supports_step_size=True, supports_tolerance=True,
        supports_batch_size=True, stochastic=True),
    'demon_sgd': OptimizerCapabilities(
        run_demon_sgd, supports_step_size=True, supports_tolerance=True,
        supports_batch_size=True, stochastic=True),
    'aug_lagrangian': OptimizerCapabilities(
        run_aug_lagrangian, supports_basis_size=True, uses_constraints=True),
    'differential_evolution': OptimizerCapabilities(
        run_differential_evolution, supports_tolerance=True,
        uses_gradient=False, stochastic=True),
}

OPTIMIZER_ALIASES = {
    'l_bfgs': 'lbfgs',
    'conjugate_gradient': 'cg',
    'gd': 'gradient_descent',
    'augmented_lagrangian': 'aug_lagrangian',
    'auglagrangian': 'aug_lagrangian',
    'de': 'differential_evolution',
    'demon': 'demon_sgd',
}

_KNOBS = (
    ('step_size', 'supports_step_size'),
    ('tolerance', 'supports_tolerance'),
    ('max_iter', 'supports_max_iter'),
    ('batch_size', 'supports_batch_size'),
    ('basis_size', 'supports_basis_size'),
)


def normalize_optimizer_name(name: str) -> str:
    """Canonical optimizer key; raises InvalidInputError for unknown names."""
    key = str(name).strip().lower().replace('-', '_').replace(' ', '_')
    key = OPTIMIZER_ALIASES.get(key, key)
    if key not in OPTIMIZERS:
        valid = ', '.join(OPTIMIZERS)
        raise InvalidInputError(f"Unknown optimizer '{name}'. Valid: {valid}")
    return key


def get_capabilities(name: str) -> OptimizerCapabilities:
    return OPTIMIZERS[normalize_optimizer_name(name)]


def resolve_hyperparameters(name: str, setting: OptimizerSetting) -> Dict:
    """
    Select the knobs of ``setting`` that optimizer ``name`` honours.

    Returns
    -------
    params : dict
        Subset of {'step_size', 'tolerance', 'max_iter', 'batch_size',
        'basis_size'} with values from ``setting``.
    """
    key = normalize_optimizer_name(name)
    caps = OPTIMIZERS[key]
    params, ignored = {}, []
    for knob, flag in _KNOBS:
        if getattr(caps, flag):
            params[knob] = getattr(setting, knob)
        else:
            ignored.append(knob)
    if ignored:
        logger.debug(f"{key}: ignoring {', '.join(ignored)}")
    return params


def draw_initial_point(size: int, rng: Optional[np.random.Generator] = None) -> NDArray[np.float64]:
    """Random raw vector INIT_SPREAD * N(0, 1)."""
    rng = np.random.default_rng(rng)
    return INIT_SPREAD * rng.standard_normal(size)


# =============================================================================
# Result
# =============================================================================

@dataclass
class FitResult:
    """
    Result of a multi-mode damping fit.

    Attributes
    ----------
    family : ModeFamily
        Mode family of the fit
    optimizer : str
        Canonical optimizer name
    params : ndarray, shape (M, num_para)
        Physical parameters, one row per mode
    raw : ndarray
        Final raw (unconstrained) vector
    loss : float
        Objective value at ``raw`` (including soft-integer penalty)
    n_evaluations : int
        Objective evaluations performed
    n_iterations : int
        Iterations reported by the optimizer
    converged : bool
        True if the optimizer met its stopping criterion
    cancelled : bool
        True if the run was stopped through the cancellation token
    message : str
        Optimizer status message
    fit_error_rel : float
        Relative RMS error of the fitted curve [%]
    fit_error_abs : float
        Absolute RMS error of the fitted curve
    quality : str
        'excellent', 'good', 'acceptable' or 'poor'
    param_labels : list of str
        Column labels of ``params``
    applied_settings : dict
        Knobs that were actually passed to the optimizer
    """
    family: ModeFamily
    optimizer: str
    params: NDArray[np.float64]
    raw: NDArray[np.float64]
    loss: float
    n_evaluations: int = 0
    n_iterations: int = 0
    converged: bool = False
    cancelled: bool = False
    message: str = ""
    fit_error_rel: float = float('nan')
    fit_error_abs: float = float('nan')
    quality: str = "unknown"
    param_labels: List[str] = field(default_factory=list)
    applied_settings: Dict = field(default_factory=dict)

    @property
    def num_modes(self) -> int:
        return self.params.shape[0]

    def as_rows(self) -> List[Dict[str, float]]:
        """One {label: value} dict per mode."""
        return [dict(zip(self.param_labels, map(float, row))) for row in self.params]

    def describe(self) -> List[str]:
        """Mode summaries in the 'Type k --- corner peak ...' format."""
        code = TYPE_CODES[self.family]
        return [
            f"Type {code} --- " + " ".join(f"{v:g}" for v in row)
            for row in self.params
        ]

    def __repr__(self) -> str:
        status = "cancelled" if self.cancelled else ("converged" if self.converged else "not converged")
        return (
            f"FitResult({self.family.display_name}, {self.num_modes} mode(s), "
            f"optimizer={self.optimizer}, loss={self.loss:.3e}, {status})"
        )


# =============================================================================
# Dispatch
# =============================================================================

def run_optimizer(
    objective: MultiModeObjective,
    optimizer: str = 'lbfgs',
    setting: Optional[OptimizerSetting] = None,
    cancel_token: Optional[CancellationToken] = None,
    rng=None
) -> FitResult:
    """
    Run one optimizer on an objective and decode the result.

    Parameters
    ----------
    objective : MultiModeObjective
        Objective to minimise; its weight and max_order are overwritten
        from ``setting``
    optimizer : str, optional
        Optimizer name, see OPTIMIZERS (default: 'lbfgs')
    setting : OptimizerSetting, optional
        Hyperparameters (default: OptimizerSetting())
    cancel_token : CancellationToken, optional
        Cooperative cancellation; when set, the last accepted iterate is
        returned (the random initial point if set before the run)
    rng : int or numpy Generator, optional
        Random source for the initial point and stochastic optimizers

    Returns
    -------
    result : FitResult
        Decoded parameter table and run metadata

    Raises
    ------
    InvalidInputError
        Unknown optimizer or invalid settings
    NumericDegenerateError
        Non-finite objective encountered
    RuntimeError
        Unexpected failure inside the optimizer backend
    """
    name = normalize_optimizer_name(optimizer)
    caps = OPTIMIZERS[name]
    setting = OptimizerSetting() if setting is None else setting
    setting.validate()

    objective.weight = setting.weight
    objective.max_order = setting.max_order

    rng = np.random.default_rng(rng)
    params = resolve_hyperparameters(name, setting)
    x0 = draw_initial_point(objective.size, rng)
    observer = EarlyQuit(cancel_token)

    logger.info(
        f"Optimizing {objective.num_modes} {objective.family.display_name} mode(s) "
        f"on {objective.dataset.n_samples} samples with {name}"
    )
    logger.debug(f"Hyperparameters: {params}, weight={setting.weight:g}, max_order={setting.max_order:g}")

    cancelled = False
    try:
        observer.begin_optimization(x0)
        outcome = caps.runner(objective, x0, params, observer, rng)
    except OptimizationStopped:
        cancelled = True
        x_last = observer.last_x
        outcome = OptimizerOutcome(
            x=x_last, loss=objective.evaluate(x_last), n_iterations=observer.n_steps,
            converged=False, message="Cancelled",
        )
        logger.info(f"Optimization cancelled after {observer.n_steps} step(s)")
    except DampingAnalysisError:
        raise
    except Exception as e:
        logger.error(f"Optimizer failed: {type(e).__name__}: {e}")
        raise RuntimeError(f"Optimizer '{name}' failed: {e}") from e

    table = objective.decode(outcome.x)
    dataset = objective.dataset
    zeta_fit, _ = evaluate_modes(objective.family, table, dataset.omega)
    fit_error_rel, fit_error_abs, quality = compute_fit_metrics(dataset.zeta, zeta_fit)

    result = FitResult(
        family=objective.family,
        optimizer=name,
        params=table,
        raw=np.asarray(outcome.x, dtype=float),
        loss=float(outcome.loss),
        n_evaluations=observer.n_evaluations,
        n_iterations=int(outcome.n_iterations),
        converged=bool(outcome.converged),
        cancelled=cancelled,
        message=outcome.message,
        fit_error_rel=fit_error_rel,
        fit_error_abs=fit_error_abs,
        quality=quality,
        param_labels=list(objective.spec.param_labels),
        applied_settings=params,
    )
    logger.debug(f"{result!r}: {outcome.message}")
    return result


def fit_damping_curve(
    samples,
    family='zero_day',
    num_modes: int = 1,
    optimizer: str = 'lbfgs',
    setting: Optional[OptimizerSetting] = None,
    cancel_token: Optional[CancellationToken] = None,
    rng=None,
    resample: Optional[int] = None,
    log_scale: bool = True
) -> FitResult:
    """
    Fit a damping curve with a sum of modes.

    All inputs are validated before the objective is built.

    Parameters
    ----------
    samples : SampleDataset or array_like (2, N)
        Target curve: row 0 angular frequencies (> 0), row 1 damping ratios
    family : ModeFamily or str, optional
        Mode family (default: 'zero_day')
    num_modes : int, optional
        Number of modes (default: 1)
    optimizer : str, optional
        Optimizer name (default: 'lbfgs')
    setting : OptimizerSetting, optional
        Hyperparameters
    cancel_token : CancellationToken, optional
        Cooperative cancellation
    rng : int or numpy Generator, optional
        Random source
    resample : int, optional
        Interpolate the curve onto this many log-spaced samples first
    log_scale : bool, optional
        Interpolate against log10(w) when resampling (default: True)

    Returns
    -------
    result : FitResult
    """
    family = ModeFamily.from_name(family)
    if int(num_modes) != num_modes or num_modes < 1:
        raise InvalidInputError(f"Number of modes must be a positive integer, got {num_modes}")
    normalize_optimizer_name(optimizer)
    setting = OptimizerSetting() if setting is None else setting
    setting.validate()

    dataset = as_dataset(samples)
    if resample is not None:
        dataset = dataset.resample(resample, log_scale=log_scale)

    objective = MultiModeObjective(
        family, num_modes, dataset, weight=setting.weight, max_order=setting.max_order
    )
    return run_optimizer(objective, optimizer, setting, cancel_token, rng)


def settings_dict(setting: OptimizerSetting) -> Dict:
    """Plain dict of all knobs (for logging and reports)."""
    return asdict(setting)


__all__ = [
    'OptimizerSetting',
    'OptimizerCapabilities',
    'OPTIMIZERS',
    'FitResult',
    'normalize_optimizer_name',
    'get_capabilities',
    'resolve_hyperparameters',
    'draw_initial_point',
    'run_optimizer',
    'fit_damping_curve',
    'settings_dict',
    'CancellationToken',
]
