"""
Configuration constants for damping curve fitting.

Optimizer defaults, reparameterization ranges and fit quality
thresholds (relative RMS error in percent).
"""

# =============================================================================
# Sample Dataset
# =============================================================================

OMEGA_MARGIN_DECADES = 0.1
"""
Margin added on both sides of the sampled frequency range [decades].

The corner frequency of a mode is allowed to sit slightly outside the
measured band: min_omega = log10(min w) - 0.1 and
max_omega = log10(max w) + 0.1.
"""

MIN_OMEGA_RANGE = 1e-12
"""
Smallest admissible width of the log-frequency range [decades].

Only reachable with a single sample or repeated frequencies; keeps the
corner reparameterization and its derivative finite.
"""

# =============================================================================
# Reparameterization
# =============================================================================

GAMMA_OFFSET = 0.98
"""
Offset of the ThreeWiseMen shape parameter: gamma = x^2 - 0.98.

Guarantees gamma > -0.98 so cosh^2(L) + gamma >= 0.02 for every sample.
"""

DEFAULT_MAX_ORDER = 5.0
"""
Upper bound of soft-integer order parameters (Unicorn n, TwoCities n_r/n_l).

Orders are mapped as order = max_order * sigmoid(x), i.e. into (0, max_order).
"""

DEFAULT_PENALTY_WEIGHT = 1e-4
"""
Weight of the soft-integer penalty weight * sum(decimal(order)^2).

Small enough not to dominate the least-squares term for typical damping
ratios (1e-3 .. 1e-1), large enough to pull orders towards integers.
"""

# =============================================================================
# Optimizer Defaults
# =============================================================================

DEFAULT_STEP_SIZE = 1e-3
"""Step size of first-order optimizers."""

DEFAULT_TOLERANCE = 1e-8
"""Convergence tolerance on the objective (or gradient for quasi-Newton)."""

DEFAULT_MAX_ITER = 20000
"""Maximum number of iterations (generations for differential evolution)."""

DEFAULT_BATCH_SIZE = 32
"""Mini-batch size of stochastic optimizers."""

DEFAULT_BASIS_SIZE = 10
"""History length of the limited-memory quasi-Newton approximation."""

INIT_SPREAD = 2.0
"""
Standard deviation of the random initial raw vector.

x0 = 2 * N(0, 1); with the sigmoid maps this covers most of each
parameter's admissible range.
"""

DE_RAW_BOUND = 6.0
"""
Half-width of the raw search box for differential evolution.

sigmoid(6) = 0.9975, so +/-6 reaches nearly the full physical range.
"""

DE_POPSIZE = 15
"""Population size multiplier for differential evolution."""

# =============================================================================
# First-order optimizer tuning
# =============================================================================

DBD_KAPPA = 0.2
"""Additive step increase of delta-bar-delta when gradient signs agree."""

DBD_PHI = 0.2
"""Multiplicative step decrease of delta-bar-delta on sign change."""

DBD_THETA = 0.5
"""Decay of the delta-bar-delta exponential gradient average."""

DBD_MIN_STEP = 1e-8
"""Lower bound of per-parameter delta-bar-delta steps."""

MDBD_KAPPA = 0.2
"""Additive gain increase of momentum delta-bar-delta on sign change."""

MDBD_PHI = 0.8
"""Gains are multiplied by phi while gradient and velocity agree in sign."""

MDBD_MOMENTUM = 0.5
"""Momentum of momentum delta-bar-delta."""

MDBD_MIN_GAIN = 1e-8
"""Lower bound of per-parameter gains of momentum delta-bar-delta."""

ADAM_BETA1 = 0.9
"""Exponential decay of Adam's first moment."""

ADAM_BETA2 = 0.999
"""Exponential decay of Adam's second moment."""

ADAM_EPSILON = 1e-8
"""Denominator guard of Adam."""

DEMON_MOMENTUM = 0.9
"""Initial momentum of decaying-momentum SGD."""

AUGLAG_PENALTY_INIT = 10.0
"""Initial penalty parameter of the augmented Lagrangian."""

AUGLAG_PENALTY_GROWTH = 10.0
"""Penalty growth factor when constraint violation did not shrink enough."""

AUGLAG_MAX_OUTER = 100
"""Maximum number of outer (multiplier update) iterations."""

AUGLAG_CONSTRAINT_TOL = 1e-10
"""Total soft-integer constraint violation at which the outer loop stops."""

# =============================================================================
# Fit Quality Assessment
# =============================================================================

FIT_QUALITY_EXCELLENT_ERROR = 1.0
"""
Threshold for excellent fit [%].

Relative RMS error <1% of the curve magnitude.
"""

FIT_QUALITY_GOOD_ERROR = 10.0
"""
Threshold for good fit [%].

Relative error 1-10% is typical for a few modes fitted to a measured curve.
"""

__all__ = [
    'OMEGA_MARGIN_DECADES',
    'MIN_OMEGA_RANGE',
    'GAMMA_OFFSET',
    'DEFAULT_MAX_ORDER',
    'DEFAULT_PENALTY_WEIGHT',
    'DEFAULT_STEP_SIZE',
    'DEFAULT_TOLERANCE',
    'DEFAULT_MAX_ITER',
    'DEFAULT_BATCH_SIZE',
    'DEFAULT_BASIS_SIZE',
    'INIT_SPREAD',
    'DE_RAW_BOUND',
    'DE_POPSIZE',
    'DBD_KAPPA',
    'DBD_PHI',
    'DBD_THETA',
    'DBD_MIN_STEP',
    'MDBD_KAPPA',
    'MDBD_PHI',
    'MDBD_MOMENTUM',
    'MDBD_MIN_GAIN',
    'ADAM_BETA1',
    'ADAM_BETA2',
    'ADAM_EPSILON',
    'DEMON_MOMENTUM',
    'AUGLAG_PENALTY_INIT',
    'AUGLAG_PENALTY_GROWTH',
    'AUGLAG_MAX_OUTER',
    'AUGLAG_CONSTRAINT_TOL',
    'FIT_QUALITY_EXCELLENT_ERROR',
    'FIT_QUALITY_GOOD_ERROR',
]
