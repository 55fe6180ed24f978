"""
Argument parsing for the damping CLI.

Provides structured argument parsing with logical grouping:
- Curve options (synthetic demo curve)
- Fitting options
- Optimizer settings
- Output options
"""

import argparse
from typing import List, Optional

from ..fitting import OPTIMIZERS, ModeFamily
from ..fitting.config import (
    DEFAULT_STEP_SIZE, DEFAULT_TOLERANCE, DEFAULT_MAX_ITER,
    DEFAULT_PENALTY_WEIGHT, DEFAULT_MAX_ORDER, DEFAULT_BATCH_SIZE,
    DEFAULT_BASIS_SIZE,
)
from ..version import get_version_string

FAMILY_CHOICES = [f.value for f in ModeFamily]


class OnePerLineHelpFormatter(argparse.RawDescriptionHelpFormatter):
    """Custom formatter that puts each option on a separate line in usage."""

    def _format_usage(self, usage, actions, groups, prefix):
        if prefix is None:
            prefix = 'usage: '

        if usage is not None:
            usage = usage % dict(prog=self._prog)
            return f'{prefix}{usage}\n\n'

        prog = '%(prog)s' % dict(prog=self._prog)
        lines = [f'{prefix}{prog}']
        for action in actions:
            if not action.option_strings:
                continue
            option = action.option_strings[0]
            if action.nargs == 0:
                lines.append(f'              [{option}]')
            else:
                lines.append(f'              [{option} {action.metavar or action.dest.upper()}]')
        return '\n'.join(lines) + '\n\n'


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser (separate from parsing for tests)."""
    parser = argparse.ArgumentParser(
        prog='damping',
        description=f'Multi-mode damping curve fitting ({get_version_string()})',
        formatter_class=OnePerLineHelpFormatter,
        epilog="""
Examples:
  damping                                   Synthetic two-peak demo, 2 ZeroDay modes
  damping --family unicorn --modes 3        Fit three Unicorn modes
  damping --optimizer adam --step-size 0.05 --batch-size 16
  damping --demo-family two_cities --demo-modes '20,0.03,2,1' --family two_cities
  damping --list-optimizers                 Show optimizer capabilities
        """
    )

    parser.add_argument('--version', action='version',
                        version=f'%(prog)s {get_version_string()}')

    # ==========================================================================
    # Curve Group
    # ==========================================================================
    curve_group = parser.add_argument_group('Curve (synthetic demo)')

    curve_group.add_argument('--demo-family', type=str, default=None, choices=FAMILY_CHOICES,
                             help='Mode family of the synthetic curve (default: zero_day)')
    curve_group.add_argument('--demo-modes', type=str, default=None, metavar='TABLE',
                             help="Modes of the synthetic curve, e.g. '10,0.04; 300,0.02'")
    curve_group.add_argument('--omega-min', type=float, default=None,
                             help='Lowest sampled frequency [rad/s] (default: 0.1)')
    curve_group.add_argument('--omega-max', type=float, default=None,
                             help='Highest sampled frequency [rad/s] (default: 1e4)')
    curve_group.add_argument('--points', type=int, default=None,
                             help='Number of synthetic samples (default: 60)')
    curve_group.add_argument('--noise', type=float, default=None,
                             help='Relative noise level, 0.01 = 1%% (default: 0)')

    # ==========================================================================
    # Fitting Group
    # ==========================================================================
    fit_group = parser.add_argument_group('Fitting')

    fit_group.add_argument('--family', type=str, default='zero_day', choices=FAMILY_CHOICES,
                           help='Mode family used for fitting (default: zero_day)')
    fit_group.add_argument('--modes', '-m', type=int, default=2,
                           help='Number of modes (default: 2)')
    fit_group.add_argument('--optimizer', '-o', type=str, default='lbfgs',
                           choices=list(OPTIMIZERS),
                           help='Optimizer (default: lbfgs)')
    fit_group.add_argument('--samples', type=int, default=None, metavar='N',
                           help='Resample the curve onto N log-spaced points before fitting')
    fit_group.add_argument('--linear-interp', action='store_true',
                           help='Interpolate against w instead of log10(w) when resampling')
    fit_group.add_argument('--fit-min', type=float, default=None,
                           help='Ignore samples below this frequency [rad/s]')
    fit_group.add_argument('--fit-max', type=float, default=None,
                           help='Ignore samples above this frequency [rad/s]')
    fit_group.add_argument('--round-orders', action='store_true',
                           help='Report orders rounded to the nearest integer as well')
    fit_group.add_argument('--seed', type=int, default=None,
                           help='Random seed for initial point and stochastic optimizers')
    fit_group.add_argument('--list-optimizers', action='store_true',
                           help='List optimizers with the settings they honour and exit')

    # ==========================================================================
    # Optimizer Settings Group
    # ==========================================================================
    opt_group = parser.add_argument_group('Optimizer Settings')

    opt_group.add_argument('--step-size', type=float, default=DEFAULT_STEP_SIZE,
                           help=f'Step size of first-order optimizers (default: {DEFAULT_STEP_SIZE:g})')
    opt_group.add_argument('--tolerance', type=float, default=DEFAULT_TOLERANCE,
                           help=f'Convergence tolerance (default: {DEFAULT_TOLERANCE:g})')
    opt_group.add_argument('--max-iter', type=int, default=DEFAULT_MAX_ITER,
                           help=f'Iteration budget (default: {DEFAULT_MAX_ITER})')
    opt_group.add_argument('--weight', type=float, default=DEFAULT_PENALTY_WEIGHT,
                           help=f'Soft-integer penalty weight (default: {DEFAULT_PENALTY_WEIGHT:g})')
    opt_group.add_argument('--max-order', type=float, default=DEFAULT_MAX_ORDER,
                           help=f'Upper bound of orders (default: {DEFAULT_MAX_ORDER:g})')
    opt_group.add_argument('--batch-size', type=int, default=DEFAULT_BATCH_SIZE,
                           help=f'Mini-batch size (default: {DEFAULT_BATCH_SIZE})')
    opt_group.add_argument('--basis-size', type=int, default=DEFAULT_BASIS_SIZE,
                           help=f'Quasi-Newton history length (default: {DEFAULT_BASIS_SIZE})')

    # ==========================================================================
    # Output Group
    # ==========================================================================
    out_group = parser.add_argument_group('Output')

    out_group.add_argument('--verbose', '-v', action='count', default=0,
                           help='Show debug messages on stderr')
    out_group.add_argument('--quiet', '-q', action='store_true',
                           help='Quiet mode - hide INFO messages, show only warnings and errors')

    return parser


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command line arguments.

    Parameters
    ----------
    argv : list of str, optional
        Arguments (default: sys.argv[1:])

    Returns
    -------
    args : argparse.Namespace
        Parsed command line arguments
    """
    return build_parser().parse_args(argv)


__all__ = [
    'OnePerLineHelpFormatter',
    'build_parser',
    'parse_arguments',
]
