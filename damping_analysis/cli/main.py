"""
Entry point of the damping CLI.

Pipeline: synthetic curve -> optional frequency filter -> fit -> report.
"""

import argparse
import logging
import sys
from typing import List, Optional

from .data_handling import load_curve, filter_by_frequency
from .handlers import run_fitting, run_list_optimizers, run_order_rounding
from .logging import setup_logging, log_separator
from .parser import parse_arguments
from ..utils.errors import DampingAnalysisError
from ..version import get_version_string

logger = logging.getLogger(__name__)


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    args = parse_arguments(argv)
    setup_logging(args)

    try:
        _run_analysis(args)
    except DampingAnalysisError as e:
        logger.error(str(e))
        return 1
    except KeyboardInterrupt:
        logger.info("Fitting interrupted by user")
        return 130
    return 0


def _run_analysis(args: argparse.Namespace) -> None:
    """Run the full fitting pipeline."""
    log_separator(60)
    logger.info(f"Damping Analysis ({get_version_string()})")
    log_separator(60)

    if args.list_optimizers:
        run_list_optimizers()
        return

    curve = load_curve(args)
    curve = filter_by_frequency(curve, args)

    result = run_fitting(curve, args)

    if args.round_orders:
        run_order_rounding(result, curve)


if __name__ == '__main__':
    sys.exit(main())
