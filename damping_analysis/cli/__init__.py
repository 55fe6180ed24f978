"""
CLI module for Damping Analysis Toolkit.

This module provides the command-line interface components:
- logging: Custom log formatters and setup
- parser: Argument parsing
- data_handling: Synthetic curve generation and filtering
- handlers: Fitting workflow handlers
- utils: Helper functions and dataclasses
- main: Entry point (also wrapped by the root damping.py script)
"""

from .logging import setup_logging, log_separator
from .parser import build_parser, parse_arguments
from .data_handling import load_curve, filter_by_frequency
from .handlers import run_fitting, run_list_optimizers, run_order_rounding
from .utils import LoadedCurve, parse_mode_table, build_setting
from .main import main

__all__ = [
    # Logging
    'setup_logging',
    'log_separator',
    # Parser
    'build_parser',
    'parse_arguments',
    # Data handling
    'load_curve',
    'filter_by_frequency',
    # Handlers
    'run_fitting',
    'run_list_optimizers',
    'run_order_rounding',
    # Utils
    'LoadedCurve',
    'parse_mode_table',
    'build_setting',
    # Entry point
    'main',
]
