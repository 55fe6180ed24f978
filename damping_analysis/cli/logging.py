"""
Custom logging configuration for the damping CLI.

Output format per level:
- INFO: no prefix (clean output), stdout
- WARNING: "! " prefix, stdout
- ERROR: "!! " prefix, stderr
- DEBUG: "[DEBUG] " prefix, stderr (only with -v)
"""

import argparse
import logging
import sys
from typing import Optional

logger = logging.getLogger(__name__)


# =============================================================================
# Formatters and Filters
# =============================================================================

class PrefixFormatter(logging.Formatter):
    """Formatter that prepends a fixed prefix to the bare message."""

    def __init__(self, prefix: str = ""):
        super().__init__()
        self.prefix = prefix

    def format(self, record):
        return f"{self.prefix}{record.getMessage()}"


class LevelFilter(logging.Filter):
    """Filter that accepts only specific log levels."""

    def __init__(self, levels):
        super().__init__()
        self.levels = levels if isinstance(levels, (list, tuple)) else [levels]

    def filter(self, record):
        return record.levelno in self.levels


LEVEL_PREFIXES = {
    logging.DEBUG: "[DEBUG] ",
    logging.INFO: "",
    logging.WARNING: "! ",
    logging.ERROR: "!! ",
}


def _make_handler(stream, level: int, only: Optional[int] = None) -> logging.Handler:
    handler = logging.StreamHandler(stream)
    handler.setLevel(level)
    if only is not None:
        handler.addFilter(LevelFilter(only))
    handler.setFormatter(PrefixFormatter(LEVEL_PREFIXES[level]))
    return handler


# =============================================================================
# Setup Functions
# =============================================================================

def setup_logging(args: argparse.Namespace) -> None:
    """
    Configure logging based on command line arguments.

    Output behavior:
    - Default: INFO + WARNING on stdout, ERROR on stderr
    - Quiet (-q): WARNING on stdout, ERROR on stderr (no INFO)
    - Verbose (-v): DEBUG on stderr + default behavior

    Parameters
    ----------
    args : argparse.Namespace
        Parsed command line arguments with 'quiet' and 'verbose' attributes
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # Allow all levels, filter per handler
    root_logger.handlers.clear()

    if not args.quiet:
        root_logger.addHandler(_make_handler(sys.stdout, logging.INFO, only=logging.INFO))
    root_logger.addHandler(_make_handler(sys.stdout, logging.WARNING, only=logging.WARNING))
    # ERROR and CRITICAL share the "!!" handler
    root_logger.addHandler(_make_handler(sys.stderr, logging.ERROR))
    if args.verbose >= 1:
        root_logger.addHandler(_make_handler(sys.stderr, logging.DEBUG, only=logging.DEBUG))


def log_separator(length: int = 50, char: str = "=") -> None:
    """
    Log a separator line for visual clarity.

    Parameters
    ----------
    length : int
        Length of separator line (default: 50)
    char : str
        Character to use for separator (default: "=")
    """
    logging.getLogger(__name__).info(char * length)


__all__ = [
    'PrefixFormatter',
    'LevelFilter',
    'setup_logging',
    'log_separator',
]
