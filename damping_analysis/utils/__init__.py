"""
Shared utilities for damping analysis.

This package contains the exception hierarchy used across all modules.
"""

from .errors import DampingAnalysisError, InvalidInputError, NumericDegenerateError

__all__ = [
    'DampingAnalysisError',
    'InvalidInputError',
    'NumericDegenerateError',
]
