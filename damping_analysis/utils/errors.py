"""
Exception hierarchy for damping curve analysis.

All errors raised deliberately by the package derive from
DampingAnalysisError, so the CLI can report them with a single handler.
"""


class DampingAnalysisError(Exception):
    """Base exception for damping analysis errors."""
    pass


class InvalidInputError(DampingAnalysisError, ValueError):
    """
    Input rejected before any optimization starts.

    Raised for non-positive or non-finite frequencies, empty sample sets,
    zero mode count, unknown mode family or optimizer name and invalid
    optimizer settings.
    """
    pass


class NumericDegenerateError(DampingAnalysisError, ArithmeticError):
    """Objective produced a non-finite loss or gradient."""
    pass


__all__ = [
    'DampingAnalysisError',
    'InvalidInputError',
    'NumericDegenerateError',
]
