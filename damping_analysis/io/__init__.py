"""
I/O module for generating damping curve data.
"""

from .synthetic import generate_synthetic_curve

__all__ = [
    'generate_synthetic_curve',
]
