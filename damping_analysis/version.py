"""
Version information for Damping Analysis Toolkit.

This is the SINGLE SOURCE OF TRUTH for version information.
All other files should import from here.
"""

__version__ = '0.3.0'
__version_info__ = (0, 3, 0)
__release_date__ = '2026-10-16'

# Breaking changes in this version
__breaking_changes__ = [
    "Gradient arrays of mode families carry the response in row 0",
    "Optimizer knobs are resolved through the OPTIMIZERS capability table",
]


# Human-readable version string
def get_version_string():
    """Return formatted version string."""
    return f"v{__version__} ({__release_date__})"


# For compatibility
VERSION = __version__
