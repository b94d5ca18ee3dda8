"""
Shared compute infrastructure for PyGLM.

This module provides timing utilities, tolerance tiers and linear
algebra kernels shared by every model backend.

IMPORTANT: This is NOT where model backends live. Those go in
regression/backends/. This module contains shared NUMERIC infrastructure.

Submodules:
    timing: Execution timing utilities
    tolerances: Numerical tolerance tiers
    linalg: Linear algebra kernels (pivoted QR, weighted least squares)
"""

from pyglm.core.compute.timing import Timer, timed

__all__ = [
    "Timer",
    "timed",
]
