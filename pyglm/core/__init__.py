"""
Core infrastructure for PyGLM.

This module provides shared abstractions and utilities used by the
model sub-packages.

Key components:
    result: Generic Result[P] envelope
    exceptions: Exception hierarchy
    validation: Input validators
    compute: Timing, tolerances, linear algebra primitives
"""

from pyglm.core.result import Result
from pyglm.core.exceptions import (
    PyGLMError,
    ValidationError,
    DimensionError,
    EmptyInputError,
    DomainError,
    NumericalError,
    SingularMatrixError,
    ConvergenceError,
)

__all__ = [
    # Result
    "Result",
    # Exceptions
    "PyGLMError",
    "ValidationError",
    "DimensionError",
    "EmptyInputError",
    "DomainError",
    "NumericalError",
    "SingularMatrixError",
    "ConvergenceError",
]
