"""
Exception hierarchy for PyGLM.

All exceptions inherit from PyGLMError to allow catching any
library-specific error. Domain-specific exceptions should inherit from
the appropriate base class here.

Design principles:
    - Exceptions carry diagnostic information as attributes
    - Error messages are actionable with actual vs expected values
    - Never catch and re-raise with less information
"""


class PyGLMError(Exception):
    """Base exception for all PyGLM errors."""
    pass


class ValidationError(PyGLMError):
    """
    Input validation failed.
    
    Raised when user-provided inputs fail validation checks.
    """
    pass


class DimensionError(ValidationError):
    """
    Array dimensions are incorrect or inconsistent.
    
    Raised when array shapes don't match expected dimensions or
    when multiple arrays have inconsistent lengths (design rows vs.
    response vs. weights, response vs. fitted values, ...).
    """
    pass


class EmptyInputError(ValidationError):
    """
    A required array has no observations.
    """
    pass


class DomainError(ValidationError):
    """
    Argument lies outside the valid domain of an operation.
    
    Raised for values outside a distribution's support, non-positive
    scale parameters, or non-positive degrees of freedom.
    
    Attributes:
        value: The offending value, if scalar
        bounds: Human-readable description of the valid range
    """
    
    def __init__(
        self,
        message: str,
        value: float | None = None,
        bounds: str | None = None
    ):
        super().__init__(message)
        self.value = value
        self.bounds = bounds


class NumericalError(PyGLMError):
    """
    Numerical computation failed.
    
    Base class for errors arising from numerical issues during computation.
    """
    pass


class SingularMatrixError(NumericalError):
    """
    Matrix is singular or nearly singular.
    
    Raised when a matrix operation requires invertibility but the matrix
    is singular or numerically rank-deficient (e.g. X'WX in the weighted
    normal equations).
    
    Attributes:
        matrix_name: Name/description of the problematic matrix
        condition_number: Estimated condition number, if available
        rank: Numerical rank, if computed
        expected_rank: Expected rank (typically the column count)
    """
    
    def __init__(
        self, 
        message: str,
        matrix_name: str | None = None,
        condition_number: float | None = None,
        rank: int | None = None,
        expected_rank: int | None = None
    ):
        super().__init__(message)
        self.matrix_name = matrix_name
        self.condition_number = condition_number
        self.rank = rank
        self.expected_rank = expected_rank


class ConvergenceError(PyGLMError):
    """
    Iterative algorithm failed to converge.
    
    Raised when IRLS fails to meet its convergence criterion within the
    maximum number of iterations and the caller asked for strict fitting.
    
    Attributes:
        iterations: Number of iterations completed
        final_change: Final relative deviance change
        reason: Why convergence failed (e.g., 'max_iterations')
        threshold: The convergence threshold that was not met
    """
    
    def __init__(
        self, 
        message: str, 
        iterations: int, 
        final_change: float | None = None,
        reason: str | None = None,
        threshold: float | None = None
    ):
        super().__init__(message)
        self.iterations = iterations
        self.final_change = final_change
        self.reason = reason
        self.threshold = threshold
