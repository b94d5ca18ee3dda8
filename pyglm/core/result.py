"""
Generic result container for PyGLM computations.

The Result class provides a standardized envelope that every backend
returns. This enables shared tooling for timing, diagnostics and
reproducibility while allowing each model to define its own parameter
payload.

Design decisions:
    - Generic over parameter payload P for type safety
    - info dict for flexible metadata (converged, iterations, diagnostics)
    - timing is optional (don't burden unit tests)
    - Immutable (frozen=True) for reproducibility
"""

from dataclasses import dataclass, field
from typing import TypeVar, Generic, Any

P = TypeVar('P')  # Parameter payload type


@dataclass(frozen=True)
class Result(Generic[P]):
    """
    Immutable result envelope for model fits.
    
    Type Parameters:
        P: The model-specific parameter payload type
        
    Attributes:
        params: Model parameters (coefficients, deviance, etc.)
        info: Structured metadata (method, convergence, diagnostics)
        timing: Execution timing breakdown, or None if not measured
        backend_name: Identifier of the backend that produced this result
        warnings: Non-fatal issues encountered during computation
        
    Examples:
        >>> # Direct method (no convergence notion)
        >>> Result(
        ...     params=LinearParams(coefficients=beta, ...),
        ...     info={'method': 'qr', 'rank': 3},
        ...     timing={'total_seconds': 0.01},
        ...     backend_name='cpu_qr'
        ... )
        
        >>> # Iterative method
        >>> Result(
        ...     params=GLMParams(coefficients=beta, ...),
        ...     info={'method': 'irls', 'converged': True, 'iterations': 6},
        ...     timing={'total_seconds': 0.02, 'irls': 0.015},
        ...     backend_name='cpu_irls'
        ... )
    """
    params: P
    info: dict[str, Any]
    timing: dict[str, float] | None
    backend_name: str
    warnings: tuple[str, ...] = field(default_factory=tuple)
    
    def has_warning(self, substring: str) -> bool:
        """Check if any warning contains the given substring."""
        return any(substring in w for w in self.warnings)
