"""
Solver dispatch for regression.

This module provides the fit() and fit_linear() functions (public API)
and backend selection.
"""

from typing import Literal
from numpy.typing import ArrayLike

from pyglm.core.result import Result
from pyglm.core.compute.linalg.qr import SingularPolicy
from pyglm.regression.design import Design
from pyglm.regression.distributions import Distribution, resolve_distribution
from pyglm.regression.links import Link
from pyglm.regression.solution import GLMParams, GLMSolution, LinearParams, LinearSolution
from pyglm.regression.backends.cpu import CPUQRBackend
from pyglm.regression.backends.cpu_glm import CPUIRLSBackend


# Type aliases for backend selection
GLMBackendChoice = Literal['auto', 'cpu', 'cpu_irls']
LinearBackendChoice = Literal['auto', 'cpu', 'cpu_qr']


def fit(
    X: ArrayLike,
    y: ArrayLike,
    weights: ArrayLike | None = None,
    *,
    distribution: str | Distribution | None = None,
    link: str | Link | None = None,
    add_constant: bool = False,
    tol: float = 1e-8,
    atol: float = 1e-12,
    max_iter: int = 25,
    strict: bool = False,
    on_singular: SingularPolicy = 'raise',
    backend: GLMBackendChoice = 'auto',
) -> GLMSolution:
    """
    Fit a generalized linear model by IRLS.
    
    This is the primary public API for GLMs. All input validation,
    backend selection, and result wrapping happens here.
    
    Args:
        X: Design matrix (n x p), observations in rows. Any array-like.
        y: Response vector (n,)
        weights: Non-negative prior weights (n,), default 1.0 each
        distribution: 'gaussian' (default), 'poisson', or a Distribution
            instance
        link: Link name or instance for a named distribution; defaults
            to the distribution's canonical link
        add_constant: Prepend a constant 1.0 column to X
        tol: Relative deviance change for convergence
        atol: Absolute deviance change for convergence
        max_iter: Maximum IRLS iterations
        strict: Raise ConvergenceError instead of warning on
            non-convergence
        on_singular: 'raise' (default) or 'pinv' for rank-deficient X'WX
        backend: 'auto', 'cpu' or 'cpu_irls'
            
    Returns:
        GLMSolution with coefficients, deviance, robust standard errors
        and summary methods
        
    Raises:
        DimensionError: If X, y and weights have inconsistent lengths
        EmptyInputError: If there are no observations
        DomainError: If n - p <= 0 or y lies outside the support
        SingularMatrixError: If X'WX is singular and on_singular='raise'
        ConvergenceError: If IRLS does not converge and strict=True
        
    Example:
        >>> import numpy as np
        >>> from pyglm.regression import fit
        >>> 
        >>> X = np.random.randn(200, 2)
        >>> y = np.random.poisson(np.exp(0.5 + X @ [0.3, -0.2]))
        >>> 
        >>> result = fit(X, y, distribution='poisson', add_constant=True)
        >>> print(result.coefficients)
        >>> print(result.summary())
    """
    result, design, dist = _solve_glm(
        X, y, weights,
        distribution=distribution,
        link=link,
        add_constant=add_constant,
        tol=tol,
        atol=atol,
        max_iter=max_iter,
        strict=strict,
        on_singular=on_singular,
        backend=backend,
    )
    return GLMSolution(_result=result, _design=design, _distribution=dist)


def fit_linear(
    X: ArrayLike,
    y: ArrayLike,
    weights: ArrayLike | None = None,
    *,
    add_constant: bool = False,
    on_singular: SingularPolicy = 'raise',
    backend: LinearBackendChoice = 'auto',
) -> LinearSolution:
    """
    Fit a (weighted) linear regression in closed form.
    
    Solves min_β Σ wᵢ (yᵢ - xᵢ'β)² by pivoted QR.
    
    Returns:
        LinearSolution with coefficients, R², robust standard errors
        
    Raises:
        DimensionError, EmptyInputError, DomainError, SingularMatrixError:
            as for fit()
    """
    result, design = _solve_linear(
        X, y, weights,
        add_constant=add_constant,
        on_singular=on_singular,
        backend=backend,
    )
    return LinearSolution(_result=result, _design=design)


def _solve_glm(
    X: ArrayLike,
    y: ArrayLike,
    weights: ArrayLike | None,
    *,
    distribution: str | Distribution | None,
    link: str | Link | None,
    add_constant: bool,
    tol: float,
    atol: float,
    max_iter: int,
    strict: bool,
    on_singular: SingularPolicy,
    backend: GLMBackendChoice,
) -> tuple[Result[GLMParams], Design, Distribution]:
    # === Input Validation ===
    # This is the boundary - validate here, trust everywhere else
    design = Design.from_arrays(X, y, weights, add_constant=add_constant)
    dist = resolve_distribution(distribution, link)
    
    backend_impl = _get_backend(backend, 'glm')
    result = backend_impl.solve(
        design,
        dist,
        tol=tol,
        atol=atol,
        max_iter=max_iter,
        strict=strict,
        on_singular=on_singular,
    )
    return result, design, dist


def _solve_linear(
    X: ArrayLike,
    y: ArrayLike,
    weights: ArrayLike | None,
    *,
    add_constant: bool,
    on_singular: SingularPolicy,
    backend: LinearBackendChoice,
) -> tuple[Result[LinearParams], Design]:
    design = Design.from_arrays(X, y, weights, add_constant=add_constant)
    backend_impl = _get_backend(backend, 'linear')
    result = backend_impl.solve(design, on_singular=on_singular)
    return result, design


def _get_backend(choice: str, model: Literal['glm', 'linear']):
    """
    Select and instantiate the appropriate backend.
    
    Args:
        choice: User's backend preference
        model: 'glm' for IRLS, 'linear' for closed-form least squares
        
    Returns:
        Backend instance ready to solve
        
    Raises:
        ValueError: If unknown backend specified
    """
    if model == 'glm':
        if choice in ('auto', 'cpu', 'cpu_irls'):
            return CPUIRLSBackend()
        raise ValueError(
            f"Unknown backend: {choice!r}. Valid: 'auto', 'cpu', 'cpu_irls'"
        )
    
    if choice in ('auto', 'cpu', 'cpu_qr'):
        return CPUQRBackend()
    raise ValueError(
        f"Unknown backend: {choice!r}. Valid: 'auto', 'cpu', 'cpu_qr'"
    )
