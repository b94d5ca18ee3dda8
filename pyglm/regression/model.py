"""
Model classes that fit at construction.

    model = GeneralizedLinearModel(X, y, w, distribution=Poisson(), add_constant=True)
    model.coefficients, model.standard_errors_hc1, model.evaluate(x)

They share the read contract of the solutions returned by fit() and
fit_linear(), which they are.
"""

from numpy.typing import ArrayLike

from pyglm.core.compute.linalg.qr import SingularPolicy
from pyglm.regression.distributions import Distribution
from pyglm.regression.links import Link
from pyglm.regression.solution import GLMSolution, LinearSolution
from pyglm.regression.solvers import (
    GLMBackendChoice,
    LinearBackendChoice,
    _solve_glm,
    _solve_linear,
)


class GeneralizedLinearModel(GLMSolution):
    """
    Generalized linear model fitted by IRLS when constructed.
    
    Args:
        design: Design matrix (n x p), observations in rows
        response: Response vector (n,)
        weights: Non-negative importance weights (n,), default 1.0 each
        distribution: Distribution instance or name; Gaussian by default
        add_constant: Prepend a constant 1.0 column to the design
        link, tol, atol, max_iter, strict, on_singular, backend:
            see pyglm.regression.fit()
            
    Raises:
        DimensionError: If design rows, response and weights differ in length
        EmptyInputError: If the design has no rows
        DomainError: If degrees of freedom are not positive
    """
    
    def __init__(
        self,
        design: ArrayLike,
        response: ArrayLike,
        weights: ArrayLike | None = None,
        distribution: str | Distribution | None = None,
        add_constant: bool = False,
        *,
        link: str | Link | None = None,
        tol: float = 1e-8,
        atol: float = 1e-12,
        max_iter: int = 25,
        strict: bool = False,
        on_singular: SingularPolicy = 'raise',
        backend: GLMBackendChoice = 'auto',
    ):
        result, fitted_design, dist = _solve_glm(
            design, response, weights,
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
        super().__init__(_result=result, _design=fitted_design, _distribution=dist)


class LinearRegressionModel(LinearSolution):
    """
    Multiple linear regression fitted in closed form when constructed.
    
    Args:
        design: Design matrix (n x p), observations in rows
        response: Response vector (n,)
        weights: Non-negative importance weights (n,), default 1.0 each
        add_constant: Prepend a constant 1.0 column to the design
        on_singular, backend: see pyglm.regression.fit_linear()
    """
    
    def __init__(
        self,
        design: ArrayLike,
        response: ArrayLike,
        weights: ArrayLike | None = None,
        add_constant: bool = False,
        *,
        on_singular: SingularPolicy = 'raise',
        backend: LinearBackendChoice = 'auto',
    ):
        result, fitted_design = _solve_linear(
            design, response, weights,
            add_constant=add_constant,
            on_singular=on_singular,
            backend=backend,
        )
        super().__init__(_result=result, _design=fitted_design)
