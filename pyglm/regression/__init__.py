"""
Linear and generalized linear models.

Public API:
    fit(X, y, ...) -> GLMSolution            (IRLS)
    fit_linear(X, y, ...) -> LinearSolution  (closed-form least squares)
    GeneralizedLinearModel, LinearRegressionModel  (fit at construction)
    
The fit functions handle:
    - Input validation
    - Design construction
    - Backend selection
    - Result wrapping

Example:
    >>> from pyglm.regression import fit, Poisson
    >>> result = fit(X, y, distribution=Poisson(), add_constant=True)
    >>> print(result.coefficients)
    >>> print(result.summary())
"""

from pyglm.regression.design import Design, add_constant
from pyglm.regression.links import Link, IdentityLink, LogLink, LogitLink
from pyglm.regression.distributions import (
    Distribution,
    Gaussian,
    Poisson,
    resolve_distribution,
)
from pyglm.regression.robust import RobustCovariance
from pyglm.regression.solution import (
    GLMParams,
    GLMSolution,
    LinearParams,
    LinearSolution,
)
from pyglm.regression.solvers import fit, fit_linear
from pyglm.regression.model import GeneralizedLinearModel, LinearRegressionModel

__all__ = [
    "fit",
    "fit_linear",
    "GeneralizedLinearModel",
    "LinearRegressionModel",
    "Design",
    "add_constant",
    "Link",
    "IdentityLink",
    "LogLink",
    "LogitLink",
    "Distribution",
    "Gaussian",
    "Poisson",
    "resolve_distribution",
    "RobustCovariance",
    "GLMParams",
    "GLMSolution",
    "LinearParams",
    "LinearSolution",
]
