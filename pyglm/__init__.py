"""
PyGLM: generalized linear models for Python.

Fits Gaussian and Poisson GLMs by iteratively reweighted least squares,
with classical and heteroskedasticity-consistent standard errors.

Submodules:
    regression: Links, distributions, IRLS and linear models
    special: Factorial table used by discrete distributions
    core: Result envelope, exceptions, validation, linear algebra
"""

__version__ = "0.1.0"

from pyglm import regression
from pyglm import special

__all__ = [
    "__version__",
    "regression",
    "special",
]
