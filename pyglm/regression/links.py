"""
Link functions.

A link g maps the mean response μ to the linear predictor η. Every link
here is stateless apart from an optional affine reparameterization
(slope, intercept), so that

    g(μ) = (h(μ) - intercept) / slope
    g⁻¹(η) = h⁻¹(slope · η + intercept)

where h is the plain link. The defaults (slope=1, intercept=0) give the
textbook links. All operations act element-wise and preserve shape.

Each Link defines:
- g(μ) → η  (link)
- g⁻¹(η) → μ  (inverse link)
- g'(μ), g''(μ)  (derivatives w.r.t. μ, used for IRLS working quantities)
- a log-likelihood contribution for fitted values

References:
    McCullagh, P., & Nelder, J. A. (1989). Generalized Linear Models (2nd ed.)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
import numpy as np
from numpy.typing import ArrayLike, NDArray

from pyglm.core.validation import check_array, check_consistent_length, check_positive
from pyglm.core.exceptions import DomainError


# exp() overflows float64 just above 709.
_ETA_BOUND = 700.0
_MU_FLOOR = 1e-10


class Link(ABC):
    """Abstract link function g(μ) mapping mean to linear predictor."""

    def __init__(self, slope: float = 1.0, intercept: float = 0.0):
        if slope == 0 or not np.isfinite(slope):
            raise DomainError(
                f"slope must be finite and non-zero, got {slope}",
                value=float(slope),
                bounds='slope != 0',
            )
        self._slope = float(slope)
        self._intercept = float(intercept)

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @property
    def slope(self) -> float:
        return self._slope

    @property
    def intercept(self) -> float:
        return self._intercept

    @abstractmethod
    def link(self, mu: NDArray) -> NDArray:
        """g(μ) → η."""
        ...

    @abstractmethod
    def linkinv(self, eta: NDArray) -> NDArray:
        """g⁻¹(η) → μ."""
        ...

    @abstractmethod
    def first_derivative(self, mu: NDArray) -> NDArray:
        """g'(μ) = dη/dμ."""
        ...

    @abstractmethod
    def second_derivative(self, mu: NDArray) -> NDArray:
        """g''(μ)."""
        ...

    def log_likelihood(
        self,
        response: ArrayLike,
        fitted: ArrayLike,
        weights: ArrayLike,
        scale: float = 1.0,
    ) -> float:
        """Weighted Gaussian log-likelihood of the fitted values.

        Σ -0.5 · wᵢ · ((yᵢ - fᵢ)² / scale + log(2π · scale))
        """
        y, f, wt = _check_likelihood_args(response, fitted, weights)
        check_positive(scale, 'scale')
        common = np.log(2.0 * np.pi * scale)
        return float(np.sum(-0.5 * wt * ((y - f) ** 2 / scale + common)))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Link):
            return NotImplemented
        return (
            type(self) is type(other)
            and self._slope == other._slope
            and self._intercept == other._intercept
        )

    def __hash__(self) -> int:
        return hash((type(self).__name__, self._slope, self._intercept))

    def __repr__(self) -> str:
        if self._slope == 1.0 and self._intercept == 0.0:
            return f"{self.__class__.__name__}()"
        return (
            f"{self.__class__.__name__}(slope={self._slope!r}, "
            f"intercept={self._intercept!r})"
        )


class IdentityLink(Link):
    """Identity link: g(μ) = μ. Default for Gaussian family.

    The inverse is the identity as well (g⁻¹(η) = η), never the
    reciprocal 1/η.
    """

    @property
    def name(self) -> str:
        return 'identity'

    def link(self, mu: NDArray) -> NDArray:
        return (np.asarray(mu, dtype=np.float64) - self._intercept) / self._slope

    def linkinv(self, eta: NDArray) -> NDArray:
        return self._slope * np.asarray(eta, dtype=np.float64) + self._intercept

    def first_derivative(self, mu: NDArray) -> NDArray:
        return np.full_like(np.asarray(mu, dtype=np.float64), 1.0 / self._slope)

    def second_derivative(self, mu: NDArray) -> NDArray:
        return np.zeros_like(np.asarray(mu, dtype=np.float64))

    def log_likelihood(
        self,
        response: ArrayLike,
        fitted: ArrayLike,
        weights: ArrayLike,
        scale: float = 1.0,
    ) -> float:
        """Concentrated Gaussian log-likelihood.

        -n/2 · (log(SSE) + 1 + log(π / (n/2)))

        i.e. the Gaussian log-likelihood with σ² profiled out at SSE/n.
        The scale argument is unused.
        """
        y, f, _ = _check_likelihood_args(response, fitted, weights)
        sse = float(np.sum((y - f) ** 2))
        half_obs = 0.5 * len(y)
        with np.errstate(divide='ignore'):
            return float(-half_obs * (np.log(sse) + 1.0 + np.log(np.pi / half_obs)))


class LogLink(Link):
    """Log link: g(μ) = log(μ). Default for Poisson family."""

    @property
    def name(self) -> str:
        return 'log'

    def link(self, mu: NDArray) -> NDArray:
        mu = np.asarray(mu, dtype=np.float64)
        return (np.log(np.maximum(mu, _MU_FLOOR)) - self._intercept) / self._slope

    def linkinv(self, eta: NDArray) -> NDArray:
        eta = np.asarray(eta, dtype=np.float64)
        return np.exp(np.clip(self._slope * eta + self._intercept, -_ETA_BOUND, _ETA_BOUND))

    def first_derivative(self, mu: NDArray) -> NDArray:
        mu = np.maximum(np.asarray(mu, dtype=np.float64), _MU_FLOOR)
        return 1.0 / (self._slope * mu)

    def second_derivative(self, mu: NDArray) -> NDArray:
        mu = np.maximum(np.asarray(mu, dtype=np.float64), _MU_FLOOR)
        return -1.0 / (self._slope * mu ** 2)


class LogitLink(Link):
    """Logit link: g(μ) = log(μ/(1-μ)) for μ in (0, 1)."""

    @property
    def name(self) -> str:
        return 'logit'

    def link(self, mu: NDArray) -> NDArray:
        mu = np.clip(np.asarray(mu, dtype=np.float64), _MU_FLOOR, 1 - _MU_FLOOR)
        return (np.log(mu / (1 - mu)) - self._intercept) / self._slope

    def linkinv(self, eta: NDArray) -> NDArray:
        eta = np.asarray(eta, dtype=np.float64)
        a = np.clip(self._slope * eta + self._intercept, -_ETA_BOUND, _ETA_BOUND)
        return 1.0 / (1.0 + np.exp(-a))

    def first_derivative(self, mu: NDArray) -> NDArray:
        mu = np.clip(np.asarray(mu, dtype=np.float64), _MU_FLOOR, 1 - _MU_FLOOR)
        return 1.0 / (self._slope * mu * (1.0 - mu))

    def second_derivative(self, mu: NDArray) -> NDArray:
        mu = np.clip(np.asarray(mu, dtype=np.float64), _MU_FLOOR, 1 - _MU_FLOOR)
        return (2.0 * mu - 1.0) / (self._slope * mu ** 2 * (1.0 - mu) ** 2)


def _check_likelihood_args(
    response: ArrayLike, fitted: ArrayLike, weights: ArrayLike
) -> tuple[NDArray, NDArray, NDArray]:
    y = check_array(response, 'response').ravel()
    f = check_array(fitted, 'fitted').ravel()
    wt = check_array(weights, 'weights').ravel()
    check_consistent_length(y, f, wt, names=('response', 'fitted', 'weights'))
    return y, f, wt


# =====================================================================
# Link name → class mapping
# =====================================================================

_LINK_CLASSES: dict[str, type[Link]] = {
    'identity': IdentityLink,
    'log': LogLink,
    'logit': LogitLink,
}


def resolve_link(link: str | Link | None, default: Link) -> Link:
    """Resolve a link argument to a Link instance."""
    if link is None:
        return default
    if isinstance(link, Link):
        return link
    if isinstance(link, str):
        cls = _LINK_CLASSES.get(link.lower())
        if cls is None:
            valid = ', '.join(sorted(_LINK_CLASSES.keys()))
            raise ValueError(f"Unknown link: {link!r}. Valid links: {valid}")
        return cls()
    raise TypeError(f"link must be str or Link, got {type(link).__name__}")
