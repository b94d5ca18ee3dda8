"""
Exponential-family distributions for GLM fitting.

Each Distribution defines:
- Summary statistics fixed at construction (mean, variance, entropy, ...)
- probability / log-probability of a single value
- A variance function V(μ) relating variance to the mean
- A deviance function for assessing model fit
- The IRLS starting mean and working weights
- predict / fit, delegating to its link function

Each Distribution owns exactly one Link; when none is given the
canonical default is substituted (identity for Gaussian, log for Poisson).
Distributions are immutable after construction.

References:
    McCullagh, P., & Nelder, J. A. (1989). Generalized Linear Models (2nd ed.)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
import math
import sys

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy import stats

from pyglm.core.exceptions import DomainError
from pyglm.core.validation import (
    check_array,
    check_1d,
    check_consistent_length,
    check_not_empty,
    check_nonnegative,
    check_positive,
)
from pyglm.regression.links import Link, IdentityLink, LogLink, resolve_link
from pyglm.special.factorial import FactorialTable, FACTORIALS


_EPS = np.finfo(np.float64).eps
_MU_FLOOR = 1e-10


# =====================================================================
# Distribution base class
# =====================================================================

class Distribution(ABC):
    """
    Exponential-family distribution with an owned link function.

    Subclasses set the summary statistics in __init__ and implement the
    distribution-specific formulas. IRLS only relies on initial_mean(),
    weight(), deviance(), predict() and fit().
    """

    def __init__(self, link: str | Link | None = None):
        self._link = resolve_link(link, self._default_link())

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @abstractmethod
    def _default_link(self) -> Link:
        ...

    @property
    def link(self) -> Link:
        return self._link

    # -----------------------------------------------------------------
    # Summary statistics
    # -----------------------------------------------------------------

    @property
    def mean(self) -> float:
        return self._mean

    @property
    def variance(self) -> float:
        return self._variance

    @property
    def standard_deviation(self) -> float:
        return self._standard_deviation

    @property
    def skewness(self) -> float:
        return self._skewness

    @property
    def kurtosis(self) -> float:
        """Excess kurtosis."""
        return self._kurtosis

    @property
    def entropy(self) -> float:
        return self._entropy

    @property
    def minimum(self) -> float:
        return self._minimum

    @property
    def maximum(self) -> float:
        return self._maximum

    @property
    def mode(self) -> float:
        return self._mode

    @property
    def median(self) -> float:
        return self._median

    @property
    def dispersion_is_fixed(self) -> bool:
        """Whether the dispersion parameter is known a priori.

        True for Poisson (φ=1). False for Gaussian (φ=σ² estimated
        from data).
        """
        return False

    # -----------------------------------------------------------------
    # Distribution-specific formulas
    # -----------------------------------------------------------------

    @abstractmethod
    def probability(self, x: float) -> float:
        """Density (continuous) or mass (discrete) at x."""
        ...

    @abstractmethod
    def log_probability(self, x: float) -> float:
        """log of probability(x)."""
        ...

    @abstractmethod
    def variance_function(self, mu: NDArray) -> NDArray:
        """Variance of the response as a function of its mean, V(μ)."""
        ...

    @abstractmethod
    def _unit_deviance(self, y: NDArray, mu: NDArray) -> NDArray:
        """Per-observation deviance contribution d(yᵢ, μᵢ), unweighted."""
        ...

    def deviance(
        self,
        response: ArrayLike,
        mean_response: ArrayLike,
        weights: ArrayLike,
        scale: float = 1.0,
    ) -> float:
        """Total scaled deviance Σ wᵢ · d(yᵢ, μᵢ) / scale.

        Raises:
            DimensionError: If the three vectors differ in length
            DomainError: If scale <= 0
            DomainError: If a mean lies outside the distribution's support
        """
        y, mu, wt = self._check_deviance_args(response, mean_response, weights)
        check_positive(scale, 'scale')
        return float(np.sum(wt * self._unit_deviance(y, mu))) / scale

    def deviance_residuals(
        self, response: ArrayLike, mean_response: ArrayLike, weights: ArrayLike
    ) -> NDArray:
        """Signed square roots of the weighted unit deviances."""
        y, mu, wt = self._check_deviance_args(response, mean_response, weights)
        d = wt * self._unit_deviance(y, mu)
        return np.sign(y - mu) * np.sqrt(np.maximum(d, 0.0))

    # -----------------------------------------------------------------
    # IRLS hooks
    # -----------------------------------------------------------------

    def initial_mean(self, response: ArrayLike) -> NDArray:
        """IRLS starting mean: the midpoint of each yᵢ and ȳ.

        Raises:
            EmptyInputError: If response is empty
        """
        y = check_array(response, 'response')
        check_1d(y, 'response')
        check_not_empty(y, 'response')
        return 0.5 * (y + np.mean(y))

    def weight(self, mean_response: ArrayLike) -> NDArray:
        """IRLS working weight 1 / (g'(μ)² · V(μ))."""
        mu = check_array(mean_response, 'mean_response')
        derivative = self._link.first_derivative(mu)
        with np.errstate(divide='ignore', invalid='ignore'):
            return 1.0 / (derivative ** 2 * self.variance_function(mu))

    def predict(self, mean_response: ArrayLike) -> NDArray:
        """Linear predictor g(μ)."""
        return self._link.link(check_array(mean_response, 'mean_response'))

    def fit(self, linear_prediction: ArrayLike) -> NDArray:
        """Mean response g⁻¹(η)."""
        return self._link.linkinv(check_array(linear_prediction, 'linear_prediction'))

    def validate_response(self, response: NDArray) -> None:
        """Reject responses outside the distribution's support."""
        return None

    # -----------------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------------

    @staticmethod
    def _check_deviance_args(
        response: ArrayLike, mean_response: ArrayLike, weights: ArrayLike
    ) -> tuple[NDArray, NDArray, NDArray]:
        y = check_array(response, 'response')
        mu = check_array(mean_response, 'mean_response')
        wt = check_array(weights, 'weights')
        for arr, name in ((y, 'response'), (mu, 'mean_response'), (wt, 'weights')):
            check_1d(arr, name)
        check_consistent_length(y, mu, wt, names=('response', 'mean_response', 'weights'))
        return y, mu, wt

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(link={self._link.name!r})"


# =====================================================================
# Concrete distributions
# =====================================================================

class Gaussian(Distribution):
    """Gaussian (Normal) distribution. Default link: identity.

    V(μ) = σ²
    Deviance = Σ wᵢ (yᵢ - μᵢ)² / scale  (= weighted RSS for scale=1)
    """

    def __init__(
        self,
        mean: float = 0.0,
        standard_deviation: float = 1.0,
        link: str | Link | None = None,
    ):
        super().__init__(link)
        if not np.isfinite(mean):
            raise DomainError(f"mean must be finite, got {mean}", value=float(mean))
        check_positive(standard_deviation, 'standard_deviation')

        sigma = float(standard_deviation)
        self._mean = float(mean)
        self._standard_deviation = sigma
        self._variance = sigma * sigma
        self._entropy = 0.5 * (1.0 + math.log(2.0 * math.pi * self._variance))
        self._skewness = 0.0
        self._kurtosis = 0.0
        self._mode = self._mean
        self._median = self._mean
        self._minimum = -sys.float_info.max
        self._maximum = sys.float_info.max

    @property
    def name(self) -> str:
        return 'gaussian'

    def _default_link(self) -> Link:
        return IdentityLink()

    def probability(self, x: float) -> float:
        return float(stats.norm.pdf(x, loc=self._mean, scale=self._standard_deviation))

    def log_probability(self, x: float) -> float:
        return float(stats.norm.logpdf(x, loc=self._mean, scale=self._standard_deviation))

    def variance_function(self, mu: NDArray) -> NDArray:
        return np.full_like(np.asarray(mu, dtype=np.float64), self._variance)

    def _unit_deviance(self, y: NDArray, mu: NDArray) -> NDArray:
        return (y - mu) ** 2

    def __repr__(self) -> str:
        return (
            f"Gaussian(mean={self._mean!r}, standard_deviation="
            f"{self._standard_deviation!r}, link={self._link.name!r})"
        )


class Poisson(Distribution):
    """Poisson distribution. Default link: log.

    V(μ) = |μ|
    Deviance = 2 Σ wᵢ [yᵢ log(yᵢ/μᵢ) - yᵢ + μᵢ] / scale

    The mass function is evaluated through a factorial table, which
    bounds its support to [0, 170].
    """

    def __init__(
        self,
        mean: float = 1.0,
        link: str | Link | None = None,
        factorials: FactorialTable = FACTORIALS,
    ):
        super().__init__(link)
        check_positive(mean, 'mean')

        lam = float(mean)
        self._factorials = factorials
        self._mean = lam
        self._variance = lam
        self._standard_deviation = math.sqrt(lam)
        self._skewness = 1.0 / math.sqrt(lam)
        self._kurtosis = 1.0 / lam
        self._mode = float(math.floor(lam))
        self._median = float(math.floor(lam + 1.0 / 3.0 - 0.02 / lam))
        # Asymptotic expansion, accurate for moderate to large λ
        self._entropy = (
            0.5 * math.log(2.0 * math.pi * math.e * lam)
            - 1.0 / (12.0 * lam)
            - 1.0 / (24.0 * lam ** 2)
            - 19.0 / (360.0 * lam ** 3)
        )
        self._minimum = 0.0
        self._maximum = sys.float_info.max

    @property
    def name(self) -> str:
        return 'poisson'

    def _default_link(self) -> Link:
        return LogLink()

    @property
    def dispersion_is_fixed(self) -> bool:
        return True

    def probability(self, x: float) -> float:
        return math.exp(self.log_probability(x))

    def log_probability(self, x: float) -> float:
        """log P(X = k) with k = floor(x); a fractional x is truncated to its
        integer count, so probability(1.5) == probability(1).

        Raises:
            DomainError: If x lies outside [0, factorial table limit]
        """
        limit = self._factorials.limit
        if not 0 <= x <= limit:
            raise DomainError(
                f"Poisson argument out of range: {x} not in [0, {limit}]",
                value=float(x),
                bounds=f"[0, {limit}]",
            )
        k = int(math.floor(x))
        log_factorial = 0.0 if k == 0 else self._factorials.get_log(k)
        return k * math.log(self._mean) - log_factorial - self._mean

    def variance_function(self, mu: NDArray) -> NDArray:
        return np.abs(np.asarray(mu, dtype=np.float64))

    def _unit_deviance(self, y: NDArray, mu: NDArray) -> NDArray:
        # μ = 0 is only admissible where y = 0
        invalid = (mu < 0) | ((mu == 0) & (y > 0))
        if np.any(invalid):
            bad = float(mu[np.argmax(invalid)])
            raise DomainError(
                f"Poisson deviance requires μ > 0 (or μ = 0 where y = 0), got μ = {bad}",
                value=bad,
                bounds="(0, inf)",
            )
        # log(y/μ) with y <= 0 replaced by log(eps) so that y·log(...) stays finite
        with np.errstate(divide='ignore', invalid='ignore'):
            ratio = np.where(y > 0, y / mu, _EPS)
        return 2.0 * (y * np.log(ratio) - y + mu)

    def weight(self, mean_response: ArrayLike) -> NDArray:
        """IRLS working weight evaluated at |μ|."""
        mu = np.maximum(np.abs(check_array(mean_response, 'mean_response')), _MU_FLOOR)
        derivative = self._link.first_derivative(mu)
        return 1.0 / (derivative ** 2 * mu)

    def validate_response(self, response: NDArray) -> None:
        check_nonnegative(response, 'y')

    def __repr__(self) -> str:
        return f"Poisson(mean={self._mean!r}, link={self._link.name!r})"


# =====================================================================
# Distribution name → class mapping + resolver
# =====================================================================

_DISTRIBUTION_CLASSES: dict[str, type[Distribution]] = {
    'gaussian': Gaussian,
    'normal': Gaussian,
    'poisson': Poisson,
}


def resolve_distribution(
    distribution: str | Distribution | None,
    link: str | Link | None = None,
) -> Distribution:
    """Resolve a distribution argument to a Distribution instance.

    Args:
        distribution: A string name ('gaussian', 'poisson'), a
            Distribution instance (passed through), or None for Gaussian.
        link: Optional link for string/None distributions. Must be None
            when an instance is passed, since the instance already owns
            its link.

    Returns:
        Distribution instance.

    Raises:
        ValueError: If the name is not recognized, or a link is given
            together with an instance.
        TypeError: If argument is neither string nor Distribution.
    """
    if distribution is None:
        return Gaussian(link=link)
    if isinstance(distribution, Distribution):
        if link is not None:
            raise ValueError(
                "link cannot be combined with a Distribution instance; "
                "pass the link to the Distribution constructor instead"
            )
        return distribution
    if isinstance(distribution, str):
        cls = _DISTRIBUTION_CLASSES.get(distribution.lower())
        if cls is None:
            valid = ', '.join(
                sorted(k for k in _DISTRIBUTION_CLASSES.keys() if k != 'normal')
            )
            raise ValueError(
                f"Unknown distribution: {distribution!r}. Valid distributions: {valid}"
            )
        return cls(link=link)
    raise TypeError(
        f"distribution must be str or Distribution, got {type(distribution).__name__}"
    )
