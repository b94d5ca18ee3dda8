"""
Regression solution types.

Contains the parameter payloads computed by backends and the user-facing
solution wrappers that expose the fitted-model read contract.
"""

from dataclasses import dataclass
from typing import Any, TYPE_CHECKING
import numpy as np
from numpy.typing import ArrayLike, NDArray

from pyglm.core.result import Result
from pyglm.core.exceptions import DimensionError
from pyglm.core.validation import check_array, check_1d, check_2d
from pyglm.regression.robust import RobustCovariance, CovarianceType

if TYPE_CHECKING:
    from pyglm.regression.design import Design
    from pyglm.regression.distributions import Distribution


@dataclass(frozen=True)
class LinearParams:
    """
    Parameter payload for (weighted) linear regression.
    
    This is the immutable data computed by backends.
    """
    coefficients: NDArray[np.floating[Any]]
    residuals: NDArray[np.floating[Any]]
    fitted_values: NDArray[np.floating[Any]]
    sum_squared_errors: float
    total_sum_squares: float
    rank: int
    df_residual: int
    covariance: RobustCovariance | None


@dataclass(frozen=True)
class GLMParams:
    """
    Parameter payload for a generalized linear model fitted by IRLS.
    
    residuals are on the response scale (y - μ); sum_squared_errors is
    their unweighted sum of squares.
    """
    coefficients: NDArray[np.floating[Any]]
    fitted_values: NDArray[np.floating[Any]]
    linear_predictor: NDArray[np.floating[Any]]
    residuals: NDArray[np.floating[Any]]
    sum_squared_errors: float
    deviance: float
    null_deviance: float
    dispersion: float
    rank: int
    df_residual: int
    n_iter: int
    converged: bool
    distribution_name: str
    link_name: str
    covariance: RobustCovariance | None


@dataclass
class RegressionSolution:
    """
    Read contract shared by every fitted regression model.
    
    Wraps the backend Result and the Design it was fitted on. Subclasses
    provide predict() and their own payload accessors.
    """
    _result: Result[Any]
    _design: 'Design'
    
    # === Dimensions ===
    
    @property
    def observation_count(self) -> int:
        return self._design.n
    
    @property
    def variable_count(self) -> int:
        """Number of coefficients, including the constant if one was added."""
        return self._design.p
    
    @property
    def degrees_of_freedom(self) -> int:
        return self._result.params.df_residual
    
    @property
    def has_constant(self) -> bool:
        return self._design.has_constant
    
    # === Coefficients and errors ===
    
    @property
    def coefficients(self) -> NDArray[np.floating[Any]]:
        return self._result.params.coefficients
    
    @property
    def residuals(self) -> NDArray[np.floating[Any]]:
        return self._result.params.residuals
    
    @property
    def fitted_values(self) -> NDArray[np.floating[Any]]:
        return self._result.params.fitted_values
    
    @property
    def rank(self) -> int:
        return self._result.params.rank
    
    @property
    def sum_squared_errors(self) -> float:
        return self._result.params.sum_squared_errors
    
    @property
    def mean_squared_error(self) -> float:
        return self.sum_squared_errors / self.degrees_of_freedom
    
    @property
    def root_mean_squared_error(self) -> float:
        return float(np.sqrt(self.mean_squared_error))
    
    # === Covariance ===
    
    @property
    def covariance(self) -> RobustCovariance | None:
        """Shared OLS/HC0/HC1 estimator, or None after a pseudo-inverse fit."""
        return self._result.params.covariance
    
    def _variance(self, kind: CovarianceType) -> NDArray[np.floating[Any]]:
        # Aliased (pseudo-inverse) fits have no defined covariance
        if self.covariance is None:
            return np.full(self.variable_count, np.nan, dtype=np.float64)
        return self.covariance.variance(kind)
    
    def _standard_errors(self, kind: CovarianceType) -> NDArray[np.floating[Any]]:
        if self.covariance is None:
            return np.full(self.variable_count, np.nan, dtype=np.float64)
        return self.covariance.standard_errors(kind)
    
    @property
    def variance_ols(self) -> NDArray[np.floating[Any]]:
        return self._variance('ols')
    
    @property
    def variance_hc0(self) -> NDArray[np.floating[Any]]:
        return self._variance('hc0')
    
    @property
    def variance_hc1(self) -> NDArray[np.floating[Any]]:
        return self._variance('hc1')
    
    @property
    def standard_errors_ols(self) -> NDArray[np.floating[Any]]:
        """
        Classical standard errors sqrt(diag(σ̂² (X'X)⁻¹)), σ̂² = SSE/df.
        """
        return self._standard_errors('ols')
    
    @property
    def standard_errors_hc0(self) -> NDArray[np.floating[Any]]:
        """White heteroskedasticity-consistent standard errors."""
        return self._standard_errors('hc0')
    
    @property
    def standard_errors_hc1(self) -> NDArray[np.floating[Any]]:
        """HC0 standard errors scaled by sqrt(n / (n - p))."""
        return self._standard_errors('hc1')
    
    # === Evaluation ===
    
    def evaluate(self, observation: ArrayLike) -> float:
        """
        Linear predictor x'β for a single observation.
        
        The observation must include the constant term if the model was
        fitted with one, so its length equals len(coefficients).
        
        Raises:
            DimensionError: If the observation length differs from the
                number of coefficients
        """
        x = check_array(observation, 'observation')
        check_1d(x, 'observation')
        if x.shape[0] != self.coefficients.shape[0]:
            raise DimensionError(
                f"observation: expected {self.coefficients.shape[0]} values "
                f"(one per coefficient), got {x.shape[0]}"
            )
        return float(x @ self.coefficients)
    
    def _prepare_new_design(self, X_new: ArrayLike) -> NDArray[np.floating[Any]]:
        X = check_array(X_new, 'X_new')
        if X.ndim == 1:
            X = X.reshape(-1, 1)
        check_2d(X, 'X_new')
        if self.has_constant:
            X = np.hstack([np.ones((X.shape[0], 1), dtype=np.float64), X])
        if X.shape[1] != self.variable_count:
            raise DimensionError(
                f"X_new: expected {self.variable_count - int(self.has_constant)} "
                f"columns, got {X.shape[1] - int(self.has_constant)}"
            )
        return X
    
    # === Metadata ===
    
    @property
    def info(self) -> dict[str, Any]:
        return self._result.info
    
    @property
    def timing(self) -> dict[str, float] | None:
        return self._result.timing
    
    @property
    def backend_name(self) -> str:
        return self._result.backend_name
    
    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings
    
    def _coefficient_table(self) -> list[str]:
        lines = [
            f"{'':<8} {'Estimate':>14} {'SE (OLS)':>12} {'SE (HC0)':>12} {'SE (HC1)':>12}",
            "-" * 64,
        ]
        rows = zip(
            self.coefficients,
            self.standard_errors_ols,
            self.standard_errors_hc0,
            self.standard_errors_hc1,
        )
        for i, (coef, se_ols, se_hc0, se_hc1) in enumerate(rows):
            ses = " ".join(
                f"{se:12.6f}" if np.isfinite(se) else f"{'NA':>12}"
                for se in (se_ols, se_hc0, se_hc1)
            )
            lines.append(f"  β[{i}]: {coef:14.6f} {ses}")
        lines.append("-" * 64)
        return lines
    
    def _footer(self) -> list[str]:
        lines = [f"Backend: {self.backend_name}"]
        if self.timing:
            lines.append(f"Time: {self.timing.get('total_seconds', 0):.4f}s")
        for message in self.warnings:
            lines.append(f"Warning: {message}")
        return lines


@dataclass
class LinearSolution(RegressionSolution):
    """
    User-facing results of a (weighted) linear regression.
    
    With prior weights, residuals are y - Xβ and sum_squared_errors is
    the weighted sum Σ wᵢ eᵢ².
    """
    
    @property
    def total_sum_squares(self) -> float:
        return self._result.params.total_sum_squares
    
    @property
    def r_squared(self) -> float:
        if self.total_sum_squares == 0:
            return 1.0 if self.sum_squared_errors == 0 else 0.0
        return 1.0 - self.sum_squared_errors / self.total_sum_squares
    
    def predict(self, X_new: ArrayLike) -> NDArray[np.floating[Any]]:
        """Predicted responses X_new β (constant column added if fitted with one)."""
        return self._prepare_new_design(X_new) @ self.coefficients
    
    def summary(self) -> str:
        """Generate a text summary of the fit."""
        lines = [
            "Linear Regression Results",
            "=" * 64,
            f"Observations (N): {self.observation_count}",
            f"Variables (K):    {self.variable_count}",
            f"Deg. of freedom:  {self.degrees_of_freedom}",
            f"SSE:              {self.sum_squared_errors:.6f}",
            f"MSE:              {self.mean_squared_error:.6f}",
            f"Root MSE:         {self.root_mean_squared_error:.6f}",
            f"R-squared:        {self.r_squared:.6f}",
            "",
            "Coefficients:",
            "-" * 64,
        ]
        lines.extend(self._coefficient_table())
        lines.extend(self._footer())
        return "\n".join(lines)
    
    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(n={self.observation_count}, p={self.variable_count}, "
            f"rank={self.rank}, r_squared={self.r_squared:.4f})"
        )


@dataclass
class GLMSolution(RegressionSolution):
    """
    User-facing results of a generalized linear model fit.
    
    Wraps the IRLS Result together with the Distribution it was fitted
    with, so that predictions can be mapped back to the response scale.
    """
    _distribution: 'Distribution'
    
    @property
    def distribution(self) -> 'Distribution':
        return self._distribution
    
    @property
    def linear_predictor(self) -> NDArray[np.floating[Any]]:
        return self._result.params.linear_predictor
    
    @property
    def deviance(self) -> float:
        return self._result.params.deviance
    
    @property
    def null_deviance(self) -> float:
        return self._result.params.null_deviance
    
    @property
    def dispersion(self) -> float:
        return self._result.params.dispersion
    
    @property
    def n_iter(self) -> int:
        return self._result.params.n_iter
    
    @property
    def converged(self) -> bool:
        return self._result.params.converged
    
    def predict(self, X_new: ArrayLike) -> NDArray[np.floating[Any]]:
        """
        Predicted mean responses g⁻¹(X_new β).
        
        X_new holds the explanatory variables only; the constant column is
        added if the model was fitted with one.
        """
        eta = self._prepare_new_design(X_new) @ self.coefficients
        return self._distribution.fit(eta)
    
    def summary(self) -> str:
        """Generate a text summary of the fit."""
        params = self._result.params
        status = "converged" if self.converged else "NOT converged"
        lines = [
            "Generalized Linear Model Results",
            "=" * 64,
            f"Distribution:     {params.distribution_name} (link: {params.link_name})",
            f"Observations (N): {self.observation_count}",
            f"Variables (K):    {self.variable_count}",
            f"Deg. of freedom:  {self.degrees_of_freedom}",
            f"SSE:              {self.sum_squared_errors:.6f}",
            f"MSE:              {self.mean_squared_error:.6f}",
            f"Root MSE:         {self.root_mean_squared_error:.6f}",
            f"Deviance:         {self.deviance:.6f} (null: {self.null_deviance:.6f})",
            f"Dispersion:       {self.dispersion:.6f}",
            f"IRLS iterations:  {self.n_iter} ({status})",
            "",
            "Coefficients:",
            "-" * 64,
        ]
        lines.extend(self._coefficient_table())
        lines.extend(self._footer())
        return "\n".join(lines)
    
    def __repr__(self) -> str:
        params = self._result.params
        return (
            f"{self.__class__.__name__}(distribution={params.distribution_name!r}, "
            f"link={params.link_name!r}, n={self.observation_count}, "
            f"p={self.variable_count}, deviance={self.deviance:.4f}, "
            f"converged={self.converged})"
        )
