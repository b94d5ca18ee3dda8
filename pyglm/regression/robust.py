"""
Coefficient covariance estimators.

All estimators share a single (X'X)⁻¹, computed once per model:

    OLS:  σ̂² (X'X)⁻¹,                 σ̂² = SSE / (n - p)
    HC0:  (X'X)⁻¹ X' diag(eᵢ²) X (X'X)⁻¹   (White, 1980)
    HC1:  HC0 · n / (n - p)              (MacKinnon & White, 1985;
                                          Stata's 'robust')

Standard errors are the square roots of the covariance diagonals.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal
import warnings

import numpy as np
from numpy.typing import NDArray
from scipy import linalg

from pyglm.core.exceptions import SingularMatrixError
from pyglm.core.validation import (
    check_1d,
    check_2d,
    check_consistent_length,
    check_degrees_of_freedom,
)


CovarianceType = Literal['ols', 'hc0', 'hc1']


@dataclass(frozen=True)
class RobustCovariance:
    """
    OLS and heteroskedasticity-consistent coefficient covariances.
    
    Attributes:
        xtx_inv: (X'X)⁻¹ (p x p), shared by all three estimators
        covariance_ols: σ̂² (X'X)⁻¹
        covariance_hc0: White sandwich estimator
        covariance_hc1: HC0 with the n/(n-p) small-sample correction
        n: Observations
        p: Variables
    """
    xtx_inv: NDArray[np.floating[Any]]
    covariance_ols: NDArray[np.floating[Any]]
    covariance_hc0: NDArray[np.floating[Any]]
    covariance_hc1: NDArray[np.floating[Any]]
    n: int
    p: int
    
    @classmethod
    def from_residuals(
        cls,
        X: NDArray[np.floating[Any]],
        residuals: NDArray[np.floating[Any]],
    ) -> RobustCovariance:
        """
        Build all covariance estimates from the design and residuals.
        
        Args:
            X: Design matrix (n x p)
            residuals: e = y - ŷ (n,)
            
        Raises:
            DimensionError: If X and residuals disagree in length
            DomainError: If n - p <= 0
            SingularMatrixError: If X'X is not invertible
        """
        check_2d(X, 'X')
        check_1d(residuals, 'residuals')
        check_consistent_length(X, residuals, names=('X', 'residuals'))
        n, p = X.shape
        df = check_degrees_of_freedom(n, p)
        
        xtx_inv = _invert_crossproduct(X)
        
        sigma_sq = float(residuals @ residuals) / df
        covariance_ols = sigma_sq * xtx_inv
        
        meat = X.T @ (X * (residuals ** 2)[:, np.newaxis])
        covariance_hc0 = xtx_inv @ meat @ xtx_inv
        covariance_hc1 = covariance_hc0 * (n / df)
        
        return cls(
            xtx_inv=xtx_inv,
            covariance_ols=covariance_ols,
            covariance_hc0=covariance_hc0,
            covariance_hc1=covariance_hc1,
            n=n,
            p=p,
        )
    
    @property
    def small_sample_factor(self) -> float:
        """n / (n - p)."""
        return self.n / (self.n - self.p)
    
    def covariance(self, kind: CovarianceType = 'ols') -> NDArray[np.floating[Any]]:
        """Full covariance matrix of the given kind."""
        if kind == 'ols':
            return self.covariance_ols
        if kind == 'hc0':
            return self.covariance_hc0
        if kind == 'hc1':
            return self.covariance_hc1
        raise ValueError(f"Unknown covariance type: {kind!r}. Valid: 'ols', 'hc0', 'hc1'")
    
    def variance(self, kind: CovarianceType = 'ols') -> NDArray[np.floating[Any]]:
        """Coefficient variances (diagonal of the covariance)."""
        if kind == 'hc1':
            return self.variance('hc0') * self.small_sample_factor
        return np.diag(self.covariance(kind)).copy()
    
    def standard_errors(self, kind: CovarianceType = 'ols') -> NDArray[np.floating[Any]]:
        """Coefficient standard errors."""
        if kind == 'hc1':
            return self.standard_errors('hc0') * np.sqrt(self.small_sample_factor)
        return np.sqrt(np.maximum(self.variance(kind), 0.0))


def robust_covariance(
    X: NDArray[np.floating[Any]],
    residuals: NDArray[np.floating[Any]],
    on_singular: str,
    warnings_list: list[str],
) -> RobustCovariance | None:
    """
    Build a RobustCovariance for a backend, honouring its singular policy.
    
    With on_singular='pinv' a singular X'X leaves the covariance
    undefined (None) and records a warning instead of raising.
    
    Raises:
        SingularMatrixError: If X'X is singular and on_singular='raise'
    """
    try:
        return RobustCovariance.from_residuals(X, residuals)
    except SingularMatrixError as e:
        if on_singular != 'pinv':
            raise
        message = f"Coefficient covariance unavailable, standard errors are NaN: {e}"
        warnings_list.append(message)
        warnings.warn(message, RuntimeWarning, stacklevel=3)
        return None


def _invert_crossproduct(X: NDArray[np.floating[Any]]) -> NDArray[np.floating[Any]]:
    """(X'X)⁻¹ via Cholesky, refusing numerically singular X'X."""
    p = X.shape[1]
    XtX = X.T @ X
    condition_number = float(np.linalg.cond(XtX))
    if not np.isfinite(condition_number) or condition_number > 1.0 / np.finfo(np.float64).eps:
        raise SingularMatrixError(
            f"X'X is singular or nearly singular (condition number {condition_number:.3e})",
            matrix_name="X'X",
            condition_number=condition_number,
            rank=int(np.linalg.matrix_rank(X)),
            expected_rank=p,
        )
    try:
        factor = linalg.cho_factor(XtX, lower=False)
    except linalg.LinAlgError as e:
        raise SingularMatrixError(
            f"X'X is not positive definite: {e}",
            matrix_name="X'X",
            condition_number=condition_number,
            expected_rank=p,
        ) from e
    return linalg.cho_solve(factor, np.eye(p))
