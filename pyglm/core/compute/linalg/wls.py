"""
Weighted least squares.

Solves β = (X'WX)⁻¹ X'Wy for a diagonal weight matrix W without ever
forming X'WX: the system is transformed to √W·X, √W·y and solved by
pivoted QR, which keeps the round-off that IRLS accumulates across
iterations close to machine precision.
"""

from dataclasses import dataclass
from typing import Any
import numpy as np
from numpy.typing import NDArray

from pyglm.core.compute.linalg.qr import qr_solve, SingularPolicy
from pyglm.core.validation import (
    check_1d,
    check_2d,
    check_consistent_length,
    check_finite,
    check_nonnegative,
)


@dataclass(frozen=True)
class WLSResult:
    """
    Result of a weighted least squares solve.
    
    Attributes:
        coefficients: β (p,)
        rank: Numerical rank of √W·X
        pivot: Column pivot from the QR factorization
        R: Triangular factor of √W·X (X'WX = R'R up to pivoting)
        pseudo_inverse: True if the minimum-norm fallback was used
    """
    coefficients: NDArray[np.floating[Any]]
    rank: int
    pivot: NDArray[np.intp]
    R: NDArray[np.floating[Any]]
    pseudo_inverse: bool


def wls_solve(
    X: NDArray[np.floating[Any]],
    y: NDArray[np.floating[Any]],
    weights: NDArray[np.floating[Any]],
    on_singular: SingularPolicy = 'raise',
) -> WLSResult:
    """
    Solve the weighted normal equations (X'WX)β = X'Wy.
    
    Args:
        X: Design matrix (n x p)
        y: Working response (n,)
        weights: Diagonal of W (n,), non-negative
        on_singular: 'raise' or 'pinv', see qr_solve()
        
    Returns:
        WLSResult
        
    Raises:
        DimensionError: If X, y and weights disagree in length
        DomainError: If any weight is negative
        ValidationError: If any weight is non-finite
        SingularMatrixError: If X'WX is singular and on_singular='raise'
    """
    check_2d(X, 'X')
    check_1d(y, 'y')
    check_1d(weights, 'weights')
    check_consistent_length(X, y, weights, names=('X', 'y', 'weights'))
    check_finite(weights, 'weights')
    check_nonnegative(weights, 'weights')
    
    sqrt_w = np.sqrt(weights)
    X_tilde = X * sqrt_w[:, np.newaxis]
    y_tilde = y * sqrt_w
    
    coefficients, qr_result = qr_solve(X_tilde, y_tilde, on_singular=on_singular)
    
    return WLSResult(
        coefficients=coefficients,
        rank=qr_result.rank,
        pivot=qr_result.pivot,
        R=qr_result.R,
        pseudo_inverse=qr_result.rank < X.shape[1],
    )
