"""
QR decomposition with column pivoting.

Provides the least-squares primitive used by both the closed-form
linear model and every IRLS iteration. Rank is determined from the
diagonal of R, so rank-deficient designs are detected instead of
producing NaN or garbage coefficients.
"""

from dataclasses import dataclass
from typing import Literal, Any
import numpy as np
from numpy.typing import NDArray
from scipy import linalg

from pyglm.core.exceptions import SingularMatrixError


SingularPolicy = Literal['raise', 'pinv']


@dataclass(frozen=True)
class QRResult:
    """
    Result of pivoted QR decomposition X[:, pivot] = QR.
    
    Attributes:
        Q: Orthonormal columns (n x k where k = min(n, p))
        R: Upper triangular matrix (k x p)
        pivot: Column permutation (0-indexed)
        rank: Numerical rank determined from the R diagonal
        tol: Relative tolerance used for the rank decision
    """
    Q: NDArray[np.floating[Any]]
    R: NDArray[np.floating[Any]]
    pivot: NDArray[np.intp]
    rank: int
    tol: float


def qr_cpu(X: NDArray[np.floating[Any]]) -> QRResult:
    """
    Economy QR decomposition with column pivoting (LAPACK geqp3 via SciPy).
    
    Args:
        X: Matrix to decompose (n x p)
        
    Returns:
        QRResult with Q, R, pivot and numerical rank
    """
    Q, R, pivot = linalg.qr(X, mode='economic', pivoting=True)
    
    diag_R = np.abs(np.diag(R))
    tol = max(X.shape) * np.finfo(np.float64).eps
    if len(diag_R) > 0 and diag_R[0] > 0:
        rank = int(np.sum(diag_R > tol * diag_R[0]))
    else:
        rank = 0
    
    return QRResult(Q=Q, R=R, pivot=pivot, rank=rank, tol=tol)


def qr_solve(
    X: NDArray[np.floating[Any]],
    y: NDArray[np.floating[Any]],
    on_singular: SingularPolicy = 'raise',
) -> tuple[NDArray[np.floating[Any]], QRResult]:
    """
    Solve least squares min_β ||y - Xβ||² via pivoted QR.
    
    The solution is computed as:
        X P = QR
        β[P] = R⁻¹ Q'y
    
    Args:
        X: Design matrix (n x p)
        y: Response vector (n,)
        on_singular: 'raise' to raise SingularMatrixError when X is
            rank-deficient, 'pinv' to return the minimum-norm
            pseudo-inverse solution instead
        
    Returns:
        (β, QRResult) where β has length p
        
    Raises:
        SingularMatrixError: If X is rank-deficient and on_singular='raise'
        ValueError: If on_singular is not recognized
    """
    if on_singular not in ('raise', 'pinv'):
        raise ValueError(
            f"on_singular must be 'raise' or 'pinv', got {on_singular!r}"
        )
    
    p = X.shape[1]
    qr_result = qr_cpu(X)
    
    if qr_result.rank < p:
        if on_singular == 'raise':
            raise SingularMatrixError(
                f"Design matrix is rank-deficient: rank={qr_result.rank}, expected={p}. "
                f"This indicates perfect multicollinearity or too few "
                f"observations with positive weight.",
                matrix_name="X'WX",
                condition_number=condition_from_r(qr_result.R),
                rank=qr_result.rank,
                expected_rank=p
            )
        beta, _, _, _ = linalg.lstsq(X, y, lapack_driver='gelsd')
        return beta, qr_result
    
    Qty = qr_result.Q.T @ y
    beta_pivoted = linalg.solve_triangular(qr_result.R[:p, :p], Qty[:p], lower=False)
    
    beta = np.empty(p, dtype=np.float64)
    beta[qr_result.pivot] = beta_pivoted
    return beta, qr_result


def condition_from_r(R: NDArray[np.floating[Any]]) -> float:
    """Condition number estimate from the R diagonal (inf when singular)."""
    diag_R = np.abs(np.diag(R))
    if len(diag_R) == 0 or diag_R.min() == 0:
        return float('inf')
    return float(diag_R.max() / diag_R.min())
