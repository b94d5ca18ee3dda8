"""
Regression Design.

Design holds the validated inputs of one fit: the design matrix X
(observations in rows, variables in columns), the response y and the
prior (importance) weights. It is immutable and read-only for the
lifetime of a fit.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal
import numpy as np
from numpy.typing import ArrayLike, NDArray

from pyglm.core.validation import (
    check_array,
    check_finite,
    check_1d,
    check_2d,
    check_consistent_length,
    check_not_empty,
    check_nonnegative,
)


def add_constant(
    X: ArrayLike,
    value: float = 1.0,
    position: Literal['prepend', 'append'] = 'prepend',
) -> NDArray[np.floating[Any]]:
    """
    Add a constant column to a design matrix.
    
    Args:
        X: Matrix (n x p) or vector (n,), treated as a single column
        value: Value of every entry of the new column
        position: 'prepend' for the first column, 'append' for the last
        
    Returns:
        New (n x p+1) array; X is not modified
    """
    X = np.asarray(X, dtype=np.float64)
    if X.ndim == 1:
        X = X.reshape(-1, 1)
    column = np.full((X.shape[0], 1), value, dtype=np.float64)
    if position == 'prepend':
        return np.hstack([column, X])
    if position == 'append':
        return np.hstack([X, column])
    raise ValueError(f"position must be 'prepend' or 'append', got {position!r}")


@dataclass(frozen=True)
class Design:
    """
    Validated inputs of a single fit.
    
    Immutable after construction.
    
    Construction:
        Design.from_arrays(X, y)                           # unit weights
        Design.from_arrays(X, y, weights=w)                # importance weights
        Design.from_arrays(X, y, add_constant=True)        # prepend a 1.0 column
    """
    _X: NDArray[np.floating[Any]]
    _y: NDArray[np.floating[Any]]
    _weights: NDArray[np.floating[Any]]
    _n: int
    _p: int
    _has_constant: bool = False
    
    @classmethod
    def from_arrays(
        cls,
        X: ArrayLike,
        y: ArrayLike,
        weights: ArrayLike | None = None,
        *,
        add_constant: bool = False,
    ) -> Design:
        """
        Build Design directly from arrays.
        
        Args:
            X: Design matrix (n x p); a 1D array is one variable
            y: Response vector (n,)
            weights: Non-negative importance weights (n,), default 1.0 each
            add_constant: Prepend a constant 1.0 column to X
            
        Raises:
            DimensionError: If X rows, y and weights disagree in length
            EmptyInputError: If there are no observations
            DomainError: If any weight is negative
            ValidationError: On non-numeric or non-finite input
        """
        X_arr = check_array(X, 'X')
        y_arr = check_array(y, 'y')
        if weights is None:
            w_arr = np.ones(y_arr.shape[0] if y_arr.ndim > 0 else 0, dtype=np.float64)
        else:
            w_arr = check_array(weights, 'weights')
        return cls._build(X_arr, y_arr, w_arr, add_constant=add_constant)
    
    @classmethod
    def _build(
        cls,
        X: NDArray,
        y: NDArray,
        weights: NDArray,
        add_constant: bool,
    ) -> Design:
        """Internal builder with validation."""
        if X.ndim == 1:
            X = X.reshape(-1, 1)
        if y.ndim == 2 and y.shape[1] == 1:
            y = y.ravel()
        
        check_2d(X, 'X')
        check_1d(y, 'y')
        check_1d(weights, 'weights')
        check_consistent_length(X, y, weights, names=('X', 'y', 'weights'))
        check_not_empty(X, 'X')
        check_finite(X, 'X')
        check_finite(y, 'y')
        check_finite(weights, 'weights')
        check_nonnegative(weights, 'weights')
        
        if add_constant:
            X = _prepend_constant(X)
        
        n, p = X.shape
        return cls(_X=X, _y=y, _weights=weights, _n=n, _p=p, _has_constant=add_constant)
    
    # === Properties ===
    
    @property
    def X(self) -> NDArray[np.floating[Any]]:
        """Design matrix (n x p), including the constant column if added."""
        return self._X
    
    @property
    def y(self) -> NDArray[np.floating[Any]]:
        """Response vector (n,)."""
        return self._y
    
    @property
    def weights(self) -> NDArray[np.floating[Any]]:
        """Prior weights (n,)."""
        return self._weights
    
    @property
    def n(self) -> int:
        """Number of observations."""
        return self._n
    
    @property
    def p(self) -> int:
        """Number of variables (columns of X)."""
        return self._p
    
    @property
    def has_constant(self) -> bool:
        """Whether a constant column was prepended at construction."""
        return self._has_constant
    
    def XtX(self) -> NDArray[np.floating[Any]]:
        """Compute X'X (for standard errors)."""
        return self._X.T @ self._X


def _prepend_constant(X: NDArray) -> NDArray:
    return add_constant(X, 1.0, position='prepend')
