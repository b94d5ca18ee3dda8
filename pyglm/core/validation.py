"""
Input validation utilities for PyGLM.

These validators follow the "fail fast, fail loud" principle. They raise
immediately with clear error messages rather than silently correcting
or making assumptions about user intent.

Design principles:
    - No silent type coercion (except np.asarray on array-likes)
    - No default handling of edge cases
    - Clear, actionable error messages with actual values
    - Each function validates ONE thing
    - Parameter names included in all error messages
"""

import numpy as np
from numpy.typing import ArrayLike, NDArray
from typing import Any

from pyglm.core.exceptions import (
    ValidationError,
    DimensionError,
    EmptyInputError,
    DomainError,
)


def check_array(
    array: ArrayLike,
    name: str,
) -> NDArray[np.floating[Any]]:
    """
    Validate and convert input to numpy array.
    
    Accepts any array-like and converts to numpy array. Rejects inputs
    that result in object dtype (indicating mixed types, ragged rows or
    non-numeric data).
    
    Args:
        array: Input to validate
        name: Parameter name for error messages
        
    Returns:
        numpy.ndarray with floating dtype
        
    Raises:
        ValidationError: If input cannot be converted to numeric array
    """
    try:
        result = np.asarray(array)
    except (ValueError, TypeError) as e:
        raise DimensionError(f"{name}: cannot convert to array: {e}") from e
    
    if result.dtype == object:
        raise DimensionError(
            f"{name}: converted to object dtype, indicating ragged rows, "
            f"mixed types or non-numeric data"
        )

    if not np.issubdtype(result.dtype, np.number):
        raise ValidationError(
            f"{name}: non-numeric dtype {result.dtype}, expected numeric data"
        )

    if not np.issubdtype(result.dtype, np.floating):
        result = result.astype(np.float64)

    return result


def check_finite(array: NDArray[np.floating[Any]], name: str) -> None:
    """
    Verify array contains no NaN or Inf values.
    
    Raises:
        ValidationError: If array contains non-finite values
    """
    if not np.all(np.isfinite(array)):
        n_nan = int(np.sum(np.isnan(array)))
        n_inf = int(np.sum(np.isinf(array)))
        raise ValidationError(
            f"{name}: contains non-finite values ({n_nan} NaN, {n_inf} Inf)"
        )


def check_ndim(array: NDArray[np.floating[Any]], ndim: int, name: str) -> None:
    """
    Verify array has exactly the specified number of dimensions.
    
    Raises:
        DimensionError: If array has wrong number of dimensions
    """
    if array.ndim != ndim:
        raise DimensionError(
            f"{name}: expected {ndim}D array, got {array.ndim}D with shape {array.shape}"
        )


def check_1d(array: NDArray[np.floating[Any]], name: str) -> None:
    """Verify array is 1-dimensional."""
    check_ndim(array, 1, name)


def check_2d(array: NDArray[np.floating[Any]], name: str) -> None:
    """Verify array is 2-dimensional."""
    check_ndim(array, 2, name)


def check_consistent_length(
    *arrays: NDArray[np.floating[Any]], 
    names: tuple[str, ...]
) -> None:
    """
    Verify all arrays have the same length (first dimension).
    
    Args:
        *arrays: Arrays to check
        names: Parameter names for error messages (must match number of arrays)
        
    Raises:
        ValueError: If number of names doesn't match number of arrays
        DimensionError: If arrays have inconsistent lengths
    """
    if len(arrays) != len(names):
        raise ValueError(
            f"Number of arrays ({len(arrays)}) must match number of names ({len(names)})"
        )
    
    if len(arrays) < 2:
        return
    
    lengths = [arr.shape[0] for arr in arrays]
    if len(set(lengths)) > 1:
        details = ", ".join(f"{name}={length}" for name, length in zip(names, lengths))
        raise DimensionError(f"Inconsistent lengths: {details}")


def check_not_empty(array: NDArray[np.floating[Any]], name: str) -> None:
    """
    Verify array has at least one observation.
    
    Raises:
        EmptyInputError: If the first dimension is zero
    """
    if array.ndim == 0 or array.shape[0] == 0:
        raise EmptyInputError(f"{name}: no observations (shape {array.shape})")


def check_nonnegative(array: NDArray[np.floating[Any]], name: str) -> None:
    """
    Verify all entries are >= 0.
    
    Raises:
        DomainError: If any entry is negative
    """
    negative = np.flatnonzero(array < 0)
    if len(negative) > 0:
        first = int(negative[0])
        raise DomainError(
            f"{name}: {len(negative)} negative value(s), first at index {first} "
            f"({float(array.flat[first])})",
            value=float(array.flat[first]),
            bounds='[0, inf)',
        )


def check_positive(value: float, name: str) -> None:
    """
    Verify a scalar parameter is strictly positive.
    
    Raises:
        DomainError: If value <= 0 or not finite
    """
    if not np.isfinite(value) or value <= 0:
        raise DomainError(
            f"{name}: must be positive and finite, got {value}",
            value=float(value),
            bounds='(0, inf)',
        )


def check_degrees_of_freedom(n: int, p: int) -> int:
    """
    Verify residual degrees of freedom n - p are positive.
    
    Args:
        n: Number of observations
        p: Number of estimated coefficients
        
    Returns:
        n - p
        
    Raises:
        DomainError: If n - p <= 0
    """
    df = n - p
    if df <= 0:
        raise DomainError(
            f"Degrees of freedom must be positive: {n} observations, "
            f"{p} variables (df={df})",
            value=float(df),
            bounds='df >= 1',
        )
    return df

