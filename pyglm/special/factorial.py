"""
Factorial and log-factorial lookup table.

170! is the largest factorial representable as a float64, so the table
holds exactly 171 entries (0! through 170!). It is built once at import
and is read-only afterwards, so concurrent readers need no locking.
"""

from __future__ import annotations

import numbers

import numpy as np
from numpy.typing import NDArray

from pyglm.core.exceptions import DomainError


FACTORIAL_LIMIT = 170


class FactorialTable:
    """
    Immutable table of n! and log(n!) for n in [0, 170].

    Examples:
        >>> FACTORIALS.get(5)
        120.0
        >>> FACTORIALS.get_log(5) == math.log(120.0)
        True
    """

    def __init__(self, limit: int = FACTORIAL_LIMIT):
        if not 0 <= limit <= FACTORIAL_LIMIT:
            raise DomainError(
                f"limit must lie in [0, {FACTORIAL_LIMIT}], got {limit}",
                value=float(limit),
                bounds=f"[0, {FACTORIAL_LIMIT}]",
            )
        self._limit = limit

        values = np.ones(limit + 1, dtype=np.float64)
        values[1:] = np.cumprod(np.arange(1, limit + 1, dtype=np.float64))
        logs = np.log(values)

        values.setflags(write=False)
        logs.setflags(write=False)
        self._values: NDArray[np.float64] = values
        self._logs: NDArray[np.float64] = logs

    @property
    def limit(self) -> int:
        return self._limit

    def get(self, n: int) -> float:
        """n! for n in [0, limit]."""
        index = self._index(n, lower=0, bounds=f"[0, {self._limit}]")
        return float(self._values[index])

    def get_log(self, n: int) -> float:
        """log(n!) for n in (0, limit]."""
        index = self._index(n, lower=1, bounds=f"(0, {self._limit}]")
        return float(self._logs[index])

    def _index(self, n: int, lower: int, bounds: str) -> int:
        if not isinstance(n, numbers.Integral):
            if isinstance(n, numbers.Real) and float(n).is_integer():
                n = int(n)
            else:
                raise DomainError(
                    f"Factorial argument must be an integer, got {n!r}",
                    bounds=bounds,
                )
        if n < lower or n > self._limit:
            raise DomainError(
                f"Factorial argument out of range: {n} not in {bounds}",
                value=float(n),
                bounds=bounds,
            )
        return int(n)

    def __len__(self) -> int:
        return self._limit + 1

    def __repr__(self) -> str:
        return f"FactorialTable(limit={self._limit})"


# Shared process-wide table.
FACTORIALS = FactorialTable()
