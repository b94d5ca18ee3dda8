"""
Tests for the factorial lookup table.
"""

import math

import numpy as np
import pytest

from pyglm.core.exceptions import DomainError
from pyglm.special import FACTORIALS, FACTORIAL_LIMIT, FactorialTable


class TestFactorialTable:

    def test_known_values(self):
        assert FACTORIALS.get(5) == 120.0
        assert FACTORIALS.get(0) == 1.0
        assert FACTORIALS.get(1) == 1.0
        assert FACTORIALS.get_log(5) == pytest.approx(math.log(120.0), rel=1e-15)

    def test_size(self):
        assert len(FACTORIALS) == 171
        assert FACTORIALS.limit == FACTORIAL_LIMIT == 170

    def test_matches_math_factorial(self):
        for n in (10, 20, 50, 100, 170):
            assert FACTORIALS.get(n) == pytest.approx(float(math.factorial(n)), rel=1e-12)
            assert FACTORIALS.get_log(n) == pytest.approx(math.lgamma(n + 1), rel=1e-12)

    def test_largest_entry_is_finite(self):
        assert np.isfinite(FACTORIALS.get(170))

    def test_integer_valued_float_accepted(self):
        assert FACTORIALS.get(4.0) == 24.0

    @pytest.mark.parametrize("n", [-1, 171, 1000])
    def test_get_out_of_range(self, n):
        with pytest.raises(DomainError) as exc_info:
            FACTORIALS.get(n)
        assert exc_info.value.value == float(n)
        assert exc_info.value.bounds == "[0, 170]"

    @pytest.mark.parametrize("n", [0, -3, 171])
    def test_get_log_out_of_range(self, n):
        with pytest.raises(DomainError):
            FACTORIALS.get_log(n)

    @pytest.mark.parametrize("n", [2.5, float('nan'), "3"])
    def test_non_integer_rejected(self, n):
        with pytest.raises(DomainError, match="integer"):
            FACTORIALS.get(n)

    def test_table_is_read_only(self):
        with pytest.raises(ValueError):
            FACTORIALS._values[3] = 0.0

    def test_smaller_table(self):
        table = FactorialTable(limit=10)
        assert len(table) == 11
        assert table.get(10) == 3628800.0
        with pytest.raises(DomainError):
            table.get(11)

    def test_limit_beyond_float_range(self):
        with pytest.raises(DomainError):
            FactorialTable(limit=171)
