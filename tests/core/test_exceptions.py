"""
Tests for PyGLM exception hierarchy.

Validates:
    - Inheritance chain (all exceptions catchable via PyGLMError)
    - Diagnostic attributes on DomainError, SingularMatrixError,
      ConvergenceError
    - Default attribute values (None for optional attributes)
"""

import pytest

from pyglm.core.exceptions import (
    ConvergenceError,
    DimensionError,
    DomainError,
    EmptyInputError,
    NumericalError,
    PyGLMError,
    SingularMatrixError,
    ValidationError,
)


# ═══════════════════════════════════════════════════════════════════════
# Inheritance hierarchy
# ═══════════════════════════════════════════════════════════════════════


class TestInheritance:
    """Every exception is catchable via PyGLMError."""

    def test_validation_error_is_pyglm_error(self):
        with pytest.raises(PyGLMError):
            raise ValidationError("bad input")

    @pytest.mark.parametrize("exc", [DimensionError, EmptyInputError, DomainError])
    def test_input_errors_are_validation_errors(self, exc):
        with pytest.raises(ValidationError):
            raise exc("bad input")

    def test_singular_matrix_error_is_numerical_error(self):
        with pytest.raises(NumericalError):
            raise SingularMatrixError("singular")

    def test_numerical_error_is_not_validation_error(self):
        assert not isinstance(SingularMatrixError("singular"), ValidationError)

    def test_convergence_error_is_pyglm_error(self):
        with pytest.raises(PyGLMError):
            raise ConvergenceError("did not converge", iterations=25)

    def test_convergence_error_is_distinct(self):
        """Non-convergence is neither a validation nor a numerical error."""
        err = ConvergenceError("did not converge", iterations=25)
        assert not isinstance(err, NumericalError)
        assert not isinstance(err, ValidationError)


# ═══════════════════════════════════════════════════════════════════════
# DomainError
# ═══════════════════════════════════════════════════════════════════════


class TestDomainError:

    def test_attributes(self):
        err = DomainError("x out of range", value=171.0, bounds="[0, 170]")
        assert str(err) == "x out of range"
        assert err.value == 171.0
        assert err.bounds == "[0, 170]"

    def test_defaults_are_none(self):
        err = DomainError("bad")
        assert err.value is None
        assert err.bounds is None


# ═══════════════════════════════════════════════════════════════════════
# SingularMatrixError
# ═══════════════════════════════════════════════════════════════════════


class TestSingularMatrixError:
    """SingularMatrixError carries matrix diagnostic attributes."""

    def test_all_attributes(self):
        err = SingularMatrixError(
            "X'WX is singular",
            matrix_name="X'WX",
            condition_number=1e18,
            rank=3,
            expected_rank=5,
        )
        assert str(err) == "X'WX is singular"
        assert err.matrix_name == "X'WX"
        assert err.condition_number == 1e18
        assert err.rank == 3
        assert err.expected_rank == 5

    def test_defaults_are_none(self):
        err = SingularMatrixError("singular")
        assert err.matrix_name is None
        assert err.condition_number is None
        assert err.rank is None
        assert err.expected_rank is None


# ═══════════════════════════════════════════════════════════════════════
# ConvergenceError
# ═══════════════════════════════════════════════════════════════════════


class TestConvergenceError:
    """ConvergenceError carries iteration diagnostics."""

    def test_all_attributes(self):
        err = ConvergenceError(
            "IRLS did not converge",
            iterations=25,
            final_change=1e-4,
            reason="max_iterations",
            threshold=1e-8,
        )
        assert str(err) == "IRLS did not converge"
        assert err.iterations == 25
        assert err.final_change == 1e-4
        assert err.reason == "max_iterations"
        assert err.threshold == 1e-8

    def test_required_iterations(self):
        """iterations is required (positional)."""
        err = ConvergenceError("failed", 42)
        assert err.iterations == 42

    def test_defaults_are_none(self):
        err = ConvergenceError("failed", iterations=10)
        assert err.final_change is None
        assert err.reason is None
        assert err.threshold is None
