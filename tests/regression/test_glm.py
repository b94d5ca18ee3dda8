"""
GLM tests: IRLS convergence, solution interface, robust standard errors
and error handling.
"""

import warnings

import numpy as np
import pytest
from scipy import optimize

from pyglm.core.exceptions import (
    ConvergenceError,
    DimensionError,
    DomainError,
    EmptyInputError,
    SingularMatrixError,
)
from pyglm.core.compute.tolerances import CPU_FP64, IRLS_CONVERGED
from pyglm.regression import (
    GeneralizedLinearModel,
    GLMSolution,
    Gaussian,
    Poisson,
    add_constant,
    fit,
)


@pytest.fixture
def noise_free_data(rng):
    n = 50
    X = rng.standard_normal((n, 2))
    y = 1.0 + 2.0 * X[:, 0] - 3.0 * X[:, 1]
    return X, y


# =====================================================================
# Gaussian / identity
# =====================================================================

class TestGaussianIRLS:

    def test_noise_free_matches_ols(self, noise_free_data):
        X, y = noise_free_data
        result = fit(X, y, add_constant=True)
        expected = np.linalg.lstsq(add_constant(X), y, rcond=None)[0]
        np.testing.assert_allclose(result.coefficients, expected, rtol=1e-10, atol=1e-10)
        np.testing.assert_allclose(result.coefficients, [1.0, 2.0, -3.0], atol=1e-10)
        assert result.sum_squared_errors < 1e-16
        assert result.converged
        assert result.n_iter <= 3

    def test_matches_ols_with_noise(self, simple_regression_data):
        X, y, _ = simple_regression_data
        result = fit(X, y)
        expected = np.linalg.lstsq(X, y, rcond=None)[0]
        np.testing.assert_allclose(
            result.coefficients, expected, rtol=IRLS_CONVERGED.rtol, atol=IRLS_CONVERGED.atol
        )

    def test_weighted_matches_normal_equations(self, rng, simple_regression_data):
        X, y, _ = simple_regression_data
        w = rng.uniform(0.2, 3.0, size=len(y))
        result = fit(X, y, w)
        XtW = X.T * w
        expected = np.linalg.solve(XtW @ X, XtW @ y)
        np.testing.assert_allclose(result.coefficients, expected, rtol=1e-8)

    def test_deviance_is_rss_with_unit_weights(self, simple_regression_data):
        X, y, _ = simple_regression_data
        result = fit(X, y)
        assert result.deviance == pytest.approx(result.sum_squared_errors, rel=1e-12)
        assert result.dispersion == pytest.approx(result.deviance / result.degrees_of_freedom)

    def test_one_dimensional_design(self, rng):
        x = rng.standard_normal(30)
        y = 0.5 + 1.5 * x
        result = fit(x, y, add_constant=True)
        np.testing.assert_allclose(result.coefficients, [0.5, 1.5], atol=1e-10)


# =====================================================================
# Poisson / log
# =====================================================================

class TestPoissonIRLS:

    def test_recovers_coefficients(self, poisson_data):
        X, y, beta_true = poisson_data
        result = fit(X, y, distribution='poisson', add_constant=True)
        assert result.converged
        assert result.n_iter < 25
        np.testing.assert_allclose(result.coefficients, beta_true, atol=0.15)

    def test_score_equations_hold(self, poisson_data):
        """Canonical link: X'(y - μ) = 0 at the MLE."""
        X, y, _ = poisson_data
        result = fit(X, y, distribution=Poisson(), add_constant=True)
        score = add_constant(X).T @ (y - result.fitted_values)
        np.testing.assert_allclose(score, 0.0, atol=1e-4)

    def test_fitted_values_are_inverse_link(self, poisson_data):
        X, y, _ = poisson_data
        result = fit(X, y, distribution='poisson', add_constant=True)
        np.testing.assert_allclose(result.fitted_values, np.exp(result.linear_predictor))
        np.testing.assert_allclose(result.residuals, y - result.fitted_values)

    def test_dispersion_fixed(self, poisson_data):
        X, y, _ = poisson_data
        assert fit(X, y, distribution='poisson', add_constant=True).dispersion == 1.0

    def test_deviance_below_null(self, poisson_data):
        X, y, _ = poisson_data
        result = fit(X, y, distribution='poisson', add_constant=True)
        assert 0.0 <= result.deviance < result.null_deviance

    def test_predict_response_scale(self, poisson_data):
        X, y, _ = poisson_data
        result = fit(X, y, distribution='poisson', add_constant=True)
        X_new = np.array([[0.0, 0.0], [1.0, -1.0]])
        expected = np.exp(add_constant(X_new) @ result.coefficients)
        np.testing.assert_allclose(result.predict(X_new), expected)

    def test_all_zero_response(self):
        X = np.arange(10.0).reshape(-1, 1)
        result = fit(X, np.zeros(10), distribution='poisson', add_constant=True)
        assert result.converged
        assert np.all(np.isfinite(result.coefficients))
        assert np.all(result.fitted_values < 1e-8)
        assert result.deviance == pytest.approx(0.0, abs=1e-6)
        assert result.null_deviance == 0.0
        assert result.coefficients[1] == pytest.approx(0.0, abs=1e-6)

    def test_negative_response_rejected(self, poisson_data):
        X, y, _ = poisson_data
        y = y.copy()
        y[0] = -1.0
        with pytest.raises(DomainError):
            fit(X, y, distribution='poisson', add_constant=True)


# =====================================================================
# Non-canonical links
# =====================================================================

class TestNonCanonicalLinks:

    def test_poisson_identity_matches_direct_likelihood(self, rng):
        n = 500
        x = rng.uniform(0.0, 2.0, n)
        y = rng.poisson(2.0 + 1.5 * x).astype(np.float64)
        X = add_constant(x.reshape(-1, 1))

        result = fit(X, y, distribution=Poisson(link='identity'))
        assert result.converged
        np.testing.assert_allclose(result.fitted_values, X @ result.coefficients)

        # Score for the identity link: X'((y - μ) / μ) = 0
        mu = result.fitted_values
        np.testing.assert_allclose(X.T @ ((y - mu) / mu), 0.0, atol=1e-3)

        def negative_log_likelihood(beta):
            mu = X @ beta
            return np.sum(mu - y * np.log(mu))

        def gradient(beta):
            return X.T @ (1.0 - y / (X @ beta))

        start = np.linalg.lstsq(X, y, rcond=None)[0]
        reference = optimize.minimize(
            negative_log_likelihood, start, jac=gradient,
            method='BFGS', options={'gtol': 1e-9},
        )
        np.testing.assert_allclose(result.coefficients, reference.x, rtol=1e-4)
        assert result.deviance < result.null_deviance

    def test_gaussian_log_matches_nonlinear_least_squares(self, rng):
        n = 200
        x = rng.uniform(0.0, 2.0, n)
        y = np.exp(0.5 + 0.3 * x) + 0.1 * rng.standard_normal(n)
        X = add_constant(x.reshape(-1, 1))

        result = fit(X, y, distribution=Gaussian(link='log'))
        assert result.converged
        np.testing.assert_allclose(result.fitted_values, np.exp(X @ result.coefficients))

        # Score for the log link: X'((y - μ) · μ) = 0
        mu = result.fitted_values
        np.testing.assert_allclose(X.T @ ((y - mu) * mu), 0.0, atol=1e-3)

        start = np.linalg.lstsq(X, np.log(y), rcond=None)[0]
        reference = optimize.least_squares(
            lambda beta: y - np.exp(X @ beta), start,
            xtol=1e-14, ftol=1e-14, gtol=1e-14,
        )
        np.testing.assert_allclose(result.coefficients, reference.x, rtol=1e-5, atol=1e-5)
        np.testing.assert_allclose(result.coefficients, [0.5, 0.3], atol=0.05)
        assert result.deviance == pytest.approx(2.0 * reference.cost, rel=1e-6)

    def test_non_canonical_standard_errors_finite(self, rng):
        n = 300
        x = rng.uniform(0.0, 2.0, n)
        y = rng.poisson(1.0 + x).astype(np.float64)
        result = fit(x.reshape(-1, 1), y, distribution=Poisson(link='identity'),
                     add_constant=True)
        assert np.all(np.isfinite(result.standard_errors_hc0))
        assert np.all(result.standard_errors_hc0 > 0)


# =====================================================================
# Robust standard errors
# =====================================================================

class TestStandardErrors:

    def test_ols_standard_errors(self, simple_regression_data):
        X, y, _ = simple_regression_data
        result = fit(X, y)
        n, p = X.shape
        e = y - X @ result.coefficients
        sigma_sq = (e @ e) / (n - p)
        expected = np.sqrt(np.diag(sigma_sq * np.linalg.inv(X.T @ X)))
        np.testing.assert_allclose(result.standard_errors_ols, expected, rtol=1e-6)
        np.testing.assert_allclose(result.variance_ols, expected ** 2, rtol=1e-6)

    def test_hc0_standard_errors(self, simple_regression_data):
        X, y, _ = simple_regression_data
        result = fit(X, y)
        e = result.residuals
        bread = np.linalg.inv(X.T @ X)
        meat = X.T @ np.diag(e ** 2) @ X
        expected = np.sqrt(np.diag(bread @ meat @ bread))
        np.testing.assert_allclose(
            result.standard_errors_hc0, expected, rtol=CPU_FP64.rtol * 1e3
        )

    @pytest.mark.parametrize("distribution", ['gaussian', 'poisson'])
    def test_hc1_is_scaled_hc0(self, poisson_data, distribution):
        X, y, _ = poisson_data
        result = fit(X, y, distribution=distribution, add_constant=True)
        n, p = result.observation_count, result.variable_count
        np.testing.assert_allclose(
            result.standard_errors_hc1,
            result.standard_errors_hc0 * np.sqrt(n / (n - p)),
            rtol=1e-15,
        )
        np.testing.assert_allclose(
            result.variance_hc1, result.variance_hc0 * n / (n - p), rtol=1e-14
        )

    def test_covariance_shared(self, simple_regression_data):
        X, y, _ = simple_regression_data
        result = fit(X, y)
        cov = result.covariance
        np.testing.assert_allclose(cov.xtx_inv, np.linalg.inv(X.T @ X), rtol=1e-10)
        np.testing.assert_allclose(
            cov.covariance_ols, result.mean_squared_error * cov.xtx_inv, rtol=1e-12
        )


# =====================================================================
# Read contract
# =====================================================================

class TestReadContract:

    def test_counts(self, simple_regression_data):
        X, y, _ = simple_regression_data
        result = fit(X, y, add_constant=True)
        assert result.observation_count == 100
        assert result.variable_count == 4
        assert result.degrees_of_freedom == 96
        assert len(result.coefficients) == 4

    def test_error_measures(self, simple_regression_data):
        X, y, _ = simple_regression_data
        result = fit(X, y)
        assert result.mean_squared_error == pytest.approx(result.sum_squared_errors / 97)
        assert result.root_mean_squared_error == pytest.approx(
            np.sqrt(result.mean_squared_error)
        )

    def test_evaluate(self, simple_regression_data):
        X, y, _ = simple_regression_data
        result = fit(X, y, add_constant=True)
        observation = np.array([1.0, 0.5, -0.5, 2.0])
        assert result.evaluate(observation) == pytest.approx(observation @ result.coefficients)

    def test_evaluate_length_mismatch(self, simple_regression_data):
        X, y, _ = simple_regression_data
        result = fit(X, y, add_constant=True)
        with pytest.raises(DimensionError):
            result.evaluate([0.5, -0.5, 2.0])

    def test_predict_column_mismatch(self, simple_regression_data):
        X, y, _ = simple_regression_data
        result = fit(X, y)
        with pytest.raises(DimensionError):
            result.predict(np.ones((2, 4)))

    def test_info_and_timing(self, simple_regression_data):
        X, y, _ = simple_regression_data
        result = fit(X, y)
        assert result.info['method'] == 'irls_qr'
        assert result.info['converged'] is True
        assert len(result.info['deviance_history']) == result.n_iter + 1
        assert result.backend_name == 'cpu_irls'
        assert {'total_seconds', 'initialize', 'irls', 'robust'} <= set(result.timing)
        assert result.warnings == ()

    def test_summary_and_repr(self, poisson_data):
        X, y, _ = poisson_data
        result = fit(X, y, distribution='poisson', add_constant=True)
        text = result.summary()
        assert "Generalized Linear Model Results" in text
        assert "poisson (link: log)" in text
        assert "SE (HC1)" in text
        assert "GLMSolution(distribution='poisson'" in repr(result)


# =====================================================================
# Convergence
# =====================================================================

class TestConvergence:

    def test_non_convergence_warns(self, poisson_data):
        X, y, _ = poisson_data
        with pytest.warns(RuntimeWarning, match="did not converge"):
            result = fit(X, y, distribution='poisson', add_constant=True, max_iter=1)
        assert not result.converged
        assert result.n_iter == 1
        assert result.info['converged'] is False
        assert any("did not converge" in w for w in result.warnings)

    def test_non_convergence_strict(self, poisson_data):
        X, y, _ = poisson_data
        with pytest.raises(ConvergenceError) as exc_info:
            fit(X, y, distribution='poisson', add_constant=True, max_iter=1, strict=True)
        assert exc_info.value.iterations == 1
        assert exc_info.value.reason == 'max_iterations'
        assert exc_info.value.threshold == 1e-8

    def test_converged_fit_does_not_warn(self, poisson_data):
        X, y, _ = poisson_data
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            fit(X, y, distribution='poisson', add_constant=True)

    def test_invalid_max_iter(self, simple_regression_data):
        X, y, _ = simple_regression_data
        with pytest.raises(ValueError):
            fit(X, y, max_iter=0)


# =====================================================================
# Errors
# =====================================================================

class TestErrors:

    def test_response_length_mismatch(self, simple_regression_data):
        X, y, _ = simple_regression_data
        with pytest.raises(DimensionError):
            fit(X, y[:-1])

    def test_weights_length_mismatch(self, simple_regression_data):
        X, y, _ = simple_regression_data
        with pytest.raises(DimensionError):
            GeneralizedLinearModel(X, y, np.ones(len(y) + 1))

    def test_empty_design(self):
        with pytest.raises(EmptyInputError):
            GeneralizedLinearModel(np.empty((0, 2)), np.empty(0))

    def test_nonpositive_degrees_of_freedom(self, rng):
        X = rng.standard_normal((3, 3))
        with pytest.raises(DomainError, match="Degrees of freedom"):
            fit(X, rng.standard_normal(3))

    def test_constant_counts_toward_degrees_of_freedom(self, rng):
        X = rng.standard_normal((3, 2))
        with pytest.raises(DomainError):
            fit(X, rng.standard_normal(3), add_constant=True)

    def test_negative_weights(self, simple_regression_data):
        X, y, _ = simple_regression_data
        w = np.ones(len(y))
        w[5] = -1.0
        with pytest.raises(DomainError):
            fit(X, y, w)

    def test_singular_design(self, collinear_data):
        X, y = collinear_data
        with pytest.raises(SingularMatrixError):
            fit(X, y)

    def test_singular_design_pinv(self, collinear_data):
        X, y = collinear_data
        with pytest.warns(RuntimeWarning, match="rank-deficient"):
            result = fit(X, y, on_singular='pinv')
        np.testing.assert_allclose(
            result.coefficients, np.linalg.pinv(X) @ y, rtol=1e-6, atol=1e-8
        )
        assert result.rank == 2
        assert np.all(np.isnan(result.standard_errors_ols))
        assert any("rank-deficient" in w for w in result.warnings)

    def test_ill_conditioned_covariance(self, ill_conditioned_data):
        X, y = ill_conditioned_data
        with pytest.raises(SingularMatrixError):
            fit(X, y, add_constant=True)

    def test_ill_conditioned_covariance_pinv(self, ill_conditioned_data):
        X, y = ill_conditioned_data
        with pytest.warns(RuntimeWarning, match="Coefficient covariance unavailable"):
            result = fit(X, y, add_constant=True, on_singular='pinv')
        assert result.rank == 3
        assert result.converged
        assert result.covariance is None
        assert np.all(np.isnan(result.standard_errors_ols))
        assert np.all(np.isnan(result.standard_errors_hc1))
        assert any("covariance unavailable" in w for w in result.warnings)

    def test_unknown_backend(self, simple_regression_data):
        X, y, _ = simple_regression_data
        with pytest.raises(ValueError, match="Unknown backend"):
            fit(X, y, backend='gpu')


# =====================================================================
# Model class
# =====================================================================

class TestGeneralizedLinearModel:

    def test_fits_at_construction(self, poisson_data):
        X, y, _ = poisson_data
        model = GeneralizedLinearModel(X, y, distribution=Poisson(), add_constant=True)
        assert isinstance(model, GLMSolution)
        expected = fit(X, y, distribution='poisson', add_constant=True)
        np.testing.assert_array_equal(model.coefficients, expected.coefficients)
        assert repr(model).startswith("GeneralizedLinearModel(")

    def test_default_distribution_is_gaussian(self, simple_regression_data):
        X, y, _ = simple_regression_data
        model = GeneralizedLinearModel(X, y)
        assert isinstance(model.distribution, Gaussian)
        np.testing.assert_allclose(
            model.coefficients, np.linalg.lstsq(X, y, rcond=None)[0], rtol=1e-6
        )
