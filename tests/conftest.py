"""
pytest configuration and shared fixtures.
"""

import pytest
import numpy as np


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return np.random.default_rng(42)


@pytest.fixture
def simple_regression_data(rng):
    """Simple regression dataset for basic tests."""
    n, p = 100, 3
    X = rng.standard_normal((n, p))
    beta_true = np.array([1.0, -2.0, 0.5])
    y = X @ beta_true + rng.standard_normal(n) * 0.1
    return X, y, beta_true


@pytest.fixture
def poisson_data(rng):
    """Poisson counts with log-linear mean, intercept not in X."""
    n = 2000
    X = rng.standard_normal((n, 2)) * 0.5
    beta_true = np.array([0.5, 0.3, -0.2])
    mu = np.exp(beta_true[0] + X @ beta_true[1:])
    y = rng.poisson(mu).astype(np.float64)
    return X, y, beta_true


@pytest.fixture
def collinear_data(rng):
    """Dataset with perfect collinearity (should fail)."""
    n = 100
    x1 = rng.standard_normal(n)
    x2 = rng.standard_normal(n)
    x3 = x1 + x2  # Perfect collinearity
    X = np.column_stack([x1, x2, x3])
    y = rng.standard_normal(n)
    return X, y


@pytest.fixture
def ill_conditioned_data(rng):
    """Nearly collinear columns: QR full rank, X'X numerically singular."""
    n = 100
    x = rng.standard_normal(n)
    X = np.column_stack([x, x + 1e-9 * rng.standard_normal(n)])
    y = 1.0 + x + 0.1 * rng.standard_normal(n)
    return X, y
