"""
CPU backend for Generalized Linear Models via IRLS.

Implements Iteratively Reweighted Least Squares (Fisher scoring). Each
iteration solves a weighted least squares problem via pivoted QR on the
transformed system √W·X, √W·z.

Algorithm:
    Initialize: μ = distribution.initial_mean(y)
    For iteration 1..max_iter:
        η = g(μ)
        z = η + g'(μ)·(y - μ)                # working response
        w = wt / (g'(μ)² · V(μ))             # working weights × prior weights
        Solve WLS: min_β || √w·z - √w·X·β ||²  via QR
        μ_new = g⁻¹(X @ β)
        dev_new = distribution.deviance(y, μ_new, wt)
        Check: |dev_new - dev_old| / (|dev_new| + 0.1) < tol
               or |dev_new - dev_old| < atol
"""

from typing import Any
import warnings

import numpy as np
from numpy.typing import NDArray

from pyglm.core.result import Result
from pyglm.core.exceptions import ConvergenceError
from pyglm.core.compute.timing import Timer
from pyglm.core.compute.linalg.qr import SingularPolicy, condition_from_r
from pyglm.core.compute.tolerances import ILL_CONDITION_THRESHOLD
from pyglm.core.compute.linalg.wls import wls_solve
from pyglm.core.validation import check_degrees_of_freedom
from pyglm.regression.design import Design
from pyglm.regression.distributions import Distribution
from pyglm.regression.robust import robust_covariance
from pyglm.regression.solution import GLMParams


class CPUIRLSBackend:
    """CPU backend using IRLS with a pivoted-QR inner solve.

    - Convergence: |dev - dev_old| / (|dev| + 0.1) < tol, or an absolute
      change below atol
    - Defaults: tol=1e-8, atol=1e-12, max_iter=25
    - Deviance is tracked with the prior weights and scale 1
    - Robust covariance (OLS/HC0/HC1) from the response residuals y - μ
    """

    @property
    def name(self) -> str:
        return 'cpu_irls'

    def solve(
        self,
        design: Design,
        distribution: Distribution,
        tol: float = 1e-8,
        atol: float = 1e-12,
        max_iter: int = 25,
        strict: bool = False,
        on_singular: SingularPolicy = 'raise',
    ) -> Result[GLMParams]:
        """Run IRLS to fit the GLM.

        Args:
            design: Design with X, y and prior weights
            distribution: Response distribution (owning its link)
            tol: Relative deviance change for convergence
            atol: Absolute deviance change for convergence
            max_iter: Maximum IRLS iterations
            strict: Raise ConvergenceError instead of warning when the
                iteration cap is reached
            on_singular: 'raise' or 'pinv', passed to the WLS solve

        Returns:
            Result[GLMParams]

        Raises:
            DomainError: If n - p <= 0, or y lies outside the support
            SingularMatrixError: If X'WX is singular and on_singular='raise'
            ConvergenceError: If not converged and strict=True
        """
        if max_iter < 1:
            raise ValueError(f"max_iter must be >= 1, got {max_iter}")

        timer = Timer()
        timer.start()

        X, y, wt = design.X, design.y, design.weights
        n, p = design.n, design.p
        link = distribution.link

        distribution.validate_response(y)
        df_residual = check_degrees_of_freedom(n, p)

        warnings_list: list[str] = []

        # ------------------------------------------------------------------
        # Initialize μ
        # ------------------------------------------------------------------
        with timer.section('initialize'):
            mu = distribution.initial_mean(y)
            dev_old = distribution.deviance(y, mu, wt)

        # ------------------------------------------------------------------
        # IRLS loop
        # ------------------------------------------------------------------
        converged = False
        deviance_history = [dev_old]
        relative_change = float('inf')

        with timer.section('irls'):
            for iteration in range(1, max_iter + 1):
                eta = distribution.predict(mu)

                z = eta + link.first_derivative(mu) * (y - mu)
                w = distribution.weight(mu) * wt

                if not (np.all(np.isfinite(z)) and np.all(np.isfinite(w))):
                    raise ConvergenceError(
                        f"IRLS produced non-finite working quantities at "
                        f"iteration {iteration}",
                        iterations=iteration - 1,
                        final_change=relative_change,
                        reason='non_finite',
                        threshold=tol,
                    )

                # Guard against zero weights
                w = np.maximum(w, 1e-30)

                wls = wls_solve(X, z, w, on_singular=on_singular)
                coefficients = wls.coefficients

                eta = X @ coefficients
                mu = distribution.fit(eta)

                dev = distribution.deviance(y, mu, wt)
                deviance_history.append(dev)

                change = abs(dev - dev_old)
                relative_change = change / (abs(dev) + 0.1)
                if relative_change < tol or change < atol:
                    converged = True
                    break

                dev_old = dev

        if wls.pseudo_inverse:
            message = (
                f"X'WX is rank-deficient (rank={wls.rank}, expected={p}); "
                f"using the minimum-norm pseudo-inverse solution"
            )
            warnings_list.append(message)
            warnings.warn(message, RuntimeWarning, stacklevel=2)

        if not converged:
            message = (
                f"IRLS did not converge in {max_iter} iterations "
                f"(deviance={dev:.6f}, relative change={relative_change:.3e})"
            )
            if strict:
                raise ConvergenceError(
                    message,
                    iterations=max_iter,
                    final_change=relative_change,
                    reason='max_iterations',
                    threshold=tol,
                )
            warnings_list.append(message)
            warnings.warn(message, RuntimeWarning, stacklevel=2)

        # ------------------------------------------------------------------
        # Summary statistics
        # ------------------------------------------------------------------
        residuals = y - mu
        sum_squared_errors = float(residuals @ residuals)

        null_deviance = self._null_deviance(y, wt, distribution)

        if distribution.dispersion_is_fixed:
            dispersion = 1.0
        else:
            dispersion = dev / df_residual

        # ------------------------------------------------------------------
        # Robust covariance
        # ------------------------------------------------------------------
        with timer.section('robust'):
            if wls.pseudo_inverse:
                covariance = None
            else:
                covariance = robust_covariance(
                    X, residuals, on_singular, warnings_list
                )

        timer.stop()

        condition_number = condition_from_r(wls.R)

        params = GLMParams(
            coefficients=coefficients,
            fitted_values=mu,
            linear_predictor=eta,
            residuals=residuals,
            sum_squared_errors=sum_squared_errors,
            deviance=dev,
            null_deviance=null_deviance,
            dispersion=dispersion,
            rank=wls.rank,
            df_residual=df_residual,
            n_iter=iteration,
            converged=converged,
            distribution_name=distribution.name,
            link_name=link.name,
            covariance=covariance,
        )

        info: dict[str, Any] = {
            'method': 'irls_qr',
            'iterations': iteration,
            'converged': converged,
            'final_change': relative_change,
            'deviance_history': deviance_history,
            'rank': wls.rank,
            'pivot': wls.pivot.tolist(),
            'condition_number': condition_number,
            'ill_conditioned': condition_number > ILL_CONDITION_THRESHOLD,
        }

        return Result(
            params=params,
            info=info,
            timing=timer.result(),
            backend_name=self.name,
            warnings=tuple(warnings_list),
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _null_deviance(
        y: NDArray, wt: NDArray, distribution: Distribution
    ) -> float:
        """Deviance of the constant-mean model μ = weighted mean of y."""
        total = float(np.sum(wt))
        y_bar = float(np.sum(wt * y) / total) if total > 0 else float(np.mean(y))
        mu_null = np.full_like(y, y_bar)
        return distribution.deviance(y, mu_null, wt)
