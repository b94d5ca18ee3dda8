"""
CPU reference backend for (weighted) linear regression.

Uses pivoted QR via LAPACK (through SciPy) on √W·X, √W·y to solve the
weighted normal equations in closed form.
"""

from typing import Any
import warnings

import numpy as np

from pyglm.core.result import Result
from pyglm.core.compute.timing import Timer
from pyglm.core.compute.linalg.qr import SingularPolicy, condition_from_r
from pyglm.core.compute.tolerances import ILL_CONDITION_THRESHOLD
from pyglm.core.compute.linalg.wls import wls_solve
from pyglm.core.validation import check_degrees_of_freedom
from pyglm.regression.design import Design
from pyglm.regression.robust import robust_covariance
from pyglm.regression.solution import LinearParams


class CPUQRBackend:
    """
    CPU backend using QR decomposition.
    
    With unit weights this is ordinary least squares; otherwise every
    quantity (SSE, TSS, covariance) is computed on the √W-scaled system.
    """
    
    @property
    def name(self) -> str:
        return 'cpu_qr'
    
    def solve(
        self,
        design: Design,
        on_singular: SingularPolicy = 'raise',
    ) -> Result[LinearParams]:
        """
        Solve weighted least squares via QR decomposition.
        
        Algorithm:
            1. Compute pivoted QR of √W·X
            2. Solve: β = R⁻¹ Q'(√W·y)
            3. Compute residuals, fitted values and robust covariance
            
        Args:
            design: Validated regression design
            on_singular: 'raise' or 'pinv', see qr_solve()
            
        Returns:
            Result containing LinearParams
            
        Raises:
            DomainError: If n - p <= 0
            SingularMatrixError: If X is rank-deficient and on_singular='raise'
        """
        timer = Timer()
        timer.start()
        
        X, y, wt = design.X, design.y, design.weights
        df_residual = check_degrees_of_freedom(design.n, design.p)
        warnings_list: list[str] = []
        
        with timer.section('solve'):
            wls = wls_solve(X, y, wt, on_singular=on_singular)
            coefficients = wls.coefficients
        
        if wls.pseudo_inverse:
            message = (
                f"X is rank-deficient (rank={wls.rank}, expected={design.p}); "
                f"using the minimum-norm pseudo-inverse solution"
            )
            warnings_list.append(message)
            warnings.warn(message, RuntimeWarning, stacklevel=2)
        
        with timer.section('residuals'):
            fitted_values = X @ coefficients
            residuals = y - fitted_values
            sqrt_w = np.sqrt(wt)
            weighted_residuals = sqrt_w * residuals
        
        with timer.section('statistics'):
            sse = float(weighted_residuals @ weighted_residuals)
            total = float(np.sum(wt))
            y_bar = float(np.sum(wt * y) / total) if total > 0 else float(np.mean(y))
            tss = float(np.sum(wt * (y - y_bar) ** 2))
        
        with timer.section('robust'):
            if wls.pseudo_inverse:
                covariance = None
            else:
                covariance = robust_covariance(
                    X * sqrt_w[:, np.newaxis], weighted_residuals,
                    on_singular, warnings_list,
                )
        
        timer.stop()
        
        condition_number = condition_from_r(wls.R)
        
        params = LinearParams(
            coefficients=coefficients,
            residuals=residuals,
            fitted_values=fitted_values,
            sum_squared_errors=sse,
            total_sum_squares=tss,
            rank=wls.rank,
            df_residual=df_residual,
            covariance=covariance,
        )
        
        info: dict[str, Any] = {
            'method': 'qr',
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
