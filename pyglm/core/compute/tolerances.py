"""
Tolerance tiers for numerical validation.

Defines precision expectations for different problem classes:
- well-conditioned double precision fits: close to machine precision
- ill-conditioned fits (cond > 1e4): relaxed
- iterative fits (IRLS): bounded by the convergence tolerance

Used by the test suite and by the IRLS backend's default tolerances.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ToleranceTier:
    """Tolerances for numerical comparison."""
    rtol: float
    atol: float
    name: str
    description: str


# Closed-form solve, well conditioned
CPU_FP64 = ToleranceTier(
    rtol=1e-10,
    atol=1e-12,
    name='cpu_fp64',
    description='CPU double precision, direct solve',
)

# Closed-form solve, ill-conditioned problems (cond > 1e4)
CPU_FP64_ILL_CONDITIONED = ToleranceTier(
    rtol=1e-4,
    atol=1e-6,
    name='cpu_fp64_ill_conditioned',
    description='CPU double precision, ill-conditioned (cond > 1e4)',
)

# IRLS converged to the default deviance tolerance
IRLS_CONVERGED = ToleranceTier(
    rtol=1e-6,
    atol=1e-8,
    name='irls_converged',
    description='Iterative fit, deviance change below 1e-8',
)

# Condition number above which a problem counts as ill-conditioned.
ILL_CONDITION_THRESHOLD = 1e4


def select_tolerance(
    method: str,
    is_ill_conditioned: bool = False,
) -> ToleranceTier:
    """Select appropriate tolerance tier for a given fitting method."""
    if is_ill_conditioned:
        return CPU_FP64_ILL_CONDITIONED
    if 'irls' in method:
        return IRLS_CONVERGED
    return CPU_FP64
