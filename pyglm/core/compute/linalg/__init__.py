"""
Linear algebra kernels for PyGLM.

All functions follow these conventions:
    - CPU functions use NumPy/SciPy (LAPACK under the hood)
    - Each operation returns a structured result dataclass
    - Errors are raised immediately with clear messages

Submodules:
    qr: Pivoted QR decomposition and least squares
    wls: Weighted least squares on top of qr
"""

from pyglm.core.compute.linalg.qr import (
    QRResult,
    qr_cpu,
    qr_solve,
    condition_from_r,
)
from pyglm.core.compute.linalg.wls import (
    WLSResult,
    wls_solve,
)

__all__ = [
    "QRResult",
    "qr_cpu",
    "qr_solve",
    "condition_from_r",
    "WLSResult",
    "wls_solve",
]
