"""
Regression backends.

Available backends:
    CPUQRBackend: Closed-form (weighted) least squares via pivoted QR
    CPUIRLSBackend: Generalized linear models via IRLS with a QR inner solve
"""

from pyglm.regression.backends.cpu import CPUQRBackend
from pyglm.regression.backends.cpu_glm import CPUIRLSBackend

__all__ = [
    "CPUQRBackend",
    "CPUIRLSBackend",
]
