"""
Special functions used by the distribution families.
"""

from pyglm.special.factorial import FactorialTable, FACTORIALS, FACTORIAL_LIMIT

__all__ = [
    "FactorialTable",
    "FACTORIALS",
    "FACTORIAL_LIMIT",
]
