"""
DEX Protocol Math Implementations.

Exact and continuous constant product (Uniswap V2 style) pool math.
"""
from .constant_product_math import ConstantProductMath, DEFAULT_FEE_RATIO, to_fee_ratio

__all__ = [
    "ConstantProductMath",
    "DEFAULT_FEE_RATIO",
    "to_fee_ratio",
]
