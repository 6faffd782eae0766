"""Blockchain connector package for reading pool reserves."""
from .provider import BlockchainProvider, ChainConfig
from .reserve_source import ReserveSource, UniswapV2ReserveSource

__all__ = [
    "BlockchainProvider",
    "ChainConfig",
    "ReserveSource",
    "UniswapV2ReserveSource",
]
