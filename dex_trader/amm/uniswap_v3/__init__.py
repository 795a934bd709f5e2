"""UniswapV3 concentrated liquidity support.

This package provides:
- Pool descriptor (UniswapV3Pool)
- Quoter implementations (Mock and Web3-based)
- Quote adapter with pool state reads (UniswapV3Adapter)
"""

from .adapter import UniswapV3Adapter, Web3V3PoolStateSource
from .constants import POOL_ABI, QUOTER_V2_ABI, QUOTER_V2_ADDRESS, V3_FEE_TIERS
from .pool import UniswapV3Pool
from .quoter import (
    MockUniswapV3Quoter,
    QuoteKey,
    QuoterResult,
    UniswapV3Quoter,
    Web3UniswapV3Quoter,
)

__all__ = [
    # Constants
    "V3_FEE_TIERS",
    "QUOTER_V2_ADDRESS",
    "QUOTER_V2_ABI",
    "POOL_ABI",
    # Pool
    "UniswapV3Pool",
    # Quoters
    "QuoterResult",
    "UniswapV3Quoter",
    "QuoteKey",
    "MockUniswapV3Quoter",
    "Web3UniswapV3Quoter",
    # Adapter
    "UniswapV3Adapter",
    "Web3V3PoolStateSource",
]
