"""UniswapV4 pools with hooks: pool keys, quoters and the quote adapter."""

from .adapter import STATE_VIEW_ABI, UniswapV4Adapter, Web3V4StateSource
from .pool_key import PoolKey
from .quoter import V4_QUOTER_ABI, MockUniswapV4Quoter, UniswapV4Quoter, Web3UniswapV4Quoter

__all__ = [
    "PoolKey",
    "UniswapV4Quoter",
    "MockUniswapV4Quoter",
    "Web3UniswapV4Quoter",
    "V4_QUOTER_ABI",
    "UniswapV4Adapter",
    "Web3V4StateSource",
    "STATE_VIEW_ABI",
]
