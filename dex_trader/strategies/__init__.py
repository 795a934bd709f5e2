"""Trading strategies: one per venue family."""

from dex_trader.strategies.approval import ApprovalPlan
from dex_trader.strategies.base import BaseStrategy, ResolvedTrade, TradingStrategy
from dex_trader.strategies.factory import create_strategy
from dex_trader.strategies.uniswap_v2 import UniswapV2Strategy
from dex_trader.strategies.uniswap_v3 import UniswapV3Strategy
from dex_trader.strategies.uniswap_v4 import UniswapV4Strategy
from dex_trader.strategies.universal_router import UniversalRouterStrategy

__all__ = [
    "ApprovalPlan",
    "BaseStrategy",
    "ResolvedTrade",
    "TradingStrategy",
    "UniswapV2Strategy",
    "UniswapV3Strategy",
    "UniswapV4Strategy",
    "UniversalRouterStrategy",
    "create_strategy",
]
