"""DEX trader: multi-venue routing and swap transaction encoding."""

from dex_trader.config import DEFAULT_TRADING_CONFIG, TradingConfig
from dex_trader.errors import DexTraderError
from dex_trader.trader import TradeFailureKind, TradeOutcome, Trader, TradeState

__version__ = "0.1.0"
__all__ = [
    "DEFAULT_TRADING_CONFIG",
    "DexTraderError",
    "TradeFailureKind",
    "TradeOutcome",
    "TradeState",
    "Trader",
    "TradingConfig",
    "__version__",
]
