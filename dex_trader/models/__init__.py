"""Data models for trade requests and confirmations."""

from dex_trader.models.trade import (
    BuyTradeRequest,
    InputType,
    OutputType,
    SellTradeRequest,
    TradeConfirmation,
    TradeRequest,
)
from dex_trader.models.types import (
    Address,
    DecimalString,
    format_amount,
    from_raw_amount,
    is_valid_address,
    normalize_address,
    to_raw_amount,
)

__all__ = [
    "Address",
    "BuyTradeRequest",
    "DecimalString",
    "InputType",
    "OutputType",
    "SellTradeRequest",
    "TradeConfirmation",
    "TradeRequest",
    "format_amount",
    "from_raw_amount",
    "is_valid_address",
    "normalize_address",
    "to_raw_amount",
]
