"""Trade request and confirmation models.

Requests describe what the caller wants in human units; strategies convert
them to raw token units once decimals are known.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from dex_trader.models.types import Address, DecimalString


class InputType(str, Enum):
    """How a buy request denominates what it spends."""

    ETH = "ETH"  # native currency, input_token is the zero address
    USD = "USD"  # USD amount converted to native currency at quote time
    TOKEN = "TOKEN"  # any ERC20, input_token is its address


class OutputType(str, Enum):
    """What a sell request receives."""

    ETH = "ETH"  # native currency, output_token is the zero address
    USD = "USD"  # the chain's USDC
    TOKEN = "TOKEN"  # any ERC20


class BuyTradeRequest(BaseModel):
    """Spend ETH, a USD amount or a token to buy output_token."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    chain: str
    input_type: InputType = Field(alias="inputType")
    input_token: Address = Field(alias="inputToken")
    input_amount: DecimalString = Field(alias="inputAmount")
    output_token: Address = Field(alias="outputToken")


class SellTradeRequest(BaseModel):
    """Sell input_token for ETH, USDC or another token.

    trading_point_price is the price the caller expects, in output units per
    input token; executions worse than it by more than the configured impact
    ceiling are rejected.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    chain: str
    input_token: Address = Field(alias="inputToken")
    input_amount: DecimalString = Field(alias="inputAmount")
    output_type: OutputType = Field(alias="outputType")
    output_token: Address = Field(alias="outputToken")
    trading_point_price: DecimalString = Field(alias="tradingPointPrice")


TradeRequest = BuyTradeRequest | SellTradeRequest


class TradeConfirmation(BaseModel):
    """Summary of a confirmed trade."""

    model_config = ConfigDict(frozen=True)

    strategy: str
    route: list[str]
    transaction_hash: str
    block_number: int | None = None
    gas_cost: int = 0
    gas_cost_formatted: str = "0"
    token_in: str
    token_out: str
    amount_in: int
    amount_out: int
    amount_in_formatted: str
    amount_out_formatted: str
    # True when amount_out comes from the quote rather than the execution layer
    amount_out_estimated: bool = False
