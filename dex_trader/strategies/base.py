"""Base protocol and shared request handling for trading strategies.

A strategy wraps one venue family on one chain. It turns trade requests in
human units into quotes and transactions:

- Buy requests spend ETH, a USD amount (converted to ETH through the
  venue's own ETH/USDC quote) or a token, and receive output_token.
- Sell requests spend input_token and receive ETH, USDC or another token.

Requests whose fields contradict their declared shape (a TOKEN buy with the
zero address as input, an ETH sell with a token as output, ...) produce no
quote and an empty transaction rather than an exception.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from decimal import Decimal
from typing import ClassVar, Protocol

import structlog

from dex_trader.amm.base import VenueKind
from dex_trader.chain import ChainConfig
from dex_trader.config import DEFAULT_TRADING_CONFIG, TradingConfig
from dex_trader.constants import ZERO_ADDRESS
from dex_trader.encoding.commands import deadline_from_now
from dex_trader.errors import (
    ApprovalFailed,
    InvalidTradeRequest,
    NoRouteFound,
    PriceImpactExceeded,
    UnsupportedChain,
    VenueError,
)
from dex_trader.execution import CallerContext, ChainReader, TransactionRequest
from dex_trader.models.trade import (
    BuyTradeRequest,
    InputType,
    OutputType,
    SellTradeRequest,
    TradeRequest,
)
from dex_trader.models.types import from_raw_amount, normalize_address, to_raw_amount
from dex_trader.routing.candidates import CandidateGenerator
from dex_trader.routing.optimizer import RouteOptimizer
from dex_trader.routing.types import Quote
from dex_trader.strategies.approval import ApprovalPlan

logger = structlog.get_logger()


@dataclass(frozen=True)
class ResolvedTrade:
    """A trade request resolved to raw amounts and routing tokens.

    spend_token/receive_token are what the caller actually gives and gets
    (zero address for ETH); token_in/token_out are the addresses used for
    routing on this venue (wrapped ETH where the venue needs it).
    """

    spend_token: str
    receive_token: str
    token_in: str
    token_out: str
    amount_in: int

    @property
    def native_in(self) -> bool:
        return self.spend_token == ZERO_ADDRESS

    @property
    def native_out(self) -> bool:
        return self.receive_token == ZERO_ADDRESS


def is_consistent_buy(request: BuyTradeRequest) -> bool:
    """Check that a buy request's fields match its input type."""
    if Decimal(request.input_amount) <= 0:
        return False
    if request.output_token == ZERO_ADDRESS or request.output_token == request.input_token:
        return False
    if request.input_type in (InputType.ETH, InputType.USD):
        return request.input_token == ZERO_ADDRESS
    return request.input_token != ZERO_ADDRESS


def is_consistent_sell(request: SellTradeRequest, chain: ChainConfig) -> bool:
    """Check that a sell request's fields match its output type."""
    if Decimal(request.input_amount) <= 0:
        return False
    if request.input_token == ZERO_ADDRESS or request.output_token == request.input_token:
        return False
    if request.output_type is OutputType.ETH:
        return request.output_token == ZERO_ADDRESS
    if request.output_type is OutputType.USD:
        return request.output_token == chain.usdc
    return request.output_token != ZERO_ADDRESS


def is_consistent(request: TradeRequest, chain: ChainConfig) -> bool:
    if isinstance(request, BuyTradeRequest):
        return is_consistent_buy(request)
    return is_consistent_sell(request, chain)


class TradingStrategy(Protocol):
    """Uniform interface over venue families."""

    name: str
    venue: VenueKind
    chain: ChainConfig

    async def quote_buy(self, request: BuyTradeRequest) -> Quote | None:
        """Best quote for a buy, or None for inconsistent requests and no route."""
        ...

    async def quote_sell(self, request: SellTradeRequest) -> Quote | None:
        """Best quote for a sell, or None for inconsistent requests and no route."""
        ...

    async def ensure_approval(
        self,
        context: CallerContext,
        token: str,
        amount: int,
    ) -> ApprovalPlan:
        """Transactions needed so the venue can pull amount of token."""
        ...

    async def build_buy_transaction(
        self,
        context: CallerContext,
        request: BuyTradeRequest,
        quote: Quote | None = None,
    ) -> TransactionRequest:
        """Encode a buy, reusing quote when one was already selected."""
        ...

    async def build_sell_transaction(
        self,
        context: CallerContext,
        request: SellTradeRequest,
        quote: Quote | None = None,
    ) -> TransactionRequest:
        """Encode a sell, reusing quote when one was already selected."""
        ...

    async def native_usd_price(self) -> Decimal:
        """USDC per native unit, quoted on this venue."""
        ...

    async def decimals(self, token: str) -> int:
        ...

    def check_price_impact(self, quote: Quote) -> None:
        """Raise PriceImpactExceeded if the quote is above the ceiling."""
        ...

    async def check_trade(self, request: TradeRequest, quote: Quote) -> None:
        """Run every pre-submission gate on a selected quote."""
        ...


class BaseStrategy(ABC):
    """Shared request resolution, quoting and build flow.

    Subclasses choose the venue, the approval spender and how a quote is
    encoded into a transaction.
    """

    venue: ClassVar[VenueKind]
    name: ClassVar[str]

    def __init__(
        self,
        chain: ChainConfig,
        reader: ChainReader,
        optimizer: RouteOptimizer,
        candidates: CandidateGenerator,
        config: TradingConfig = DEFAULT_TRADING_CONFIG,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize strategy.

        Args:
            chain: Network this strategy trades on
            reader: Allowance and decimals lookups
            optimizer: Route optimizer holding this venue's quote adapter
            candidates: Candidate path generator over this chain's pools
            config: Slippage, impact ceiling, approval policy and deadlines
            clock: Unix time source for deadlines and permit expirations
        """
        self.chain = chain
        self.reader = reader
        self.optimizer = optimizer
        self.candidates = candidates
        self.config = config
        self.clock = clock

    # -------------------------------------------------------------------------
    # Request resolution
    # -------------------------------------------------------------------------

    def routing_token(self, token: str) -> str:
        """Address used for routing; ETH trades through wrapped ETH by default."""
        token = normalize_address(token)
        return self.chain.wrapped_native if token == ZERO_ADDRESS else token

    async def decimals(self, token: str) -> int:
        if normalize_address(token) == ZERO_ADDRESS:
            return self.chain.native_decimals
        return await self.reader.decimals(token)

    def _check_chain(self, request: TradeRequest) -> None:
        chain = request.chain.lower()
        if chain not in (self.chain.name.lower(), str(self.chain.chain_id)):
            raise UnsupportedChain(request.chain)

    async def resolve_buy(self, request: BuyTradeRequest) -> ResolvedTrade | None:
        """Resolve a buy to raw amounts, or None if its shape is inconsistent."""
        self._check_chain(request)
        if not is_consistent_buy(request):
            logger.info(
                "inconsistent_buy_request",
                strategy=self.name,
                input_type=request.input_type.value,
                input_token=request.input_token,
            )
            return None

        amount = Decimal(request.input_amount)
        if request.input_type is InputType.USD:
            amount = amount / await self.native_usd_price()

        return ResolvedTrade(
            spend_token=request.input_token,
            receive_token=request.output_token,
            token_in=self.routing_token(request.input_token),
            token_out=self.routing_token(request.output_token),
            amount_in=to_raw_amount(amount, await self.decimals(request.input_token)),
        )

    async def resolve_sell(self, request: SellTradeRequest) -> ResolvedTrade | None:
        """Resolve a sell to raw amounts, or None if its shape is inconsistent."""
        self._check_chain(request)
        if not is_consistent_sell(request, self.chain):
            logger.info(
                "inconsistent_sell_request",
                strategy=self.name,
                output_type=request.output_type.value,
                output_token=request.output_token,
            )
            return None

        decimals = await self.decimals(request.input_token)
        return ResolvedTrade(
            spend_token=request.input_token,
            receive_token=request.output_token,
            token_in=self.routing_token(request.input_token),
            token_out=self.routing_token(request.output_token),
            amount_in=to_raw_amount(request.input_amount, decimals),
        )

    # -------------------------------------------------------------------------
    # Quoting
    # -------------------------------------------------------------------------

    async def quote_trade(self, trade: ResolvedTrade) -> Quote | None:
        if trade.amount_in <= 0:
            return None
        candidates = self.candidates.candidates(trade.token_in, trade.token_out, [self.venue])
        return await self.optimizer.best_quote(
            trade.token_in, trade.token_out, trade.amount_in, candidates
        )

    async def quote_buy(self, request: BuyTradeRequest) -> Quote | None:
        trade = await self.resolve_buy(request)
        if trade is None:
            return None
        return await self.quote_trade(trade)

    async def quote_sell(self, request: SellTradeRequest) -> Quote | None:
        trade = await self.resolve_sell(request)
        if trade is None:
            return None
        return await self.quote_trade(trade)

    async def native_usd_price(self) -> Decimal:
        """USDC received for one native unit on this venue.

        Raises:
            NoRouteFound: If the venue has no ETH/USDC route
        """
        one_native = 10**self.chain.native_decimals
        token_in = self.routing_token(ZERO_ADDRESS)
        candidates = self.candidates.candidates(token_in, self.chain.usdc, [self.venue])
        quote = await self.optimizer.best_quote(token_in, self.chain.usdc, one_native, candidates)
        if quote is None:
            raise NoRouteFound(f"{self.name}: no {self.chain.native_symbol}/USDC route")
        return from_raw_amount(quote.amount_out, self.chain.usdc_decimals)

    # -------------------------------------------------------------------------
    # Checks
    # -------------------------------------------------------------------------

    def check_price_impact(self, quote: Quote) -> None:
        """Raise PriceImpactExceeded if projected impact is above the ceiling."""
        limit = self.config.max_price_impact_percent
        if quote.price_impact > limit:
            logger.warning(
                "price_impact_exceeded",
                strategy=self.name,
                price_impact=str(quote.price_impact),
                limit=str(limit),
            )
            raise PriceImpactExceeded(quote.price_impact.quantize(Decimal("0.01")), limit)

    async def check_trade(self, request: TradeRequest, quote: Quote) -> None:
        """Run every gate a quote must pass before anything is submitted.

        Raises:
            PriceImpactExceeded: If projected impact, or for sells the
                shortfall against trading_point_price, is above the ceiling
        """
        self.check_price_impact(quote)
        if isinstance(request, SellTradeRequest):
            await self.check_reference_price(request, quote)

    async def check_reference_price(self, request: SellTradeRequest, quote: Quote) -> None:
        """Compare execution price with the caller's trading point price.

        The shortfall against trading_point_price * input_amount is treated
        as price impact. A zero trading point price skips the check.
        """
        expected = Decimal(request.input_amount) * Decimal(request.trading_point_price)
        if expected <= 0:
            return

        actual = from_raw_amount(quote.amount_out, await self.decimals(request.output_token))
        shortfall = (expected - actual) / expected * 100
        limit = self.config.max_price_impact_percent
        if shortfall > limit:
            logger.warning(
                "reference_price_shortfall",
                strategy=self.name,
                expected=str(expected),
                actual=str(actual),
                shortfall=str(shortfall),
            )
            raise PriceImpactExceeded(shortfall.quantize(Decimal("0.01")), limit)

    # -------------------------------------------------------------------------
    # Building
    # -------------------------------------------------------------------------

    async def build_buy_transaction(
        self,
        context: CallerContext,
        request: BuyTradeRequest,
        quote: Quote | None = None,
    ) -> TransactionRequest:
        """Encode a buy; empty transaction for inconsistent requests.

        Without a quote the best route is searched first. A given quote is
        encoded as is once it is checked against the request.

        Raises:
            NoRouteFound: If no candidate produced a quote
            PriceImpactExceeded: If projected impact is above the ceiling
            InvalidTradeRequest: If the given quote trades other tokens
            UnsupportedRouteShape: If the venue cannot encode the best route
        """
        if quote is None:
            trade = await self.resolve_buy(request)
        else:
            trade = self.resolve_quoted(request, quote)
        return await self._build(context, request, trade, quote)

    async def build_sell_transaction(
        self,
        context: CallerContext,
        request: SellTradeRequest,
        quote: Quote | None = None,
    ) -> TransactionRequest:
        """Encode a sell; empty transaction for inconsistent requests.

        Raises:
            NoRouteFound: If no candidate produced a quote
            PriceImpactExceeded: If projected impact or the shortfall against
                trading_point_price is above the ceiling
            InvalidTradeRequest: If the given quote trades other tokens
            UnsupportedRouteShape: If the venue cannot encode the best route
        """
        if quote is None:
            trade = await self.resolve_sell(request)
        else:
            trade = self.resolve_quoted(request, quote)
        return await self._build(context, request, trade, quote)

    def resolve_quoted(self, request: TradeRequest, quote: Quote) -> ResolvedTrade | None:
        """Resolve a request against a quote selected earlier.

        The amount comes from the quote, so a USD buy is not priced again.
        """
        self._check_chain(request)
        if not is_consistent(request, self.chain):
            logger.info(
                "inconsistent_trade_request",
                strategy=self.name,
                input_token=request.input_token,
                output_token=request.output_token,
            )
            return None

        trade = ResolvedTrade(
            spend_token=request.input_token,
            receive_token=request.output_token,
            token_in=self.routing_token(request.input_token),
            token_out=self.routing_token(request.output_token),
            amount_in=quote.amount_in,
        )
        path = quote.route.path
        if quote.route.is_empty or (path[0], path[-1]) != (trade.token_in, trade.token_out):
            raise InvalidTradeRequest(
                f"{self.name}: quote does not trade {trade.token_in} -> {trade.token_out}"
            )
        return trade

    async def _build(
        self,
        context: CallerContext,
        request: TradeRequest,
        trade: ResolvedTrade | None,
        quote: Quote | None,
    ) -> TransactionRequest:
        if trade is None:
            return TransactionRequest.empty()
        if quote is None:
            quote = await self._require_quote(trade)
        await self.check_trade(request, quote)
        return await self._encode(context, trade, quote)

    async def _require_quote(self, trade: ResolvedTrade) -> Quote:
        quote = await self.quote_trade(trade)
        if quote is None:
            raise NoRouteFound(f"{self.name}: no route from {trade.token_in} to {trade.token_out}")
        return quote

    async def _encode(
        self,
        context: CallerContext,
        trade: ResolvedTrade,
        quote: Quote,
    ) -> TransactionRequest:
        amount_out_min = self.config.minimum_output(quote.amount_out)
        deadline = deadline_from_now(self.config.deadline_seconds, self.clock)
        tx = await self.encode_swap(context, trade, quote, amount_out_min, deadline)
        logger.info(
            "swap_transaction_built",
            strategy=self.name,
            route=[token[-8:] for token in quote.route.path],
            amount_in=quote.amount_in,
            amount_out=quote.amount_out,
            amount_out_min=amount_out_min,
            value=tx.value,
        )
        return tx

    @abstractmethod
    async def encode_swap(
        self,
        context: CallerContext,
        trade: ResolvedTrade,
        quote: Quote,
        amount_out_min: int,
        deadline: int,
    ) -> TransactionRequest:
        """Encode the quoted route as a transaction.

        Raises:
            UnsupportedRouteShape: If the route cannot be encoded on this venue
        """
        ...

    # -------------------------------------------------------------------------
    # Approvals
    # -------------------------------------------------------------------------

    async def ensure_approval(
        self,
        context: CallerContext,
        token: str,
        amount: int,
    ) -> ApprovalPlan:
        """Plan the approvals needed to spend amount of token.

        ETH needs no approval. Allowance read failures raise ApprovalFailed.
        """
        spender = self.approval_spender
        if normalize_address(token) == ZERO_ADDRESS:
            return ApprovalPlan(token=ZERO_ADDRESS, spender=spender)

        try:
            transactions = await self.plan_approvals(context, token, amount)
        except VenueError as e:
            raise ApprovalFailed(f"Could not read allowance for {token}: {e}") from e
        return ApprovalPlan(
            token=normalize_address(token), spender=spender, transactions=tuple(transactions)
        )

    @property
    @abstractmethod
    def approval_spender(self) -> str:
        """Contract that pulls the caller's tokens."""
        ...

    @abstractmethod
    async def plan_approvals(
        self,
        context: CallerContext,
        token: str,
        amount: int,
    ) -> list[TransactionRequest]:
        ...


__all__ = [
    "ResolvedTrade",
    "TradingStrategy",
    "BaseStrategy",
    "is_consistent",
    "is_consistent_buy",
    "is_consistent_sell",
]
