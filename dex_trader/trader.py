"""Trade lifecycle coordination.

One Trader.trade() call drives a single request through

    QUOTING -> APPROVAL_CHECK -> BUILDING -> SUBMITTED -> CONFIRMING -> CONFIRMED

or to FAILED from any step. The venue is chosen by quoting every strategy
registered for the request's chain and keeping the best output. Approval
transactions are retried up to the configured bound; the trade transaction
itself is submitted once and never resubmitted.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum

import structlog

from dex_trader.chain import ChainConfig, ChainRegistry
from dex_trader.config import DEFAULT_TRADING_CONFIG, TradingConfig
from dex_trader.errors import (
    ApprovalFailed,
    DexTraderError,
    InvalidTradeRequest,
    NetworkMismatch,
    NoRouteFound,
    PriceImpactExceeded,
    UnsupportedChain,
    UnsupportedRouteShape,
    VenueError,
)
from dex_trader.execution import (
    CallerContext,
    ChainIdValidator,
    ExecutionLayer,
    NetworkValidator,
    TransactionRequest,
)
from dex_trader.models.trade import BuyTradeRequest, TradeConfirmation, TradeRequest
from dex_trader.models.types import format_amount
from dex_trader.routing.types import Quote
from dex_trader.strategies.base import TradingStrategy, is_consistent

logger = structlog.get_logger()


class TradeState(str, Enum):
    QUOTING = "quoting"
    APPROVAL_CHECK = "approval_check"
    BUILDING = "building"
    SUBMITTED = "submitted"
    CONFIRMING = "confirming"
    CONFIRMED = "confirmed"
    FAILED = "failed"


class TradeFailureKind(str, Enum):
    """Why a trade ended in FAILED."""

    NO_ROUTE_FOUND = "no_route_found"
    APPROVAL_FAILED = "approval_failed"
    PRICE_IMPACT_EXCEEDED = "price_impact_exceeded"
    NETWORK_MISMATCH = "network_mismatch"
    UNSUPPORTED_CHAIN = "unsupported_chain"
    UNSUPPORTED_ROUTE_SHAPE = "unsupported_route_shape"
    EXECUTION_FAILED = "execution_failed"
    INVALID_REQUEST = "invalid_request"
    # A chain read (decimals, allowance) failed outside route search
    VENUE_ERROR = "venue_error"


_FAILURE_KINDS: list[tuple[type[DexTraderError], TradeFailureKind]] = [
    (NoRouteFound, TradeFailureKind.NO_ROUTE_FOUND),
    (ApprovalFailed, TradeFailureKind.APPROVAL_FAILED),
    (PriceImpactExceeded, TradeFailureKind.PRICE_IMPACT_EXCEEDED),
    (NetworkMismatch, TradeFailureKind.NETWORK_MISMATCH),
    (UnsupportedChain, TradeFailureKind.UNSUPPORTED_CHAIN),
    (UnsupportedRouteShape, TradeFailureKind.UNSUPPORTED_ROUTE_SHAPE),
    (InvalidTradeRequest, TradeFailureKind.INVALID_REQUEST),
    (VenueError, TradeFailureKind.VENUE_ERROR),
]


def failure_kind(error: DexTraderError) -> TradeFailureKind:
    """Map an error to the failure kind reported on the outcome."""
    for error_type, kind in _FAILURE_KINDS:
        if isinstance(error, error_type):
            return kind
    return TradeFailureKind.EXECUTION_FAILED


@dataclass
class TradeOutcome:
    """Everything that happened to one trade request."""

    request: TradeRequest
    history: list[TradeState] = field(default_factory=list)
    strategy: str | None = None
    quote: Quote | None = None
    approval_hashes: list[str] = field(default_factory=list)
    transaction: TransactionRequest | None = None
    transaction_hash: str | None = None
    confirmation: TradeConfirmation | None = None
    failure: TradeFailureKind | None = None
    error: str | None = None

    @property
    def state(self) -> TradeState | None:
        return self.history[-1] if self.history else None

    @property
    def succeeded(self) -> bool:
        return self.state is TradeState.CONFIRMED


@dataclass(frozen=True)
class SelectedQuote:
    strategy: TradingStrategy
    quote: Quote


class Trader:
    """Runs trade requests against a set of venue strategies."""

    def __init__(
        self,
        chains: ChainRegistry,
        strategies: Sequence[TradingStrategy],
        execution: ExecutionLayer,
        validator: NetworkValidator | None = None,
        config: TradingConfig = DEFAULT_TRADING_CONFIG,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initialize trader.

        Args:
            chains: Chain configuration lookup
            strategies: Venue strategies, possibly for several chains
            execution: Signs, submits and tracks transactions
            validator: Checks the caller is on the request's chain
            config: Retry bound and backoff for approval submission
            sleep: Backoff sleep, injectable for tests
        """
        self.chains = chains
        self.strategies = list(strategies)
        self.execution = execution
        self.validator = validator or ChainIdValidator()
        self.config = config
        self._sleep = sleep

    def strategies_for(self, chain: ChainConfig) -> list[TradingStrategy]:
        return [s for s in self.strategies if s.chain.chain_id == chain.chain_id]

    # -------------------------------------------------------------------------
    # Quoting
    # -------------------------------------------------------------------------

    async def select(self, request: TradeRequest) -> SelectedQuote | None:
        """Quote every strategy on the request's chain and keep the best.

        Raises:
            UnsupportedChain: If the chain is unknown or has no strategies
        """
        chain = self.chains.get(request.chain)
        strategies = self.strategies_for(chain)
        if not strategies:
            raise UnsupportedChain(request.chain)

        quotes = await asyncio.gather(*(self._quote_one(s, request) for s in strategies))
        selected = [
            SelectedQuote(strategy, quote)
            for strategy, quote in zip(strategies, quotes)
            if quote is not None and not quote.route.is_empty
        ]
        if not selected:
            return None
        return max(selected, key=lambda s: s.quote.amount_out)

    async def quote(self, request: TradeRequest) -> Quote | None:
        """Best quote across strategies without trading."""
        selected = await self.select(request)
        return selected.quote if selected is not None else None

    async def _quote_one(self, strategy: TradingStrategy, request: TradeRequest) -> Quote | None:
        try:
            if isinstance(request, BuyTradeRequest):
                return await strategy.quote_buy(request)
            return await strategy.quote_sell(request)
        except (NoRouteFound, UnsupportedRouteShape) as e:
            logger.info("strategy_quote_unavailable", strategy=strategy.name, reason=str(e))
            return None

    # -------------------------------------------------------------------------
    # Trading
    # -------------------------------------------------------------------------

    async def trade(self, context: CallerContext, request: TradeRequest) -> TradeOutcome:
        """Quote, approve, build, submit and confirm one trade.

        Never raises for expected failures; the outcome carries the failure
        kind and message instead.
        """
        outcome = TradeOutcome(request=request)
        try:
            await self._run(context, request, outcome)
        except DexTraderError as e:
            self._fail(outcome, failure_kind(e), str(e))
        except Exception as e:
            # Errors raised by the external execution layer
            logger.exception("trade_execution_error", error_type=type(e).__name__)
            self._fail(outcome, TradeFailureKind.EXECUTION_FAILED, str(e))
        return outcome

    async def _run(
        self,
        context: CallerContext,
        request: TradeRequest,
        outcome: TradeOutcome,
    ) -> None:
        self._transition(outcome, TradeState.QUOTING)
        chain = self.chains.get(request.chain)
        await self.validator.validate(context, chain)
        if not is_consistent(request, chain):
            raise InvalidTradeRequest(
                f"Request fields do not match its declared type: {request.model_dump()}"
            )

        selected = await self.select(request)
        if selected is None:
            raise NoRouteFound(f"No route for {request.input_token} -> {request.output_token}")
        strategy, quote = selected.strategy, selected.quote
        outcome.strategy = strategy.name
        outcome.quote = quote
        await strategy.check_trade(request, quote)

        self._transition(outcome, TradeState.APPROVAL_CHECK)
        outcome.approval_hashes = await self._approve(
            strategy, context, request.input_token, quote.amount_in
        )

        self._transition(outcome, TradeState.BUILDING)
        if isinstance(request, BuyTradeRequest):
            tx = await strategy.build_buy_transaction(context, request, quote)
        else:
            tx = await strategy.build_sell_transaction(context, request, quote)
        if tx.is_empty:
            raise InvalidTradeRequest("Strategy produced an empty transaction")
        outcome.transaction = tx

        transaction_hash = await self.execution.submit(tx)
        outcome.transaction_hash = transaction_hash
        self._transition(outcome, TradeState.SUBMITTED, transaction_hash=transaction_hash)

        self._transition(outcome, TradeState.CONFIRMING)
        result = await self.execution.wait_for_receipt(transaction_hash)
        if not result.success:
            self._fail(
                outcome,
                TradeFailureKind.EXECUTION_FAILED,
                result.error or f"Transaction {transaction_hash} reverted",
            )
            return

        estimated = result.amount_out is None
        amount_out = quote.amount_out if result.amount_out is None else result.amount_out
        decimals_in = await strategy.decimals(request.input_token)
        decimals_out = await strategy.decimals(request.output_token)
        outcome.confirmation = TradeConfirmation(
            strategy=strategy.name,
            route=list(quote.route.path),
            transaction_hash=transaction_hash,
            block_number=result.block_number,
            gas_cost=result.gas_cost,
            gas_cost_formatted=format_amount(result.gas_cost, chain.native_decimals),
            token_in=request.input_token,
            token_out=request.output_token,
            amount_in=quote.amount_in,
            amount_out=amount_out,
            amount_in_formatted=format_amount(quote.amount_in, decimals_in),
            amount_out_formatted=format_amount(amount_out, decimals_out),
            amount_out_estimated=estimated,
        )
        self._transition(outcome, TradeState.CONFIRMED, block_number=result.block_number)

    async def _approve(
        self,
        strategy: TradingStrategy,
        context: CallerContext,
        token: str,
        amount: int,
    ) -> list[str]:
        """Submit the approvals a strategy needs, retrying the whole step.

        Each attempt re-plans from current allowances, so approvals mined by
        an earlier attempt are not sent again.

        Raises:
            ApprovalFailed: If approvals still fail after max_retries retries
        """
        hashes: list[str] = []
        attempts = 1 + self.config.max_retries
        for attempt in range(attempts):
            try:
                plan = await strategy.ensure_approval(context, token, amount)
                for tx in plan.transactions:
                    transaction_hash = await self.execution.submit(tx)
                    hashes.append(transaction_hash)
                    result = await self.execution.wait_for_receipt(transaction_hash)
                    if not result.success:
                        raise ApprovalFailed(
                            result.error or f"Approval {transaction_hash} reverted"
                        )
                return hashes
            except Exception as e:
                if attempt == attempts - 1:
                    logger.warning(
                        "approval_failed",
                        strategy=strategy.name,
                        attempts=attempts,
                        error=str(e),
                    )
                    if isinstance(e, ApprovalFailed):
                        raise
                    raise ApprovalFailed(str(e)) from e

                delay = self.config.retry_backoff_seconds * (2**attempt)
                logger.info(
                    "approval_retry",
                    strategy=strategy.name,
                    attempt=attempt + 1,
                    delay=delay,
                    error=str(e),
                )
                await self._sleep(delay)
        return hashes

    def _transition(self, outcome: TradeOutcome, state: TradeState, **context: object) -> None:
        outcome.history.append(state)
        logger.info(
            "trade_state_changed",
            state=state.value,
            strategy=outcome.strategy,
            **context,
        )

    def _fail(self, outcome: TradeOutcome, kind: TradeFailureKind, message: str) -> None:
        outcome.failure = kind
        outcome.error = message
        outcome.history.append(TradeState.FAILED)
        logger.warning(
            "trade_failed",
            failure=kind.value,
            error=message,
            strategy=outcome.strategy,
            last_state=outcome.history[-2].value if len(outcome.history) > 1 else None,
        )


__all__ = [
    "SelectedQuote",
    "TradeFailureKind",
    "TradeOutcome",
    "TradeState",
    "Trader",
    "failure_kind",
]
