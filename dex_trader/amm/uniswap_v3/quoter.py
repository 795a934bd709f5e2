"""UniswapV3 quoter implementations for swap simulation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

import structlog
from eth_utils import to_checksum_address

from dex_trader.amm.base import VenueKind
from dex_trader.amm.rpc import call_contract
from dex_trader.encoding.path import decode_path
from dex_trader.errors import MalformedResponse, PoolNotFound
from dex_trader.models.types import normalize_address

from .constants import QUOTER_V2_ABI, QUOTER_V2_ADDRESS

logger = structlog.get_logger()

VENUE = VenueKind.UNISWAP_V3.value


@dataclass(frozen=True)
class QuoterResult:
    """Raw quoter answer for an exact-input quote."""

    amount_out: int
    # One entry per hop; empty when the quoter does not report prices
    sqrt_price_x96_after: tuple[int, ...] = ()
    ticks_crossed: int = 0
    gas_estimate: int = 0


class UniswapV3Quoter(Protocol):
    """Protocol for UniswapV3 quoter implementations.

    This allows swapping between the RPC-based quoter and a mock quoter for
    testing. Failures raise venue errors rather than returning None.
    """

    async def quote_exact_input_single(
        self,
        token_in: str,
        token_out: str,
        fee: int,
        amount_in: int,
    ) -> QuoterResult:
        """Get output amount for exact input on one pool.

        Args:
            token_in: Input token address
            token_out: Output token address
            fee: Pool fee tier (e.g., 3000)
            amount_in: Input amount
        """
        ...

    async def quote_exact_input(self, path: bytes, amount_in: int) -> QuoterResult:
        """Get output amount for exact input along a packed multi-hop path."""
        ...


@dataclass(frozen=True)
class QuoteKey:
    """Key for looking up quotes in MockUniswapV3Quoter."""

    token_in: str
    token_out: str
    fee: int
    amount: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "token_in", normalize_address(self.token_in))
        object.__setattr__(self, "token_out", normalize_address(self.token_out))


class MockUniswapV3Quoter:
    """Mock quoter for testing without RPC calls.

    Configure with expected quotes, and track calls for assertions.
    """

    def __init__(
        self,
        quotes: dict[QuoteKey, int | QuoterResult] | None = None,
        default_rate: tuple[int, int] | None = None,
        failures: dict[tuple[str, str, int], list[Exception]] | None = None,
    ):
        """Initialize mock quoter.

        Args:
            quotes: Mapping of QuoteKey -> amount out (or full QuoterResult)
            default_rate: If set, (numerator, denominator) ratio for any
                unconfigured quote: amount_out = amount_in * num // denom
            failures: (token_in, token_out, fee) -> exceptions raised on
                successive calls before quotes are served
        """
        self.quotes = quotes or {}
        self.default_rate = default_rate
        self.failures = {
            (normalize_address(t_in), normalize_address(t_out), fee): list(errors)
            for (t_in, t_out, fee), errors in (failures or {}).items()
        }
        self.calls: list[tuple[str, str, str, int, int]] = []  # (method, in, out, fee, amount)

    async def quote_exact_input_single(
        self,
        token_in: str,
        token_out: str,
        fee: int,
        amount_in: int,
    ) -> QuoterResult:
        self.calls.append(("exact_input_single", token_in, token_out, fee, amount_in))
        return self._lookup(token_in, token_out, fee, amount_in)

    async def quote_exact_input(self, path: bytes, amount_in: int) -> QuoterResult:
        tokens, fees = decode_path(path)
        amount = amount_in
        sqrt_prices: list[int] = []
        ticks_crossed = 0
        for token_in, token_out, fee in zip(tokens, tokens[1:], fees):
            self.calls.append(("exact_input", token_in, token_out, fee, amount))
            hop = self._lookup(token_in, token_out, fee, amount)
            amount = hop.amount_out
            sqrt_prices.extend(hop.sqrt_price_x96_after)
            ticks_crossed += hop.ticks_crossed

        return QuoterResult(
            amount_out=amount,
            sqrt_price_x96_after=tuple(sqrt_prices) if len(sqrt_prices) == len(fees) else (),
            ticks_crossed=ticks_crossed,
        )

    def _lookup(self, token_in: str, token_out: str, fee: int, amount_in: int) -> QuoterResult:
        pending = self.failures.get(
            (normalize_address(token_in), normalize_address(token_out), fee)
        )
        if pending:
            raise pending.pop(0)

        key = QuoteKey(token_in, token_out, fee, amount_in)
        if key in self.quotes:
            result = self.quotes[key]
            return result if isinstance(result, QuoterResult) else QuoterResult(amount_out=result)

        if self.default_rate is not None:
            num, denom = self.default_rate
            # Floor division for output amount (conservative for receiver)
            return QuoterResult(amount_out=amount_in * num // denom)

        raise PoolNotFound(VENUE, f"no quote for {token_in} -> {token_out} fee {fee}")


class Web3UniswapV3Quoter:
    """Quoter that calls the QuoterV2 contract via RPC.

    This makes actual eth_call requests; QuoterV2 reverts when the pool is
    missing or cannot fill the amount, which surfaces as PoolNotFound.
    """

    def __init__(self, w3: Any, quoter_address: str = QUOTER_V2_ADDRESS):
        """Initialize quoter.

        Args:
            w3: AsyncWeb3 client (see dex_trader.amm.rpc.connect)
            quoter_address: QuoterV2 contract address
        """
        self.w3 = w3
        self.quoter = w3.eth.contract(
            address=to_checksum_address(quoter_address),
            abi=QUOTER_V2_ABI,
        )

    async def quote_exact_input_single(
        self,
        token_in: str,
        token_out: str,
        fee: int,
        amount_in: int,
    ) -> QuoterResult:
        call = self.quoter.functions.quoteExactInputSingle(
            (
                to_checksum_address(token_in),
                to_checksum_address(token_out),
                amount_in,
                fee,
                0,  # sqrtPriceLimitX96 = 0 means no limit
            )
        )
        try:
            result = await call_contract(call, venue=VENUE)
        except PoolNotFound as e:
            logger.warning(
                "v3_quote_exact_input_single_failed",
                token_in=token_in,
                token_out=token_out,
                fee=fee,
                amount_in=amount_in,
                error=str(e),
            )
            raise

        # Result is (amountOut, sqrtPriceX96After, initializedTicksCrossed, gasEstimate)
        try:
            return QuoterResult(
                amount_out=int(result[0]),
                sqrt_price_x96_after=(int(result[1]),),
                ticks_crossed=int(result[2]),
                gas_estimate=int(result[3]),
            )
        except (TypeError, ValueError, IndexError) as e:
            raise MalformedResponse(VENUE, str(e)) from e

    async def quote_exact_input(self, path: bytes, amount_in: int) -> QuoterResult:
        call = self.quoter.functions.quoteExactInput(path, amount_in)
        result = await call_contract(call, venue=VENUE)

        # Result is (amountOut, sqrtPriceX96AfterList, initializedTicksCrossedList, gasEstimate)
        try:
            return QuoterResult(
                amount_out=int(result[0]),
                sqrt_price_x96_after=tuple(int(p) for p in result[1]),
                ticks_crossed=sum(int(t) for t in result[2]),
                gas_estimate=int(result[3]),
            )
        except (TypeError, ValueError, IndexError) as e:
            raise MalformedResponse(VENUE, str(e)) from e


__all__ = [
    "QuoterResult",
    "UniswapV3Quoter",
    "QuoteKey",
    "MockUniswapV3Quoter",
    "Web3UniswapV3Quoter",
]
