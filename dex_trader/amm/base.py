"""Base types shared by the venue quote adapters."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Protocol, runtime_checkable

from dex_trader.amm.ticks import TickInfo


class VenueKind(str, Enum):
    """Liquidity venue families the engine can quote and encode for."""

    UNISWAP_V2 = "uniswap_v2"
    UNISWAP_V3 = "uniswap_v3"
    UNISWAP_V4 = "uniswap_v4"


@dataclass(frozen=True)
class VenueQuote:
    """Result of quoting an exact-input swap on one venue."""

    amount_in: int
    amount_out: int
    # Percent, e.g. Decimal("0.42") for 0.42%
    price_impact: Decimal
    # Pool price after the swap, one entry per hop, when the venue reports it
    sqrt_price_x96_after: tuple[int, ...] = ()
    ticks_crossed: int = 0
    gas_estimate: int = 0


@dataclass(frozen=True)
class PoolState:
    """Current state of a concentrated-liquidity pool."""

    sqrt_price_x96: int
    tick: int
    liquidity: int
    tick_spacing: int


@runtime_checkable
class QuoteAdapter(Protocol):
    """Protocol for venue quote adapters.

    All adapters quote exact-input swaps along a path of tokens, where
    pools[i] trades path[i] for path[i + 1]. Errors are reported with the
    venue error taxonomy: VenueUnreachable (transient), PoolNotFound and
    MalformedResponse (permanent).
    """

    kind: VenueKind

    async def quote(
        self,
        pools: Sequence[Any],
        path: Sequence[str],
        amount_in: int,
    ) -> VenueQuote:
        """Quote amount_in of path[0] through every hop.

        Args:
            pools: One pool descriptor per hop
            path: Token addresses, len(pools) + 1 entries
            amount_in: Raw input amount

        Returns:
            VenueQuote with output amount and price impact
        """
        ...

    async def has_sufficient_liquidity(
        self,
        pools: Sequence[Any],
        path: Sequence[str],
        min_liquidity: int,
    ) -> bool:
        """Check that no hop is too thin to trade against."""
        ...


class PoolStateSource(Protocol):
    """Read access to concentrated-liquidity pool state.

    Implemented over RPC for production and in memory for tests. Pool
    descriptors are UniswapV3Pool or PoolKey instances.
    """

    async def slot0(self, pool: Any) -> tuple[int, int]:
        """Return (sqrt_price_x96, tick)."""
        ...

    async def liquidity(self, pool: Any) -> int:
        """Return the pool's active liquidity."""
        ...

    async def tick_info(self, pool: Any, tick: int) -> TickInfo:
        """Return the state stored on a tick."""
        ...


__all__ = [
    "VenueKind",
    "VenueQuote",
    "PoolState",
    "QuoteAdapter",
    "PoolStateSource",
]
