"""Shared logic for concentrated-liquidity quote adapters (v3 and v4)."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from decimal import Decimal
from typing import Any, ClassVar

import structlog

from dex_trader.amm.base import PoolState, PoolStateSource, VenueKind, VenueQuote
from dex_trader.amm.ticks import (
    TickInfo,
    cross_tick,
    neighbouring_ticks,
    price_impact_from_sqrt_prices,
)
from dex_trader.config import DEFAULT_TRADING_CONFIG
from dex_trader.errors import MalformedResponse, PoolNotFound

logger = structlog.get_logger()


class ConcentratedLiquidityAdapter(ABC):
    """Base adapter for pools with tick-based liquidity.

    Subclasses provide the raw quoter call; this class derives price impact
    and exposes pool state (current tick, active liquidity, tick info).

    Price impact uses the post-swap pool price when the quoter reports one
    for every hop and a state source is configured. Otherwise a probe quote
    for a small fraction of the amount stands in for the spot price.
    """

    kind: ClassVar[VenueKind]

    def __init__(
        self,
        state: PoolStateSource | None = None,
        probe_fraction: Decimal = DEFAULT_TRADING_CONFIG.price_impact_probe_fraction,
    ):
        self.state = state
        self.probe_fraction = probe_fraction

    @abstractmethod
    async def _quote_path(
        self,
        pools: Sequence[Any],
        path: Sequence[str],
        amount_in: int,
    ) -> VenueQuote:
        """Call the venue quoter. price_impact on the result is ignored."""
        ...

    async def quote(
        self,
        pools: Sequence[Any],
        path: Sequence[str],
        amount_in: int,
    ) -> VenueQuote:
        """Quote an exact-input swap and attach its price impact.

        Raises:
            PoolNotFound: If the venue returns no output
            ValueError: If pools and path lengths disagree
        """
        if len(path) != len(pools) + 1:
            raise ValueError(f"Path of {len(path)} tokens does not match {len(pools)} pools")

        raw = await self._quote_path(pools, path, amount_in)
        if raw.amount_out <= 0:
            raise PoolNotFound(self.kind.value, f"zero output for {path[0]} -> {path[-1]}")

        if self.state is not None and len(raw.sqrt_price_x96_after) == len(pools):
            impact = await self._impact_from_prices(pools, path, raw.sqrt_price_x96_after)
        else:
            impact = await self._impact_from_probe(pools, path, amount_in, raw.amount_out)

        return VenueQuote(
            amount_in=amount_in,
            amount_out=raw.amount_out,
            price_impact=impact,
            sqrt_price_x96_after=raw.sqrt_price_x96_after,
            ticks_crossed=raw.ticks_crossed,
            gas_estimate=raw.gas_estimate,
        )

    async def _impact_from_prices(
        self,
        pools: Sequence[Any],
        path: Sequence[str],
        sqrt_prices_after: Sequence[int],
    ) -> Decimal:
        remaining = Decimal(1)
        for pool, token_in, after in zip(pools, path, sqrt_prices_after):
            before, _ = await self._require_state().slot0(pool)
            try:
                hop_impact = price_impact_from_sqrt_prices(
                    before, after, pool.zero_for_one(token_in)
                )
            except ValueError as e:
                raise MalformedResponse(self.kind.value, str(e)) from e
            remaining *= Decimal(1) - hop_impact / 100
        return (Decimal(1) - remaining) * 100

    async def _impact_from_probe(
        self,
        pools: Sequence[Any],
        path: Sequence[str],
        amount_in: int,
        amount_out: int,
    ) -> Decimal:
        probe_in = max(1, int(Decimal(amount_in) * self.probe_fraction))
        probe = await self._quote_path(pools, path, probe_in)
        if probe.amount_out <= 0:
            logger.debug("price_impact_probe_empty", venue=self.kind.value, probe_in=probe_in)
            return Decimal(0)

        spot = Decimal(probe.amount_out) / Decimal(probe_in)
        execution = Decimal(amount_out) / Decimal(amount_in)
        return max(Decimal(0), (Decimal(1) - execution / spot) * 100)

    def _require_state(self) -> PoolStateSource:
        if self.state is None:
            raise ValueError(f"No pool state source configured for {self.kind.value}")
        return self.state

    async def current_state(self, pool: Any) -> PoolState:
        """Read the current price, tick and active liquidity of a pool."""
        state = self._require_state()
        sqrt_price_x96, tick = await state.slot0(pool)
        liquidity = await state.liquidity(pool)
        return PoolState(
            sqrt_price_x96=sqrt_price_x96,
            tick=tick,
            liquidity=liquidity,
            tick_spacing=pool.tick_spacing,
        )

    async def tick_info(self, pool: Any, tick: int) -> TickInfo:
        """Read the state stored on one tick."""
        return await self._require_state().tick_info(pool, tick)

    async def liquidity_after_crossing(
        self,
        pool: Any,
        zero_for_one: bool,
        current: PoolState | None = None,
    ) -> int:
        """Active liquidity once the price crosses the next tick boundary.

        The boundary is the initializable tick at or below the current tick
        when selling token0, and the one above it otherwise. An uninitialized
        boundary leaves liquidity unchanged.
        """
        if current is None:
            current = await self.current_state(pool)

        lower, upper = neighbouring_ticks(current.tick, current.tick_spacing)
        boundary = lower if zero_for_one else upper
        info = await self.tick_info(pool, boundary)
        if not info.initialized:
            return current.liquidity

        try:
            return cross_tick(current.liquidity, info.liquidity_net, zero_for_one)
        except ValueError as e:
            raise MalformedResponse(self.kind.value, str(e)) from e

    async def has_sufficient_liquidity(
        self,
        pools: Sequence[Any],
        path: Sequence[str],
        min_liquidity: int,
    ) -> bool:
        """Check active liquidity on every hop, now and after the next crossing.

        Without a state source there is nothing to check and pools pass.
        """
        if self.state is None or min_liquidity <= 0:
            return True

        for pool, token_in in zip(pools, path):
            current = await self.current_state(pool)
            if current.liquidity < min_liquidity:
                logger.debug(
                    "pool_liquidity_thin",
                    venue=self.kind.value,
                    liquidity=current.liquidity,
                    min_liquidity=min_liquidity,
                )
                return False

            after = await self.liquidity_after_crossing(pool, pool.zero_for_one(token_in), current)
            if after < min_liquidity:
                logger.debug(
                    "pool_liquidity_thin_after_crossing",
                    venue=self.kind.value,
                    liquidity=after,
                    min_liquidity=min_liquidity,
                )
                return False

        return True


__all__ = ["ConcentratedLiquidityAdapter"]
