"""In-memory pool state source for tests and offline simulation."""

from __future__ import annotations

from typing import Any

from dex_trader.amm.base import PoolState
from dex_trader.amm.ticks import TickInfo
from dex_trader.errors import PoolNotFound


class MockPoolStateSource:
    """Pool state held in memory.

    Configure with per-pool states and initialized ticks, and track calls for
    assertions. Pools are keyed by their descriptor (UniswapV3Pool or PoolKey).
    """

    def __init__(
        self,
        states: dict[Any, PoolState] | None = None,
        ticks: dict[tuple[Any, int], TickInfo] | None = None,
    ):
        self.states = states or {}
        self.ticks = ticks or {}
        self.calls: list[tuple[str, Any]] = []

    def set_state(self, pool: Any, state: PoolState) -> None:
        self.states[pool] = state

    def set_tick(self, pool: Any, tick: int, info: TickInfo) -> None:
        self.ticks[(pool, tick)] = info

    def _state(self, pool: Any) -> PoolState:
        try:
            return self.states[pool]
        except KeyError:
            raise PoolNotFound("mock", f"no state for pool {pool}") from None

    async def slot0(self, pool: Any) -> tuple[int, int]:
        self.calls.append(("slot0", pool))
        state = self._state(pool)
        return state.sqrt_price_x96, state.tick

    async def liquidity(self, pool: Any) -> int:
        self.calls.append(("liquidity", pool))
        return self._state(pool).liquidity

    async def tick_info(self, pool: Any, tick: int) -> TickInfo:
        self.calls.append(("tick_info", pool))
        self._state(pool)
        return self.ticks.get((pool, tick), TickInfo.uninitialized())


__all__ = ["MockPoolStateSource"]
