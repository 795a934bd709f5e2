"""Pool registry for managing liquidity across venue families.

This module provides PoolRegistry for managing known pools per chain:
- UniswapV2 (constant product), one pair per token pair
- UniswapV3 (concentrated liquidity), one pool per pair and fee tier
- UniswapV4 (concentrated liquidity with hooks), keyed by PoolKey

Candidate route generation (dex_trader.routing.candidates) reads pools from
here; quoting itself never touches the registry.
"""

from __future__ import annotations

import structlog

from dex_trader.amm.base import VenueKind
from dex_trader.amm.uniswap_v2 import UniswapV2Pool
from dex_trader.amm.uniswap_v3 import UniswapV3Pool
from dex_trader.amm.uniswap_v4 import PoolKey
from dex_trader.models.types import normalize_address

logger = structlog.get_logger()

AnyPool = UniswapV2Pool | UniswapV3Pool | PoolKey


def _pair_key(token_a: str, token_b: str) -> tuple[str, str]:
    a = normalize_address(token_a)
    b = normalize_address(token_b)
    return (a, b) if a < b else (b, a)


class PoolRegistry:
    """Registry of liquidity pools for routing."""

    def __init__(self, pools: list[AnyPool] | None = None) -> None:
        """Initialize the registry with optional pools.

        Args:
            pools: Initial pools of any supported type. If None, starts empty.
        """
        self._v2_pools: dict[tuple[str, str], UniswapV2Pool] = {}
        # V3 pools keyed by (token0, token1, fee) for multiple fee tiers per pair
        self._v3_pools: dict[tuple[str, str, int], UniswapV3Pool] = {}
        # V4 pools: many keys may share a pair (fees, hooks)
        self._v4_pools: dict[tuple[str, str], list[PoolKey]] = {}

        if pools:
            for pool in pools:
                self.add_any_pool(pool)

    def add_any_pool(self, pool: AnyPool) -> None:
        """Add a pool of any supported type to the registry.

        Raises:
            TypeError: If pool type is not supported
        """
        if isinstance(pool, UniswapV2Pool):
            self.add_v2_pool(pool)
        elif isinstance(pool, UniswapV3Pool):
            self.add_v3_pool(pool)
        elif isinstance(pool, PoolKey):
            self.add_v4_pool(pool)
        else:
            raise TypeError(f"Unknown pool type: {type(pool)}")

    def add_v2_pool(self, pool: UniswapV2Pool) -> None:
        """Add a V2 pool. An existing pool for the same pair is replaced."""
        key = _pair_key(pool.token0, pool.token1)
        if key in self._v2_pools:
            logger.debug(
                "v2_pool_replaced",
                pool=pool.address[-8:],
                token0=key[0][-8:],
                token1=key[1][-8:],
            )
        self._v2_pools[key] = pool

    def add_v3_pool(self, pool: UniswapV3Pool) -> None:
        """Add a V3 pool. An existing pool for the same pair and fee is replaced."""
        token0, token1 = _pair_key(pool.token0, pool.token1)
        key = (token0, token1, pool.fee)
        if key in self._v3_pools:
            logger.debug("v3_pool_replaced", pool=pool.address[-8:], fee=pool.fee)
        self._v3_pools[key] = pool

    def add_v4_pool(self, pool_key: PoolKey) -> None:
        """Add a V4 pool key. Duplicate keys are ignored."""
        pools = self._v4_pools.setdefault((pool_key.currency0, pool_key.currency1), [])
        if pool_key not in pools:
            pools.append(pool_key)

    def get_v2_pool(self, token_a: str, token_b: str) -> UniswapV2Pool | None:
        """Get the V2 pool for a token pair (order independent)."""
        return self._v2_pools.get(_pair_key(token_a, token_b))

    def get_v3_pools(self, token_a: str, token_b: str) -> list[UniswapV3Pool]:
        """Get all V3 pools for a token pair, ordered by fee tier."""
        token0, token1 = _pair_key(token_a, token_b)
        pools = [
            pool for (t0, t1, _), pool in self._v3_pools.items() if (t0, t1) == (token0, token1)
        ]
        return sorted(pools, key=lambda pool: pool.fee)

    def get_v4_pools(self, token_a: str, token_b: str) -> list[PoolKey]:
        """Get all V4 pool keys for a token pair."""
        return list(self._v4_pools.get(_pair_key(token_a, token_b), []))

    def pools_for(self, venue: VenueKind, token_a: str, token_b: str) -> list[AnyPool]:
        """Get every pool of one venue family for a token pair."""
        if venue is VenueKind.UNISWAP_V2:
            pool = self.get_v2_pool(token_a, token_b)
            return [pool] if pool is not None else []
        if venue is VenueKind.UNISWAP_V3:
            return list(self.get_v3_pools(token_a, token_b))
        if venue is VenueKind.UNISWAP_V4:
            return list(self.get_v4_pools(token_a, token_b))
        raise ValueError(f"Unknown venue: {venue}")

    @property
    def pool_count(self) -> int:
        """Total number of pools across venue families."""
        return (
            len(self._v2_pools)
            + len(self._v3_pools)
            + sum(len(pools) for pools in self._v4_pools.values())
        )


__all__ = ["AnyPool", "PoolRegistry"]
