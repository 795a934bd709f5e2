"""Pool storage and lookup."""

from dex_trader.pools.registry import AnyPool, PoolRegistry

__all__ = ["AnyPool", "PoolRegistry"]
