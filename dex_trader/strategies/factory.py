"""Strategy construction by venue kind."""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any

from dex_trader.amm.base import QuoteAdapter, VenueKind
from dex_trader.chain import ChainConfig
from dex_trader.config import DEFAULT_TRADING_CONFIG, TradingConfig
from dex_trader.execution import ChainReader
from dex_trader.pools.registry import PoolRegistry
from dex_trader.routing.candidates import CandidateGenerator
from dex_trader.routing.optimizer import RouteOptimizer
from dex_trader.strategies.base import BaseStrategy
from dex_trader.strategies.uniswap_v2 import UniswapV2Strategy
from dex_trader.strategies.uniswap_v3 import UniswapV3Strategy
from dex_trader.strategies.uniswap_v4 import UniswapV4Strategy

STRATEGY_CLASSES: dict[VenueKind, type[BaseStrategy]] = {
    VenueKind.UNISWAP_V2: UniswapV2Strategy,
    VenueKind.UNISWAP_V3: UniswapV3Strategy,
    VenueKind.UNISWAP_V4: UniswapV4Strategy,
}


def create_strategy(
    kind: VenueKind | str,
    *,
    chain: ChainConfig,
    reader: ChainReader,
    adapter: QuoteAdapter,
    registry: PoolRegistry,
    config: TradingConfig = DEFAULT_TRADING_CONFIG,
    clock: Callable[[], float] = time.time,
    **kwargs: Any,
) -> BaseStrategy:
    """Build a strategy with its own optimizer and candidate generator.

    Args:
        kind: Venue family, as VenueKind or its string value
        adapter: Quote adapter for that venue family
        registry: Known pools on chain
        **kwargs: Venue specific options (permit_signer, hook_data)

    Raises:
        ValueError: If kind is not a known venue family
    """
    try:
        venue = VenueKind(kind)
    except ValueError:
        raise ValueError(f"Unknown strategy kind: {kind}") from None

    optimizer = RouteOptimizer({venue: adapter}, config)
    candidates = CandidateGenerator(registry, chain.intermediaries)
    cls = STRATEGY_CLASSES[venue]
    return cls(chain, reader, optimizer, candidates, config, clock, **kwargs)


__all__ = ["STRATEGY_CLASSES", "create_strategy"]
