"""Venue quote adapters and the fee/tick model.

Venue-specific code lives in the uniswap_v2 module and the uniswap_v3 and
uniswap_v4 packages.
"""

from dex_trader.amm.base import PoolState, PoolStateSource, QuoteAdapter, VenueKind, VenueQuote
from dex_trader.amm.ticks import (
    FeeTier,
    TickInfo,
    align_to_spacing,
    cross_tick,
    tick_spacing_for,
)

__all__ = [
    "FeeTier",
    "PoolState",
    "PoolStateSource",
    "QuoteAdapter",
    "TickInfo",
    "VenueKind",
    "VenueQuote",
    "align_to_spacing",
    "cross_tick",
    "tick_spacing_for",
]
