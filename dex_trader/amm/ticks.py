"""Fee tiers, tick spacing and tick arithmetic for concentrated liquidity.

Concentrated-liquidity pools only allow positions on ticks that are a
multiple of the pool's tick spacing, and the spacing is fixed per fee tier:

    fee (hundredths of a bip)   tick spacing
    100   (0.01%)                1
    500   (0.05%)                10
    3000  (0.3%)                 60
    10000 (1%)                   200

When the price crosses an initialized tick the active liquidity changes by
that tick's liquidity_net: added when crossing upward (price of token0
rising), subtracted when crossing downward.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import IntEnum

from dex_trader.errors import UnknownFeeTier

Q96 = 2**96

MIN_TICK = -887272
MAX_TICK = 887272


class FeeTier(IntEnum):
    """Standard concentrated-liquidity fee tiers."""

    LOWEST = 100
    LOW = 500
    MEDIUM = 3000
    HIGH = 10000


TICK_SPACINGS: dict[int, int] = {
    FeeTier.LOWEST: 1,
    FeeTier.LOW: 10,
    FeeTier.MEDIUM: 60,
    FeeTier.HIGH: 200,
}


@dataclass(frozen=True)
class TickInfo:
    """State stored on a single tick."""

    liquidity_gross: int
    liquidity_net: int
    initialized: bool

    @classmethod
    def uninitialized(cls) -> TickInfo:
        return cls(liquidity_gross=0, liquidity_net=0, initialized=False)


def tick_spacing_for(fee: int) -> int:
    """Look up the tick spacing for a fee tier.

    Raises:
        UnknownFeeTier: If the fee has no mapping
    """
    try:
        return TICK_SPACINGS[fee]
    except KeyError:
        raise UnknownFeeTier(fee) from None


def align_to_spacing(tick: int, spacing: int) -> int:
    """Round a tick down to the nearest multiple of spacing.

    Uses mathematical floor, so negative ticks round away from zero:
    align_to_spacing(-73890, 60) == -73920.
    """
    if spacing <= 0:
        raise ValueError(f"Tick spacing must be positive: {spacing}")
    return (tick // spacing) * spacing


def neighbouring_ticks(tick: int, spacing: int) -> tuple[int, int]:
    """Return the initializable ticks just below and just above a tick."""
    lower = align_to_spacing(tick, spacing)
    return lower, lower + spacing


def cross_tick(liquidity: int, liquidity_net: int, zero_for_one: bool = False) -> int:
    """Active liquidity after crossing a tick.

    Args:
        liquidity: Active liquidity before the crossing
        liquidity_net: Signed liquidity delta stored on the tick
        zero_for_one: True when the price moves down (token0 sold for token1)

    Raises:
        ValueError: If the result would be negative
    """
    new_liquidity = liquidity - liquidity_net if zero_for_one else liquidity + liquidity_net
    if new_liquidity < 0:
        raise ValueError(
            f"Liquidity underflow crossing tick: {liquidity} with net {liquidity_net}"
        )
    return new_liquidity


def sqrt_price_x96_to_price(sqrt_price_x96: int) -> Decimal:
    """Convert a Q64.96 square-root price to a raw token1/token0 price."""
    ratio = Decimal(sqrt_price_x96) / Decimal(Q96)
    return ratio * ratio


def price_impact_from_sqrt_prices(
    sqrt_price_before: int,
    sqrt_price_after: int,
    zero_for_one: bool,
) -> Decimal:
    """Price impact in percent from the pool price before and after a swap.

    The impact is measured on the price the trader pays: selling token0
    pushes the token1/token0 price down, selling token1 pushes it up.

    Raises:
        ValueError: If either price is zero
    """
    if sqrt_price_before <= 0 or sqrt_price_after <= 0:
        raise ValueError("sqrt prices must be positive")

    before = sqrt_price_x96_to_price(sqrt_price_before)
    after = sqrt_price_x96_to_price(sqrt_price_after)
    ratio = after / before if zero_for_one else before / after
    return max(Decimal(0), (Decimal(1) - ratio) * 100)


__all__ = [
    "Q96",
    "MIN_TICK",
    "MAX_TICK",
    "FeeTier",
    "TICK_SPACINGS",
    "TickInfo",
    "tick_spacing_for",
    "align_to_spacing",
    "neighbouring_ticks",
    "cross_tick",
    "sqrt_price_x96_to_price",
    "price_impact_from_sqrt_prices",
]
