"""Error classes for routing, encoding and trade execution.

Venue errors carry a ``transient`` flag: transient failures are retried by
the route optimizer, permanent ones remove the venue from the candidate set.
Every other error propagates to the caller unchanged.
"""

from decimal import Decimal


class DexTraderError(Exception):
    """Base error for trading operations."""

    pass


class UnknownFeeTier(DexTraderError, ValueError):
    """Fee tier has no tick spacing mapping."""

    def __init__(self, fee: int):
        self.fee = fee
        super().__init__(f"Unknown fee tier: {fee}")


class VenueError(DexTraderError):
    """A liquidity venue could not produce a quote."""

    transient = False

    def __init__(self, venue: str, reason: str = ""):
        self.venue = venue
        self.reason = reason
        message = f"{venue}: {reason}" if reason else venue
        super().__init__(message)


class VenueUnreachable(VenueError):
    """Venue did not answer (timeout, connection error). Retryable."""

    transient = True


class PoolNotFound(VenueError):
    """Pool does not exist or holds no liquidity."""

    pass


class MalformedResponse(VenueError):
    """Venue answered with data that could not be decoded."""

    pass


class NoRouteFound(DexTraderError):
    """No candidate route produced a usable quote."""

    pass


class ApprovalFailed(DexTraderError):
    """Allowance could not be established after retries."""

    pass


class PriceImpactExceeded(DexTraderError):
    """Projected price impact is above the configured ceiling."""

    def __init__(self, impact: Decimal, limit: Decimal):
        self.impact = impact
        self.limit = limit
        super().__init__(f"Price impact too high: {impact}% > {limit}%")


class NetworkMismatch(DexTraderError):
    """Caller is connected to a different network than the request targets."""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Connected to chain {actual}, request targets chain {expected}")


class UnsupportedChain(DexTraderError):
    """Chain is not configured."""

    def __init__(self, chain: str):
        self.chain = chain
        super().__init__(f"Unsupported chain: {chain}")


class UnsupportedRouteShape(DexTraderError):
    """Route shape cannot be encoded by the selected venue."""

    pass


class InvalidTradeRequest(DexTraderError, ValueError):
    """Trade request fields are inconsistent with its declared shape."""

    pass


__all__ = [
    "DexTraderError",
    "UnknownFeeTier",
    "VenueError",
    "VenueUnreachable",
    "PoolNotFound",
    "MalformedResponse",
    "NoRouteFound",
    "ApprovalFailed",
    "PriceImpactExceeded",
    "NetworkMismatch",
    "UnsupportedChain",
    "UnsupportedRouteShape",
    "InvalidTradeRequest",
]
