"""Data structures for routing results."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING

from dex_trader.amm.base import VenueKind
from dex_trader.encoding.path import encode_path
from dex_trader.models.types import normalize_address

if TYPE_CHECKING:
    from dex_trader.amm.uniswap_v4 import PoolKey
    from dex_trader.pools.registry import AnyPool


@dataclass(frozen=True)
class Route:
    """A path of tokens with one fee per hop.

    Route.empty() is the sentinel for "no route". Non-empty routes always
    have exactly len(path) - 1 fees, and carry a pool_key only when they are
    a single v4 hop.
    """

    path: tuple[str, ...] = ()
    fees: tuple[int, ...] = ()
    # Packed path for concentrated-liquidity routers, None otherwise
    encoded_path: bytes | None = None
    pool_key: PoolKey | None = None
    venue: VenueKind | None = None

    def __post_init__(self) -> None:
        if not self.path:
            if self.fees or self.pool_key is not None or self.encoded_path is not None:
                raise ValueError("Empty route cannot carry fees, pool key or encoded path")
            return
        if len(self.path) < 2:
            raise ValueError("Route path needs at least two tokens")
        if len(self.fees) != len(self.path) - 1:
            raise ValueError(
                f"Route with {len(self.path)} tokens needs {len(self.path) - 1} fees, "
                f"got {len(self.fees)}"
            )
        if self.pool_key is not None and len(self.path) != 2:
            raise ValueError("pool_key is only valid on single-hop routes")

    @classmethod
    def empty(cls) -> Route:
        return cls()

    @property
    def is_empty(self) -> bool:
        return not self.path

    @property
    def hops(self) -> int:
        return max(0, len(self.path) - 1)

    @property
    def aggregate_fee(self) -> int:
        """Sum of hop fees in hundredths of a basis point."""
        return sum(self.fees)


@dataclass(frozen=True)
class Candidate:
    """A candidate path through specific pools of one venue family.

    pools[i] trades path[i] for path[i + 1].
    """

    venue: VenueKind
    path: tuple[str, ...]
    pools: tuple[AnyPool, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "path", tuple(normalize_address(t) for t in self.path))
        if len(self.path) != len(self.pools) + 1:
            raise ValueError(
                f"Candidate with {len(self.pools)} pools needs {len(self.pools) + 1} tokens"
            )

    @property
    def fees(self) -> tuple[int, ...]:
        return tuple(pool.fee for pool in self.pools)

    @property
    def hops(self) -> int:
        return len(self.pools)

    @property
    def aggregate_fee(self) -> int:
        return sum(self.fees)

    def describe(self) -> str:
        """Short label for logs, e.g. 'uniswap_v3:c02aaa39>a0b86991'."""
        return f"{self.venue.value}:" + ">".join(token[2:10] for token in self.path)

    def to_route(self) -> Route:
        """Build the Route for this candidate."""
        encoded_path = None
        pool_key = None
        if self.venue is VenueKind.UNISWAP_V3:
            encoded_path = encode_path(self.path, self.fees)
        elif self.venue is VenueKind.UNISWAP_V4 and self.hops == 1:
            pool_key = self.pools[0]
        return Route(
            path=self.path,
            fees=self.fees,
            encoded_path=encoded_path,
            pool_key=pool_key,  # type: ignore[arg-type]
            venue=self.venue,
        )


@dataclass(frozen=True)
class Quote:
    """Expected result of swapping amount_in along route.

    Quotes are created fresh for every request and never cached.
    """

    amount_in: int
    amount_out: int
    # Percent, e.g. Decimal("0.42") for 0.42%
    price_impact: Decimal
    route: Route
    gas_estimate: int = 0

    @property
    def venue(self) -> VenueKind | None:
        return self.route.venue


@dataclass(frozen=True)
class Exclusion:
    """A candidate dropped from a search, with the reason."""

    candidate: Candidate
    reason: str


@dataclass
class SearchResult:
    """All quotes and exclusions produced by one optimizer search."""

    quotes: list[Quote] = field(default_factory=list)
    excluded: list[Exclusion] = field(default_factory=list)

    @property
    def best(self) -> Quote | None:
        """Greatest output; ties go to fewer hops, then lower aggregate fee."""
        if not self.quotes:
            return None
        return min(
            self.quotes,
            key=lambda q: (-q.amount_out, q.route.hops, q.route.aggregate_fee),
        )


__all__ = ["Route", "Candidate", "Quote", "Exclusion", "SearchResult"]
