"""Candidate route generation from the pool registry.

Candidates are direct pools plus two-hop paths through well-known
intermediary tokens (WETH, stablecoins, WBTC). v4 candidates are direct only
because the v4 encoder handles single hops.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from itertools import product

from dex_trader.amm.base import VenueKind
from dex_trader.models.types import normalize_address
from dex_trader.pools.registry import PoolRegistry
from dex_trader.routing.types import Candidate

MULTI_HOP_VENUES = frozenset({VenueKind.UNISWAP_V2, VenueKind.UNISWAP_V3})


class CandidateGenerator:
    """Enumerates candidate paths between two tokens."""

    def __init__(self, registry: PoolRegistry, intermediaries: Sequence[str] = ()):
        """Initialize generator.

        Args:
            registry: Known pools for one chain
            intermediaries: Tokens allowed as the middle of a two-hop path
        """
        self.registry = registry
        self.intermediaries = tuple(normalize_address(t) for t in intermediaries)

    def candidates(
        self,
        token_in: str,
        token_out: str,
        venues: Iterable[VenueKind] = tuple(VenueKind),
    ) -> list[Candidate]:
        """All direct and two-hop candidates for the given venue families."""
        token_in = normalize_address(token_in)
        token_out = normalize_address(token_out)
        if token_in == token_out:
            return []

        result: list[Candidate] = []
        for venue in venues:
            for pool in self.registry.pools_for(venue, token_in, token_out):
                result.append(Candidate(venue=venue, path=(token_in, token_out), pools=(pool,)))

            if venue not in MULTI_HOP_VENUES:
                continue

            for mid in self.intermediaries:
                if mid in (token_in, token_out):
                    continue
                first = self.registry.pools_for(venue, token_in, mid)
                second = self.registry.pools_for(venue, mid, token_out)
                for pool_a, pool_b in product(first, second):
                    result.append(
                        Candidate(
                            venue=venue,
                            path=(token_in, mid, token_out),
                            pools=(pool_a, pool_b),
                        )
                    )
        return result


__all__ = ["CandidateGenerator", "MULTI_HOP_VENUES"]
