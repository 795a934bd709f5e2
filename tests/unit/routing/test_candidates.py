"""Tests for candidate route generation."""

from dex_trader.amm.base import VenueKind
from dex_trader.chain import MAINNET
from dex_trader.routing.candidates import CandidateGenerator
from tests.helpers import DAI, ETH, UNI, USDC, WETH


def _generator(registry):
    return CandidateGenerator(registry, MAINNET.intermediaries)


class TestCandidateGenerator:
    """Tests for direct and two-hop enumeration."""

    def test_direct_pools_per_venue(self, registry):
        candidates = _generator(registry).candidates(WETH, USDC)

        by_venue = {venue: 0 for venue in VenueKind}
        for candidate in candidates:
            by_venue[candidate.venue] += 1
            assert candidate.hops == 1
        # v4 pools trade native ETH, not WETH
        assert by_venue == {
            VenueKind.UNISWAP_V2: 1,
            VenueKind.UNISWAP_V3: 2,
            VenueKind.UNISWAP_V4: 0,
        }

    def test_two_hop_through_intermediary(self, registry):
        candidates = _generator(registry).candidates(USDC, UNI, [VenueKind.UNISWAP_V3])

        direct = [c for c in candidates if c.hops == 1]
        two_hop = [c for c in candidates if c.hops == 2]
        assert len(direct) == 1
        # USDC/WETH has two fee tiers, WETH/UNI one
        assert len(two_hop) == 2
        assert all(c.path == (USDC, WETH, UNI) for c in two_hop)
        assert sorted(c.fees for c in two_hop) == [(500, 3000), (3000, 3000)]

    def test_v4_is_direct_only(self, registry):
        generator = CandidateGenerator(registry, [USDC])

        candidates = generator.candidates(ETH, DAI, [VenueKind.UNISWAP_V4])

        # ETH/USDC and USDC/DAI would make a two-hop path if v4 allowed it
        assert len(candidates) == 1
        assert candidates[0].path == (ETH, DAI)

    def test_same_token_has_no_candidates(self, registry):
        assert _generator(registry).candidates(WETH, WETH) == []

    def test_unknown_pair_has_no_candidates(self, registry):
        assert _generator(registry).candidates(UNI, DAI, [VenueKind.UNISWAP_V2]) == []

    def test_candidate_to_route(self, registry):
        v3 = _generator(registry).candidates(WETH, USDC, [VenueKind.UNISWAP_V3])[0]
        v4 = _generator(registry).candidates(ETH, USDC, [VenueKind.UNISWAP_V4])[0]

        v3_route = v3.to_route()
        v4_route = v4.to_route()

        assert v3_route.encoded_path is not None
        assert v3_route.pool_key is None
        assert v4_route.pool_key == v4.pools[0]
        assert v4_route.encoded_path is None
        assert v3.describe().startswith("uniswap_v3:c02aaa39>a0b86991")
