"""Tests for the concurrent route optimizer."""

from decimal import Decimal

import pytest
from structlog.testing import capture_logs

from dex_trader.amm.base import VenueKind
from dex_trader.amm.uniswap_v2 import MockReserveSource, UniswapV2Adapter
from dex_trader.config import TradingConfig
from dex_trader.errors import MalformedResponse, PoolNotFound, VenueUnreachable
from dex_trader.routing.optimizer import RouteOptimizer
from dex_trader.routing.types import Candidate, Route
from tests.helpers import (
    ETH,
    USDC,
    WETH,
    StaticAdapter,
    make_pool_key,
    make_v2_pool,
    make_v3_pool,
)


def _candidates():
    v2_pool = make_v2_pool()
    v3_pool = make_v3_pool()
    v4_key = make_pool_key(ETH, USDC, 500)
    return (
        Candidate(VenueKind.UNISWAP_V2, (WETH, USDC), (v2_pool,)),
        Candidate(VenueKind.UNISWAP_V3, (WETH, USDC), (v3_pool,)),
        Candidate(VenueKind.UNISWAP_V4, (ETH, USDC), (v4_key,)),
    )


def _v2_source(failures):
    pool = make_v2_pool()
    source = MockReserveSource(
        reserves={pool.address: (30_000_000 * 10**6, 10_000 * 10**18)},
        failures={pool.address: failures},
    )
    return pool, source


class TestRouteSelection:
    """Tests for choosing the best candidate."""

    @pytest.mark.asyncio
    async def test_best_output_wins_and_failures_excluded(self, recording_sleep):
        """V2 quotes 100, V3 has no pool, V4 quotes 120: V4 wins."""
        v2, v3, v4 = _candidates()
        optimizer = RouteOptimizer(
            {
                VenueKind.UNISWAP_V2: StaticAdapter(VenueKind.UNISWAP_V2, default=100),
                VenueKind.UNISWAP_V3: StaticAdapter(
                    VenueKind.UNISWAP_V3,
                    outputs={v3.pools[0]: PoolNotFound("uniswap_v3", "no pool")},
                ),
                VenueKind.UNISWAP_V4: StaticAdapter(VenueKind.UNISWAP_V4, default=120),
            },
            sleep=recording_sleep,
        )

        with capture_logs() as logs:
            result = await optimizer.search(WETH, USDC, 10**18, [v2, v3, v4])

        assert result.best.amount_out == 120
        assert result.best.venue is VenueKind.UNISWAP_V4
        assert [exclusion.candidate for exclusion in result.excluded] == [v3]
        assert "PoolNotFound" in result.excluded[0].reason
        excluded_events = [log for log in logs if log["event"] == "candidate_excluded"]
        assert len(excluded_events) == 1
        assert excluded_events[0]["log_level"] == "warning"
        assert excluded_events[0]["error_type"] == "PoolNotFound"
        # Permanent errors are not retried
        assert recording_sleep.delays == []

    @pytest.mark.asyncio
    async def test_best_route_and_quote(self):
        v2, _, _ = _candidates()
        optimizer = RouteOptimizer(
            {VenueKind.UNISWAP_V2: StaticAdapter(VenueKind.UNISWAP_V2, default=42)}
        )

        quote = await optimizer.best_quote(WETH, USDC, 10, [v2])
        route = await optimizer.best_route(WETH, USDC, 10, [v2])

        assert quote.amount_out == 42
        assert quote.amount_in == 10
        assert route == v2.to_route()

    @pytest.mark.asyncio
    async def test_no_candidates_gives_empty_route(self):
        optimizer = RouteOptimizer({})

        assert await optimizer.best_quote(WETH, USDC, 10, []) is None
        assert await optimizer.best_route(WETH, USDC, 10, []) == Route.empty()

    @pytest.mark.asyncio
    async def test_all_failures_give_empty_route(self):
        v2, _, _ = _candidates()
        adapter = StaticAdapter(
            VenueKind.UNISWAP_V2,
            outputs={v2.pools[0]: MalformedResponse("uniswap_v2", "bad reserves")},
        )
        optimizer = RouteOptimizer({VenueKind.UNISWAP_V2: adapter})

        assert await optimizer.best_route(WETH, USDC, 10, [v2]) == Route.empty()

    @pytest.mark.asyncio
    async def test_missing_adapter_excludes_candidate(self):
        _, v3, _ = _candidates()

        result = await RouteOptimizer({}).search(WETH, USDC, 10, [v3])

        assert result.best is None
        assert result.excluded[0].reason == "no adapter"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount_in", [0, -1])
    async def test_non_positive_amount_rejected(self, amount_in):
        with pytest.raises(ValueError, match="positive"):
            await RouteOptimizer({}).search(WETH, USDC, amount_in, [])

    @pytest.mark.asyncio
    async def test_price_impact_carried_to_quote(self):
        v2, _, _ = _candidates()
        adapter = StaticAdapter(VenueKind.UNISWAP_V2, default=1, price_impact=Decimal("1.5"))

        quote = await RouteOptimizer({VenueKind.UNISWAP_V2: adapter}).best_quote(
            WETH, USDC, 10, [v2]
        )

        assert quote.price_impact == Decimal("1.5")


class TestRetries:
    """Tests for transient failure handling."""

    @pytest.mark.asyncio
    async def test_transient_failures_retried_with_backoff(self, recording_sleep):
        pool, source = _v2_source(
            [VenueUnreachable("uniswap_v2", "timeout"), VenueUnreachable("uniswap_v2", "timeout")]
        )
        optimizer = RouteOptimizer(
            {VenueKind.UNISWAP_V2: UniswapV2Adapter(source)}, sleep=recording_sleep
        )
        candidate = Candidate(VenueKind.UNISWAP_V2, (WETH, USDC), (pool,))

        quote = await optimizer.best_quote(WETH, USDC, 10**18, [candidate])

        assert quote is not None
        assert quote.amount_out > 0
        assert recording_sleep.delays == [0.25, 0.5]
        assert len(source.calls) == 3

    @pytest.mark.asyncio
    async def test_exhausted_retries_exclude_candidate(self, recording_sleep):
        pool, source = _v2_source([VenueUnreachable("uniswap_v2", "down")] * 4)
        optimizer = RouteOptimizer(
            {VenueKind.UNISWAP_V2: UniswapV2Adapter(source)}, sleep=recording_sleep
        )
        candidate = Candidate(VenueKind.UNISWAP_V2, (WETH, USDC), (pool,))

        result = await optimizer.search(WETH, USDC, 10**18, [candidate])

        assert result.best is None
        assert "VenueUnreachable" in result.excluded[0].reason
        # max_retries=3 after the first attempt
        assert recording_sleep.delays == [0.25, 0.5, 1.0]
        assert len(source.calls) == 4

    @pytest.mark.asyncio
    async def test_timeout_is_transient(self, recording_sleep):
        v2, _, _ = _candidates()
        adapter = StaticAdapter(VenueKind.UNISWAP_V2, default=1, delay=1)
        config = TradingConfig(quote_timeout_seconds=0.01, max_retries=1)
        optimizer = RouteOptimizer(
            {VenueKind.UNISWAP_V2: adapter}, config=config, sleep=recording_sleep
        )

        result = await optimizer.search(WETH, USDC, 10, [v2])

        assert result.best is None
        assert "timed out" in result.excluded[0].reason
        assert recording_sleep.delays == [0.25]
        assert len(adapter.calls) == 2

    @pytest.mark.asyncio
    async def test_thin_liquidity_skips_quote(self):
        v2, _, _ = _candidates()
        adapter = StaticAdapter(VenueKind.UNISWAP_V2, default=1, sufficient_liquidity=False)

        result = await RouteOptimizer({VenueKind.UNISWAP_V2: adapter}).search(
            WETH, USDC, 10, [v2]
        )

        assert result.best is None
        assert result.excluded[0].reason == "thin liquidity"
        assert adapter.calls == []
