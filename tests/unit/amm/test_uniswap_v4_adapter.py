"""Tests for v4 pool keys and the v4 quote adapter."""

from decimal import Decimal

import pytest
from eth_abi import encode  # type: ignore[attr-defined]
from eth_utils import keccak

from dex_trader.amm.base import PoolState, VenueKind
from dex_trader.amm.state import MockPoolStateSource
from dex_trader.amm.ticks import Q96
from dex_trader.amm.uniswap_v4 import MockUniswapV4Quoter, PoolKey, UniswapV4Adapter
from dex_trader.constants import ZERO_ADDRESS
from dex_trader.errors import PoolNotFound, UnknownFeeTier, VenueUnreachable
from tests.helpers import DAI, ETH, USDC, WETH, make_pool_key

HOOKS = "0x" + "40" * 20


class TestPoolKey:
    """Tests for pool key construction and identity."""

    def test_for_pair_sorts_currencies(self):
        key = PoolKey.for_pair(WETH, USDC, 3000)
        assert key.currency0 == USDC
        assert key.currency1 == WETH
        assert key.tick_spacing == 60
        assert key.hooks == ZERO_ADDRESS

    def test_native_eth_is_currency0(self):
        key = PoolKey.for_pair(USDC, ETH, 500)
        assert key.currency0 == ZERO_ADDRESS
        assert key.tick_spacing == 10

    def test_identical_currencies_rejected(self):
        with pytest.raises(ValueError):
            PoolKey.for_pair(WETH, WETH, 3000)

    def test_unsorted_currencies_rejected(self):
        with pytest.raises(ValueError, match="sorted"):
            PoolKey(currency0=WETH, currency1=USDC, fee=3000, tick_spacing=60)

    def test_unknown_fee_rejected(self):
        with pytest.raises(UnknownFeeTier):
            PoolKey.for_pair(WETH, USDC, 1234)

    def test_equality_covers_hooks(self):
        """Same pair and fee with a different hook is a different pool."""
        plain = PoolKey.for_pair(WETH, USDC, 3000)
        hooked = PoolKey.for_pair(WETH, USDC, 3000, hooks=HOOKS)
        assert plain != hooked
        assert plain == PoolKey.for_pair(USDC, WETH, 3000)
        assert plain.pool_id != hooked.pool_id

    def test_pool_id_is_keccak_of_encoded_key(self):
        key = make_pool_key(ETH, USDC, 500)
        expected = keccak(
            encode(
                ["address", "address", "uint24", "int24", "address"],
                [ZERO_ADDRESS, USDC, 500, 10, ZERO_ADDRESS],
            )
        )
        assert key.pool_id == expected
        assert len(key.pool_id) == 32

    def test_direction(self):
        key = make_pool_key(ETH, USDC, 500)
        assert key.zero_for_one(ETH) is True
        assert key.zero_for_one(USDC) is False
        assert key.get_token_out(ETH) == USDC
        with pytest.raises(ValueError):
            key.zero_for_one(DAI)


class TestUniswapV4Adapter:
    """Tests for quoting v4 pools."""

    @pytest.mark.asyncio
    async def test_single_hop_quote(self, v4_adapter, v4_quoter):
        key = make_pool_key(ETH, USDC, 500)

        quote = await v4_adapter.quote([key], [ETH, USDC], 10**18)

        assert quote.amount_out == 3000 * 10**6
        assert v4_adapter.kind is VenueKind.UNISWAP_V4
        # Main quote, then the price-impact probe
        assert v4_quoter.calls[0] == (key, True, 10**18, b"")
        assert v4_quoter.calls[1][2] == 10**12

    @pytest.mark.asyncio
    async def test_hook_data_forwarded(self):
        quoter = MockUniswapV4Quoter(default_rate=(1, 1))
        adapter = UniswapV4Adapter(quoter, hook_data=b"\x01\x02")
        key = make_pool_key(ETH, USDC, 500)

        await adapter.quote([key], [USDC, ETH], 10**6)

        assert quoter.calls[0] == (key, False, 10**6, b"\x01\x02")

    @pytest.mark.asyncio
    async def test_probe_impact(self):
        key = make_pool_key(ETH, USDC, 500)
        quoter = MockUniswapV4Quoter(
            quotes={(key, True, 10**18): 2850 * 10**6, (key, True, 10**12): 3000}
        )

        quote = await UniswapV4Adapter(quoter).quote([key], [ETH, USDC], 10**18)

        assert quote.price_impact == Decimal(5)

    @pytest.mark.asyncio
    async def test_multi_hop_chains_quotes(self):
        first = make_pool_key(DAI, ETH, 3000)
        second = make_pool_key(ETH, USDC, 500)
        quoter = MockUniswapV4Quoter(default_rate=(2, 1))

        quote = await UniswapV4Adapter(quoter).quote([first, second], [DAI, ETH, USDC], 5)

        assert quote.amount_out == 20

    @pytest.mark.asyncio
    async def test_failures_surface_as_venue_errors(self):
        key = make_pool_key(ETH, USDC, 500)
        quoter = MockUniswapV4Quoter(
            default_rate=(1, 1), failures={key: [VenueUnreachable("uniswap_v4", "timeout")]}
        )

        with pytest.raises(VenueUnreachable):
            await UniswapV4Adapter(quoter).quote([key], [ETH, USDC], 10)

    @pytest.mark.asyncio
    async def test_unconfigured_pool_not_found(self):
        key = make_pool_key(ETH, USDC, 500)
        with pytest.raises(PoolNotFound):
            await UniswapV4Adapter(MockUniswapV4Quoter()).quote([key], [ETH, USDC], 10)

    @pytest.mark.asyncio
    async def test_thin_pool_with_state(self):
        key = make_pool_key(ETH, USDC, 500)
        state = MockPoolStateSource({key: PoolState(Q96, 0, 10, key.tick_spacing)})
        adapter = UniswapV4Adapter(MockUniswapV4Quoter(default_rate=(1, 1)), state=state)

        assert await adapter.has_sufficient_liquidity([key], [ETH, USDC], 10)
        assert not await adapter.has_sufficient_liquidity([key], [ETH, USDC], 11)
