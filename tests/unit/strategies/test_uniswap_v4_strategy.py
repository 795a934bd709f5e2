"""Tests for the UniswapV4 Universal Router strategy."""

from decimal import Decimal

import pytest
from eth_abi import decode  # type: ignore[attr-defined]

from dex_trader.amm.base import VenueKind
from dex_trader.chain import MAINNET
from dex_trader.config import TradingConfig
from dex_trader.encoding.actions import EXACT_INPUT_SINGLE_TYPE
from dex_trader.encoding.commands import EXECUTE_SELECTOR, CommandType
from dex_trader.errors import UnsupportedRouteShape
from dex_trader.routing.types import Quote, Route
from dex_trader.strategies import create_strategy
from dex_trader.strategies.base import ResolvedTrade
from tests.helpers import (
    DAI,
    ETH,
    NOW,
    USDC,
    fixed_clock,
    make_buy_request,
    make_registry,
    make_sell_request,
    make_strategy,
)


def decode_v4_swap(tx):
    """Return (router commands, v4 action codes, v4 params) of an execute() call."""
    assert tx.calldata[:4] == EXECUTE_SELECTOR
    commands, inputs, _ = decode(["bytes", "bytes[]", "uint256"], tx.calldata[4:])
    actions, params = decode(["bytes", "bytes[]"], inputs[-1])
    return list(commands), list(actions), list(params)


class TestUniswapV4Strategy:
    """Tests for V4_SWAP encoding."""

    @pytest.mark.asyncio
    async def test_buy_with_native_eth(self, v4_adapter, reader, caller):
        strategy = make_strategy(VenueKind.UNISWAP_V4, v4_adapter, reader)

        tx = await strategy.build_buy_transaction(caller, make_buy_request())

        assert tx.to == MAINNET.universal_router
        assert tx.value == 10**18
        commands, actions, params = decode_v4_swap(tx)
        assert commands == [CommandType.V4_SWAP]
        assert actions == [0x06, 0x0C, 0x0F]

        ((pool_key, zero_for_one, amount_in, amount_out_min, hook_data),) = decode(
            [EXACT_INPUT_SINGLE_TYPE], params[0]
        )
        # Native ETH trades as the zero address, no wrapping
        assert pool_key[0].lower() == ETH
        assert pool_key[1].lower() == USDC
        assert zero_for_one is True
        assert amount_in == 10**18
        assert amount_out_min == TradingConfig().minimum_output(3000 * 10**6)
        assert hook_data == b""

        currency, amount = decode(["address", "uint256"], params[1])
        assert (currency.lower(), amount) == (ETH, 10**18)
        currency, amount = decode(["address", "uint256"], params[2])
        assert (currency.lower(), amount) == (USDC, amount_out_min)

    @pytest.mark.asyncio
    async def test_sell_token_for_eth(self, v4_adapter, reader, caller):
        strategy = make_strategy(VenueKind.UNISWAP_V4, v4_adapter, reader)

        tx = await strategy.build_sell_transaction(caller, make_sell_request())

        assert tx.value == 0
        commands, _, params = decode_v4_swap(tx)
        assert commands == [CommandType.V4_SWAP]
        ((pool_key, zero_for_one, amount_in, _, _),) = decode([EXACT_INPUT_SINGLE_TYPE], params[0])
        assert pool_key[2] == 3000
        assert zero_for_one is False
        assert amount_in == 1000 * 10**18
        currency, _ = decode(["address", "uint256"], params[1])
        assert currency.lower() == DAI

    @pytest.mark.asyncio
    async def test_permit_before_swap(self, v4_adapter, reader, caller, permit_signer):
        strategy = make_strategy(
            VenueKind.UNISWAP_V4, v4_adapter, reader, permit_signer=permit_signer
        )

        tx = await strategy.build_sell_transaction(caller, make_sell_request())

        commands, _, _ = decode_v4_swap(tx)
        assert commands == [CommandType.PERMIT2_PERMIT, CommandType.V4_SWAP]
        assert len(permit_signer.signed) == 1

    @pytest.mark.asyncio
    async def test_hook_data_forwarded(self, v4_adapter, reader, caller):
        strategy = create_strategy(
            "uniswap_v4",
            chain=MAINNET,
            reader=reader,
            adapter=v4_adapter,
            registry=make_registry(),
            clock=fixed_clock(),
            hook_data=b"\xca\xfe",
        )

        tx = await strategy.build_buy_transaction(caller, make_buy_request())

        _, _, params = decode_v4_swap(tx)
        ((_, _, _, _, hook_data),) = decode([EXACT_INPUT_SINGLE_TYPE], params[0])
        assert hook_data == b"\xca\xfe"

    @pytest.mark.asyncio
    async def test_multi_hop_route_rejected(self, v4_adapter, reader, caller):
        strategy = make_strategy(VenueKind.UNISWAP_V4, v4_adapter, reader)
        trade = ResolvedTrade(
            spend_token=DAI, receive_token=USDC, token_in=DAI, token_out=USDC, amount_in=10
        )
        quote = Quote(
            amount_in=10,
            amount_out=10,
            price_impact=Decimal(0),
            route=Route(path=(DAI, ETH, USDC), fees=(3000, 500), venue=VenueKind.UNISWAP_V4),
        )

        with pytest.raises(UnsupportedRouteShape, match="single-hop"):
            await strategy.encode_swap(caller, trade, quote, 1, NOW + 60)

    def test_routing_token_keeps_native(self, v4_adapter, reader):
        strategy = make_strategy(VenueKind.UNISWAP_V4, v4_adapter, reader)
        assert strategy.routing_token(ETH) == ETH
        assert strategy.routing_token(DAI.upper().replace("0X", "0x")) == DAI
