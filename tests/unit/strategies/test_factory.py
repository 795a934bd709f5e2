"""Tests for strategy construction."""

import pytest

from dex_trader.amm.base import VenueKind
from dex_trader.chain import MAINNET
from dex_trader.strategies import (
    UniswapV2Strategy,
    UniswapV3Strategy,
    UniswapV4Strategy,
    create_strategy,
)
from tests.helpers import StaticAdapter, make_registry


def _create(kind, **kwargs):
    return create_strategy(
        kind,
        chain=MAINNET,
        reader=None,
        adapter=StaticAdapter(VenueKind.UNISWAP_V2),
        registry=make_registry(),
        **kwargs,
    )


class TestCreateStrategy:
    """Tests for picking and wiring strategy classes."""

    @pytest.mark.parametrize(
        ("kind", "cls"),
        [
            (VenueKind.UNISWAP_V2, UniswapV2Strategy),
            ("uniswap_v3", UniswapV3Strategy),
            ("uniswap_v4", UniswapV4Strategy),
        ],
    )
    def test_kinds(self, kind, cls):
        strategy = _create(kind)
        assert type(strategy) is cls
        assert strategy.chain is MAINNET

    def test_optimizer_holds_only_its_venue(self):
        strategy = _create("uniswap_v3")
        assert list(strategy.optimizer.adapters) == [VenueKind.UNISWAP_V3]
        assert strategy.candidates.intermediaries == MAINNET.intermediaries

    def test_venue_options_passed_through(self):
        strategy = _create("uniswap_v4", hook_data=b"\x01")
        assert strategy.hook_data == b"\x01"

    def test_unknown_kind(self):
        with pytest.raises(ValueError, match="Unknown strategy kind"):
            _create("sushiswap")
