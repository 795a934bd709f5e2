"""UniswapV4 quote adapter and StateView-backed pool state source."""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal
from typing import Any

from eth_utils import to_checksum_address

from dex_trader.amm.base import PoolStateSource, VenueKind, VenueQuote
from dex_trader.amm.concentrated import ConcentratedLiquidityAdapter
from dex_trader.amm.rpc import call_contract
from dex_trader.amm.ticks import TickInfo
from dex_trader.config import DEFAULT_TRADING_CONFIG
from dex_trader.constants import UNISWAP_V4_STATE_VIEW
from dex_trader.errors import MalformedResponse

from .pool_key import PoolKey
from .quoter import UniswapV4Quoter

VENUE = VenueKind.UNISWAP_V4.value

STATE_VIEW_ABI = [
    {
        "name": "getSlot0",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "poolId", "type": "bytes32"}],
        "outputs": [
            {"name": "sqrtPriceX96", "type": "uint160"},
            {"name": "tick", "type": "int24"},
            {"name": "protocolFee", "type": "uint24"},
            {"name": "lpFee", "type": "uint24"},
        ],
    },
    {
        "name": "getLiquidity",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "poolId", "type": "bytes32"}],
        "outputs": [{"name": "liquidity", "type": "uint128"}],
    },
    {
        "name": "getTickInfo",
        "type": "function",
        "stateMutability": "view",
        "inputs": [
            {"name": "poolId", "type": "bytes32"},
            {"name": "tick", "type": "int24"},
        ],
        "outputs": [
            {"name": "liquidityGross", "type": "uint128"},
            {"name": "liquidityNet", "type": "int128"},
            {"name": "feeGrowthOutside0X128", "type": "uint256"},
            {"name": "feeGrowthOutside1X128", "type": "uint256"},
        ],
    },
]


class UniswapV4Adapter(ConcentratedLiquidityAdapter):
    """Quotes v4 pools hop by hop through a V4Quoter-compatible quoter.

    The quoter reports no post-swap price, so price impact always comes from
    a probe quote.
    """

    kind = VenueKind.UNISWAP_V4

    def __init__(
        self,
        quoter: UniswapV4Quoter,
        state: PoolStateSource | None = None,
        probe_fraction: Decimal = DEFAULT_TRADING_CONFIG.price_impact_probe_fraction,
        hook_data: bytes = b"",
    ):
        super().__init__(state=state, probe_fraction=probe_fraction)
        self.quoter = quoter
        self.hook_data = hook_data

    async def _quote_path(
        self,
        pools: Sequence[PoolKey],
        path: Sequence[str],
        amount_in: int,
    ) -> VenueQuote:
        amount = amount_in
        gas = 0
        for pool_key, token_in in zip(pools, path):
            result = await self.quoter.quote_exact_input_single(
                pool_key, pool_key.zero_for_one(token_in), amount, self.hook_data
            )
            amount = result.amount_out
            gas += result.gas_estimate

        return VenueQuote(
            amount_in=amount_in,
            amount_out=amount,
            price_impact=Decimal(0),
            gas_estimate=gas,
        )


class Web3V4StateSource:
    """Reads v4 pool state from the StateView lens contract."""

    def __init__(self, w3: Any, state_view_address: str = UNISWAP_V4_STATE_VIEW):
        self.w3 = w3
        self.state_view = w3.eth.contract(
            address=to_checksum_address(state_view_address),
            abi=STATE_VIEW_ABI,
        )

    async def slot0(self, pool: PoolKey) -> tuple[int, int]:
        result = await call_contract(
            self.state_view.functions.getSlot0(pool.pool_id), venue=VENUE
        )
        try:
            return int(result[0]), int(result[1])
        except (TypeError, ValueError, IndexError) as e:
            raise MalformedResponse(VENUE, str(e)) from e

    async def liquidity(self, pool: PoolKey) -> int:
        result = await call_contract(
            self.state_view.functions.getLiquidity(pool.pool_id), venue=VENUE
        )
        try:
            return int(result)
        except (TypeError, ValueError) as e:
            raise MalformedResponse(VENUE, str(e)) from e

    async def tick_info(self, pool: PoolKey, tick: int) -> TickInfo:
        result = await call_contract(
            self.state_view.functions.getTickInfo(pool.pool_id, tick), venue=VENUE
        )
        try:
            liquidity_gross = int(result[0])
            return TickInfo(
                liquidity_gross=liquidity_gross,
                liquidity_net=int(result[1]),
                initialized=liquidity_gross > 0,
            )
        except (TypeError, ValueError, IndexError) as e:
            raise MalformedResponse(VENUE, str(e)) from e


__all__ = ["UniswapV4Adapter", "Web3V4StateSource", "STATE_VIEW_ABI"]
