"""UniswapV3 quote adapter and RPC pool state source."""

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
from dex_trader.encoding.path import encode_path
from dex_trader.errors import MalformedResponse

from .constants import POOL_ABI
from .pool import UniswapV3Pool
from .quoter import UniswapV3Quoter

VENUE = VenueKind.UNISWAP_V3.value


class UniswapV3Adapter(ConcentratedLiquidityAdapter):
    """Quotes UniswapV3 pools through a QuoterV2-compatible quoter.

    Single hops use quoteExactInputSingle, longer paths are packed and
    quoted in one quoteExactInput call.
    """

    kind = VenueKind.UNISWAP_V3

    def __init__(
        self,
        quoter: UniswapV3Quoter,
        state: PoolStateSource | None = None,
        probe_fraction: Decimal = DEFAULT_TRADING_CONFIG.price_impact_probe_fraction,
    ):
        super().__init__(state=state, probe_fraction=probe_fraction)
        self.quoter = quoter

    async def _quote_path(
        self,
        pools: Sequence[UniswapV3Pool],
        path: Sequence[str],
        amount_in: int,
    ) -> VenueQuote:
        if len(pools) == 1:
            result = await self.quoter.quote_exact_input_single(
                path[0], path[1], pools[0].fee, amount_in
            )
        else:
            encoded = encode_path(path, [pool.fee for pool in pools])
            result = await self.quoter.quote_exact_input(encoded, amount_in)

        return VenueQuote(
            amount_in=amount_in,
            amount_out=result.amount_out,
            price_impact=Decimal(0),
            sqrt_price_x96_after=result.sqrt_price_x96_after,
            ticks_crossed=result.ticks_crossed,
            gas_estimate=result.gas_estimate,
        )


class Web3V3PoolStateSource:
    """Reads slot0, liquidity and ticks from UniswapV3 pool contracts."""

    def __init__(self, w3: Any):
        self.w3 = w3

    def _contract(self, pool: UniswapV3Pool) -> Any:
        return self.w3.eth.contract(address=to_checksum_address(pool.address), abi=POOL_ABI)

    async def slot0(self, pool: UniswapV3Pool) -> tuple[int, int]:
        result = await call_contract(self._contract(pool).functions.slot0(), venue=VENUE)
        try:
            return int(result[0]), int(result[1])
        except (TypeError, ValueError, IndexError) as e:
            raise MalformedResponse(VENUE, str(e)) from e

    async def liquidity(self, pool: UniswapV3Pool) -> int:
        result = await call_contract(self._contract(pool).functions.liquidity(), venue=VENUE)
        try:
            return int(result)
        except (TypeError, ValueError) as e:
            raise MalformedResponse(VENUE, str(e)) from e

    async def tick_info(self, pool: UniswapV3Pool, tick: int) -> TickInfo:
        result = await call_contract(self._contract(pool).functions.ticks(tick), venue=VENUE)
        try:
            return TickInfo(
                liquidity_gross=int(result[0]),
                liquidity_net=int(result[1]),
                initialized=bool(result[7]),
            )
        except (TypeError, ValueError, IndexError) as e:
            raise MalformedResponse(VENUE, str(e)) from e


__all__ = ["UniswapV3Adapter", "Web3V3PoolStateSource"]
