"""UniswapV3 strategy: exact-input swaps through the Universal Router."""

from __future__ import annotations

from dex_trader.amm.base import VenueKind
from dex_trader.constants import ADDRESS_THIS, MSG_SENDER
from dex_trader.encoding.actions import (
    encode_unwrap_weth,
    encode_v3_swap_exact_in,
    encode_wrap_eth,
)
from dex_trader.errors import UnsupportedRouteShape
from dex_trader.execution import CallerContext, TransactionRequest
from dex_trader.routing.types import Quote
from dex_trader.strategies.base import ResolvedTrade
from dex_trader.strategies.universal_router import UniversalRouterStrategy


class UniswapV3Strategy(UniversalRouterStrategy):
    """Concentrated-liquidity venue, single and multi-hop paths.

    ETH in:  WRAP_ETH to the router, then V3_SWAP_EXACT_IN paid by the router
    ETH out: V3_SWAP_EXACT_IN to the router, then UNWRAP_WETH to the caller
    tokens:  V3_SWAP_EXACT_IN paid by the caller through Permit2
    """

    venue = VenueKind.UNISWAP_V3
    name = "uniswap_v3"

    async def encode_swap(
        self,
        context: CallerContext,
        trade: ResolvedTrade,
        quote: Quote,
        amount_out_min: int,
        deadline: int,
    ) -> TransactionRequest:
        route = quote.route
        if route.venue is not VenueKind.UNISWAP_V3 or route.encoded_path is None:
            raise UnsupportedRouteShape(f"{self.name} needs an encoded v3 path")

        path = route.encoded_path
        amount_in = trade.amount_in

        if trade.native_in:
            actions = [
                encode_wrap_eth(ADDRESS_THIS, amount_in),
                encode_v3_swap_exact_in(MSG_SENDER, amount_in, amount_out_min, path, False),
            ]
            return self.execute_transaction(actions, deadline, value=amount_in)

        actions = await self.permit_actions(context, trade.spend_token, amount_in)
        if trade.native_out:
            actions += [
                encode_v3_swap_exact_in(ADDRESS_THIS, amount_in, amount_out_min, path, True),
                encode_unwrap_weth(MSG_SENDER, amount_out_min),
            ]
        else:
            actions.append(
                encode_v3_swap_exact_in(MSG_SENDER, amount_in, amount_out_min, path, True)
            )
        return self.execute_transaction(actions, deadline)


__all__ = ["UniswapV3Strategy"]
