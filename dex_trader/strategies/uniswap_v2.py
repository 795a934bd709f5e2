"""UniswapV2 strategy: swaps through Router02."""

from __future__ import annotations

from dex_trader.amm.base import VenueKind
from dex_trader.amm.uniswap_v2 import uniswap_v2_router
from dex_trader.errors import UnsupportedRouteShape
from dex_trader.execution import CallerContext, TransactionRequest
from dex_trader.routing.types import Quote
from dex_trader.strategies.approval import plan_erc20_approval
from dex_trader.strategies.base import BaseStrategy, ResolvedTrade


class UniswapV2Strategy(BaseStrategy):
    """Constant-product venue using Router02 swapExact* functions.

    ETH in:    swapExactETHForTokens, amount sent as value
    ETH out:   swapExactTokensForETH
    otherwise: swapExactTokensForTokens
    """

    venue = VenueKind.UNISWAP_V2
    name = "uniswap_v2"

    @property
    def approval_spender(self) -> str:
        return self.chain.v2_router

    async def plan_approvals(
        self,
        context: CallerContext,
        token: str,
        amount: int,
    ) -> list[TransactionRequest]:
        tx = await plan_erc20_approval(
            self.reader,
            context.address,
            token,
            self.chain.v2_router,
            amount,
            self.config.infinite_approval,
        )
        return [tx] if tx is not None else []

    async def encode_swap(
        self,
        context: CallerContext,
        trade: ResolvedTrade,
        quote: Quote,
        amount_out_min: int,
        deadline: int,
    ) -> TransactionRequest:
        route = quote.route
        if route.venue is not VenueKind.UNISWAP_V2 or route.is_empty:
            raise UnsupportedRouteShape(f"{self.name} cannot encode a {route.venue} route")

        path = list(route.path)
        router = self.chain.v2_router
        if trade.native_in:
            data = uniswap_v2_router.encode_swap_exact_eth_for_tokens(
                amount_out_min, path, context.address, deadline
            )
            return TransactionRequest.from_calldata(router, data, value=trade.amount_in)

        if trade.native_out:
            data = uniswap_v2_router.encode_swap_exact_tokens_for_eth(
                trade.amount_in, amount_out_min, path, context.address, deadline
            )
        else:
            data = uniswap_v2_router.encode_swap_exact_tokens_for_tokens(
                trade.amount_in, amount_out_min, path, context.address, deadline
            )
        return TransactionRequest.from_calldata(router, data)


__all__ = ["UniswapV2Strategy"]
