"""UniswapV4 strategy: single-hop swaps through the Universal Router."""

from __future__ import annotations

import time
from collections.abc import Callable

from dex_trader.amm.base import VenueKind
from dex_trader.chain import ChainConfig
from dex_trader.config import DEFAULT_TRADING_CONFIG, TradingConfig
from dex_trader.encoding.actions import (
    encode_settle_all,
    encode_take_all,
    encode_v4_swap,
    encode_v4_swap_exact_in_single,
)
from dex_trader.errors import UnsupportedRouteShape
from dex_trader.execution import CallerContext, ChainReader, PermitSigner, TransactionRequest
from dex_trader.models.types import normalize_address
from dex_trader.routing.candidates import CandidateGenerator
from dex_trader.routing.optimizer import RouteOptimizer
from dex_trader.routing.types import Quote
from dex_trader.strategies.base import ResolvedTrade
from dex_trader.strategies.universal_router import UniversalRouterStrategy


class UniswapV4Strategy(UniversalRouterStrategy):
    """v4 venue. Native ETH pools are used directly, without wrapping.

    A swap is one V4_SWAP command carrying SWAP_EXACT_IN_SINGLE, SETTLE_ALL
    on the input currency and TAKE_ALL on the output currency. Multi-hop v4
    routes are rejected with UnsupportedRouteShape.
    """

    venue = VenueKind.UNISWAP_V4
    name = "uniswap_v4"

    def __init__(
        self,
        chain: ChainConfig,
        reader: ChainReader,
        optimizer: RouteOptimizer,
        candidates: CandidateGenerator,
        config: TradingConfig = DEFAULT_TRADING_CONFIG,
        clock: Callable[[], float] = time.time,
        permit_signer: PermitSigner | None = None,
        hook_data: bytes = b"",
    ):
        super().__init__(chain, reader, optimizer, candidates, config, clock, permit_signer)
        self.hook_data = hook_data

    def routing_token(self, token: str) -> str:
        """v4 pools hold native ETH as the zero address."""
        return normalize_address(token)

    async def encode_swap(
        self,
        context: CallerContext,
        trade: ResolvedTrade,
        quote: Quote,
        amount_out_min: int,
        deadline: int,
    ) -> TransactionRequest:
        route = quote.route
        if route.venue is not VenueKind.UNISWAP_V4:
            raise UnsupportedRouteShape(f"{self.name} cannot encode a {route.venue} route")
        if route.hops != 1 or route.pool_key is None:
            raise UnsupportedRouteShape(
                f"{self.name} encodes single-hop routes only, got {route.hops} hops"
            )

        pool_key = route.pool_key
        currency_in, currency_out = route.path
        amount_in = trade.amount_in
        steps = [
            encode_v4_swap_exact_in_single(
                pool_key,
                pool_key.zero_for_one(currency_in),
                amount_in,
                amount_out_min,
                self.hook_data,
            ),
            encode_settle_all(currency_in, amount_in),
            encode_take_all(currency_out, amount_out_min),
        ]

        if trade.native_in:
            return self.execute_transaction([encode_v4_swap(steps)], deadline, value=amount_in)

        actions = await self.permit_actions(context, trade.spend_token, amount_in)
        actions.append(encode_v4_swap(steps))
        return self.execute_transaction(actions, deadline)


__all__ = ["UniswapV4Strategy"]
