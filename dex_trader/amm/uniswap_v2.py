"""UniswapV2 constant-product pools: math, quoting and Router02 encoding.

UniswapV2 uses the constant product formula: x * y = k
With a 0.3% fee on input amounts.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, ClassVar, Protocol

import structlog
from eth_abi import encode  # type: ignore[attr-defined]
from eth_utils import function_signature_to_4byte_selector, to_checksum_address

from dex_trader.amm.base import VenueKind, VenueQuote
from dex_trader.amm.rpc import call_contract
from dex_trader.errors import MalformedResponse, PoolNotFound
from dex_trader.models.types import normalize_address

logger = structlog.get_logger()


@dataclass(frozen=True)
class UniswapV2Pool:
    """A UniswapV2 pair. Reserves are read live through a ReserveSource."""

    address: str
    token0: str
    token1: str
    # Fee in basis points (30 = 0.3%); some forks use different fees
    fee_bps: int = 30

    def __post_init__(self) -> None:
        object.__setattr__(self, "address", normalize_address(self.address))
        object.__setattr__(self, "token0", normalize_address(self.token0))
        object.__setattr__(self, "token1", normalize_address(self.token1))

    @property
    def fee_multiplier(self) -> int:
        """Fee multiplier for AMM math (10000 - fee_bps), 9970 for 0.3%."""
        return 10000 - self.fee_bps

    @property
    def fee(self) -> int:
        """Fee in hundredths of a basis point, the unit used for routes."""
        return self.fee_bps * 100

    def zero_for_one(self, token_in: str) -> bool:
        token_in_norm = normalize_address(token_in)
        if token_in_norm == self.token0:
            return True
        if token_in_norm == self.token1:
            return False
        raise ValueError(f"Token {token_in} not in pool {self.address}")

    def get_token_out(self, token_in: str) -> str:
        """Get the output token for a given input token."""
        return self.token1 if self.zero_for_one(token_in) else self.token0

    def order_reserves(self, token_in: str, reserve0: int, reserve1: int) -> tuple[int, int]:
        """Order raw reserves as (reserve_in, reserve_out)."""
        if self.zero_for_one(token_in):
            return reserve0, reserve1
        return reserve1, reserve0


def get_amount_out(
    amount_in: int,
    reserve_in: int,
    reserve_out: int,
    fee_multiplier: int = 9970,
) -> int:
    """Calculate output amount using constant product formula.

    Formula: amount_out = (in * fee * res_out) / (res_in * 10000 + in * fee)

    Args:
        amount_in: Input token amount
        reserve_in: Reserve of input token in pool
        reserve_out: Reserve of output token in pool
        fee_multiplier: Fee multiplier (default 9970 for 0.3% fee)

    Returns:
        Output token amount
    """
    if amount_in <= 0:
        return 0
    if reserve_in <= 0 or reserve_out <= 0:
        return 0

    amount_in_with_fee = amount_in * fee_multiplier
    numerator = amount_in_with_fee * reserve_out
    denominator = reserve_in * 10000 + amount_in_with_fee
    return numerator // denominator


class ReserveSource(Protocol):
    """Read access to pair reserves."""

    async def get_reserves(self, pool: UniswapV2Pool) -> tuple[int, int]:
        """Return (reserve0, reserve1)."""
        ...


class MockReserveSource:
    """Reserves held in memory, keyed by pair address.

    failures maps a pair address to exceptions raised on successive calls,
    which lets tests simulate flaky or missing pairs.
    """

    def __init__(
        self,
        reserves: dict[str, tuple[int, int]] | None = None,
        failures: dict[str, list[Exception]] | None = None,
    ):
        self.reserves = {normalize_address(k): v for k, v in (reserves or {}).items()}
        self.failures = {normalize_address(k): list(v) for k, v in (failures or {}).items()}
        self.calls: list[str] = []

    async def get_reserves(self, pool: UniswapV2Pool) -> tuple[int, int]:
        self.calls.append(pool.address)
        pending = self.failures.get(pool.address)
        if pending:
            raise pending.pop(0)
        try:
            return self.reserves[pool.address]
        except KeyError:
            raise PoolNotFound(VenueKind.UNISWAP_V2.value, f"unknown pair {pool.address}") from None


PAIR_ABI = [
    {
        "name": "getReserves",
        "type": "function",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [
            {"name": "reserve0", "type": "uint112"},
            {"name": "reserve1", "type": "uint112"},
            {"name": "blockTimestampLast", "type": "uint32"},
        ],
    },
]


class Web3ReserveSource:
    """Reads reserves from pair contracts over RPC."""

    def __init__(self, w3: Any):
        """Initialize with an AsyncWeb3 client (see dex_trader.amm.rpc.connect)."""
        self.w3 = w3

    async def get_reserves(self, pool: UniswapV2Pool) -> tuple[int, int]:
        pair = self.w3.eth.contract(address=to_checksum_address(pool.address), abi=PAIR_ABI)
        result = await call_contract(
            pair.functions.getReserves(), venue=VenueKind.UNISWAP_V2.value
        )
        try:
            return int(result[0]), int(result[1])
        except (TypeError, ValueError, IndexError) as e:
            raise MalformedResponse(VenueKind.UNISWAP_V2.value, str(e)) from e


class UniswapV2Adapter:
    """Quotes constant-product pools from live reserves.

    Price impact compares the execution rate with the fee-adjusted spot rate
    implied by the reserves before the swap, compounded over every hop.
    """

    kind = VenueKind.UNISWAP_V2

    def __init__(self, reserves: ReserveSource):
        self.reserves = reserves

    async def quote(
        self,
        pools: Sequence[UniswapV2Pool],
        path: Sequence[str],
        amount_in: int,
    ) -> VenueQuote:
        if len(path) != len(pools) + 1:
            raise ValueError(f"Path of {len(path)} tokens does not match {len(pools)} pools")

        amount = amount_in
        spot_rate = Decimal(1)
        for pool, token_in in zip(pools, path):
            reserve0, reserve1 = await self.reserves.get_reserves(pool)
            reserve_in, reserve_out = pool.order_reserves(token_in, reserve0, reserve1)
            if reserve_in <= 0 or reserve_out <= 0:
                raise PoolNotFound(self.kind.value, f"empty reserves in {pool.address}")

            spot_rate *= (
                Decimal(reserve_out) / Decimal(reserve_in) * Decimal(pool.fee_multiplier) / 10000
            )
            amount = get_amount_out(amount, reserve_in, reserve_out, pool.fee_multiplier)

        if amount <= 0:
            raise PoolNotFound(self.kind.value, f"zero output for {path[0]} -> {path[-1]}")

        spot_out = Decimal(amount_in) * spot_rate
        impact = max(Decimal(0), (Decimal(1) - Decimal(amount) / spot_out) * 100)
        return VenueQuote(amount_in=amount_in, amount_out=amount, price_impact=impact)

    async def has_sufficient_liquidity(
        self,
        pools: Sequence[UniswapV2Pool],
        path: Sequence[str],
        min_liquidity: int,
    ) -> bool:
        """Constant-product pools have no ticks; empty reserves fail in quote()."""
        return True


class UniswapV2Router:
    """Calldata for UniswapV2 Router02 exact-input swaps."""

    SWAP_EXACT_ETH_FOR_TOKENS: ClassVar[str] = (
        "swapExactETHForTokens(uint256,address[],address,uint256)"
    )
    SWAP_EXACT_TOKENS_FOR_TOKENS: ClassVar[str] = (
        "swapExactTokensForTokens(uint256,uint256,address[],address,uint256)"
    )
    SWAP_EXACT_TOKENS_FOR_ETH: ClassVar[str] = (
        "swapExactTokensForETH(uint256,uint256,address[],address,uint256)"
    )

    @staticmethod
    def _path(path: Sequence[str]) -> list[str]:
        if len(path) < 2:
            raise ValueError("Swap path needs at least two tokens")
        return [normalize_address(token, validate=True) for token in path]

    def encode_swap_exact_eth_for_tokens(
        self,
        amount_out_min: int,
        path: Sequence[str],
        recipient: str,
        deadline: int,
    ) -> bytes:
        """Encode swapExactETHForTokens; the input amount travels as tx value."""
        selector = function_signature_to_4byte_selector(self.SWAP_EXACT_ETH_FOR_TOKENS)
        args = encode(
            ["uint256", "address[]", "address", "uint256"],
            [amount_out_min, self._path(path), normalize_address(recipient), deadline],
        )
        return selector + args

    def encode_swap_exact_tokens_for_tokens(
        self,
        amount_in: int,
        amount_out_min: int,
        path: Sequence[str],
        recipient: str,
        deadline: int,
    ) -> bytes:
        selector = function_signature_to_4byte_selector(self.SWAP_EXACT_TOKENS_FOR_TOKENS)
        args = encode(
            ["uint256", "uint256", "address[]", "address", "uint256"],
            [amount_in, amount_out_min, self._path(path), normalize_address(recipient), deadline],
        )
        return selector + args

    def encode_swap_exact_tokens_for_eth(
        self,
        amount_in: int,
        amount_out_min: int,
        path: Sequence[str],
        recipient: str,
        deadline: int,
    ) -> bytes:
        selector = function_signature_to_4byte_selector(self.SWAP_EXACT_TOKENS_FOR_ETH)
        args = encode(
            ["uint256", "uint256", "address[]", "address", "uint256"],
            [amount_in, amount_out_min, self._path(path), normalize_address(recipient), deadline],
        )
        return selector + args


# Singleton instance
uniswap_v2_router = UniswapV2Router()


__all__ = [
    "UniswapV2Pool",
    "get_amount_out",
    "ReserveSource",
    "MockReserveSource",
    "Web3ReserveSource",
    "UniswapV2Adapter",
    "UniswapV2Router",
    "uniswap_v2_router",
    "PAIR_ABI",
]
