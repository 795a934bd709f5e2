"""UniswapV4 quoter implementations."""

from __future__ import annotations

from typing import Any, Protocol

import structlog
from eth_utils import to_checksum_address

from dex_trader.amm.base import VenueKind
from dex_trader.amm.rpc import call_contract
from dex_trader.amm.uniswap_v3.quoter import QuoterResult
from dex_trader.constants import UNISWAP_V4_QUOTER
from dex_trader.errors import MalformedResponse, PoolNotFound

from .pool_key import PoolKey

logger = structlog.get_logger()

VENUE = VenueKind.UNISWAP_V4.value

_POOL_KEY_COMPONENTS = [
    {"name": "currency0", "type": "address"},
    {"name": "currency1", "type": "address"},
    {"name": "fee", "type": "uint24"},
    {"name": "tickSpacing", "type": "int24"},
    {"name": "hooks", "type": "address"},
]

V4_QUOTER_ABI = [
    {
        "name": "quoteExactInputSingle",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [
            {
                "name": "params",
                "type": "tuple",
                "components": [
                    {"name": "poolKey", "type": "tuple", "components": _POOL_KEY_COMPONENTS},
                    {"name": "zeroForOne", "type": "bool"},
                    {"name": "exactAmount", "type": "uint128"},
                    {"name": "hookData", "type": "bytes"},
                ],
            }
        ],
        "outputs": [
            {"name": "amountOut", "type": "uint256"},
            {"name": "gasEstimate", "type": "uint256"},
        ],
    },
]


class UniswapV4Quoter(Protocol):
    """Protocol for UniswapV4 quoter implementations."""

    async def quote_exact_input_single(
        self,
        pool_key: PoolKey,
        zero_for_one: bool,
        amount_in: int,
        hook_data: bytes = b"",
    ) -> QuoterResult:
        """Get output amount for exact input on one pool.

        Args:
            pool_key: Pool to quote against
            zero_for_one: True when selling currency0
            amount_in: Input amount
            hook_data: Opaque bytes forwarded to the pool's hooks
        """
        ...


class MockUniswapV4Quoter:
    """Mock quoter keyed by (pool_key, zero_for_one, amount).

    Configure with expected quotes or a default rate, and track calls.
    """

    def __init__(
        self,
        quotes: dict[tuple[PoolKey, bool, int], int] | None = None,
        default_rate: tuple[int, int] | None = None,
        failures: dict[PoolKey, list[Exception]] | None = None,
    ):
        self.quotes = quotes or {}
        self.default_rate = default_rate
        self.failures = {key: list(errors) for key, errors in (failures or {}).items()}
        self.calls: list[tuple[PoolKey, bool, int, bytes]] = []

    async def quote_exact_input_single(
        self,
        pool_key: PoolKey,
        zero_for_one: bool,
        amount_in: int,
        hook_data: bytes = b"",
    ) -> QuoterResult:
        self.calls.append((pool_key, zero_for_one, amount_in, hook_data))

        pending = self.failures.get(pool_key)
        if pending:
            raise pending.pop(0)

        key = (pool_key, zero_for_one, amount_in)
        if key in self.quotes:
            return QuoterResult(amount_out=self.quotes[key])

        if self.default_rate is not None:
            num, denom = self.default_rate
            return QuoterResult(amount_out=amount_in * num // denom)

        raise PoolNotFound(VENUE, f"no quote for pool {pool_key.pool_id.hex()}")


class Web3UniswapV4Quoter:
    """Quoter that calls the V4Quoter contract via RPC."""

    def __init__(self, w3: Any, quoter_address: str = UNISWAP_V4_QUOTER):
        """Initialize quoter.

        Args:
            w3: AsyncWeb3 client (see dex_trader.amm.rpc.connect)
            quoter_address: V4Quoter contract address
        """
        self.w3 = w3
        self.quoter = w3.eth.contract(
            address=to_checksum_address(quoter_address),
            abi=V4_QUOTER_ABI,
        )

    async def quote_exact_input_single(
        self,
        pool_key: PoolKey,
        zero_for_one: bool,
        amount_in: int,
        hook_data: bytes = b"",
    ) -> QuoterResult:
        currency0, currency1, fee, tick_spacing, hooks = pool_key.as_tuple()
        params = (
            (
                to_checksum_address(currency0),
                to_checksum_address(currency1),
                fee,
                tick_spacing,
                to_checksum_address(hooks),
            ),
            zero_for_one,
            amount_in,
            hook_data,
        )
        try:
            result = await call_contract(
                self.quoter.functions.quoteExactInputSingle(params), venue=VENUE
            )
        except PoolNotFound as e:
            logger.warning(
                "v4_quote_exact_input_single_failed",
                pool_id=pool_key.pool_id.hex(),
                zero_for_one=zero_for_one,
                amount_in=amount_in,
                error=str(e),
            )
            raise

        # Result is (amountOut, gasEstimate)
        try:
            return QuoterResult(amount_out=int(result[0]), gas_estimate=int(result[1]))
        except (TypeError, ValueError, IndexError) as e:
            raise MalformedResponse(VENUE, str(e)) from e


__all__ = [
    "UniswapV4Quoter",
    "MockUniswapV4Quoter",
    "Web3UniswapV4Quoter",
    "V4_QUOTER_ABI",
]
