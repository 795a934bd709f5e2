"""Test helpers module for shared test utilities.

- constants: Token addresses, pool addresses and the fixed test clock
- factories: Pool, registry, strategy and request factory functions
- fakes: In-memory chain reader, execution layer, signer and adapter
"""

from tests.helpers.constants import (
    CALLER,
    DAI,
    ETH,
    NOW,
    TOKEN_DECIMALS,
    UNI,
    USDC,
    USDT,
    WBTC,
    WETH,
)
from tests.helpers.factories import (
    fixed_clock,
    make_buy_request,
    make_pool_key,
    make_registry,
    make_sell_request,
    make_strategy,
    make_v2_pool,
    make_v3_pool,
)
from tests.helpers.fakes import (
    SIGNATURE,
    FakeChainReader,
    FakeExecutionLayer,
    RecordingSleep,
    StaticAdapter,
    StubPermitSigner,
)

__all__ = [
    # Constants
    "WETH",
    "USDC",
    "DAI",
    "USDT",
    "WBTC",
    "UNI",
    "ETH",
    "CALLER",
    "NOW",
    "TOKEN_DECIMALS",
    # Factories
    "fixed_clock",
    "make_buy_request",
    "make_sell_request",
    "make_pool_key",
    "make_registry",
    "make_strategy",
    "make_v2_pool",
    "make_v3_pool",
    # Fakes
    "SIGNATURE",
    "FakeChainReader",
    "FakeExecutionLayer",
    "RecordingSleep",
    "StaticAdapter",
    "StubPermitSigner",
]
