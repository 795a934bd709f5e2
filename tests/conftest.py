"""Pytest configuration and fixtures."""

import pytest

from dex_trader.amm.uniswap_v2 import MockReserveSource, UniswapV2Adapter
from dex_trader.amm.uniswap_v3 import MockUniswapV3Quoter, UniswapV3Adapter
from dex_trader.amm.uniswap_v4 import MockUniswapV4Quoter, UniswapV4Adapter
from dex_trader.config import TradingConfig
from dex_trader.execution import CallerContext
from dex_trader.pools.registry import PoolRegistry
from tests.helpers import (
    CALLER,
    FakeChainReader,
    FakeExecutionLayer,
    RecordingSleep,
    StubPermitSigner,
    make_registry,
)
from tests.helpers.constants import V2_WETH_DAI, V2_WETH_USDC

# 3000 USDC per ETH, and the inverse for the other direction
ETH_USDC_RATE = (3000 * 10**6, 10**18)


@pytest.fixture
def config() -> TradingConfig:
    """Default trading configuration."""
    return TradingConfig()


@pytest.fixture
def registry() -> PoolRegistry:
    """Registry with pools on every venue family."""
    return make_registry()


@pytest.fixture
def reader() -> FakeChainReader:
    """Chain reader with no allowances set."""
    return FakeChainReader()


@pytest.fixture
def execution(reader: FakeChainReader) -> FakeExecutionLayer:
    """Execution layer that applies approvals to the reader."""
    return FakeExecutionLayer(reader=reader)


@pytest.fixture
def permit_signer() -> StubPermitSigner:
    return StubPermitSigner()


@pytest.fixture
def caller() -> CallerContext:
    """Caller connected to mainnet."""
    return CallerContext(address=CALLER, chain_id=1)


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def v2_adapter() -> UniswapV2Adapter:
    """V2 adapter over reserves priced at 3000 USDC and 3000 DAI per WETH.

    Pair tokens are sorted by address: USDC < WETH and DAI < WETH.
    """
    reserves = MockReserveSource(
        reserves={
            V2_WETH_USDC: (30_000_000 * 10**6, 10_000 * 10**18),
            V2_WETH_DAI: (30_000_000 * 10**18, 10_000 * 10**18),
        }
    )
    return UniswapV2Adapter(reserves)


@pytest.fixture
def v3_quoter() -> MockUniswapV3Quoter:
    return MockUniswapV3Quoter(default_rate=ETH_USDC_RATE)


@pytest.fixture
def v3_adapter(v3_quoter: MockUniswapV3Quoter) -> UniswapV3Adapter:
    return UniswapV3Adapter(v3_quoter)


@pytest.fixture
def v4_quoter() -> MockUniswapV4Quoter:
    return MockUniswapV4Quoter(default_rate=ETH_USDC_RATE)


@pytest.fixture
def v4_adapter(v4_quoter: MockUniswapV4Quoter) -> UniswapV4Adapter:
    return UniswapV4Adapter(v4_quoter)
