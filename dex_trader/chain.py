"""Per-chain configuration: token and contract addresses.

The engine never hardcodes a network inside strategies; everything chain
specific is read from a ChainConfig obtained through a ChainRegistry.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol

from pydantic import BaseModel, ConfigDict

from dex_trader import constants
from dex_trader.errors import UnsupportedChain
from dex_trader.models.types import Address


class ChainConfig(BaseModel):
    """Addresses and parameters for one network."""

    model_config = ConfigDict(frozen=True)

    name: str
    chain_id: int
    native_symbol: str = "ETH"
    native_decimals: int = 18
    wrapped_native: Address
    usdc: Address
    usdc_decimals: int = 6
    # Tokens allowed as the middle of a two-hop route
    intermediaries: tuple[Address, ...] = ()
    universal_router: Address
    permit2: Address = constants.PERMIT2
    v2_router: Address
    v3_quoter: Address
    v4_quoter: Address
    v4_state_view: Address


class ChainRegistry(Protocol):
    """Resolves a chain name or id to its configuration."""

    def get(self, chain: str | int) -> ChainConfig:
        """Return the configuration.

        Raises:
            UnsupportedChain: If the chain is not configured
        """
        ...


class StaticChainRegistry:
    """Chain configurations held in memory, looked up by name or chain id."""

    def __init__(self, chains: Iterable[ChainConfig] = ()):
        self._by_name: dict[str, ChainConfig] = {}
        self._by_id: dict[int, ChainConfig] = {}
        for chain in chains:
            self.register(chain)

    def register(self, chain: ChainConfig) -> None:
        self._by_name[chain.name.lower()] = chain
        self._by_id[chain.chain_id] = chain

    def get(self, chain: str | int) -> ChainConfig:
        if isinstance(chain, int):
            config = self._by_id.get(chain)
        elif chain.isdigit():
            config = self._by_id.get(int(chain))
        else:
            config = self._by_name.get(chain.lower())
        if config is None:
            raise UnsupportedChain(str(chain))
        return config

    @property
    def chains(self) -> list[ChainConfig]:
        return list(self._by_id.values())


MAINNET = ChainConfig(
    name="ethereum",
    chain_id=1,
    wrapped_native=constants.WETH,
    usdc=constants.USDC,
    intermediaries=(
        constants.WETH,
        constants.USDC,
        constants.USDT,
        constants.DAI,
        constants.WBTC,
    ),
    universal_router=constants.UNIVERSAL_ROUTER,
    v2_router=constants.UNISWAP_V2_ROUTER,
    v3_quoter=constants.UNISWAP_V3_QUOTER_V2,
    v4_quoter=constants.UNISWAP_V4_QUOTER,
    v4_state_view=constants.UNISWAP_V4_STATE_VIEW,
)


def default_chain_registry() -> StaticChainRegistry:
    """Registry with the networks shipped by default (Ethereum mainnet)."""
    return StaticChainRegistry([MAINNET])


__all__ = [
    "ChainConfig",
    "ChainRegistry",
    "StaticChainRegistry",
    "MAINNET",
    "default_chain_registry",
]
