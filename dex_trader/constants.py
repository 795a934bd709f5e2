"""Protocol constants for the trading engine.

Centralizes well-known addresses, integer bounds and router conventions.
"""

from dex_trader.models.types import is_valid_address


def _validate_address(name: str, address: str) -> str:
    """Validate and return an address.

    Raises:
        ValueError: If the address is invalid
    """
    if not is_valid_address(address):
        raise ValueError(f"Invalid {name} address: {address} (must be 0x + 40 hex chars)")
    return address


# Integer bounds used by ERC20, Permit2 and the router ABIs
MAX_UINT256 = 2**256 - 1
MAX_UINT160 = 2**160 - 1
MAX_UINT128 = 2**128 - 1
MAX_UINT48 = 2**48 - 1
MAX_UINT24 = 2**24 - 1

# Native currency marker (also the "no hooks" address for v4 pool keys)
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# Universal Router recipient placeholders
MSG_SENDER = "0x0000000000000000000000000000000000000001"
ADDRESS_THIS = "0x0000000000000000000000000000000000000002"

# Default swap deadline window (seconds from build time)
DEFAULT_DEADLINE_SECONDS = 1200

# Well-known token addresses on mainnet (lowercase for consistency)
# All addresses are validated at import time to catch typos early
WETH = _validate_address("WETH", "0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2")
USDC = _validate_address("USDC", "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48")
USDT = _validate_address("USDT", "0xdac17f958d2ee523a2206206994597c13d831ec7")
DAI = _validate_address("DAI", "0x6b175474e89094c44da98b954eedeac495271d0f")
WBTC = _validate_address("WBTC", "0x2260fac5e5542a773aa44fbcfedf7c193bc2c599")

# Mainnet contract addresses
PERMIT2 = _validate_address("Permit2", "0x000000000022d473030f116ddee9f6b43ac78ba3")
UNIVERSAL_ROUTER = _validate_address(
    "UniversalRouter", "0x66a9893cc07d91d95644aedd05d03f95e1dba8af"
)
UNISWAP_V2_ROUTER = _validate_address(
    "UniswapV2Router02", "0x7a250d5630b4cf539739df2c5dacb4c659f2488d"
)
UNISWAP_V3_QUOTER_V2 = _validate_address(
    "QuoterV2", "0x61ffe014ba17989e743c5f6cb21bf9697530b21e"
)
UNISWAP_V4_QUOTER = _validate_address("V4Quoter", "0x52f0e24d1c21c8a0cb1e5a5dd6198556bd9e1203")
UNISWAP_V4_STATE_VIEW = _validate_address(
    "StateView", "0x7ffe42c4a5deea5b0fec41c94c136cf115597227"
)
UNISWAP_V4_POOL_MANAGER = _validate_address(
    "PoolManager", "0x000000000004444c5dc75cb358380d2e3de08a90"
)
