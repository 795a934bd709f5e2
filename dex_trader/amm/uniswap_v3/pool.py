"""UniswapV3Pool descriptor for concentrated liquidity pools."""

from __future__ import annotations

from dataclasses import dataclass

from dex_trader.amm.ticks import tick_spacing_for
from dex_trader.models.types import normalize_address


@dataclass(frozen=True)
class UniswapV3Pool:
    """Identifies a UniswapV3 pool.

    Only the immutable identity is stored; price, tick and liquidity are
    read through a PoolStateSource when needed. Construction fails with
    UnknownFeeTier for fees without a tick spacing.
    """

    address: str
    token0: str
    token1: str
    fee: int  # Fee in Uniswap units (e.g., 3000 for 0.3%)

    def __post_init__(self) -> None:
        object.__setattr__(self, "address", normalize_address(self.address))
        object.__setattr__(self, "token0", normalize_address(self.token0))
        object.__setattr__(self, "token1", normalize_address(self.token1))
        if self.token0 == self.token1:
            raise ValueError(f"Pool {self.address} has identical tokens")
        tick_spacing_for(self.fee)

    @property
    def tick_spacing(self) -> int:
        """Get tick spacing for this pool's fee tier."""
        return tick_spacing_for(self.fee)

    def zero_for_one(self, token_in: str) -> bool:
        """True when token_in is token0 (price moves down)."""
        token_in_norm = normalize_address(token_in)
        if token_in_norm == self.token0:
            return True
        if token_in_norm == self.token1:
            return False
        raise ValueError(f"Token {token_in} not in pool {self.address}")

    def get_token_out(self, token_in: str) -> str:
        """Get the output token for a given input token."""
        return self.token1 if self.zero_for_one(token_in) else self.token0


__all__ = ["UniswapV3Pool"]
