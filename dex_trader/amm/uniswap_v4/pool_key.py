"""PoolKey identifying a UniswapV4 pool."""

from __future__ import annotations

from dataclasses import dataclass

from eth_abi import encode  # type: ignore[attr-defined]
from eth_utils import keccak

from dex_trader.amm.ticks import tick_spacing_for
from dex_trader.constants import ZERO_ADDRESS
from dex_trader.models.types import normalize_address


@dataclass(frozen=True)
class PoolKey:
    """Identity of a v4 pool inside the singleton PoolManager.

    currency0 is always the numerically lower address; the zero address
    stands for native ETH. Two keys are equal only when all five fields
    match, so the same pair with a different hook is a different pool.

    Use PoolKey.for_pair() to build a key from an unordered token pair.
    """

    currency0: str
    currency1: str
    fee: int
    tick_spacing: int
    hooks: str = ZERO_ADDRESS

    def __post_init__(self) -> None:
        currency0 = normalize_address(self.currency0, validate=True)
        currency1 = normalize_address(self.currency1, validate=True)
        if currency0 == currency1:
            raise ValueError(f"PoolKey currencies must differ: {currency0}")
        if int(currency0, 16) > int(currency1, 16):
            raise ValueError("PoolKey currencies must be sorted (currency0 < currency1)")
        object.__setattr__(self, "currency0", currency0)
        object.__setattr__(self, "currency1", currency1)
        object.__setattr__(self, "hooks", normalize_address(self.hooks, validate=True))

    @classmethod
    def for_pair(
        cls,
        token_a: str,
        token_b: str,
        fee: int,
        hooks: str = ZERO_ADDRESS,
    ) -> PoolKey:
        """Build a key with canonical currency ordering.

        Tick spacing comes from the fee tier table.

        Raises:
            UnknownFeeTier: If the fee has no tick spacing mapping
            ValueError: If both tokens are the same
        """
        a = normalize_address(token_a, validate=True)
        b = normalize_address(token_b, validate=True)
        currency0, currency1 = (a, b) if int(a, 16) < int(b, 16) else (b, a)
        return cls(
            currency0=currency0,
            currency1=currency1,
            fee=fee,
            tick_spacing=tick_spacing_for(fee),
            hooks=hooks,
        )

    def zero_for_one(self, token_in: str) -> bool:
        """True when token_in is currency0."""
        token = normalize_address(token_in)
        if token == self.currency0:
            return True
        if token == self.currency1:
            return False
        raise ValueError(f"Token {token_in} not in pool key")

    def get_token_out(self, token_in: str) -> str:
        return self.currency1 if self.zero_for_one(token_in) else self.currency0

    def as_tuple(self) -> tuple[str, str, int, int, str]:
        """ABI tuple (currency0, currency1, fee, tickSpacing, hooks)."""
        return (self.currency0, self.currency1, self.fee, self.tick_spacing, self.hooks)

    @property
    def pool_id(self) -> bytes:
        """keccak256(abi.encode(key)), the id used by PoolManager and StateView."""
        return keccak(
            encode(["address", "address", "uint24", "int24", "address"], list(self.as_tuple()))
        )


__all__ = ["PoolKey"]
