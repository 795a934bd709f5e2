"""Packed multi-hop path encoding for concentrated-liquidity swaps.

A path is a tightly packed byte string of alternating 20-byte token
addresses and 3-byte fee tiers, starting and ending with a token:

    token0 | fee0 | token1 | fee1 | token2

Exact-output swaps walk the same pools in reverse, so their path starts
with the output token.
"""

from __future__ import annotations

from collections.abc import Sequence

from dex_trader.constants import MAX_UINT24
from dex_trader.models.types import normalize_address

ADDRESS_SIZE = 20
FEE_SIZE = 3
HOP_SIZE = ADDRESS_SIZE + FEE_SIZE


def encode_path(tokens: Sequence[str], fees: Sequence[int]) -> bytes:
    """Encode tokens and fees as a packed path.

    Args:
        tokens: Token addresses in swap order (at least two)
        fees: One fee tier per hop, len(tokens) - 1 entries

    Raises:
        ValueError: On length mismatch, invalid address or fee outside uint24
    """
    if len(tokens) < 2:
        raise ValueError("Path needs at least two tokens")
    if len(fees) != len(tokens) - 1:
        raise ValueError(
            f"Path of {len(tokens)} tokens needs {len(tokens) - 1} fees, got {len(fees)}"
        )

    encoded = bytearray()
    for i, token in enumerate(tokens):
        encoded += bytes.fromhex(normalize_address(token, validate=True)[2:])
        if i < len(fees):
            fee = fees[i]
            if not 0 <= fee <= MAX_UINT24:
                raise ValueError(f"Fee {fee} does not fit in uint24")
            encoded += fee.to_bytes(FEE_SIZE, "big")
    return bytes(encoded)


def decode_path(path: bytes) -> tuple[tuple[str, ...], tuple[int, ...]]:
    """Decode a packed path into (tokens, fees).

    Raises:
        ValueError: If the byte length is not 20 + 23 * hops with hops >= 1
    """
    if len(path) < ADDRESS_SIZE + HOP_SIZE or (len(path) - ADDRESS_SIZE) % HOP_SIZE:
        raise ValueError(f"Invalid path length: {len(path)} bytes")

    tokens: list[str] = []
    fees: list[int] = []
    offset = 0
    while True:
        tokens.append("0x" + path[offset : offset + ADDRESS_SIZE].hex())
        offset += ADDRESS_SIZE
        if offset == len(path):
            break
        fees.append(int.from_bytes(path[offset : offset + FEE_SIZE], "big"))
        offset += FEE_SIZE
    return tuple(tokens), tuple(fees)


def encode_reversed_path(tokens: Sequence[str], fees: Sequence[int]) -> bytes:
    """Encode a path for exact-output swaps (output token first)."""
    return encode_path(list(reversed(tokens)), list(reversed(fees)))


__all__ = ["encode_path", "decode_path", "encode_reversed_path"]
