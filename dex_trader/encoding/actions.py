"""Per-command input encoders for the Universal Router and v4 actions.

Each function encodes exactly one router command or v4 action and has no
side effects. Router-level encoders return a RouterAction ready for
build_command_sequence(); v4 encoders return a V4Step, and a list of steps
becomes a single V4_SWAP command through encode_v4_swap().
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import IntEnum
from typing import TYPE_CHECKING

from eth_abi import encode  # type: ignore[attr-defined]

from dex_trader.constants import MAX_UINT128, MAX_UINT160
from dex_trader.encoding.commands import CommandType, RouterAction
from dex_trader.encoding.erc20 import PermitSingle
from dex_trader.models.types import normalize_address

if TYPE_CHECKING:
    from dex_trader.amm.uniswap_v4 import PoolKey

POOL_KEY_TYPE = "(address,address,uint24,int24,address)"
EXACT_INPUT_SINGLE_TYPE = f"({POOL_KEY_TYPE},bool,uint128,uint128,bytes)"
PERMIT_SINGLE_TYPE = "((address,uint160,uint48,uint48),address,uint256)"


class V4Action(IntEnum):
    """v4 router action codes used inside a V4_SWAP command."""

    SWAP_EXACT_IN_SINGLE = 0x06
    SWAP_EXACT_IN = 0x07
    SWAP_EXACT_OUT_SINGLE = 0x08
    SWAP_EXACT_OUT = 0x09
    SETTLE = 0x0B
    SETTLE_ALL = 0x0C
    SETTLE_PAIR = 0x0D
    TAKE = 0x0E
    TAKE_ALL = 0x0F
    TAKE_PORTION = 0x10
    TAKE_PAIR = 0x11


@dataclass(frozen=True)
class V4Step:
    """One v4 action with its ABI-encoded parameters."""

    action: V4Action
    params: bytes


def _address(value: str) -> str:
    return normalize_address(value, validate=True)


def _check_uint128(name: str, value: int) -> None:
    if not 0 <= value <= MAX_UINT128:
        raise ValueError(f"{name} does not fit in uint128: {value}")


# =============================================================================
# v4 actions
# =============================================================================


def encode_v4_swap_exact_in_single(
    pool_key: PoolKey,
    zero_for_one: bool,
    amount_in: int,
    amount_out_minimum: int,
    hook_data: bytes = b"",
) -> V4Step:
    """SWAP_EXACT_IN_SINGLE with ExactInputSingleParams."""
    _check_uint128("amount_in", amount_in)
    _check_uint128("amount_out_minimum", amount_out_minimum)
    params = encode(
        [EXACT_INPUT_SINGLE_TYPE],
        [(pool_key.as_tuple(), zero_for_one, amount_in, amount_out_minimum, hook_data)],
    )
    return V4Step(V4Action.SWAP_EXACT_IN_SINGLE, params)


def encode_settle_all(currency: str, max_amount: int) -> V4Step:
    """SETTLE_ALL: pay the full open debt in currency, up to max_amount."""
    params = encode(["address", "uint256"], [_address(currency), max_amount])
    return V4Step(V4Action.SETTLE_ALL, params)


def encode_take_all(currency: str, min_amount: int) -> V4Step:
    """TAKE_ALL: receive the full open credit in currency, at least min_amount."""
    params = encode(["address", "uint256"], [_address(currency), min_amount])
    return V4Step(V4Action.TAKE_ALL, params)


def encode_settle(currency: str, amount: int, payer_is_user: bool) -> V4Step:
    """SETTLE a specific amount, paid by the user or by the router's balance."""
    return V4Step(
        V4Action.SETTLE,
        encode(["address", "uint256", "bool"], [_address(currency), amount, payer_is_user]),
    )


def encode_take(currency: str, recipient: str, amount: int) -> V4Step:
    """TAKE a specific amount of currency to recipient."""
    return V4Step(
        V4Action.TAKE,
        encode(
            ["address", "address", "uint256"],
            [_address(currency), _address(recipient), amount],
        ),
    )


def encode_v4_swap_input(steps: Sequence[V4Step]) -> bytes:
    """abi.encode(bytes actions, bytes[] params) for a V4_SWAP command."""
    if not steps:
        raise ValueError("V4 swap needs at least one action")
    actions = bytes(step.action for step in steps)
    return encode(["bytes", "bytes[]"], [actions, [step.params for step in steps]])


def encode_v4_swap(steps: Sequence[V4Step]) -> RouterAction:
    """V4_SWAP router command wrapping a list of v4 actions."""
    return RouterAction(CommandType.V4_SWAP, encode_v4_swap_input(steps))


# =============================================================================
# Router commands
# =============================================================================


def encode_v3_swap_exact_in(
    recipient: str,
    amount_in: int,
    amount_out_min: int,
    path: bytes,
    payer_is_user: bool,
) -> RouterAction:
    """V3_SWAP_EXACT_IN along a packed path."""
    return RouterAction(
        CommandType.V3_SWAP_EXACT_IN,
        encode(
            ["address", "uint256", "uint256", "bytes", "bool"],
            [_address(recipient), amount_in, amount_out_min, path, payer_is_user],
        ),
    )


def encode_v2_swap_exact_in(
    recipient: str,
    amount_in: int,
    amount_out_min: int,
    path: Sequence[str],
    payer_is_user: bool,
) -> RouterAction:
    """V2_SWAP_EXACT_IN along a list of token addresses."""
    return RouterAction(
        CommandType.V2_SWAP_EXACT_IN,
        encode(
            ["address", "uint256", "uint256", "address[]", "bool"],
            [
                _address(recipient),
                amount_in,
                amount_out_min,
                [_address(token) for token in path],
                payer_is_user,
            ],
        ),
    )


def encode_wrap_eth(recipient: str, amount_min: int) -> RouterAction:
    """WRAP_ETH: wrap the router's ETH balance into WETH for recipient."""
    return RouterAction(
        CommandType.WRAP_ETH, encode(["address", "uint256"], [_address(recipient), amount_min])
    )


def encode_unwrap_weth(recipient: str, amount_min: int) -> RouterAction:
    """UNWRAP_WETH: unwrap the router's WETH balance and send ETH to recipient."""
    return RouterAction(
        CommandType.UNWRAP_WETH, encode(["address", "uint256"], [_address(recipient), amount_min])
    )


def encode_permit2_permit(permit: PermitSingle, signature: bytes) -> RouterAction:
    """PERMIT2_PERMIT: submit a signed PermitSingle for the router."""
    return RouterAction(
        CommandType.PERMIT2_PERMIT,
        encode([PERMIT_SINGLE_TYPE, "bytes"], [permit.as_tuple(), signature]),
    )


def encode_permit2_transfer_from(token: str, recipient: str, amount: int) -> RouterAction:
    """PERMIT2_TRANSFER_FROM: pull amount of token from the caller via Permit2."""
    if not 0 <= amount <= MAX_UINT160:
        raise ValueError(f"Permit2 transfer amount does not fit in uint160: {amount}")
    return RouterAction(
        CommandType.PERMIT2_TRANSFER_FROM,
        encode(["address", "address", "uint160"], [_address(token), _address(recipient), amount]),
    )


__all__ = [
    "V4Action",
    "V4Step",
    "encode_v4_swap_exact_in_single",
    "encode_settle_all",
    "encode_take_all",
    "encode_settle",
    "encode_take",
    "encode_v4_swap_input",
    "encode_v4_swap",
    "encode_v3_swap_exact_in",
    "encode_v2_swap_exact_in",
    "encode_wrap_eth",
    "encode_unwrap_weth",
    "encode_permit2_permit",
    "encode_permit2_transfer_from",
]
