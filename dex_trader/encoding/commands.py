"""Universal Router command sequences and execute() calldata.

The router takes a byte string of one-byte opcodes and a parallel array of
ABI-encoded inputs, executed in order:

    execute(bytes commands, bytes[] inputs, uint256 deadline)

Setting the high bit of an opcode lets that command revert without
reverting the whole transaction.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import IntEnum

from eth_abi import encode  # type: ignore[attr-defined]
from eth_utils import function_signature_to_4byte_selector

EXECUTE_SIGNATURE = "execute(bytes,bytes[],uint256)"
EXECUTE_SELECTOR = function_signature_to_4byte_selector(EXECUTE_SIGNATURE)

ALLOW_REVERT_FLAG = 0x80
COMMAND_TYPE_MASK = 0x3F


class CommandType(IntEnum):
    """Universal Router opcodes."""

    V3_SWAP_EXACT_IN = 0x00
    V3_SWAP_EXACT_OUT = 0x01
    PERMIT2_TRANSFER_FROM = 0x02
    PERMIT2_PERMIT_BATCH = 0x03
    SWEEP = 0x04
    TRANSFER = 0x05
    PAY_PORTION = 0x06
    V2_SWAP_EXACT_IN = 0x08
    V2_SWAP_EXACT_OUT = 0x09
    PERMIT2_PERMIT = 0x0A
    WRAP_ETH = 0x0B
    UNWRAP_WETH = 0x0C
    PERMIT2_TRANSFER_FROM_BATCH = 0x0D
    V4_SWAP = 0x10


@dataclass(frozen=True)
class RouterAction:
    """One router command with its ABI-encoded input."""

    command: CommandType
    input: bytes
    allow_revert: bool = False

    @property
    def opcode(self) -> int:
        return int(self.command) | (ALLOW_REVERT_FLAG if self.allow_revert else 0)


@dataclass(frozen=True)
class CommandSequence:
    """Commands, inputs and deadline for a single execute() call.

    The i-th command byte consumes the i-th input, so both always have the
    same length, and a sequence is never empty.
    """

    commands: bytes
    inputs: tuple[bytes, ...]
    deadline: int

    def __post_init__(self) -> None:
        if not self.commands:
            raise ValueError("Command sequence cannot be empty")
        if len(self.commands) != len(self.inputs):
            raise ValueError(
                f"{len(self.commands)} commands but {len(self.inputs)} inputs"
            )

    @property
    def command_types(self) -> tuple[CommandType, ...]:
        return tuple(CommandType(byte & COMMAND_TYPE_MASK) for byte in self.commands)


def deadline_from_now(seconds: int, clock: Callable[[], float] = time.time) -> int:
    """Unix timestamp `seconds` after the current time."""
    return int(clock()) + seconds


def build_command_sequence(actions: Sequence[RouterAction], deadline: int) -> CommandSequence:
    """Concatenate actions in call order into a CommandSequence."""
    return CommandSequence(
        commands=bytes(action.opcode for action in actions),
        inputs=tuple(action.input for action in actions),
        deadline=deadline,
    )


def encode_execute(
    sequence: CommandSequence,
    clock: Callable[[], float] = time.time,
) -> bytes:
    """Encode execute(bytes,bytes[],uint256) calldata.

    Raises:
        ValueError: If the deadline is not in the future
    """
    now = int(clock())
    if sequence.deadline <= now:
        raise ValueError(f"Deadline {sequence.deadline} is not after current time {now}")

    args = encode(
        ["bytes", "bytes[]", "uint256"],
        [sequence.commands, list(sequence.inputs), sequence.deadline],
    )
    return EXECUTE_SELECTOR + args


__all__ = [
    "EXECUTE_SELECTOR",
    "ALLOW_REVERT_FLAG",
    "CommandType",
    "RouterAction",
    "CommandSequence",
    "deadline_from_now",
    "build_command_sequence",
    "encode_execute",
]
