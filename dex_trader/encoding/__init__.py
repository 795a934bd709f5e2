"""Calldata encoding: packed paths, router commands, v4 actions and approvals."""

from dex_trader.encoding.commands import (
    CommandSequence,
    CommandType,
    RouterAction,
    build_command_sequence,
    deadline_from_now,
    encode_execute,
)
from dex_trader.encoding.path import decode_path, encode_path, encode_reversed_path

__all__ = [
    "CommandSequence",
    "CommandType",
    "RouterAction",
    "build_command_sequence",
    "deadline_from_now",
    "decode_path",
    "encode_execute",
    "encode_path",
    "encode_reversed_path",
]
