"""Tests for Universal Router command sequences and execute() calldata."""

import pytest
from eth_abi import decode  # type: ignore[attr-defined]

from dex_trader.encoding.commands import (
    EXECUTE_SELECTOR,
    CommandSequence,
    CommandType,
    RouterAction,
    build_command_sequence,
    deadline_from_now,
    encode_execute,
)
from tests.helpers import NOW, fixed_clock


class TestCommandSequence:
    """Tests for the commands/inputs pairing."""

    def test_build_preserves_order(self):
        actions = [
            RouterAction(CommandType.WRAP_ETH, b"\x01"),
            RouterAction(CommandType.V3_SWAP_EXACT_IN, b"\x02"),
            RouterAction(CommandType.UNWRAP_WETH, b"\x03"),
        ]

        sequence = build_command_sequence(actions, NOW + 60)

        assert sequence.commands == bytes([0x0B, 0x00, 0x0C])
        assert sequence.inputs == (b"\x01", b"\x02", b"\x03")
        assert len(sequence.commands) == len(sequence.inputs)
        assert sequence.command_types == (
            CommandType.WRAP_ETH,
            CommandType.V3_SWAP_EXACT_IN,
            CommandType.UNWRAP_WETH,
        )

    def test_allow_revert_sets_high_bit(self):
        action = RouterAction(CommandType.PERMIT2_PERMIT, b"", allow_revert=True)
        sequence = build_command_sequence([action], NOW + 60)

        assert sequence.commands == bytes([0x8A])
        assert sequence.command_types == (CommandType.PERMIT2_PERMIT,)

    def test_empty_sequence_rejected(self):
        with pytest.raises(ValueError, match="empty"):
            build_command_sequence([], NOW + 60)

    def test_length_mismatch_rejected(self):
        with pytest.raises(ValueError, match="inputs"):
            CommandSequence(commands=b"\x00\x0c", inputs=(b"",), deadline=NOW + 60)


class TestEncodeExecute:
    """Tests for execute(bytes,bytes[],uint256) calldata."""

    def test_selector(self):
        assert EXECUTE_SELECTOR.hex() == "3593564c"

    def test_encodes_commands_inputs_deadline(self):
        sequence = build_command_sequence(
            [
                RouterAction(CommandType.WRAP_ETH, b"\xaa" * 64),
                RouterAction(CommandType.V3_SWAP_EXACT_IN, b"\xbb" * 32),
            ],
            NOW + 1200,
        )

        calldata = encode_execute(sequence, fixed_clock())

        assert calldata[:4] == EXECUTE_SELECTOR
        commands, inputs, deadline = decode(["bytes", "bytes[]", "uint256"], calldata[4:])
        assert commands == bytes([0x0B, 0x00])
        assert list(inputs) == [b"\xaa" * 64, b"\xbb" * 32]
        assert deadline == NOW + 1200

    def test_past_deadline_rejected(self):
        sequence = build_command_sequence([RouterAction(CommandType.SWEEP, b"")], NOW)
        with pytest.raises(ValueError, match="Deadline"):
            encode_execute(sequence, fixed_clock())

    def test_deadline_from_now(self):
        assert deadline_from_now(1200, fixed_clock()) == NOW + 1200
