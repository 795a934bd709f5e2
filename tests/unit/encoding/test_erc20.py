"""Tests for ERC20 and Permit2 approval calldata."""

import pytest
from eth_abi import decode  # type: ignore[attr-defined]

from dex_trader.constants import MAX_UINT48, MAX_UINT160, MAX_UINT256, PERMIT2
from dex_trader.encoding.erc20 import (
    APPROVE_SELECTOR,
    PERMIT2_APPROVE_SELECTOR,
    PermitSingle,
    encode_approve,
    encode_permit2_approve,
)
from tests.helpers import NOW, USDC, WETH

ROUTER = "0x" + "66" * 20


class TestApprove:
    """Tests for ERC20 approve calldata."""

    def test_selector(self):
        assert APPROVE_SELECTOR.hex() == "095ea7b3"

    def test_encodes_spender_and_amount(self):
        data = encode_approve(PERMIT2, MAX_UINT256)

        assert data[:4] == APPROVE_SELECTOR
        spender, amount = decode(["address", "uint256"], data[4:])
        assert spender.lower() == PERMIT2
        assert amount == MAX_UINT256

    def test_invalid_spender_rejected(self):
        with pytest.raises(ValueError, match="Invalid address"):
            encode_approve("0xnotanaddress", 1)


class TestPermit2Approve:
    """Tests for Permit2.approve calldata."""

    def test_selector(self):
        assert PERMIT2_APPROVE_SELECTOR.hex() == "87517c45"

    def test_encodes_fields(self):
        data = encode_permit2_approve(USDC, ROUTER, 10**6, NOW + 3600)

        token, spender, amount, expiration = decode(
            ["address", "address", "uint160", "uint48"], data[4:]
        )
        assert token.lower() == USDC
        assert spender.lower() == ROUTER
        assert amount == 10**6
        assert expiration == NOW + 3600

    @pytest.mark.parametrize(
        ("amount", "expiration", "message"),
        [
            (MAX_UINT160 + 1, 0, "uint160"),
            (1, MAX_UINT48 + 1, "uint48"),
            (-1, 0, "uint160"),
        ],
    )
    def test_overflow_rejected(self, amount, expiration, message):
        with pytest.raises(ValueError, match=message):
            encode_permit2_approve(USDC, ROUTER, amount, expiration)


class TestPermitSingle:
    """Tests for the signed Permit2 allowance grant."""

    def _permit(self, **overrides):
        fields = {
            "token": USDC.upper().replace("0X", "0x"),
            "amount": MAX_UINT160,
            "expiration": NOW + 30 * 86400,
            "nonce": 3,
            "spender": ROUTER,
            "sig_deadline": NOW + 1800,
        }
        fields.update(overrides)
        return PermitSingle(**fields)

    def test_addresses_normalized(self):
        assert self._permit().token == USDC

    def test_as_tuple(self):
        assert self._permit().as_tuple() == (
            (USDC, MAX_UINT160, NOW + 30 * 86400, 3),
            ROUTER,
            NOW + 1800,
        )

    def test_amount_overflow_rejected(self):
        with pytest.raises(ValueError, match="uint160"):
            self._permit(amount=MAX_UINT160 + 1)

    def test_nonce_overflow_rejected(self):
        with pytest.raises(ValueError, match="uint48"):
            self._permit(nonce=MAX_UINT48 + 1)

    def test_invalid_token_rejected(self):
        with pytest.raises(ValueError):
            self._permit(token=WETH[:-2])

    def test_typed_data(self):
        typed = self._permit().typed_data(1, PERMIT2)

        assert typed["primaryType"] == "PermitSingle"
        assert typed["domain"] == {
            "name": "Permit2",
            "chainId": 1,
            "verifyingContract": PERMIT2,
        }
        assert typed["message"]["details"]["nonce"] == 3
        assert typed["message"]["spender"] == ROUTER
        assert [field["name"] for field in typed["types"]["PermitSingle"]] == [
            "details",
            "spender",
            "sigDeadline",
        ]
