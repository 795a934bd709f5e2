"""ERC20 and Permit2 approval calldata.

Venues that pull tokens through Permit2 need two allowances: the ERC20
allowance from the owner to Permit2, and a Permit2 allowance from the owner
to the router. The second is either set on-chain with Permit2.approve or
granted per swap with a signed PermitSingle (PERMIT2_PERMIT command).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from eth_abi import encode  # type: ignore[attr-defined]
from eth_utils import function_signature_to_4byte_selector

from dex_trader.constants import MAX_UINT48, MAX_UINT160
from dex_trader.models.types import normalize_address

APPROVE_SELECTOR = function_signature_to_4byte_selector("approve(address,uint256)")
PERMIT2_APPROVE_SELECTOR = function_signature_to_4byte_selector(
    "approve(address,address,uint160,uint48)"
)

ERC20_ABI = [
    {
        "name": "allowance",
        "type": "function",
        "stateMutability": "view",
        "inputs": [
            {"name": "owner", "type": "address"},
            {"name": "spender", "type": "address"},
        ],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "name": "decimals",
        "type": "function",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint8"}],
    },
]

PERMIT2_ABI = [
    {
        "name": "allowance",
        "type": "function",
        "stateMutability": "view",
        "inputs": [
            {"name": "user", "type": "address"},
            {"name": "token", "type": "address"},
            {"name": "spender", "type": "address"},
        ],
        "outputs": [
            {"name": "amount", "type": "uint160"},
            {"name": "expiration", "type": "uint48"},
            {"name": "nonce", "type": "uint48"},
        ],
    },
]


def encode_approve(spender: str, amount: int) -> bytes:
    """ERC20 approve(spender, amount) calldata."""
    return APPROVE_SELECTOR + encode(
        ["address", "uint256"], [normalize_address(spender, validate=True), amount]
    )


def encode_permit2_approve(token: str, spender: str, amount: int, expiration: int) -> bytes:
    """Permit2 approve(token, spender, uint160 amount, uint48 expiration) calldata.

    Raises:
        ValueError: If amount or expiration overflow their Permit2 widths
    """
    if not 0 <= amount <= MAX_UINT160:
        raise ValueError(f"Permit2 amount does not fit in uint160: {amount}")
    if not 0 <= expiration <= MAX_UINT48:
        raise ValueError(f"Permit2 expiration does not fit in uint48: {expiration}")
    return PERMIT2_APPROVE_SELECTOR + encode(
        ["address", "address", "uint160", "uint48"],
        [
            normalize_address(token, validate=True),
            normalize_address(spender, validate=True),
            amount,
            expiration,
        ],
    )


@dataclass(frozen=True)
class PermitSingle:
    """Permit2 single-token allowance grant, signed off-chain by the owner."""

    token: str
    amount: int
    expiration: int
    nonce: int
    spender: str
    sig_deadline: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "token", normalize_address(self.token, validate=True))
        object.__setattr__(self, "spender", normalize_address(self.spender, validate=True))
        if not 0 <= self.amount <= MAX_UINT160:
            raise ValueError(f"Permit amount does not fit in uint160: {self.amount}")
        if not 0 <= self.expiration <= MAX_UINT48 or not 0 <= self.nonce <= MAX_UINT48:
            raise ValueError("Permit expiration and nonce must fit in uint48")

    def as_tuple(self) -> tuple[tuple[str, int, int, int], str, int]:
        """ABI tuple ((token, amount, expiration, nonce), spender, sigDeadline)."""
        return (
            (self.token, self.amount, self.expiration, self.nonce),
            self.spender,
            self.sig_deadline,
        )

    def typed_data(self, chain_id: int, permit2: str) -> dict[str, Any]:
        """EIP-712 typed data for signing this permit."""
        return {
            "types": {
                "EIP712Domain": [
                    {"name": "name", "type": "string"},
                    {"name": "chainId", "type": "uint256"},
                    {"name": "verifyingContract", "type": "address"},
                ],
                "PermitDetails": [
                    {"name": "token", "type": "address"},
                    {"name": "amount", "type": "uint160"},
                    {"name": "expiration", "type": "uint48"},
                    {"name": "nonce", "type": "uint48"},
                ],
                "PermitSingle": [
                    {"name": "details", "type": "PermitDetails"},
                    {"name": "spender", "type": "address"},
                    {"name": "sigDeadline", "type": "uint256"},
                ],
            },
            "primaryType": "PermitSingle",
            "domain": {
                "name": "Permit2",
                "chainId": chain_id,
                "verifyingContract": normalize_address(permit2),
            },
            "message": {
                "details": {
                    "token": self.token,
                    "amount": self.amount,
                    "expiration": self.expiration,
                    "nonce": self.nonce,
                },
                "spender": self.spender,
                "sigDeadline": self.sig_deadline,
            },
        }


__all__ = [
    "APPROVE_SELECTOR",
    "PERMIT2_APPROVE_SELECTOR",
    "ERC20_ABI",
    "PERMIT2_ABI",
    "encode_approve",
    "encode_permit2_approve",
    "PermitSingle",
]
