"""Approval planning for ERC20 and Permit2 allowances.

Planning only reads allowances and returns the transactions still needed;
submitting them is the trade coordinator's job. A plan with no transactions
means the allowance is already sufficient, so running ensure_approval twice
yields a no-op the second time.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from dex_trader.constants import MAX_UINT160, MAX_UINT256
from dex_trader.encoding.erc20 import encode_approve, encode_permit2_approve
from dex_trader.execution import ChainReader, TransactionRequest
from dex_trader.models.types import normalize_address

logger = structlog.get_logger()


@dataclass(frozen=True)
class ApprovalPlan:
    """Transactions required before a swap can pull token."""

    token: str
    spender: str
    transactions: tuple[TransactionRequest, ...] = ()

    @property
    def is_noop(self) -> bool:
        return not self.transactions


async def plan_erc20_approval(
    reader: ChainReader,
    owner: str,
    token: str,
    spender: str,
    amount: int,
    infinite: bool,
) -> TransactionRequest | None:
    """approve() transaction if the ERC20 allowance is below amount.

    Args:
        infinite: Approve the maximum uint256 instead of exactly amount
    """
    current = await reader.allowance(token, owner, spender)
    if current >= amount:
        return None

    approve_amount = MAX_UINT256 if infinite else amount
    logger.info(
        "erc20_approval_needed",
        token=normalize_address(token)[-8:],
        spender=normalize_address(spender)[-8:],
        current=current,
        amount=approve_amount,
    )
    return TransactionRequest.from_calldata(token, encode_approve(spender, approve_amount))


async def plan_permit2_approval(
    reader: ChainReader,
    permit2: str,
    owner: str,
    token: str,
    spender: str,
    amount: int,
    infinite: bool,
    now: int,
    expiration: int,
) -> TransactionRequest | None:
    """Permit2.approve() transaction if the Permit2 allowance is short or expired.

    Args:
        permit2: Permit2 contract address
        now: Current unix time
        expiration: Expiration for a new allowance
    """
    allowed, expires_at, _ = await reader.permit2_allowance(owner, token, spender)
    if allowed >= amount and expires_at > now:
        return None

    approve_amount = MAX_UINT160 if infinite else amount
    logger.info(
        "permit2_approval_needed",
        token=normalize_address(token)[-8:],
        spender=normalize_address(spender)[-8:],
        current=allowed,
        expires_at=expires_at,
        amount=approve_amount,
    )
    return TransactionRequest.from_calldata(
        permit2, encode_permit2_approve(token, spender, approve_amount, expiration)
    )


__all__ = ["ApprovalPlan", "plan_erc20_approval", "plan_permit2_approval"]
