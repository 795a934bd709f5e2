"""Shared Permit2 and execute() handling for Universal Router venues."""

from __future__ import annotations

import time
from collections.abc import Callable, Sequence

from dex_trader.chain import ChainConfig
from dex_trader.config import DEFAULT_TRADING_CONFIG, TradingConfig
from dex_trader.constants import MAX_UINT160, ZERO_ADDRESS
from dex_trader.encoding.actions import encode_permit2_permit
from dex_trader.encoding.commands import RouterAction, build_command_sequence, encode_execute
from dex_trader.encoding.erc20 import PermitSingle
from dex_trader.execution import CallerContext, ChainReader, PermitSigner, TransactionRequest
from dex_trader.models.types import normalize_address
from dex_trader.routing.candidates import CandidateGenerator
from dex_trader.routing.optimizer import RouteOptimizer
from dex_trader.strategies.approval import plan_erc20_approval, plan_permit2_approval
from dex_trader.strategies.base import BaseStrategy


class UniversalRouterStrategy(BaseStrategy):
    """Base for venues executed through the Universal Router.

    Tokens reach the router through Permit2. The ERC20 allowance to Permit2
    is always an on-chain approval. The Permit2 allowance to the router is
    either an on-chain Permit2.approve (no signer) or a signed permit
    prepended to the swap as a PERMIT2_PERMIT command.
    """

    def __init__(
        self,
        chain: ChainConfig,
        reader: ChainReader,
        optimizer: RouteOptimizer,
        candidates: CandidateGenerator,
        config: TradingConfig = DEFAULT_TRADING_CONFIG,
        clock: Callable[[], float] = time.time,
        permit_signer: PermitSigner | None = None,
    ):
        super().__init__(chain, reader, optimizer, candidates, config, clock)
        self.permit_signer = permit_signer

    @property
    def approval_spender(self) -> str:
        return self.chain.permit2

    async def plan_approvals(
        self,
        context: CallerContext,
        token: str,
        amount: int,
    ) -> list[TransactionRequest]:
        transactions: list[TransactionRequest] = []
        erc20 = await plan_erc20_approval(
            self.reader,
            context.address,
            token,
            self.chain.permit2,
            amount,
            self.config.infinite_approval,
        )
        if erc20 is not None:
            transactions.append(erc20)

        if self.permit_signer is None:
            now = int(self.clock())
            permit2 = await plan_permit2_approval(
                self.reader,
                self.chain.permit2,
                context.address,
                token,
                self.chain.universal_router,
                amount,
                self.config.infinite_approval,
                now=now,
                expiration=now + self.config.permit_expiration_seconds,
            )
            if permit2 is not None:
                transactions.append(permit2)
        return transactions

    async def permit_actions(
        self,
        context: CallerContext,
        token: str,
        amount: int,
    ) -> list[RouterAction]:
        """PERMIT2_PERMIT command when a signer is configured and the allowance is short."""
        if self.permit_signer is None or normalize_address(token) == ZERO_ADDRESS:
            return []

        router = self.chain.universal_router
        allowed, expires_at, nonce = await self.reader.permit2_allowance(
            context.address, token, router
        )
        now = int(self.clock())
        if allowed >= amount and expires_at > now:
            return []

        permit = PermitSingle(
            token=token,
            amount=MAX_UINT160 if self.config.infinite_approval else amount,
            expiration=now + self.config.permit_expiration_seconds,
            nonce=nonce,
            spender=router,
            sig_deadline=now + self.config.deadline_seconds,
        )
        signature = await self.permit_signer.sign_permit(permit, self.chain)
        return [encode_permit2_permit(permit, signature)]

    def execute_transaction(
        self,
        actions: Sequence[RouterAction],
        deadline: int,
        value: int = 0,
    ) -> TransactionRequest:
        """Wrap router actions in an execute() call to the Universal Router."""
        sequence = build_command_sequence(actions, deadline)
        calldata = encode_execute(sequence, self.clock)
        return TransactionRequest.from_calldata(self.chain.universal_router, calldata, value)


__all__ = ["UniversalRouterStrategy"]
