"""Tests for ERC20 and Permit2 approval planning."""

import pytest
from eth_abi import decode  # type: ignore[attr-defined]

from dex_trader.amm.base import VenueKind
from dex_trader.chain import MAINNET
from dex_trader.config import TradingConfig
from dex_trader.constants import MAX_UINT160, MAX_UINT256, PERMIT2
from dex_trader.encoding.erc20 import APPROVE_SELECTOR, PERMIT2_APPROVE_SELECTOR
from dex_trader.errors import ApprovalFailed, VenueUnreachable
from dex_trader.strategies.approval import plan_erc20_approval, plan_permit2_approval
from tests.helpers import (
    CALLER,
    DAI,
    ETH,
    NOW,
    FakeChainReader,
    StaticAdapter,
    make_strategy,
)

ROUTER = MAINNET.universal_router
THIRTY_DAYS = 30 * 24 * 60 * 60


async def _execute_plan(plan, execution):
    for tx in plan.transactions:
        await execution.wait_for_receipt(await execution.submit(tx))


class TestPlanErc20Approval:
    """Tests for the ERC20 allowance check."""

    @pytest.mark.asyncio
    async def test_missing_allowance_infinite(self, reader):
        tx = await plan_erc20_approval(reader, CALLER, DAI, PERMIT2, 10**21, infinite=True)

        assert tx.to == DAI
        assert tx.calldata[:4] == APPROVE_SELECTOR
        spender, amount = decode(["address", "uint256"], tx.calldata[4:])
        assert spender.lower() == PERMIT2
        assert amount == MAX_UINT256

    @pytest.mark.asyncio
    async def test_missing_allowance_exact(self, reader):
        tx = await plan_erc20_approval(reader, CALLER, DAI, PERMIT2, 10**21, infinite=False)

        _, amount = decode(["address", "uint256"], tx.calldata[4:])
        assert amount == 10**21

    @pytest.mark.asyncio
    async def test_sufficient_allowance(self):
        reader = FakeChainReader(allowances={(DAI, CALLER, PERMIT2): 10**21})

        assert await plan_erc20_approval(reader, CALLER, DAI, PERMIT2, 10**21, True) is None

    @pytest.mark.asyncio
    async def test_short_allowance(self):
        reader = FakeChainReader(allowances={(DAI, CALLER, PERMIT2): 10**21 - 1})

        assert await plan_erc20_approval(reader, CALLER, DAI, PERMIT2, 10**21, True) is not None


class TestPlanPermit2Approval:
    """Tests for the Permit2 allowance check."""

    async def _plan(self, reader, amount=10**21, infinite=True):
        return await plan_permit2_approval(
            reader,
            PERMIT2,
            CALLER,
            DAI,
            ROUTER,
            amount,
            infinite,
            now=NOW,
            expiration=NOW + THIRTY_DAYS,
        )

    @pytest.mark.asyncio
    async def test_missing_allowance(self, reader):
        tx = await self._plan(reader)

        assert tx.to == PERMIT2
        assert tx.calldata[:4] == PERMIT2_APPROVE_SELECTOR
        token, spender, amount, expiration = decode(
            ["address", "address", "uint160", "uint48"], tx.calldata[4:]
        )
        assert token.lower() == DAI
        assert spender.lower() == ROUTER
        assert amount == MAX_UINT160
        assert expiration == NOW + THIRTY_DAYS

    @pytest.mark.asyncio
    async def test_valid_allowance(self):
        reader = FakeChainReader(
            permit2_allowances={(CALLER, DAI, ROUTER): (MAX_UINT160, NOW + 1, 0)}
        )
        assert await self._plan(reader) is None

    @pytest.mark.asyncio
    async def test_expired_allowance(self):
        reader = FakeChainReader(
            permit2_allowances={(CALLER, DAI, ROUTER): (MAX_UINT160, NOW, 0)}
        )
        assert await self._plan(reader) is not None

    @pytest.mark.asyncio
    async def test_exact_amount(self, reader):
        tx = await self._plan(reader, amount=5, infinite=False)

        _, _, amount, _ = decode(["address", "address", "uint160", "uint48"], tx.calldata[4:])
        assert amount == 5


class TestEnsureApproval:
    """Tests for strategy-level approval plans and their idempotence."""

    @pytest.mark.asyncio
    async def test_eth_needs_no_approval(self, v2_adapter, reader, caller):
        strategy = make_strategy(VenueKind.UNISWAP_V2, v2_adapter, reader)

        plan = await strategy.ensure_approval(caller, ETH, 10**18)

        assert plan.is_noop
        assert reader.calls == []

    @pytest.mark.asyncio
    async def test_v2_approves_router_once(self, v2_adapter, reader, execution, caller):
        strategy = make_strategy(VenueKind.UNISWAP_V2, v2_adapter, reader)

        first = await strategy.ensure_approval(caller, DAI, 10**21)
        await _execute_plan(first, execution)
        second = await strategy.ensure_approval(caller, DAI, 10**21)

        assert len(first.transactions) == 1
        assert first.spender == MAINNET.v2_router
        spender, _ = decode(["address", "uint256"], first.transactions[0].calldata[4:])
        assert spender.lower() == MAINNET.v2_router
        assert second.is_noop

    @pytest.mark.asyncio
    async def test_universal_router_needs_erc20_and_permit2(
        self, v3_adapter, reader, execution, caller
    ):
        strategy = make_strategy(VenueKind.UNISWAP_V3, v3_adapter, reader)

        first = await strategy.ensure_approval(caller, DAI, 10**21)
        await _execute_plan(first, execution)
        second = await strategy.ensure_approval(caller, DAI, 10**21)

        assert [tx.to for tx in first.transactions] == [DAI, PERMIT2]
        assert first.spender == PERMIT2
        assert reader.permit2_allowances[(CALLER, DAI, ROUTER)] == (
            MAX_UINT160,
            NOW + THIRTY_DAYS,
            0,
        )
        assert second.is_noop

    @pytest.mark.asyncio
    async def test_signer_skips_onchain_permit2_approval(
        self, v3_adapter, reader, caller, permit_signer
    ):
        strategy = make_strategy(
            VenueKind.UNISWAP_V3, v3_adapter, reader, permit_signer=permit_signer
        )

        plan = await strategy.ensure_approval(caller, DAI, 10**21)

        assert [tx.to for tx in plan.transactions] == [DAI]

    @pytest.mark.asyncio
    async def test_exact_approval_config(self, reader, caller):
        adapter = StaticAdapter(VenueKind.UNISWAP_V2, default=1)
        strategy = make_strategy(
            VenueKind.UNISWAP_V2, adapter, reader, config=TradingConfig(infinite_approval=False)
        )

        plan = await strategy.ensure_approval(caller, DAI, 123)

        _, amount = decode(["address", "uint256"], plan.transactions[0].calldata[4:])
        assert amount == 123

    @pytest.mark.asyncio
    async def test_allowance_read_failure(self, v2_adapter, caller):
        reader = FakeChainReader(failures=[VenueUnreachable("erc20", "rpc down")])
        strategy = make_strategy(VenueKind.UNISWAP_V2, v2_adapter, reader)

        with pytest.raises(ApprovalFailed, match="rpc down"):
            await strategy.ensure_approval(caller, DAI, 1)
