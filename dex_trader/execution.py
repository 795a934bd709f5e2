"""Interfaces to the execution layer and on-chain reads.

The engine produces TransactionRequests; signing, sending and waiting for
receipts belong to an external ExecutionLayer. Allowances and token decimals
are read through a ChainReader, and Permit2 signatures come from an optional
PermitSigner. Web3-backed readers are provided for convenience.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol

from eth_utils import to_checksum_address

from dex_trader.amm.rpc import call_contract
from dex_trader.constants import PERMIT2, ZERO_ADDRESS
from dex_trader.encoding.erc20 import ERC20_ABI, PERMIT2_ABI, PermitSingle
from dex_trader.errors import NetworkMismatch
from dex_trader.models.types import normalize_address

if TYPE_CHECKING:
    from dex_trader.chain import ChainConfig


@dataclass(frozen=True)
class TransactionRequest:
    """An unsigned transaction: target, calldata (0x hex) and ETH value in wei.

    TransactionRequest.empty() is the explicit "nothing to send" result for
    requests whose shape is inconsistent.
    """

    to: str
    data: str
    value: int = 0

    @classmethod
    def empty(cls) -> TransactionRequest:
        return cls(to="", data="0x", value=0)

    @classmethod
    def from_calldata(cls, to: str, calldata: bytes, value: int = 0) -> TransactionRequest:
        return cls(to=normalize_address(to), data="0x" + calldata.hex(), value=value)

    @property
    def is_empty(self) -> bool:
        return not self.to

    @property
    def calldata(self) -> bytes:
        return bytes.fromhex(self.data[2:])

    def as_dict(self) -> dict[str, Any]:
        """Plain dict in the shape web3 transaction builders accept."""
        return {"to": to_checksum_address(self.to), "data": self.data, "value": self.value}


@dataclass(frozen=True)
class ExecutionResult:
    """Outcome of a mined transaction, as reported by the execution layer."""

    success: bool
    transaction_hash: str
    block_number: int | None = None
    gas_used: int = 0
    effective_gas_price: int = 0
    # Raw output amount received, when the execution layer can determine it
    amount_out: int | None = None
    error: str | None = None

    @property
    def gas_cost(self) -> int:
        """Gas cost in wei."""
        return self.gas_used * self.effective_gas_price


@dataclass(frozen=True)
class CallerContext:
    """Who is trading and which network their signer is connected to."""

    address: str
    chain_id: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "address", normalize_address(self.address, validate=True))


class ExecutionLayer(Protocol):
    """Signs, sends and tracks transactions."""

    async def submit(self, tx: TransactionRequest) -> str:
        """Sign and broadcast; return the transaction hash."""
        ...

    async def wait_for_receipt(self, transaction_hash: str) -> ExecutionResult:
        """Wait until the transaction is mined and report its outcome."""
        ...


class NetworkValidator(Protocol):
    """Checks that the caller is connected to the requested network."""

    async def validate(self, context: CallerContext, chain: ChainConfig) -> None:
        """Raise NetworkMismatch if the caller is on another network."""
        ...


class ChainIdValidator:
    """Compares the caller's connected chain id with the chain configuration."""

    async def validate(self, context: CallerContext, chain: ChainConfig) -> None:
        if context.chain_id != chain.chain_id:
            raise NetworkMismatch(expected=chain.chain_id, actual=context.chain_id)


class ChainReader(Protocol):
    """Read-only on-chain lookups needed to build trades."""

    async def decimals(self, token: str) -> int:
        ...

    async def allowance(self, token: str, owner: str, spender: str) -> int:
        ...

    async def permit2_allowance(self, owner: str, token: str, spender: str) -> tuple[int, int, int]:
        """Return (amount, expiration, nonce) of the owner's Permit2 allowance."""
        ...


class PermitSigner(Protocol):
    """Signs Permit2 PermitSingle messages on behalf of the caller."""

    async def sign_permit(self, permit: PermitSingle, chain: ChainConfig) -> bytes:
        ...


class Web3ChainReader:
    """ChainReader backed by an AsyncWeb3 client."""

    def __init__(self, w3: Any, permit2: str = PERMIT2):
        """Initialize with an AsyncWeb3 client (see dex_trader.amm.rpc.connect)."""
        self.w3 = w3
        self.permit2 = w3.eth.contract(address=to_checksum_address(permit2), abi=PERMIT2_ABI)
        self._decimals: dict[str, int] = {}

    def _erc20(self, token: str) -> Any:
        return self.w3.eth.contract(address=to_checksum_address(token), abi=ERC20_ABI)

    async def decimals(self, token: str) -> int:
        token = normalize_address(token)
        if token == ZERO_ADDRESS:
            return 18
        if token not in self._decimals:
            result = await call_contract(self._erc20(token).functions.decimals(), venue="erc20")
            self._decimals[token] = int(result)
        return self._decimals[token]

    async def allowance(self, token: str, owner: str, spender: str) -> int:
        call = self._erc20(token).functions.allowance(
            to_checksum_address(owner), to_checksum_address(spender)
        )
        return int(await call_contract(call, venue="erc20"))

    async def permit2_allowance(self, owner: str, token: str, spender: str) -> tuple[int, int, int]:
        call = self.permit2.functions.allowance(
            to_checksum_address(owner), to_checksum_address(token), to_checksum_address(spender)
        )
        amount, expiration, nonce = await call_contract(call, venue="permit2")
        return int(amount), int(expiration), int(nonce)


__all__ = [
    "TransactionRequest",
    "ExecutionResult",
    "CallerContext",
    "ExecutionLayer",
    "NetworkValidator",
    "ChainIdValidator",
    "ChainReader",
    "PermitSigner",
    "Web3ChainReader",
]
