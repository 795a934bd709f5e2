"""Helpers for RPC-backed venue sources.

web3 is an optional dependency, imported only when an RPC-backed source is
created. Contract call failures are translated into the venue error
taxonomy here so every source classifies them the same way.
"""

from __future__ import annotations

import asyncio
from typing import Any

from dex_trader.errors import MalformedResponse, PoolNotFound, VenueUnreachable


def connect(rpc_url: str) -> Any:
    """Create an AsyncWeb3 client for an HTTP RPC endpoint.

    Raises:
        ImportError: If web3 is not installed
    """
    try:
        from web3 import AsyncHTTPProvider, AsyncWeb3
    except ImportError as e:
        raise ImportError(
            "web3 package required for RPC-backed sources. "
            "Install with: pip install 'dex-trader[web3]'"
        ) from e

    return AsyncWeb3(AsyncHTTPProvider(rpc_url))


async def call_contract(call: Any, *, venue: str) -> Any:
    """Await a prepared contract function call and classify failures.

    Args:
        call: A bound contract function, e.g. contract.functions.slot0()
        venue: Venue label used in error messages

    Raises:
        PoolNotFound: The call reverted (missing pool, no liquidity)
        MalformedResponse: The return data could not be decoded
        VenueUnreachable: Transport failure or timeout
    """
    from web3.exceptions import BadFunctionCallOutput, ContractLogicError, Web3Exception

    try:
        return await call.call()
    except ContractLogicError as e:
        raise PoolNotFound(venue, str(e)) from e
    except BadFunctionCallOutput as e:
        raise MalformedResponse(venue, str(e)) from e
    except (OSError, asyncio.TimeoutError, Web3Exception) as e:
        raise VenueUnreachable(venue, str(e)) from e


__all__ = ["connect", "call_contract"]
