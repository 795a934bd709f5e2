"""Route optimizer: quote every candidate concurrently and pick the best.

Each candidate is evaluated independently:
1. Thin concentrated-liquidity pools are skipped.
2. The venue adapter quotes the path.
3. Transient venue errors (VenueUnreachable, timeouts) are retried with
   exponential backoff up to max_retries times.
4. Permanent venue errors (PoolNotFound, MalformedResponse) drop the
   candidate with a warning.

The winner has the greatest output; ties go to fewer hops, then to the
lower aggregate fee. When nothing survives the result is Route.empty().
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import TypeVar

import structlog

from dex_trader.amm.base import QuoteAdapter, VenueKind
from dex_trader.config import DEFAULT_TRADING_CONFIG, TradingConfig
from dex_trader.errors import VenueError, VenueUnreachable
from dex_trader.routing.types import Candidate, Exclusion, Quote, Route, SearchResult

logger = structlog.get_logger()

T = TypeVar("T")


class RouteOptimizer:
    """Selects the best route among candidates across venue adapters."""

    def __init__(
        self,
        adapters: Mapping[VenueKind, QuoteAdapter],
        config: TradingConfig = DEFAULT_TRADING_CONFIG,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initialize optimizer.

        Args:
            adapters: One quote adapter per venue family
            config: Retry, timeout and liquidity thresholds
            sleep: Backoff sleep, injectable for tests
        """
        self.adapters = dict(adapters)
        self.config = config
        self._sleep = sleep

    async def search(
        self,
        token_in: str,
        token_out: str,
        amount_in: int,
        candidates: Sequence[Candidate],
    ) -> SearchResult:
        """Quote all candidates concurrently.

        Returns:
            SearchResult with every successful quote and every exclusion
        """
        if amount_in <= 0:
            raise ValueError(f"amount_in must be positive: {amount_in}")

        outcomes = await asyncio.gather(
            *(self._evaluate(candidate, amount_in) for candidate in candidates)
        )

        result = SearchResult()
        for outcome in outcomes:
            if isinstance(outcome, Quote):
                result.quotes.append(outcome)
            else:
                result.excluded.append(outcome)

        logger.debug(
            "route_search_complete",
            token_in=token_in[-8:],
            token_out=token_out[-8:],
            amount_in=amount_in,
            candidates=len(candidates),
            quoted=len(result.quotes),
            excluded=len(result.excluded),
        )
        return result

    async def best_quote(
        self,
        token_in: str,
        token_out: str,
        amount_in: int,
        candidates: Sequence[Candidate],
    ) -> Quote | None:
        """Best quote among candidates, or None if none succeeded."""
        result = await self.search(token_in, token_out, amount_in, candidates)
        return result.best

    async def best_route(
        self,
        token_in: str,
        token_out: str,
        amount_in: int,
        candidates: Sequence[Candidate],
    ) -> Route:
        """Best route among candidates, or Route.empty() if none succeeded."""
        quote = await self.best_quote(token_in, token_out, amount_in, candidates)
        if quote is None:
            return Route.empty()
        return quote.route

    async def _evaluate(self, candidate: Candidate, amount_in: int) -> Quote | Exclusion:
        adapter = self.adapters.get(candidate.venue)
        if adapter is None:
            logger.warning("venue_adapter_missing", venue=candidate.venue.value)
            return Exclusion(candidate, "no adapter")

        try:
            sufficient = await self._with_retry(
                candidate,
                lambda: adapter.has_sufficient_liquidity(
                    candidate.pools, candidate.path, self.config.min_active_liquidity
                ),
            )
            if not sufficient:
                logger.info("candidate_excluded_thin_liquidity", candidate=candidate.describe())
                return Exclusion(candidate, "thin liquidity")

            venue_quote = await self._with_retry(
                candidate,
                lambda: adapter.quote(candidate.pools, candidate.path, amount_in),
            )
        except VenueError as e:
            logger.warning(
                "candidate_excluded",
                candidate=candidate.describe(),
                error_type=type(e).__name__,
                error=str(e),
            )
            return Exclusion(candidate, f"{type(e).__name__}: {e}")

        return Quote(
            amount_in=amount_in,
            amount_out=venue_quote.amount_out,
            price_impact=venue_quote.price_impact,
            route=candidate.to_route(),
            gas_estimate=venue_quote.gas_estimate,
        )

    async def _with_retry(
        self,
        candidate: Candidate,
        operation: Callable[[], Awaitable[T]],
    ) -> T:
        """Run a venue operation, retrying transient failures with backoff."""
        attempt = 0
        while True:
            try:
                return await asyncio.wait_for(operation(), self.config.quote_timeout_seconds)
            except asyncio.TimeoutError as e:
                error: VenueError = VenueUnreachable(candidate.venue.value, "quote timed out")
                error.__cause__ = e
            except VenueError as e:
                if not e.transient:
                    raise
                error = e

            if attempt >= self.config.max_retries:
                raise error

            delay = self.config.retry_backoff_seconds * (2**attempt)
            attempt += 1
            logger.debug(
                "venue_retry",
                candidate=candidate.describe(),
                attempt=attempt,
                max_retries=self.config.max_retries,
                delay=delay,
                error=str(error),
            )
            await self._sleep(delay)


__all__ = ["RouteOptimizer"]
