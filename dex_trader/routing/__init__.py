"""Routing: candidate generation, route types and the optimizer."""

from dex_trader.routing.candidates import CandidateGenerator
from dex_trader.routing.optimizer import RouteOptimizer
from dex_trader.routing.types import Candidate, Exclusion, Quote, Route, SearchResult

__all__ = [
    "Candidate",
    "CandidateGenerator",
    "Exclusion",
    "Quote",
    "Route",
    "RouteOptimizer",
    "SearchResult",
]
