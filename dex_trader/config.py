"""Trading configuration."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, fields
from decimal import ROUND_DOWN, Decimal

from dex_trader.constants import DEFAULT_DEADLINE_SECONDS

ENV_PREFIX = "DEX_TRADER_"


@dataclass(frozen=True)
class TradingConfig:
    """Centralized configuration for quoting, approvals and execution.

    A single instance is threaded through the optimizer, every strategy and
    the trade coordinator, so tests can run with different settings side by
    side.

    Attributes:
        slippage_tolerance: Fraction of the quoted output the caller may lose
            (default: 0.02 = 2%)
        max_price_impact_percent: Trades whose projected impact is above this
            percentage are rejected before submission (default: 5)
        max_retries: Retries for transient venue errors and approval
            submission (default: 3)
        retry_backoff_seconds: Base delay between retries, doubled per attempt
        quote_timeout_seconds: Per-candidate quote timeout
        deadline_seconds: Swap deadline, counted from build time (default: 1200)
        infinite_approval: Approve the maximum amount once instead of the
            exact trade amount (default: True)
        price_impact_probe_fraction: Fraction of the trade size used as a
            probe quote when a venue reports no post-swap price
        min_active_liquidity: Concentrated-liquidity pools below this active
            liquidity (now or after the next tick crossing) are skipped
        permit_expiration_seconds: Lifetime of Permit2 allowances
    """

    slippage_tolerance: Decimal = Decimal("0.02")
    max_price_impact_percent: Decimal = Decimal("5")
    max_retries: int = 3
    retry_backoff_seconds: float = 0.25
    quote_timeout_seconds: float = 10.0
    deadline_seconds: int = DEFAULT_DEADLINE_SECONDS
    infinite_approval: bool = True
    price_impact_probe_fraction: Decimal = Decimal("0.000001")
    min_active_liquidity: int = 1
    permit_expiration_seconds: int = 30 * 24 * 60 * 60

    def __post_init__(self) -> None:
        if not Decimal(0) <= self.slippage_tolerance < Decimal(1):
            raise ValueError(f"slippage_tolerance must be in [0, 1): {self.slippage_tolerance}")
        if self.max_price_impact_percent < 0:
            raise ValueError(
                f"max_price_impact_percent cannot be negative: {self.max_price_impact_percent}"
            )
        if self.max_retries < 0:
            raise ValueError(f"max_retries cannot be negative: {self.max_retries}")
        if self.deadline_seconds <= 0:
            raise ValueError(f"deadline_seconds must be positive: {self.deadline_seconds}")
        if not Decimal(0) < self.price_impact_probe_fraction <= Decimal(1):
            raise ValueError(
                f"price_impact_probe_fraction must be in (0, 1]: {self.price_impact_probe_fraction}"
            )

    def minimum_output(self, amount_out: int) -> int:
        """Apply slippage tolerance to a quoted output amount (rounded down)."""
        scaled = Decimal(amount_out) * (Decimal(1) - self.slippage_tolerance)
        return int(scaled.to_integral_value(rounding=ROUND_DOWN))

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> TradingConfig:
        """Build a config from DEX_TRADER_* environment variables.

        Unset variables keep their defaults. For example
        DEX_TRADER_SLIPPAGE_TOLERANCE=0.01 overrides slippage_tolerance.
        """
        env = os.environ if environ is None else environ
        overrides: dict[str, object] = {}
        for field in fields(cls):
            raw = env.get(ENV_PREFIX + field.name.upper())
            if raw is None:
                continue
            kind = type(getattr(DEFAULT_TRADING_CONFIG, field.name))
            overrides[field.name] = _parse_value(field.name, raw, kind)
        return cls(**overrides)  # type: ignore[arg-type]


def _parse_value(name: str, raw: str, kind: type) -> object:
    try:
        if kind is bool:
            lowered = raw.strip().lower()
            if lowered in ("1", "true", "yes", "on"):
                return True
            if lowered in ("0", "false", "no", "off"):
                return False
            raise ValueError(raw)
        return kind(raw.strip())
    except (ValueError, ArithmeticError) as err:
        raise ValueError(f"Invalid value for {ENV_PREFIX}{name.upper()}: {raw!r}") from err


# Default configuration instance
DEFAULT_TRADING_CONFIG = TradingConfig()


__all__ = ["TradingConfig", "DEFAULT_TRADING_CONFIG"]
