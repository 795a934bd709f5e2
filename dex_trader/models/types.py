"""Shared type definitions and amount helpers.

These types are used across request, confirmation and chain models.
"""

from decimal import ROUND_DOWN, Decimal, InvalidOperation
from typing import Annotated, Any

from pydantic import BeforeValidator, Field

# Maximum uint256 value
UINT256_MAX = 2**256 - 1


def normalize_address(address: str, *, validate: bool = False) -> str:
    """Normalize an Ethereum address to lowercase.

    Args:
        address: An Ethereum address (with or without 0x prefix)
        validate: If True, raises ValueError for invalid addresses.

    Returns:
        Lowercase address with 0x prefix

    Raises:
        ValueError: If validate=True and address is not a valid Ethereum address
    """
    addr = address.lower()
    if not addr.startswith("0x"):
        addr = "0x" + addr

    if validate and not is_valid_address(addr):
        raise ValueError(f"Invalid address: {address}")

    return addr


def is_valid_address(address: str) -> bool:
    """Check if a string is a valid Ethereum address (0x + 40 hex chars)."""
    if not isinstance(address, str):
        return False
    if not address.startswith("0x"):
        return False
    if len(address) != 42:
        return False
    try:
        int(address, 16)
        return True
    except ValueError:
        return False


def _validate_address(value: Any) -> str:
    if not isinstance(value, str):
        raise ValueError(f"Address must be a string, got {type(value).__name__}")
    return normalize_address(value, validate=True)


def validate_decimal_string(value: Any) -> str:
    """Validate a non-negative decimal amount given as string, int or Decimal.

    Human-entered amounts ("1.5", "0.000001") are kept as strings so that no
    precision is lost before they are scaled to raw token units.

    Returns:
        The amount as a normalized decimal string

    Raises:
        ValueError: If the value is not a finite, non-negative decimal
    """
    if isinstance(value, bool) or not isinstance(value, (str, int, Decimal)):
        raise ValueError(f"Amount must be a decimal string, got {type(value).__name__}")

    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation as err:
        raise ValueError(f"Amount must be a decimal string: '{value}'") from err

    if not amount.is_finite():
        raise ValueError(f"Amount must be finite: '{value}'")
    if amount < 0:
        raise ValueError(f"Amount cannot be negative: '{value}'")

    return str(amount)


# Ethereum address, normalized to lowercase
Address = Annotated[str, BeforeValidator(_validate_address)]

# Non-negative decimal amount in human units (e.g. "1.5" ETH)
DecimalString = Annotated[
    str,
    BeforeValidator(validate_decimal_string),
    Field(description="Non-negative decimal amount as string"),
]


def to_raw_amount(amount: Decimal | str, decimals: int) -> int:
    """Scale a human amount to raw token units, rounding down.

    Example:
        to_raw_amount("1.5", 6) == 1_500_000
    """
    scaled = Decimal(amount) * (Decimal(10) ** decimals)
    return int(scaled.to_integral_value(rounding=ROUND_DOWN))


def from_raw_amount(raw: int, decimals: int) -> Decimal:
    """Convert raw token units to a human Decimal amount."""
    return Decimal(raw) / (Decimal(10) ** decimals)


def format_amount(raw: int, decimals: int) -> str:
    """Format raw token units for display, without trailing zeros."""
    value = from_raw_amount(raw, decimals)
    if value == value.to_integral_value():
        return str(value.quantize(Decimal(1)))
    return format(value.normalize(), "f")
