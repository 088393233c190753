"""Integer fixed-point helpers and decimal scale conversion.

Every value in the engine is a non-negative integer bounded by 256 bits, the
way the on-chain vault stores it. Results are checked against that bound and
narrowing conversions always floor.
"""
from __future__ import annotations

from decimal import Decimal, InvalidOperation

from .errors import AccountingInvariantViolated, ArithmeticOverflow

WAD = 10**18
BPS = 10_000
UINT256_MAX = 2**256 - 1
# Swap fee tiers are expressed in hundredths of a basis point (500 = 0.05%).
FEE_DENOMINATOR = 1_000_000


def checked(value: int) -> int:
    """Return ``value`` if it is a valid uint256, otherwise raise."""
    if value < 0:
        raise AccountingInvariantViolated(f"negative value {value}")
    if value > UINT256_MAX:
        raise ArithmeticOverflow(f"value {value} exceeds uint256")
    return value


def checked_sub(a: int, b: int) -> int:
    """Subtract ``b`` from ``a``; underflow is an accounting failure."""
    if b > a:
        raise AccountingInvariantViolated(f"underflow: {a} - {b}")
    return a - b


def mul_div(a: int, b: int, denominator: int) -> int:
    """Compute ``a * b // denominator`` with the product overflow-checked."""
    if denominator == 0:
        raise ArithmeticOverflow("division by zero")
    return checked(checked(a * b) // denominator)


def to_canonical_scale(value: int, source_decimals: int, target_decimals: int) -> int:
    """Rescale an integer between decimal precisions.

    Widening multiplies exactly; narrowing floors toward zero so precision
    is never fabricated.

    Examples:
        to_canonical_scale(2000_00000000, 8, 18) -> 2000 * 10**18
        to_canonical_scale(1_999_999, 6, 0) -> 1
    """
    checked(value)
    if source_decimals < 0 or target_decimals < 0:
        raise ValueError("decimals must be non-negative")
    if target_decimals >= source_decimals:
        return checked(value * 10 ** (target_decimals - source_decimals))
    return value // 10 ** (source_decimals - target_decimals)


def parse_fixed(raw: str | int | float, decimals: int = 18) -> int:
    """Parse a human decimal string (``"2.0"``) into fixed point, flooring."""
    try:
        scaled = Decimal(str(raw)) * (Decimal(10) ** decimals)
    except InvalidOperation as e:
        raise ValueError(f"not a decimal number: {raw!r}") from e
    return checked(int(scaled))


def format_fixed(value: int, decimals: int = 18, places: int = 4) -> str:
    """Render a fixed-point integer for logs and reports."""
    if value == UINT256_MAX:
        return "inf"
    return f"{Decimal(value) / (Decimal(10) ** decimals):.{places}f}"
