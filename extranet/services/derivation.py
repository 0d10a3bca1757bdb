"""
Derived price computation.

Pure function, no I/O. Given the STD price of a night and a rule snapshot,
returns the derived nightly price:

1. ABSOLUTE: derived = std + value        (value may be negative)
2. PERCENT:  derived = std * (1 + value/100)  (e.g. -10 for a 10% discount)
3. derived is rounded to 2 decimals (ROUND_HALF_UP)

A negative result, or one too large for the price column, is rejected
with InvalidDerivation; callers must not persist anything in that case.
"""

from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Optional, Union

from ..models.pricing import RuleKind, MAX_PRICE
from .pricing_errors import InvalidDerivation

PRICE_QUANT = Decimal("0.01")

Number = Union[Decimal, int, float, str]


def _to_decimal(value: Number, field: str) -> Decimal:
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise InvalidDerivation(f"{field} is not a number: {value!r}")
    if not result.is_finite():
        raise InvalidDerivation(f"{field} is not finite: {value!r}")
    return result


def derive_price(base: Optional[Number], kind: Optional[str], value: Optional[Number]) -> Decimal:
    """
    Apply a rate plan rule to a STD price.

    Args:
        base: STD price for the night (required)
        kind: ABSOLUTE or PERCENT (case-insensitive)
        value: Signed rule value; None is treated as 0

    Returns:
        Derived price, quantized to cents

    Raises:
        InvalidDerivation: missing base, unknown kind, or out-of-range result
    """
    if base is None:
        raise InvalidDerivation("STD price is required")

    std = _to_decimal(base, "base")
    delta = _to_decimal(value if value is not None else 0, "value")
    normalized_kind = str(kind or "").strip().upper()

    if normalized_kind == RuleKind.ABSOLUTE.value:
        derived = std + delta
    elif normalized_kind == RuleKind.PERCENT.value:
        derived = std * (1 + delta / 100)
    else:
        raise InvalidDerivation(f"unknown rule kind: {kind!r}")

    if derived < 0:
        raise InvalidDerivation(
            f"{normalized_kind} {delta} on {std} gives a negative price ({derived})"
        )

    derived = derived.quantize(PRICE_QUANT, rounding=ROUND_HALF_UP)
    if derived > MAX_PRICE:
        raise InvalidDerivation(f"derived price {derived} exceeds the maximum of {MAX_PRICE}")

    return derived


def apply_rule(base: Optional[Number], rule) -> Decimal:
    """Convenience wrapper taking anything with .kind and .value (e.g. RuleSnapshot)"""
    return derive_price(base, rule.kind, rule.value)
