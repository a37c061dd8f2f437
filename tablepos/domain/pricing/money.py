from __future__ import annotations

from decimal import ROUND_FLOOR, ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

ZERO = Decimal("0")
HUNDRED = Decimal("100")
_UNIT = Decimal("1")
_CENTS = Decimal("0.01")


class MoneyError(ValueError):
    pass


def to_decimal(value: Any) -> Decimal:
    """Parse a wire amount ("90000", "90000.00", 90000) into a Decimal.

    None and blank strings read as zero, the same way the store reports
    missing discounts.
    """
    if isinstance(value, bool):
        raise MoneyError(f"invalid amount: {value!r}")
    if isinstance(value, Decimal):
        amount = value
    elif value is None:
        return ZERO
    elif isinstance(value, int):
        return Decimal(value)
    elif isinstance(value, float):
        amount = Decimal(str(value))
    else:
        text = str(value).strip()
        if not text:
            return ZERO
        try:
            amount = Decimal(text)
        except InvalidOperation as exc:
            raise MoneyError(f"invalid amount: {value!r}") from exc
    if not amount.is_finite():
        raise MoneyError(f"invalid amount: {value!r}")
    return amount


def round_half_up(value: Decimal) -> Decimal:
    return value.quantize(_UNIT, rounding=ROUND_HALF_UP)


def floor_amount(value: Any) -> int:
    return int(to_decimal(value).to_integral_value(rounding=ROUND_FLOOR))


def to_wire(value: Any) -> str:
    amount = to_decimal(value)
    if amount == amount.to_integral_value():
        return str(int(amount))
    return str(amount.quantize(_CENTS, rounding=ROUND_FLOOR))
