from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import Any

from tablepos.domain.pricing.money import HUNDRED, ZERO, to_decimal


class TaxMode(str, Enum):
    INCLUDES_TAX = "includes_tax"
    EXCLUDES_TAX = "excludes_tax"

    @classmethod
    def from_flag(cls, price_includes_tax: bool) -> "TaxMode":
        return cls.INCLUDES_TAX if price_includes_tax else cls.EXCLUDES_TAX

    @property
    def includes_tax(self) -> bool:
        return self is TaxMode.INCLUDES_TAX


def effective_tax_rate(
    tax_rate_percent: Any,
    unit_price: Any = None,
    before_tax_price: Any = None,
    after_tax_price: Any = None,
) -> Decimal:
    """Tax rate in percent for a product.

    An explicit rate wins. Products imported without one may still carry the
    precomputed after-tax or before-tax price, so the rate is derived from
    whichever pair is available. Anything else is untaxed.
    """
    if tax_rate_percent is not None and str(tax_rate_percent).strip() != "":
        rate = to_decimal(tax_rate_percent)
        return rate if rate > ZERO else ZERO

    price = to_decimal(unit_price)
    if price <= ZERO:
        return ZERO

    if after_tax_price is not None and str(after_tax_price).strip() != "":
        after = to_decimal(after_tax_price)
        if after > price:
            return (after - price) * HUNDRED / price

    if before_tax_price is not None and str(before_tax_price).strip() != "":
        before = to_decimal(before_tax_price)
        if ZERO < before < price:
            return (price - before) * HUNDRED / before

    return ZERO
