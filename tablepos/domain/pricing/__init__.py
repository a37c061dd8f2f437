from tablepos.domain.pricing.discounts import allocate_discount, allocation_order
from tablepos.domain.pricing.lines import LineInput, LinePrice, price_line, price_line_input
from tablepos.domain.pricing.money import MoneyError, floor_amount, round_half_up, to_decimal, to_wire
from tablepos.domain.pricing.tax import TaxMode, effective_tax_rate
from tablepos.domain.pricing.totals import LineBreakdown, OrderTotals, aggregate

__all__ = [
    "LineBreakdown",
    "LineInput",
    "LinePrice",
    "MoneyError",
    "OrderTotals",
    "TaxMode",
    "aggregate",
    "allocate_discount",
    "allocation_order",
    "effective_tax_rate",
    "floor_amount",
    "price_line",
    "price_line_input",
    "round_half_up",
    "to_decimal",
    "to_wire",
]
