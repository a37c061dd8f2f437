from __future__ import annotations

from decimal import Decimal

import pytest

from tablepos.domain.pricing import TaxMode, effective_tax_rate, price_line


def test_excludes_tax_adds_rounded_tax_on_top():
    priced = price_line(100000, 2, 10, TaxMode.EXCLUDES_TAX)

    assert priced.subtotal == Decimal("200000")
    assert priced.tax == Decimal("20000")
    assert priced.total == Decimal("220000")


def test_includes_tax_splits_gross_amount():
    priced = price_line("90000", 1, "10", TaxMode.INCLUDES_TAX)

    assert priced.subtotal == Decimal("81818")
    assert priced.tax == Decimal("8182")


@pytest.mark.parametrize("mode", list(TaxMode))
def test_untaxed_line_is_identical_in_both_modes(mode):
    priced = price_line(30000, 3, 0, mode)

    assert priced.subtotal == Decimal("90000")
    assert priced.tax == Decimal("0")


@pytest.mark.parametrize("unit_price", ["1", "999", "12345", "33333", "90000", "10.75"])
@pytest.mark.parametrize("rate", ["5", "8", "10"])
def test_includes_tax_split_never_gains_or_loses_a_unit(unit_price, rate):
    priced = price_line(unit_price, 3, rate, TaxMode.INCLUDES_TAX)

    assert priced.subtotal + priced.tax == Decimal(unit_price) * 3


def test_half_units_round_up():
    assert price_line(5, 1, 10, TaxMode.EXCLUDES_TAX).tax == Decimal("1")
    assert price_line(15, 1, 10, TaxMode.EXCLUDES_TAX).tax == Decimal("2")
    # 105 / 1.1 = 95.45...
    assert price_line(105, 1, 10, TaxMode.INCLUDES_TAX).subtotal == Decimal("95")


def test_tax_mode_from_store_flag():
    assert TaxMode.from_flag(True) is TaxMode.INCLUDES_TAX
    assert TaxMode.from_flag(False) is TaxMode.EXCLUDES_TAX
    assert TaxMode.INCLUDES_TAX.includes_tax


def test_effective_tax_rate_prefers_explicit_rate():
    assert effective_tax_rate("8", unit_price="100000", after_tax_price="110000") == Decimal("8")
    assert effective_tax_rate("-3") == Decimal("0")


def test_effective_tax_rate_derived_from_precomputed_prices():
    assert effective_tax_rate(None, unit_price="100000", after_tax_price="110000") == Decimal("10")
    assert effective_tax_rate(None, unit_price="108000", before_tax_price="100000") == Decimal("8")
    assert effective_tax_rate(None, unit_price="50000") == Decimal("0")
