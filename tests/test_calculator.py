"""Tests for GST and invoice totals calculation."""

from decimal import Decimal

import pytest

from invoice_gen.invoicing.calculator import (
    InvoiceCalculator,
    format_money,
    online_payment_discount,
    round_rupees,
)
from invoice_gen.invoicing.models import LineItem, TaxRates


GST_18 = TaxRates(igst=Decimal("0"), cgst=Decimal("9"), sgst=Decimal("9"))


class TestLineCalculation:
    """Per-line taxable value and tax components."""

    def test_taxable_value_uses_major_units(self):
        item = LineItem(product_id=7, name="Kurta", price=49900, quantity=2)
        line = InvoiceCalculator().calculate_line(item, GST_18)
        assert line.unit_price == Decimal("499")
        assert line.taxable_value == Decimal("998")
        assert line.discount == 0

    def test_tax_components(self):
        item = LineItem(product_id=7, name="Kurta", price=49900, quantity=2)
        line = InvoiceCalculator().calculate_line(item, GST_18)
        assert line.igst == 0
        assert line.cgst == Decimal("89.82")
        assert line.sgst == Decimal("89.82")
        assert line.tax_amount == Decimal("179.64")
        assert line.total == Decimal("1177.64")

    @pytest.mark.parametrize("price,quantity,igst,cgst,sgst", [
        (100, 1, "0", "0", "0"),
        (12345, 3, "18", "0", "0"),
        (999, 7, "0", "2.5", "2.5"),
        (150050, 11, "12", "6", "6"),
    ])
    def test_line_total_is_taxable_times_one_plus_rate(self, price, quantity, igst, cgst, sgst):
        rates = TaxRates(igst=Decimal(igst), cgst=Decimal(cgst), sgst=Decimal(sgst))
        item = LineItem(product_id=1, name="Item", price=price, quantity=quantity)
        line = InvoiceCalculator().calculate_line(item, rates)
        expected = line.taxable_value * (1 + rates.total / 100)
        assert format_money(line.total) == format_money(expected)


class TestOrderTotals:
    """Order-level aggregation and storefront pricing rules."""

    def test_empty_cod_order(self, make_order):
        order = make_order(items=[], paymentMethod="cod", totalAmount=0)
        totals = InvoiceCalculator().calculate(order, {}).totals
        assert totals.subtotal == 0
        assert totals.total_quantity == 0
        assert totals.cod_charge == Decimal("10")
        assert totals.online_payment_discount == 0
        assert totals.grand_total == Decimal("10")

    def test_empty_online_order(self, make_order):
        order = make_order(items=[], paymentMethod="razorpay", totalAmount=0)
        totals = InvoiceCalculator().calculate(order, {}).totals
        assert totals.grand_total == 0

    def test_delivery_is_cancelled_by_universal_discount(self, make_order):
        order = make_order(paymentMethod="cod")
        totals = InvoiceCalculator().calculate(order, {7: GST_18}).totals
        assert totals.delivery_charge == Decimal("40")
        assert totals.universal_discount == Decimal("40")
        assert totals.grand_total == Decimal("998") + Decimal("179.64") + Decimal("10")

    def test_cod_gets_surcharge_and_no_discount(self, make_order):
        order = make_order(paymentMethod="cod", totalAmount=150000)
        totals = InvoiceCalculator().calculate(order, {7: GST_18}).totals
        assert totals.cod_charge == Decimal("10")
        assert totals.online_payment_discount == 0

    def test_online_discount_above_threshold(self, make_order):
        order = make_order(paymentMethod="razorpay", totalAmount=150000)
        # 5% of Rs. 1500
        assert online_payment_discount(order) == Decimal("75")

    def test_online_discount_below_threshold(self, make_order):
        order = make_order(paymentMethod="razorpay", totalAmount=50000)
        # 1% of Rs. 500
        assert online_payment_discount(order) == Decimal("5")

    def test_online_discount_at_threshold(self, make_order):
        order = make_order(paymentMethod="razorpay", totalAmount=100000)
        assert online_payment_discount(order) == Decimal("50")

    def test_online_discount_uses_order_total_not_line_sums(self, make_order):
        order = make_order(paymentMethod="razorpay", totalAmount=50000)
        totals = InvoiceCalculator().calculate(order, {7: GST_18}).totals
        # Lines sum to well over Rs. 1000 but the stored total decides the rate
        assert totals.online_payment_discount == Decimal("5")
        assert totals.cod_charge == 0

    def test_grand_total(self, sample_order):
        breakdown = InvoiceCalculator().calculate(sample_order, {7: GST_18})
        totals = breakdown.totals
        assert totals.subtotal == Decimal("998")
        assert totals.total_quantity == 2
        assert totals.total_cgst == Decimal("89.82")
        assert totals.total_sgst == Decimal("89.82")
        assert totals.total_tax == Decimal("179.64")
        assert totals.items_total == Decimal("1177.64")
        assert totals.online_payment_discount == Decimal("58.882")
        assert totals.grand_total == Decimal("1118.758")
        assert format_money(totals.grand_total, 0) == "1119"
        assert round_rupees(totals.grand_total) == 1119

    def test_missing_rates_default_to_zero(self, sample_order):
        breakdown = InvoiceCalculator().calculate(sample_order, {})
        line = breakdown.lines[0]
        assert line.igst == line.cgst == line.sgst == 0
        assert line.total == line.taxable_value

    def test_lines_keep_order_and_share_rates_per_product(self, make_order):
        order = make_order(items=[
            {"productId": 3, "name": "Mug", "price": 25000, "quantity": 1},
            {"productId": 7, "name": "Kurta", "price": 49900, "quantity": 1},
            {"productId": 3, "name": "Mug", "price": 25000, "quantity": 2},
        ])
        rates = {3: TaxRates(igst=Decimal("12")), 7: GST_18}
        breakdown = InvoiceCalculator().calculate(order, rates)
        assert [l.item.product_id for l in breakdown.lines] == [3, 7, 3]
        assert breakdown.lines[0].igst == Decimal("30")
        assert breakdown.lines[2].igst == Decimal("60")
        assert breakdown.totals.total_quantity == 4
        assert breakdown.totals.total_igst == Decimal("90")

    def test_no_intermediate_rounding(self, make_order):
        items = [{"productId": 1, "name": "Clip", "price": 333, "quantity": 1}] * 3
        order = make_order(items=items)
        breakdown = InvoiceCalculator().calculate(order, {1: TaxRates(igst=Decimal("5"))})
        # 3 x 0.1665 stays exact instead of 3 x 0.17
        assert breakdown.totals.total_igst == Decimal("0.4995")
        assert format_money(breakdown.totals.total_igst) == "0.50"


class TestFormatting:

    def test_format_money_rounds_half_up(self):
        assert format_money(Decimal("2.345")) == "2.35"
        assert format_money(Decimal("18"), 1) == "18.0"
        assert format_money(Decimal("1118.5"), 0) == "1119"

    def test_round_rupees(self):
        assert round_rupees(Decimal("10.49")) == 10
        assert round_rupees(Decimal("10.5")) == 11
