"""GST tax and order totals calculation for storefront invoices."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Mapping

from ..utils.logging import get_logger
from .models import (
    HUNDRED,
    ZERO,
    InvoiceBreakdown,
    InvoiceTotals,
    LineBreakdown,
    LineItem,
    Order,
    PaymentMethod,
    TaxRates,
)

logger = get_logger(__name__)

# Storefront pricing rules, in rupees unless noted
DELIVERY_CHARGE = Decimal("40")
UNIVERSAL_DISCOUNT = Decimal("40")
COD_CHARGE = Decimal("10")
ONLINE_DISCOUNT_THRESHOLD = 100000  # minor units
ONLINE_DISCOUNT_HIGH_RATE = Decimal("0.05")
ONLINE_DISCOUNT_LOW_RATE = Decimal("0.01")

WHOLE = Decimal("1")


def minor_to_major(amount: int) -> Decimal:
    """Convert paisa to rupees without rounding."""
    return Decimal(amount) / HUNDRED


def format_money(value: Decimal, places: int = 2) -> str:
    """Round a computed amount for display only."""
    return str(value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP))


def round_rupees(value: Decimal) -> int:
    return int(value.quantize(WHOLE, rounding=ROUND_HALF_UP))


def online_payment_discount(order: Order) -> Decimal:
    """
    Discount for orders paid through the online gateway.

    The rate is chosen from the order's stored total, not from the line sums:
    5% at or above the threshold, 1% below it.
    """
    if order.payment_method is not PaymentMethod.ONLINE_GATEWAY:
        return ZERO
    if order.total_amount >= ONLINE_DISCOUNT_THRESHOLD:
        rate = ONLINE_DISCOUNT_HIGH_RATE
    else:
        rate = ONLINE_DISCOUNT_LOW_RATE
    return minor_to_major(order.total_amount) * rate


def cod_charge(order: Order) -> Decimal:
    if order.payment_method is PaymentMethod.CASH_ON_DELIVERY:
        return COD_CHARGE
    return ZERO


class InvoiceCalculator:
    """Compute per-line GST components and order-level invoice totals.

    Amounts stay unrounded Decimals throughout; use format_money and
    round_rupees at presentation time.
    """

    def calculate_line(self, item: LineItem, rates: TaxRates) -> LineBreakdown:
        unit_price = minor_to_major(item.price)
        # Item-level discounts are not offered; the universal discount applies per order
        discount = ZERO
        taxable_value = minor_to_major(item.price * item.quantity) - discount
        return LineBreakdown(
            item=item,
            rates=rates,
            unit_price=unit_price,
            discount=discount,
            taxable_value=taxable_value,
            igst=taxable_value * rates.igst / HUNDRED,
            cgst=taxable_value * rates.cgst / HUNDRED,
            sgst=taxable_value * rates.sgst / HUNDRED,
        )

    def calculate(self, order: Order, rates: Mapping[int, TaxRates]) -> InvoiceBreakdown:
        """
        Build the full invoice breakdown for an order.

        Args:
            order: Parsed order snapshot
            rates: Tax rates keyed by product id; products without an entry
                are taxed at zero

        Returns:
            InvoiceBreakdown with one LineBreakdown per order item, in order
        """
        lines = []
        for item in order.items:
            item_rates = rates.get(item.product_id)
            if item_rates is None:
                logger.warning(f"No tax rates for product {item.product_id}; using zero rates")
                item_rates = TaxRates.zero()
            lines.append(self.calculate_line(item, item_rates))

        totals = InvoiceTotals(
            subtotal=sum((minor_to_major(l.item.price * l.item.quantity) for l in lines), ZERO),
            total_quantity=sum(l.item.quantity for l in lines),
            total_discount=sum((l.discount for l in lines), ZERO),
            total_igst=sum((l.igst for l in lines), ZERO),
            total_cgst=sum((l.cgst for l in lines), ZERO),
            total_sgst=sum((l.sgst for l in lines), ZERO),
            delivery_charge=DELIVERY_CHARGE,
            universal_discount=UNIVERSAL_DISCOUNT,
            cod_charge=cod_charge(order),
            online_payment_discount=online_payment_discount(order),
        )
        logger.debug(
            f"Order {order.id}: {len(lines)} lines, tax {totals.total_tax}, grand total {totals.grand_total}"
        )
        return InvoiceBreakdown(order=order, lines=lines, totals=totals)

