"""Order, line item and tax breakdown types for invoice generation."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


ZERO = Decimal("0")
HUNDRED = Decimal("100")
DEFAULT_HSN_CODE = "88374940"


class PaymentMethod(str, Enum):
    CASH_ON_DELIVERY = "cod"
    ONLINE_GATEWAY = "razorpay"


def to_decimal(value: Any) -> Decimal:
    """Convert a JSON number or numeric string to Decimal; None counts as zero."""
    if value is None or value == "":
        return ZERO
    try:
        result = Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"Not a number: {value!r}")
    if not result.is_finite():
        raise ValueError(f"Not a finite number: {value!r}")
    return result


def to_whole(value: Any, field: str) -> int:
    """Parse an integral JSON number; fractional values are rejected, not truncated."""
    result = to_decimal(value)
    if result != result.to_integral_value():
        raise ValueError(f"{field} must be a whole number, got {value!r}")
    return int(result)


def _parse_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if not value:
        raise ValueError("Order createdAt is required")
    text = str(value)
    # fromisoformat rejects the trailing Z the storefront API emits
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


@dataclass(frozen=True)
class TaxRates:
    """GST percentages for a product, each in [0, 100]."""

    igst: Decimal = ZERO
    cgst: Decimal = ZERO
    sgst: Decimal = ZERO

    def __post_init__(self) -> None:
        for name in ("igst", "cgst", "sgst"):
            rate = getattr(self, name)
            if not ZERO <= rate <= HUNDRED:
                raise ValueError(f"{name.upper()} rate {rate} outside 0-100")

    @classmethod
    def zero(cls) -> "TaxRates":
        return cls()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TaxRates":
        """Build rates from a product payload; missing or null rates are zero."""
        return cls(
            igst=to_decimal(data.get("igst")),
            cgst=to_decimal(data.get("cgst")),
            sgst=to_decimal(data.get("sgst")),
        )

    @property
    def total(self) -> Decimal:
        return self.igst + self.cgst + self.sgst


@dataclass(frozen=True)
class LineItem:
    product_id: int
    name: str
    price: int
    quantity: int
    selected_color: Optional[str] = None
    selected_size: Optional[str] = None
    hsn_code: str = DEFAULT_HSN_CODE

    def __post_init__(self) -> None:
        if self.quantity <= 0:
            raise ValueError(f"Quantity for product {self.product_id} must be positive")
        if self.price < 0:
            raise ValueError(f"Price for product {self.product_id} must not be negative")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LineItem":
        try:
            product_id = to_whole(data["productId"], "productId")
            price = to_whole(data["price"], "price")
            quantity = to_whole(data["quantity"], "quantity")
        except KeyError as e:
            raise ValueError(f"Line item is missing {e.args[0]}")
        return cls(
            product_id=product_id,
            name=str(data.get("name") or f"Product {product_id}"),
            price=price,
            quantity=quantity,
            selected_color=data.get("selectedColor") or None,
            selected_size=data.get("selectedSize") or None,
            hsn_code=str(data.get("hsnCode") or DEFAULT_HSN_CODE),
        )


@dataclass(frozen=True)
class Order:
    id: int
    created_at: datetime
    user_name: str
    user_phone: str
    shipping_address: str
    payment_method: PaymentMethod
    total_amount: int
    items: Tuple[LineItem, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Order":
        """Parse an order document as returned by the storefront API."""
        if "id" not in data:
            raise ValueError("Order id is required")
        try:
            payment_method = PaymentMethod(data.get("paymentMethod"))
        except ValueError:
            raise ValueError(f"Unsupported payment method: {data.get('paymentMethod')!r}")
        return cls(
            id=to_whole(data["id"], "id"),
            created_at=_parse_datetime(data.get("createdAt")),
            user_name=str(data.get("userName") or ""),
            user_phone=str(data.get("userPhone") or ""),
            shipping_address=str(data.get("shippingAddress") or ""),
            payment_method=payment_method,
            total_amount=to_whole(data.get("totalAmount"), "totalAmount"),
            items=tuple(LineItem.from_dict(item) for item in data.get("items") or []),
        )

    @property
    def product_ids(self) -> List[int]:
        """Distinct product ids in first-seen order."""
        return list(dict.fromkeys(item.product_id for item in self.items))


@dataclass(frozen=True)
class LineBreakdown:
    item: LineItem
    rates: TaxRates
    unit_price: Decimal
    discount: Decimal
    taxable_value: Decimal
    igst: Decimal
    cgst: Decimal
    sgst: Decimal

    @property
    def tax_amount(self) -> Decimal:
        return self.igst + self.cgst + self.sgst

    @property
    def total(self) -> Decimal:
        return self.taxable_value + self.tax_amount


@dataclass(frozen=True)
class InvoiceTotals:
    subtotal: Decimal
    total_quantity: int
    total_discount: Decimal
    total_igst: Decimal
    total_cgst: Decimal
    total_sgst: Decimal
    delivery_charge: Decimal
    universal_discount: Decimal
    cod_charge: Decimal
    online_payment_discount: Decimal

    @property
    def taxable_value(self) -> Decimal:
        return self.subtotal - self.total_discount

    @property
    def total_tax(self) -> Decimal:
        return self.total_igst + self.total_cgst + self.total_sgst

    @property
    def items_total(self) -> Decimal:
        return self.taxable_value + self.total_tax

    @property
    def grand_total(self) -> Decimal:
        return (
            self.taxable_value
            + self.delivery_charge
            + self.total_tax
            + self.cod_charge
            - self.universal_discount
            - self.online_payment_discount
        )


@dataclass(frozen=True)
class InvoiceBreakdown:
    order: Order
    lines: List[LineBreakdown]
    totals: InvoiceTotals
