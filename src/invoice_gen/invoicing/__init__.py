"""Invoicing module entry point."""

from .calculator import InvoiceCalculator
from .client import StorefrontClient
from .models import InvoiceBreakdown, LineItem, Order, PaymentMethod, TaxRates
from .rendering import InvoiceExportError, InvoiceRenderer
from .repository import OrderRepository
from .service import InvoiceService
from .words import amount_in_words

__all__ = [
    "InvoiceCalculator",
    "StorefrontClient",
    "InvoiceBreakdown",
    "LineItem",
    "Order",
    "PaymentMethod",
    "TaxRates",
    "InvoiceExportError",
    "InvoiceRenderer",
    "OrderRepository",
    "InvoiceService",
    "amount_in_words",
]
