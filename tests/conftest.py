"""
Pytest configuration and shared fixtures for Invoice Gen tests.
"""

import sys
from pathlib import Path

import pytest

# Add src to Python path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from invoice_gen.invoicing.models import Order  # noqa: E402


@pytest.fixture
def sample_order_data():
    """Order document as returned by the storefront API."""
    return {
        "id": 1042,
        "createdAt": "2025-04-13T10:15:00.000Z",
        "userName": "Asha Verma",
        "userPhone": "9270915055",
        "shippingAddress": "12 MG Road, Banjara Hills, Hyderabad, Telangana, 500027",
        "paymentMethod": "razorpay",
        "totalAmount": 117764,
        "items": [
            {
                "productId": 7,
                "name": "Cotton Kurta Set",
                "price": 49900,
                "quantity": 2,
                "selectedColor": "Blue",
                "selectedSize": "M",
            },
        ],
    }


@pytest.fixture
def sample_order(sample_order_data):
    return Order.from_dict(sample_order_data)


@pytest.fixture
def make_order(sample_order_data):
    """Build an order from the sample document with selected fields replaced."""
    def _make(**overrides):
        data = dict(sample_order_data)
        data.update(overrides)
        return Order.from_dict(data)
    return _make
