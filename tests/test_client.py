"""Tests for the storefront REST client."""

import asyncio
from decimal import Decimal

import httpx
import pytest

from invoice_gen.invoicing.client import StorefrontClient
from invoice_gen.invoicing.models import TaxRates


PRODUCTS = {
    "/api/products/1": {"id": 1, "name": "Kurta", "igst": 0, "cgst": 9, "sgst": 9},
    "/api/products/2": {"id": 2, "name": "Mug", "igst": "12.00", "cgst": None, "sgst": None},
    "/api/products/5": {"id": 5, "name": "Broken", "igst": 150},
    "/api/products/7": {"id": 7, "name": "Lamp", "igst": "NaN", "cgst": 9, "sgst": 9},
}


def make_handler(calls):
    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.path)
        if request.url.path == "/api/products/3":
            raise httpx.ConnectError("connection refused", request=request)
        if request.url.path == "/api/products/4":
            return httpx.Response(200, text="<html>not json</html>")
        if request.url.path == "/api/products/6":
            # Python's json accepts a bare NaN literal
            return httpx.Response(200, content=b'{"igst": NaN, "cgst": 9, "sgst": 9}',
                                  headers={"content-type": "application/json"})
        if request.url.path in PRODUCTS:
            return httpx.Response(200, json=PRODUCTS[request.url.path])
        return httpx.Response(404, json={"message": "Not found"})
    return handler


def fetch_rates(product_ids, calls=None):
    calls = [] if calls is None else calls

    async def run():
        transport = httpx.MockTransport(make_handler(calls))
        async with StorefrontClient("http://shop.test", transport=transport) as client:
            return await client.fetch_tax_rates(product_ids)

    return asyncio.run(run())


class TestFetchTaxRates:

    def test_rates_are_keyed_by_product(self):
        rates = fetch_rates([1, 2])
        assert rates[1] == TaxRates(igst=Decimal("0"), cgst=Decimal("9"), sgst=Decimal("9"))
        assert rates[2].igst == Decimal("12")
        assert rates[2].cgst == 0

    def test_one_request_per_distinct_product(self):
        calls = []
        fetch_rates([1, 2, 1, 1, 2], calls)
        assert sorted(calls) == ["/api/products/1", "/api/products/2"]

    @pytest.mark.parametrize("product_id", [3, 4, 5, 6, 7, 99])
    def test_failed_lookup_defaults_to_zero(self, product_id):
        rates = fetch_rates([1, product_id])
        assert rates[product_id] == TaxRates.zero()
        assert rates[1].total == Decimal("18")

    def test_non_finite_rates_degrade_only_that_product(self):
        rates = fetch_rates([1, 6, 7])
        assert rates[6] == TaxRates.zero()
        assert rates[7] == TaxRates.zero()
        assert rates[1].total == Decimal("18")

    def test_failed_lookup_is_logged(self, caplog):
        with caplog.at_level("WARNING", logger="invoice_gen"):
            fetch_rates([3])
        assert "Error fetching GST rates for product 3" in caplog.text

    def test_no_products(self):
        assert fetch_rates([]) == {}


class TestGetOrder:

    def test_get_order(self, sample_order_data):
        def handler(request):
            assert request.url.path == "/api/orders/1042"
            return httpx.Response(200, json=sample_order_data)

        async def run():
            async with StorefrontClient("http://shop.test/", transport=httpx.MockTransport(handler)) as client:
                return await client.get_order(1042)

        order = asyncio.run(run())
        assert order.id == 1042
        assert order.items[0].product_id == 7

    def test_get_order_error_propagates(self):
        def handler(request):
            return httpx.Response(404, json={"message": "Order not found"})

        async def run():
            async with StorefrontClient("http://shop.test", transport=httpx.MockTransport(handler)) as client:
                return await client.get_order(1)

        with pytest.raises(httpx.HTTPStatusError):
            asyncio.run(run())
