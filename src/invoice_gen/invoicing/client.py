"""Async HTTP client for the storefront REST API."""

from __future__ import annotations

import asyncio
from typing import Dict, Iterable, Optional

import httpx

from ..utils.logging import get_logger
from .models import Order, TaxRates

logger = get_logger(__name__)


class StorefrontClient:
    """Read orders and per-product GST rates from the storefront backend.

    Use as an async context manager; one underlying connection pool is shared
    by every request made inside the block.
    """

    def __init__(self, base_url: str, timeout: float = 10.0, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "StorefrontClient":
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self._client.aclose()
        self._client = None

    async def get_order(self, order_id: int) -> Order:
        """Fetch an order with its line items. Errors propagate to the caller."""
        response = await self._client.get(f"/api/orders/{order_id}")
        response.raise_for_status()
        return Order.from_dict(response.json())

    async def get_product_tax_rates(self, product_id: int) -> TaxRates:
        """Fetch the IGST/CGST/SGST percentages of one product."""
        response = await self._client.get(f"/api/products/{product_id}")
        response.raise_for_status()
        payload = response.json()
        if not isinstance(payload, dict):
            raise ValueError(f"Unexpected product payload for {product_id}")
        return TaxRates.from_dict(payload)

    async def _tax_rates_or_zero(self, product_id: int) -> TaxRates:
        try:
            return await self.get_product_tax_rates(product_id)
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Error fetching GST rates for product {product_id}: {e}; using zero rates")
            return TaxRates.zero()

    async def fetch_tax_rates(self, product_ids: Iterable[int]) -> Dict[int, TaxRates]:
        """
        Look up tax rates for every distinct product concurrently.

        A failed lookup degrades that product to zero rates instead of
        failing the whole batch.
        """
        distinct = list(dict.fromkeys(product_ids))
        results = await asyncio.gather(*(self._tax_rates_or_zero(pid) for pid in distinct))
        return dict(zip(distinct, results))
