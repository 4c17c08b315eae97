"""Invoice generation service tying the order sources, calculator and renderer together."""

from __future__ import annotations

import asyncio
import json
from datetime import date
from pathlib import Path
from typing import Dict, Optional, Union

from ..utils.config import Config
from ..utils.logging import get_logger
from .calculator import InvoiceCalculator
from .client import StorefrontClient
from .models import InvoiceBreakdown, Order, TaxRates
from .rendering import InvoiceRenderer, SellerProfile
from .repository import OrderRepository

logger = get_logger(__name__)

ORDER_SOURCES = ("api", "mongo", "file")


class InvoiceService:
    """High-level service for invoice operations."""

    def __init__(self, config: Optional[Config] = None) -> None:
        self.config = config or Config()
        self.calculator = InvoiceCalculator()
        self.renderer = InvoiceRenderer(
            seller=SellerProfile.from_config(self.config),
            support_url=self.config.get("support_url"),
        )

    def _client(self) -> StorefrontClient:
        return StorefrontClient(
            base_url=self.config.get("api_base_url"),
            timeout=self.config.get("api_timeout", 10.0),
        )

    async def _fetch_order(self, order_id: int) -> Order:
        async with self._client() as client:
            return await client.get_order(order_id)

    async def fetch_tax_rates(self, order: Order) -> Dict[int, TaxRates]:
        if not order.items:
            return {}
        async with self._client() as client:
            return await client.fetch_tax_rates(order.product_ids)

    def load_order(self, order_id: Optional[int] = None, source: str = "api",
                   order_file: Optional[Union[str, Path]] = None) -> Order:
        """
        Load an order snapshot from one of the supported sources.

        Args:
            order_id: Storefront order id (required for "api" and "mongo")
            source: "api", "mongo" or "file"
            order_file: Path to an exported order JSON document (for "file")

        Returns:
            Parsed Order
        """
        if source not in ORDER_SOURCES:
            raise ValueError(f"Invalid order source: {source}")

        if source == "file":
            if not order_file:
                raise ValueError("An order file is required for the file source")
            with open(order_file, "r", encoding="utf-8") as f:
                return Order.from_dict(json.load(f))

        if order_id is None:
            raise ValueError(f"An order id is required for the {source} source")

        if source == "mongo":
            with OrderRepository(config=self.config) as repo:
                document = repo.get_order_by_id(order_id)
            if not document:
                raise ValueError(f"Order with ID {order_id} not found")
            return Order.from_dict(document)

        logger.info(f"Fetching order {order_id} from {self.config.get('api_base_url')}")
        return asyncio.run(self._fetch_order(order_id))

    def compute(self, order: Order) -> InvoiceBreakdown:
        """Resolve tax rates for the order's products and compute the breakdown."""
        rates = asyncio.run(self.fetch_tax_rates(order))
        return self.calculator.calculate(order, rates)

    def generate(self, order: Order, output_dir: Optional[Union[str, Path]] = None,
                 invoice_date: Optional[date] = None) -> Path:
        """Compute the invoice for order and write it as a PDF. Returns the file path."""
        logger.info(f"Generating invoice for order {order.id}")
        breakdown = self.compute(order)
        return self.renderer.export(
            breakdown,
            output_dir or self.config.get("output_dir"),
            invoice_date=invoice_date,
        )
