"""MongoDB repository for reading mirrored storefront order documents."""

from __future__ import annotations

from typing import Any, Dict, Optional

from pymongo import MongoClient
from pymongo.collection import Collection

from ..utils.config import Config
from ..utils.logging import get_logger

logger = get_logger(__name__)


class OrderRepository:
    """Read-only view of the storefront order mirror.

    The client is opened on first query and closed when the repository is
    used as a context manager or closed explicitly.
    """

    def __init__(self, url: Optional[str] = None, db_name: Optional[str] = None, collection: Optional[str] = None, config: Optional[Config] = None) -> None:
        config = config or Config(".env")
        self.url = url or config.get("mongo_url")
        self.db_name = db_name or config.get("mongo_db")
        self.collection_name = collection or config.get("mongo_collection")
        if not self.url:
            raise ValueError("DB_CONNECTION_URL is required")
        self._client: Optional[MongoClient] = None

    def __enter__(self) -> "OrderRepository":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _orders(self) -> Collection:
        if self._client is None:
            logger.debug(f"Connecting to order mirror {self.db_name}.{self.collection_name}")
            self._client = MongoClient(self.url, serverSelectionTimeoutMS=5000)
        return self._client[self.db_name][self.collection_name]

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def get_order_by_id(self, order_id: int) -> Optional[Dict[str, Any]]:
        """Raw order document for order_id, without the Mongo ObjectId, or None."""
        return self._orders().find_one({"id": order_id}, {"_id": 0})
