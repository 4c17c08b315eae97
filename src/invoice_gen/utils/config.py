"""
Configuration utilities for the Invoice Gen CLI tool.
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv


DEFAULT_SELLER_ADDRESS = (
    "Blinkeach India Private Limited, House No QN3320751 KB Lane Near Yusuf Masjid"
    "|Panchela Afraan Gaya, Bihar, India - 823001, IN-BR"
)


class Config:
    """Configuration manager for the Invoice Gen project."""

    def __init__(self, env_file: Optional[str] = None) -> None:
        """Initialize configuration.

        If an env_file path is provided, load environment variables from it.
        Otherwise, do not auto-load a .env file to keep defaults predictable.
        """
        self.env_file = env_file
        self._load_environment()
        self._config = self._load_config()

    def _load_environment(self) -> None:
        """Load environment variables from explicit .env file if provided."""
        if not self.env_file:
            return
        env_path = Path(self.env_file)
        if env_path.exists():
            load_dotenv(env_path)

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from environment variables."""
        return {
            # Core settings
            "log_level": self._get_str("LOG_LEVEL", default="INFO"),
            "output_dir": self._get_str("INVOICE_OUTPUT_DIR", default="invoices"),
            # Storefront REST API
            "api_base_url": self._get_str("STOREFRONT_API_URL", default="http://localhost:5000"),
            "api_timeout": self._get_float("STOREFRONT_API_TIMEOUT", default=10.0),
            # MongoDB order mirror
            "mongo_url": self._get_str("DB_CONNECTION_URL", default=""),
            "mongo_db": self._get_str("DB_NAME", default="storefront"),
            "mongo_collection": self._get_str("COLLECTION_NAME", default="orders"),
            # Invoice template
            "support_url": self._get_str("SUPPORT_URL", default="https://blinkeach.com/orders"),
            "seller_name": self._get_str("SELLER_NAME", default="Blinkeach India Private Limited"),
            "seller_address": self._get_str("SELLER_ADDRESS", default=DEFAULT_SELLER_ADDRESS),
            "seller_gstin": self._get_str("SELLER_GSTIN", default="10ESPAG3624N1ZQ"),
            "seller_pan": self._get_str("SELLER_PAN", default="ABCDE1234F"),
        }

    def _get_str(self, key: str, default: str = "") -> str:
        """Get string configuration value."""
        if self.env_file is None:
            return default
        return os.getenv(key, default)

    def _get_float(self, key: str, default: float = 0.0) -> float:
        """Get float configuration value."""
        if self.env_file is None:
            return default
        try:
            return float(os.getenv(key, str(default)))
        except ValueError:
            return default

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value."""
        return self._config.get(key, default)

