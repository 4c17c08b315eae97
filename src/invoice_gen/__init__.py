"""
Invoice Gen - Storefront GST Tax Invoice Generator

A CLI tool that computes GST tax breakdowns for storefront orders and
exports them as single-page PDF tax invoices.
"""

__version__ = "0.1.0"

# Import main modules for CLI functionality
from . import invoicing
from . import utils

__all__ = ["invoicing", "utils"]
