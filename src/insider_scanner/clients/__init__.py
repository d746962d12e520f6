"""
API clients for Polymarket.
"""

from .base import BaseClient
from .paginator import MalformedPageError, PaginationError, Paginator
from .polymarket import PolymarketClient

__all__ = ["BaseClient", "MalformedPageError", "PaginationError", "Paginator", "PolymarketClient"]
