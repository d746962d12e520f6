"""
Base client class for API interactions.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

import httpx

from ..models import MarketRecord, TradeEvent

logger = logging.getLogger(__name__)


class RateLimiter:
    """Simple rate limiter for API requests."""

    def __init__(self, requests_per_second: int):
        self.requests_per_second = requests_per_second
        self.min_interval = 1.0 / requests_per_second if requests_per_second > 0 else 0.0
        self.last_request_time = 0.0
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        """Wait until we can make another request."""
        if self.min_interval <= 0:
            return

        async with self._lock:
            loop = asyncio.get_running_loop()
            time_since_last = loop.time() - self.last_request_time
            if time_since_last < self.min_interval:
                await asyncio.sleep(self.min_interval - time_since_last)
            self.last_request_time = loop.time()


class BaseClient(ABC):
    """Base class for market data API clients."""

    def __init__(
        self,
        base_url: str,
        requests_per_second: int = 20,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url
        self.timeout = timeout
        self.rate_limiter = RateLimiter(requests_per_second)
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "BaseClient":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def _make_client(self, base_url: str) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=base_url,
            timeout=self.timeout,
            headers={"User-Agent": "InsiderScanner/0.1.0"},
            transport=self._transport,
        )

    async def connect(self) -> None:
        """Initialize the HTTP client."""
        self._client = self._make_client(self.base_url)

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _request(
        self,
        client: Optional[httpx.AsyncClient],
        method: str,
        path: str,
        params: Optional[dict] = None,
    ) -> Any:
        """Make a rate-limited HTTP request and decode the JSON body."""
        if not client:
            raise RuntimeError("Client not connected. Use 'async with' or call connect()")

        await self.rate_limiter.acquire()

        try:
            response = await client.request(method=method, url=path, params=params)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"HTTP error {e.response.status_code} for {path}: {e.response.text[:200]}")
            raise
        except httpx.HTTPError as e:
            logger.error(f"Request to {path} failed: {e}")
            raise

    async def get(self, path: str, params: Optional[dict] = None) -> Any:
        """Make a GET request against the primary API."""
        return await self._request(self._client, "GET", path, params=params)

    # Abstract methods to be implemented by subclasses

    @abstractmethod
    async def fetch_active_markets(self, on_page=None) -> list[MarketRecord]:
        """Fetch every open market."""
        pass

    @abstractmethod
    async def fetch_resolved_markets(
        self,
        max_records: Optional[int] = None,
        on_page=None,
    ) -> list[MarketRecord]:
        """Fetch closed markets."""
        pass

    @abstractmethod
    async def fetch_trades(
        self,
        user: Optional[str] = None,
        max_records: Optional[int] = None,
        on_page=None,
    ) -> list[TradeEvent]:
        """Fetch trade events, optionally for a single wallet."""
        pass
