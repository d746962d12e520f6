"""
Polymarket API client.

Polymarket exposes two read-only APIs used here:
- Gamma API: market metadata and settled outcome prices
- Data API: the public trade log, filterable by wallet

Both paginate by offset, so every fetch goes through the Paginator.
"""

import json
import logging
from decimal import Decimal, InvalidOperation
from typing import Callable, Optional

import httpx

from ..config import PaginationConfig, PolymarketConfig, get_config
from ..models import MarketRecord, TradeEvent
from .base import BaseClient
from .paginator import Paginator, ProgressCallback

logger = logging.getLogger(__name__)


def _to_decimal(value, default: Optional[Decimal] = Decimal("0")) -> Decimal:
    """Parse a numeric or string-encoded number, falling back to default."""
    if value is None or value == "":
        if default is None:
            raise ValueError("missing numeric value")
        return default
    try:
        result = Decimal(str(value))
    except InvalidOperation:
        result = None

    # Amounts must be finite, NaN and Infinity count as malformed
    if result is None or not result.is_finite():
        if default is None:
            raise ValueError(f"invalid numeric value: {value!r}")
        return default
    return result


class PolymarketClient(BaseClient):
    """Client for the Polymarket Gamma and Data APIs."""

    def __init__(
        self,
        config: Optional[PolymarketConfig] = None,
        pagination: Optional[PaginationConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config or get_config().polymarket
        self.pagination = pagination or get_config().pagination
        super().__init__(
            base_url=self.config.data_api_url,
            requests_per_second=self.config.requests_per_second,
            timeout=self.config.timeout_seconds,
            transport=transport,
        )
        self._gamma_client: Optional[httpx.AsyncClient] = None

    async def connect(self) -> None:
        """Initialize HTTP clients."""
        await super().connect()
        self._gamma_client = self._make_client(self.config.gamma_api_url)

    async def close(self) -> None:
        """Close HTTP clients."""
        await super().close()
        if self._gamma_client:
            await self._gamma_client.aclose()
            self._gamma_client = None

    async def _gamma_get(self, path: str, params: Optional[dict] = None):
        """Make a request to the Gamma API."""
        return await self._request(self._gamma_client, "GET", path, params=params)

    def _parse_market(self, data: dict) -> MarketRecord:
        """Parse market data from a Gamma response."""
        question = data.get("question")
        if not isinstance(question, str):
            raise ValueError("market has no question")

        outcome_prices = data.get("outcomePrices")
        if isinstance(outcome_prices, list):
            outcome_prices = json.dumps(outcome_prices)
        elif outcome_prices is not None and not isinstance(outcome_prices, str):
            outcome_prices = None

        closed = data.get("closed")

        return MarketRecord(
            question=question,
            condition_id=data.get("conditionId") or None,
            outcome_prices=outcome_prices,
            volume=_to_decimal(data.get("volume") or data.get("volumeNum")),
            liquidity=_to_decimal(data.get("liquidity") or data.get("liquidityNum")),
            closed=closed if isinstance(closed, bool) else None,
            slug=data.get("slug") or "",
        )

    def _parse_trade(self, data: dict) -> TradeEvent:
        """Parse a trade from a Data API response."""
        condition_id = data.get("conditionId")
        if not condition_id:
            raise ValueError("trade has no conditionId")

        wallet = data.get("proxyWallet")
        if not wallet:
            raise ValueError("trade has no proxyWallet")

        return TradeEvent(
            proxy_wallet=wallet,
            side=str(data.get("side", "")).upper(),
            condition_id=condition_id,
            size=_to_decimal(data.get("size"), default=None),
            price=_to_decimal(data.get("price"), default=None),
            timestamp=int(data.get("timestamp") or 0),
            outcome_index=int(data.get("outcomeIndex", 0)),
            title=data.get("title"),
            name=data.get("name") or data.get("pseudonym"),
        )

    def _parse_records(self, items: list, parser: Callable, kind: str) -> list:
        """Parse raw records, skipping the ones that fail."""
        records = []
        skipped = 0
        for item in items:
            try:
                records.append(parser(item))
            except (ValueError, TypeError, AttributeError) as e:
                skipped += 1
                logger.debug(f"Failed to parse {kind}: {e}")
        if skipped:
            logger.warning(f"Skipped {skipped} malformed {kind} records")
        return records

    async def _fetch_markets(
        self,
        params: dict,
        max_records: Optional[int] = None,
        on_page: Optional[ProgressCallback] = None,
    ) -> list[MarketRecord]:
        async def fetch_page(offset: int, limit: int):
            return await self._gamma_get("/markets", params={**params, "limit": limit, "offset": offset})

        paginator = Paginator(
            fetch_page,
            page_size=self.pagination.market_page_size,
            max_records=max_records,
            max_concurrency=self.pagination.max_concurrency,
            max_consecutive_empty=self.pagination.max_consecutive_empty,
            on_page=on_page,
        )
        items = await paginator.fetch_all()
        return self._parse_records(items, self._parse_market, "market")

    async def fetch_active_markets(
        self,
        on_page: Optional[ProgressCallback] = None,
    ) -> list[MarketRecord]:
        """Fetch every open market from the Gamma API."""
        markets = await self._fetch_markets({"active": "true", "closed": "false"}, on_page=on_page)
        logger.info(f"Fetched {len(markets)} active markets")
        return markets

    async def fetch_resolved_markets(
        self,
        max_records: Optional[int] = None,
        on_page: Optional[ProgressCallback] = None,
    ) -> list[MarketRecord]:
        """Fetch closed markets from the Gamma API. The cap counts raw rows, see fetch_trades."""
        markets = await self._fetch_markets(
            {"closed": "true"},
            max_records=max_records if max_records is not None else self.pagination.max_resolved_markets,
            on_page=on_page,
        )
        logger.info(f"Fetched {len(markets)} resolved markets")
        return markets

    async def fetch_trades(
        self,
        user: Optional[str] = None,
        max_records: Optional[int] = None,
        on_page: Optional[ProgressCallback] = None,
    ) -> list[TradeEvent]:
        """
        Fetch trades from the Data API, optionally for a single wallet.

        max_records caps the raw rows fetched. Malformed rows are dropped
        after the cap is applied, so the result may hold fewer trades than
        max_records even when more exist upstream. End of data is judged on
        raw page length.
        """
        params = {}
        if user:
            params["user"] = user

        async def fetch_page(offset: int, limit: int):
            return await self.get("/trades", params={**params, "limit": limit, "offset": offset})

        if max_records is None and user:
            max_records = self.pagination.max_trades_per_wallet

        paginator = Paginator(
            fetch_page,
            page_size=self.pagination.trade_page_size,
            max_records=max_records,
            max_concurrency=self.pagination.max_concurrency,
            max_consecutive_empty=self.pagination.max_consecutive_empty,
            on_page=on_page,
        )
        items = await paginator.fetch_all()
        trades = self._parse_records(items, self._parse_trade, "trade")
        logger.info(f"Fetched {len(trades)} trades" + (f" for {user}" if user else ""))
        return trades
