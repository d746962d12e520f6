"""
Pytest fixtures for the insider scanner tests.

Only network I/O is faked; the paginator, position engine and classifier
run for real.
"""
import json
from decimal import Decimal
from typing import Optional

import pytest

from insider_scanner.clients.paginator import PaginationError
from insider_scanner.config import Config, set_config
from insider_scanner.models import MarketRecord, TradeEvent


@pytest.fixture(autouse=True)
def default_config():
    """Use built-in defaults instead of the environment."""
    config = Config()
    set_config(config)
    yield config
    set_config(Config())


@pytest.fixture
def trade_factory():
    """Build TradeEvents with sensible defaults."""
    counter = {"ts": 1_700_000_000}

    def make(
        side: str = "BUY",
        size="100",
        price="0.40",
        condition_id: str = "0xcond1",
        outcome_index: int = 0,
        wallet: str = "0xwallet",
        timestamp: Optional[int] = None,
        title: Optional[str] = None,
    ) -> TradeEvent:
        if timestamp is None:
            counter["ts"] += 60
            timestamp = counter["ts"]
        return TradeEvent(
            proxy_wallet=wallet,
            side=side,
            condition_id=condition_id,
            size=Decimal(str(size)),
            price=Decimal(str(price)),
            timestamp=timestamp,
            outcome_index=outcome_index,
            title=title,
        )

    return make


@pytest.fixture
def market_factory():
    """Build MarketRecords; winner=0/1 settles that outcome at 1.0."""
    def make(
        condition_id: Optional[str] = "0xcond1",
        winner: Optional[int] = 0,
        prices: Optional[str] = None,
        question: str = "Will it happen?",
        volume: str = "0",
        liquidity: str = "0",
    ) -> MarketRecord:
        if prices is None and winner is not None:
            prices = json.dumps(["1", "0"] if winner == 0 else ["0", "1"])
        return MarketRecord(
            question=question,
            condition_id=condition_id,
            outcome_prices=prices,
            volume=Decimal(volume),
            liquidity=Decimal(liquidity),
            closed=True,
        )

    return make


class FakeClient:
    """In-memory stand-in for PolymarketClient."""

    def __init__(
        self,
        trades_by_wallet: dict,
        resolved_markets: list,
        recent_trades: Optional[list] = None,
        failing_wallets: Optional[set] = None,
    ):
        self.trades_by_wallet = trades_by_wallet
        self.resolved_markets = resolved_markets
        self.recent_trades = recent_trades or []
        self.failing_wallets = failing_wallets or set()
        self.resolved_fetches = 0
        self.trade_requests: list = []

    async def fetch_active_markets(self, on_page=None):
        return []

    async def fetch_resolved_markets(self, max_records=None, on_page=None):
        self.resolved_fetches += 1
        return list(self.resolved_markets)

    async def fetch_trades(self, user=None, max_records=None, on_page=None):
        self.trade_requests.append((user, max_records))
        if user is None:
            trades = list(self.recent_trades)
            return trades[:max_records] if max_records is not None else trades
        if user in self.failing_wallets:
            raise PaginationError(0, "Failed to fetch first page: 503")
        return list(self.trades_by_wallet.get(user, []))


@pytest.fixture
def fake_client_class():
    return FakeClient
