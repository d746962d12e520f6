"""
Core data models for the insider scanner.
"""

import json
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Optional


class TradeSide(Enum):
    BUY = "BUY"
    SELL = "SELL"


def parse_outcome_prices(raw) -> Optional[tuple[float, float]]:
    """
    Decode an encoded outcome-price pair.

    Gamma serializes prices as a JSON array inside a string, e.g.
    '["0.0125", "0.9875"]'. Elements may be strings or numbers. Returns
    None unless the array holds exactly two numeric values.
    """
    if raw is None:
        return None

    values = raw
    if isinstance(raw, str):
        try:
            values = json.loads(raw)
        except ValueError:
            return None

    if not isinstance(values, list) or len(values) != 2:
        return None

    prices = []
    for value in values:
        if isinstance(value, bool):
            return None
        try:
            prices.append(float(value))
        except (TypeError, ValueError):
            return None

    return prices[0], prices[1]


@dataclass
class MarketRecord:
    """A market as returned by the Gamma API."""
    question: str
    condition_id: Optional[str] = None
    outcome_prices: Optional[str] = None  # JSON array encoded as a string
    volume: Decimal = Decimal("0")
    liquidity: Decimal = Decimal("0")
    closed: Optional[bool] = None
    slug: str = ""

    @property
    def binary_prices(self) -> Optional[tuple[float, float]]:
        """(YES, NO) prices, or None if the market is not binary and priced."""
        return parse_outcome_prices(self.outcome_prices)

    @property
    def is_binary_priced(self) -> bool:
        return self.binary_prices is not None


@dataclass
class TradeEvent:
    """A single fill from the public trade log."""
    proxy_wallet: str
    side: str  # "BUY" or "SELL"; anything else is ignored downstream
    condition_id: str
    size: Decimal
    price: Decimal
    timestamp: int  # Unix seconds
    outcome_index: int  # 0 or 1 for binary markets
    title: Optional[str] = None
    name: Optional[str] = None


@dataclass
class Position:
    """Net holding of one wallet in one (market, outcome)."""
    condition_id: str
    outcome_index: int
    net_shares: Decimal = Decimal("0")
    avg_price: Decimal = Decimal("0")
    capital_allocated: Decimal = Decimal("0")
    market_title: str = "Unknown"


@dataclass
class ResolvedPosition:
    """A position in a market whose winner is known."""
    condition_id: str
    market_title: str
    bet_outcome_index: int
    winning_outcome_index: int
    net_shares: Decimal
    avg_price: Decimal
    capital_allocated: Decimal
    payout: Decimal
    profit: Decimal

    @property
    def won(self) -> bool:
        return self.bet_outcome_index == self.winning_outcome_index


@dataclass
class PerformanceSummary:
    """Aggregate performance of one wallet over its resolved positions."""
    wallet_address: str = ""

    # Activity
    total_trades: int = 0
    total_markets: int = 0
    resolved_positions: int = 0

    # Win/loss record
    wins: int = 0
    losses: int = 0
    win_rate: float = 0.0  # percent

    # Financials
    capital_allocated: Decimal = Decimal("0")
    total_payout: Decimal = Decimal("0")
    net_profit: Decimal = Decimal("0")
    roi: float = 0.0  # percent
    avg_profit_per_win: Decimal = Decimal("0")
    avg_loss_per_loss: Decimal = Decimal("0")


@dataclass
class ArbitrageOpportunity:
    """A binary market whose YES + NO prices sum below the threshold."""
    question: str
    yes_price: float
    no_price: float
    total_cost: float
    profit_per_dollar: float
    profit_percent: float
    volume: float
    liquidity: float

    @classmethod
    def from_market(cls, market: MarketRecord, yes_price: float, no_price: float) -> "ArbitrageOpportunity":
        total_cost = yes_price + no_price
        profit_per_dollar = 1.0 - total_cost
        profit_percent = (profit_per_dollar / total_cost) * 100 if total_cost > 0 else 0.0

        return cls(
            question=market.question,
            yes_price=yes_price,
            no_price=no_price,
            total_cost=total_cost,
            profit_per_dollar=profit_per_dollar,
            profit_percent=profit_percent,
            volume=float(market.volume),
            liquidity=float(market.liquidity),
        )


@dataclass
class WalletReport:
    """Outcome of scanning a single wallet."""
    wallet_address: str
    summary: Optional[PerformanceSummary] = None
    suspicious: bool = False
    flags: list[str] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def analyzed(self) -> bool:
        return self.summary is not None and self.error is None
