"""
Arbitrage detection on binary markets.

Buying one YES and one NO share always pays out $1, so if the two prices
sum to less than $1 (minus fees) the pair is a locked-in profit.
"""

from typing import Iterable, Optional

from .config import get_config
from .models import ArbitrageOpportunity, MarketRecord


class ArbitrageScanner:
    """Scan markets for YES + NO prices below a threshold."""

    def __init__(self, threshold: Optional[float] = None):
        self.threshold = threshold if threshold is not None else get_config().scan.arbitrage_threshold

    def check_market(self, market: MarketRecord) -> Optional[ArbitrageOpportunity]:
        """Check a single market for an arbitrage opportunity."""
        if not market.is_binary_priced:
            return None

        yes_price, no_price = market.binary_prices
        if yes_price + no_price < self.threshold:
            return ArbitrageOpportunity.from_market(market, yes_price, no_price)
        return None

    def scan(self, markets: Iterable[MarketRecord]) -> list[ArbitrageOpportunity]:
        """Return all opportunities, most profitable first."""
        opportunities = []
        for market in markets:
            opportunity = self.check_market(market)
            if opportunity:
                opportunities.append(opportunity)

        opportunities.sort(key=lambda o: o.profit_percent, reverse=True)
        return opportunities
