"""
Match open positions against resolved markets.
"""

import logging
from decimal import Decimal
from typing import Iterable, Optional

from ..config import DetectionConfig, get_config
from ..models import MarketRecord, Position, ResolvedPosition

logger = logging.getLogger(__name__)


def winning_outcome(market: MarketRecord, threshold: float = 0.9) -> Optional[int]:
    """
    Determine the winning outcome index from settled prices.

    The winner settles near 1.0 and the loser near 0.0. Returns None when
    neither price exceeds the threshold, or when the price pair is missing
    or malformed.
    """
    prices = market.binary_prices
    if prices is None:
        return None

    if prices[0] > threshold:
        return 0
    if prices[1] > threshold:
        return 1
    return None


class ResolutionMatcher:
    """Annotate positions with their market's outcome and payout."""

    def __init__(self, config: Optional[DetectionConfig] = None):
        self.config = config or get_config().detection

    def index_markets(self, markets: Iterable[MarketRecord]) -> dict[str, MarketRecord]:
        """Map condition id -> market, skipping markets without one."""
        return {m.condition_id: m for m in markets if m.condition_id}

    def match(
        self,
        positions: Iterable[Position],
        resolved_markets: Iterable[MarketRecord],
    ) -> list[ResolvedPosition]:
        """
        Resolve positions against markets.

        Positions in markets outside the resolved set, or in markets without
        a clear winner, are dropped.
        """
        markets = self.index_markets(resolved_markets)
        resolved = []

        for position in positions:
            market = markets.get(position.condition_id)
            if market is None:
                continue

            winner = winning_outcome(market, self.config.winner_price_threshold)
            if winner is None:
                logger.debug(f"Market {position.condition_id} has no clear winner, skipping")
                continue

            won = position.outcome_index == winner
            payout = position.net_shares if won else Decimal("0")

            resolved.append(ResolvedPosition(
                condition_id=position.condition_id,
                market_title=market.question,
                bet_outcome_index=position.outcome_index,
                winning_outcome_index=winner,
                net_shares=position.net_shares,
                avg_price=position.avg_price,
                capital_allocated=position.capital_allocated,
                payout=payout,
                profit=payout - position.capital_allocated,
            ))

        return resolved
