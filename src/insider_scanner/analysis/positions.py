"""
Rebuild net positions from a wallet's trade log.
"""

import logging
from decimal import Decimal
from typing import Iterable, Optional

from ..config import DetectionConfig, get_config
from ..models import Position, TradeEvent, TradeSide

logger = logging.getLogger(__name__)


class PositionBuilder:
    """
    Fold trades into one Position per (condition id, outcome index).

    Cost basis is a weighted average: buys blend into it, sells reduce
    capital at the carried average price without touching the average. A
    position whose share count drops to zero or below is flat, its capital
    and average price reset to zero.
    """

    def __init__(self, config: Optional[DetectionConfig] = None):
        self.config = config or get_config().detection
        self.epsilon = Decimal(str(self.config.closed_position_epsilon))

    def apply(self, position: Position, trade: TradeEvent) -> None:
        """Apply a single trade to a position in place."""
        if trade.side == TradeSide.BUY.value:
            new_shares = position.net_shares + trade.size
            new_capital = position.capital_allocated + trade.size * trade.price

            position.net_shares = new_shares
            if new_shares > 0:
                position.capital_allocated = new_capital
                position.avg_price = new_capital / new_shares
            else:
                # Still flat after buying back into an oversold position
                position.capital_allocated = Decimal("0")
                position.avg_price = Decimal("0")

        elif trade.side == TradeSide.SELL.value:
            position.net_shares -= trade.size
            if position.net_shares > 0:
                position.capital_allocated -= trade.size * position.avg_price
            else:
                position.capital_allocated = Decimal("0")
                position.avg_price = Decimal("0")

        else:
            logger.debug(f"Ignoring trade with unknown side {trade.side!r}")

    def build(self, trades: Iterable[TradeEvent]) -> list[Position]:
        """Build open positions from trades, in timestamp order."""
        positions: dict[tuple[str, int], Position] = {}

        # Replay oldest first, ties keep their fetched order
        for trade in sorted(trades, key=lambda t: t.timestamp):
            key = (trade.condition_id, trade.outcome_index)
            position = positions.get(key)
            if position is None:
                position = Position(
                    condition_id=trade.condition_id,
                    outcome_index=trade.outcome_index,
                    market_title=trade.title or "Unknown",
                )
                positions[key] = position

            self.apply(position, trade)

        return [p for p in positions.values() if abs(p.net_shares) > self.epsilon]
