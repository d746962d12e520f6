"""
Performance statistics over resolved positions.
"""

from decimal import Decimal
from typing import Sequence

from ..models import PerformanceSummary, ResolvedPosition, TradeEvent


class PerformanceAggregator:
    """Reduce resolved positions into a PerformanceSummary."""

    def summarize(
        self,
        wallet_address: str,
        trades: Sequence[TradeEvent],
        resolved_positions: Sequence[ResolvedPosition],
    ) -> PerformanceSummary:
        resolved_count = len(resolved_positions)
        winners = [p for p in resolved_positions if p.won]
        losers = [p for p in resolved_positions if not p.won]

        win_rate = (len(winners) / resolved_count) * 100 if resolved_count > 0 else 0.0

        capital = sum((p.capital_allocated for p in resolved_positions), Decimal("0"))
        payout = sum((p.payout for p in resolved_positions), Decimal("0"))
        net_profit = payout - capital

        roi = float(net_profit / capital) * 100 if capital > 0 else 0.0

        avg_win = Decimal("0")
        if winners:
            avg_win = sum((p.profit for p in winners), Decimal("0")) / len(winners)

        avg_loss = Decimal("0")
        if losers:
            avg_loss = sum((p.profit for p in losers), Decimal("0")) / len(losers)

        return PerformanceSummary(
            wallet_address=wallet_address,
            total_trades=len(trades),
            total_markets=len({t.condition_id for t in trades}),
            resolved_positions=resolved_count,
            wins=len(winners),
            losses=len(losers),
            win_rate=win_rate,
            capital_allocated=capital,
            total_payout=payout,
            net_profit=net_profit,
            roi=roi,
            avg_profit_per_win=avg_win,
            avg_loss_per_loss=avg_loss,
        )
