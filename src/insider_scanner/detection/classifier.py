"""
Rule-based classification of wallet performance.

Each rule looks at a PerformanceSummary on its own and either returns a
human-readable reason or nothing. A wallet is flagged when any rule fires;
every firing rule is reported.
"""

import logging
from typing import Callable, Optional

from ..config import DetectionConfig, get_config
from ..models import PerformanceSummary

logger = logging.getLogger(__name__)

Rule = Callable[[PerformanceSummary], Optional[str]]


class AnomalyClassifier:
    """Flag wallets whose results are statistically unlikely."""

    def __init__(self, config: Optional[DetectionConfig] = None):
        self.config = config or get_config().detection
        self.rules: list[Rule] = [
            self._extreme_win_rate,
            self._elevated_win_rate,
            self._high_roi_with_scale,
            self._sustained_outperformance,
            self._asymmetric_payoff,
        ]

    def classify(self, summary: PerformanceSummary) -> tuple[bool, list[str]]:
        """Return (flagged, reasons) for a performance summary."""
        if summary.resolved_positions < self.config.min_resolved_positions:
            return False, [
                f"Insufficient data (less than {self.config.min_resolved_positions} resolved positions)"
            ]

        reasons = []
        for rule in self.rules:
            reason = rule(summary)
            if reason:
                reasons.append(reason)

        if reasons:
            logger.debug(f"{summary.wallet_address or 'wallet'} flagged: {len(reasons)} rules fired")

        return bool(reasons), reasons

    def _extreme_win_rate(self, summary: PerformanceSummary) -> Optional[str]:
        if summary.win_rate > self.config.extreme_win_rate:
            return f"Extremely high win rate: {summary.win_rate:.1f}% (normal is ~50-60%)"
        return None

    def _elevated_win_rate(self, summary: PerformanceSummary) -> Optional[str]:
        # Not reported alongside the extreme rate
        if self.config.elevated_win_rate <= summary.win_rate <= self.config.extreme_win_rate:
            return f"Suspicious win rate: {summary.win_rate:.1f}% (normal is ~50-60%)"
        return None

    def _high_roi_with_scale(self, summary: PerformanceSummary) -> Optional[str]:
        if summary.roi > self.config.high_roi and float(summary.capital_allocated) > self.config.high_roi_min_capital:
            return f"Very high ROI: {summary.roi:.1f}% with ${float(summary.capital_allocated):,.2f} invested"
        return None

    def _sustained_outperformance(self, summary: PerformanceSummary) -> Optional[str]:
        if summary.wins > self.config.sustained_min_wins and summary.win_rate > self.config.sustained_win_rate:
            return (
                f"Consistent high performance: {summary.wins} wins out of "
                f"{summary.resolved_positions} resolved positions"
            )
        return None

    def _asymmetric_payoff(self, summary: PerformanceSummary) -> Optional[str]:
        avg_win = float(summary.avg_profit_per_win)
        avg_loss = float(summary.avg_loss_per_loss)
        if avg_win > abs(avg_loss) * self.config.asymmetric_payoff_ratio and summary.wins > self.config.asymmetric_min_wins:
            return f"Asymmetric profit pattern: avg win ${avg_win:,.2f} vs avg loss ${avg_loss:,.2f}"
        return None
