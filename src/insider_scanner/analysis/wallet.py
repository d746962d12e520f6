"""
Wallet performance analysis.
"""

import logging
from typing import Optional, Sequence

from ..config import DetectionConfig, get_config
from ..models import MarketRecord, PerformanceSummary, TradeEvent
from .performance import PerformanceAggregator
from .positions import PositionBuilder
from .resolution import ResolutionMatcher

logger = logging.getLogger(__name__)


class WalletAnalyzer:
    """Analyze a wallet's trades against resolved markets."""

    def __init__(self, config: Optional[DetectionConfig] = None):
        self.config = config or get_config().detection
        self.builder = PositionBuilder(self.config)
        self.matcher = ResolutionMatcher(self.config)
        self.aggregator = PerformanceAggregator()

    def analyze(
        self,
        trades: Sequence[TradeEvent],
        resolved_markets: Sequence[MarketRecord],
    ) -> PerformanceSummary:
        """Build positions, resolve them, and summarize the result."""
        if not trades:
            return PerformanceSummary()

        wallet_address = trades[0].proxy_wallet

        positions = self.builder.build(trades)
        resolved = self.matcher.match(positions, resolved_markets)

        logger.debug(
            f"{wallet_address}: {len(trades)} trades, {len(positions)} open positions, "
            f"{len(resolved)} resolved"
        )

        return self.aggregator.summarize(wallet_address, trades, resolved)
