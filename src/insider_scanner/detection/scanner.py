"""
Scan many wallets for insider-like trading performance.
"""

import asyncio
import logging
from collections import Counter
from typing import Callable, Optional, Sequence

from ..analysis.wallet import WalletAnalyzer
from ..clients.base import BaseClient
from ..clients.paginator import PaginationError
from ..config import ScanConfig, get_config
from ..models import MarketRecord, WalletReport
from .classifier import AnomalyClassifier

logger = logging.getLogger(__name__)

# (report, position in the batch starting at 1, batch size)
WalletCallback = Callable[[WalletReport, int, int], None]


class WalletScanner:
    """
    Find active wallets and screen them for suspicious performance.

    Resolved markets are fetched once per batch and shared by every
    wallet's analysis.
    """

    def __init__(
        self,
        client: BaseClient,
        analyzer: Optional[WalletAnalyzer] = None,
        classifier: Optional[AnomalyClassifier] = None,
        config: Optional[ScanConfig] = None,
    ):
        self.client = client
        self.analyzer = analyzer or WalletAnalyzer()
        self.classifier = classifier or AnomalyClassifier()
        self.config = config or get_config().scan

    async def find_active_wallets(
        self,
        sample_size: Optional[int] = None,
        limit: Optional[int] = None,
        on_page=None,
    ) -> list[str]:
        """Sample recent trades and return the wallets that trade the most."""
        sample_size = sample_size or self.config.wallet_sample_size
        limit = limit or self.config.top_wallets

        logger.info(f"Sampling up to {sample_size} recent trades to find active wallets")
        trades = await self.client.fetch_trades(max_records=sample_size, on_page=on_page)

        counts = Counter(t.proxy_wallet for t in trades)
        wallets = [wallet for wallet, _ in counts.most_common(limit)]

        logger.info(f"Found {len(wallets)} active wallets in {len(trades)} trades")
        return wallets

    async def scan_wallet(
        self,
        wallet_address: str,
        resolved_markets: Sequence[MarketRecord],
    ) -> WalletReport:
        """Fetch, analyze and classify a single wallet."""
        try:
            trades = await self.client.fetch_trades(user=wallet_address)
        except PaginationError as e:
            logger.warning(f"Could not fetch trades for {wallet_address}: {e}")
            return WalletReport(wallet_address=wallet_address, error=str(e))

        if not trades:
            return WalletReport(wallet_address=wallet_address, error="No trades found")

        summary = self.analyzer.analyze(trades, resolved_markets)
        summary.wallet_address = wallet_address
        report = WalletReport(wallet_address=wallet_address, summary=summary)

        if summary.resolved_positions < self.config.min_resolved_for_report:
            report.flags = [f"Insufficient data ({summary.resolved_positions} resolved positions)"]
            return report

        report.suspicious, report.flags = self.classifier.classify(summary)
        return report

    async def scan_for_insiders(
        self,
        wallet_addresses: Sequence[str],
        resolved_markets: Optional[Sequence[MarketRecord]] = None,
        on_wallet: Optional[WalletCallback] = None,
    ) -> list[WalletReport]:
        """
        Scan wallets for insider patterns.

        Suspicious wallets come first in the result, highest win rate
        first. A wallet whose trades cannot be fetched is reported with its
        error and does not stop the batch.
        """
        if not wallet_addresses:
            return []

        if resolved_markets is None:
            logger.info("Loading resolved markets")
            resolved_markets = await self.client.fetch_resolved_markets()

        semaphore = asyncio.Semaphore(self.config.wallet_concurrency)
        total = len(wallet_addresses)
        done = 0

        async def process_wallet(wallet: str) -> WalletReport:
            nonlocal done
            async with semaphore:
                report = await self.scan_wallet(wallet, resolved_markets)
            done += 1
            if on_wallet:
                on_wallet(report, done, total)
            return report

        logger.info(f"Scanning {total} wallets (concurrency={self.config.wallet_concurrency})")
        reports = await asyncio.gather(*[process_wallet(w) for w in wallet_addresses])

        suspicious = sum(1 for r in reports if r.suspicious)
        logger.info(f"Scan complete: {suspicious} of {total} wallets flagged")

        return sorted(
            reports,
            key=lambda r: (not r.suspicious, -(r.summary.win_rate if r.summary else 0.0)),
        )
