"""
Configuration management for the insider scanner.
"""

import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv


@dataclass
class PolymarketConfig:
    """Configuration for the Polymarket APIs."""
    # Gamma serves market metadata, the Data API serves the public trade log
    gamma_api_url: str = "https://gamma-api.polymarket.com"
    data_api_url: str = "https://data-api.polymarket.com"

    # Rate limiting (0 disables the limiter)
    requests_per_second: int = 20

    timeout_seconds: float = 30.0


@dataclass
class PaginationConfig:
    """Configuration for offset-based paginated fetches."""
    market_page_size: int = 500
    trade_page_size: int = 500

    # Worker pool bound, keeps us under the upstream rate limits
    max_concurrency: int = 10

    # Halt a scan after this many empty or failed pages in a row
    max_consecutive_empty: int = 10

    # Optional record caps (None = fetch everything)
    max_resolved_markets: Optional[int] = None
    max_trades_per_wallet: Optional[int] = None


@dataclass
class DetectionConfig:
    """Thresholds for position resolution and anomaly classification."""

    # Sample size
    min_resolved_positions: int = 10

    # Win rate thresholds (percent)
    extreme_win_rate: float = 75.0
    elevated_win_rate: float = 65.0

    # ROI thresholds
    high_roi: float = 50.0  # percent
    high_roi_min_capital: float = 1000.0  # USD

    # Sustained outperformance
    sustained_min_wins: int = 15
    sustained_win_rate: float = 70.0

    # Asymmetric payoff
    asymmetric_payoff_ratio: float = 2.0
    asymmetric_min_wins: int = 10

    # Settlement price above which an outcome is the winner
    winner_price_threshold: float = 0.9

    # Positions with |net shares| at or below this are closed
    closed_position_epsilon: float = 0.001


@dataclass
class ScanConfig:
    """Configuration for market and wallet scans."""
    # YES + NO below this is an arbitrage (leaves room for ~1% fees)
    arbitrage_threshold: float = 0.99

    # Active wallet discovery
    wallet_sample_size: int = 5000
    top_wallets: int = 50

    # Wallets with fewer resolved positions are not reported
    min_resolved_for_report: int = 5

    # Wallets analyzed in parallel during a batch scan
    wallet_concurrency: int = 5


@dataclass
class Config:
    """Main configuration container."""
    polymarket: PolymarketConfig = field(default_factory=PolymarketConfig)
    pagination: PaginationConfig = field(default_factory=PaginationConfig)
    detection: DetectionConfig = field(default_factory=DetectionConfig)
    scan: ScanConfig = field(default_factory=ScanConfig)

    # Global settings
    debug: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        load_dotenv()

        config = cls()

        # API endpoints
        config.polymarket.gamma_api_url = os.getenv(
            "POLYMARKET_GAMMA_API_URL", config.polymarket.gamma_api_url
        )
        config.polymarket.data_api_url = os.getenv(
            "POLYMARKET_DATA_API_URL", config.polymarket.data_api_url
        )
        rps = os.getenv("POLYMARKET_REQUESTS_PER_SECOND")
        if rps:
            config.polymarket.requests_per_second = int(rps)

        # Pagination
        concurrency = os.getenv("PAGINATION_MAX_CONCURRENCY")
        if concurrency:
            config.pagination.max_concurrency = int(concurrency)

        page_size = os.getenv("PAGINATION_PAGE_SIZE")
        if page_size:
            config.pagination.market_page_size = int(page_size)
            config.pagination.trade_page_size = int(page_size)

        max_markets = os.getenv("MAX_RESOLVED_MARKETS")
        if max_markets:
            config.pagination.max_resolved_markets = int(max_markets)

        # Scanning
        threshold = os.getenv("ARBITRAGE_THRESHOLD")
        if threshold:
            config.scan.arbitrage_threshold = float(threshold)

        # Debug mode
        config.debug = os.getenv("DEBUG", "false").lower() == "true"
        config.log_level = os.getenv("LOG_LEVEL", "INFO")

        return config


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config.from_env()
    return _config


def set_config(config: Config) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config
