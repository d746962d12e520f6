"""
Analysis modules for position reconstruction and wallet performance.
"""

from .performance import PerformanceAggregator
from .positions import PositionBuilder
from .resolution import ResolutionMatcher, winning_outcome
from .wallet import WalletAnalyzer

__all__ = [
    "PerformanceAggregator",
    "PositionBuilder",
    "ResolutionMatcher",
    "WalletAnalyzer",
    "winning_outcome",
]
