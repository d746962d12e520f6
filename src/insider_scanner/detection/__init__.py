"""
Insider detection: performance classification and wallet scanning.
"""

from .classifier import AnomalyClassifier
from .scanner import WalletScanner

__all__ = ["AnomalyClassifier", "WalletScanner"]
