"""
Insider Scanner for Polymarket

Fetches markets and trades from the Polymarket APIs, rebuilds each wallet's
positions, scores them against resolved outcomes, and flags wallets whose
performance looks too good to be luck.
"""

__version__ = "0.1.0"
