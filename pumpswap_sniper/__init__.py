"""PumpSwap sniper bot: watches a mint's activity and trades on it."""

__version__ = "0.1.0"
