"""Prediction market selection for the active window"""

from .selector import MarketSelector, partition_markets, resolve_outcome_tokens, select_market

__all__ = [
    "MarketSelector",
    "partition_markets",
    "resolve_outcome_tokens",
    "select_market",
]
