"""Metrics calculation engine for technical analysis indicators"""

from .atr import ATRCalculator, calculate_atr, calculate_atr_bands, calculate_true_range
from .calculator import IndicatorCalculator
from .momentum import MACDResult, calculate_ema, calculate_macd, calculate_rsi
from .vwap import calculate_vwap, calculate_vwap_distance

__all__ = [
    "ATRCalculator",
    "IndicatorCalculator",
    "MACDResult",
    "calculate_atr",
    "calculate_atr_bands",
    "calculate_ema",
    "calculate_macd",
    "calculate_rsi",
    "calculate_true_range",
    "calculate_vwap",
    "calculate_vwap_distance",
]
