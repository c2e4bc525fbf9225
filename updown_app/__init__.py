"""
UpDown App - Prediction Market Window Monitor

Polls a spot-price feed and a Polymarket Up/Down series, selects the market
for the current fixed-duration window, anchors the price to beat, aligns the
two price series onto one timeline and derives volatility indicators.
"""

__version__ = "0.1.0"
__author__ = "UpDown Team"
