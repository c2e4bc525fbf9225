"""
Data ingestion and normalization module.

Canonical market data models and the total parsers that turn raw Gamma, CLOB
and Binance payloads into them.
"""
