"""
Payload defects found while decoding Gamma, CLOB and Binance responses.

Each of them degrades to "value unknown" for the current tick.
"""

from typing import Any, Optional


class DataQualityError(Exception):
    """A payload could not be used as delivered; the tick continues without it."""

    def __init__(self, message: str, context: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}
        self.recoverable = True


class MalformedDataError(DataQualityError):
    """Body or field present but not in the expected format."""

    def __init__(self, message: str, raw_data: Optional[str] = None,
                 expected_format: Optional[str] = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.raw_data = raw_data
        self.expected_format = expected_format
