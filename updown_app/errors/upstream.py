"""
Upstream failure classifications for external market data sources.

Raised inside the HTTP clients and caught at the client boundary, where the
affected field becomes None for the current tick.
"""

from typing import Optional, Dict, Any


class UpstreamError(Exception):
    """Base class for failures talking to an external data source."""

    def __init__(self, message: str, source: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.source = source
        self.context = context or {}
        self.recoverable = True


class UpstreamUnavailableError(UpstreamError):
    """Fetch failed at the network level or returned a non-success status."""

    def __init__(self, message: str, status_code: Optional[int] = None,
                 url: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.status_code = status_code
        self.url = url
