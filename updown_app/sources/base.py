"""Base HTTP client for upstream market data APIs."""

import socket
from typing import Any, Optional
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode, urlparse
from urllib.request import Request, urlopen

import structlog

from ..data.parsers import parse_json_payload
from ..errors import MalformedDataError, UpstreamUnavailableError


class BaseHttpSource:
    """
    Minimal JSON-over-HTTP GET client.

    _get_json raises UpstreamUnavailableError or MalformedDataError; the
    public fetch methods of subclasses catch both through _safe_get_json and
    hand None to the caller instead.
    """

    def __init__(self, name: str, base_url: str, timeout_seconds: float = 10.0):
        parsed = urlparse(base_url)
        if not parsed.scheme or not parsed.netloc:
            raise ValueError(f"Invalid base URL: {base_url}")

        self.name = name
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.logger = structlog.get_logger(f"source.{name}")
        self._request_count = 0
        self._error_count = 0

    def build_url(self, path: str, params: Optional[dict[str, Any]] = None) -> str:
        """Join path and query parameters onto the base URL, skipping None values."""
        url = f"{self.base_url}/{path.lstrip('/')}"
        if params:
            query = urlencode({k: v for k, v in params.items() if v is not None})
            if query:
                url = f"{url}?{query}"
        return url

    def _get_json(self, path: str, params: Optional[dict[str, Any]] = None) -> Any:
        """
        GET a JSON document.

        Raises:
            UpstreamUnavailableError: On network failure or non-2xx status
            MalformedDataError: If the body is not JSON
        """
        url = self.build_url(path, params)
        self._request_count += 1

        req = Request(url, headers={
            "Accept": "application/json",
            "User-Agent": "updown-app/1.0",
        }, method="GET")

        try:
            with urlopen(req, timeout=self.timeout_seconds) as response:
                status = response.getcode()
                body = response.read()
        except HTTPError as e:
            raise UpstreamUnavailableError(
                f"HTTP {e.code}: {e.reason}",
                status_code=e.code,
                url=url,
                source=self.name,
            )
        except (OSError, URLError, socket.timeout) as e:
            raise UpstreamUnavailableError(
                f"Network error: {e}",
                url=url,
                source=self.name,
            )

        if not 200 <= status < 300:
            raise UpstreamUnavailableError(
                f"HTTP {status}",
                status_code=status,
                url=url,
                source=self.name,
            )

        return parse_json_payload(body)

    def _safe_get_json(self, path: str, params: Optional[dict[str, Any]] = None) -> Optional[Any]:
        """GET a JSON document, returning None on any upstream or payload failure."""
        try:
            return self._get_json(path, params)
        except UpstreamUnavailableError as e:
            self._error_count += 1
            self.logger.warning(
                "Upstream unavailable",
                source=self.name,
                path=path,
                status_code=e.status_code,
                error=str(e),
            )
        except MalformedDataError as e:
            self._error_count += 1
            self.logger.warning(
                "Malformed upstream payload",
                source=self.name,
                path=path,
                error=str(e),
            )
        return None

    def get_stats(self) -> dict[str, Any]:
        """Get request statistics."""
        return {
            "name": self.name,
            "request_count": self._request_count,
            "error_count": self._error_count,
            "success_rate": (
                (self._request_count - self._error_count) / self._request_count
                if self._request_count > 0 else 0.0
            )
        }

    def reset_stats(self) -> None:
        """Reset request statistics."""
        self._request_count = 0
        self._error_count = 0
