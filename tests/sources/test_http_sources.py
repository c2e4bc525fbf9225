"""Tests for the upstream HTTP clients."""

import socket
from typing import Any
from unittest.mock import MagicMock, patch
from urllib.error import HTTPError, URLError
from urllib.parse import parse_qs, urlparse

import orjson
import pytest

from updown_app.errors import MalformedDataError, UpstreamUnavailableError
from updown_app.sources.base import BaseHttpSource
from updown_app.sources.binance import BinanceSource
from updown_app.sources.polymarket import ClobSource, GammaSource


def _response(body: Any, status: int = 200) -> MagicMock:
    """Fake urlopen response usable as a context manager."""
    response = MagicMock()
    response.__enter__.return_value = response
    response.getcode.return_value = status
    response.read.return_value = body if isinstance(body, bytes) else orjson.dumps(body)
    return response


def _query(mock_urlopen: MagicMock) -> dict:
    request = mock_urlopen.call_args[0][0]
    return {k: v[0] for k, v in parse_qs(urlparse(request.full_url).query).items()}


class TestBaseHttpSource:
    """Test the shared GET client."""

    def test_invalid_base_url(self) -> None:
        """A base URL without scheme or host is rejected."""
        with pytest.raises(ValueError):
            BaseHttpSource("bad", "not-a-url")

    def test_build_url_skips_none(self) -> None:
        """None-valued parameters are left out of the query."""
        source = BaseHttpSource("test", "https://example.com/")
        assert source.build_url("/path", {"a": 1, "b": None}) == "https://example.com/path?a=1"
        assert source.build_url("path") == "https://example.com/path"

    def test_get_json(self) -> None:
        """A 200 response is parsed with its timeout applied."""
        source = BaseHttpSource("test", "https://example.com", timeout_seconds=3.0)
        with patch("updown_app.sources.base.urlopen", return_value=_response({"ok": True})) as mock_urlopen:
            assert source._get_json("/x") == {"ok": True}
        assert mock_urlopen.call_args[1]["timeout"] == 3.0

    def test_http_error(self) -> None:
        """HTTP errors become UpstreamUnavailableError with the status."""
        source = BaseHttpSource("test", "https://example.com")
        error = HTTPError("https://example.com/x", 503, "Service Unavailable", {}, None)
        with patch("updown_app.sources.base.urlopen", side_effect=error):
            with pytest.raises(UpstreamUnavailableError) as exc_info:
                source._get_json("/x")
        assert exc_info.value.status_code == 503
        assert exc_info.value.source == "test"

    @pytest.mark.parametrize("error", [URLError("refused"), socket.timeout("timed out"), ConnectionResetError()])
    def test_network_errors(self, error) -> None:
        """Network failures become UpstreamUnavailableError."""
        source = BaseHttpSource("test", "https://example.com")
        with patch("updown_app.sources.base.urlopen", side_effect=error):
            with pytest.raises(UpstreamUnavailableError):
                source._get_json("/x")

    def test_non_success_status(self) -> None:
        """Non-2xx responses that did not raise are still failures."""
        source = BaseHttpSource("test", "https://example.com")
        with patch("updown_app.sources.base.urlopen", return_value=_response({}, status=302)):
            with pytest.raises(UpstreamUnavailableError):
                source._get_json("/x")

    def test_malformed_body(self) -> None:
        """Non-JSON bodies raise MalformedDataError."""
        source = BaseHttpSource("test", "https://example.com")
        with patch("updown_app.sources.base.urlopen", return_value=_response(b"<html>")):
            with pytest.raises(MalformedDataError):
                source._get_json("/x")

    def test_safe_get_json_counts_errors(self) -> None:
        """Failures are swallowed into None and counted."""
        source = BaseHttpSource("test", "https://example.com")
        with patch("updown_app.sources.base.urlopen", side_effect=URLError("down")):
            assert source._safe_get_json("/x") is None
        with patch("updown_app.sources.base.urlopen", return_value=_response(b"{")):
            assert source._safe_get_json("/x") is None

        stats = source.get_stats()
        assert stats["request_count"] == 2
        assert stats["error_count"] == 2
        assert stats["success_rate"] == 0.0

        source.reset_stats()
        assert source.get_stats()["request_count"] == 0


class TestBinanceSource:
    """Test the spot price client."""

    def test_fetch_spot_price(self) -> None:
        """The ticker price is parsed for the configured symbol."""
        source = BinanceSource()
        with patch("updown_app.sources.base.urlopen",
                   return_value=_response({"symbol": "BTCUSDT", "price": "67000.12"})) as mock_urlopen:
            assert source.fetch_spot_price() == 67000.12
        assert _query(mock_urlopen) == {"symbol": "BTCUSDT"}

    def test_fetch_spot_price_unavailable(self) -> None:
        """An outage yields None."""
        with patch("updown_app.sources.base.urlopen", side_effect=URLError("down")):
            assert BinanceSource().fetch_spot_price() is None

    def test_fetch_klines(self, raw_kline_rows, window_start) -> None:
        """Klines are requested for the window and parsed."""
        source = BinanceSource()
        with patch("updown_app.sources.base.urlopen", return_value=_response(raw_kline_rows)) as mock_urlopen:
            klines = source.fetch_klines(start_ms=window_start, end_ms=window_start + 3000)

        assert len(klines) == 3
        assert _query(mock_urlopen) == {
            "symbol": "BTCUSDT",
            "interval": "1s",
            "limit": "1000",
            "startTime": str(window_start),
            "endTime": str(window_start + 3000),
        }

    def test_fetch_klines_unavailable(self) -> None:
        """An outage yields no bars."""
        with patch("updown_app.sources.base.urlopen", side_effect=URLError("down")):
            assert BinanceSource().fetch_klines() == []


class TestGammaSource:
    """Test the market listing client."""

    def test_fetch_markets(self, raw_gamma_events) -> None:
        """Events are flattened into markets for the configured series."""
        source = GammaSource()
        with patch("updown_app.sources.base.urlopen", return_value=_response(raw_gamma_events)) as mock_urlopen:
            markets = source.fetch_markets()

        assert [m.slug for m in markets] == ["btc-updown-15m-1704067200", "btc-updown-15m-1704068100"]
        query = _query(mock_urlopen)
        assert query["series_id"] == "10192"
        assert query["active"] == "true"
        assert query["closed"] == "false"

    def test_unavailable_is_none(self) -> None:
        """A failed fetch is distinguishable from an empty listing."""
        with patch("updown_app.sources.base.urlopen", side_effect=URLError("down")):
            assert GammaSource().fetch_markets() is None

    def test_unexpected_payload_is_empty(self) -> None:
        """A non-list payload is an empty listing."""
        with patch("updown_app.sources.base.urlopen", return_value=_response({"error": "x"})):
            assert GammaSource().fetch_markets() == []


class TestClobSource:
    """Test the outcome price client."""

    def test_fetch_price(self) -> None:
        """Token prices are requested on the buy side."""
        source = ClobSource()
        with patch("updown_app.sources.base.urlopen", return_value=_response({"price": "0.515"})) as mock_urlopen:
            assert source.fetch_price("111") == 0.515
        assert _query(mock_urlopen) == {"token_id": "111", "side": "buy"}

    def test_fetch_price_out_of_range(self) -> None:
        """Prices outside [0, 1] are rejected."""
        with patch("updown_app.sources.base.urlopen", return_value=_response({"price": "1.5"})):
            assert ClobSource().fetch_price("111") is None

    def test_fetch_price_without_token(self) -> None:
        """No token id means no request."""
        with patch("updown_app.sources.base.urlopen") as mock_urlopen:
            assert ClobSource().fetch_price(None) is None
        mock_urlopen.assert_not_called()

    def test_fetch_price_history(self, window_start) -> None:
        """History is requested in seconds and returned in milliseconds."""
        payload = {"history": [{"t": window_start // 1000, "p": 0.5}, {"t": window_start // 1000 + 60, "p": 0.52}]}
        source = ClobSource()
        with patch("updown_app.sources.base.urlopen", return_value=_response(payload)) as mock_urlopen:
            samples = source.fetch_price_history("111", window_start, window_start + 120_000)

        assert [s.ts for s in samples] == [window_start, window_start + 60_000]
        query = _query(mock_urlopen)
        assert query["market"] == "111"
        assert query["startTs"] == str(window_start // 1000)
        assert query["endTs"] == str((window_start + 120_000) // 1000)
        assert query["fidelity"] == "1"

    def test_fetch_price_history_unavailable(self, window_start) -> None:
        """An outage yields an empty history."""
        with patch("updown_app.sources.base.urlopen", side_effect=URLError("down")):
            assert ClobSource().fetch_price_history("111", window_start, window_start + 1) == []
