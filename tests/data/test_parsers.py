"""Tests for upstream payload parsers."""

import math

import pytest

from updown_app.data.parsers import (
    normalize_timestamp_ms,
    parse_json_array,
    parse_json_payload,
    parse_kline_row,
    parse_klines,
    parse_market,
    parse_markets,
    parse_price_history,
    parse_price_to_beat,
    parse_ticker_price,
    parse_time_ms,
    to_float,
    to_probability,
)
from updown_app.errors import MalformedDataError


class TestNumericHelpers:
    """Test scalar conversion helpers."""

    def test_to_float(self) -> None:
        """Numbers and numeric strings convert, everything else is None."""
        assert to_float("42.5") == 42.5
        assert to_float(3) == 3.0
        assert to_float(None) is None
        assert to_float("abc") is None
        assert to_float(True) is None
        assert to_float("nan") is None
        assert to_float(math.inf) is None

    def test_to_probability(self) -> None:
        """Only values in [0, 1] are probabilities."""
        assert to_probability("0.5") == 0.5
        assert to_probability(0) == 0.0
        assert to_probability(1) == 1.0
        assert to_probability(1.01) is None
        assert to_probability(-0.1) is None

    def test_normalize_timestamp_seconds(self) -> None:
        """Second timestamps are scaled to milliseconds."""
        assert normalize_timestamp_ms(1_704_067_200) == 1_704_067_200_000

    def test_normalize_timestamp_millis(self) -> None:
        """Millisecond timestamps pass through."""
        assert normalize_timestamp_ms(1_704_067_200_000) == 1_704_067_200_000


class TestParseTime:
    """Test date parsing."""

    def test_iso_with_zulu(self) -> None:
        """ISO strings with Z are UTC."""
        assert parse_time_ms("2024-01-01T00:15:00Z") == 1_704_068_100_000

    def test_iso_with_offset(self) -> None:
        """Explicit offsets are honoured."""
        assert parse_time_ms("2024-01-01T01:15:00+01:00") == 1_704_068_100_000

    def test_naive_is_utc(self) -> None:
        """Naive ISO strings are read as UTC."""
        assert parse_time_ms("2024-01-01T00:00:00") == 1_704_067_200_000

    @pytest.mark.parametrize("value", [None, "", "not a date", False, {}])
    def test_unparseable(self, value) -> None:
        """Garbage yields None."""
        assert parse_time_ms(value) is None

    def test_numeric_millis(self) -> None:
        """Numbers are epoch milliseconds."""
        assert parse_time_ms(1_704_067_200_000) == 1_704_067_200_000


class TestPriceToBeat:
    """Test price extraction from the market question."""

    def test_with_thousands_separator(self) -> None:
        """Commas are stripped."""
        assert parse_price_to_beat("Will BTC be above $42,000.50 at close?") == 42000.5

    def test_with_space_after_dollar(self) -> None:
        """Whitespace after the dollar sign is allowed."""
        assert parse_price_to_beat("Price to beat $ 97000") == 97000.0

    def test_first_amount_wins(self) -> None:
        """Only the first dollar amount is used."""
        assert parse_price_to_beat("$100 or $200") == 100.0

    def test_no_amount(self) -> None:
        """Questions without a dollar amount yield None."""
        assert parse_price_to_beat("Bitcoin Up or Down") is None
        assert parse_price_to_beat(None) is None


class TestParseJsonArray:
    """Test Gamma array fields."""

    def test_string_encoded(self) -> None:
        """JSON-in-a-string arrays are decoded."""
        assert parse_json_array('["Up", "Down"]') == ["Up", "Down"]

    def test_native_list(self) -> None:
        """Lists pass through as strings."""
        assert parse_json_array([1, 2]) == ["1", "2"]

    def test_garbage(self) -> None:
        """Non-array values yield an empty list."""
        assert parse_json_array("[broken") == []
        assert parse_json_array('{"a": 1}') == []
        assert parse_json_array(None) == []


class TestParseMarket:
    """Test Gamma market parsing."""

    def test_full_market(self, raw_gamma_market) -> None:
        """All fields are normalized."""
        market = parse_market(raw_gamma_market)

        assert market.slug == "btc-updown-15m-1704067200"
        assert market.outcomes == ("Up", "Down")
        assert market.outcome_prices == (0.515, 0.485)
        assert market.token_ids == ("111", "222")
        assert market.start_ms == 1_704_067_200_000
        assert market.end_ms == 1_704_068_100_000
        assert market.end_date == "2024-01-01T00:15:00Z"
        assert market.liquidity == 15234.7
        assert market.price_to_beat == 42000.5
        assert market.market_id == market.slug

    def test_liquidity_fallback(self, raw_gamma_market) -> None:
        """liquidity is used when liquidityNum is absent."""
        del raw_gamma_market["liquidityNum"]
        assert parse_market(raw_gamma_market).liquidity == 15234.7

    def test_bad_end_date(self, raw_gamma_market) -> None:
        """An unparseable end date leaves end_ms unset."""
        raw_gamma_market["endDate"] = "soon"
        assert parse_market(raw_gamma_market).end_ms is None

    def test_non_object(self) -> None:
        """Non-dict payloads are dropped."""
        assert parse_market("market") is None

    def test_parse_markets_flattens_events(self, raw_gamma_events) -> None:
        """Markets nested in every event are collected in order."""
        markets = parse_markets(raw_gamma_events)
        assert [m.slug for m in markets] == ["btc-updown-15m-1704067200", "btc-updown-15m-1704068100"]

    def test_parse_markets_tolerates_garbage(self) -> None:
        """Malformed events are skipped."""
        assert parse_markets([None, {"markets": "x"}, {"markets": [1, {"slug": "ok"}]}])[0].slug == "ok"
        assert parse_markets({"not": "a list"}) == []


class TestParseKlines:
    """Test Binance kline parsing."""

    def test_rows(self, raw_kline_rows) -> None:
        """Rows become Kline objects with float prices."""
        klines = parse_klines(raw_kline_rows)
        assert len(klines) == 3
        assert klines[0].open_time == raw_kline_rows[0][0]
        assert klines[0].high == 42010.0
        assert klines[2].close == 42002.0

    def test_non_numeric_prices_become_none(self) -> None:
        """Garbage price fields are carried as None."""
        kline = parse_kline_row([1000, "x", "2", "1", "nan", "5"])
        assert kline.open is None
        assert kline.close is None
        assert kline.high == 2.0

    def test_unreadable_rows_dropped(self) -> None:
        """Short rows and rows without an open time are skipped."""
        assert parse_klines([[1, 2], ["t", 1, 2, 3, 4], "row"]) == []
        assert parse_klines(None) == []


class TestParsePriceHistory:
    """Test CLOB price history parsing."""

    def test_history_object(self) -> None:
        """{"history": [...]} with second timestamps."""
        samples = parse_price_history({"history": [{"t": 1_704_067_200, "p": 0.5}]})
        assert samples[0].ts == 1_704_067_200_000
        assert samples[0].probability == 0.5

    def test_bare_list_millis(self) -> None:
        """A bare list with millisecond timestamps."""
        samples = parse_price_history([{"t": 1_704_067_200_000, "p": "0.61"}])
        assert samples[0].ts == 1_704_067_200_000
        assert samples[0].probability == 0.61

    def test_drops_bad_items(self) -> None:
        """Items without a finite time or price are dropped."""
        samples = parse_price_history({"history": [{"t": None, "p": 0.5}, {"t": 1, "p": "x"}, 3]})
        assert samples == []

    def test_drops_out_of_range_probabilities(self) -> None:
        """Prices outside [0, 1] are not probabilities; the bounds themselves are kept."""
        samples = parse_price_history({"history": [
            {"t": 1_700_000_000, "p": 1.7},
            {"t": 1_700_000_005, "p": -0.2},
            {"t": 1_700_000_010, "p": 0},
            {"t": 1_700_000_015, "p": "1"},
        ]})
        assert [s.probability for s in samples] == [0.0, 1.0]
        assert [s.ts for s in samples] == [1_700_000_010_000, 1_700_000_015_000]

    def test_unknown_payload(self) -> None:
        """Anything else yields no samples."""
        assert parse_price_history("x") == []
        assert parse_price_history({"history": None}) == []


class TestJsonPayload:
    """Test raw JSON parsing."""

    def test_valid(self) -> None:
        """Valid JSON bytes decode."""
        assert parse_json_payload(b'{"price": "1"}') == {"price": "1"}

    def test_invalid_raises(self) -> None:
        """Invalid JSON raises MalformedDataError."""
        with pytest.raises(MalformedDataError) as exc_info:
            parse_json_payload(b"<html>")
        assert exc_info.value.expected_format == "json"

    def test_ticker_price(self) -> None:
        """Ticker price is read from the price field."""
        assert parse_ticker_price({"symbol": "BTCUSDT", "price": "42000.10"}) == 42000.1
        assert parse_ticker_price([]) is None
