"""
Parsers for converting raw Gamma, CLOB and Binance payloads to normalized objects.

Every parser here is total: a field that cannot be read becomes None and a
record that cannot be read is dropped. Only parse_json_payload raises, and it
is called by the source clients, never by the core.
"""

import math
import re
from datetime import datetime, timezone
from typing import Any, Optional

import orjson
import structlog

from ..errors import MalformedDataError
from .models import Kline, Market, PredictionSample

logger = structlog.get_logger(__name__)

# Epoch seconds stay below this for the next ~30000 years; epoch ms are above it
SECONDS_THRESHOLD = 1e12

PRICE_TO_BEAT_PATTERN = re.compile(r"\$\s*([0-9][0-9,]*(?:\.[0-9]+)?)")


def parse_json_payload(raw_data: bytes | str) -> Any:
    """
    Parse raw JSON text into Python objects.

    Args:
        raw_data: Raw JSON body from an upstream API

    Returns:
        Parsed JSON value

    Raises:
        MalformedDataError: If the body is not valid JSON
    """
    try:
        return orjson.loads(raw_data)
    except orjson.JSONDecodeError as e:
        raise MalformedDataError(
            f"Invalid JSON: {e}",
            raw_data=str(raw_data[:100]),
            expected_format="json",
        )


def to_float(value: Any) -> Optional[float]:
    """Convert to a finite float, None otherwise."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def to_probability(value: Any) -> Optional[float]:
    """Convert to a float in [0, 1], None otherwise."""
    number = to_float(value)
    if number is None or number < 0.0 or number > 1.0:
        return None
    return number


def normalize_timestamp_ms(ts: float) -> int:
    """Values below 1e12 are epoch seconds and get scaled to milliseconds."""
    if ts < SECONDS_THRESHOLD:
        return int(ts * 1000)
    return int(ts)


def parse_time_ms(value: Any) -> Optional[int]:
    """
    Parse a date value to epoch milliseconds.

    Accepts ISO-8601 strings (naive values are read as UTC) and numeric epoch
    milliseconds. Empty, missing and unparseable values yield None.
    """
    if not value or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        return int(value) if math.isfinite(value) else None

    if not isinstance(value, str):
        return None

    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)

    return int(parsed.timestamp() * 1000)


def parse_json_array(value: Any) -> list[str]:
    """Read a Gamma array field that may arrive as a list or a JSON string."""
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value]

    if isinstance(value, str):
        try:
            decoded = orjson.loads(value)
        except orjson.JSONDecodeError:
            return []
        if isinstance(decoded, list):
            return [str(item) for item in decoded]

    return []


def parse_price_to_beat(question: Optional[str]) -> Optional[float]:
    """Extract the first dollar amount from the market question."""
    if not question:
        return None

    match = PRICE_TO_BEAT_PATTERN.search(question)
    if not match:
        return None

    return to_float(match.group(1).replace(",", ""))


def parse_market(raw: Any) -> Optional[Market]:
    """
    Convert a Gamma market object into a Market.

    Returns None only when the payload is not an object at all. Missing or
    malformed fields are carried as None so the selector can filter them.
    """
    if not isinstance(raw, dict):
        return None

    question = raw.get("question") or raw.get("title")
    question = str(question) if question else None

    slug = raw.get("slug")
    slug = str(slug) if slug else None

    outcome_prices = tuple(to_float(p) for p in parse_json_array(raw.get("outcomePrices")))

    liquidity = to_float(raw.get("liquidityNum"))
    if liquidity is None:
        liquidity = to_float(raw.get("liquidity"))

    end_date = raw.get("endDate")
    event_start_time = raw.get("eventStartTime")

    return Market(
        slug=slug,
        question=question,
        outcomes=tuple(parse_json_array(raw.get("outcomes"))),
        outcome_prices=outcome_prices,
        token_ids=tuple(parse_json_array(raw.get("clobTokenIds"))),
        start_ms=parse_time_ms(event_start_time),
        end_ms=parse_time_ms(end_date),
        end_date=str(end_date) if end_date else None,
        event_start_time=str(event_start_time) if event_start_time else None,
        liquidity=liquidity,
        price_to_beat=parse_price_to_beat(question),
    )


def flatten_event_markets(events: Any) -> list[dict[str, Any]]:
    """Collect the market objects nested in a list of Gamma events."""
    if not isinstance(events, list):
        return []

    out = []
    for event in events:
        if not isinstance(event, dict):
            continue
        markets = event.get("markets")
        if isinstance(markets, list):
            out.extend(m for m in markets if isinstance(m, dict))
    return out


def parse_markets(events: Any) -> list[Market]:
    """Parse every market nested in a Gamma events payload."""
    markets = []
    for raw in flatten_event_markets(events):
        market = parse_market(raw)
        if market is not None:
            markets.append(market)
    return markets


def parse_kline_row(row: Any) -> Optional[Kline]:
    """
    Parse one Binance kline array.

    Inner array format: [openTime, open, high, low, close, volume, closeTime, ...]
    """
    if not isinstance(row, (list, tuple)) or len(row) < 5:
        return None

    open_time = to_float(row[0])
    if open_time is None:
        return None

    close_time = to_float(row[6]) if len(row) > 6 else None

    return Kline(
        open_time=int(open_time),
        open=to_float(row[1]),
        high=to_float(row[2]),
        low=to_float(row[3]),
        close=to_float(row[4]),
        volume=to_float(row[5]) if len(row) > 5 else None,
        close_time=int(close_time) if close_time is not None else None,
    )


def parse_klines(payload: Any) -> list[Kline]:
    """Parse a Binance klines response, dropping unreadable rows."""
    if not isinstance(payload, list):
        return []

    klines = []
    skipped = 0
    for row in payload:
        kline = parse_kline_row(row)
        if kline is None:
            skipped += 1
            continue
        klines.append(kline)

    if skipped:
        logger.warning("Skipped malformed kline rows", skipped=skipped, parsed=len(klines))

    return klines


def parse_price_history(payload: Any) -> list[PredictionSample]:
    """
    Parse a CLOB prices-history response into prediction samples.

    Accepts either a bare list or {"history": [...]} of {"t": ..., "p": ...}
    items. Timestamps are normalized to milliseconds; items with a non-finite
    time or a price outside [0, 1] are dropped.
    """
    if isinstance(payload, dict):
        history = payload.get("history") or []
    elif isinstance(payload, list):
        history = payload
    else:
        return []

    samples = []
    for item in history:
        if not isinstance(item, dict):
            continue
        ts = to_float(item.get("t"))
        probability = to_probability(item.get("p"))
        if ts is None or probability is None:
            continue
        samples.append(PredictionSample(ts=normalize_timestamp_ms(ts), probability=probability))

    return samples


def parse_ticker_price(payload: Any) -> Optional[float]:
    """Read the price field of a ticker or CLOB price response."""
    if not isinstance(payload, dict):
        return None
    return to_float(payload.get("price"))
