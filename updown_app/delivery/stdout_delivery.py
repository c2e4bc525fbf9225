"""Standard output snapshot delivery mechanism."""

import sys
from typing import Any

import orjson

from ..config.delivery import StdoutDeliveryConfig
from ..utils.time import format_ms
from .base import BaseSnapshotDelivery


def _fmt(value: Any, digits: int = 2) -> str:
    if value is None:
        return "-"
    return f"{value:,.{digits}f}"


def _fmt_signed(value: Any) -> str:
    if value is None:
        return "-"
    return f"{value:+,.2f}"


def _fmt_minutes(minutes: Any) -> str:
    if minutes is None:
        return "--:--"
    total_seconds = max(0, int(minutes * 60))
    return f"{total_seconds // 60:02d}:{total_seconds % 60:02d}"


class StdoutSnapshotDelivery(BaseSnapshotDelivery):
    """Writes each snapshot to stdout as JSON or a one-line summary."""

    def __init__(self, name: str, config: StdoutDeliveryConfig):
        super().__init__(name, config)
        self.config: StdoutDeliveryConfig = config

    def _write(self, snapshot: dict[str, Any]) -> str:
        output = self._format_snapshot(snapshot)
        print(output, file=sys.stdout, flush=True)
        return "Printed to stdout"

    def _format_snapshot(self, snapshot: dict[str, Any]) -> str:
        """Format snapshot for stdout output."""
        if self.config.format == "pretty":
            market = snapshot.get("selectedMarket") or {}
            indicators = snapshot.get("indicators") or {}
            up = market.get("upPrice")
            down = market.get("downPrice")
            return (
                f"[{format_ms(snapshot['timestamp'])}] "
                f"{market.get('slug') or 'no market'} "
                f"spot={_fmt(snapshot.get('spotPrice'))} "
                f"ref={_fmt(snapshot.get('referencePrice'))} "
                f"ptb={_fmt(market.get('priceToBeat'))} "
                f"vs_ptb={_fmt_signed(snapshot.get('priceToBeatDelta'))} "
                f"up={_fmt(up * 100 if up is not None else None, 1)}c "
                f"down={_fmt(down * 100 if down is not None else None, 1)}c "
                f"atr={_fmt(snapshot.get('atr'))} "
                f"rsi={_fmt(indicators.get('rsi'), 1)} "
                f"left={_fmt_minutes(snapshot.get('timeLeftMinutes'))} "
                f"session={snapshot.get('session') or '-'} "
                f"points={len(snapshot.get('alignedHistory') or [])}"
            )

        if not self.config.include_history:
            snapshot = {k: v for k, v in snapshot.items() if k != "alignedHistory"}
        return orjson.dumps(snapshot).decode("utf-8")

    def health_check(self) -> bool:
        """Check if stdout is available."""
        try:
            return sys.stdout.writable()
        except (OSError, ValueError):
            return False
