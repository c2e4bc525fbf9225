"""Snapshot cache keyed by window start for session continuity."""

from pathlib import Path
from typing import Any, Optional

import orjson
import structlog

logger = structlog.get_logger(__name__)


class SnapshotCache:
    """
    Holds the latest snapshot of the current window.

    Entries are keyed by window start. Reading with a different key drops the
    entry, so a cache never survives into the next window. When a path is
    given the entry is mirrored to a JSON file and reloaded on construction.
    """

    def __init__(self, path: Optional[str] = None):
        self.path = Path(path) if path else None
        self._key: Optional[int] = None
        self._snapshot: Optional[dict[str, Any]] = None

        if self.path is not None:
            self._load()

    @property
    def key(self) -> Optional[int]:
        return self._key

    def get(self, window_start: int) -> Optional[dict[str, Any]]:
        """Cached snapshot for window_start, invalidating a stale entry."""
        if self._key is None:
            return None
        if self._key != window_start:
            logger.info("Invalidated stale snapshot cache", cached_key=self._key, window_start=window_start)
            self.clear()
            return None
        return self._snapshot

    def put(self, window_start: int, snapshot: dict[str, Any]) -> None:
        """Replace the cached snapshot. A failed file mirror keeps the in-memory entry."""
        self._key = window_start
        self._snapshot = snapshot

        if self.path is None:
            return
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            data = orjson.dumps({"windowStart": window_start, "snapshot": snapshot})
            tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
            tmp_path.write_bytes(data)
            tmp_path.replace(self.path)
        except (OSError, TypeError) as e:
            logger.warning(
                "Snapshot cache write failed",
                path=str(self.path),
                error=str(e),
                error_type=type(e).__name__,
            )

    def clear(self) -> None:
        self._key = None
        self._snapshot = None
        if self.path is None:
            return
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Snapshot cache removal failed", path=str(self.path), error=str(e))

    def _load(self) -> None:
        if not self.path.exists():
            return
        try:
            data = orjson.loads(self.path.read_bytes())
        except (OSError, orjson.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable snapshot cache", path=str(self.path), error=str(e))
            return

        if not isinstance(data, dict) or not isinstance(data.get("snapshot"), dict):
            return
        key = data.get("windowStart")
        if isinstance(key, int):
            self._key = key
            self._snapshot = data["snapshot"]
