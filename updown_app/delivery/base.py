"""Base class shared by snapshot destinations."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

import structlog


class DeliveryStatus(Enum):
    SUCCESS = "success"
    FAILED = "failed"


@dataclass
class DeliveryResult:
    """Outcome of handing one snapshot to one destination."""
    status: DeliveryStatus
    message: Optional[str] = None
    error: Optional[Exception] = None


@dataclass
class DeliveryStats:
    """Running counters of one destination."""
    delivered: int = 0
    failed: int = 0

    @property
    def success_rate(self) -> float:
        attempts = self.delivered + self.failed
        return self.delivered / attempts if attempts else 0.0


class BaseSnapshotDelivery(ABC):
    """
    Template for snapshot destinations.

    Subclasses implement _write and health_check. deliver() wraps _write so a
    broken destination costs one FAILED result and a log line, never the tick.
    """

    def __init__(self, name: str, config: Any):
        self.name = name
        self.config = config
        self.logger = structlog.get_logger(f"snapshot.delivery.{name}")
        self.stats = DeliveryStats()

    @abstractmethod
    def _write(self, snapshot: dict[str, Any]) -> str:
        """Write one snapshot and describe where it went."""

    @abstractmethod
    def health_check(self) -> bool:
        """True when the destination can currently accept snapshots."""

    def deliver(self, snapshot: dict[str, Any]) -> DeliveryResult:
        """Write snapshot, converting I/O and encoding failures into a FAILED result."""
        try:
            message = self._write(snapshot)
        except (OSError, ValueError, TypeError) as e:
            self.stats.failed += 1
            self.logger.error(
                "Snapshot delivery failed",
                delivery_name=self.name,
                error=str(e),
                error_type=type(e).__name__,
            )
            return DeliveryResult(status=DeliveryStatus.FAILED, message=str(e), error=e)

        self.stats.delivered += 1
        return DeliveryResult(status=DeliveryStatus.SUCCESS, message=message)

    def get_stats(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "delivery_count": self.stats.delivered,
            "error_count": self.stats.failed,
            "success_rate": self.stats.success_rate,
        }

    def reset_stats(self) -> None:
        self.stats = DeliveryStats()
