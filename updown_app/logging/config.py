"""
Logging setup for the UpDown monitor.

structlog renders every record. The stdlib root logger only routes them to
stderr, which keeps stdout free for snapshot output. Call configure_logging
once at start-up; calling it again replaces the previous setup.
"""
import logging
import sys
from typing import Any, Optional

import structlog
from structlog.types import FilteringBoundLogger, Processor

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def build_processors(
    format_json: bool = False,
    include_timestamp: bool = True,
    include_caller: bool = False,
    extra_processors: Optional[list[Processor]] = None,
) -> list[Processor]:
    """Processor chain ending in either the JSON or the console renderer."""
    processors: list[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if include_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="iso", utc=True))

    if include_caller:
        processors.append(structlog.processors.CallsiteParameterAdder(
            parameters=[structlog.processors.CallsiteParameter.MODULE,
                        structlog.processors.CallsiteParameter.LINENO]
        ))

    processors.extend(extra_processors or [])

    if format_json:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))

    return processors


def configure_logging(
    level: str = "INFO",
    format_json: bool = False,
    include_timestamp: bool = True,
    include_caller: bool = False,
    extra_processors: Optional[list[Processor]] = None
) -> None:
    """
    Configure structlog on top of stdlib logging.

    Args:
        level: One of LOG_LEVELS, case-insensitive
        format_json: Render JSON lines instead of the console format
        include_timestamp: Add an ISO8601 UTC timestamp
        include_caller: Add module and line number
        extra_processors: Processors inserted before the renderer

    Raises:
        ValueError: If level is not a known level name
    """
    level_name = level.upper()
    if level_name not in LOG_LEVELS:
        raise ValueError(f"Unknown log level: {level}")

    logging.basicConfig(
        level=getattr(logging, level_name),
        stream=sys.stderr,
        format="%(message)s",
        force=True,
    )

    structlog.configure(
        processors=build_processors(format_json, include_timestamp, include_caller, extra_processors),
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> FilteringBoundLogger:
    return structlog.get_logger(name)


def get_state_logger(name: str) -> FilteringBoundLogger:
    """Logger for reference price transitions, tagged for the audit trail."""
    return get_logger(name).bind(subsystem="window_state", audit_trail=True)


def log_state_transition(
    logger: FilteringBoundLogger,
    market_id: Optional[str],
    from_state: str,
    to_state: str,
    trigger: str,
    context: Optional[dict[str, Any]] = None
) -> None:
    """Emit one reference price transition record."""
    logger.info(
        "Reference state transition",
        market_id=market_id,
        from_state=from_state,
        to_state=to_state,
        trigger=trigger,
        **(context or {}),
    )


def log_market_rollover(
    logger: FilteringBoundLogger,
    previous_market_id: Optional[str],
    market_id: Optional[str],
    dropped_points: int
) -> None:
    """Emit one record for a change of the observed market."""
    logger.info(
        "Market rollover",
        previous_market_id=previous_market_id,
        market_id=market_id,
        dropped_points=dropped_points,
    )
