"""Configuration validation utilities."""

from dataclasses import dataclass
from typing import Any, Callable


@dataclass(frozen=True)
class ValidationError:
    """Represents a configuration validation error."""
    field: str
    message: str
    value: Any


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def _positive_number(value: Any) -> bool:
    return _is_number(value) and value > 0


def _non_negative_number(value: Any) -> bool:
    return _is_number(value) and value >= 0


def _non_empty_str(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


Rule = tuple[Callable[[Any], bool], str]

POSITIVE_INT: Rule = (_positive_int, "Must be a positive integer")
POSITIVE_NUMBER: Rule = (_positive_number, "Must be a positive number")
NON_NEGATIVE_NUMBER: Rule = (_non_negative_number, "Must be a non-negative number")
NON_EMPTY_STR: Rule = (_non_empty_str, "Must be a non-empty string")

# Section -> field -> rule. Fields absent from a section are not checked.
RULES: dict[str, dict[str, Rule]] = {
    "window": {
        "duration_ms": POSITIVE_INT,
    },
    "aligner": {
        # Zero spacing keeps every sample
        "sample_interval_ms": NON_NEGATIVE_NUMBER,
        "max_points": POSITIVE_INT,
    },
    "atr": {
        "period": POSITIVE_INT,
        # Zero collapses both bands onto the reference
        "multiplier": NON_NEGATIVE_NUMBER,
    },
    "indicators": {
        "kline_interval": NON_EMPTY_STR,
        "kline_limit": POSITIVE_INT,
        "rsi_period": POSITIVE_INT,
        "macd_fast": POSITIVE_INT,
        "macd_slow": POSITIVE_INT,
        "macd_signal": POSITIVE_INT,
    },
    "binance": {
        "symbol": NON_EMPTY_STR,
        "kline_interval": NON_EMPTY_STR,
        "kline_limit": POSITIVE_INT,
    },
    "polymarket": {
        "series_id": NON_EMPTY_STR,
        "up_outcome_label": NON_EMPTY_STR,
        "down_outcome_label": NON_EMPTY_STR,
        "events_limit": POSITIVE_INT,
        "history_fidelity": POSITIVE_INT,
    },
    "poll": {
        "interval_ms": POSITIVE_NUMBER,
        "request_timeout_seconds": POSITIVE_NUMBER,
    },
}


class ConfigValidator:
    """Validates configuration parameters."""

    @staticmethod
    def validate_section(section: str, params: dict[str, Any]) -> list[ValidationError]:
        """Check every ruled field present in params."""
        errors = []
        for field, (check, message) in RULES.get(section, {}).items():
            if field in params and not check(params[field]):
                errors.append(ValidationError(field=field, message=message, value=params[field]))
        return errors

    @staticmethod
    def validate_window_params(params: dict[str, Any]) -> list[ValidationError]:
        return ConfigValidator.validate_section("window", params)

    @staticmethod
    def validate_aligner_params(params: dict[str, Any]) -> list[ValidationError]:
        return ConfigValidator.validate_section("aligner", params)

    @staticmethod
    def validate_atr_params(params: dict[str, Any]) -> list[ValidationError]:
        return ConfigValidator.validate_section("atr", params)

    @staticmethod
    def validate_indicator_params(params: dict[str, Any]) -> list[ValidationError]:
        errors = ConfigValidator.validate_section("indicators", params)
        fast, slow = params.get("macd_fast"), params.get("macd_slow")
        if _positive_int(fast) and _positive_int(slow) and fast >= slow:
            errors.append(ValidationError(
                field="macd_fast", message="Must be shorter than macd_slow", value=fast,
            ))
        return errors

    @staticmethod
    def validate_poll_params(params: dict[str, Any]) -> list[ValidationError]:
        return ConfigValidator.validate_section("poll", params)

    @staticmethod
    def validate_polymarket_params(params: dict[str, Any]) -> list[ValidationError]:
        return ConfigValidator.validate_section("polymarket", params)

    @staticmethod
    def validate_config(config: dict[str, Any]) -> list[ValidationError]:
        """Validate every known section of a merged configuration."""
        errors = []
        for section in RULES:
            params = config.get(section)
            if not isinstance(params, dict):
                continue
            if section == "indicators":
                errors.extend(ConfigValidator.validate_indicator_params(params))
            else:
                errors.extend(ConfigValidator.validate_section(section, params))
        return errors
