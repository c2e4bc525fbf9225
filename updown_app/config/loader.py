"""Configuration loading: defaults, then settings.yaml, then explicit overrides."""

from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Optional

import structlog
import yaml

from .defaults import DefaultConfig, get_default_config

logger = structlog.get_logger(__name__)

SETTINGS_FILE = "settings.yaml"
DEFAULT_CONFIG_DIR = Path(__file__).resolve().parents[2] / "config"


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(merged.get(key), dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _drop_unknown(config: dict[str, Any], defaults: DefaultConfig) -> dict[str, Any]:
    """Keep only sections and keys the parameter dataclasses declare."""
    known = {f.name: {g.name for g in fields(getattr(defaults, f.name))} for f in fields(defaults)}

    cleaned = {}
    for section, values in config.items():
        if section not in known:
            logger.warning("Ignoring unknown config section", section=section)
            continue
        if not isinstance(values, dict):
            logger.warning("Ignoring non-mapping config section", section=section, value=values)
            cleaned[section] = asdict(getattr(defaults, section))
            continue

        unknown = sorted(set(values) - known[section])
        if unknown:
            logger.warning("Ignoring unknown config keys", section=section, keys=unknown)
        cleaned[section] = {k: v for k, v in values.items() if k in known[section]}

    return cleaned


@dataclass(frozen=True)
class ConfigLoader:
    """
    Loads the merged configuration for one config directory.

    Precedence, lowest first: dataclass defaults, settings.yaml in
    config_dir, overrides passed to merge_config.
    """

    config_dir: Path
    defaults: DefaultConfig

    @classmethod
    def create(cls, config_dir: Optional[Path] = None) -> "ConfigLoader":
        """Loader for config_dir, or the repository config directory."""
        return cls(
            config_dir=Path(config_dir) if config_dir is not None else DEFAULT_CONFIG_DIR,
            defaults=get_default_config(),
        )

    @property
    def settings_path(self) -> Path:
        return self.config_dir / SETTINGS_FILE

    def load_settings(self) -> dict[str, Any]:
        """
        Read settings.yaml; a missing or empty file means no overrides.

        Raises:
            ValueError: If the file does not hold a mapping
        """
        if not self.settings_path.exists():
            return {}

        with open(self.settings_path) as f:
            settings = yaml.safe_load(f) or {}

        if not isinstance(settings, dict):
            raise ValueError(
                f"{self.settings_path} must contain a mapping, got {type(settings).__name__}"
            )
        return settings

    def merge_config(self, overrides: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        """Merged configuration as plain nested dicts, one per parameter section."""
        config = asdict(self.defaults)
        for layer in (self.load_settings(), overrides or {}):
            config = _deep_merge(config, layer)
        return _drop_unknown(config, self.defaults)
