"""Configuration loading and the read-only settings snapshot.

The YAML file is merged over DEFAULT_CONFIG. Everything the core needs
(day-boundary hours, height, default temperature location) is validated once
into an immutable TrackerSettings snapshot, which callers pass explicitly into
bucketing and BMI computations. SettingsHolder swaps the snapshot atomically on
reload, so a computation that took a snapshot never sees values change mid-pass.
"""

from __future__ import annotations

import copy
import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from vitaltrack.errors import ConfigError

logger = logging.getLogger(__name__)

# Default configuration
DEFAULT_CONFIG: dict[str, Any] = {
    "hours": {
        "morning_start": 6,
        "morning_end": 11,
        "midday_start": 11,
        "midday_end": 16,
        "evening_start": 18,
    },
    "body": {
        "height_cm": None,
    },
    "temperature": {
        "default_location_id": None,
    },
    "history": {
        "recent_days": 93,
    },
    "database": {
        "path": "./data/vitaltrack.db",
    },
    "logging": {
        "level": "INFO",
        "file": None,
        "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    },
}


@dataclass(frozen=True)
class DayHours:
    """Hour-of-day cut points (0-23) that divide a day into named periods."""

    morning_start: int = 6
    morning_end: int = 11
    midday_start: int = 11
    midday_end: int = 16
    evening_start: int = 18

    def __post_init__(self) -> None:
        for name in ("morning_start", "morning_end", "midday_start", "midday_end", "evening_start"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or not 0 <= value <= 23:
                raise ConfigError(f"hours.{name} must be an integer hour between 0 and 23", value=value)
        if self.morning_start > self.morning_end:
            raise ConfigError(
                "hours.morning_start must not be after hours.morning_end",
                morning_start=self.morning_start,
                morning_end=self.morning_end,
            )
        if self.midday_start > self.midday_end:
            raise ConfigError(
                "hours.midday_start must not be after hours.midday_end",
                midday_start=self.midday_start,
                midday_end=self.midday_end,
            )


@dataclass(frozen=True)
class TrackerSettings:
    """Immutable snapshot of the settings the core reads."""

    hours: DayHours = DayHours()
    height_cm: int | None = None
    default_temperature_location_id: int | None = None
    recent_days: int = 93


def load_config(config_path: str | None = None) -> dict:
    """Load configuration from file or use defaults.

    Args:
        config_path: Path to YAML config file

    Returns:
        Configuration dictionary
    """
    config = copy.deepcopy(DEFAULT_CONFIG)

    if config_path and Path(config_path).exists():
        with open(config_path) as f:
            user_config = yaml.safe_load(f)
            if user_config and isinstance(user_config, dict):
                # Deep merge user config into defaults
                for section, values in user_config.items():
                    section_config = config.get(section)
                    if (
                        section_config is not None
                        and isinstance(section_config, dict)
                        and isinstance(values, dict)
                    ):
                        section_config.update(values)
                    else:
                        config[section] = values
        logger.info(f"Loaded configuration from {config_path}")
    elif config_path:
        logger.info(f"Config file {config_path} not found, using defaults")

    check_sections(config)
    return config


def check_sections(config: dict) -> None:
    """Ensure every known section is a mapping.

    Raises:
        ConfigError: If a section such as ``logging: null`` is not a mapping
    """
    for section in DEFAULT_CONFIG:
        if not isinstance(config.get(section), dict):
            raise ConfigError(f"{section} section must be a mapping", section=section)


def _optional_int(value: Any, name: str, positive: bool = False) -> int | None:
    if value is None:
        return None
    if not isinstance(value, int) or isinstance(value, bool):
        raise ConfigError(f"{name} must be an integer", value=value)
    if positive and value <= 0:
        raise ConfigError(f"{name} must be greater than zero", value=value)
    return value


def settings_from_config(config: dict) -> TrackerSettings:
    """Validate a configuration dictionary into a settings snapshot.

    Args:
        config: Configuration dictionary as returned by load_config

    Returns:
        Immutable settings snapshot

    Raises:
        ConfigError: If any value is missing or out of range
    """
    check_sections(config)
    hours_config = config.get("hours") or {}
    try:
        hours = DayHours(**hours_config)
    except TypeError as e:
        raise ConfigError(f"invalid hours section: {e}") from e

    height_cm = _optional_int(
        (config.get("body") or {}).get("height_cm"), "body.height_cm", positive=True
    )
    default_location_id = _optional_int(
        (config.get("temperature") or {}).get("default_location_id"),
        "temperature.default_location_id",
    )
    recent_days = _optional_int(
        (config.get("history") or {}).get("recent_days", 93), "history.recent_days", positive=True
    )

    return TrackerSettings(
        hours=hours,
        height_cm=height_cm,
        default_temperature_location_id=default_location_id,
        recent_days=recent_days if recent_days is not None else 93,
    )


class SettingsHolder:
    """Process-wide owner of the current settings snapshot.

    Readers call snapshot() once per computation; reload() replaces the snapshot
    under a lock so concurrent readers keep the one they already hold.
    """

    def __init__(self, config_path: str | None = None, config: dict | None = None):
        """Initialize the holder.

        Args:
            config_path: YAML file to read (and re-read on reload)
            config: Already loaded configuration; read from config_path if omitted
        """
        self.config_path = config_path
        self._lock = threading.Lock()
        self._config = config if config is not None else load_config(config_path)
        self._settings = settings_from_config(self._config)

    @property
    def config(self) -> dict:
        with self._lock:
            return self._config

    def snapshot(self) -> TrackerSettings:
        with self._lock:
            return self._settings

    def reload(self) -> TrackerSettings:
        """Re-read the configuration file and swap in the new snapshot.

        On invalid configuration the previous snapshot stays in place and the
        ConfigError propagates.
        """
        config = load_config(self.config_path)
        settings = settings_from_config(config)
        with self._lock:
            self._config = config
            self._settings = settings
        logger.info("Configuration reloaded")
        return settings
