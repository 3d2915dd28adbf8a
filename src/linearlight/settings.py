"""
Fixture configuration and persisted calibration state.

Two YAML documents live here:

* an optional fixture config (URL, limit pins, settle delay), read with
  :func:`load_config`;
* the settings store, a small key-value document holding the last
  calibrated ``LIMITS`` and the last-used ``LEVEL``::

    store = SettingsStore("settings/emilite")
    store.init()
    store.save_limits(limits)
    limits = store.load_limits()
"""

from __future__ import annotations

import logging
import os
import tempfile
from contextlib import suppress
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .calibration import LimitSet
from .constants import (
    DEFAULT_SETTINGS_DIR,
    DEFAULT_SETTLE_MS,
    DEFAULT_TIMEOUT,
    DEFAULT_URL,
    LEVEL_KEY,
    LIMIT_PINS,
    LIMITS_KEY,
    NUM_CHANNELS,
)
from .exceptions import ConfigurationError, ValidationError
from .protocol import validate_code

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Fixture configuration
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FixtureConfig:
    """Validated fixture configuration."""

    url: str = DEFAULT_URL
    limit_pins: tuple[str, ...] = field(default=LIMIT_PINS)
    settle_ms: float = DEFAULT_SETTLE_MS
    timeout_s: float | None = DEFAULT_TIMEOUT
    settings_dir: Path = Path(DEFAULT_SETTINGS_DIR)


def load_config(path: str | Path) -> FixtureConfig:
    """Load and validate a fixture configuration from a YAML file.

    Every key is optional; missing keys take the built-in defaults.

    Raises:
        FileNotFoundError: If *path* does not exist.
        ValidationError: If the config is malformed or contains invalid values.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path) as f:
        raw = yaml.safe_load(f)

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ValidationError(f"Config file must be a YAML mapping, got {type(raw).__name__}")

    url = raw.get("url", DEFAULT_URL)
    if not isinstance(url, str) or not url:
        raise ValidationError("'url' must be a non-empty string")

    pins = raw.get("limit_pins", list(LIMIT_PINS))
    if (
        not isinstance(pins, list)
        or len(pins) != NUM_CHANNELS
        or not all(isinstance(p, str) and p for p in pins)
    ):
        raise ValidationError(
            f"'limit_pins' must be a list of {NUM_CHANNELS} non-empty strings, got {pins!r}"
        )
    if len(set(pins)) != NUM_CHANNELS:
        raise ValidationError(f"'limit_pins' must be unique, got {pins!r}")

    settle_ms = _require_non_negative_number(raw, "settle_ms", DEFAULT_SETTLE_MS)

    timeout_s = raw.get("timeout_s", DEFAULT_TIMEOUT)
    if timeout_s is not None:
        timeout_s = _require_non_negative_number(raw, "timeout_s", DEFAULT_TIMEOUT)
        if timeout_s == 0:
            raise ValidationError("'timeout_s' must be positive or null")

    settings_dir = raw.get("settings_dir", DEFAULT_SETTINGS_DIR)
    if not isinstance(settings_dir, str) or not settings_dir:
        raise ValidationError("'settings_dir' must be a non-empty string")

    return FixtureConfig(
        url=url,
        limit_pins=tuple(pins),
        settle_ms=settle_ms,
        timeout_s=timeout_s,
        settings_dir=Path(settings_dir),
    )


def _require_non_negative_number(data: dict, key: str, default: float | None) -> float:
    val = data.get(key, default)
    if isinstance(val, bool) or not isinstance(val, (int, float)) or val < 0:
        raise ValidationError(f"'{key}' must be a non-negative number, got {val!r}")
    return val


# ---------------------------------------------------------------------------
# Persistent store
# ---------------------------------------------------------------------------


class SettingsStore:
    """Key-value store persisted as ``settings.yaml`` in *directory*.

    Args:
        directory: Directory that holds the settings document.
    """

    FILENAME = "settings.yaml"

    def __init__(self, directory: str | Path = DEFAULT_SETTINGS_DIR) -> None:
        self.directory = Path(directory)
        self.path = self.directory / self.FILENAME

    def init(self) -> None:
        """Create the settings directory if it does not exist yet."""
        self.directory.mkdir(parents=True, exist_ok=True)
        logger.debug("Settings store at %s", self.path)

    # -- Raw items ----------------------------------------------------------

    def get_item(self, key: str) -> Any:
        """Return the stored value for *key*, or ``None`` if absent."""
        return self._read().get(key)

    def set_item(self, key: str, value: Any) -> None:
        """Store *value* under *key*, rewriting the settings document.

        An unreadable document is replaced rather than merged into, so any
        other keys it held are lost.  The new document is written to a
        temporary file and moved into place, so an interrupted write leaves
        the previous document intact.
        """
        try:
            data = self._read()
        except ConfigurationError as exc:
            logger.warning("Discarding unreadable settings (%s)", exc)
            data = {}
        data[key] = value

        fd, tmp_path = tempfile.mkstemp(dir=self.directory, prefix=".settings-", suffix=".yaml")
        try:
            with os.fdopen(fd, "w") as f:
                yaml.safe_dump(data, f, default_flow_style=None, sort_keys=True)
            os.replace(tmp_path, self.path)
        except BaseException:
            with suppress(OSError):
                os.unlink(tmp_path)
            raise
        logger.debug("Stored %s=%r", key, value)

    # -- Typed helpers ------------------------------------------------------

    def load_limits(self) -> LimitSet | None:
        """Return the stored limits, or ``None`` if none were saved.

        Raises:
            ConfigurationError: If the stored value is not four codes.
        """
        raw = self.get_item(LIMITS_KEY)
        if raw is None:
            return None
        if not isinstance(raw, list):
            raise ConfigurationError(f"Stored {LIMITS_KEY} must be a list, got {raw!r}")
        try:
            return LimitSet.from_sequence(raw)
        except ValidationError as exc:
            raise ConfigurationError(f"Stored {LIMITS_KEY} is invalid: {exc}") from exc

    def save_limits(self, limits: LimitSet) -> None:
        self.set_item(LIMITS_KEY, limits.as_list())

    def load_level(self) -> int | None:
        """Return the stored level, or ``None`` if absent or not a valid code.

        An unreadable settings document counts as no stored level.
        """
        try:
            raw = self.get_item(LEVEL_KEY)
        except ConfigurationError as exc:
            logger.warning("Ignoring stored %s: %s", LEVEL_KEY, exc)
            return None
        if raw is None:
            return None
        try:
            validate_code(raw, LEVEL_KEY)
        except ValidationError:
            logger.warning("Ignoring invalid stored %s: %r", LEVEL_KEY, raw)
            return None
        return raw

    def save_level(self, level: int) -> None:
        validate_code(level, "level")
        self.set_item(LEVEL_KEY, level)

    # -- Internal -----------------------------------------------------------

    def _read(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            with open(self.path) as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Cannot parse {self.path}: {exc}") from exc
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"{self.path} must hold a YAML mapping")
        return data
