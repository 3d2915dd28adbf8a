"""
Fixture HTTP protocol: command building, validation, and limit parsing.

This module sits between the transport (raw HTTP I/O) and the device
client (user-facing API).  It knows how to:

* validate parameters before they become commands,
* build properly formatted command bodies (``L<level>``, ``W<c0>,...``),
* map channel indices onto the fixture's limit-status pin fields.

It does **not** own the HTTP session — that belongs to
:class:`~linearlight.transport.HttpTransport`.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence

from .constants import LIMIT_PINS, MAX_CODE, MIN_CODE, NUM_CHANNELS
from .exceptions import ResponseError, ValidationError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def validate_channel(channel: int) -> None:
    if not (0 <= channel < NUM_CHANNELS):
        raise ValidationError(f"Channel must be 0-{NUM_CHANNELS - 1}, got {channel}")


def validate_code(value: int, label: str = "value") -> None:
    """Validate that *value* is an integer within ``0..255``."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{label} must be an integer, got {value!r}")
    if not (MIN_CODE <= value <= MAX_CODE):
        raise ValidationError(f"{label} must be {MIN_CODE}-{MAX_CODE}, got {value}")


def _validate_pins(pins: Sequence[str]) -> None:
    if len(pins) != NUM_CHANNELS:
        raise ValidationError(f"Expected {NUM_CHANNELS} limit pins, got {len(pins)}")
    if len(set(pins)) != len(pins):
        raise ValidationError(f"Limit pins must be unique, got {list(pins)}")


# ---------------------------------------------------------------------------
# Command bodies
# ---------------------------------------------------------------------------


def level_command(level: int) -> str:
    """Return the ``PUT /level`` body for *level*, e.g. ``L255``."""
    validate_code(level, "level")
    return f"L{level}"


def channels_command(values: Sequence[int]) -> str:
    """Return the ``PUT /ctrl`` body for all four channels, e.g. ``W1,2,3,4``."""
    if len(values) != NUM_CHANNELS:
        raise ValidationError(f"Expected {NUM_CHANNELS} channel values, got {len(values)}")
    for channel, value in enumerate(values):
        validate_code(value, f"channel {channel} value")
    return "W" + ",".join(str(v) for v in values)


# ---------------------------------------------------------------------------
# Limit-status parsing
# ---------------------------------------------------------------------------


def parse_limit_signal(payload: object, pin: str, url: str = "") -> bool:
    """Return ``True`` if *pin*'s field in a ``GET /limit`` body is tripped.

    Any nonzero value counts as tripped.
    """
    if not isinstance(payload, Mapping):
        raise ResponseError(f"Expected a JSON object, got {type(payload).__name__}", url)
    try:
        raw = payload[pin]
    except KeyError as exc:
        raise ResponseError(f"Missing limit field {pin!r}", url) from exc
    try:
        return int(raw) != 0
    except (TypeError, ValueError) as exc:
        raise ResponseError(f"Non-numeric limit field {pin!r}={raw!r}", url) from exc


class LimitPinMap:
    """Positional mapping from channel index to limit-status pin field.

    Args:
        pins: One pin identifier per channel, in channel order.
    """

    def __init__(self, pins: Sequence[str] = LIMIT_PINS) -> None:
        _validate_pins(pins)
        self._pins = tuple(pins)

    def __len__(self) -> int:
        return len(self._pins)

    def __iter__(self):
        return iter(self._pins)

    def pin(self, channel: int) -> str:
        """Return the pin field that reports *channel*'s trip state."""
        validate_channel(channel)
        return self._pins[channel]
