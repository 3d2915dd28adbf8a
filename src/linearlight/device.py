"""
linearlight device client

Python API for a four-channel (R, G, B, W) LED fixture driven over its
local HTTP interface.

Protocol details:
    - ``PUT /level`` with body ``L<level>`` sets the global level
    - ``PUT /ctrl`` with body ``W<c0>,<c1>,<c2>,<c3>`` sets all channels at once
    - ``GET /limit`` returns a JSON object with one field per limit pin;
      ``0`` means not tripped, anything else means tripped
    - Every write must settle (5 ms by default) before the next request,
      because the trip signal reflects the transient state right after a
      channel change
"""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence

from .constants import (
    CTRL_PATH,
    DEFAULT_SETTLE_MS,
    DEFAULT_TIMEOUT,
    DEFAULT_URL,
    LEVEL_PATH,
    LIMIT_PATH,
    LIMIT_PINS,
)
from .protocol import LimitPinMap, channels_command, level_command, parse_limit_signal
from .transport import HttpTransport

logger = logging.getLogger(__name__)


class DeviceClient:
    """Interface for a linearlight fixture via HTTP.

    Use as a context manager for automatic session handling::

        with DeviceClient("http://192.168.68.112") as fixture:
            fixture.set_level(255)
            fixture.set_channels([10, 0, 0, 0])
            tripped = fixture.get_limit_signal(0)

    Args:
        url: Fixture base URL.
        limit_pins: Limit-status pin field per channel, in channel order.
        settle_ms: Delay after every successful write, in milliseconds.
        timeout: HTTP timeout in seconds (``None`` waits indefinitely).
    """

    def __init__(
        self,
        url: str = DEFAULT_URL,
        limit_pins: Sequence[str] = LIMIT_PINS,
        settle_ms: float = DEFAULT_SETTLE_MS,
        timeout: float | None = DEFAULT_TIMEOUT,
    ) -> None:
        self.url = url
        self.settle_ms = settle_ms
        self._pins = LimitPinMap(limit_pins)
        self._tx = HttpTransport(url, timeout=timeout)

    # -- Context manager ----------------------------------------------------

    def __enter__(self) -> DeviceClient:
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # -- Connection ---------------------------------------------------------

    def open(self) -> None:
        """Open the HTTP session to the fixture."""
        self._tx.open()

    def close(self) -> None:
        """Close the HTTP session (safe to call multiple times)."""
        self._tx.close()

    @property
    def is_open(self) -> bool:
        """Return True if the HTTP session is open."""
        return self._tx.is_open

    # -- Writes -------------------------------------------------------------

    def set_level(self, level: int) -> None:
        """Set the global level (0-255), then wait for the fixture to settle.

        Raises:
            ValidationError: If *level* is outside 0-255.
            DeviceError: If the fixture rejects the command.
            TransportError: If the command cannot be sent.
        """
        self._write(LEVEL_PATH, level_command(level))

    def set_channels(self, values: Sequence[int]) -> None:
        """Set all four channel codes in a single command, then settle.

        Raises:
            ValidationError: If there are not exactly four codes in 0-255.
            DeviceError: If the fixture rejects the command.
            TransportError: If the command cannot be sent.
        """
        self._write(CTRL_PATH, channels_command(values))

    # -- Reads --------------------------------------------------------------

    def get_limit_signal(self, channel: int) -> bool:
        """Return True if the current-limit trip signal for *channel* is active."""
        pin = self._pins.pin(channel)
        payload = self._tx.get_json(LIMIT_PATH)
        return parse_limit_signal(payload, pin, self._tx.base_url + LIMIT_PATH)

    def get_limit_signals(self) -> tuple[bool, ...]:
        """Return the trip state of every channel from one ``GET /limit``."""
        payload = self._tx.get_json(LIMIT_PATH)
        url = self._tx.base_url + LIMIT_PATH
        return tuple(parse_limit_signal(payload, pin, url) for pin in self._pins)

    # -- Internal -----------------------------------------------------------

    def _write(self, path: str, body: str) -> None:
        self._tx.put(path, body)
        self._settle()

    def _settle(self) -> None:
        """Block for the post-write settle delay."""
        time.sleep(self.settle_ms / 1000)
