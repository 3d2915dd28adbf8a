"""
Colour control: scale brightness fractions into calibrated channel codes.

A fraction of ``1.0`` drives a channel to its calibrated limit.  Fractions
are not clamped, so anything that scales past 255 is rejected by the
device client before it reaches the fixture.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence

from .calibration import LimitSet
from .constants import DEFAULT_LEVEL, MAX_CODE, MIN_CODE, NUM_CHANNELS
from .device import DeviceClient
from .exceptions import ValidationError

logger = logging.getLogger(__name__)


def scale(fraction: float, limits: LimitSet) -> list[int]:
    """Return ``floor(fraction * limit)`` for every channel."""
    return [math.floor(fraction * limit) for limit in limits]


def scale_each(fractions: Sequence[float], limits: LimitSet) -> list[int]:
    """Return ``floor(fraction * limit)`` pairing each fraction with its channel."""
    if len(fractions) != NUM_CHANNELS:
        raise ValidationError(f"Expected {NUM_CHANNELS} fractions, got {len(fractions)}")
    return [math.floor(k * limit) for k, limit in zip(fractions, limits)]


class ColorController:
    """Drives the fixture's channels from brightness fractions.

    The global level is initialised lazily, once per controller, before the
    first calibrated or full-brightness write.

    Args:
        device: An open :class:`~linearlight.device.DeviceClient`.
        limits: Calibrated limits, required for fraction modes only.
        level: Persisted level, or ``None`` when nothing is stored.
    """

    def __init__(
        self,
        device: DeviceClient,
        limits: LimitSet | None = None,
        level: int | None = None,
    ) -> None:
        self._dev = device
        self.limits = limits
        self.level = level
        self._level_ready = False

    # -- Level --------------------------------------------------------------

    def ensure_level(self) -> None:
        """Send the persisted level to the fixture, at most once.

        A stored level of 0 is indistinguishable from no stored level and
        also falls back to full level.
        """
        if self._level_ready:
            return
        level = self.level or DEFAULT_LEVEL
        logger.info("Initialising level to %d", level)
        self._dev.set_level(level)
        self._level_ready = True

    # -- Calibrated ---------------------------------------------------------

    def apply_fraction(self, fraction: float) -> list[int]:
        """Drive every channel to *fraction* of its limit; return the codes."""
        values = scale(fraction, self._require_limits())
        self.ensure_level()
        self._dev.set_channels(values)
        return values

    def apply_fractions(self, fractions: Sequence[float]) -> list[int]:
        """Drive each channel to its own fraction of its limit; return the codes."""
        values = scale_each(fractions, self._require_limits())
        self.ensure_level()
        self._dev.set_channels(values)
        return values

    # -- Uncalibrated -------------------------------------------------------

    def full(self) -> None:
        """Drive every channel to 255, ignoring calibration."""
        self.ensure_level()
        self._dev.set_channels([MAX_CODE] * NUM_CHANNELS)

    def off(self) -> None:
        """Drive every channel to 0 without touching the level."""
        self._dev.set_channels([MIN_CODE] * NUM_CHANNELS)

    def _require_limits(self) -> LimitSet:
        if self.limits is None:
            raise ValidationError("Calibrated limits are required for fraction modes")
        return self.limits
