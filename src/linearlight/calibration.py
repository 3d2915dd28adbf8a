"""
Current-limit calibration for a linearlight fixture.

Each channel's safe maximum code is found empirically: the channel is
driven alone while the fixture's protection circuitry is watched, and a
binary search narrows in on the highest code that does not trip.  Several
runs are aggregated per channel to smooth out noisy trips::

    with DeviceClient(url) as fixture:
        limits = CalibrationEngine(fixture).calibrate(5, verbose=True)
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass

from .constants import MAX_CODE, MIN_CODE, NUM_CHANNELS
from .device import DeviceClient
from .exceptions import LinearLightError, ValidationError
from .protocol import validate_channel, validate_code

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Data
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LimitSet:
    """Calibrated maximum code per channel."""

    red: int
    green: int
    blue: int
    white: int

    def __post_init__(self) -> None:
        for name, value in zip(("red", "green", "blue", "white"), self.as_tuple()):
            validate_code(value, f"{name} limit")

    def __iter__(self) -> Iterator[int]:
        return iter(self.as_tuple())

    def __len__(self) -> int:
        return NUM_CHANNELS

    def __getitem__(self, channel: int) -> int:
        return self.as_tuple()[channel]

    def as_tuple(self) -> tuple[int, int, int, int]:
        return (self.red, self.green, self.blue, self.white)

    def as_list(self) -> list[int]:
        return list(self.as_tuple())

    def __str__(self) -> str:
        return ",".join(str(v) for v in self)

    @classmethod
    def from_sequence(cls, values: Sequence[int]) -> LimitSet:
        """Build a :class:`LimitSet` from four codes in channel order."""
        if len(values) != NUM_CHANNELS:
            raise ValidationError(f"Expected {NUM_CHANNELS} limits, got {len(values)}")
        return cls(*values)


def isolated_channel_values(channel: int, value: int) -> list[int]:
    """Return channel codes with only *channel* set to *value*.

    Every other channel is 0, so a trip read back afterwards can only have
    been caused by *channel*.
    """
    validate_channel(channel)
    values = [0] * NUM_CHANNELS
    values[channel] = value
    return values


def aggregate_limits(samples: Sequence[Sequence[int]]) -> LimitSet:
    """Combine per-run samples into one :class:`LimitSet`.

    For each channel the samples are sorted and the element at index
    ``len(samples) // 2`` is taken.  With an even number of runs this is
    the upper of the two middle values, not their average.
    """
    if not samples:
        raise ValidationError("Cannot aggregate zero calibration runs")
    mid = len(samples) // 2
    per_channel = zip(*samples)
    return LimitSet.from_sequence([sorted(column)[mid] for column in per_channel])


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


class CalibrationEngine:
    """Runs the per-channel limit search against a live fixture.

    Args:
        device: An open :class:`~linearlight.device.DeviceClient`.
        echo: Called with each run's raw ``r,g,b,w`` sample when
            calibrating verbosely.
    """

    def __init__(self, device: DeviceClient, echo: Callable[[str], None] = print) -> None:
        self._dev = device
        self._echo = echo

    def find_limit(self, channel: int, lo: int = MIN_CODE, hi: int = MAX_CODE) -> int:
        """Return the highest code in ``[lo, hi)`` that does not trip *channel*.

        *lo* is assumed not to trip and *hi* is assumed to trip.  Each step
        writes the isolated channel value, waits for it to settle, and reads
        the trip signal back, so a 0-255 search takes at most 8 round trips.
        The range shrinks on every step, so the search terminates even if
        the trip signal is not monotonic (the result is then arbitrary).
        """
        validate_channel(channel)
        steps = 0
        while True:
            mid = (lo + hi) // 2
            if mid == lo:
                logger.debug("Channel %d limit %d after %d steps", channel, lo, steps)
                return lo

            self._dev.set_channels(isolated_channel_values(channel, mid))
            tripped = self._dev.get_limit_signal(channel)
            steps += 1
            logger.debug("Channel %d step %d: %d -> %s", channel, steps, mid,
                         "tripped" if tripped else "ok")
            if tripped:
                hi = mid
            else:
                lo = mid

    def sample_limits(self) -> LimitSet:
        """Run one calibration pass over channels 0-3 in order."""
        return LimitSet.from_sequence([self.find_limit(ch) for ch in range(NUM_CHANNELS)])

    def calibrate(self, num_runs: int, verbose: bool = False) -> LimitSet:
        """Calibrate all channels *num_runs* times and aggregate the results.

        The level is raised to full before searching so trips reflect the
        worst-case current, and dropped to 0 once every run has finished.
        Any device error aborts the whole calibration; nothing is persisted
        here.
        """
        if num_runs < 1:
            raise ValidationError(f"num_runs must be >= 1, got {num_runs}")

        logger.info("Calibrating %d channels, %d runs", NUM_CHANNELS, num_runs)
        self._dev.set_level(MAX_CODE)

        samples: list[LimitSet] = []
        try:
            for run in range(num_runs):
                sample = self.sample_limits()
                samples.append(sample)
                logger.debug("Run %d/%d: %s", run + 1, num_runs, sample)
                if verbose:
                    self._echo(str(sample))
        except LinearLightError:
            logger.error(
                "Calibration aborted after %d/%d runs; fixture left at level %d",
                len(samples), num_runs, MAX_CODE,
            )
            raise

        self._dev.set_level(MIN_CODE)
        limits = aggregate_limits(samples)
        logger.info("Calibrated limits: %s", limits)
        return limits
