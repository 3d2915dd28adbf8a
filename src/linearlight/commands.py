"""
Command dispatcher for the linearlight tool.

Each top-level command (``long``, ``calib``, ``colour``, ``white``,
``off``) is a plain function that drives the engines against an open
:class:`~linearlight.device.DeviceClient` and returns a
:class:`CommandResult`.  Device errors are not caught here; they abort the
command and propagate to the caller.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from .calibration import CalibrationEngine, LimitSet
from .color import ColorController
from .constants import CALIB_RUNS, LONG_CALIB_RUNS, NUM_CHANNELS
from .device import DeviceClient
from .exceptions import ConfigurationError, ValidationError
from .settings import SettingsStore

logger = logging.getLogger(__name__)

USAGE = """\
Supported commands:
  long            : run calibration 100 times and print limits
  calib           : run calibration 5 times and store channel limits in the settings directory
  colour X        : where X is a floating point number between 0 and 1.0,
                    set all four channels to this fraction of their limit
  colour R G B W  : where R, G, B, W are floating point numbers between 0.0 and 1.0,
                    set respective channel to fraction of their limit
  white           : full brightness
  off             : minimum brightness
"""


@dataclass
class CommandResult:
    """Outcome of a dispatched command."""

    command: str
    message: str = ""
    limits: LimitSet | None = None
    values: list[int] = field(default_factory=list)
    usage: bool = False


@dataclass
class Session:
    """Collaborators shared by every command in one tool invocation."""

    device: DeviceClient
    store: SettingsStore
    echo: Callable[[str], None] = print


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def do_long(session: Session, args: Sequence[str]) -> CommandResult:
    """Calibrate many times, echoing each run; the result is discarded."""
    limits = CalibrationEngine(session.device, session.echo).calibrate(
        LONG_CALIB_RUNS, verbose=True
    )
    return CommandResult("long", limits=limits)


def do_calib(session: Session, args: Sequence[str]) -> CommandResult:
    """Calibrate, persist, and report the limits."""
    limits = _calibrate_and_store(session)
    return CommandResult("calib", message=str(limits), limits=limits)


def do_colour(session: Session, args: Sequence[str]) -> CommandResult:
    """Apply one global fraction or four per-channel fractions."""
    fractions = _parse_fractions(args)
    limits = _stored_or_fresh_limits(session)

    controller = ColorController(session.device, limits, _stored_level(session))
    if len(fractions) == 1:
        values = controller.apply_fraction(fractions[0])
    else:
        values = controller.apply_fractions(fractions)
    return CommandResult(
        "colour", message=",".join(str(v) for v in values), limits=limits, values=values
    )


def do_white(session: Session, args: Sequence[str]) -> CommandResult:
    ColorController(session.device, level=_stored_level(session)).full()
    return CommandResult("white", values=[255] * NUM_CHANNELS)


def do_off(session: Session, args: Sequence[str]) -> CommandResult:
    ColorController(session.device).off()
    return CommandResult("off", values=[0] * NUM_CHANNELS)


COMMANDS: dict[str, Callable[[Session, Sequence[str]], CommandResult]] = {
    "long": do_long,
    "calib": do_calib,
    "colour": do_colour,
    "white": do_white,
    "off": do_off,
}


def dispatch(session: Session, command: str | None, args: Sequence[str] = ()) -> CommandResult:
    """Run *command* with *args*; unknown or missing commands return usage."""
    handler = COMMANDS.get(command or "")
    if handler is None:
        if command:
            logger.warning("Unknown command %r", command)
        return CommandResult(command or "", message=USAGE, usage=True)
    logger.info("Running %s %s", command, " ".join(args))
    return handler(session, args)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _calibrate_and_store(session: Session) -> LimitSet:
    limits = CalibrationEngine(session.device, session.echo).calibrate(CALIB_RUNS, verbose=True)
    session.store.save_limits(limits)
    return limits


def _stored_or_fresh_limits(session: Session) -> LimitSet:
    """Return persisted limits, calibrating afresh when they are unusable."""
    try:
        limits = session.store.load_limits()
    except ConfigurationError as exc:
        logger.warning("Stored limits unusable (%s); recalibrating", exc)
        limits = None

    if limits is None:
        return _calibrate_and_store(session)
    session.echo(f"From storage: limits {limits}")
    return limits


def _parse_fractions(args: Sequence[str]) -> list[float]:
    if len(args) not in (1, NUM_CHANNELS):
        raise ValidationError(
            f"colour takes 1 or {NUM_CHANNELS} fractions, got {len(args)}"
        )
    try:
        fractions = [float(a) for a in args]
    except ValueError as exc:
        raise ValidationError(f"Fractions must be numbers, got {list(args)}") from exc
    if not all(math.isfinite(k) for k in fractions):
        raise ValidationError(f"Fractions must be finite, got {list(args)}")
    return fractions


def _stored_level(session: Session) -> int | None:
    level = session.store.load_level()
    if level:
        session.echo(f"From storage: level {level}")
    return level
