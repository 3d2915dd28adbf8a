"""linearlight: current-limit calibration and colour control for a 4-channel LED fixture"""

from .calibration import CalibrationEngine, LimitSet, aggregate_limits
from .color import ColorController
from .commands import CommandResult, Session, dispatch
from .constants import CALIB_RUNS, DEFAULT_LEVEL, LIMIT_PINS, LONG_CALIB_RUNS
from .device import DeviceClient
from .exceptions import (
    ConfigurationError,
    DeviceError,
    LinearLightError,
    ResponseError,
    TransportError,
    ValidationError,
)
from .settings import FixtureConfig, SettingsStore, load_config

__all__ = [
    "CALIB_RUNS",
    "CalibrationEngine",
    "ColorController",
    "CommandResult",
    "ConfigurationError",
    "DEFAULT_LEVEL",
    "DeviceClient",
    "DeviceError",
    "FixtureConfig",
    "LIMIT_PINS",
    "LONG_CALIB_RUNS",
    "LimitSet",
    "LinearLightError",
    "ResponseError",
    "Session",
    "SettingsStore",
    "TransportError",
    "ValidationError",
    "aggregate_limits",
    "dispatch",
    "load_config",
]
__version__ = "0.1.0"
