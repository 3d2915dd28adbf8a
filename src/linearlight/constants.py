"""Shared runtime constants for the linearlight fixture tools.

This is the canonical source of truth for protocol limits and tool
defaults.  Other modules should import from here rather than defining
their own copies.
"""

# ---------------------------------------------------------------------------
# Protocol / validation limits
# ---------------------------------------------------------------------------

NUM_CHANNELS = 4
MIN_CODE = 0
MAX_CODE = 255

# Limit-status field for each channel, in channel order (R, G, B, W)
LIMIT_PINS = ("pin17", "pin16", "pin5", "pin19")

# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

LEVEL_PATH = "/level"
CTRL_PATH = "/ctrl"
LIMIT_PATH = "/limit"

# ---------------------------------------------------------------------------
# Tool defaults
# ---------------------------------------------------------------------------

DEFAULT_URL = "http://192.168.68.112"
DEFAULT_SETTLE_MS = 5
DEFAULT_TIMEOUT = None  # block until the fixture answers
DEFAULT_LEVEL = MAX_CODE
DEFAULT_SETTINGS_DIR = "settings/emilite"

CALIB_RUNS = 5
LONG_CALIB_RUNS = 100

# Persisted keys
LIMITS_KEY = "LIMITS"
LEVEL_KEY = "LEVEL"
