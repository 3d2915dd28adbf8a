"""
Exception hierarchy for the linearlight fixture tools.

All exceptions inherit from :class:`LinearLightError` so callers can catch
broadly (``except LinearLightError``) or narrowly (``except DeviceError``).
"""

from __future__ import annotations


class LinearLightError(Exception):
    """Base exception for all linearlight errors."""


class TransportError(LinearLightError):
    """Raised when the fixture is unreachable or a request cannot be sent."""


class DeviceError(LinearLightError):
    """Raised when the fixture answers with a non-success HTTP status.

    Args:
        status: Status text reported by the fixture (e.g. ``Not Found``).
        url: Full URL of the failed request.
    """

    def __init__(self, status: str, url: str) -> None:
        super().__init__(f"{status}: {url}")
        self.status = status
        self.url = url


class ResponseError(DeviceError):
    """Raised when a successful response carries an unusable body."""


class ConfigurationError(LinearLightError):
    """Raised when persisted limits are missing or malformed."""


class ValidationError(LinearLightError):
    """Raised when an argument fails pre-send validation."""
