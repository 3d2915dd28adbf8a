"""
HTTP transport layer for the linearlight fixture.

Handles the HTTP session, request framing, and status checking.  Knows
nothing about what commands mean — that's :mod:`protocol`'s job.

Typical usage (via :class:`~linearlight.device.DeviceClient`)::

    transport = HttpTransport("http://192.168.68.112")
    transport.open()
    transport.put("/level", "L255")
    transport.close()
"""

from __future__ import annotations

import logging
from typing import Any

import requests

from .exceptions import DeviceError, ResponseError, TransportError

logger = logging.getLogger(__name__)


class HttpTransport:
    """Manages an HTTP session to a fixture's local device interface.

    Args:
        base_url: Fixture base URL (e.g. ``http://192.168.68.112``).
        timeout: Per-request timeout in seconds, or ``None`` to wait for
            the fixture indefinitely.
    """

    def __init__(self, base_url: str, timeout: float | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session: requests.Session | None = None

    # -- Lifecycle ----------------------------------------------------------

    def open(self) -> None:
        """Start the HTTP session (no request is made yet)."""
        logger.info("Opening HTTP session to %s", self.base_url)
        self._session = requests.Session()

    def close(self) -> None:
        """Close the HTTP session (safe to call multiple times)."""
        if self._session is not None:
            self._session.close()
            self._session = None
            logger.info("HTTP session to %s closed", self.base_url)

    @property
    def is_open(self) -> bool:
        """Return ``True`` if the session is currently open."""
        return self._session is not None

    # -- I/O ----------------------------------------------------------------

    def put(self, path: str, body: str) -> None:
        """Send *body* to *path* with ``PUT`` and require a success status.

        Raises:
            TransportError: If the session is closed or the request fails.
            DeviceError: If the fixture answers with a non-success status.
        """
        self._request("PUT", path, data=body)

    def get_json(self, path: str) -> Any:
        """``GET`` *path* and return the decoded JSON body.

        Raises:
            TransportError: If the session is closed or the request fails.
            DeviceError: If the fixture answers with a non-success status.
            ResponseError: If the body is not valid JSON.
        """
        response = self._request("GET", path)
        try:
            return response.json()
        except ValueError as exc:
            raise ResponseError("Invalid JSON body", response.url) from exc

    # -- Internal -----------------------------------------------------------

    def _request(self, method: str, path: str, data: str | None = None) -> requests.Response:
        session = self._require_open()
        url = f"{self.base_url}{path}"
        logger.debug("TX: %s %s %s", method, url, data or "")

        try:
            response = session.request(method, url, data=data, timeout=self.timeout)
        except requests.RequestException as exc:
            raise TransportError(f"Cannot reach fixture at {url}: {exc}") from exc

        logger.debug("RX: %s %s", response.status_code, response.reason)
        if not response.ok:
            raise DeviceError(response.reason, response.url)
        return response

    def _require_open(self) -> requests.Session:
        """Return the open session or raise."""
        if self._session is None:
            raise TransportError("HTTP session not open — call open() first.")
        return self._session
