"""Shared pytest fixtures for linearlight tests."""

from __future__ import annotations

import json
from unittest.mock import patch
from urllib.parse import urlsplit

import pytest

from linearlight import DeviceClient, SettingsStore
from linearlight.constants import LIMIT_PINS

FIXTURE_URL = "http://fixture.test"


class FakeResponse:
    """Subset of ``requests.Response`` used by the transport."""

    def __init__(self, url: str, status_code: int = 200, reason: str = "OK", text: str = ""):
        self.url = url
        self.status_code = status_code
        self.reason = reason
        self.text = text

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def json(self):
        return json.loads(self.text)


class FakeSession:
    """Lightweight stand-in for ``requests.Session`` that simulates a fixture.

    Each channel trips when its code is strictly above its threshold, so a
    threshold *is* the limit the calibration should find.  The last
    ``PUT /ctrl`` decides what ``GET /limit`` reports.

    Call :meth:`fail_next` or :meth:`raise_next` to stage a failure for the
    **next** request; after that request the simulation resumes.  Set
    :attr:`trip_script` to a list of booleans to override the simulated
    trip signal, one entry per ``GET /limit``, for non-monotonic scenarios.
    """

    def __init__(self, thresholds=(255, 255, 255, 255)) -> None:
        self.thresholds = list(thresholds)
        self.channels = [0, 0, 0, 0]
        self.level: int | None = None
        self.requests: list[tuple[str, str, str | None]] = []
        self.closed = False
        self.trip_script: list[bool] | None = None
        self.limit_body: str | None = None
        self._next_status: tuple[int, str] | None = None
        self._next_exc: Exception | None = None

    # -- Helpers for tests --------------------------------------------------

    def fail_next(self, status_code: int = 500, reason: str = "Internal Server Error") -> None:
        self._next_status = (status_code, reason)

    def raise_next(self, exc: Exception) -> None:
        self._next_exc = exc

    @property
    def writes(self) -> list[tuple[str, str | None]]:
        """``(path, body)`` of every ``PUT`` in order."""
        return [(path, body) for method, path, body in self.requests if method == "PUT"]

    @property
    def ctrl_bodies(self) -> list[str]:
        return [body for path, body in self.writes if path == "/ctrl"]

    @property
    def level_bodies(self) -> list[str]:
        return [body for path, body in self.writes if path == "/level"]

    @property
    def limit_reads(self) -> int:
        return sum(1 for method, path, _ in self.requests if method == "GET" and path == "/limit")

    # -- requests.Session interface -----------------------------------------

    def request(self, method, url, data=None, timeout=None):
        path = urlsplit(url).path
        self.requests.append((method, path, data))

        if self._next_exc is not None:
            exc, self._next_exc = self._next_exc, None
            raise exc
        if self._next_status is not None:
            (code, reason), self._next_status = self._next_status, None
            return FakeResponse(url, code, reason)

        if method == "PUT" and path == "/level":
            self.level = int(data[1:])
        elif method == "PUT" and path == "/ctrl":
            self.channels = [int(v) for v in data[1:].split(",")]
        elif method == "GET" and path == "/limit":
            return FakeResponse(url, text=self._limit_body())
        else:
            return FakeResponse(url, 404, "Not Found")
        return FakeResponse(url)

    def close(self) -> None:
        self.closed = True

    # -- Simulation ---------------------------------------------------------

    def _limit_body(self) -> str:
        if self.limit_body is not None:
            return self.limit_body
        if self.trip_script is not None:
            tripped = self.trip_script.pop(0)
            return json.dumps({pin: int(tripped) for pin in LIMIT_PINS})
        return json.dumps(
            {
                pin: 1 if value > threshold else 0
                for pin, value, threshold in zip(LIMIT_PINS, self.channels, self.thresholds)
            }
        )


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def fake_session() -> FakeSession:
    """Return a fresh ``FakeSession`` with no channel ever tripping."""
    return FakeSession()


@pytest.fixture(autouse=True)
def fake_sleep():
    """Patch out the post-write settle delay and record its calls."""
    with patch("linearlight.device.time.sleep") as sleep:
        yield sleep


@pytest.fixture()
def device(fake_session: FakeSession) -> DeviceClient:
    """Return an open ``DeviceClient`` wired to a fake HTTP session."""
    with patch("linearlight.transport.requests.Session", return_value=fake_session):
        client = DeviceClient(FIXTURE_URL)
        client.open()
        return client


@pytest.fixture()
def make_device():
    """Return a factory for open clients on a fixture with given thresholds."""

    def _make(thresholds=(255, 255, 255, 255)) -> tuple[DeviceClient, FakeSession]:
        session = FakeSession(thresholds)
        with patch("linearlight.transport.requests.Session", return_value=session):
            client = DeviceClient(FIXTURE_URL)
            client.open()
        return client, session

    return _make


@pytest.fixture()
def store(tmp_path) -> SettingsStore:
    """Return an initialised ``SettingsStore`` in a temp directory."""
    settings = SettingsStore(tmp_path / "settings")
    settings.init()
    return settings
