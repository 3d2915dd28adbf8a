"""
Test suite for the linearlight device client.

Organised by layer:

* **Transport** — HTTP session, status checking, transport failures
* **Protocol** — command bodies, validation, limit-field parsing
* **Device** — user-facing API, settle discipline
* **Hardware** — integration tests against a real fixture (skipped by default)

Run unit tests::

    pytest

Run hardware integration tests::

    pytest -m hardware
"""

from __future__ import annotations

from contextlib import suppress
from time import sleep as real_sleep
from unittest.mock import call, patch

import pytest
import requests

from linearlight import (
    DeviceClient,
    DeviceError,
    ResponseError,
    TransportError,
    ValidationError,
)
from linearlight.protocol import (
    LimitPinMap,
    channels_command,
    level_command,
    parse_limit_signal,
)
from linearlight.transport import HttpTransport

# ── Constants ─────────────────────────────────────────────────────────────

FIXTURE_URL = "http://fixture.test"
HARDWARE_URL = "http://192.168.68.112"


# ══════════════════════════════════════════════════════════════════════════
#  Layer 1: Transport
# ══════════════════════════════════════════════════════════════════════════


@pytest.fixture()
def transport(fake_session) -> HttpTransport:
    with patch("linearlight.transport.requests.Session", return_value=fake_session):
        tx = HttpTransport(FIXTURE_URL + "/")
        tx.open()
        return tx


class TestTransportSession:
    def test_open_sets_is_open(self, transport):
        assert transport.is_open

    def test_close_clears_flag(self, transport, fake_session):
        transport.close()
        assert not transport.is_open
        assert fake_session.closed

    def test_close_twice_is_safe(self, transport):
        transport.close()
        transport.close()

    def test_request_when_closed_raises(self, transport):
        transport.close()
        with pytest.raises(TransportError, match="not open"):
            transport.put("/level", "L1")

    def test_trailing_slash_stripped(self, transport):
        assert transport.base_url == FIXTURE_URL


class TestTransportRequests:
    def test_put_sends_body(self, transport, fake_session):
        transport.put("/level", "L42")
        assert fake_session.requests == [("PUT", "/level", "L42")]

    def test_get_json_decodes(self, transport, fake_session):
        assert transport.get_json("/limit") == {"pin17": 0, "pin16": 0, "pin5": 0, "pin19": 0}

    def test_error_status_raises_device_error(self, transport, fake_session):
        fake_session.fail_next(503, "Service Unavailable")
        with pytest.raises(DeviceError) as excinfo:
            transport.put("/ctrl", "W0,0,0,0")
        assert excinfo.value.status == "Service Unavailable"
        assert excinfo.value.url == f"{FIXTURE_URL}/ctrl"
        assert str(excinfo.value) == f"Service Unavailable: {FIXTURE_URL}/ctrl"

    def test_unknown_path_is_device_error(self, transport):
        with pytest.raises(DeviceError, match="Not Found"):
            transport.put("/nope", "")

    def test_connection_failure_raises_transport_error(self, transport, fake_session):
        fake_session.raise_next(requests.ConnectionError("no route to host"))
        with pytest.raises(TransportError, match="Cannot reach fixture"):
            transport.put("/level", "L1")

    def test_invalid_json_raises_response_error(self, transport, fake_session):
        fake_session.limit_body = "<html>oops</html>"
        with pytest.raises(ResponseError, match="Invalid JSON"):
            transport.get_json("/limit")


# ══════════════════════════════════════════════════════════════════════════
#  Layer 2: Protocol
# ══════════════════════════════════════════════════════════════════════════


class TestCommandBodies:
    def test_level_format(self):
        assert level_command(255) == "L255"
        assert level_command(0) == "L0"

    def test_channels_format(self):
        assert channels_command([228, 214, 185, 184]) == "W228,214,185,184"

    @pytest.mark.parametrize("level", [-1, 256, 1.5, True, "10"])
    def test_invalid_level_rejected(self, level):
        with pytest.raises(ValidationError):
            level_command(level)

    def test_wrong_channel_count_rejected(self):
        with pytest.raises(ValidationError, match="Expected 4"):
            channels_command([1, 2, 3])

    def test_out_of_range_channel_rejected(self):
        with pytest.raises(ValidationError, match="channel 2 value"):
            channels_command([0, 0, 256, 0])


class TestLimitParsing:
    def test_zero_is_not_tripped(self):
        assert parse_limit_signal({"pin5": 0}, "pin5") is False

    @pytest.mark.parametrize("raw", [1, 2, -1, "1"])
    def test_nonzero_is_tripped(self, raw):
        assert parse_limit_signal({"pin5": raw}, "pin5") is True

    def test_missing_field_raises(self):
        with pytest.raises(ResponseError, match="Missing limit field 'pin19'"):
            parse_limit_signal({"pin17": 0}, "pin19", "http://x/limit")

    def test_non_object_raises(self):
        with pytest.raises(ResponseError, match="JSON object"):
            parse_limit_signal([0, 0, 0, 0], "pin17")

    def test_non_numeric_field_raises(self):
        with pytest.raises(ResponseError, match="Non-numeric"):
            parse_limit_signal({"pin17": "high"}, "pin17")


class TestLimitPinMap:
    def test_default_mapping_is_positional(self):
        pins = LimitPinMap()
        assert [pins.pin(ch) for ch in range(4)] == ["pin17", "pin16", "pin5", "pin19"]

    @pytest.mark.parametrize("channel", [-1, 4])
    def test_invalid_channel_rejected(self, channel):
        with pytest.raises(ValidationError, match="Channel must be 0-3"):
            LimitPinMap().pin(channel)

    def test_duplicate_pins_rejected(self):
        with pytest.raises(ValidationError, match="unique"):
            LimitPinMap(["a", "a", "b", "c"])

    def test_wrong_pin_count_rejected(self):
        with pytest.raises(ValidationError, match="Expected 4"):
            LimitPinMap(["a", "b"])


# ══════════════════════════════════════════════════════════════════════════
#  Layer 3: Device client
# ══════════════════════════════════════════════════════════════════════════


class TestDeviceWrites:
    def test_set_level(self, device, fake_session):
        device.set_level(200)
        assert fake_session.writes == [("/level", "L200")]
        assert fake_session.level == 200

    def test_set_channels_is_one_command(self, device, fake_session):
        device.set_channels([1, 2, 3, 4])
        assert fake_session.writes == [("/ctrl", "W1,2,3,4")]

    def test_every_write_settles_5ms(self, device, fake_sleep):
        device.set_level(255)
        device.set_channels([0, 0, 0, 0])
        assert fake_sleep.call_args_list == [call(0.005), call(0.005)]

    def test_failed_write_does_not_settle(self, device, fake_session, fake_sleep):
        fake_session.fail_next(500, "Internal Server Error")
        with pytest.raises(DeviceError):
            device.set_level(255)
        fake_sleep.assert_not_called()

    def test_invalid_values_never_sent(self, device, fake_session):
        with pytest.raises(ValidationError):
            device.set_channels([0, 0, 0, 300])
        assert fake_session.requests == []

    def test_custom_settle(self, fake_session, fake_sleep):
        with patch("linearlight.transport.requests.Session", return_value=fake_session):
            with DeviceClient(FIXTURE_URL, settle_ms=20) as client:
                client.set_level(1)
        fake_sleep.assert_called_once_with(0.02)


class TestDeviceReads:
    def test_get_limit_signal_not_tripped(self, device):
        assert device.get_limit_signal(0) is False

    def test_get_limit_signal_maps_channel_to_pin(self, device, fake_session):
        fake_session.limit_body = '{"pin17": 0, "pin16": 0, "pin5": 1, "pin19": 0}'
        assert device.get_limit_signal(2) is True
        assert device.get_limit_signal(1) is False

    def test_read_does_not_settle(self, device, fake_sleep):
        device.get_limit_signal(0)
        fake_sleep.assert_not_called()

    def test_get_limit_signals(self, device, fake_session):
        fake_session.limit_body = '{"pin17": 1, "pin16": 0, "pin5": 0, "pin19": 3}'
        assert device.get_limit_signals() == (True, False, False, True)
        assert fake_session.limit_reads == 1

    def test_custom_pins(self, fake_session):
        fake_session.limit_body = '{"a": 0, "b": 0, "c": 0, "d": 1}'
        with patch("linearlight.transport.requests.Session", return_value=fake_session):
            with DeviceClient(FIXTURE_URL, limit_pins=["a", "b", "c", "d"]) as client:
                assert client.get_limit_signal(3) is True

    def test_error_status_on_read(self, device, fake_session):
        fake_session.fail_next(404, "Not Found")
        with pytest.raises(DeviceError, match=f"Not Found: {FIXTURE_URL}/limit"):
            device.get_limit_signal(0)


class TestDeviceSession:
    def test_context_manager_closes(self, fake_session):
        with patch("linearlight.transport.requests.Session", return_value=fake_session):
            with DeviceClient(FIXTURE_URL) as client:
                assert client.is_open
            assert not client.is_open
        assert fake_session.closed


# ══════════════════════════════════════════════════════════════════════════
#  Hardware integration tests — require a real fixture
# ══════════════════════════════════════════════════════════════════════════


@pytest.mark.hardware
class TestHardwareIntegration:
    """Run only with ``pytest -m hardware``.

    These tests talk to a real fixture at ``HARDWARE_URL``.
    """

    @pytest.fixture(autouse=True)
    def _open_device(self, fake_sleep):
        fake_sleep.side_effect = real_sleep
        self.fixture = DeviceClient(HARDWARE_URL, timeout=5)
        self.fixture.open()
        yield
        with suppress(Exception):
            self.fixture.set_channels([0, 0, 0, 0])
        self.fixture.close()

    def test_off_does_not_trip(self):
        self.fixture.set_channels([0, 0, 0, 0])
        assert self.fixture.get_limit_signals() == (False, False, False, False)

    def test_level_accepted(self):
        self.fixture.set_level(0)
