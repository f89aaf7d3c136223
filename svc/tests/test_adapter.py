"""
Tests for the bridge client and the bridge payload models.

Tests cover:
- Parsing lights / groups / sensors payloads
- lastupdated handling
- BridgeClient error mapping (transport, HTTP status, bridge error replies, bad payloads)
"""
import pytest
import requests

from exporter.adapter import BridgeClient, BridgeError
from exporter.models import UNSET_TIMESTAMP, parse_groups, parse_last_updated, parse_lights, parse_sensors


class FakeResponse:
    def __init__(self, status_code=200, payload=None, invalid_json=False):
        self.status_code = status_code
        self._payload = payload
        self._invalid_json = invalid_json

    def json(self):
        if self._invalid_json:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self._payload


@pytest.fixture
def client():
    return BridgeClient(address="192.168.1.20", api_key="s3cr3t-key", timeout=2.5)


@pytest.fixture
def fake_get(monkeypatch):
    """Patch requests.get; returns the list of (url, kwargs) calls and a setter for the response."""
    calls = []
    state = {"response": FakeResponse(payload={}), "raises": None}

    def _get(url, **kwargs):
        calls.append((url, kwargs))
        if state["raises"] is not None:
            raise state["raises"]
        return state["response"]

    monkeypatch.setattr("exporter.adapter.requests.get", _get)
    return calls, state


class TestModels:
    """Tests for payload parsing."""

    def test_last_updated(self):
        assert parse_last_updated("2017-01-01T00:00:00") == 1483228800
        assert parse_last_updated("none") == UNSET_TIMESTAMP
        assert parse_last_updated(None) == UNSET_TIMESTAMP
        assert parse_last_updated("") == UNSET_TIMESTAMP

    def test_last_updated_fractional_seconds(self):
        assert parse_last_updated("2017-01-01T00:00:00.123") == 1483228800
        assert parse_last_updated("2017-01-01T00:00:01.999999") == 1483228801

    def test_last_updated_rejects_garbage(self):
        with pytest.raises(ValueError):
            parse_last_updated("yesterday")

    def test_sensors_sorted_by_numeric_index(self):
        records = parse_sensors({
            "10": {"type": "Daylight", "name": "b"},
            "2": {"type": "Daylight", "name": "a"},
        })
        assert [r.index for r in records] == ["2", "10"]
        assert [r.name for r in records] == ["a", "b"]

    def test_sensor_defaults_for_missing_fields(self):
        record = parse_sensors({"1": {"type": "Daylight", "name": "Daylight", "config": {"on": True, "battery": None}}})[0]
        assert record.unique_id == ""
        assert record.sensor_config.battery == 0
        assert record.sensor_config.reachable is False
        assert record.state.last_updated == UNSET_TIMESTAMP

    def test_lights(self):
        lights = parse_lights({"1": {
            "name": "Desk", "type": "Dimmable light", "modelid": "LWB010", "uniqueid": "aa-0b",
            "state": {"on": True, "bri": 120, "reachable": True},
        }})
        assert lights[0].model_id == "LWB010"
        assert lights[0].state.bri == 120
        assert lights[0].state.hue == 0

    def test_groups(self):
        groups = parse_groups({"0": {"name": "All", "type": "LightGroup", "action": {"bri": 3}, "state": {"any_on": True}}})
        assert groups[0].action.bri == 3
        assert groups[0].state.all_on is False
        assert groups[0].state.any_on is True

    def test_invalid_record_dropped_alone(self):
        records = parse_sensors({
            "1": {"type": "CLIPTemperature", "name": "Balcony", "state": {"temperature": 21.5}},
            "2": "not a sensor",
            "3": {"type": "Daylight", "name": "Daylight", "state": {"daylight": True}},
        })
        assert [r.index for r in records] == ["3"]

    def test_non_object_payload(self):
        with pytest.raises(ValueError):
            parse_sensors([{"error": {}}])


class TestBridgeClient:
    """Tests for BridgeClient."""

    def test_requires_address_and_key(self):
        with pytest.raises(ValueError):
            BridgeClient(address="", api_key="")

    def test_fetch_sensors(self, client, fake_get):
        calls, state = fake_get
        state["response"] = FakeResponse(payload={
            "1": {"type": "ZLLSwitch", "name": "Dimmer", "uniqueid": "00:17:88:01:10:3e:3a:dc-02-fc00",
                  "state": {"buttonevent": 17, "lastupdated": "none"}},
        })
        sensors = client.fetch_sensors()
        assert sensors[0].state.button_event == 17
        url, kwargs = calls[0]
        assert url == "http://192.168.1.20/api/s3cr3t-key/sensors"
        assert kwargs["timeout"] == 2.5

    def test_fetch_lights_and_groups_urls(self, client, fake_get):
        calls, _ = fake_get
        client.fetch_lights()
        client.fetch_groups()
        assert [c[0].rsplit("/", 1)[-1] for c in calls] == ["lights", "groups"]

    def test_bridge_error_reply(self, client, fake_get):
        _, state = fake_get
        state["response"] = FakeResponse(payload=[
            {"error": {"type": 1, "address": "/", "description": "unauthorized user"}}
        ])
        with pytest.raises(BridgeError, match="Error type 1: unauthorized user"):
            client.fetch_sensors()

    def test_http_status(self, client, fake_get):
        _, state = fake_get
        state["response"] = FakeResponse(status_code=503)
        with pytest.raises(BridgeError, match="HTTP 503"):
            client.fetch_groups()

    def test_transport_error_hides_key(self, client, fake_get):
        _, state = fake_get
        state["raises"] = requests.exceptions.ConnectTimeout(
            "HTTPConnectionPool(host='192.168.1.20'): /api/s3cr3t-key/lights timed out"
        )
        with pytest.raises(BridgeError) as excinfo:
            client.fetch_lights()
        assert "s3cr3t-key" not in str(excinfo.value)
        assert "192.168.1.20" in str(excinfo.value)

    def test_invalid_json(self, client, fake_get):
        _, state = fake_get
        state["response"] = FakeResponse(invalid_json=True)
        with pytest.raises(BridgeError, match="decode"):
            client.fetch_sensors()

    def test_invalid_record_is_skipped(self, client, fake_get):
        _, state = fake_get
        state["response"] = FakeResponse(payload={
            "1": {"type": "ZLLPresence", "name": "Hall", "state": {"lastupdated": "yesterday"}},
            "2": {"type": "ZLLSwitch", "name": "Dimmer", "state": {"buttonevent": 1002}},
        })
        sensors = client.fetch_sensors()
        assert [s.name for s in sensors] == ["Dimmer"]

    def test_unexpected_payload_shape(self, client, fake_get):
        _, state = fake_get
        state["response"] = FakeResponse(payload=[{"success": {}}])
        with pytest.raises(BridgeError, match="unable to parse sensors"):
            client.fetch_sensors()
