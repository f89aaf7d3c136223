"""Shared fixtures: bridge-format sensor payloads and a simulated bridge."""
import pytest

from exporter.simulator import DEFAULT_DATASET, SimulatedBridge


def _sensor_payload(
    type_tag,
    unique_id="",
    name="",
    state=None,
    config=None,
    **extra,
):
    payload = {
        "type": type_tag,
        "name": name or type_tag,
        "modelid": extra.pop("modelid", "SML001"),
        "manufacturername": extra.pop("manufacturername", "Signify Netherlands B.V."),
        "productname": extra.pop("productname", ""),
        "state": {"lastupdated": "2026-10-18T07:00:00", **(state or {})},
        "config": {"on": True, "reachable": True, "battery": 100, **(config or {})},
    }
    if unique_id:
        payload["uniqueid"] = unique_id
    payload.update(extra)
    return payload


@pytest.fixture
def sensor_payload():
    """Factory for a single bridge-format sensor object."""
    return _sensor_payload


@pytest.fixture
def sim_bridge():
    """Simulated bridge serving the built-in dataset."""
    return SimulatedBridge(dataset=DEFAULT_DATASET)
