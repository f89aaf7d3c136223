from fastapi.testclient import TestClient
from main import app
from exporter.routes import get_service
from exporter.service import ExporterService
from exporter.simulator import SimulatedBridge

client = TestClient(app)


def test_health():
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"
    # Verify we're running against the simulated bridge for tests
    assert r.json()["mode"] == "sim"


def test_metrics():
    r = client.get("/metrics")
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/plain")
    body = r.text
    assert "hue_light_brightness{" in body
    assert "hue_group_on{" in body
    assert "hue_sensor_value{" in body
    assert "hue_bridge_restarts_total" in body


def test_list_sensors():
    r = client.get("/sensors")
    assert r.status_code == 200
    sensors = r.json()
    # 6 supported sensors in the simulated dataset
    assert len(sensors) == 6
    # first pass before second pass
    assert [s["type"] for s in sensors][-2:] == ["ZLLTemperature", "ZLLLightLevel"]
    presence = next(s for s in sensors if s["type"] == "ZLLPresence")
    assert presence["device_id"] == "00:17:88:01:02:00:b5:d1"


def test_metrics_survives_bridge_failure():
    bridge = SimulatedBridge()
    bridge.fail("sensors")
    bridge.fail("lights")
    service = ExporterService(mode="sim", bridge=bridge, ignore_types=(), match_names=False)
    app.dependency_overrides[get_service] = lambda: service
    try:
        r = client.get("/metrics")
        assert r.status_code == 200
        assert "hue_sensor_scrapes_failed_total 1.0" in r.text
        assert "hue_light_scrapes_failed_total 1.0" in r.text
        assert "hue_group_on{" in r.text

        r2 = client.get("/sensors")
        assert r2.status_code == 502
        assert "sensors" in r2.json()["detail"]
    finally:
        app.dependency_overrides.clear()


def test_health_does_not_need_bridge(monkeypatch):
    def unconfigured(*args, **kwargs):
        raise ValueError("HUE_BRIDGE_ADDRESS and HUE_API_KEY must be set in real mode")

    monkeypatch.setattr("exporter.routes.MODE", "real")
    monkeypatch.setattr("exporter.routes.svc", None)
    monkeypatch.setattr("exporter.routes.ExporterService", unconfigured)
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok", "mode": "real"}
