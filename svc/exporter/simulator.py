from __future__ import annotations
import copy
import json
import logging
import os
import threading
from typing import Any, Callable, Dict, List, Optional, Set, TypeVar

from .adapter import BridgeError
from .config import SIM_DATA_FILE
from .models import GroupRecord, LightRecord, SensorRecord, parse_groups, parse_lights, parse_sensors

logger = logging.getLogger(__name__)

T = TypeVar("T")

RESOURCES = ("lights", "groups", "sensors")

# Bridge-format payloads for a small installation: two lights in one room,
# the built-in daylight sensor, a dimmer switch, one motion sensor (split into
# presence / temperature / light level records) and a CLIP status sensor.
DEFAULT_DATASET: Dict[str, Dict[str, Any]] = {
    "lights": {
        "1": {
            "state": {"on": True, "bri": 254, "hue": 8418, "sat": 140, "reachable": True},
            "type": "Extended color light",
            "name": "Sofa lamp",
            "modelid": "LCT015",
            "manufacturername": "Signify Netherlands B.V.",
            "productname": "Hue color lamp",
            "uniqueid": "00:17:88:01:03:a4:12:7c-0b",
        },
        "2": {
            "state": {"on": False, "bri": 1, "hue": 0, "sat": 0, "reachable": True},
            "type": "Dimmable light",
            "name": "Reading light",
            "modelid": "LWB010",
            "manufacturername": "Signify Netherlands B.V.",
            "productname": "Hue white lamp",
            "uniqueid": "00:17:88:01:02:7f:39:e0-0b",
        },
    },
    "groups": {
        "1": {
            "name": "Living room",
            "type": "Room",
            "lights": ["1", "2"],
            "action": {"on": True, "bri": 254, "hue": 8418, "sat": 140},
            "state": {"all_on": False, "any_on": True},
        },
    },
    "sensors": {
        "1": {
            "state": {"daylight": True, "lastupdated": "2026-10-18T06:52:00"},
            "config": {"on": True, "configured": True},
            "name": "Daylight",
            "type": "Daylight",
            "modelid": "PHDL00",
            "manufacturername": "Signify Netherlands B.V.",
        },
        "2": {
            "state": {"buttonevent": 1002, "lastupdated": "2026-10-18T07:15:31"},
            "config": {"on": True, "battery": 85, "reachable": True},
            "name": "Hallway dimmer",
            "type": "ZLLSwitch",
            "modelid": "RWL021",
            "manufacturername": "Signify Netherlands B.V.",
            "productname": "Hue dimmer switch",
            "uniqueid": "00:17:88:01:10:3e:3a:dc-02-fc00",
        },
        "3": {
            "state": {"presence": False, "lastupdated": "2026-10-18T07:40:12"},
            "config": {"on": True, "battery": 100, "reachable": True},
            "name": "Kitchen motion",
            "type": "ZLLPresence",
            "modelid": "SML001",
            "manufacturername": "Signify Netherlands B.V.",
            "productname": "Hue motion sensor",
            "uniqueid": "00:17:88:01:02:00:b5:d1-02-0406",
        },
        "4": {
            "state": {"temperature": 2137, "lastupdated": "2026-10-18T07:41:00"},
            "config": {"on": True, "battery": 100, "reachable": True},
            "name": "Hue temperature sensor 1",
            "type": "ZLLTemperature",
            "modelid": "SML001",
            "manufacturername": "Signify Netherlands B.V.",
            "productname": "Hue temperature sensor",
            "uniqueid": "00:17:88:01:02:00:b5:d1-02-0402",
        },
        "5": {
            "state": {"lightlevel": 14301, "dark": False, "daylight": False, "lastupdated": "2026-10-18T07:41:05"},
            "config": {"on": True, "battery": 100, "reachable": True},
            "name": "Hue ambient light sensor 1",
            "type": "ZLLLightLevel",
            "modelid": "SML001",
            "manufacturername": "Signify Netherlands B.V.",
            "productname": "Hue ambient light sensor",
            "uniqueid": "00:17:88:01:02:00:b5:d1-02-0400",
        },
        "6": {
            "state": {"status": 2, "lastupdated": "2026-10-18T07:00:00"},
            "config": {"on": True, "reachable": True},
            "name": "Scene cycler",
            "type": "ClipGenericStatus",
            "modelid": "GenericCLIP",
            "manufacturername": "Philips",
            "uniqueid": "scene-cycler",
        },
    },
}


def load_dataset(path: str) -> Optional[Dict[str, Dict[str, Any]]]:
    """Load a bridge-format dataset from ``path``; None if the file does not exist."""
    if not os.path.exists(path):
        return None
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    return {resource: data.get(resource, {}) for resource in RESOURCES}


class SimulatedBridge:
    """
    In-process stand-in for a Hue bridge.

    Serves bridge-format payloads through the same parsers as ``BridgeClient``
    and can be told to fail per resource, which is how local runs and the test
    suite exercise the failure counters.
    """

    def __init__(self, dataset: Optional[Dict[str, Dict[str, Any]]] = None, data_file: str | None = None) -> None:
        if dataset is None:
            dataset = load_dataset(data_file or SIM_DATA_FILE)
            if dataset is None:
                dataset = DEFAULT_DATASET
            else:
                logger.info(f"SimulatedBridge loaded dataset from {data_file or SIM_DATA_FILE}")
        self._data: Dict[str, Dict[str, Any]] = {r: copy.deepcopy(dataset.get(r, {})) for r in RESOURCES}
        self._failing: Set[str] = set()
        self._lock = threading.Lock()

    def load(self, resource: str, payload: Dict[str, Any]) -> None:
        """Replace the payload served for one resource."""
        if resource not in RESOURCES:
            raise KeyError(resource)
        with self._lock:
            self._data[resource] = copy.deepcopy(payload)

    def fail(self, resource: str) -> None:
        if resource not in RESOURCES:
            raise KeyError(resource)
        with self._lock:
            self._failing.add(resource)

    def recover(self, resource: str | None = None) -> None:
        with self._lock:
            if resource is None:
                self._failing.clear()
            else:
                self._failing.discard(resource)

    def _payload(self, resource: str) -> Dict[str, Any]:
        with self._lock:
            if resource in self._failing:
                raise BridgeError(f"Deliberate get {resource} failure")
            return copy.deepcopy(self._data[resource])

    def _get(self, resource: str, parse: Callable[[Any], List[T]]) -> List[T]:
        try:
            return parse(self._payload(resource))
        except ValueError as e:
            raise BridgeError(f"unable to parse simulated {resource}: {e}") from e

    def fetch_lights(self) -> List[LightRecord]:
        return self._get("lights", parse_lights)

    def fetch_groups(self) -> List[GroupRecord]:
        return self._get("groups", parse_groups)

    def fetch_sensors(self) -> List[SensorRecord]:
        return self._get("sensors", parse_sensors)
