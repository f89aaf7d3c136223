from __future__ import annotations
import os
from typing import FrozenSet


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str) -> FrozenSet[str]:
    raw = os.getenv(name, "")
    return frozenset(item.strip() for item in raw.split(",") if item.strip())


# Service mode: "sim" for the built in simulated bridge or "real" for a Hue bridge on the network
MODE = os.getenv("SVC_MODE", "sim").lower()

SVC_HOST = os.getenv("SVC_HOST", "0.0.0.0")
SVC_PORT = int(os.getenv("SVC_PORT", "9366"))

# Bridge connection (real mode)
HUE_BRIDGE_ADDRESS = os.getenv("HUE_BRIDGE_ADDRESS", "")
HUE_API_KEY = os.getenv("HUE_API_KEY", "")
HUE_BRIDGE_TIMEOUT_SECONDS = float(os.getenv("HUE_BRIDGE_TIMEOUT_SECONDS", "5"))

# Prefix for every exported metric name
METRICS_NAMESPACE = os.getenv("HUE_METRICS_NAMESPACE", "hue")

# Sensor type tags dropped before classification, e.g. "Daylight,CLIPGenericStatus"
SENSOR_IGNORE_TYPES = _env_list("HUE_SENSOR_IGNORE_TYPES")

# Copy the presence sensor's name onto its temperature / light level companions
SENSOR_MATCH_NAMES = _env_bool("HUE_SENSOR_MATCH_NAMES", False)

# "scrape" rebuilds the last-updated history every scrape, "process" keeps it for the collector's lifetime
RESTART_HISTORY_SCOPE = os.getenv("HUE_RESTART_HISTORY_SCOPE", "scrape").lower()

# Optional bridge-format dataset for sim mode
_SVC_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
SIM_DATA_FILE = os.getenv("SIM_DATA_FILE", os.path.join(_SVC_DIR, "data", "sim_bridge.json"))
