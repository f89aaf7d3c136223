from __future__ import annotations
import logging
from typing import Any, Iterable, List

from prometheus_client import CollectorRegistry, generate_latest

from .adapter import BridgeClient
from .collectors import GroupCollector, LightCollector, SensorCollector
from .config import (
    MODE,
    METRICS_NAMESPACE,
    SENSOR_IGNORE_TYPES,
    SENSOR_MATCH_NAMES,
    RESTART_HISTORY_SCOPE,
)
from .models import SensorInfo
from .reconcile import reconcile_sensors
from .simulator import SimulatedBridge

logger = logging.getLogger(__name__)


class ExporterService:
    def __init__(
        self,
        mode: str | None = None,
        bridge: Any = None,
        namespace: str = METRICS_NAMESPACE,
        ignore_types: Iterable[str] = SENSOR_IGNORE_TYPES,
        match_names: bool = SENSOR_MATCH_NAMES,
        restart_history_scope: str = RESTART_HISTORY_SCOPE,
    ) -> None:
        self.mode = (mode or MODE).lower()
        if bridge is not None:
            self.bridge = bridge
        elif self.mode == "real":
            self.bridge = BridgeClient()
        else:
            self.bridge = SimulatedBridge()

        if restart_history_scope not in ("scrape", "process"):
            raise ValueError(f"restart history scope must be 'scrape' or 'process', got {restart_history_scope!r}")

        self.ignore_types = frozenset(ignore_types)
        self.match_names = match_names

        self.registry = CollectorRegistry()
        self.lights = LightCollector(namespace, self.bridge)
        self.groups = GroupCollector(namespace, self.bridge)
        self.sensors = SensorCollector(
            namespace,
            self.bridge,
            ignore_types=self.ignore_types,
            match_names=self.match_names,
            keep_restart_history=restart_history_scope == "process",
        )
        for collector in (self.groups, self.lights, self.sensors):
            self.registry.register(collector)

        logger.info(
            f"ExporterService started in {self.mode} mode "
            f"(match_names={self.match_names}, ignore_types={sorted(self.ignore_types)}, "
            f"restart_history={restart_history_scope})"
        )

    # metrics
    def render_metrics(self) -> bytes:
        """Run one full scrape of every collector and return the text exposition."""
        return generate_latest(self.registry)

    # read
    def list_sensors(self) -> List[SensorInfo]:
        """
        Reconciled view of the bridge's sensors.

        Uses a throwaway restart detector so it never moves the exported counters.
        Raises ``BridgeError`` if the bridge cannot be read.
        """
        records = self.bridge.fetch_sensors()
        scrape = reconcile_sensors(records, self.ignore_types, self.match_names)
        return [
            SensorInfo(
                name=s.name,
                type=s.type,
                model_id=s.model_id,
                manufacturer_name=s.manufacturer_name,
                product_name=s.product_name,
                unique_id=s.unique_id,
                device_id=s.device_id,
                value=s.value,
                battery=s.battery,
                last_updated=s.last_updated,
                on=s.on,
                reachable=s.reachable,
            )
            for s in scrape.samples
        ]
