"""
Prometheus collectors for the three bridge resources.

Each ``collect()`` call is one complete scrape of its resource: fetch from the
bridge, process, and build brand new gauge families. Nothing from a previous
scrape is carried over except the failure / restart counters, so devices that
disappear from the bridge disappear from the output. A per-collector lock
serializes concurrent scrapes so counters and the restart history are only
ever touched by one scrape at a time.
"""
from __future__ import annotations
import logging
import threading
from abc import abstractmethod
from typing import Any, Callable, Dict, Iterable, List, NamedTuple, Tuple

from prometheus_client.core import CounterMetricFamily, GaugeMetricFamily, Metric
from prometheus_client.registry import Collector

from .adapter import BridgeError
from .models import GroupRecord, LightRecord
from .reconcile import SENSOR_LABEL_NAMES, SensorSample, reconcile_sensors
from .restarts import RestartDetector

logger = logging.getLogger(__name__)

LIGHT_LABEL_NAMES: Tuple[str, ...] = (
    "name",
    "type",
    "model_id",
    "manufacturer_name",
    "product_name",
    "unique_id",
)

GROUP_LABEL_NAMES: Tuple[str, ...] = ("name", "type")


class GaugeSpec(NamedTuple):
    name: str
    help: str
    value: Callable[[Any], float]


def _flag(v: bool) -> float:
    return 1.0 if v else 0.0


def _group_on(g: GroupRecord) -> float:
    if g.state.all_on:
        return 2.0
    if g.state.any_on:
        return 1.0
    return 0.0


class ResourceCollector(Collector):
    """Fetch -> process -> emit for one bridge resource class."""

    resource: str = ""
    subsystem: str = ""
    label_names: Tuple[str, ...] = ()
    gauges: Tuple[GaugeSpec, ...] = ()

    def __init__(self, namespace: str, bridge: Any) -> None:
        self.namespace = namespace
        self.bridge = bridge
        self.scrapes_failed = 0
        self._lock = threading.Lock()

    def _metric_name(self, name: str, subsystem: str | None = None) -> str:
        return "_".join(p for p in (self.namespace, subsystem or self.subsystem, name) if p)

    def _gauge_families(self) -> List[GaugeMetricFamily]:
        return [
            GaugeMetricFamily(self._metric_name(spec.name), spec.help, labels=list(self.label_names))
            for spec in self.gauges
        ]

    def _counter_families(self, with_values: bool = True) -> List[CounterMetricFamily]:
        return [
            CounterMetricFamily(
                self._metric_name("scrapes_failed"),
                f"Count of scrapes of {self.subsystem} data from the Hue bridge that have failed",
                value=self.scrapes_failed if with_values else None,
            )
        ]

    def _fetch(self) -> List[Any]:
        return getattr(self.bridge, f"fetch_{self.resource}")()

    @abstractmethod
    def _process(self, records: List[Any]) -> Iterable[Tuple[Tuple[str, ...], Any]]:
        """Yield (label values, item) pairs; gauge values are read from ``item``."""

    def describe(self) -> List[Metric]:
        return self._gauge_families() + self._counter_families(with_values=False)

    def collect(self) -> List[Metric]:
        with self._lock:
            try:
                records = self._fetch()
            except BridgeError as e:
                logger.error(f"Failed to update {self.resource}: {e}")
                self.scrapes_failed += 1
                records = []

            # keyed by label values so a repeated label set keeps the last record, like Gauge.set
            rows: Dict[Tuple[str, ...], Any] = {}
            for labels, item in self._process(records):
                rows[labels] = item

            families = self._gauge_families()
            for labels, item in rows.items():
                for family, spec in zip(families, self.gauges):
                    family.add_metric(list(labels), spec.value(item))

            return families + self._counter_families()


class LightCollector(ResourceCollector):
    resource = "lights"
    subsystem = "light"
    label_names = LIGHT_LABEL_NAMES
    gauges = (
        GaugeSpec("on", "Light on (1 = on, 0 = off)", lambda l: _flag(l.state.on)),
        GaugeSpec("brightness", "Light brightness level", lambda l: float(l.state.bri)),
        GaugeSpec("hue", "Light hue", lambda l: float(l.state.hue)),
        GaugeSpec("saturation", "Light saturation", lambda l: float(l.state.sat)),
        GaugeSpec("reachable", "Light reachability (1/0)", lambda l: _flag(l.state.reachable)),
    )

    def _process(self, records: List[LightRecord]) -> Iterable[Tuple[Tuple[str, ...], Any]]:
        for light in records:
            labels = (
                light.name,
                light.type,
                light.model_id,
                light.manufacturer_name,
                light.product_name,
                light.unique_id,
            )
            yield labels, light


class GroupCollector(ResourceCollector):
    resource = "groups"
    subsystem = "group"
    label_names = GROUP_LABEL_NAMES
    gauges = (
        GaugeSpec(
            "on",
            "Group on (2 = all group members on, 1 = some group members on, 0 = all group members off)",
            _group_on,
        ),
        GaugeSpec("brightness", "Group brightness level", lambda g: float(g.action.bri)),
        GaugeSpec("hue", "Group hue", lambda g: float(g.action.hue)),
        GaugeSpec("saturation", "Group saturation", lambda g: float(g.action.sat)),
    )

    def _process(self, records: List[GroupRecord]) -> Iterable[Tuple[Tuple[str, ...], Any]]:
        for group in records:
            yield (group.name, group.type), group


class SensorCollector(ResourceCollector):
    resource = "sensors"
    subsystem = "sensor"
    label_names = SENSOR_LABEL_NAMES
    gauges = (
        GaugeSpec("value", "Sensor values", lambda s: s.value),
        GaugeSpec("battery", "Sensor battery levels (%)", lambda s: float(s.battery)),
        GaugeSpec("last_updated", "Sensor last updated time", lambda s: float(s.last_updated)),
        GaugeSpec("on", "Sensor on/off (1/0)", lambda s: _flag(s.on)),
        GaugeSpec("reachable", "Sensor reachability (1/0)", lambda s: _flag(s.reachable)),
    )

    def __init__(
        self,
        namespace: str,
        bridge: Any,
        ignore_types: Iterable[str] = (),
        match_names: bool = False,
        keep_restart_history: bool = False,
    ) -> None:
        super().__init__(namespace, bridge)
        self.ignore_types = frozenset(ignore_types)
        self.match_names = match_names
        self.detector = RestartDetector(keep_history=keep_restart_history)
        self.bridge_restarts = 0

    def _counter_families(self, with_values: bool = True) -> List[CounterMetricFamily]:
        return super()._counter_families(with_values) + [
            CounterMetricFamily(
                self._metric_name("restarts", subsystem="bridge"),
                "Count of number of bridge restarts detected",
                value=self.bridge_restarts if with_values else None,
            )
        ]

    def _process(self, records) -> Iterable[Tuple[Tuple[str, ...], SensorSample]]:
        scrape = reconcile_sensors(records, self.ignore_types, self.match_names, self.detector)
        if scrape.restart_observed:
            self.bridge_restarts += 1
            logger.warning("Sensor last-updated timestamps were reset; counting a suspected bridge restart")
        return [(sample.labels(), sample) for sample in scrape.samples]
