"""
Sensor reconciliation: turns the bridge's raw sensor list into one sample per
logical sensor, with a physical device id and (optionally) the device's
canonical name.

Two ordered passes over the same records:

1. Daylight, switches, generic status and presence sensors. Presence sensors
   record their name against their device key.
2. Temperature and light level sensors. With name matching on they take the
   name recorded in pass 1 for their device key, falling back to their own.

Both passes feed the restart detector.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from .classifier import SensorRule, Skip, classify
from .identity import InvalidDeviceIdentifier, device_key
from .models import SensorRecord
from .restarts import RestartDetector

logger = logging.getLogger(__name__)

SENSOR_LABEL_NAMES: Tuple[str, ...] = (
    "name",
    "type",
    "model_id",
    "manufacturer_name",
    "product_name",
    "unique_id",
    "device_id",
)


@dataclass
class SensorSample:
    name: str           # emitted name, possibly reconciled
    type: str
    model_id: str
    manufacturer_name: str
    product_name: str
    unique_id: str
    device_id: str      # physical device key
    value: float        # primary value for the type
    battery: int
    last_updated: int   # epoch seconds or UNSET_TIMESTAMP
    on: bool
    reachable: bool

    def labels(self) -> Tuple[str, ...]:
        return tuple(getattr(self, name) for name in SENSOR_LABEL_NAMES)


@dataclass
class SensorScrape:
    samples: List[SensorSample] = field(default_factory=list)
    restart_observed: bool = False


def _sample(record: SensorRecord, rule: SensorRule, name: str, device_id: str) -> SensorSample:
    return SensorSample(
        name=name,
        type=record.type,
        model_id=record.model_id,
        manufacturer_name=record.manufacturer_name,
        product_name=record.product_name,
        unique_id=record.unique_id,
        device_id=device_id,
        value=rule.value(record.state),
        battery=record.sensor_config.battery,
        last_updated=record.state.last_updated,
        on=record.sensor_config.on,
        reachable=record.sensor_config.reachable,
    )


def _pass_rules(
    records: Iterable[SensorRecord], ignore_types: Iterable[str], second_pass: bool
) -> Iterable[Tuple[SensorRecord, SensorRule, str]]:
    """Yield (record, rule, device key) for the records handled by one pass."""
    for record in records:
        rule = classify(record.type, ignore_types)
        if isinstance(rule, Skip):
            if rule is Skip.UNSUPPORTED and not second_pass:
                logger.debug(f"Skipping sensor {record.index} ({record.name!r}): unsupported type {record.type!r}")
            continue
        if rule.second_pass != second_pass:
            continue
        try:
            key = device_key(record.unique_id, rule)
        except InvalidDeviceIdentifier as e:
            logger.warning(f"Skipping sensor {record.index} ({record.name!r}): {e}")
            continue
        yield record, rule, key


def reconcile_sensors(
    records: List[SensorRecord],
    ignore_types: Iterable[str] = (),
    match_names: bool = False,
    detector: Optional[RestartDetector] = None,
) -> SensorScrape:
    if detector is None:
        detector = RestartDetector()
    detector.begin_scrape()
    ignore_types = frozenset(ignore_types)

    device_names: Dict[str, str] = {}
    samples: List[SensorSample] = []

    for record, rule, key in _pass_rules(records, ignore_types, second_pass=False):
        if rule.naming_authority:
            device_names[key] = record.name
        detector.observe(record.unique_id, record.state.last_updated)
        samples.append(_sample(record, rule, record.name, key))

    for record, rule, key in _pass_rules(records, ignore_types, second_pass=True):
        name = record.name
        if match_names:
            name = device_names.get(key, record.name)
        detector.observe(record.unique_id, record.state.last_updated)
        samples.append(_sample(record, rule, name, key))

    return SensorScrape(samples=samples, restart_observed=detector.restart_observed)
