"""
Sensor type classification.

Every sensor type the exporter understands has one entry in ``SENSOR_RULES``.
A rule says how to read the primary value out of the state block, whether the
type is one of several logical sensors on a shared physical device ("split"),
whether its name is the canonical name for that device, and in which of the
two reconcile passes it is processed.
"""
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Iterable, Union

from .models import SensorState


class SensorType(str, Enum):
    DAYLIGHT = "Daylight"
    ZGP_SWITCH = "ZGPSwitch"
    ZLL_SWITCH = "ZLLSwitch"
    CLIP_GENERIC_STATUS = "ClipGenericStatus"
    ZLL_PRESENCE = "ZLLPresence"
    ZLL_TEMPERATURE = "ZLLTemperature"
    ZLL_LIGHT_LEVEL = "ZLLLightLevel"


class Skip(str, Enum):
    IGNORED = "ignored"            # type is on the configured ignore list
    UNSUPPORTED = "unsupported"    # type has no rule


@dataclass(frozen=True)
class SensorRule:
    sensor_type: SensorType
    value: Callable[[SensorState], float]
    split: bool
    naming_authority: bool
    second_pass: bool


def _flag(v: bool) -> float:
    return 1.0 if v else 0.0


SENSOR_RULES: Dict[SensorType, SensorRule] = {
    rule.sensor_type: rule
    for rule in (
        # bridge daylight (sunrise / sunset) sensor
        SensorRule(SensorType.DAYLIGHT, lambda s: _flag(s.daylight), split=False, naming_authority=False, second_pass=False),
        # Hue tap switch
        SensorRule(SensorType.ZGP_SWITCH, lambda s: float(s.button_event), split=True, naming_authority=False, second_pass=False),
        # Hue dimmer switch
        SensorRule(SensorType.ZLL_SWITCH, lambda s: float(s.button_event), split=True, naming_authority=False, second_pass=False),
        SensorRule(SensorType.CLIP_GENERIC_STATUS, lambda s: float(s.status), split=False, naming_authority=False, second_pass=False),
        # motion sensor: presence, temperature and light level are three records on one device
        SensorRule(SensorType.ZLL_PRESENCE, lambda s: _flag(s.presence), split=True, naming_authority=True, second_pass=False),
        SensorRule(SensorType.ZLL_TEMPERATURE, lambda s: float(s.temperature), split=True, naming_authority=False, second_pass=True),
        SensorRule(SensorType.ZLL_LIGHT_LEVEL, lambda s: float(s.light_level), split=True, naming_authority=False, second_pass=True),
    )
}

_RULES_BY_TAG: Dict[str, SensorRule] = {t.value: rule for t, rule in SENSOR_RULES.items()}

Classification = Union[SensorRule, Skip]


def classify(type_tag: str, ignore_types: Iterable[str] = ()) -> Classification:
    """Return the rule for ``type_tag``, or why the sensor is skipped. Never raises."""
    if type_tag in ignore_types:
        return Skip.IGNORED
    return _RULES_BY_TAG.get(type_tag, Skip.UNSUPPORTED)