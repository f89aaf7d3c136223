from __future__ import annotations
import logging
from datetime import datetime, timezone
from typing import Any, List, Type, TypeVar
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

# Epoch seconds of 0001-01-01T00:00:00Z, reported when the bridge has no timestamp ("none")
UNSET_TIMESTAMP = -62135596800


def parse_last_updated(value: Any) -> int:
    """
    Convert the bridge's ``lastupdated`` string to epoch seconds (UTC).

    Accepts ``YYYY-MM-DDTHH:MM:SS`` with optional fractional seconds; naive
    times are taken as UTC.
    """
    if value is None:
        return UNSET_TIMESTAMP
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return int(value)
    text = str(value).strip().strip('"')
    if text in ("", "none", "null"):
        return UNSET_TIMESTAMP
    ts = datetime.fromisoformat(text)
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return int(ts.timestamp())


class _BridgeModel(BaseModel):
    """Base for bridge payloads: unknown keys are ignored, fields accept both alias and python name."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore", protected_namespaces=())


class SensorState(_BridgeModel):
    """Type specific state block of a sensor; only the fields for its type are present on the wire."""
    daylight: bool = Field(default=False, description="True between sunrise and sunset")
    last_updated: int = Field(default=UNSET_TIMESTAMP, alias="lastupdated", description="Epoch seconds of last update")
    button_event: int = Field(default=0, alias="buttonevent", description="Code of the last button event")
    status: int = Field(default=0, description="Generic status value")
    temperature: int = Field(default=0, description="Temperature in hundredths of a degree Celsius")
    light_level: int = Field(default=0, alias="lightlevel", description="Light level, 10000*log10(lux)+1")
    dark: bool = False
    presence: bool = Field(default=False, description="True if motion was detected")

    @field_validator("daylight", "dark", "presence", mode="before")
    @classmethod
    def _null_bool(cls, v: Any) -> Any:
        return False if v is None else v

    @field_validator("button_event", "status", "temperature", "light_level", mode="before")
    @classmethod
    def _null_int(cls, v: Any) -> Any:
        return 0 if v is None else v

    @field_validator("last_updated", mode="before")
    @classmethod
    def _parse_last_updated(cls, v: Any) -> int:
        return parse_last_updated(v)


class SensorConfig(_BridgeModel):
    on: bool = False
    reachable: bool = False
    battery: int = Field(default=0, description="Battery level in percent, 0 for mains powered sensors")

    @field_validator("on", "reachable", mode="before")
    @classmethod
    def _null_bool(cls, v: Any) -> Any:
        return False if v is None else v

    @field_validator("battery", mode="before")
    @classmethod
    def _null_int(cls, v: Any) -> Any:
        return 0 if v is None else v


class SensorRecord(_BridgeModel):
    """One logical sensor as returned by ``GET /api/<key>/sensors``."""
    index: str = Field(default="", description="Bridge resource id")
    type: str = Field(default="", description="Capability type tag, e.g. ZLLPresence")
    name: str = ""
    model_id: str = Field(default="", alias="modelid")
    manufacturer_name: str = Field(default="", alias="manufacturername")
    product_name: str = Field(default="", alias="productname")
    unique_id: str = Field(default="", alias="uniqueid")
    sw_version: str = Field(default="", alias="swversion")
    state: SensorState = Field(default_factory=SensorState)
    sensor_config: SensorConfig = Field(default_factory=SensorConfig, alias="config")


class LightState(_BridgeModel):
    on: bool = False
    bri: int = Field(default=0, description="Brightness 1-254")
    hue: int = Field(default=0, description="Hue 0-65535")
    sat: int = Field(default=0, description="Saturation 0-254")
    reachable: bool = False

    @field_validator("on", "reachable", mode="before")
    @classmethod
    def _null_bool(cls, v: Any) -> Any:
        return False if v is None else v

    @field_validator("bri", "hue", "sat", mode="before")
    @classmethod
    def _null_int(cls, v: Any) -> Any:
        return 0 if v is None else v


class LightRecord(_BridgeModel):
    index: str = ""
    type: str = ""
    name: str = ""
    model_id: str = Field(default="", alias="modelid")
    manufacturer_name: str = Field(default="", alias="manufacturername")
    product_name: str = Field(default="", alias="productname")
    unique_id: str = Field(default="", alias="uniqueid")
    state: LightState = Field(default_factory=LightState)


class GroupAction(_BridgeModel):
    on: bool = False
    bri: int = 0
    hue: int = 0
    sat: int = 0

    @field_validator("on", mode="before")
    @classmethod
    def _null_bool(cls, v: Any) -> Any:
        return False if v is None else v

    @field_validator("bri", "hue", "sat", mode="before")
    @classmethod
    def _null_int(cls, v: Any) -> Any:
        return 0 if v is None else v


class GroupState(_BridgeModel):
    all_on: bool = False
    any_on: bool = False

    @field_validator("all_on", "any_on", mode="before")
    @classmethod
    def _null_bool(cls, v: Any) -> Any:
        return False if v is None else v


class GroupRecord(_BridgeModel):
    index: str = ""
    type: str = ""
    name: str = ""
    lights: List[str] = Field(default_factory=list)
    action: GroupAction = Field(default_factory=GroupAction)
    state: GroupState = Field(default_factory=GroupState)


RecordT = TypeVar("RecordT", bound=_BridgeModel)


def _index_order(key: str) -> tuple:
    return (0, int(key), key) if key.isdigit() else (1, 0, key)


def _parse_resource(payload: Any, model: Type[RecordT]) -> List[RecordT]:
    """
    Turn the bridge's ``{"1": {...}, "2": {...}}`` mapping into records ordered by index.

    Records that fail validation are dropped with a warning; the rest of the
    resource is still returned.
    """
    if not isinstance(payload, dict):
        raise ValueError(f"expected an object keyed by resource id, got {type(payload).__name__}")
    records: List[RecordT] = []
    for key in sorted(payload, key=_index_order):
        obj = payload[key]
        if not isinstance(obj, dict):
            logger.warning(f"Skipping {model.__name__} {key}: not an object")
            continue
        try:
            records.append(model.model_validate({**obj, "index": key}))
        except ValidationError as e:
            logger.warning(
                f"Skipping {model.__name__} {key} ({obj.get('type', '')!r}): {e.error_count()} invalid field(s)"
            )
            logger.debug(f"{model.__name__} {key} validation errors: {e}")
    return records


def parse_lights(payload: Any) -> List[LightRecord]:
    return _parse_resource(payload, LightRecord)


def parse_groups(payload: Any) -> List[GroupRecord]:
    return _parse_resource(payload, GroupRecord)


def parse_sensors(payload: Any) -> List[SensorRecord]:
    return _parse_resource(payload, SensorRecord)


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = Field(description="Service status (always 'ok' if service is running)")
    mode: str = Field(description="Current operation mode: 'sim' (simulated bridge) or 'real' (Hue bridge)")


class SensorInfo(BaseModel):
    """A processed logical sensor, as it is exported to the metrics endpoint."""
    model_config = ConfigDict(protected_namespaces=())

    name: str = Field(description="Emitted name, taken from the presence sensor when name matching is on")
    type: str
    model_id: str
    manufacturer_name: str
    product_name: str
    unique_id: str
    device_id: str = Field(description="Physical device key shared by split sensors")
    value: float = Field(description="Primary value for the sensor type")
    battery: int
    last_updated: int
    on: bool
    reachable: bool


class ErrorResponse(BaseModel):
    """Standard error response format."""
    detail: str = Field(description="Error message describing what went wrong")
