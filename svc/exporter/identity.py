from __future__ import annotations

from .classifier import SensorRule

# Length of the MAC-style prefix shared by every logical sensor on one physical device,
# e.g. "00:17:88:01:02:00:b5:d1" from "00:17:88:01:02:00:b5:d1-02-0406"
DEVICE_KEY_LENGTH = 23


class InvalidDeviceIdentifier(ValueError):
    """A split sensor's unique id is too short to carry a device prefix."""


def device_key(unique_id: str, rule: SensorRule) -> str:
    """
    Physical device key for a logical sensor.

    Split sensors share the first ``DEVICE_KEY_LENGTH`` characters of their
    unique id; every other sensor is its own device and keeps the full id.
    """
    if not rule.split:
        return unique_id
    if len(unique_id) < DEVICE_KEY_LENGTH:
        raise InvalidDeviceIdentifier(
            f"{rule.sensor_type.value} unique id {unique_id!r} is shorter than {DEVICE_KEY_LENGTH} characters"
        )
    return unique_id[:DEVICE_KEY_LENGTH]
