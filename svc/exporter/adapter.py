from __future__ import annotations
import logging
from typing import Any, Callable, List, TypeVar

import requests
from pydantic import ValidationError

from .models import GroupRecord, LightRecord, SensorRecord, parse_groups, parse_lights, parse_sensors
from .config import HUE_BRIDGE_ADDRESS, HUE_API_KEY, HUE_BRIDGE_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BridgeError(Exception):
    """The bridge could not be reached, refused the request or returned something unusable."""


def _bridge_error_message(payload: Any) -> str | None:
    """
    Return a message for an error reply, None otherwise.

    The bridge answers failed requests with HTTP 200 and a body like
    ``[{"error": {"type": 1, "address": "/", "description": "unauthorized user"}}]``.
    """
    if not isinstance(payload, list):
        return None
    for item in payload:
        if isinstance(item, dict) and isinstance(item.get("error"), dict):
            err = item["error"]
            return f"Error type {err.get('type')}: {err.get('description', 'unknown error')}"
    return None


class BridgeClient:
    """
    Read-only client for the Hue bridge REST API (v1).

    Each fetch is a single GET of one resource collection. Every failure mode
    surfaces as ``BridgeError`` so collectors only need one except clause.
    """

    def __init__(
        self,
        address: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
    ) -> None:
        self.address = address if address is not None else HUE_BRIDGE_ADDRESS
        self.api_key = api_key if api_key is not None else HUE_API_KEY
        self.timeout = timeout if timeout is not None else HUE_BRIDGE_TIMEOUT_SECONDS

        if not self.address or not self.api_key:
            raise ValueError(
                "HUE_BRIDGE_ADDRESS and HUE_API_KEY must be set in environment "
                "for real mode operation"
            )

        self.base_url = f"http://{self.address}/api/{self.api_key}"
        logger.info(f"BridgeClient initialized for bridge at {self.address} (timeout {self.timeout}s)")

    def _get(self, resource: str, parse: Callable[[Any], List[T]]) -> List[T]:
        url = f"{self.base_url}/{resource}"
        try:
            response = requests.get(url, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            # requests puts the full URL (with the API key) in its messages
            raise BridgeError(f"unable to access bridge at {self.address}: {type(e).__name__}") from e

        if response.status_code != 200:
            raise BridgeError(f"bridge returned HTTP {response.status_code} for {resource}")

        try:
            payload = response.json()
        except ValueError as e:
            raise BridgeError(f"unable to decode {resource} response from bridge") from e

        message = _bridge_error_message(payload)
        if message:
            raise BridgeError(message)

        try:
            return parse(payload)
        except (ValidationError, ValueError) as e:
            raise BridgeError(f"unable to parse {resource} response: {e}") from e

    def fetch_lights(self) -> List[LightRecord]:
        return self._get("lights", parse_lights)

    def fetch_groups(self) -> List[GroupRecord]:
        return self._get("groups", parse_groups)

    def fetch_sensors(self) -> List[SensorRecord]:
        return self._get("sensors", parse_sensors)
