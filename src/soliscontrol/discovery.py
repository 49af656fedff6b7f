"""Home Assistant MQTT discovery payloads.

Entities are announced on
``<discovery prefix>/<component>/<object id>/<component>/config`` where the
object id is the entity's state topic with ``/`` replaced by ``_``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from .constants import (
    DEFAULT_DISCOVERY_PREFIX,
    FORCECHARGE_SOC_DISPLAY_MIN,
    OVERDISCHARGE_SOC_DISPLAY_MIN,
    OVERDISCHARGE_SOC_MAX,
    SWITCH_PAYLOAD_OFF,
    SWITCH_PAYLOAD_ON,
    ControlParameter,
)


@dataclass(frozen=True)
class DiscoveryMessage:
    """One retained discovery publish."""

    topic: str
    payload: dict[str, Any]

    def encode(self) -> str:
        return json.dumps(self.payload, separators=(",", ":"))


def object_id_for(state_topic: str) -> str:
    return state_topic.replace("/", "_")


def _config_topic(discovery_prefix: str, component: str, object_id: str) -> str:
    return f"{discovery_prefix.rstrip('/')}/{component}/{object_id}/{component}/config"


def number_config(
    state_topic: str,
    minimum: int,
    maximum: int,
    *,
    discovery_prefix: str = DEFAULT_DISCOVERY_PREFIX,
) -> DiscoveryMessage:
    """Describe a battery percentage number entity.

    Example:
        >>> number_config("solar/battery/ForcechargeSoc", 4, 15).payload["max"]
        15
    """
    object_id = object_id_for(state_topic)
    payload = {
        "command_topic": f"{state_topic}/set",
        "name": state_topic,
        "object_id": object_id,
        "state_topic": state_topic,
        "unit_of_measurement": "%",
        "device_class": "battery",
        "min": minimum,
        "max": maximum,
        "step": 1,
        "mode": "box",
    }
    return DiscoveryMessage(_config_topic(discovery_prefix, "number", object_id), payload)


def switch_config(
    state_topic: str,
    *,
    discovery_prefix: str = DEFAULT_DISCOVERY_PREFIX,
) -> DiscoveryMessage:
    """Describe an on/off switch entity using ``"1"``/``"0"`` payloads."""
    object_id = object_id_for(state_topic)
    payload = {
        "command_topic": f"{state_topic}/set",
        "name": state_topic,
        "object_id": object_id,
        "payload_off": SWITCH_PAYLOAD_OFF,
        "payload_on": SWITCH_PAYLOAD_ON,
        "state_topic": state_topic,
    }
    return DiscoveryMessage(_config_topic(discovery_prefix, "switch", object_id), payload)


def overdischarge_soc_config(
    topic_prefix: str, *, discovery_prefix: str = DEFAULT_DISCOVERY_PREFIX
) -> DiscoveryMessage:
    return number_config(
        ControlParameter.OVERDISCHARGE_SOC.state_topic(topic_prefix),
        OVERDISCHARGE_SOC_DISPLAY_MIN,
        OVERDISCHARGE_SOC_MAX,
        discovery_prefix=discovery_prefix,
    )


def forcecharge_soc_config(
    topic_prefix: str,
    upper_bound: int,
    *,
    discovery_prefix: str = DEFAULT_DISCOVERY_PREFIX,
) -> DiscoveryMessage:
    """Force-charge SOC entity, ``max`` set to the current effective bound."""
    return number_config(
        ControlParameter.FORCECHARGE_SOC.state_topic(topic_prefix),
        min(FORCECHARGE_SOC_DISPLAY_MIN, upper_bound),
        upper_bound,
        discovery_prefix=discovery_prefix,
    )


def allow_grid_charging_config(
    topic_prefix: str, *, discovery_prefix: str = DEFAULT_DISCOVERY_PREFIX
) -> DiscoveryMessage:
    return switch_config(
        ControlParameter.ALLOW_GRID_CHARGING.state_topic(topic_prefix),
        discovery_prefix=discovery_prefix,
    )
