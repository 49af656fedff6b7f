"""Bridge between MQTT and the SolisCloud device control API.

Usage:
    Command line:
        solis-control --solis-inverter <id> --solis-keyid <key> \
            --solis-secret <secret> --mqtt-host broker.local

    Library:
        from soliscontrol import Credentials, SolisCloudClient

        async with SolisCloudClient(Credentials(key_id, secret, inverter_id)) as client:
            value = await client.control.read(158)
"""

from __future__ import annotations

from .bridge import SolisBridge
from .bus import BusMessage, MqttBus
from .client import SolisCloudClient
from .config import BridgeConfig, BridgeMode, Credentials, MqttSettings
from .constants import ControlParameter
from .endpoints import ControlEndpoints
from .exceptions import (
    BusConnectionError,
    SolisAPIError,
    SolisConfigError,
    SolisConnectionError,
    SolisError,
    SolisInvalidPayloadError,
    SolisMalformedResponseError,
    SolisNotImplementedError,
    SolisRemoteRejectedError,
    UnknownTopicError,
)
from .router import TopicRouter

__version__ = "0.3.0"
__all__ = [
    "BridgeConfig",
    "BridgeMode",
    "BusMessage",
    "Credentials",
    "MqttBus",
    "MqttSettings",
    "SolisBridge",
    "SolisCloudClient",
    "TopicRouter",
    # Endpoint modules
    "ControlEndpoints",
    # Enums
    "ControlParameter",
    # Exceptions
    "BusConnectionError",
    "SolisAPIError",
    "SolisConfigError",
    "SolisConnectionError",
    "SolisError",
    "SolisInvalidPayloadError",
    "SolisMalformedResponseError",
    "SolisNotImplementedError",
    "SolisRemoteRejectedError",
    "UnknownTopicError",
]
