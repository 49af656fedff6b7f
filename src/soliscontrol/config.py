"""Bridge configuration.

Configuration is built once at startup (normally by the CLI) and passed
explicitly to the client, router and bridge. All dataclasses are frozen.

Example:
    config = BridgeConfig(
        credentials=Credentials(
            key_id="1300386381676",
            key_secret="secret",
            inverter_id="1308675217944611",
        ),
        mqtt=MqttSettings(host="broker.local", username="solis", password="pw"),
    )
    config.validate()
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .constants import (
    DEFAULT_API_TIMEOUT,
    DEFAULT_BASE_URL,
    DEFAULT_DISCOVERY_PREFIX,
    DEFAULT_MQTT_CLIENT_ID,
    DEFAULT_MQTT_HOST,
    DEFAULT_MQTT_KEEPALIVE,
    DEFAULT_MQTT_PORT,
    DEFAULT_TOPIC_PREFIX,
    RECONNECT_DELAY_SECONDS,
)
from .exceptions import SolisConfigError

REDACTED = "**REDACTED**"


class BridgeMode(str, Enum):
    """How the router applies commands.

    CONFIRM writes, reads the value back and republishes it, and keeps the
    Home Assistant discovery metadata current. LEGACY writes only: no
    startup read, no discovery and no republish.
    """

    CONFIRM = "confirm"
    LEGACY = "legacy"


@dataclass(frozen=True)
class Credentials:
    """SolisCloud API key pair and the inverter it controls."""

    key_id: str
    key_secret: str = field(repr=False)
    inverter_id: str

    def validate(self) -> None:
        """Reject missing secret material before anything is signed.

        Raises:
            SolisConfigError: If any value is empty
        """
        missing = [
            name
            for name, value in (
                ("inverter id", self.inverter_id),
                ("key id", self.key_id),
                ("key secret", self.key_secret),
            )
            if not value
        ]
        if missing:
            raise SolisConfigError(f"SolisCloud {', '.join(missing)} must be set")


@dataclass(frozen=True)
class MqttSettings:
    """Broker connection parameters."""

    host: str = DEFAULT_MQTT_HOST
    port: int = DEFAULT_MQTT_PORT
    username: str | None = None
    password: str | None = field(default=None, repr=False)
    client_id: str = DEFAULT_MQTT_CLIENT_ID
    keepalive: int = DEFAULT_MQTT_KEEPALIVE

    def validate(self) -> None:
        if not self.host:
            raise SolisConfigError("MQTT host must be set")
        if not 0 < self.port < 65536:
            raise SolisConfigError(f"MQTT port must be 1-65535, got {self.port}")
        if self.username and not self.password:
            raise SolisConfigError("MQTT password must be set when an MQTT user is given")


@dataclass(frozen=True)
class BridgeConfig:
    """Complete process configuration.

    Attributes:
        credentials: SolisCloud API credentials
        mqtt: Broker connection parameters
        topic_prefix: Prefix for every command and state topic
        publish_discovery: Publish Home Assistant discovery metadata
        discovery_prefix: Home Assistant discovery topic prefix
        mode: Confirmed (read-back) or legacy command handling
        experimental_grid_charging: Attempt AllowGridCharging writes
        api_base_url: SolisCloud API base URL
        api_timeout: Total timeout per API call in seconds
        reconnect_delay: Seconds to wait before reconnecting to the broker
    """

    credentials: Credentials
    mqtt: MqttSettings = field(default_factory=MqttSettings)
    topic_prefix: str = DEFAULT_TOPIC_PREFIX
    publish_discovery: bool = True
    discovery_prefix: str = DEFAULT_DISCOVERY_PREFIX
    mode: BridgeMode = BridgeMode.CONFIRM
    experimental_grid_charging: bool = False
    api_base_url: str = DEFAULT_BASE_URL
    api_timeout: float = DEFAULT_API_TIMEOUT
    reconnect_delay: float = RECONNECT_DELAY_SECONDS

    @property
    def advertises(self) -> bool:
        """Whether discovery metadata is published at all."""
        return self.publish_discovery and self.mode == BridgeMode.CONFIRM

    def validate(self) -> None:
        """Validate configuration completeness.

        Raises:
            SolisConfigError: If configuration is invalid
        """
        self.credentials.validate()
        self.mqtt.validate()
        if self.api_timeout <= 0:
            raise SolisConfigError(f"API timeout must be positive, got {self.api_timeout}")
        if self.reconnect_delay < 0:
            raise SolisConfigError(
                f"Reconnect delay must not be negative, got {self.reconnect_delay}"
            )
        if "#" in self.topic_prefix or "+" in self.topic_prefix:
            raise SolisConfigError("Topic prefix must not contain MQTT wildcards")

    def to_dict(self) -> dict[str, Any]:
        """Convert to a dictionary for logging, with secrets redacted."""
        return {
            "inverter_id": self.credentials.inverter_id,
            "key_id": self.credentials.key_id,
            "key_secret": REDACTED,
            "mqtt_host": self.mqtt.host,
            "mqtt_port": self.mqtt.port,
            "mqtt_user": self.mqtt.username,
            "mqtt_password": REDACTED if self.mqtt.password else None,
            "topic_prefix": self.topic_prefix,
            "publish_discovery": self.publish_discovery,
            "discovery_prefix": self.discovery_prefix,
            "mode": self.mode.value,
            "experimental_grid_charging": self.experimental_grid_charging,
            "api_base_url": self.api_base_url,
            "api_timeout": self.api_timeout,
            "reconnect_delay": self.reconnect_delay,
        }


__all__ = [
    "BridgeConfig",
    "BridgeMode",
    "Credentials",
    "MqttSettings",
]
