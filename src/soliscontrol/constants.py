"""Constants for the SolisCloud device control API and the MQTT bridge.

Register ids (``cid``) are taken from the SolisCloud Device Control API V2.0:
https://oss.soliscloud.com/doc/SolisCloud%20Device%20Control%20API%20V2.0.pdf
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .exceptions import UnknownTopicError

# API
DEFAULT_BASE_URL = "https://www.soliscloud.com:13333"
ENDPOINT_READ = "/v2/api/atRead"
ENDPOINT_CONTROL = "/v2/api/control"
CONTENT_TYPE = "application/json;charset=UTF-8"
DEFAULT_API_TIMEOUT = 30

# Server code returned when a setting must be read before it can be written
CODE_READ_BEFORE_SET = "B0218"

# MQTT
DEFAULT_TOPIC_PREFIX = "solar/"
DEFAULT_DISCOVERY_PREFIX = "homeassistant"
DEFAULT_MQTT_HOST = "localhost"
DEFAULT_MQTT_PORT = 1883
DEFAULT_MQTT_KEEPALIVE = 60
DEFAULT_MQTT_CLIENT_ID = "solis-control"
COMMAND_SUFFIX = "/set"

# Fixed delay before reconnecting after the broker connection drops
RECONNECT_DELAY_SECONDS = 5.0

# Battery limits
OVERDISCHARGE_SOC_MAX = 40
FORCECHARGE_SOC_MAX = 20

# Ranges advertised to Home Assistant
OVERDISCHARGE_SOC_DISPLAY_MIN = 10
FORCECHARGE_SOC_DISPLAY_MIN = 4

SWITCH_PAYLOAD_OFF = "0"
SWITCH_PAYLOAD_ON = "1"


class ParameterDomain(str, Enum):
    """How a control parameter's payload is validated."""

    PERCENTAGE = "percentage"
    SWITCH = "switch"
    SCHEDULE = "schedule"
    READ_ONLY = "read_only"


@dataclass(frozen=True)
class ParameterDefinition:
    """Static description of one controllable inverter setting."""

    name: str
    cid: int
    topic: str
    domain: ParameterDomain
    upper: int | None = None
    description: str = ""


class ControlParameter(Enum):
    """Inverter settings reachable through the bridge."""

    OVERDISCHARGE_SOC = ParameterDefinition(
        "OverdischargeSoc",
        158,
        "battery/OverdischargeSoc",
        ParameterDomain.PERCENTAGE,
        OVERDISCHARGE_SOC_MAX,
        "Battery over-discharge SOC (%)",
    )
    FORCECHARGE_SOC = ParameterDefinition(
        "ForcechargeSoc",
        160,
        "battery/ForcechargeSoc",
        ParameterDomain.PERCENTAGE,
        FORCECHARGE_SOC_MAX,
        "Battery force-charge SOC (%)",
    )
    MAX_GRID_POWER = ParameterDefinition(
        "MaxGridPower",
        676,
        "battery/MaxGridPower",
        ParameterDomain.READ_ONLY,
        description="Maximum grid charge power",
    )
    CHARGE_AND_DISCHARGE = ParameterDefinition(
        "ChargeAndDischarge",
        4643,
        "selfuse/ChargeAndDischarge",
        ParameterDomain.SCHEDULE,
        description="Self-use charge/discharge currents and time windows",
    )
    ALLOW_GRID_CHARGING = ParameterDefinition(
        "AllowGridCharging",
        109,
        "selfuse/AllowGridCharging",
        ParameterDomain.SWITCH,
        description="Self-use: allow charging from the grid",
    )

    @property
    def cid(self) -> int:
        """Register id used by the cloud API."""
        return self.value.cid

    @property
    def domain(self) -> ParameterDomain:
        return self.value.domain

    @property
    def upper(self) -> int | None:
        return self.value.upper

    @property
    def label(self) -> str:
        return self.value.name

    def state_topic(self, prefix: str) -> str:
        """Topic the confirmed value is published on."""
        return f"{prefix}{self.value.topic}"

    def command_topic(self, prefix: str) -> str:
        """Topic operator intents arrive on."""
        return f"{prefix}{self.value.topic}{COMMAND_SUFFIX}"

    @classmethod
    def from_command_topic(cls, prefix: str, topic: str) -> ControlParameter:
        """Resolve an inbound command topic by exact match.

        Raises:
            UnknownTopicError: If no subscribed parameter owns the topic
        """
        for parameter in COMMAND_PARAMETERS:
            if parameter.command_topic(prefix) == topic:
                return parameter
        raise UnknownTopicError(topic)

    @classmethod
    def from_name(cls, name: str) -> ControlParameter:
        """Look up a parameter by label (``OverdischargeSoc``) or member name.

        Raises:
            ValueError: If the name matches nothing
        """
        wanted = name.strip().lower()
        for parameter in cls:
            if wanted in (parameter.label.lower(), parameter.name.lower()):
                return parameter
        raise ValueError(f"Unknown control parameter: {name}")


# Parameters with an inbound command topic, in subscription order
COMMAND_PARAMETERS: tuple[ControlParameter, ...] = (
    ControlParameter.OVERDISCHARGE_SOC,
    ControlParameter.FORCECHARGE_SOC,
    ControlParameter.CHARGE_AND_DISCHARGE,
    ControlParameter.ALLOW_GRID_CHARGING,
)
