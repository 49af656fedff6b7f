"""Topic router: turns bus commands into confirmed inverter writes.

Each inbound ``(topic, payload)`` is matched exactly against the command
topics of :data:`~soliscontrol.constants.COMMAND_PARAMETERS` and handled to
completion before the next message:

1. validate the payload (no network call on failure)
2. write the register
3. read the register back
4. publish the value that was read, not the value requested
5. after an OverdischargeSoc change, re-advertise the ForcechargeSoc range

In legacy mode steps 3-5 are skipped. Every recoverable failure is logged and
the message is dropped; only bus errors escape :meth:`TopicRouter.handle`.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Protocol

from .config import BridgeConfig, BridgeMode
from .constants import (
    CODE_READ_BEFORE_SET,
    COMMAND_PARAMETERS,
    ControlParameter,
)
from .discovery import (
    DiscoveryMessage,
    allow_grid_charging_config,
    forcecharge_soc_config,
    overdischarge_soc_config,
)
from .exceptions import (
    SolisAPIError,
    SolisConnectionError,
    SolisInvalidPayloadError,
    SolisMalformedResponseError,
    SolisNotImplementedError,
    UnknownTopicError,
)
from .validation import forcecharge_upper_bound, is_integer_text, validate_command

if TYPE_CHECKING:
    from .endpoints.control import ControlEndpoints

_LOGGER = logging.getLogger(__name__)


class Publisher(Protocol):
    """Anything that can publish to the bus (normally :class:`~soliscontrol.bus.MqttBus`)."""

    def publish(self, topic: str, payload: str, *, retain: bool = True) -> None: ...


def _as_int(parameter: ControlParameter, value: str) -> int:
    if not is_integer_text(value):
        raise SolisMalformedResponseError(
            f"{parameter.label} read back non-numeric value {value!r}"
        )
    return int(value)


class TopicRouter:
    """Dispatch command topics to parameter handlers."""

    def __init__(
        self,
        config: BridgeConfig,
        control: ControlEndpoints,
        bus: Publisher,
    ) -> None:
        """Initialize the router.

        Args:
            config: Process configuration
            control: Signed register read/write endpoints
            bus: Publisher for state and discovery messages
        """
        self.config = config
        self.control = control
        self.bus = bus
        self._overdischarge_soc: int | None = None
        self._handlers: dict[ControlParameter, Callable[[str], Awaitable[None]]] = {
            ControlParameter.OVERDISCHARGE_SOC: self._set_overdischarge_soc,
            ControlParameter.FORCECHARGE_SOC: self._set_forcecharge_soc,
            ControlParameter.CHARGE_AND_DISCHARGE: self._set_charge_and_discharge,
            ControlParameter.ALLOW_GRID_CHARGING: self._set_allow_grid_charging,
        }

    @property
    def prefix(self) -> str:
        return self.config.topic_prefix

    @property
    def command_topics(self) -> list[str]:
        return [parameter.command_topic(self.prefix) for parameter in COMMAND_PARAMETERS]

    @property
    def overdischarge_soc(self) -> int | None:
        """Last confirmed OverdischargeSoc, None until known."""
        return self._overdischarge_soc

    @property
    def forcecharge_bound(self) -> int:
        """Current effective upper bound for ForcechargeSoc."""
        return forcecharge_upper_bound(self._overdischarge_soc)

    async def handle(self, topic: str, payload: str) -> None:
        """Handle one inbound message to completion.

        Raises:
            BusConnectionError: If publishing the result fails
        """
        _LOGGER.info("Reacting to topic: %s with message: %s", topic, payload)
        try:
            parameter = ControlParameter.from_command_topic(self.prefix, topic)
        except UnknownTopicError as err:
            _LOGGER.warning("%s", err)
            return

        try:
            await self._handlers[parameter](payload)
        except SolisInvalidPayloadError as err:
            _LOGGER.warning("%s: %s", topic, err)
        except SolisNotImplementedError as err:
            _LOGGER.warning("%s", err)
        except (SolisAPIError, SolisConnectionError) as err:
            _LOGGER.error("Failed to set %s: %s", parameter.label, err)

    async def startup(self) -> None:
        """Advertise entities and publish the current values.

        Runs once before the first subscription loop in confirm mode. Read
        failures are logged; the bridge subscribes regardless.
        """
        if self.config.mode == BridgeMode.LEGACY:
            return

        self.publish_discovery()

        _LOGGER.info("Initial reading values and publishing to MQTT")
        try:
            value = await self.control.read(ControlParameter.OVERDISCHARGE_SOC.cid)
            self._publish_state(ControlParameter.OVERDISCHARGE_SOC, value)
            self._update_overdischarge_soc(
                _as_int(ControlParameter.OVERDISCHARGE_SOC, value)
            )

            value = await self.control.read(ControlParameter.FORCECHARGE_SOC.cid)
            self._publish_state(ControlParameter.FORCECHARGE_SOC, value)
        except (SolisAPIError, SolisConnectionError) as err:
            _LOGGER.error("Initial read failed: %s", err)

    def publish_discovery(self) -> None:
        """Publish Home Assistant discovery for every writable entity."""
        if not self.config.advertises:
            return

        _LOGGER.info("Publishing Home Assistant discovery")
        discovery_prefix = self.config.discovery_prefix
        self._publish_discovery(
            overdischarge_soc_config(self.prefix, discovery_prefix=discovery_prefix)
        )
        self._publish_discovery(
            forcecharge_soc_config(
                self.prefix, self.forcecharge_bound, discovery_prefix=discovery_prefix
            )
        )
        if self.config.experimental_grid_charging:
            self._publish_discovery(
                allow_grid_charging_config(self.prefix, discovery_prefix=discovery_prefix)
            )

    # Handlers

    async def _set_overdischarge_soc(self, payload: str) -> None:
        parameter = ControlParameter.OVERDISCHARGE_SOC
        value = validate_command(parameter, payload)
        confirmed = await self._apply(parameter, str(value))
        if confirmed is not None:
            value = _as_int(parameter, confirmed)
        self._update_overdischarge_soc(value)
        _LOGGER.info("OverdischargeSoc set to %s", value)

    async def _set_forcecharge_soc(self, payload: str) -> None:
        parameter = ControlParameter.FORCECHARGE_SOC
        value = validate_command(parameter, payload, upper=self.forcecharge_bound)
        confirmed = await self._apply(parameter, str(value))
        _LOGGER.info("ForcechargeSoc set to %s", confirmed if confirmed is not None else value)

    async def _set_charge_and_discharge(self, payload: str) -> None:
        schedule = validate_command(ControlParameter.CHARGE_AND_DISCHARGE, payload)
        raise SolisNotImplementedError(
            f"ChargeAndDischarge not implemented yet, ignoring {schedule!r}"
        )

    async def _set_allow_grid_charging(self, payload: str) -> None:
        parameter = ControlParameter.ALLOW_GRID_CHARGING
        value = str(validate_command(parameter, payload))
        if not self.config.experimental_grid_charging:
            raise SolisNotImplementedError("AllowGridCharging not implemented yet")

        # The API insists on a read before a set for this register
        current = await self.control.read(parameter.cid)
        _LOGGER.debug("AllowGridCharging currently %s", current)
        try:
            confirmed = await self._apply(parameter, value)
        except SolisAPIError as err:
            if err.code is not None and str(err.code) == CODE_READ_BEFORE_SET:
                raise SolisNotImplementedError(
                    f"AllowGridCharging write rejected by SolisCloud ({err.code}); "
                    "the read-before-set sequence is not supported yet"
                ) from err
            raise
        _LOGGER.info(
            "AllowGridCharging set to %s", confirmed if confirmed is not None else value
        )

    # Helpers

    async def _apply(self, parameter: ControlParameter, value: str) -> str | None:
        """Write ``value`` and, in confirm mode, read back and publish.

        Returns:
            The confirmed value, or None in legacy mode
        """
        await self.control.write(parameter.cid, value)
        if self.config.mode == BridgeMode.LEGACY:
            return None

        confirmed = await self.control.read(parameter.cid)
        if confirmed != value:
            _LOGGER.info(
                "%s requested %s but inverter reports %s", parameter.label, value, confirmed
            )
        self._publish_state(parameter, confirmed)
        return confirmed

    def _update_overdischarge_soc(self, value: int) -> None:
        self._overdischarge_soc = value
        bound = self.forcecharge_bound
        _LOGGER.debug("ForcechargeSoc upper bound is now %d", bound)
        if self.config.advertises:
            self._publish_discovery(
                forcecharge_soc_config(
                    self.prefix, bound, discovery_prefix=self.config.discovery_prefix
                )
            )

    def _publish_state(self, parameter: ControlParameter, value: str) -> None:
        self.bus.publish(parameter.state_topic(self.prefix), value)

    def _publish_discovery(self, message: DiscoveryMessage) -> None:
        self.bus.publish(message.topic, message.encode())
        _LOGGER.info("Published Home Assistant discovery for %s", message.payload["name"])
