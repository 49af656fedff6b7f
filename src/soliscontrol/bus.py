"""MQTT bus adapter.

Wraps a paho-mqtt client for use from asyncio. paho runs its network loop
in its own thread; callbacks only hand messages to the event loop through
``call_soon_threadsafe`` so all command handling stays on one task.

A lost connection is reported to the consumer of :meth:`MqttBus.messages`
as :class:`~soliscontrol.exceptions.BusConnectionError`, after any messages
received before the drop. Reconnecting is the caller's job
(see :mod:`soliscontrol.bridge`); one ``MqttBus`` can be connected again
after :meth:`MqttBus.close`.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable, Iterable
from dataclasses import dataclass
from typing import Any

import paho.mqtt.client as mqtt

from .config import MqttSettings
from .exceptions import BusConnectionError

_LOGGER = logging.getLogger(__name__)

DEFAULT_CONNECT_TIMEOUT = 10.0


@dataclass(frozen=True)
class BusMessage:
    """An inbound MQTT message with its payload decoded as UTF-8."""

    topic: str
    payload: str


class MqttBus:
    """Asyncio facade over a paho-mqtt client.

    Example:
        ```python
        bus = MqttBus(MqttSettings(host="broker.local"))
        await bus.connect(["solar/battery/OverdischargeSoc/set"])
        bus.publish("solar/battery/OverdischargeSoc", "20")
        async for message in bus.messages():
            ...
        ```
    """

    def __init__(
        self,
        settings: MqttSettings,
        *,
        client_factory: Callable[[], mqtt.Client] | None = None,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
    ) -> None:
        """Initialize the bus.

        Args:
            settings: Broker connection parameters
            client_factory: Optional factory for the paho client (for testing)
            connect_timeout: Seconds to wait for the broker's CONNACK
        """
        self.settings = settings
        self._client_factory = client_factory or self._default_client
        self._connect_timeout = connect_timeout

        self._client: mqtt.Client | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._queue: asyncio.Queue[BusMessage | None] = asyncio.Queue()
        self._connack: asyncio.Event | None = None
        self._connect_error: str | None = None
        self._topics: list[str] = []

    def _default_client(self) -> mqtt.Client:
        return mqtt.Client(
            mqtt.CallbackAPIVersion.VERSION2,
            client_id=self.settings.client_id,
        )

    @property
    def is_connected(self) -> bool:
        return self._client is not None and self._client.is_connected()

    async def connect(self, topics: Iterable[str]) -> None:
        """Connect to the broker and subscribe to ``topics``.

        Subscriptions are (re)issued from the CONNACK callback.

        Raises:
            BusConnectionError: If the broker is unreachable or refuses the connection
        """
        loop = asyncio.get_running_loop()
        self._loop = loop
        self._queue = asyncio.Queue()
        self._connack = asyncio.Event()
        self._connect_error = None
        self._topics = list(topics)

        client = self._client_factory()
        if self.settings.username:
            client.username_pw_set(self.settings.username, self.settings.password)
        client.on_connect = self._on_connect
        client.on_disconnect = self._on_disconnect
        client.on_message = self._on_message

        host, port = self.settings.host, self.settings.port
        _LOGGER.info("Connecting to MQTT broker %s:%d", host, port)
        try:
            await loop.run_in_executor(
                None, client.connect, host, port, self.settings.keepalive
            )
        except OSError as err:
            raise BusConnectionError(
                f"Failed to connect to MQTT broker {host}:{port}: {err}"
            ) from err

        self._client = client
        client.loop_start()

        try:
            await asyncio.wait_for(self._connack.wait(), timeout=self._connect_timeout)
        except asyncio.TimeoutError as err:
            await self.close()
            raise BusConnectionError(
                f"MQTT broker {host}:{port} did not acknowledge the connection"
            ) from err

        if self._connect_error is not None:
            reason = self._connect_error
            await self.close()
            raise BusConnectionError(f"MQTT broker {host}:{port} refused connection: {reason}")

    def publish(self, topic: str, payload: str, *, retain: bool = True) -> None:
        """Publish ``payload`` on ``topic`` (retained by default).

        Raises:
            BusConnectionError: If the bus is not connected
        """
        if self._client is None:
            raise BusConnectionError(f"Cannot publish to {topic}: not connected")
        info = self._client.publish(topic, payload, qos=0, retain=retain)
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            _LOGGER.warning(
                "Publish to %s failed: %s", topic, mqtt.error_string(info.rc)
            )
        else:
            _LOGGER.debug("Published %s to %s", payload, topic)

    async def messages(self) -> AsyncIterator[BusMessage]:
        """Yield inbound messages in arrival order.

        Raises:
            BusConnectionError: When the broker connection is lost
        """
        while True:
            message = await self._queue.get()
            if message is None:
                raise BusConnectionError("Connection to MQTT broker lost")
            yield message

    async def close(self) -> None:
        """Disconnect and stop the network thread."""
        client, self._client = self._client, None
        if client is None:
            return
        client.on_disconnect = None
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._shutdown, client)

    @staticmethod
    def _shutdown(client: mqtt.Client) -> None:
        client.disconnect()
        client.loop_stop()

    # paho callbacks, called from the network thread

    def _signal(self, callback: Callable[..., Any], *args: Any) -> None:
        if self._loop is not None and not self._loop.is_closed():
            self._loop.call_soon_threadsafe(callback, *args)

    def _on_connect(
        self,
        client: mqtt.Client,
        userdata: Any,
        flags: Any,
        reason_code: Any,
        properties: Any = None,
    ) -> None:
        if reason_code.is_failure:
            self._connect_error = str(reason_code)
        else:
            _LOGGER.info("Subscribing to the following MQTT topics:")
            for topic in self._topics:
                _LOGGER.info(" - %s", topic)
            if self._topics:
                client.subscribe([(topic, 0) for topic in self._topics])
        if self._connack is not None:
            self._signal(self._connack.set)

    def _on_disconnect(
        self,
        client: mqtt.Client,
        userdata: Any,
        flags: Any,
        reason_code: Any,
        properties: Any = None,
    ) -> None:
        _LOGGER.debug("MQTT disconnect: %s", reason_code)
        self._signal(self._queue.put_nowait, None)

    def _on_message(self, client: mqtt.Client, userdata: Any, message: Any) -> None:
        payload = message.payload.decode("utf-8", errors="replace")
        self._signal(self._queue.put_nowait, BusMessage(message.topic, payload))
