"""Supervised MQTT to SolisCloud bridge.

:class:`SolisBridge` owns the reconnect loop: connect and subscribe, run the
router's startup sequence once, then feed messages to the router one at a
time. When the broker connection drops it waits a fixed delay and starts
over, forever, until :meth:`SolisBridge.stop` is called.

Messages are never handled concurrently; writes to the same inverter would
race on the device.
"""

from __future__ import annotations

import asyncio
import logging

from .bus import MqttBus
from .client import SolisCloudClient
from .config import BridgeConfig
from .exceptions import BusConnectionError
from .router import TopicRouter

_LOGGER = logging.getLogger(__name__)


class SolisBridge:
    """Run the router against a reconnecting MQTT bus.

    Example:
        ```python
        async with SolisCloudClient(config.credentials) as client:
            bridge = SolisBridge(config, client)
            await bridge.run()
        ```
    """

    def __init__(
        self,
        config: BridgeConfig,
        client: SolisCloudClient,
        *,
        bus: MqttBus | None = None,
        router: TopicRouter | None = None,
    ) -> None:
        self.config = config
        self.client = client
        self.bus = bus if bus is not None else MqttBus(config.mqtt)
        self.router = router if router is not None else TopicRouter(
            config, client.control, self.bus
        )
        self._started = False
        self._stopping = False
        self._task: asyncio.Task[None] | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None

    def stop(self) -> None:
        """Request shutdown; safe to call from a signal handler."""
        self._stopping = True
        if self._task is not None:
            self._task.cancel()

    async def run(self) -> None:
        """Run until :meth:`stop` is called.

        Raises:
            asyncio.CancelledError: If cancelled by anything other than stop()
        """
        self._task = asyncio.current_task()  # type: ignore[assignment]
        try:
            while not self._stopping:
                try:
                    await self._session()
                except BusConnectionError as err:
                    _LOGGER.warning(
                        "%s, restarting in %s seconds", err, self.config.reconnect_delay
                    )
                await self.bus.close()
                await asyncio.sleep(self.config.reconnect_delay)
        except asyncio.CancelledError:
            if not self._stopping:
                raise
        finally:
            self._task = None
            await self.bus.close()
        _LOGGER.info("Bridge stopped")

    async def _session(self) -> None:
        await self.bus.connect(self.router.command_topics)
        if not self._started:
            self._started = True
            await self.router.startup()

        async for message in self.bus.messages():
            await self.router.handle(message.topic, message.payload)
