"""Main application orchestrator for hubitat2mqtt."""

import asyncio
import logging
import signal
from datetime import datetime
from typing import Optional, Union

import aiomqtt

from .bridge import Bridge
from .config import AppConfig, get_config
from .hub import Hub, load_hub
from .mqtt import topics
from .mqtt.client import MQTTClient
from .utils.logging import setup_logging

logger = logging.getLogger(__name__)


class Hubitat2MQTT:
    """Main application class.

    Owns the MQTT connection and the hub adapter, and feeds connection
    and message events into the bridge.
    """

    def __init__(
        self,
        config: Union[AppConfig, str, None] = None,
        hub: Optional[Hub] = None,
    ):
        """Initialize the application.

        Args:
            config: AppConfig instance, path to YAML config file, or None for env/defaults
            hub: Hub adapter (loaded from config.hub.adapter if omitted)
        """
        if isinstance(config, AppConfig):
            self.config = config
        elif isinstance(config, str):
            self.config = get_config(config)
        else:
            self.config = get_config()

        self.running = False
        self._shutdown_event = asyncio.Event()
        self._reconnect_interval = 5.0

        # Components (initialized in start())
        self.hub = hub
        self.mqtt: Optional[MQTTClient] = None
        self.bridge: Optional[Bridge] = None

        # Statistics
        self._stats = {
            "connections": 0,
            "messages": 0,
            "mqtt_errors": 0,
            "start_time": None,
        }

    async def start(self) -> None:
        """Start the application.

        Loads the hub adapter, initializes the bridge and keeps an MQTT
        connection alive until shutdown.
        """
        setup_logging(
            level=self.config.logging.level,
            log_file=self.config.logging.file,
            format_string=self.config.logging.format,
        )

        logger.info("Starting hubitat2mqtt")
        self._stats["start_time"] = datetime.now()
        self.running = True

        self._setup_signal_handlers()

        try:
            if self.hub is None:
                if not self.config.hub.adapter:
                    raise ValueError(
                        "No hub adapter configured (set HUB_ADAPTER or hub.adapter)"
                    )
                self.hub = load_hub(self.config.hub.adapter, self.config.hub.options)

            self.mqtt = MQTTClient(self.config.mqtt)
            self.bridge = Bridge(self.config, self.hub, self.mqtt)
            await self.bridge.updated(self.config)

            await self._connection_loop()

        except asyncio.CancelledError:
            logger.info("Application cancelled")
        except Exception as e:
            logger.error(f"Application error: {e}", exc_info=True)
            raise
        finally:
            await self.stop()

    async def _connection_loop(self) -> None:
        """Connect, hand control to the bridge, and reconnect on failure."""
        while self.running and not self._shutdown_event.is_set():
            try:
                await self.mqtt.connect()
                self._stats["connections"] += 1
                await self.mqtt.publish_availability(topics.PAYLOAD_AVAILABLE)
                await self.bridge.on_connected()
                await self._run_until_shutdown()

            except aiomqtt.MqttError as e:
                logger.error(f"MQTT error: {e}")
                self._stats["mqtt_errors"] += 1
                await self.mqtt.disconnect()

            if self._shutdown_event.is_set():
                break

            logger.info(f"Reconnecting to MQTT in {self._reconnect_interval}s")
            try:
                await asyncio.wait_for(
                    self._shutdown_event.wait(),
                    timeout=self._reconnect_interval,
                )
                # If we get here, shutdown was requested
                break
            except asyncio.TimeoutError:
                continue

    async def _run_until_shutdown(self) -> None:
        """Process MQTT messages until shutdown or connection loss."""
        messages = asyncio.ensure_future(self.mqtt.message_loop(self._handle_mqtt_message))
        shutdown = asyncio.ensure_future(self._shutdown_event.wait())

        done, pending = await asyncio.wait(
            {messages, shutdown},
            return_when=asyncio.FIRST_COMPLETED,
        )
        for task in pending:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        if messages in done:
            # Re-raise MqttError from the message loop
            messages.result()

    async def _handle_mqtt_message(self, topic: str, payload: bytes) -> None:
        """Handle an incoming MQTT message.

        Args:
            topic: MQTT topic
            payload: Message payload
        """
        self._stats["messages"] += 1
        try:
            await self.bridge.on_message(topic, payload)
        except Exception as e:
            logger.error(f"Error handling message: {e}")

    async def stop(self) -> None:
        """Stop the application gracefully."""
        logger.info("Stopping hubitat2mqtt")
        self.running = False
        self._shutdown_event.set()

        if self.bridge:
            self.bridge.shutdown()

        if self.mqtt:
            try:
                await self.mqtt.disconnect()
            except Exception as e:
                logger.error(f"Error disconnecting MQTT: {e}")
            self.mqtt = None

        uptime = (
            datetime.now() - self._stats["start_time"] if self._stats["start_time"] else None
        )
        logger.info(
            f"Statistics: connections={self._stats['connections']}, "
            f"messages={self._stats['messages']}, "
            f"mqtt_errors={self._stats['mqtt_errors']}, "
            f"uptime={uptime}"
        )
        logger.info("hubitat2mqtt stopped")

    def _setup_signal_handlers(self) -> None:
        """Set up signal handlers for graceful shutdown."""
        loop = asyncio.get_running_loop()

        def signal_handler(sig):
            logger.info(f"Received signal {sig.name}, initiating shutdown")
            self._shutdown_event.set()

        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, lambda s=sig: signal_handler(s))


async def run_app(config: Union[AppConfig, str, None] = None) -> None:
    """Run the application.

    Args:
        config: AppConfig instance, path to config file, or None for env/defaults
    """
    app = Hubitat2MQTT(config)
    await app.start()
