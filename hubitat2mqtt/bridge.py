"""Transport-agnostic bridge between the hub and Home Assistant.

The transport calls `on_connected` and `on_message`; the hub adapter
delivers device and location events. All outbound traffic goes through
the transport's `publish`/`subscribe`.
"""

import logging
import random
from typing import Optional, Union

from .config import AppConfig
from .hub import Hub
from .models import DeviceEvent, LocationEvent
from .mqtt import topics
from .mqtt.command_handler import CommandRouter
from .mqtt.discovery import DiscoveryPublisher
from .mqtt.publisher import StatePublisher
from .scheduler import Scheduler
from .utils.logging import set_verbose

logger = logging.getLogger(__name__)

# Scheduler job names
DISCOVERY_JOB = "publish_auto_discovery"
STATE_JOB = "publish_current_state"
LOGS_OFF_JOB = "logs_off"

# Seconds before debug logging switches itself off
LOGS_OFF_DELAY = 30 * 60

# Jitter bounds (seconds) used to spread bursts against the broker
CONNECT_JITTER = (1, 4)
HA_ONLINE_JITTER = (1, 14)
STATE_JITTER = (1, 4)


class Bridge:
    """Publish hub devices to Home Assistant and route commands back."""

    def __init__(
        self,
        config: AppConfig,
        hub: Hub,
        transport,
        scheduler: Optional[Scheduler] = None,
        rng: Optional[random.Random] = None,
    ):
        """Initialize the bridge.

        Args:
            config: Configuration snapshot
            hub: Hub adapter
            transport: MQTT transport (publish, subscribe, connected)
            scheduler: Timer scheduler (one is created if omitted)
            rng: Random source for jitter
        """
        self.hub = hub
        self.transport = transport
        self.scheduler = scheduler or Scheduler()
        self._random = rng or random.Random()
        self._apply_config(config)

    def _apply_config(self, config: AppConfig) -> None:
        self.config = config
        self.discovery = DiscoveryPublisher(self.transport, config.bridge)
        self.publisher = StatePublisher(self.transport)
        self.router = CommandRouter(self.hub, config.bridge)
        set_verbose(config.bridge.log_enable)

    def _jitter(self, bounds: tuple[int, int]) -> int:
        return self._random.randint(*bounds)

    async def initialize(self) -> None:
        """(Re)start event subscriptions and the periodic publish cycle.

        Safe to call repeatedly: pending discovery and state jobs are
        cancelled before anything is scheduled again.
        """
        self.scheduler.cancel(DISCOVERY_JOB)
        self.scheduler.cancel(STATE_JOB)

        self.hub.unsubscribe()
        logger.debug("Subscribing to device events")
        self.hub.subscribe(self.on_device_event, self.on_location_event)

        period = self.config.bridge.tele_period
        if period > 0:
            self.scheduler.run_in(period * 60, STATE_JOB, self.publish_current_state)

        if getattr(self.transport, "connected", False):
            await self.on_connected()

    async def updated(self, config: AppConfig) -> None:
        """Apply a new configuration snapshot."""
        logger.info("Configuration updated")
        self._apply_config(config)
        await self.initialize()

        if config.bridge.log_enable:
            self.scheduler.run_in(LOGS_OFF_DELAY, LOGS_OFF_JOB, self.logs_off)
        else:
            self.scheduler.cancel(LOGS_OFF_JOB)

    async def on_connected(self) -> None:
        """Subscribe to Home Assistant status and commands, then schedule discovery."""
        logger.info("MQTT Connected")
        for topic in (topics.STATUS_TOPIC, topics.COMMAND_SUBSCRIPTION):
            logger.debug(f"MQTT Subscribing to {topic}")
            await self.transport.subscribe(topic)
        self.scheduler.run_in(
            self._jitter(CONNECT_JITTER), DISCOVERY_JOB, self.publish_auto_discovery
        )

    async def on_message(self, topic: str, payload: Union[str, bytes]) -> None:
        """Handle a message from the transport."""
        logger.debug(f"Receive {topic} = {payload!r}")

        if topic == topics.STATUS_TOPIC:
            if topics.is_online_status(topic, payload):
                # wait for Home Assistant to be ready after coming online
                logger.info("Detected Home Assistant online, scheduling publish")
                self.scheduler.run_in(
                    self._jitter(HA_ONLINE_JITTER), DISCOVERY_JOB, self.publish_auto_discovery
                )
            return

        await self.router.handle_message(topic, payload)

    async def publish_auto_discovery(self) -> None:
        """Publish all discovery documents, then schedule a state publish."""
        await self.discovery.publish_all(self.hub)
        self.scheduler.run_in(
            self._jitter(STATE_JITTER), STATE_JOB, self.publish_current_state
        )

    async def publish_current_state(self) -> None:
        """Publish hub and device state, re-arming the periodic cycle."""
        try:
            await self.publisher.publish_hub_state(self.hub.location())
            await self.publisher.publish_device_state(
                self.hub.devices(),
                self.config.bridge.max_idle_hours,
            )
        finally:
            period = self.config.bridge.tele_period
            if period > 0:
                logger.debug(f"Scheduling publish in {period} minutes")
                self.scheduler.run_in(period * 60, STATE_JOB, self.publish_current_state)

    async def on_device_event(self, event: DeviceEvent) -> None:
        """Publish a device state change immediately."""
        try:
            await self.publisher.publish_device_event(event)
        except Exception as e:
            logger.error(f"Failed to publish {event.name} for {event.display_name}: {e}")

    async def on_location_event(self, event: LocationEvent) -> None:
        """Publish a location mode or HSM change immediately."""
        try:
            await self.publisher.publish_location_event(event, self.hub.location())
        except Exception as e:
            logger.error(f"Failed to publish location event {event.name}: {e}")

    async def logs_off(self) -> None:
        """Disable debug logging."""
        logger.warning("debug logging disabled")
        self.config = self.config.with_bridge(log_enable=False)
        set_verbose(False)

    def shutdown(self) -> None:
        """Cancel all jobs and drop event subscriptions."""
        self.scheduler.cancel_all()
        self.hub.unsubscribe()
