"""State publisher for MQTT telemetry."""

import logging
from datetime import datetime
from typing import Any, Optional, Sequence

from ..models import Device, DeviceEvent, HubFacet, LocationEvent
from . import topics
from .mapper import translate_hsm_state

logger = logging.getLogger(__name__)


class StatePublisher:
    """Publisher for hub and device state to `hubitat/tele/...`.

    Handles both the periodic full sweep and immediate publication of
    individual device/location events.
    """

    def __init__(self, mqtt_client):
        """Initialize the state publisher.

        Args:
            mqtt_client: Transport with an async `publish`
        """
        self.client = mqtt_client

    async def _publish(self, dni: str, name: str, value: Any) -> None:
        await self.client.publish(topics.telemetry_topic(dni, name), value, retain=False)

    async def publish_hub_state(self, facet: HubFacet) -> None:
        """Publish the hub's pseudo-states."""
        logger.info(f"Publishing {facet.name} current state")
        dni = facet.hardware_id

        await self._publish(dni, "mode", facet.mode)
        await self._publish(dni, "timeZone", facet.time_zone)
        await self._publish(dni, "zipCode", facet.zip_code)
        await self._publish(dni, "sunrise", facet.sunrise)
        await self._publish(dni, "sunset", facet.sunset)

        hsm_state = translate_hsm_state(facet.hsm_status)
        if hsm_state is not None:
            await self._publish(dni, "hsmStatus", hsm_state)
        else:
            logger.debug(f"No alarm state for HSM status {facet.hsm_status}")

        await self._publish(dni, "latitude", facet.latitude)
        await self._publish(dni, "longitude", facet.longitude)
        await self._publish(dni, "temperatureScale", facet.temperature_scale)

        await self._publish(dni, "name", facet.name)
        await self._publish(dni, "zigbeeId", facet.zigbee_id)
        await self._publish(dni, "hardwareID", facet.hardware_id)
        await self._publish(dni, "localIP", facet.local_ip)
        await self._publish(dni, "firmwareVersion", facet.firmware_version)

    async def publish_device_state(
        self,
        devices: Sequence[Optional[Device]],
        max_idle_hours: int,
        now: Optional[datetime] = None,
    ) -> int:
        """Publish every state of every recently active device.

        Devices idle for more than `max_idle_hours` are skipped so stale
        values are not reasserted as current.

        Returns:
            Number of devices published
        """
        published = 0
        for device in devices:
            if device is None:
                continue

            try:
                idle_hours = device.idle_hours(now)
                if idle_hours is not None and idle_hours > max_idle_hours:
                    logger.warning(
                        f"Skipping {device.display_name} as last updated {idle_hours} hours ago"
                    )
                    continue

                logger.info(f"Publishing {device.display_name} current state")
                for name, value in device.states.items():
                    logger.debug(f"Publishing ({device.display_name}) {device.dni}/{name}={value}")
                    await self._publish(device.dni, name, value)
                published += 1
            except Exception as e:
                logger.error(f"Failed to publish state for {device.display_name}: {e}")

        return published

    async def publish_device_event(self, event: DeviceEvent) -> None:
        """Publish a single device state change."""
        topic = topics.telemetry_topic(event.dni, event.name)
        logger.info(f"Publishing ({event.display_name}) {topic}={event.value}")
        await self.client.publish(topic, event.value, retain=False)

    async def publish_location_event(self, event: LocationEvent, facet: HubFacet) -> bool:
        """Publish a location mode or HSM change.

        Returns:
            True if a message was published
        """
        if event.name == "mode":
            name, payload = "mode", event.value
        elif event.name in ("hsmStatus", "hsmAlert"):
            name, payload = "hsmStatus", translate_hsm_state(event.value)
            if payload is None:
                logger.debug(f"No alarm state for {event.name} {event.value}, not publishing")
                return False
        else:
            logger.info(f"Unknown location event {event.name} of {event.value}")
            return False

        topic = topics.telemetry_topic(facet.hardware_id, name)
        logger.info(f"Publishing ({facet.name}) {topic}={payload}")
        await self.client.publish(topic, payload, retain=False)
        return True
