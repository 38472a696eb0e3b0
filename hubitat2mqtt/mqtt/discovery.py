"""Home Assistant MQTT Discovery configuration."""

import logging
from typing import Any, Iterator

from ..config import BridgeConfig
from ..hub import Hub
from ..models import Device, HubFacet
from . import topics
from .mapper import (
    COMMANDABLE,
    THERMOSTAT_CAPABILITY,
    Component,
    MappingContext,
    capitalize_first,
    climate_attributes,
    entity_name,
    map_state,
)

logger = logging.getLogger(__name__)

# (discovery topic, document)
Discovery = tuple[str, dict[str, Any]]

# Hub facets exposed as sensors, with their icons
HUB_SENSORS = {
    "mode": "mdi:tag",
}


class DiscoveryPublisher:
    """Publisher for Home Assistant MQTT Discovery.

    Builds one retained discovery document per entity so hub devices
    appear automatically in Home Assistant.
    """

    def __init__(self, mqtt_client, config: BridgeConfig):
        """Initialize the discovery publisher.

        Args:
            mqtt_client: Transport with an async `publish`
            config: Bridge configuration
        """
        self.client = mqtt_client
        self.config = config

    def context(self, facet: HubFacet) -> MappingContext:
        """Build the mapping context for the current settings."""
        return MappingContext(
            tele_period=self.config.tele_period,
            temperature_scale=facet.temperature_scale,
        )

    def _base_config(self, device_info: dict[str, Any], name: str, unique_id: str) -> dict[str, Any]:
        """Build base discovery config.

        Args:
            device_info: Device identity block
            name: Entity display name
            unique_id: '<dni>::<state>' identifier

        Returns:
            Base config dictionary
        """
        return {
            "device": device_info,
            "name": name,
            "unique_id": unique_id,
            "availability_topic": topics.LWT_TOPIC,
            "payload_available": topics.PAYLOAD_AVAILABLE,
            "payload_not_available": topics.PAYLOAD_NOT_AVAILABLE,
        }

    def hub_documents(self, facet: HubFacet) -> Iterator[Discovery]:
        """Yield discovery documents for the hub's own entities."""
        dni = facet.hardware_id
        device_info = facet.device_info()

        if self.config.hsm_enabled:
            config = self._base_config(device_info, f"{facet.name} Alarm", f"{dni}::hsm")
            config["state_topic"] = topics.telemetry_topic(dni, "hsmStatus")
            config["command_topic"] = topics.command_topic(dni, "hsmSetArm")
            config["payload_arm_away"] = "armAway"
            config["payload_arm_home"] = "armHome"
            config["payload_arm_night"] = "armNight"
            config["payload_disarm"] = "disarm"
            yield topics.discovery_topic(Component.ALARM_CONTROL_PANEL, dni, "hsm"), config

        context = self.context(facet)
        for name, icon in HUB_SENSORS.items():
            config = self._base_config(
                device_info, f"{facet.name} {capitalize_first(name)}", f"{dni}::{name}"
            )
            config["state_topic"] = topics.telemetry_topic(dni, name)
            config["expire_after"] = context.expire_after
            config["icon"] = icon
            yield topics.discovery_topic(Component.SENSOR, dni, name), config

    def device_documents(self, device: Device, context: MappingContext) -> Iterator[Discovery]:
        """Yield discovery documents for a device.

        Thermostats get a single climate entity; every other device gets
        one entity per current state.
        """
        dni = device.dni
        device_info = device.device_info()

        if device.has_capability(THERMOSTAT_CAPABILITY):
            config = self._base_config(device_info, device.display_name, f"{dni}::thermostat")
            config.update(climate_attributes(dni, context))
            yield topics.discovery_topic(Component.CLIMATE, dni, "thermostat"), config
            return

        for state_name in device.states:
            component, attributes = map_state(device.display_name, state_name, context)
            config = self._base_config(
                device_info,
                entity_name(device.display_name, state_name),
                f"{dni}::{state_name}",
            )
            config["state_topic"] = topics.telemetry_topic(dni, state_name)
            if component in COMMANDABLE:
                config["command_topic"] = topics.command_topic(dni, state_name)
            config.update(attributes)
            yield topics.discovery_topic(component, dni, state_name), config

    def documents(self, hub: Hub) -> Iterator[Discovery]:
        """Yield every discovery document for the hub and its devices."""
        facet = hub.location()
        context = self.context(facet)
        yield from self.hub_documents(facet)
        for device in hub.devices():
            if device is None:
                continue
            yield from self.device_documents(device, context)

    async def publish_all(self, hub: Hub) -> int:
        """Publish all discovery configs to Home Assistant.

        A failure while publishing the hub or one device is logged and the
        remaining devices are still published.

        Returns:
            Number of documents published
        """
        logger.info("Publishing Auto Discovery")
        facet = hub.location()
        context = self.context(facet)
        count = 0

        try:
            for topic, config in self.hub_documents(facet):
                await self._publish(topic, config)
                count += 1
        except Exception as e:
            logger.error(f"Failed to publish discovery for {facet.name}: {e}")

        for device in hub.devices():
            if device is None:
                continue
            try:
                for topic, config in self.device_documents(device, context):
                    await self._publish(topic, config)
                    count += 1
            except Exception as e:
                logger.error(f"Failed to publish discovery for {device.display_name}: {e}")

        logger.info(f"Discovery configs published ({count} entities)")
        return count

    async def _publish(self, topic: str, config: dict[str, Any]) -> None:
        logger.info(f"Publishing discovery for {config['name']} to: {topic}")
        await self.client.publish(topic, config, retain=True)

    async def remove_all(self, hub: Hub) -> None:
        """Remove all discovery configs from Home Assistant."""
        logger.info("Removing Home Assistant discovery configs")

        for topic, _ in self.documents(hub):
            await self.client.publish(topic, "", retain=True)

        logger.info("Discovery configs removed")
