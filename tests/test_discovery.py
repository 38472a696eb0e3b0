"""Tests for Home Assistant discovery document publishing."""

import json

import pytest

from hubitat2mqtt.config import BridgeConfig
from hubitat2mqtt.mqtt.discovery import DiscoveryPublisher
from hubitat2mqtt.mqtt.mapper import MappingContext


class TestHubDocuments:
    """Tests for hub-level discovery documents."""

    def test_mode_and_alarm(self, transport, facet, bridge_config):
        """Test the hub publishes an alarm panel and a mode sensor."""
        publisher = DiscoveryPublisher(transport, bridge_config)
        docs = dict(publisher.hub_documents(facet))

        assert set(docs) == {
            "homeassistant/alarm_control_panel/HUB1_hsm/config",
            "homeassistant/sensor/HUB1_mode/config",
        }

        mode = docs["homeassistant/sensor/HUB1_mode/config"]
        assert mode["name"] == "Home Mode"
        assert mode["unique_id"] == "HUB1::mode"
        assert mode["state_topic"] == "hubitat/tele/HUB1/mode"
        assert mode["expire_after"] == 15 * 60 * 8
        assert mode["icon"] == "mdi:tag"
        assert mode["availability_topic"] == "hubitat/LWT"
        assert mode["device"] == {
            "identifiers": ["HUB1", "ZB0001"],
            "manufacturer": "Hubitat",
            "name": "Home",
            "model": "Elevation",
            "sw_version": "2.3.9.176",
        }

        alarm = docs["homeassistant/alarm_control_panel/HUB1_hsm/config"]
        assert alarm["name"] == "Home Alarm"
        assert alarm["unique_id"] == "HUB1::hsm"
        assert alarm["state_topic"] == "hubitat/tele/HUB1/hsmStatus"
        assert alarm["command_topic"] == "hubitat/cmnd/HUB1/hsmSetArm"
        assert alarm["payload_arm_away"] == "armAway"
        assert alarm["payload_arm_home"] == "armHome"
        assert alarm["payload_arm_night"] == "armNight"
        assert alarm["payload_disarm"] == "disarm"

    def test_alarm_omitted_when_hsm_disabled(self, transport, facet):
        """Test no alarm panel without HSM integration."""
        publisher = DiscoveryPublisher(transport, BridgeConfig(hsm_enabled=False))
        topics = [topic for topic, _ in publisher.hub_documents(facet)]

        assert topics == ["homeassistant/sensor/HUB1_mode/config"]


class TestDeviceDocuments:
    """Tests for per-device discovery documents."""

    def test_one_document_per_state(self, transport, door_sensor, bridge_config):
        """Test a regular device yields one entity per state."""
        publisher = DiscoveryPublisher(transport, bridge_config)
        docs = dict(publisher.device_documents(door_sensor, MappingContext(15, "F")))

        assert set(docs) == {
            "homeassistant/binary_sensor/abc123_contact/config",
            "homeassistant/sensor/abc123_battery/config",
            "homeassistant/sensor/abc123_temperature/config",
        }

        contact = docs["homeassistant/binary_sensor/abc123_contact/config"]
        assert contact["name"] == "Front Door Contact"
        assert contact["unique_id"] == "abc123::contact"
        assert contact["state_topic"] == "hubitat/tele/abc123/contact"
        assert contact["device_class"] == "door"
        assert contact["payload_available"] == "Online"
        assert contact["payload_not_available"] == "Offline"
        assert "command_topic" not in contact
        assert contact["device"] == {
            "identifiers": ["abc123", "ZB1234"],
            "manufacturer": "SmartThings",
            "name": "Front Door",
            "model": "multiv4",
        }

        temperature = docs["homeassistant/sensor/abc123_temperature/config"]
        assert temperature["unit_of_measurement"] == "F"

    def test_commandable_components_get_command_topic(self, transport, kitchen_light, bridge_config):
        """Test lights receive a command topic named after the state."""
        publisher = DiscoveryPublisher(transport, bridge_config)
        docs = dict(publisher.device_documents(kitchen_light, MappingContext()))

        light = docs["homeassistant/light/light01_switch/config"]
        assert light["command_topic"] == "hubitat/cmnd/light01/switch"
        assert light["payload_on"] == "on"
        assert "expire_after" not in light

        level = docs["homeassistant/sensor/light01_level/config"]
        assert level["name"] == "Kitchen Light Level"
        assert "command_topic" not in level

    def test_thermostat_single_climate_document(self, transport, thermostat, bridge_config):
        """Test thermostats bypass per-state documents."""
        publisher = DiscoveryPublisher(transport, bridge_config)
        docs = list(publisher.device_documents(thermostat, MappingContext(15, "F")))

        assert len(docs) == 1
        topic, config = docs[0]
        assert topic == "homeassistant/climate/thermo1_thermostat/config"
        assert config["unique_id"] == "thermo1::thermostat"
        assert config["name"] == "Hallway Thermostat"
        assert config["min_temp"] == "60"
        assert config["availability_topic"] == "hubitat/LWT"

    def test_unique_ids_are_unique(self, transport, hub, bridge_config):
        """Test no two documents share a unique_id or topic."""
        publisher = DiscoveryPublisher(transport, bridge_config)
        docs = list(publisher.documents(hub))

        unique_ids = [config["unique_id"] for _, config in docs]
        assert len(unique_ids) == len(set(unique_ids))
        assert len({topic for topic, _ in docs}) == len(docs)


class TestPublishAll:
    """Tests for publishing the full set of documents."""

    @pytest.mark.asyncio
    async def test_publishes_retained_json(self, transport, hub, bridge_config):
        """Test every document is retained and JSON serializable."""
        publisher = DiscoveryPublisher(transport, bridge_config)
        count = await publisher.publish_all(hub)

        # hsm + mode, 3 door states, 2 light states, 1 thermostat
        assert count == 8
        assert len(transport.published) == 8
        for topic, payload, retain in transport.published:
            assert topic.startswith("homeassistant/")
            assert topic.endswith("/config")
            assert retain is True
            assert json.loads(json.dumps(payload)) == payload

        # Hub documents come first
        assert transport.topics()[0] == "homeassistant/alarm_control_panel/HUB1_hsm/config"

    @pytest.mark.asyncio
    async def test_failing_device_does_not_stop_others(self, transport, hub, bridge_config):
        """Test a publish failure for one device is contained."""

        async def flaky_publish(topic, payload, retain=False, qos=None):
            if "abc123" in topic:
                raise ConnectionError("broker went away")
            transport.published.append((topic, payload, retain))

        transport.publish = flaky_publish
        publisher = DiscoveryPublisher(transport, bridge_config)

        count = await publisher.publish_all(hub)

        assert count == 5
        assert "homeassistant/climate/thermo1_thermostat/config" in transport.topics()

    @pytest.mark.asyncio
    async def test_failing_hub_does_not_stop_devices(self, transport, hub, bridge_config):
        """Test a hub document failure still publishes the devices."""

        async def flaky_publish(topic, payload, retain=False, qos=None):
            if "HUB1" in topic:
                raise ConnectionError("broker went away")
            transport.published.append((topic, payload, retain))

        transport.publish = flaky_publish
        publisher = DiscoveryPublisher(transport, bridge_config)

        count = await publisher.publish_all(hub)

        assert count == 6
        assert not any("HUB1" in topic for topic in transport.topics())
        assert "homeassistant/sensor/abc123_temperature/config" in transport.topics()

    @pytest.mark.asyncio
    async def test_remove_all(self, transport, hub, bridge_config):
        """Test removal publishes empty retained payloads."""
        publisher = DiscoveryPublisher(transport, bridge_config)
        await publisher.remove_all(hub)

        assert len(transport.published) == 8
        assert all(payload == "" and retain for _, payload, retain in transport.published)
