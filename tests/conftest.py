"""Shared fixtures: an in-memory hub and a recording MQTT transport."""

from datetime import datetime, timedelta
from typing import Any, Optional

import pytest

from hubitat2mqtt.config import AppConfig, BridgeConfig
from hubitat2mqtt.hub import Hub
from hubitat2mqtt.models import Device, HubFacet


class FakeTransport:
    """Records everything the bridge publishes and subscribes to."""

    def __init__(self, connected: bool = True):
        self.connected = connected
        self.published: list[tuple[str, Any, bool]] = []
        self.subscriptions: list[str] = []

    async def publish(self, topic: str, payload: Any, retain: bool = False, qos: Optional[int] = None) -> None:
        self.published.append((topic, payload, retain))

    async def subscribe(self, topic: str) -> None:
        self.subscriptions.append(topic)

    def topics(self) -> list[str]:
        return [topic for topic, _, _ in self.published]

    def last(self, topic: str) -> Any:
        for published_topic, payload, _ in reversed(self.published):
            if published_topic == topic:
                return payload
        raise KeyError(topic)


class FakeHub(Hub):
    """Hub adapter backed by plain lists."""

    def __init__(self, facet: HubFacet, devices: list[Optional[Device]]):
        self.facet = facet
        self._devices = devices
        self.actions: list[tuple[str, str, tuple]] = []
        self.location_events: list[tuple[str, Any]] = []
        self.handlers = None
        self.subscribe_calls = 0
        self.unsubscribe_calls = 0

    def location(self) -> HubFacet:
        return self.facet

    def devices(self) -> list[Optional[Device]]:
        return self._devices

    async def invoke(self, device: Device, command: str, *args: Any) -> None:
        self.actions.append((device.dni, command, args))

    async def send_location_event(self, name: str, value: Any) -> None:
        self.location_events.append((name, value))

    def subscribe(self, device_handler, location_handler) -> None:
        self.handlers = (device_handler, location_handler)
        self.subscribe_calls += 1

    def unsubscribe(self) -> None:
        self.handlers = None
        self.unsubscribe_calls += 1


@pytest.fixture
def facet() -> HubFacet:
    return HubFacet(
        hardware_id="HUB1",
        name="Home",
        zigbee_id="ZB0001",
        local_ip="192.168.1.10",
        firmware_version="2.3.9.176",
        mode="Day",
        time_zone="America/New_York",
        zip_code="10001",
        sunrise="2026-10-18T07:12:00-0400",
        sunset="2026-10-18T18:20:00-0400",
        hsm_status="armedAway",
        latitude="40.7",
        longitude="-74.0",
        temperature_scale="F",
    )


@pytest.fixture
def door_sensor() -> Device:
    return Device(
        dni="abc123",
        display_name="Front Door",
        manufacturer="SmartThings",
        model="multiv4",
        zigbee_id="ZB1234",
        states={"contact": "closed", "battery": 87, "temperature": 71.5},
        capabilities={"ContactSensor", "Battery", "TemperatureMeasurement"},
        last_activity=datetime.now() - timedelta(hours=1),
    )


@pytest.fixture
def kitchen_light() -> Device:
    return Device(
        dni="light01",
        display_name="Kitchen Light",
        states={"switch": "on", "level": 80},
        capabilities={"Switch", "SwitchLevel"},
        commands={"on", "off", "setLevel"},
        last_activity=datetime.now(),
    )


@pytest.fixture
def thermostat() -> Device:
    return Device(
        dni="thermo1",
        display_name="Hallway Thermostat",
        states={
            "temperature": 70,
            "thermostatMode": "heat",
            "thermostatFanMode": "auto",
            "thermostatSetpoint": 68,
        },
        capabilities={"Thermostat"},
        commands={"setThermostatMode", "setThermostatFanMode", "setHeatingSetpoint", "setCoolingSetpoint"},
        last_activity=datetime.now(),
    )


@pytest.fixture
def hub(facet, door_sensor, kitchen_light, thermostat) -> FakeHub:
    return FakeHub(facet, [door_sensor, kitchen_light, None, thermostat])


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def bridge_config() -> BridgeConfig:
    return BridgeConfig(tele_period=15, max_idle_hours=24, hsm_enabled=True, log_enable=False)


@pytest.fixture
def app_config(bridge_config) -> AppConfig:
    return AppConfig(bridge=bridge_config)
