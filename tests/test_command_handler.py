"""Tests for inbound command routing."""

import logging

import pytest

from hubitat2mqtt.config import BridgeConfig
from hubitat2mqtt.mqtt.command_handler import CommandRouter


class TestHubCommands:
    """Tests for commands addressed to the hub."""

    @pytest.mark.asyncio
    async def test_hsm_set_arm(self, hub, bridge_config):
        """Test arming raises exactly one location event."""
        router = CommandRouter(hub, bridge_config)

        result = await router.route("HUB1", "hsmSetArm", "armAway")

        assert result.success
        assert hub.location_events == [("hsmSetArm", "armAway")]
        assert hub.actions == []

    @pytest.mark.asyncio
    async def test_hsm_disabled(self, hub):
        """Test HSM commands are dropped when integration is off."""
        router = CommandRouter(hub, BridgeConfig(hsm_enabled=False))

        result = await router.route("HUB1", "hsmSetArm", "armAway")

        assert not result.success
        assert hub.location_events == []

    @pytest.mark.asyncio
    async def test_unknown_hub_command(self, hub, bridge_config, caplog):
        """Test unknown hub commands are logged and ignored."""
        router = CommandRouter(hub, bridge_config)

        with caplog.at_level(logging.ERROR):
            result = await router.route("HUB1", "reboot", "")

        assert not result.success
        assert hub.location_events == []
        assert "Unknown command reboot for hub" in caplog.text


class TestDeviceCommands:
    """Tests for commands addressed to devices."""

    @pytest.mark.asyncio
    async def test_unknown_device(self, hub, bridge_config, caplog):
        """Test an unknown dni dispatches nothing."""
        router = CommandRouter(hub, bridge_config)

        with caplog.at_level(logging.ERROR):
            result = await router.route("nope", "switch", "on")

        assert not result.success
        assert hub.actions == []
        assert "Unknown device id nope" in caplog.text

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload, action", [("on", "on"), ("off", "off"), ("junk", "off")])
    async def test_switch(self, hub, bridge_config, payload, action):
        """Test switch payloads map to on/off commands."""
        router = CommandRouter(hub, bridge_config)

        result = await router.route("light01", "switch", payload)

        assert result.success
        assert hub.actions == [("light01", action, ())]

    @pytest.mark.asyncio
    async def test_setpoint_in_heat_mode(self, hub, bridge_config):
        """Test setpoint becomes a heating setpoint while heating."""
        router = CommandRouter(hub, bridge_config)

        result = await router.route("thermo1", "setThermostatSetpoint", "72")

        assert result.success
        assert hub.actions == [("thermo1", "setHeatingSetpoint", (72.0,))]

    @pytest.mark.asyncio
    async def test_setpoint_in_cool_mode(self, hub, thermostat, bridge_config):
        """Test setpoint becomes a cooling setpoint while cooling."""
        thermostat.states["thermostatMode"] = "cool"
        router = CommandRouter(hub, bridge_config)

        await router.route("thermo1", "setThermostatSetpoint", "74.5")

        assert hub.actions == [("thermo1", "setCoolingSetpoint", (74.5,))]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("mode", ["fan", "auto", "off"])
    async def test_setpoint_in_other_mode(self, hub, thermostat, bridge_config, caplog, mode):
        """Test other modes dispatch nothing and log an error."""
        thermostat.states["thermostatMode"] = mode
        router = CommandRouter(hub, bridge_config)

        with caplog.at_level(logging.ERROR):
            result = await router.route("thermo1", "setThermostatSetpoint", "72")

        assert not result.success
        assert hub.actions == []
        assert "not set to cool or heat" in caplog.text

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", ["warm", "", "nan", "inf", "-inf"])
    async def test_setpoint_not_a_number(self, hub, bridge_config, caplog, payload):
        """Test non-numeric and non-finite setpoints are rejected."""
        router = CommandRouter(hub, bridge_config)

        with caplog.at_level(logging.ERROR):
            result = await router.route("thermo1", "setThermostatSetpoint", payload)

        assert not result.success
        assert result.message == "Invalid setpoint"
        assert hub.actions == []

    @pytest.mark.asyncio
    async def test_supported_generic_command(self, hub, bridge_config):
        """Test advertised commands are invoked with the payload."""
        router = CommandRouter(hub, bridge_config)

        result = await router.route("light01", "setLevel", "40")

        assert result.success
        assert hub.actions == [("light01", "setLevel", ("40",))]

    @pytest.mark.asyncio
    async def test_unsupported_command(self, hub, bridge_config, caplog):
        """Test commands the device lacks are logged as warnings."""
        router = CommandRouter(hub, bridge_config)

        with caplog.at_level(logging.WARNING):
            result = await router.route("abc123", "setLevel", "40")

        assert not result.success
        assert hub.actions == []
        assert "setLevel does not exist" in caplog.text

    @pytest.mark.asyncio
    async def test_invoke_failure_is_contained(self, hub, bridge_config, monkeypatch):
        """Test a failing hub call does not propagate."""

        async def broken_invoke(device, command, *args):
            raise RuntimeError("device offline")

        monkeypatch.setattr(hub, "invoke", broken_invoke)
        router = CommandRouter(hub, bridge_config)

        result = await router.route("light01", "switch", "on")

        assert not result.success
        assert "device offline" in result.message


class TestHandleMessage:
    """Tests for raw MQTT message handling."""

    @pytest.mark.asyncio
    async def test_routes_parsed_topic(self, hub, bridge_config):
        """Test a valid command topic reaches the device."""
        router = CommandRouter(hub, bridge_config)

        result = await router.handle_message("hubitat/cmnd/light01/switch", b"off")

        assert result.success
        assert hub.actions == [("light01", "off", ())]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("topic", ["hubitat/cmnd/light01", "hubitat/tele/light01/switch"])
    async def test_malformed_topic(self, hub, bridge_config, topic):
        """Test malformed topics are ignored."""
        router = CommandRouter(hub, bridge_config)

        assert await router.handle_message(topic, b"on") is None
        assert hub.actions == []

    @pytest.mark.asyncio
    async def test_invalid_utf8(self, hub, bridge_config):
        """Test undecodable payloads are dropped."""
        router = CommandRouter(hub, bridge_config)

        assert await router.handle_message("hubitat/cmnd/light01/switch", b"\xff") is None
        assert hub.actions == []
