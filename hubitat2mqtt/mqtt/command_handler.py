"""MQTT command handler for hub and device control.

Parses `hubitat/cmnd/{dni}/{command}` messages, resolves the target and
dispatches the action through the hub adapter. Every path ends in either
a dispatched action or a logged error; nothing is raised to the caller.
"""

import logging
from typing import Optional, Union

from pydantic import ValidationError

from ..config import BridgeConfig
from ..hub import Hub
from ..models import CommandResult, Device, SetpointCommand
from . import topics

logger = logging.getLogger(__name__)


class CommandRouter:
    """Route inbound commands to the hub or its devices."""

    # Commands accepted when addressed to the hub itself
    HUB_COMMANDS = {
        "hsmSetArm",
    }

    def __init__(self, hub: Hub, config: BridgeConfig):
        """Initialize the command router.

        Args:
            hub: Hub adapter used to resolve and control devices
            config: Bridge configuration
        """
        self.hub = hub
        self.config = config

    async def handle_message(self, topic: str, payload: Union[str, bytes]) -> Optional[CommandResult]:
        """Handle an incoming MQTT command message.

        Args:
            topic: MQTT topic (e.g., 'hubitat/cmnd/abc123/switch')
            payload: Raw payload

        Returns:
            CommandResult if the message was a command, None if ignored
        """
        try:
            request = topics.parse_command_topic(topic, payload)
        except UnicodeDecodeError:
            logger.error(f"Invalid UTF-8 payload on {topic}")
            return None

        if request is None:
            logger.debug(f"Ignoring non-command topic: {topic}")
            return None

        return await self.route(request.dni, request.command, request.payload)

    async def route(self, dni: str, command: str, payload: str) -> CommandResult:
        """Dispatch a command to the hub or a device.

        Args:
            dni: Target device network id or hub hardware id
            command: Command name
            payload: Raw payload string

        Returns:
            CommandResult describing what happened
        """
        try:
            if dni == self.hub.hardware_id:
                return await self._route_hub(command, payload)

            device = self.hub.find_device(dni)
            if device is None:
                logger.error(f"Unknown device id {dni} received")
                return self._failure(command, payload, f"Unknown device id {dni}")

            return await self._route_device(device, command, payload)

        except Exception as e:
            logger.error(f"Error executing {command} on {dni}: {e}")
            return self._failure(command, payload, f"Execution error: {e}")

    async def _route_hub(self, command: str, payload: str) -> CommandResult:
        if command not in self.HUB_COMMANDS:
            logger.error(f"Unknown command {command} for hub received")
            return self._failure(command, payload, f"Unknown hub command: {command}")

        if not self.config.hsm_enabled:
            logger.debug(f"HSM integration disabled, ignoring {command}")
            return self._failure(command, payload, "HSM integration is disabled")

        logger.info(f"Sending location event {command} of {payload}")
        await self.hub.send_location_event(command, payload)
        return self._success(command, payload)

    async def _route_device(self, device: Device, command: str, payload: str) -> CommandResult:
        if command == "switch":
            action = "on" if payload == "on" else "off"
            logger.info(f"Executing {device.display_name}: Switch {action}")
            await self.hub.invoke(device, action)
            return self._success(command, payload)

        if command == "setThermostatSetpoint":
            return await self._set_thermostat_setpoint(device, payload)

        if self.hub.supports_command(device, command):
            logger.info(f"Executing {device.display_name}: {command} to {payload}")
            await self.hub.invoke(device, command, payload)
            return self._success(command, payload)

        logger.warning(f"Executing {device.display_name}: {command} does not exist")
        return self._failure(command, payload, f"Unsupported command: {command}")

    async def _set_thermostat_setpoint(self, device: Device, payload: str) -> CommandResult:
        command = "setThermostatSetpoint"
        try:
            setpoint = SetpointCommand(value=payload)
        except ValidationError as e:
            logger.error(f"Invalid setpoint {payload!r} for {device.display_name}: {e}")
            return self._failure(command, payload, "Invalid setpoint")

        mode = device.current_value("thermostatMode")
        if mode == "cool":
            action = "setCoolingSetpoint"
        elif mode == "heat":
            action = "setHeatingSetpoint"
        else:
            logger.error(f"Thermostat not set to cool or heat (mode is {mode})")
            return self._failure(command, payload, f"Unsupported thermostat mode: {mode}")

        logger.info(f"Executing {action} to {setpoint.value} on {device.display_name}")
        await self.hub.invoke(device, action, setpoint.value)
        return self._success(command, payload)

    @staticmethod
    def _success(command: str, payload: str) -> CommandResult:
        return CommandResult(success=True, command=command, message="Command sent", value=payload)

    @staticmethod
    def _failure(command: str, payload: str, message: str) -> CommandResult:
        return CommandResult(success=False, command=command, message=message, value=payload)
