"""MQTT topic scheme for discovery, telemetry and commands.

Topics are derived only from (dni, name, component):

    homeassistant/{component}/{dni}_{name}/config   discovery
    hubitat/tele/{dni}/{name}                       telemetry (outbound)
    hubitat/cmnd/{dni}/{name}                       commands (inbound)
"""

from typing import Optional, Union

from ..models import CommandRequest

DISCOVERY_PREFIX = "homeassistant"
BRIDGE_PREFIX = "hubitat"

TELEMETRY = "tele"
COMMAND = "cmnd"

LWT_TOPIC = f"{BRIDGE_PREFIX}/LWT"
STATUS_TOPIC = f"{DISCOVERY_PREFIX}/status"
COMMAND_SUBSCRIPTION = f"{BRIDGE_PREFIX}/{COMMAND}/#"

# Availability payloads published on LWT_TOPIC by the transport
PAYLOAD_AVAILABLE = "Online"
PAYLOAD_NOT_AVAILABLE = "Offline"


def discovery_topic(component: str, dni: str, name: str) -> str:
    """Build a discovery config topic.

    Args:
        component: HA component type (sensor, binary_sensor, ...)
        dni: Device network id or hub hardware id
        name: State name, hub facet name or fixed suffix (thermostat, hsm)
    """
    return f"{DISCOVERY_PREFIX}/{str(component)}/{dni}_{name}/config"


def telemetry_topic(dni: str, name: str) -> str:
    """Build a telemetry (state) topic."""
    return f"{BRIDGE_PREFIX}/{TELEMETRY}/{dni}/{name}"


def command_topic(dni: str, name: str) -> str:
    """Build a command topic."""
    return f"{BRIDGE_PREFIX}/{COMMAND}/{dni}/{name}"


def parse_command_topic(topic: str, payload: Union[str, bytes] = "") -> Optional[CommandRequest]:
    """Parse an inbound command topic.

    Args:
        topic: Full topic (e.g. 'hubitat/cmnd/abc123/switch')
        payload: Message payload

    Returns:
        CommandRequest, or None if the topic is not a well-formed command topic
    """
    parts = [part for part in topic.split("/") if part]
    if COMMAND not in parts:
        return None

    idx = parts.index(COMMAND)
    rest = parts[idx + 1:]
    if len(rest) != 2:
        return None

    if isinstance(payload, bytes):
        payload = payload.decode("utf-8")

    return CommandRequest(dni=rest[0], command=rest[1], payload=payload)


def is_online_status(topic: str, payload: Union[str, bytes]) -> bool:
    """Check for Home Assistant's birth message."""
    if topic != STATUS_TOPIC:
        return False
    if isinstance(payload, bytes):
        payload = payload.decode("utf-8", errors="replace")
    return payload.strip().lower() == "online"
