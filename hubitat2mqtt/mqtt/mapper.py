"""Map hub device states to Home Assistant discovery attributes.

Each known state name has an attribute builder in `STATE_MAPPINGS`. Any
other state becomes a plain sensor that expires after `EXPIRE_CYCLES`
missed publish periods.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

from . import topics


class Component(str, Enum):
    """Home Assistant MQTT component types."""
    SENSOR = "sensor"
    BINARY_SENSOR = "binary_sensor"
    SWITCH = "switch"
    LIGHT = "light"
    COVER = "cover"
    CLIMATE = "climate"
    ALARM_CONTROL_PANEL = "alarm_control_panel"

    def __str__(self) -> str:
        return self.value


# Components that accept commands on hubitat/cmnd/{dni}/{state}
COMMANDABLE = frozenset({Component.SWITCH, Component.LIGHT, Component.COVER})

# Number of publish periods a sensor value stays valid
EXPIRE_CYCLES = 8

THERMOSTAT_CAPABILITY = "Thermostat"
THERMOSTAT_FAN_MODES = ["auto", "circulate", "on"]
THERMOSTAT_MODES = ["auto", "off", "heat", "emergency heat", "cool"]


@dataclass(frozen=True)
class MappingContext:
    """Settings that influence discovery attributes."""

    tele_period: int = 15
    temperature_scale: str = "F"

    @property
    def expire_after(self) -> int:
        """Sensor expiry in seconds."""
        return self.tele_period * 60 * EXPIRE_CYCLES


Attributes = dict[str, Any]
AttributeBuilder = Callable[[str, MappingContext], tuple[Component, Attributes]]


def _binary_sensor(device_class: str, payload_on: str, payload_off: str) -> AttributeBuilder:
    def build(display_name: str, ctx: MappingContext) -> tuple[Component, Attributes]:
        return Component.BINARY_SENSOR, {
            "expire_after": ctx.expire_after,
            "device_class": device_class,
            "payload_on": payload_on,
            "payload_off": payload_off,
        }
    return build


def _measurement(device_class: str, unit: str) -> AttributeBuilder:
    def build(display_name: str, ctx: MappingContext) -> tuple[Component, Attributes]:
        return Component.SENSOR, {
            "expire_after": ctx.expire_after,
            "device_class": device_class,
            "unit_of_measurement": unit,
        }
    return build


def _icon_sensor(icon: str) -> AttributeBuilder:
    def build(display_name: str, ctx: MappingContext) -> tuple[Component, Attributes]:
        return Component.SENSOR, {
            "expire_after": ctx.expire_after,
            "icon": icon,
        }
    return build


def _cover(device_class: str) -> AttributeBuilder:
    def build(display_name: str, ctx: MappingContext) -> tuple[Component, Attributes]:
        return Component.COVER, {
            "device_class": device_class,
            "payload_close": "close",
            "payload_open": "open",
            "state_closed": "closed",
            "state_open": "open",
        }
    return build


def _contact(display_name: str, ctx: MappingContext) -> tuple[Component, Attributes]:
    name = display_name.lower()
    if "garage door" in name or "overhead" in name:
        device_class = "garage_door"
    elif "door" in name:
        device_class = "door"
    else:
        device_class = "window"
    return Component.BINARY_SENSOR, {
        "expire_after": ctx.expire_after,
        "device_class": device_class,
        "payload_on": "open",
        "payload_off": "closed",
    }


def _switch(display_name: str, ctx: MappingContext) -> tuple[Component, Attributes]:
    name = display_name.lower()
    component = Component.LIGHT if ("light" in name or "lamp" in name) else Component.SWITCH
    return component, {
        "payload_on": "on",
        "payload_off": "off",
    }


def _temperature(display_name: str, ctx: MappingContext) -> tuple[Component, Attributes]:
    return Component.SENSOR, {
        "expire_after": ctx.expire_after,
        "device_class": "temperature",
        "unit_of_measurement": ctx.temperature_scale,
    }


STATE_MAPPINGS: dict[str, AttributeBuilder] = {
    "acceleration": _binary_sensor("moving", "active", "inactive"),
    "battery": _measurement("battery", "%"),
    "carbonMonoxide": _binary_sensor("gas", "detected", "clear"),
    "contact": _contact,
    "door": _cover("door"),
    "humidity": _measurement("humidity", "%"),
    "illuminance": _measurement("illuminance", "lx"),
    "motion": _binary_sensor("motion", "active", "inactive"),
    "mute": _icon_sensor("mdi:volume-off"),
    "power": _measurement("power", "W"),
    "presence": _binary_sensor("occupancy", "present", "not present"),
    "pressure": _measurement("pressure", "mbar"),
    "smoke": _binary_sensor("smoke", "detected", "clear"),
    "switch": _switch,
    "temperature": _temperature,
    "threeAxis": _icon_sensor("mdi:axis-arrow"),
    "voltage": _measurement("voltage", "V"),
    "volume": _icon_sensor("mdi:volume-medium"),
    "water": _binary_sensor("moisture", "wet", "dry"),
    "windowShade": _cover("shade"),
}


def map_state(
    display_name: str,
    state_name: str,
    context: MappingContext,
) -> tuple[Component, Attributes]:
    """Map a device state to a component and its discovery attributes.

    Args:
        display_name: Device display name (used for device class hints)
        state_name: Hub state/attribute name (e.g. 'contact')
        context: Publish period and temperature unit

    Returns:
        Tuple of (component, attributes). Topics, names and the identity
        block are added by the discovery publisher.
    """
    builder = STATE_MAPPINGS.get(state_name)
    if builder is None:
        return Component.SENSOR, {"expire_after": context.expire_after}
    return builder(display_name, context)


def climate_attributes(dni: str, context: MappingContext) -> Attributes:
    """Build the climate attributes for a thermostat device."""
    fahrenheit = context.temperature_scale == "F"
    return {
        "current_temperature_topic": topics.telemetry_topic(dni, "temperature"),
        "fan_mode_command_topic": topics.command_topic(dni, "setThermostatFanMode"),
        "fan_mode_state_topic": topics.telemetry_topic(dni, "thermostatFanMode"),
        "fan_modes": list(THERMOSTAT_FAN_MODES),
        "mode_command_topic": topics.command_topic(dni, "setThermostatMode"),
        "mode_state_topic": topics.telemetry_topic(dni, "thermostatMode"),
        "modes": list(THERMOSTAT_MODES),
        "min_temp": "60" if fahrenheit else "15",
        "max_temp": "90" if fahrenheit else "32",
        "temperature_command_topic": topics.command_topic(dni, "setThermostatSetpoint"),
        "temperature_state_topic": topics.telemetry_topic(dni, "thermostatSetpoint"),
        "temperature_unit": context.temperature_scale,
        "temp_step": "1",
    }


_CAMEL_BOUNDARY = re.compile(
    r"(?<=[A-Z])(?=[A-Z][a-z])"
    r"|(?<=[^A-Z\s])(?=[A-Z])"
    r"|(?<=[A-Za-z])(?=[^A-Za-z\s])"
)


def humanize(name: str) -> str:
    """Split a camelCase name into words.

    'threeAxis' -> 'three Axis', 'carbonMonoxide' -> 'carbon Monoxide'.
    """
    return _CAMEL_BOUNDARY.sub(" ", name)


def capitalize_first(text: str) -> str:
    """Upper-case the first character, leaving the rest untouched."""
    return text[:1].upper() + text[1:]


def entity_name(display_name: str, state_name: str) -> str:
    """Build the Home Assistant entity name for a device state."""
    return f"{display_name} {capitalize_first(humanize(state_name))}"


HSM_STATES = {
    "armingAway": "arming",
    "armedAway": "armed_away",
    "armingHome": "arming",
    "armedHome": "armed_home",
    "armingNight": "arming",
    "armedNight": "armed_night",
    "disarmed": "disarmed",
    "allDisarmed": "disarmed",
    "intrusion": "triggered",
    "intrusion-home": "triggered",
    "intrusion-night": "triggered",
}


def translate_hsm_state(value: Optional[str]) -> Optional[str]:
    """Translate an HSM status/alert to an alarm_control_panel state.

    Returns:
        Home Assistant state, or None when the value has no equivalent
    """
    if value is None:
        return None
    return HSM_STATES.get(str(value))
