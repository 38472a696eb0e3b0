"""Pydantic data models for the hub, its devices and their events."""

import math
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field


class Device(BaseModel):
    """A hub device as seen by the bridge.

    Devices are owned by the hub adapter; the bridge only reads them.
    """

    dni: str = Field(
        ...,
        min_length=1,
        description="Device network identifier"
    )
    display_name: str = Field(
        ...,
        description="User-facing device label"
    )
    manufacturer: str = Field(
        default="",
        description="Manufacturer data value"
    )
    model: str = Field(
        default="",
        description="Model data value"
    )
    zigbee_id: Optional[str] = Field(
        default=None,
        description="Secondary hardware identifier (Zigbee EUI)"
    )
    states: dict[str, Any] = Field(
        default_factory=dict,
        description="Current state name to value"
    )
    capabilities: set[str] = Field(
        default_factory=set,
        description="Capability tags (e.g. Thermostat, Switch)"
    )
    commands: set[str] = Field(
        default_factory=set,
        description="Names of commands the device supports"
    )
    last_activity: Optional[datetime] = Field(
        default=None,
        description="Timestamp of the last device activity"
    )

    def has_capability(self, name: str) -> bool:
        """Check for a capability tag, ignoring case."""
        wanted = name.lower()
        return any(cap.lower() == wanted for cap in self.capabilities)

    def current_value(self, name: str) -> Any:
        """Get the current value of a state, or None if not exposed."""
        return self.states.get(name)

    def idle_hours(self, now: Optional[datetime] = None) -> Optional[int]:
        """Hours since last activity, rounded half up.

        Returns:
            Whole hours, or None if the last activity is unknown
        """
        if self.last_activity is None:
            return None
        now = now or datetime.now(self.last_activity.tzinfo)
        hours = (now - self.last_activity).total_seconds() / 3600
        return int(math.floor(hours + 0.5))

    def device_info(self) -> dict[str, Any]:
        """Build the discovery identity block for this device."""
        identifiers = [self.dni]
        if self.zigbee_id:
            identifiers.append(self.zigbee_id)
        return {
            "identifiers": identifiers,
            "manufacturer": self.manufacturer,
            "name": self.display_name,
            "model": self.model,
        }


class HubFacet(BaseModel):
    """The hub itself, exposed as a pseudo-device."""

    hardware_id: str = Field(
        ...,
        min_length=1,
        description="Hub hardware id, used as its dni"
    )
    name: str = Field(
        default="Hubitat",
        description="Hub name"
    )
    zigbee_id: Optional[str] = None
    local_ip: Optional[str] = None
    firmware_version: Optional[str] = None
    mode: Optional[str] = Field(
        default=None,
        description="Current location mode (Day, Night, Away...)"
    )
    time_zone: Optional[str] = None
    zip_code: Optional[str] = None
    sunrise: Optional[str] = None
    sunset: Optional[str] = None
    hsm_status: Optional[str] = Field(
        default=None,
        description="Raw Hubitat Safety Monitor status"
    )
    latitude: Optional[str] = None
    longitude: Optional[str] = None
    temperature_scale: str = Field(
        default="F",
        pattern="^[FC]$",
        description="Hub temperature unit"
    )

    def device_info(self) -> dict[str, Any]:
        """Build the discovery identity block for the hub."""
        identifiers = [self.hardware_id]
        if self.zigbee_id:
            identifiers.append(self.zigbee_id)
        return {
            "identifiers": identifiers,
            "manufacturer": "Hubitat",
            "name": self.name,
            "model": "Elevation",
            "sw_version": self.firmware_version or "",
        }


class DeviceEvent(BaseModel):
    """A state change reported by a device."""

    dni: str
    name: str
    value: Any = None
    display_name: str = ""


class LocationEvent(BaseModel):
    """A location-level change (mode, HSM status or alert)."""

    name: str
    value: Any = None
    display_name: str = ""
