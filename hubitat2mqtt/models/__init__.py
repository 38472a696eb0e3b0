"""Data models for hub devices, events and commands."""

from .hub import (
    Device,
    HubFacet,
    DeviceEvent,
    LocationEvent,
)

from .commands import (
    CommandRequest,
    SetpointCommand,
    CommandResult,
)

__all__ = [
    # Hub models
    "Device",
    "HubFacet",
    "DeviceEvent",
    "LocationEvent",
    # Command models
    "CommandRequest",
    "SetpointCommand",
    "CommandResult",
]
