"""Hub device/event model interface."""

from .base import Hub, DeviceEventHandler, LocationEventHandler, load_hub

__all__ = ["Hub", "DeviceEventHandler", "LocationEventHandler", "load_hub"]
