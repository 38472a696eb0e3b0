"""Interface to the hub's device and event model.

The bridge never talks to a hub directly. A concrete adapter (Maker API
client, local runtime binding, ...) subclasses `Hub` and is loaded from a
`module:callable` path given in the configuration.
"""

import importlib
import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Optional, Sequence

from ..models import Device, DeviceEvent, HubFacet, LocationEvent

logger = logging.getLogger(__name__)

# Type aliases for event callbacks
DeviceEventHandler = Callable[[DeviceEvent], Awaitable[None]]
LocationEventHandler = Callable[[LocationEvent], Awaitable[None]]


class Hub(ABC):
    """Abstract hub: device registry, location facet and command sink."""

    @abstractmethod
    def location(self) -> HubFacet:
        """Get a snapshot of the hub's location facet."""

    @abstractmethod
    def devices(self) -> Sequence[Optional[Device]]:
        """Get the devices selected for publishing.

        Entries may be None when a selected device has been removed.
        """

    @abstractmethod
    async def invoke(self, device: Device, command: str, *args: Any) -> None:
        """Invoke a named command on a device."""

    @abstractmethod
    async def send_location_event(self, name: str, value: Any) -> None:
        """Raise a location event (e.g. hsmSetArm)."""

    @abstractmethod
    def subscribe(
        self,
        device_handler: DeviceEventHandler,
        location_handler: LocationEventHandler,
    ) -> None:
        """Register callbacks for device and location events."""

    @abstractmethod
    def unsubscribe(self) -> None:
        """Drop all event callbacks registered by `subscribe`."""

    def supports_command(self, device: Device, command: str) -> bool:
        """Check whether a device advertises a command."""
        return command in device.commands

    def find_device(self, dni: str) -> Optional[Device]:
        """Resolve a device by exact network id."""
        for device in self.devices():
            if device is not None and device.dni == dni:
                return device
        return None

    @property
    def hardware_id(self) -> str:
        """Hub identity used as its dni."""
        return self.location().hardware_id


def load_hub(adapter: str, options: Optional[dict[str, Any]] = None) -> Hub:
    """Instantiate a hub adapter from a dotted path.

    Args:
        adapter: Path in the form 'package.module:factory'
        options: Keyword arguments passed to the factory

    Returns:
        Hub instance

    Raises:
        ValueError: If the path is malformed or the factory does not return a Hub
        ImportError: If the module cannot be imported
    """
    module_name, sep, attr = adapter.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"Hub adapter must look like 'module:factory', got {adapter!r}")

    module = importlib.import_module(module_name)
    try:
        factory = getattr(module, attr)
    except AttributeError:
        raise ValueError(f"Module {module_name} has no attribute {attr}") from None

    hub = factory(**(options or {}))
    if not isinstance(hub, Hub):
        raise ValueError(f"{adapter} returned {type(hub).__name__}, expected a Hub")

    logger.info(f"Loaded hub adapter {adapter}")
    return hub
