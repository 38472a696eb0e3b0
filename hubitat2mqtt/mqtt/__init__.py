"""MQTT client and Home Assistant discovery integration."""

from .client import MQTTClient
from .publisher import StatePublisher
from .discovery import DiscoveryPublisher
from .command_handler import CommandRouter
from .mapper import Component, MappingContext, map_state, humanize

__all__ = [
    "MQTTClient",
    "StatePublisher",
    "DiscoveryPublisher",
    "CommandRouter",
    "Component",
    "MappingContext",
    "map_state",
    "humanize",
]
