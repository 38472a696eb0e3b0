"""Hubitat to Home Assistant MQTT bridge."""

__version__ = "0.1.0"
