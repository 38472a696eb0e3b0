"""Configuration management with Pydantic validation.

Supports three configuration sources (in priority order):
1. YAML config file (for traditional deployments)
2. Environment variables (for Docker)
3. Default values

Configuration objects are frozen. Changing a setting means building a new
snapshot with `model_copy(update=...)` and handing it to `Bridge.updated()`.
"""

import os
from pathlib import Path
from typing import Any, Optional, Literal
from urllib.parse import urlsplit

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator


class MQTTConfig(BaseModel):
    """MQTT broker configuration."""

    model_config = {"frozen": True}

    host: str = Field(
        default="mqtt",
        min_length=1,
        description="MQTT broker hostname or IP (tcp://host:port also accepted)"
    )
    port: int = Field(
        default=1883,
        ge=1,
        le=65535,
        description="MQTT broker port"
    )
    username: Optional[str] = Field(
        default=None,
        description="MQTT username (optional)"
    )
    password: Optional[str] = Field(
        default=None,
        description="MQTT password (optional)"
    )
    client_id: str = Field(
        default="hubitat2mqtt",
        description="MQTT client identifier"
    )
    qos: int = Field(
        default=1,
        ge=0,
        le=2,
        description="MQTT QoS level"
    )

    @field_validator("username", "password", mode="before")
    @classmethod
    def empty_str_to_none(cls, v):
        """Convert empty strings to None."""
        if v == "":
            return None
        return v

    @model_validator(mode="before")
    @classmethod
    def split_broker_url(cls, data: Any) -> Any:
        """Accept 'tcp://host:port' style broker addresses in `host`."""
        if not isinstance(data, dict):
            return data
        host = data.get("host")
        if isinstance(host, str) and "://" in host:
            url = urlsplit(host)
            data = dict(data)
            data["host"] = url.hostname or ""
            if url.port and "port" not in data:
                data["port"] = url.port
        return data


class BridgeConfig(BaseModel):
    """Publishing behaviour of the bridge."""

    model_config = {"frozen": True}

    tele_period: int = Field(
        default=15,
        ge=0,
        description="Periodic state refresh interval in minutes (0 disables)"
    )
    max_idle_hours: int = Field(
        default=24,
        ge=0,
        description="Maximum hours since last activity to publish a device"
    )
    hsm_enabled: bool = Field(
        default=True,
        description="Expose Hubitat Safety Monitor as an alarm panel"
    )
    log_enable: bool = Field(
        default=True,
        description="Debug logging (automatically disabled after 30 minutes)"
    )


class HubConfig(BaseModel):
    """Hub adapter configuration."""

    model_config = {"frozen": True}

    adapter: Optional[str] = Field(
        default=None,
        description="Hub adapter factory as 'package.module:callable'"
    )
    options: dict[str, Any] = Field(
        default_factory=dict,
        description="Keyword arguments passed to the adapter factory"
    )

    @field_validator("adapter", mode="before")
    @classmethod
    def empty_str_to_none(cls, v):
        """Convert empty strings to None."""
        if v == "":
            return None
        return v


class LoggingConfig(BaseModel):
    """Logging configuration."""

    model_config = {"frozen": True}

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level"
    )
    file: Optional[Path] = Field(
        default=None,
        description="Log file path (optional)"
    )
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log message format"
    )


class AppConfig(BaseModel):
    """Complete application configuration."""

    model_config = {"frozen": True}

    mqtt: MQTTConfig = Field(
        default_factory=MQTTConfig,
        description="MQTT broker settings"
    )
    bridge: BridgeConfig = Field(
        default_factory=BridgeConfig,
        description="Publishing settings"
    )
    hub: HubConfig = Field(
        default_factory=HubConfig,
        description="Hub adapter settings"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig,
        description="Logging settings"
    )

    def with_bridge(self, **changes: Any) -> "AppConfig":
        """Return a new snapshot with updated bridge settings."""
        return self.model_copy(
            update={"bridge": self.bridge.model_copy(update=changes)}
        )


def _to_bool(value: str) -> bool:
    return value.lower() in ("true", "1", "yes", "on")


# Environment variable mapping
ENV_MAPPING = {
    # MQTT
    "MQTT_HOST": ("mqtt", "host"),
    "MQTT_PORT": ("mqtt", "port", int),
    "MQTT_USERNAME": ("mqtt", "username"),
    "MQTT_PASSWORD": ("mqtt", "password"),
    "MQTT_CLIENT_ID": ("mqtt", "client_id"),
    "MQTT_QOS": ("mqtt", "qos", int),

    # Bridge
    "TELE_PERIOD": ("bridge", "tele_period", int),
    "MAX_IDLE_HOURS": ("bridge", "max_idle_hours", int),
    "HSM_ENABLE": ("bridge", "hsm_enabled", _to_bool),
    "LOG_ENABLE": ("bridge", "log_enable", _to_bool),

    # Hub
    "HUB_ADAPTER": ("hub", "adapter"),

    # Logging
    "LOG_LEVEL": ("logging", "level"),
}


def _get_env_value(env_var: str, mapping: tuple):
    """Get environment variable value with optional type conversion."""
    value = os.environ.get(env_var)
    if value is None:
        return None

    # Apply type conversion if specified
    if len(mapping) > 2:
        converter = mapping[2]
        try:
            return converter(value)
        except (ValueError, TypeError):
            return value
    return value


def load_config_from_env() -> AppConfig:
    """Load configuration from environment variables.

    Returns:
        AppConfig with values from environment (or defaults)
    """
    config_dict = {
        "mqtt": {},
        "bridge": {},
        "hub": {},
        "logging": {},
    }

    for env_var, mapping in ENV_MAPPING.items():
        value = _get_env_value(env_var, mapping)
        if value is not None:
            section = mapping[0]
            key = mapping[1]
            config_dict[section][key] = value

    return AppConfig(**config_dict)


def load_config(config_path: str) -> AppConfig:
    """Load configuration from a YAML file.

    Args:
        config_path: Path to the YAML configuration file

    Returns:
        Validated AppConfig instance

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config validation fails
    """
    path = Path(config_path)

    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(path, "r") as f:
        raw_config = yaml.safe_load(f) or {}

    # Support environment variable substitution
    raw_config = _substitute_env_vars(raw_config)

    return AppConfig(**raw_config)


def get_config(config_path: Optional[str] = None) -> AppConfig:
    """Get configuration from config file or environment variables.

    Args:
        config_path: Optional path to YAML config file

    Returns:
        Validated AppConfig instance
    """
    if config_path:
        path = Path(config_path)
        if path.exists():
            return load_config(config_path)

    return load_config_from_env()


def _substitute_env_vars(config):
    """Recursively substitute environment variables in config values.

    Environment variables are referenced as ${VAR_NAME} or $VAR_NAME.
    """
    if isinstance(config, dict):
        return {k: _substitute_env_vars(v) for k, v in config.items()}
    elif isinstance(config, list):
        return [_substitute_env_vars(item) for item in config]
    elif isinstance(config, str):
        if config.startswith("${") and config.endswith("}"):
            var_name = config[2:-1]
            return os.environ.get(var_name, config)
        elif config.startswith("$") and not config.startswith("${"):
            var_name = config[1:]
            return os.environ.get(var_name, config)
        return config
    else:
        return config


def create_default_config() -> str:
    """Generate default configuration as YAML string."""
    config = AppConfig()
    return yaml.dump(
        config.model_dump(mode="json", exclude_none=True),
        default_flow_style=False,
        sort_keys=False,
    )


def print_env_help() -> str:
    """Generate help text for environment variables."""
    lines = [
        "Environment Variables:",
        "",
        "  MQTT:",
        "    MQTT_HOST             Broker hostname/IP or tcp://host:port (default: mqtt)",
        "    MQTT_PORT             Broker port (default: 1883)",
        "    MQTT_USERNAME         Username (optional)",
        "    MQTT_PASSWORD         Password (optional)",
        "    MQTT_CLIENT_ID        Client ID (default: hubitat2mqtt)",
        "    MQTT_QOS              QoS level 0-2 (default: 1)",
        "",
        "  Publishing:",
        "    TELE_PERIOD           State refresh interval in minutes, 0 disables (default: 15)",
        "    MAX_IDLE_HOURS        Skip devices idle longer than this (default: 24)",
        "    HSM_ENABLE            Publish Hubitat Safety Monitor (default: true)",
        "    LOG_ENABLE            Debug logging for 30 minutes (default: true)",
        "",
        "  Hub:",
        "    HUB_ADAPTER           Adapter factory, e.g. mypackage.maker:create_hub (required)",
        "",
        "  Logging:",
        "    LOG_LEVEL             DEBUG, INFO, WARNING, ERROR (default: INFO)",
    ]
    return "\n".join(lines)
