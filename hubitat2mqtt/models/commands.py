"""Command models for inbound MQTT requests.

These Pydantic models carry and validate incoming MQTT command payloads
before they are dispatched to the hub.
"""

from typing import Optional
from pydantic import BaseModel, Field, field_validator


class CommandRequest(BaseModel):
    """A command parsed from a `hubitat/cmnd/{dni}/{command}` topic."""

    dni: str = Field(
        ...,
        min_length=1,
        description="Target device network id (or hub hardware id)"
    )
    command: str = Field(
        ...,
        min_length=1,
        description="Command name"
    )
    payload: str = Field(
        default="",
        description="Raw payload string"
    )


class SetpointCommand(BaseModel):
    """Validate a thermostat setpoint payload."""

    value: float = Field(
        ...,
        allow_inf_nan=False,
        description="Target temperature in the hub's unit"
    )

    @field_validator('value', mode='before')
    @classmethod
    def parse_value(cls, v):
        """Parse string or numeric value."""
        if isinstance(v, str):
            return float(v.strip())
        return v


class CommandResult(BaseModel):
    """Result of routing a command."""

    success: bool = Field(
        ...,
        description="Whether an action was dispatched"
    )
    command: str = Field(
        ...,
        description="The command that was received"
    )
    message: Optional[str] = Field(
        default=None,
        description="Optional message or error details"
    )
    value: Optional[str] = Field(
        default=None,
        description="The payload that was received (if applicable)"
    )
