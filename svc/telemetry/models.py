from __future__ import annotations
from typing import List
from pydantic import BaseModel, ConfigDict, Field, conint, field_validator, model_validator

from .sensors.interface import INPUT_TYPES

# poll() takes a C int of milliseconds
MAX_DELAY_SECONDS = 2_147_483
DelaySeconds = conint(gt=0, le=MAX_DELAY_SECONDS)


class ConfigError(ValueError):
    """The telemetry configuration is unusable; the daemon must not start."""


class TelemetryConfig(BaseModel):
    """
    Contents of the telemetry configuration file.

    The four sensor lists are parallel: index i of each list describes sensor i.
    """
    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    module: str = Field(default="beehive", description="Site/device name shared by every sensor")
    serials: List[str] = Field(
        default_factory=lambda: ["28-012033dcea3b"],
        description="Bus address of each sensor (e.g. a one-wire serial id)",
    )
    sensors: List[str] = Field(
        default_factory=lambda: ["temperature"],
        description="Measurement type of each sensor (temperature, humidity, ...)",
    )
    names: List[str] = Field(
        default_factory=lambda: ["insideTemp"],
        description="Operator-facing label of each sensor",
    )
    delays: DelaySeconds = Field(default=60, description="Shared poll timeout in seconds")
    input_types: List[str] = Field(
        default_factory=lambda: ["w1"],
        alias="inputTypes",
        description="Bus family of each sensor: 'w1' or 'i2c'",
    )
    mainlog: str = Field(default="info", description="Level for the main log category")
    networklog: str = Field(default="info", description="Level for the network log category")
    sensorslog: str = Field(default="info", description="Level for the sensors log category")

    @field_validator("input_types")
    @classmethod
    def _supported_input_types(cls, value: List[str]) -> List[str]:
        for input_type in value:
            if input_type not in INPUT_TYPES:
                raise ValueError(f"{input_type} is not supported")
        return value

    @model_validator(mode="after")
    def _parallel_lists(self) -> "TelemetryConfig":
        lengths = {len(self.names), len(self.sensors), len(self.serials), len(self.input_types)}
        if len(lengths) != 1:
            raise ValueError("Configuration lists are not the same size!")
        if not self.names:
            raise ValueError("No sensors configured")
        if len(set(self.names)) != len(self.names):
            raise ValueError("Sensor names must be unique")
        return self

    @property
    def poll_interval_ms(self) -> int:
        return self.delays * 1000
