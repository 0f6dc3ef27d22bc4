"""Data models for the Nest thermostat CLI."""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class ThermostatMode(StrEnum):
    """Modes reported by the ThermostatMode trait."""

    HEAT = "HEAT"
    COOL = "COOL"
    HEATCOOL = "HEATCOOL"
    OFF = "OFF"


class ErrorKind(StrEnum):
    """Classification of a device API failure."""

    AUTH = "auth"
    OTHER = "other"


class RunState(StrEnum):
    """States of the refresh-and-restart state machine."""

    RUNNING = "running"
    REFRESHING_CREDENTIAL = "refreshing_credential"
    SUCCEEDED = "succeeded"
    FAILED_FATAL = "failed_fatal"


@dataclass(frozen=True)
class Credentials:
    """OAuth client configuration, tokens and the selected device."""

    client_id: str = ""
    client_secret: str = ""
    project_id: str = ""
    access_token: str = ""
    refresh_token: str = ""
    authorization_code: str = ""
    device_id: str = ""


@dataclass(frozen=True)
class Device:
    """A device returned by the listing endpoint.

    Attributes:
        resource_name: Full resource name, e.g. ``enterprises/p/devices/ABC``.
        device_id: Trailing path segment of ``resource_name``.
        raw: The device document as returned by the API.

    """

    resource_name: str
    device_id: str
    raw: dict[str, Any] = field(default_factory=dict, compare=False)


@dataclass(frozen=True, slots=True)
class DeviceStatus:
    """Snapshot of the thermostat state, temperatures in Fahrenheit."""

    temp: float
    set_temp: int
    mode: ThermostatMode
    humidity_percent: int


@dataclass(frozen=True)
class CommandOptions:
    """Changes requested on the command line."""

    temperature: float | None = None
    mode: str | None = None
    up: bool = False
    down: bool = False


@dataclass(frozen=True)
class TargetRequest:
    """Resolved target state. ``None`` means no change for that field."""

    mode: str | None = None
    temperature: float | None = None


@dataclass(frozen=True)
class ThermostatCommand:
    """A single executeCommand payload."""

    command: str
    params: dict[str, Any]


@dataclass
class RetryBudget:
    """Number of credential refreshes allowed for one process invocation."""

    ceiling: int
    used: int = 0

    @property
    def exhausted(self) -> bool:
        """Return True once no further refresh may be attempted."""
        return self.used >= self.ceiling

    def consume(self) -> None:
        """Record one refresh attempt."""
        self.used += 1


@dataclass
class RunResult:
    """Outcome of a successful reconciliation run."""

    state: RunState
    status: DeviceStatus
    target: TargetRequest
    commands: list[ThermostatCommand]
    refreshes: int
