"""Target state resolution.

Merges the current thermostat status with the changes requested on the
command line and plans the commands needed to reach the target.
"""

from .api import build_set_mode_command, build_set_temperature_command
from .models import CommandOptions, DeviceStatus, TargetRequest, ThermostatCommand


def normalize_mode(mode: str | None) -> str | None:
    """Upper-case a requested mode, leaving ``None`` untouched."""
    return mode.upper() if mode else None


def resolve_target(status: DeviceStatus, options: CommandOptions) -> TargetRequest:
    """Resolve the target mode and temperature.

    Rules are applied in order, later ones overriding earlier ones:
    the mode defaults to the current mode, ``down`` targets one degree below
    the current setpoint, ``up`` one degree above, and an explicit
    temperature wins over both.

    Args:
        status: Current thermostat status.
        options: Requested changes.

    Returns:
        TargetRequest with the final mode and, if any change was requested,
        the target temperature in Fahrenheit.

    """
    mode = normalize_mode(options.mode) or str(status.mode)

    temperature: float | None = None
    if options.down:
        temperature = status.set_temp - 1
    if options.up:
        temperature = status.set_temp + 1
    if options.temperature is not None:
        temperature = options.temperature

    return TargetRequest(mode=mode, temperature=temperature)


def plan_commands(
    status: DeviceStatus, target: TargetRequest
) -> list[ThermostatCommand]:
    """Return the ordered commands that move ``status`` to ``target``.

    A mode change always precedes the setpoint change, and the setpoint
    command is named after the final mode.
    """
    mode = target.mode or str(status.mode)
    commands = []
    if mode != status.mode:
        commands.append(build_set_mode_command(mode))
    if target.temperature is not None:
        commands.append(build_set_temperature_command(mode, target.temperature))
    return commands
