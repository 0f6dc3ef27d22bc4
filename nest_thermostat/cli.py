"""Command-line interface for the Nest thermostat controller."""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import json
import logging
import os
import sys
from collections.abc import Callable
from pathlib import Path

import httpx

from . import api
from .const import (
    COMMAND_SET_MODE,
    DEFAULT_MAX_RETRIES,
    DEFAULT_SECRETS_PATH,
    DEFAULT_TIMEOUT,
    ENV_MAX_RETRIES,
    ENV_SECRETS_PATH,
)
from .coordinator import CredentialManager, ThermostatController
from .models import (
    CommandOptions,
    Credentials,
    Device,
    DeviceStatus,
    TargetRequest,
    ThermostatCommand,
)
from .resolver import normalize_mode
from .store import CredentialStore, CredentialStoreError, missing_required

_LOGGER = logging.getLogger(__name__)

SETUP_LINKS = (
    "https://developers.google.com/nest/device-access/get-started",
    "https://developers.google.com/nest/device-access/authorize",
)
SETUP_FIELDS = (
    "client_id",
    "client_secret",
    "project_id",
    "access_token",
    "refresh_token",
    "authorization_code",
)


def _non_negative_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError as err:
        msg = f"invalid integer value: {value!r}"
        raise argparse.ArgumentTypeError(msg) from err
    if number < 0:
        msg = f"must not be negative: {number}"
        raise argparse.ArgumentTypeError(msg)
    return number


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="nest-thermostat",
        description="Control a Nest thermostat through the Device Access API.",
    )
    parser.add_argument("-t", "--temperature", type=float, help="set the temperature")
    parser.add_argument("-m", "--mode", help="set to heat or cool")
    parser.add_argument("-u", "--up", action="store_true", help="increment temp")
    parser.add_argument("-d", "--down", action="store_true", help="decrement temp")

    selector = parser.add_mutually_exclusive_group()
    selector.add_argument(
        "-l",
        "--list-devices",
        action="store_true",
        help="list info about nest devices",
    )
    selector.add_argument(
        "--list-structures",
        action="store_true",
        help="list the structures of the project",
    )
    selector.add_argument(
        "-s",
        "--setup",
        action="store_true",
        help="setup the CLI tool configurations and secrets",
    )

    parser.add_argument(
        "--secrets",
        type=Path,
        default=os.environ.get(ENV_SECRETS_PATH, str(DEFAULT_SECRETS_PATH)),
        help="path of the credentials file",
    )
    parser.add_argument(
        "--max-retries",
        type=_non_negative_int,
        default=os.environ.get(ENV_MAX_RETRIES, str(DEFAULT_MAX_RETRIES)),
        help="maximum credential refreshes per invocation",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_TIMEOUT,
        help="HTTP timeout in seconds",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="increase log verbosity",
    )
    return parser


def options_from_args(args: argparse.Namespace) -> CommandOptions:
    """Convert parsed arguments into CommandOptions."""
    return CommandOptions(
        temperature=args.temperature,
        mode=normalize_mode(args.mode),
        up=args.up,
        down=args.down,
    )


def _device_listing(devices: list[Device]) -> list[dict]:
    return [{**device.raw, "device-id": device.device_id} for device in devices]


def display_status(status: DeviceStatus) -> None:
    """Print a status read."""
    stats = json.dumps(dataclasses.asdict(status))
    print("Current Temperature Stats:", stats, flush=True)
    print()


def display_command(command: ThermostatCommand, target: TargetRequest) -> None:
    """Print one line for a command the API accepted."""
    if command.command == COMMAND_SET_MODE:
        print("Mode set to", command.params["mode"], flush=True)
    else:
        print(
            f"Temperature set to {target.temperature:g} and mode {target.mode}",
            flush=True,
        )


def prompt_credentials(prompt: Callable[[str], str] = input) -> Credentials:
    """Ask the user for every credential field except the device id."""
    print("You will need to complete these to have appropriate setup values")
    for link in SETUP_LINKS:
        print(link)
    print("You can edit the secrets file manually as well")
    print()

    values = {}
    for field in SETUP_FIELDS:
        values[field] = prompt(f"What is the {field}?\n").strip()
        print()
    return Credentials(**values)


def choose_device(
    devices: list[Device], prompt: Callable[[str], str] = input
) -> str:
    """Pick the device to control, asking only when there is a choice.

    Raises:
        NestApiClientError: If the project has no devices.

    """
    if not devices:
        error_msg = "No devices found for this project"
        raise api.NestApiClientError(error_msg)
    if len(devices) == 1:
        return devices[0].device_id

    prompt(
        "Great, we will now show you a list of devices, copy the device-id of "
        "the one you are trying to use, press enter to continue."
    )
    print(json.dumps(_device_listing(devices), indent=2))
    print()
    return prompt("What is the device_id?\n").strip()


async def async_fetch_devices(
    credentials: Credentials, timeout: float = DEFAULT_TIMEOUT
) -> list[Device]:
    """List devices with freshly entered credentials, without refreshing."""
    async with api.create_session_client(timeout) as session:
        return await api.async_get_devices(session, credentials)


def cmd_setup(
    store: CredentialStore,
    timeout: float = DEFAULT_TIMEOUT,
    prompt: Callable[[str], str] = input,
) -> None:
    """Run the interactive first-run wizard and save the result.

    Prompts are read outside the event loop so Ctrl-C interrupts them
    immediately. Only the device listing runs under ``asyncio.run``.
    """
    credentials = prompt_credentials(prompt)
    devices = asyncio.run(async_fetch_devices(credentials, timeout))
    device_id = choose_device(devices, prompt)

    store.save(dataclasses.replace(credentials, device_id=device_id))
    print(f"Saved credentials to {store.path}")


async def cmd_list_devices(controller: ThermostatController) -> None:
    """Print the project's devices as JSON."""
    devices = await controller.async_list_devices()
    print(json.dumps(_device_listing(devices), indent=2))


async def cmd_list_structures(controller: ThermostatController) -> None:
    """Print the project's structures as JSON."""
    structures = await controller.async_list_structures()
    print(json.dumps(structures, indent=2))


async def cmd_run(controller: ThermostatController, options: CommandOptions) -> None:
    """Reconcile the thermostat, printing each read and change as it happens."""
    await controller.async_run(
        options, on_status=display_status, on_command=display_command
    )


async def async_main(args: argparse.Namespace) -> None:
    """Dispatch to a non-interactive operation."""
    store = CredentialStore(args.secrets)

    async with api.create_session_client(args.timeout) as session:
        credentials = store.load()
        missing = missing_required(credentials)
        if missing:
            _LOGGER.warning("Credentials file is missing %s", ", ".join(missing))

        manager = CredentialManager(session, store, credentials)
        controller = ThermostatController(session, manager, args.max_retries)

        if args.list_devices:
            await cmd_list_devices(controller)
        elif args.list_structures:
            await cmd_list_structures(controller)
        else:
            await cmd_run(controller, options_from_args(args))


def configure_logging(verbosity: int) -> None:
    """Configure the root logger for the given ``-v`` count."""
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))


def main(argv: list[str] | None = None) -> int:
    """Entry point. Returns the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    try:
        if args.setup:
            cmd_setup(CredentialStore(args.secrets), args.timeout)
        else:
            asyncio.run(async_main(args))
    except KeyboardInterrupt:
        print(file=sys.stderr)
        return 130
    except (api.NestApiClientError, CredentialStoreError, httpx.RequestError) as err:
        _LOGGER.debug("Operation failed", exc_info=True)
        print(f"Error: {err}", file=sys.stderr)
        return 1
    return 0
