"""API client for the Smart Device Management (SDM) thermostat API.

This module provides functions to interact with the device-management API,
including device listing, trait reads, command execution and access token
refresh.
"""

import logging
from typing import Any

import httpx
from httpx_retries import Retry, RetryTransport

from .const import (
    AUTH_FAILURE_SIGNATURE,
    COMMAND_SET_MODE,
    COMMAND_SET_SETPOINT_PREFIX,
    DEFAULT_TIMEOUT,
    DEVICE_URL,
    DEVICES_URL,
    EXECUTE_COMMAND_URL,
    KEY_AMBIENT_HUMIDITY,
    KEY_AMBIENT_TEMPERATURE,
    KEY_MODE,
    SETPOINT_KEY_SUFFIX,
    STRUCTURES_URL,
    TOKEN_URL,
    TRAIT_HUMIDITY,
    TRAIT_MODE,
    TRAIT_SETPOINT,
    TRAIT_TEMPERATURE,
)
from .models import (
    Credentials,
    Device,
    DeviceStatus,
    ErrorKind,
    ThermostatCommand,
    ThermostatMode,
)
from .units import (
    celsius_to_fahrenheit,
    fahrenheit_to_celsius,
    round_display,
    truncate_setpoint,
)

_LOGGER = logging.getLogger(__name__)

# HTTP status codes
HTTP_BAD_REQUEST = 400


class NestApiClientError(Exception):
    """Base exception for Nest API client errors."""


class NestApiError(NestApiClientError):
    """Exception raised for a non-success response from the device API."""

    def __init__(self, status: int, body: Any) -> None:
        """Initialize the error with the HTTP status and decoded body."""
        self.status = status
        self.body = body
        super().__init__(f"Request failed: {status}: {error_message(body)}")


class NestApiAuthError(NestApiError):
    """Exception raised when the access token was rejected."""


class TokenRefreshError(NestApiClientError):
    """Exception raised when the token endpoint rejects a refresh."""


class MalformedResourceNameError(NestApiClientError):
    """Exception raised for a device resource name without a path separator."""


class MissingTraitError(NestApiClientError):
    """Exception raised when a required device trait is absent."""


def create_headers(access_token: str | None = None) -> dict[str, str]:
    """Create HTTP headers for device API requests.

    Args:
        access_token: Optional bearer token to include in headers.

    Returns:
        Dictionary containing HTTP headers for API requests.

    """
    headers = {
        "Content-Type": "application/json",
        "Accept": "application/json",
    }
    if access_token is not None:
        headers["Authorization"] = f"Bearer {access_token}"
    return headers


def is_http_error(status: int) -> bool:
    """Check if HTTP status code indicates an error.

    Args:
        status: HTTP status code to check.

    Returns:
        True if status code is 400 or higher, False otherwise.

    """
    return status >= HTTP_BAD_REQUEST


def error_message(body: Any) -> str:
    """Extract a human-readable message from an error document.

    Handles both the Google API shape (``{"error": {"message": ...}}``) and
    the OAuth shape (``{"error": "...", "error_description": "..."}``).
    """
    if not isinstance(body, dict):
        return str(body) if body else "Unknown API error"

    error = body.get("error")
    if isinstance(error, dict):
        return str(error.get("message", "Unknown API error"))
    if isinstance(error, str):
        description = body.get("error_description")
        return f"{error}: {description}" if description else error
    return "Unknown API error"


def classify_error(error: NestApiError) -> ErrorKind:
    """Classify a device API failure.

    Args:
        error: The failure to classify.

    Returns:
        ErrorKind.AUTH if the provider reported invalid credentials,
        ErrorKind.OTHER otherwise.

    """
    body = error.body
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        message = body["error"].get("message", "")
        if isinstance(message, str) and AUTH_FAILURE_SIGNATURE in message:
            return ErrorKind.AUTH
    return ErrorKind.OTHER


def _parse_body(response: httpx.Response) -> Any:
    if not response.content:
        return {}
    try:
        return response.json()
    except ValueError:
        return response.text


def validate_response(response: httpx.Response) -> dict[str, Any]:
    """Validate HTTP response and return parsed JSON data.

    Args:
        response: HTTP response object to validate.

    Returns:
        Parsed JSON data from response.

    Raises:
        NestApiAuthError: If the access token was rejected.
        NestApiError: If any other non-success status is returned, or a
            success body is not a JSON object.

    """
    body = _parse_body(response)
    if not is_http_error(response.status_code):
        if not isinstance(body, dict):
            raise NestApiError(response.status_code, body)
        return body

    error = NestApiError(response.status_code, body)
    if classify_error(error) is ErrorKind.AUTH:
        raise NestApiAuthError(response.status_code, body)
    raise error


def extract_device_id(resource_name: str) -> str:
    """Return the substring after the final ``/`` of a resource name.

    Raises:
        MalformedResourceNameError: If the name contains no ``/``.

    """
    if "/" not in resource_name:
        error_msg = f"Malformed device resource name: {resource_name!r}"
        raise MalformedResourceNameError(error_msg)
    return resource_name.rsplit("/", 1)[1]


def extract_devices(data: dict[str, Any]) -> list[Device]:
    """Extract device list from API response, preserving API order.

    Args:
        data: API response data dictionary.

    Returns:
        List of Device objects.

    """
    return [
        Device(
            resource_name=d["name"],
            device_id=extract_device_id(d["name"]),
            raw=d,
        )
        for d in data.get("devices", [])
    ]


def _get_trait(traits: dict[str, Any], trait: str, key: str) -> Any:
    try:
        return traits[trait][key]
    except (KeyError, TypeError) as err:
        error_msg = f"Device is missing trait {trait}.{key}"
        raise MissingTraitError(error_msg) from err


def extract_thermostat_status(data: dict[str, Any]) -> DeviceStatus:
    """Project a device document into a DeviceStatus.

    The setpoint is looked up under ``<mode>Celsius`` for the active mode.

    Args:
        data: Device document returned by the get-device endpoint.

    Returns:
        DeviceStatus with temperatures converted to Fahrenheit.

    Raises:
        MissingTraitError: If the mode is unknown or a required trait is absent.

    """
    traits = data.get("traits", {})
    raw_mode = _get_trait(traits, TRAIT_MODE, KEY_MODE)
    try:
        mode = ThermostatMode(raw_mode)
    except ValueError as err:
        error_msg = f"Unknown thermostat mode: {raw_mode!r}"
        raise MissingTraitError(error_msg) from err

    setpoint_key = mode.lower() + SETPOINT_KEY_SUFFIX
    set_celsius = _get_trait(traits, TRAIT_SETPOINT, setpoint_key)
    ambient_celsius = _get_trait(traits, TRAIT_TEMPERATURE, KEY_AMBIENT_TEMPERATURE)
    humidity = _get_trait(traits, TRAIT_HUMIDITY, KEY_AMBIENT_HUMIDITY)

    return DeviceStatus(
        temp=round_display(celsius_to_fahrenheit(ambient_celsius)),
        set_temp=truncate_setpoint(celsius_to_fahrenheit(set_celsius)),
        mode=mode,
        humidity_percent=humidity,
    )


def build_set_mode_command(mode: str) -> ThermostatCommand:
    """Build the command that switches the thermostat mode."""
    return ThermostatCommand(command=COMMAND_SET_MODE, params={"mode": mode})


def build_set_temperature_command(mode: str, fahrenheit: float) -> ThermostatCommand:
    """Build the mode-specific setpoint command.

    Mode ``COOL`` yields command suffix ``SetCool`` and parameter key
    ``coolCelsius``.

    Args:
        mode: Mode the setpoint applies to.
        fahrenheit: Target temperature in Fahrenheit.

    Returns:
        ThermostatCommand carrying the setpoint in Celsius.

    """
    command = COMMAND_SET_SETPOINT_PREFIX + mode[:1].upper() + mode[1:].lower()
    params = {mode.lower() + SETPOINT_KEY_SUFFIX: fahrenheit_to_celsius(fahrenheit)}
    return ThermostatCommand(command=command, params=params)


def create_session_client(timeout: float = DEFAULT_TIMEOUT) -> httpx.AsyncClient:
    """Create HTTP client with retry logic for the device API.

    Args:
        timeout: Request timeout in seconds.

    Returns:
        Configured httpx AsyncClient with retry transport.

    """
    retry = Retry(total=3, backoff_factor=0.5)
    return httpx.AsyncClient(
        transport=RetryTransport(retry=retry),
        timeout=timeout,
    )


async def async_request(
    session: httpx.AsyncClient,
    credentials: Credentials,
    method: str,
    url: str,
    payload: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Send an authenticated request to the device API.

    Args:
        session: HTTP client session.
        credentials: Credential set supplying the access token.
        method: HTTP method.
        url: Absolute request URL.
        payload: Optional JSON body.

    Returns:
        Parsed JSON response.

    Raises:
        NestApiAuthError: If the access token was rejected.
        NestApiError: If API request fails.

    """
    headers = create_headers(credentials.access_token)
    _LOGGER.debug("%s %s", method, url)
    response = await session.request(method, url, headers=headers, json=payload)
    return validate_response(response)


async def async_get_devices(
    session: httpx.AsyncClient,
    credentials: Credentials,
) -> list[Device]:
    """Fetch the devices of the configured project.

    Raises:
        NestApiAuthError: If authentication fails.
        NestApiError: If API request fails.
        MalformedResourceNameError: If a device name cannot be parsed.

    """
    url = DEVICES_URL.format(project_id=credentials.project_id)

    _LOGGER.debug("Fetching devices for project %s", credentials.project_id)
    data = await async_request(session, credentials, "GET", url)
    devices = extract_devices(data)
    _LOGGER.debug("Retrieved %d devices", len(devices))
    return devices


async def async_get_structures(
    session: httpx.AsyncClient,
    credentials: Credentials,
) -> list[dict[str, Any]]:
    """Fetch the structures (homes) of the configured project."""
    url = STRUCTURES_URL.format(project_id=credentials.project_id)
    data = await async_request(session, credentials, "GET", url)
    return data.get("structures", [])


async def async_get_device(
    session: httpx.AsyncClient,
    credentials: Credentials,
) -> dict[str, Any]:
    """Fetch the raw document of the configured device."""
    url = DEVICE_URL.format(
        project_id=credentials.project_id,
        device_id=credentials.device_id,
    )
    return await async_request(session, credentials, "GET", url)


async def async_get_thermostat_status(
    session: httpx.AsyncClient,
    credentials: Credentials,
) -> DeviceStatus:
    """Read the current thermostat state. Never cached.

    Raises:
        NestApiAuthError: If authentication fails.
        NestApiError: If API request fails.
        MissingTraitError: If a required trait is absent.

    """
    data = await async_get_device(session, credentials)
    status = extract_thermostat_status(data)
    _LOGGER.debug("Thermostat status for %s: %s", credentials.device_id, status)
    return status


async def async_execute_command(
    session: httpx.AsyncClient,
    credentials: Credentials,
    command: ThermostatCommand,
) -> dict[str, Any]:
    """Send a command to the configured device.

    Args:
        session: HTTP client session.
        credentials: Credential set supplying project, device and token.
        command: Command to execute.

    Returns:
        Parsed JSON response.

    Raises:
        NestApiAuthError: If authentication fails.
        NestApiError: If API request fails.

    """
    url = EXECUTE_COMMAND_URL.format(
        project_id=credentials.project_id,
        device_id=credentials.device_id,
    )
    payload = {"command": command.command, "params": command.params}

    _LOGGER.debug("Sending command to device %s: %s", credentials.device_id, payload)
    return await async_request(session, credentials, "POST", url, payload)


async def async_set_mode(
    session: httpx.AsyncClient,
    credentials: Credentials,
    mode: str,
) -> dict[str, Any]:
    """Switch the thermostat mode."""
    return await async_execute_command(
        session, credentials, build_set_mode_command(mode)
    )


async def async_set_temperature(
    session: httpx.AsyncClient,
    credentials: Credentials,
    mode: str,
    fahrenheit: float,
) -> dict[str, Any]:
    """Set the setpoint of the given mode, in Fahrenheit."""
    return await async_execute_command(
        session, credentials, build_set_temperature_command(mode, fahrenheit)
    )


async def async_refresh_access_token(
    session: httpx.AsyncClient,
    credentials: Credentials,
) -> str:
    """Exchange the refresh token for a new access token.

    Args:
        session: HTTP client session.
        credentials: Credential set supplying client id, secret and refresh token.

    Returns:
        The new access token.

    Raises:
        TokenRefreshError: If the token endpoint rejects the refresh.

    """
    params = {
        "client_id": credentials.client_id,
        "client_secret": credentials.client_secret,
        "refresh_token": credentials.refresh_token,
        "grant_type": "refresh_token",
    }

    _LOGGER.debug("Refreshing access token")
    response = await session.post(TOKEN_URL, params=params)
    body = _parse_body(response)
    if is_http_error(response.status_code):
        error_msg = (
            f"Token refresh failed: {response.status_code}: {error_message(body)}"
        )
        raise TokenRefreshError(error_msg)

    access_token = body.get("access_token") if isinstance(body, dict) else None
    if not access_token:
        error_msg = "Token refresh response did not contain an access_token"
        raise TokenRefreshError(error_msg)

    _LOGGER.debug("Successfully refreshed access token")
    return access_token
