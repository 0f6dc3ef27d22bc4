"""Pytest configuration and fixtures for Nest thermostat tests."""

import json
from pathlib import Path
from typing import Any

import pytest

from nest_thermostat.const import (
    TRAIT_HUMIDITY,
    TRAIT_MODE,
    TRAIT_SETPOINT,
    TRAIT_TEMPERATURE,
)
from nest_thermostat.models import Credentials, DeviceStatus, ThermostatMode

PROJECT_ID = "test-project"
DEVICE_ID = "AVPHwEuBfnPOnTqzVFT4IONX2Qqhu9EJ4ubO-bNnQ-yi6"


def make_device_document(
    mode: str = "HEAT",
    setpoints: dict[str, float] | None = None,
    ambient_celsius: float = 21.5,
    humidity: int = 41,
) -> dict[str, Any]:
    """Create a get-device response document.

    Args:
        mode: Value of the ThermostatMode trait.
        setpoints: Setpoint trait contents. Defaults to ``{"heatCelsius": 20.0}``.
        ambient_celsius: Ambient temperature in Celsius.
        humidity: Ambient humidity percent.

    Returns:
        A dictionary shaped like the device-management API response.

    """
    if setpoints is None:
        setpoints = {"heatCelsius": 20.0}
    return {
        "name": f"enterprises/{PROJECT_ID}/devices/{DEVICE_ID}",
        "type": "sdm.devices.types.THERMOSTAT",
        "traits": {
            TRAIT_MODE: {
                "availableModes": ["HEAT", "COOL", "HEATCOOL", "OFF"],
                "mode": mode,
            },
            TRAIT_SETPOINT: setpoints,
            TRAIT_TEMPERATURE: {"ambientTemperatureCelsius": ambient_celsius},
            TRAIT_HUMIDITY: {"ambientHumidityPercent": humidity},
        },
    }


def make_auth_error_body() -> dict[str, Any]:
    """Create the error document returned for an expired access token."""
    return {
        "error": {
            "code": 401,
            "message": (
                "Request had invalid authentication credentials. Expected OAuth 2 "
                "access token, login cookie or other valid authentication "
                "credential."
            ),
            "status": "UNAUTHENTICATED",
        },
    }


@pytest.fixture
def credentials() -> Credentials:
    """Fixture providing a complete credential set."""
    return Credentials(
        client_id="client-id.apps.googleusercontent.com",
        client_secret="client-secret",
        project_id=PROJECT_ID,
        access_token="old-access-token",
        refresh_token="refresh-token",
        authorization_code="auth-code",
        device_id=DEVICE_ID,
    )


@pytest.fixture
def sample_device_response() -> dict[str, Any]:
    """Fixture providing a thermostat in HEAT mode at 68°F."""
    return make_device_document()


@pytest.fixture
def sample_devices_response() -> dict[str, Any]:
    """Fixture providing a device listing with two devices."""
    return {
        "devices": [
            {
                "name": f"enterprises/{PROJECT_ID}/devices/DEVICE_B",
                "type": "sdm.devices.types.THERMOSTAT",
            },
            {
                "name": f"enterprises/{PROJECT_ID}/devices/DEVICE_A",
                "type": "sdm.devices.types.THERMOSTAT",
            },
        ],
    }


@pytest.fixture
def sample_auth_error_body() -> dict[str, Any]:
    """Fixture providing an invalid-credentials error document."""
    return make_auth_error_body()


@pytest.fixture
def heat_status() -> DeviceStatus:
    """Fixture providing a HEAT status with a 68°F setpoint."""
    return DeviceStatus(
        temp=70.7,
        set_temp=68,
        mode=ThermostatMode.HEAT,
        humidity_percent=41,
    )


@pytest.fixture
def secrets_path(tmp_path: Path, credentials: Credentials) -> Path:
    """Fixture providing a credential file populated from ``credentials``."""
    path = tmp_path / "secrets.json"
    path.write_text(
        json.dumps(
            {
                "client_id": credentials.client_id,
                "client_secret": credentials.client_secret,
                "project_id": credentials.project_id,
                "access_token": credentials.access_token,
                "refresh_token": credentials.refresh_token,
                "authorization_code": credentials.authorization_code,
                "device_id": credentials.device_id,
            }
        ),
        encoding="utf-8",
    )
    return path
