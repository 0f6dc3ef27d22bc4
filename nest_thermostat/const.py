"""Constants for the Nest thermostat CLI.

This module contains all the constants used throughout the package,
including API endpoints, trait keys, command names and configuration defaults.
"""

from pathlib import Path

SDM_BASE_URL = "https://smartdevicemanagement.googleapis.com/v1"
TOKEN_URL = "https://www.googleapis.com/oauth2/v4/token"

ENTERPRISE_URL = SDM_BASE_URL + "/enterprises/{project_id}"
DEVICES_URL = ENTERPRISE_URL + "/devices"
DEVICE_URL = DEVICES_URL + "/{device_id}"
EXECUTE_COMMAND_URL = DEVICE_URL + ":executeCommand"
STRUCTURES_URL = ENTERPRISE_URL + "/structures"

DEFAULT_TIMEOUT = 10.0
DEFAULT_MAX_RETRIES = 1
DEFAULT_SECRETS_PATH = Path.home() / ".config" / "nest-thermostat" / "secrets.json"

ENV_SECRETS_PATH = "NEST_THERMOSTAT_SECRETS"
ENV_MAX_RETRIES = "NEST_THERMOSTAT_MAX_RETRIES"

# Provider message returned when the bearer token is expired or revoked
AUTH_FAILURE_SIGNATURE = "Request had invalid authentication credentials"

TRAIT_MODE = "sdm.devices.traits.ThermostatMode"
TRAIT_SETPOINT = "sdm.devices.traits.ThermostatTemperatureSetpoint"
TRAIT_TEMPERATURE = "sdm.devices.traits.Temperature"
TRAIT_HUMIDITY = "sdm.devices.traits.Humidity"

KEY_MODE = "mode"
KEY_AMBIENT_TEMPERATURE = "ambientTemperatureCelsius"
KEY_AMBIENT_HUMIDITY = "ambientHumidityPercent"
SETPOINT_KEY_SUFFIX = "Celsius"

COMMAND_SET_MODE = "sdm.devices.commands.ThermostatMode.SetMode"
COMMAND_SET_SETPOINT_PREFIX = "sdm.devices.commands.ThermostatTemperatureSetpoint.Set"

CONF_CLIENT_ID = "client_id"
CONF_CLIENT_SECRET = "client_secret"
CONF_PROJECT_ID = "project_id"
CONF_ACCESS_TOKEN = "access_token"
CONF_REFRESH_TOKEN = "refresh_token"
CONF_AUTHORIZATION_CODE = "authorization_code"
CONF_DEVICE_ID = "device_id"

CREDENTIAL_KEYS = (
    CONF_CLIENT_ID,
    CONF_CLIENT_SECRET,
    CONF_PROJECT_ID,
    CONF_ACCESS_TOKEN,
    CONF_REFRESH_TOKEN,
    CONF_AUTHORIZATION_CODE,
    CONF_DEVICE_ID,
)
