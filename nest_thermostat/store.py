"""File-backed credential storage.

Credentials are kept as a flat JSON object and written atomically so a
crash mid-write never leaves a truncated file behind.
"""

import json
import logging
import os
import tempfile
from dataclasses import asdict
from pathlib import Path

import voluptuous as vol

from .const import (
    CONF_CLIENT_ID,
    CONF_CLIENT_SECRET,
    CONF_PROJECT_ID,
    CONF_REFRESH_TOKEN,
    CREDENTIAL_KEYS,
)
from .models import Credentials

_LOGGER = logging.getLogger(__name__)

CREDENTIALS_SCHEMA = vol.Schema(
    {vol.Optional(key, default=""): vol.Any(str, None) for key in CREDENTIAL_KEYS},
    extra=vol.REMOVE_EXTRA,
)

REQUIRED_KEYS = (CONF_CLIENT_ID, CONF_CLIENT_SECRET, CONF_PROJECT_ID, CONF_REFRESH_TOKEN)


class CredentialStoreError(Exception):
    """Exception raised for missing, unreadable or invalid credential files."""


class CredentialStore:
    """Load and save a Credentials set at a fixed path."""

    def __init__(self, path: Path) -> None:
        """Initialize the store.

        Args:
            path: Location of the JSON credential file.

        """
        self.path = Path(path)

    def exists(self) -> bool:
        """Return True if the credential file is present."""
        return self.path.is_file()

    def load(self) -> Credentials:
        """Read and validate the credential file.

        Returns:
            The stored Credentials.

        Raises:
            CredentialStoreError: If the file is missing, not JSON, or invalid.

        """
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError as err:
            error_msg = (
                f"No credentials found at {self.path}; run with --setup first"
            )
            raise CredentialStoreError(error_msg) from err
        except (OSError, json.JSONDecodeError) as err:
            error_msg = f"Could not read credentials from {self.path}: {err}"
            raise CredentialStoreError(error_msg) from err

        try:
            data = CREDENTIALS_SCHEMA(raw)
        except vol.Invalid as err:
            error_msg = f"Invalid credentials file {self.path}: {err}"
            raise CredentialStoreError(error_msg) from err

        _LOGGER.debug("Loaded credentials from %s", self.path)
        return Credentials(**{key: value or "" for key, value in data.items()})

    def save(self, credentials: Credentials) -> None:
        """Persist the full credential set, replacing the file atomically."""
        self.path.parent.mkdir(parents=True, exist_ok=True)

        tmp_file = tempfile.NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=self.path.parent,
            delete=False,
            suffix=".tmp",
        )
        temp_path = Path(tmp_file.name)

        try:
            with tmp_file:
                json.dump(asdict(credentials), tmp_file, indent=2)
                tmp_file.flush()
                os.fsync(tmp_file.fileno())
            os.chmod(temp_path, 0o600)
            os.replace(temp_path, self.path)
        except Exception:
            temp_path.unlink(missing_ok=True)
            raise

        _LOGGER.debug("Saved credentials to %s", self.path)


def missing_required(credentials: Credentials) -> list[str]:
    """Return the names of required fields that are empty."""
    return [key for key in REQUIRED_KEYS if not getattr(credentials, key)]
