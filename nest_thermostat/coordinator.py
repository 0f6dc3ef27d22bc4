"""Credential refresh and thermostat reconciliation."""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, TypeVar

from . import api
from .models import (
    CommandOptions,
    Credentials,
    Device,
    DeviceStatus,
    RetryBudget,
    RunResult,
    RunState,
    TargetRequest,
    ThermostatCommand,
)
from .resolver import plan_commands, resolve_target

if TYPE_CHECKING:
    import httpx

    from .store import CredentialStore

_LOGGER = logging.getLogger(__name__)

_T = TypeVar("_T")

StatusCallback = Callable[[DeviceStatus], None]
CommandCallback = Callable[[ThermostatCommand, TargetRequest], None]


class CredentialManager:
    """Single owner of the credential set.

    Every mutation is persisted through the store before it becomes visible
    through ``credentials``.
    """

    def __init__(
        self,
        session: httpx.AsyncClient,
        store: CredentialStore,
        credentials: Credentials,
    ) -> None:
        """Initialize the manager."""
        self.session = session
        self.store = store
        self._credentials = credentials

    @property
    def credentials(self) -> Credentials:
        """Get the current credential set."""
        return self._credentials

    def replace(self, credentials: Credentials) -> None:
        """Replace the whole credential set and persist it."""
        self.store.save(credentials)
        self._credentials = credentials

    async def async_refresh(self) -> None:
        """Obtain a new access token and persist it.

        Raises:
            TokenRefreshError: If the token endpoint rejects the refresh.

        """
        access_token = await api.async_refresh_access_token(
            self.session, self._credentials
        )
        self.replace(dataclasses.replace(self._credentials, access_token=access_token))
        _LOGGER.info("Successfully refreshed access token")


class ThermostatController:
    """Read, resolve and apply thermostat changes.

    An authentication failure anywhere in an operation triggers a credential
    refresh followed by a complete restart of the operation, as long as the
    retry budget allows it. The budget lives as long as the controller.
    """

    def __init__(
        self,
        session: httpx.AsyncClient,
        credential_manager: CredentialManager,
        max_retries: int,
    ) -> None:
        """Initialize the controller."""
        self.session = session
        self.credential_manager = credential_manager
        self.budget = RetryBudget(ceiling=max_retries)
        self.state = RunState.RUNNING
        self.refreshes = 0

    async def async_with_refresh(
        self, operation: Callable[[Credentials], Awaitable[_T]]
    ) -> _T:
        """Run ``operation`` with the current credentials, refreshing on auth failure.

        The operation is re-invoked from scratch after every refresh and
        receives the refreshed credentials.

        Raises:
            NestApiAuthError: If the retry budget is exhausted.
            TokenRefreshError: If the refresh itself fails.

        """
        while True:
            self.state = RunState.RUNNING
            try:
                result = await operation(self.credential_manager.credentials)
            except api.NestApiAuthError as err:
                if self.budget.exhausted:
                    self.state = RunState.FAILED_FATAL
                    raise
                _LOGGER.warning("Access token rejected, refreshing: %s", err)
                self.state = RunState.REFRESHING_CREDENTIAL
                self.budget.consume()
                self.refreshes += 1
                try:
                    await self.credential_manager.async_refresh()
                except Exception:
                    self.state = RunState.FAILED_FATAL
                    raise
            except Exception:
                self.state = RunState.FAILED_FATAL
                raise
            else:
                self.state = RunState.SUCCEEDED
                return result

    async def async_run(
        self,
        options: CommandOptions,
        on_status: StatusCallback | None = None,
        on_command: CommandCallback | None = None,
    ) -> RunResult:
        """Reconcile the thermostat with the requested options.

        ``on_status`` is called with every status read, including the reads
        that follow a refresh. ``on_command`` is called after each command
        the API accepted, so changes already applied are reported even when
        a later command fails.

        Returns:
            RunResult describing the successful attempt.

        Raises:
            NestApiClientError: Any failure other than a recoverable
                authentication failure, or an authentication failure once
                the retry budget is exhausted.

        """
        result = await self.async_with_refresh(
            lambda credentials: self._async_attempt(
                credentials, options, on_status, on_command
            )
        )
        result.refreshes = self.refreshes
        return result

    async def async_list_devices(self) -> list[Device]:
        """List the project's devices."""
        return await self.async_with_refresh(
            lambda credentials: api.async_get_devices(self.session, credentials)
        )

    async def async_list_structures(self) -> list[dict[str, Any]]:
        """List the project's structures."""
        return await self.async_with_refresh(
            lambda credentials: api.async_get_structures(self.session, credentials)
        )

    async def _async_attempt(
        self,
        credentials: Credentials,
        options: CommandOptions,
        on_status: StatusCallback | None,
        on_command: CommandCallback | None,
    ) -> RunResult:
        status = await api.async_get_thermostat_status(self.session, credentials)
        if on_status is not None:
            on_status(status)
        target = resolve_target(status, options)
        commands = plan_commands(status, target)

        for command in commands:
            await api.async_execute_command(self.session, credentials, command)
            _LOGGER.info("Executed %s with %s", command.command, command.params)
            if on_command is not None:
                on_command(command, target)

        return RunResult(
            state=RunState.SUCCEEDED,
            status=status,
            target=target,
            commands=commands,
            refreshes=0,
        )
