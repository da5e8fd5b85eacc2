"""High-level async client for one NSPanel."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping
from typing import Any

import aiohttp

from pynspanel import _constants as const
from pynspanel._http import HttpVersionSource
from pynspanel._mqtt import PanelMqttRuntime
from pynspanel.config import PanelConfig
from pynspanel.exceptions import PanelError
from pynspanel.models.events import FirmwareEvent, PanelEvent, UiEvent
from pynspanel.models.versions import VersionSnapshot
from pynspanel.notifications import PanelNotificationGateway
from pynspanel.updater.acquisition import VersionAcquisitionCoordinator
from pynspanel.updater.orchestrator import UpdateOrchestrator

_logger = logging.getLogger(__name__)


class PanelClient:
    """Async client for a Tasmota NSPanel running the Lovelace UI driver.

    Usage::

        async with PanelClient(config, on_event=print) as panel:
            snapshot = await panel.check_for_updates()
    """

    def __init__(
        self,
        config: PanelConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        on_event: Callable[[PanelEvent], None] | None = None,
        on_update_result: Callable[[FirmwareEvent], None] | None = None,
        texts: Mapping[str, str] | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._on_event_cb = on_event
        self._on_update_result = on_update_result
        self._texts = texts
        self._loop: asyncio.AbstractEventLoop | None = None
        self._runtime: PanelMqttRuntime | None = None
        self._coordinator: VersionAcquisitionCoordinator | None = None
        self._orchestrator: UpdateOrchestrator | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> PanelClient:
        self._loop = asyncio.get_running_loop()
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession()

        runtime = PanelMqttRuntime(config=self._config, loop=self._loop, on_event=self._on_event)
        self._coordinator = VersionAcquisitionCoordinator(
            config=self._config,
            channel=runtime,
            source=HttpVersionSource(
                self._http_session,
                user_agent=self._config.user_agent,
                timeout=self._config.http_timeout,
            ),
        )
        self._orchestrator = UpdateOrchestrator(
            config=self._config,
            channel=runtime,
            gateway=PanelNotificationGateway(runtime),
            coordinator=self._coordinator,
            texts=self._texts,
            on_update_result=self._on_update_result,
        )
        await self._loop.run_in_executor(None, runtime.start)
        self._runtime = runtime
        return self

    async def __aexit__(self, *exc: Any) -> None:
        runtime = self._runtime
        self._runtime = None
        if runtime is not None and self._loop is not None:
            await self._loop.run_in_executor(None, runtime.stop)
        if self._coordinator is not None:
            await self._coordinator.aclose()
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        self._loop = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def orchestrator(self) -> UpdateOrchestrator:
        if self._orchestrator is None:
            raise PanelError("PanelClient is not started; use 'async with'")
        return self._orchestrator

    async def check_for_updates(self) -> VersionSnapshot:
        """See :meth:`UpdateOrchestrator.check_for_updates`."""
        return await self.orchestrator.check_for_updates()

    def send_command(self, command: str, payload: str) -> None:
        self._require_runtime().send(command, payload)

    def send_raw(self, payload: str) -> None:
        self._require_runtime().send_raw(payload)

    def _require_runtime(self) -> PanelMqttRuntime:
        if self._runtime is None:
            raise PanelError("PanelClient is not started; use 'async with'")
        return self._runtime

    # ------------------------------------------------------------------
    # Event routing
    # ------------------------------------------------------------------

    def _on_event(self, event: PanelEvent) -> None:
        orchestrator = self._orchestrator
        if orchestrator is not None:
            if isinstance(event, FirmwareEvent):
                orchestrator.on_firmware_event(event)
            elif isinstance(event, UiEvent):
                if event.event == const.LUI_EVENT_STARTUP:
                    orchestrator.set_hmi_version(event.hmi_version)
                elif event.event2 == const.LUI_EVENT2_NOTIFY_ACTION:
                    action = event.data if isinstance(event.data, str) else None
                    orchestrator.on_confirmation(event.source, action)

        if self._on_event_cb is not None:
            try:
                self._on_event_cb(event)
            except Exception:
                _logger.debug("on_event callback failed", exc_info=True)
