"""High-level async client for the diagnostic backend."""

from __future__ import annotations

import asyncio
import functools
import logging
from collections.abc import Callable
from typing import Any

import aiohttp

from vyntool._api.backend import fetch_snapshot
from vyntool._push import PushEndpoint, SnapshotPushRuntime, SnapshotSubscription
from vyntool._transport import BackendTransport, HttpBackendTransport
from vyntool.channel import SnapshotChannel
from vyntool.config import VynConfig
from vyntool.dispatcher import CommandDispatcher
from vyntool.exceptions import VynError
from vyntool.models.adapter import AdapterStatus
from vyntool.models.snapshot import Module, Phase, Snapshot, TransportMode
from vyntool.state.phase import PhaseMachine, Screen, project_screen
from vyntool.state.store import SnapshotStore, StoreState
from vyntool.state.views import SnapshotViews

_logger = logging.getLogger(__name__)

ClientListener = Callable[["VynClient"], None]


class VynClient:
    """Async client holding the current scan state.

    Usage::

        async with VynClient(config) as client:
            client.connect()
            ...
            print(client.screen)

    Every snapshot delivered by the backend replaces the current one; the
    phase machine and selection are brought up to date before listeners
    are told.
    """

    def __init__(
        self,
        config: VynConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        backend: BackendTransport | None = None,
        subscription: SnapshotSubscription | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._backend = backend
        self._subscription = subscription
        self._store = SnapshotStore()
        self._phase = PhaseMachine()
        self._channel: SnapshotChannel | None = None
        self._dispatcher: CommandDispatcher | None = None
        self._adapter_status = AdapterStatus.unknown()
        self._listeners: list[ClientListener] = []
        self._store.subscribe(self._on_state)

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> VynClient:
        loop = asyncio.get_running_loop()
        backend = self._backend
        if backend is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            backend = HttpBackendTransport(self._config, self._http_session)
            self._backend = backend

        subscription = self._subscription
        if subscription is None and self._config.push_enabled:
            subscription = SnapshotPushRuntime(
                loop=loop,
                endpoint=PushEndpoint.from_config(self._config),
            )

        self._dispatcher = CommandDispatcher(backend, self._config)
        self._channel = SnapshotChannel(
            functools.partial(fetch_snapshot, self._config, backend),
            subscription,
            self._store.replace,
        )
        await self._channel.start()
        self._adapter_status = await self._dispatcher.get_adapter_status()
        self._notify()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        channel = self._channel
        self._channel = None
        if channel is not None:
            await channel.stop()
        if self._dispatcher is not None:
            await self._dispatcher.drain()
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def snapshot(self) -> Snapshot:
        return self._store.current

    @property
    def version(self) -> int:
        return self._store.version

    @property
    def views(self) -> SnapshotViews:
        return self._store.views

    @property
    def phase(self) -> Phase:
        return self._store.current.phase

    @property
    def screen(self) -> Screen:
        return project_screen(self._store.current)

    @property
    def connect_mode(self) -> TransportMode:
        return self._phase.connect_mode

    @property
    def selected_module_id(self) -> str | None:
        return self._phase.selection.selected_id

    @property
    def selected_module(self) -> Module | None:
        return self._phase.selection.selected_module(self._store.current)

    @property
    def adapter_status(self) -> AdapterStatus:
        return self._adapter_status

    def add_listener(self, callback: ClientListener) -> Callable[[], None]:
        """Call *callback* with this client after every state change."""
        self._listeners.append(callback)

        def _remove() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return _remove

    # ------------------------------------------------------------------
    # Local intents
    # ------------------------------------------------------------------

    def select_module(self, module_id: str | None) -> bool:
        """Focus *module_id* (``None`` clears). Unknown ids are ignored."""
        accepted = self._phase.selection.select(module_id, self._store.current)
        if accepted:
            self._notify()
        return accepted

    def set_connect_mode(self, mode: TransportMode) -> None:
        self._phase.set_connect_mode(mode)
        self._notify()

    # ------------------------------------------------------------------
    # Backend intents
    # ------------------------------------------------------------------

    def connect(self, simulation_source: str | None = None) -> asyncio.Task[None]:
        """Start a scan with the currently chosen connect mode."""
        return self._require_dispatcher().connect(self.connect_mode, simulation_source)

    def retry(self) -> asyncio.Task[None]:
        return self._require_dispatcher().retry(self.connect_mode)

    def clear_all_codes(self) -> asyncio.Task[None]:
        return self._require_dispatcher().clear_all_codes()

    def clear_module_codes(self, module_id: str) -> asyncio.Task[None]:
        return self._require_dispatcher().clear_module_codes(module_id)

    def export_logs(self, destination: str) -> asyncio.Task[None]:
        return self._require_dispatcher().export_logs(destination)

    async def read_log_tail(self, lines: int | None = None) -> str:
        return await self._require_dispatcher().read_log_tail(lines)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_dispatcher(self) -> CommandDispatcher:
        if self._dispatcher is None:
            raise VynError("Client not initialized. Use 'async with VynClient(...) as client:'")
        return self._dispatcher

    def _on_state(self, state: StoreState) -> None:
        self._phase.apply(state.snapshot)
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                _logger.debug("Client listener failed", exc_info=True)
