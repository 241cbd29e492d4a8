"""Command dispatcher.

Translates operator intents into backend requests. Intents are
fire-and-forget: the resulting phase change, if any, arrives later as a
pushed snapshot. Nothing here touches local state.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any

from vyntool._api import backend as _backend_api
from vyntool._constants import (
    CMD_CLEAR_DTCS,
    CMD_EXPORT_LOGS,
    CMD_START_SCAN,
    NO_LOGS_MESSAGE,
)
from vyntool._transport import BackendTransport
from vyntool.config import VynConfig
from vyntool.exceptions import VynError
from vyntool.models.adapter import AdapterStatus
from vyntool.models.snapshot import TransportMode

_logger = logging.getLogger(__name__)


class CommandDispatcher:
    """Schedules backend requests and keeps track of the in-flight ones."""

    def __init__(self, backend: BackendTransport, config: VynConfig) -> None:
        self._backend = backend
        self._config = config
        self._tasks: set[asyncio.Task[None]] = set()
        self._last_mode: TransportMode | None = None
        self._last_simulation_source: str | None = None

    @property
    def pending(self) -> int:
        """Number of requests still in flight."""
        return len(self._tasks)

    @property
    def last_mode(self) -> TransportMode | None:
        """Mode of the most recent :meth:`connect`, ``None`` before the first."""
        return self._last_mode

    # ------------------------------------------------------------------
    # Fire-and-forget intents
    # ------------------------------------------------------------------

    def connect(self, mode: TransportMode, simulation_source: str | None = None) -> asyncio.Task[None]:
        """Ask the backend to start a scan over *mode*.

        Simulation scans carry a sample-data path (``config.simulation_source``
        unless given); live-adapter scans never do.
        """
        mode = TransportMode(mode)
        self._last_mode = mode
        self._last_simulation_source = simulation_source
        path: str | None = None
        if mode == TransportMode.SIMULATION:
            path = simulation_source or self._config.simulation_source
        return self._schedule(CMD_START_SCAN, _backend_api.start_scan(self._backend, mode, path))

    def retry(self, fallback_mode: TransportMode) -> asyncio.Task[None]:
        """Re-issue the last connect, or connect with *fallback_mode* if there was none."""
        mode = self._last_mode if self._last_mode is not None else TransportMode(fallback_mode)
        return self.connect(mode, self._last_simulation_source)

    def clear_all_codes(self) -> asyncio.Task[None]:
        return self._schedule(CMD_CLEAR_DTCS, _backend_api.clear_dtcs(self._backend))

    def clear_module_codes(self, module_id: str) -> asyncio.Task[None]:
        return self._schedule(CMD_CLEAR_DTCS, _backend_api.clear_dtcs(self._backend, module_id))

    def export_logs(self, destination: str) -> asyncio.Task[None]:
        return self._schedule(CMD_EXPORT_LOGS, _backend_api.export_logs(self._backend, destination))

    # ------------------------------------------------------------------
    # On-demand reads
    # ------------------------------------------------------------------

    async def read_log_tail(self, lines: int | None = None) -> str:
        """Fetch the last *lines* log lines; a placeholder text on failure."""
        count = lines if lines is not None else self._config.log_tail_lines
        try:
            text = await _backend_api.read_log_tail(self._backend, count)
        except VynError as exc:
            _logger.warning("Reading log tail failed: %s", exc)
            return NO_LOGS_MESSAGE
        return text

    async def get_adapter_status(self) -> AdapterStatus:
        try:
            return await _backend_api.fetch_adapter_status(self._backend)
        except VynError as exc:
            _logger.warning("Adapter status query failed: %s", exc)
            return AdapterStatus.unknown()

    async def drain(self) -> None:
        """Wait until every in-flight request has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _schedule(self, command: str, coro: Coroutine[Any, Any, None]) -> asyncio.Task[None]:
        task = asyncio.get_running_loop().create_task(self._run(command, coro))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(self, command: str, coro: Coroutine[Any, Any, None]) -> None:
        try:
            await coro
        except VynError as exc:
            _logger.warning("Backend command %s failed: %s", command, exc)
        except Exception:
            _logger.warning("Backend command %s failed unexpectedly", command, exc_info=True)
