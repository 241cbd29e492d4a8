from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any

import pytest

from vyntool.config import VynConfig
from vyntool.dispatcher import CommandDispatcher
from vyntool.exceptions import VynBackendError, VynTransportError
from vyntool.models.snapshot import TransportMode


class _RecordingBackend:
    def __init__(
        self,
        results: dict[str, Any] | None = None,
        failures: dict[str, Exception] | None = None,
        delay: float = 0.0,
    ) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self._results = results or {}
        self._failures = failures or {}
        self._delay = delay

    async def invoke(self, command: str, args: Mapping[str, Any] | None = None) -> Any:
        self.calls.append((command, dict(args or {})))
        if self._delay:
            await asyncio.sleep(self._delay)
        if command in self._failures:
            raise self._failures[command]
        return self._results.get(command)


def _dispatcher(backend: _RecordingBackend, **overrides: Any) -> CommandDispatcher:
    return CommandDispatcher(backend, VynConfig(**overrides))


@pytest.mark.asyncio
async def test_connect_simulation_sends_default_sample_path() -> None:
    backend = _RecordingBackend()
    dispatcher = _dispatcher(backend)

    await dispatcher.connect(TransportMode.SIMULATION)

    assert backend.calls == [
        ("start_scan", {"mode": "simulation", "simulation_path": "samples/f250_session.json"}),
    ]


@pytest.mark.asyncio
async def test_connect_simulation_with_explicit_source() -> None:
    backend = _RecordingBackend()
    dispatcher = _dispatcher(backend, simulation_source="samples/default.json")

    await dispatcher.connect(TransportMode.SIMULATION, "samples/custom.json")

    assert backend.calls[0][1]["simulation_path"] == "samples/custom.json"


@pytest.mark.asyncio
async def test_connect_live_adapter_sends_no_path() -> None:
    backend = _RecordingBackend()
    dispatcher = _dispatcher(backend)

    await dispatcher.connect(TransportMode.LIVE_ADAPTER, "samples/ignored.json")

    assert backend.calls == [("start_scan", {"mode": "liveAdapter", "simulation_path": None})]


@pytest.mark.asyncio
async def test_intents_are_fire_and_forget() -> None:
    backend = _RecordingBackend(delay=0.01)
    dispatcher = _dispatcher(backend)

    task = dispatcher.clear_all_codes()
    assert isinstance(task, asyncio.Task)
    assert dispatcher.pending == 1
    assert not task.done()

    await dispatcher.drain()
    assert dispatcher.pending == 0
    assert backend.calls == [("clear_dtcs", {})]


@pytest.mark.asyncio
async def test_retry_reuses_last_connect_mode() -> None:
    backend = _RecordingBackend()
    dispatcher = _dispatcher(backend)

    dispatcher.connect(TransportMode.LIVE_ADAPTER)
    dispatcher.retry(TransportMode.SIMULATION)
    await dispatcher.drain()

    assert [args["mode"] for _command, args in backend.calls] == ["liveAdapter", "liveAdapter"]
    assert dispatcher.last_mode == TransportMode.LIVE_ADAPTER


@pytest.mark.asyncio
async def test_retry_without_prior_connect_uses_fallback() -> None:
    backend = _RecordingBackend()
    dispatcher = _dispatcher(backend)

    await dispatcher.retry(TransportMode.SIMULATION)

    assert backend.calls == [
        ("start_scan", {"mode": "simulation", "simulation_path": "samples/f250_session.json"}),
    ]


@pytest.mark.asyncio
async def test_retry_keeps_simulation_source() -> None:
    backend = _RecordingBackend()
    dispatcher = _dispatcher(backend)

    dispatcher.connect(TransportMode.SIMULATION, "samples/custom.json")
    dispatcher.retry(TransportMode.LIVE_ADAPTER)
    await dispatcher.drain()

    assert [args["simulation_path"] for _command, args in backend.calls] == [
        "samples/custom.json",
        "samples/custom.json",
    ]


@pytest.mark.asyncio
async def test_failed_command_is_logged_not_raised(caplog: pytest.LogCaptureFixture) -> None:
    backend = _RecordingBackend(failures={"start_scan": VynBackendError("adapter busy", command="start_scan")})
    dispatcher = _dispatcher(backend)

    with caplog.at_level(logging.WARNING, logger="vyntool.dispatcher"):
        task = dispatcher.connect(TransportMode.LIVE_ADAPTER)
        await dispatcher.drain()

    assert task.result() is None
    assert any("start_scan failed" in record.getMessage() for record in caplog.records)


@pytest.mark.asyncio
async def test_unexpected_failure_is_logged_not_raised() -> None:
    backend = _RecordingBackend(failures={"export_logs": RuntimeError("disk on fire")})
    dispatcher = _dispatcher(backend)

    task = dispatcher.export_logs("/tmp/out.zip")
    await dispatcher.drain()

    assert task.exception() is None


@pytest.mark.asyncio
async def test_clear_module_codes_and_export_logs_args() -> None:
    backend = _RecordingBackend()
    dispatcher = _dispatcher(backend)

    dispatcher.clear_module_codes("PCM")
    dispatcher.export_logs("/tmp/session.zip")
    await dispatcher.drain()

    assert backend.calls == [
        ("clear_dtcs", {"module_id": "PCM"}),
        ("export_logs", {"destination": "/tmp/session.zip"}),
    ]


@pytest.mark.asyncio
async def test_read_log_tail_uses_configured_default() -> None:
    backend = _RecordingBackend(results={"read_log_tail": "line 1\nline 2"})
    dispatcher = _dispatcher(backend)

    text = await dispatcher.read_log_tail()

    assert text == "line 1\nline 2"
    assert backend.calls == [("read_log_tail", {"lines": 80})]


@pytest.mark.asyncio
async def test_read_log_tail_explicit_lines() -> None:
    backend = _RecordingBackend(results={"read_log_tail": ""})
    dispatcher = _dispatcher(backend)

    assert await dispatcher.read_log_tail(5) == ""
    assert backend.calls == [("read_log_tail", {"lines": 5})]


@pytest.mark.asyncio
async def test_read_log_tail_failure_returns_placeholder() -> None:
    backend = _RecordingBackend(failures={"read_log_tail": VynTransportError("HTTP 500", status_code=500)})
    dispatcher = _dispatcher(backend)

    assert await dispatcher.read_log_tail() == "No logs available yet."


@pytest.mark.asyncio
async def test_adapter_status_parsed() -> None:
    backend = _RecordingBackend(
        results={"get_adapter_status": {"available": True, "message": "Driver found", "dllPath": "C:/op20pt32.dll"}}
    )
    status = await _dispatcher(backend).get_adapter_status()

    assert status.available is True
    assert status.message == "Driver found"
    assert status.driver_path == "C:/op20pt32.dll"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "backend",
    [
        _RecordingBackend(failures={"get_adapter_status": VynTransportError("refused")}),
        _RecordingBackend(results={"get_adapter_status": "not an object"}),
        _RecordingBackend(results={"get_adapter_status": {"available": {"nested": True}}}),
    ],
)
async def test_adapter_status_failure_is_unknown(backend: _RecordingBackend) -> None:
    status = await _dispatcher(backend).get_adapter_status()

    assert status.available is False
    assert status.message == "Adapter status unknown"
