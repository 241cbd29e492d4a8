"""Backend command endpoints.

One function per command the native backend exposes. Each takes a
:class:`~vyntool._transport.BackendTransport` so tests can pass a fake.
"""

from __future__ import annotations

from typing import Any

from pydantic import ValidationError

from vyntool._constants import (
    CMD_CLEAR_DTCS,
    CMD_EXPORT_LOGS,
    CMD_GET_ADAPTER_STATUS,
    CMD_GET_SNAPSHOT,
    CMD_READ_LOG_TAIL,
    CMD_START_SCAN,
)
from vyntool._transport import BackendTransport, invoke_with_timeout
from vyntool.config import VynConfig
from vyntool.exceptions import VynBackendError
from vyntool.models.adapter import AdapterStatus
from vyntool.models.snapshot import TransportMode


async def fetch_snapshot(config: VynConfig, transport: BackendTransport) -> dict[str, Any]:
    """Pull the current authoritative snapshot as a raw dict."""
    result = await invoke_with_timeout(transport, CMD_GET_SNAPSHOT, None, config.request_timeout)
    if not isinstance(result, dict):
        raise VynBackendError("get_snapshot returned a non-object payload", command=CMD_GET_SNAPSHOT)
    return result


def build_start_scan_args(mode: TransportMode, simulation_path: str | None) -> dict[str, Any]:
    """Simulation mode carries a sample-data path; live mode never does."""
    mode = TransportMode(mode)
    return {
        "mode": mode.value,
        "simulation_path": simulation_path if mode == TransportMode.SIMULATION else None,
    }


async def start_scan(
    transport: BackendTransport,
    mode: TransportMode,
    simulation_path: str | None = None,
) -> None:
    await transport.invoke(CMD_START_SCAN, build_start_scan_args(mode, simulation_path))


async def clear_dtcs(transport: BackendTransport, module_id: str | None = None) -> None:
    """Clear trouble codes for one module, or for all modules when *module_id* is omitted."""
    args: dict[str, Any] = {}
    if module_id is not None:
        args["module_id"] = module_id
    await transport.invoke(CMD_CLEAR_DTCS, args)


async def fetch_adapter_status(transport: BackendTransport) -> AdapterStatus:
    result = await transport.invoke(CMD_GET_ADAPTER_STATUS)
    if not isinstance(result, dict):
        raise VynBackendError("get_adapter_status returned a non-object payload", command=CMD_GET_ADAPTER_STATUS)
    try:
        return AdapterStatus.model_validate(result)
    except ValidationError as exc:
        raise VynBackendError(f"Invalid adapter status: {exc}", command=CMD_GET_ADAPTER_STATUS) from exc


async def read_log_tail(transport: BackendTransport, lines: int) -> str:
    result = await transport.invoke(CMD_READ_LOG_TAIL, {"lines": int(lines)})
    if result is None:
        return ""
    return str(result)


async def export_logs(transport: BackendTransport, destination: str) -> None:
    await transport.invoke(CMD_EXPORT_LOGS, {"destination": destination})
