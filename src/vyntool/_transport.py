"""HTTP transport for invoking commands on the native backend."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from vyntool._constants import USER_AGENT
from vyntool._redact import redact_for_log
from vyntool.config import VynConfig
from vyntool.exceptions import VynBackendError, VynTransportError

_logger = logging.getLogger(__name__)


class BackendTransport(Protocol):
    """Structural transport interface used by the backend command module.

    `HttpBackendTransport` is the production implementation.
    """

    async def invoke(self, command: str, args: Mapping[str, Any] | None = None) -> Any:
        ...


class HttpBackendTransport:
    """Posts ``{args}`` to ``{backend_url}/invoke/{command}`` and unwraps the reply.

    The backend answers with ``{"ok": true, "result": ...}`` or
    ``{"ok": false, "error": "..."}``; a bare JSON value is taken as the
    result.
    """

    def __init__(self, config: VynConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session

    async def invoke(self, command: str, args: Mapping[str, Any] | None = None) -> Any:
        url = f"{self._config.backend_url}/invoke/{command}"
        body = json.dumps(dict(args or {}), separators=(",", ":"))
        headers = {
            "content-type": "application/json; charset=UTF-8",
            "user-agent": USER_AGENT,
        }
        timeout = aiohttp.ClientTimeout(total=self._config.request_timeout)

        _logger.debug("POST %s args=%s", url, redact_for_log(dict(args or {})))

        try:
            async with self._http.post(url, data=body, headers=headers, timeout=timeout) as resp:
                text = await resp.text()
                if resp.status != 200:
                    raise VynTransportError(
                        f"HTTP {resp.status} from {command}: {text[:200]}",
                        status_code=resp.status,
                        command=command,
                    )
        except VynTransportError:
            raise
        except TimeoutError as exc:
            raise VynTransportError(f"Request to {command} timed out", command=command) from exc
        except aiohttp.ClientError as exc:
            raise VynTransportError(f"Request to {command} failed: {exc}", command=command) from exc

        if not text.strip():
            return None

        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            raise VynTransportError(
                f"Invalid JSON from {command}: {text[:200]}",
                command=command,
            ) from exc

        _logger.debug("Response from %s: %s", command, redact_for_log(payload))
        return unwrap_reply(command, payload)


def unwrap_reply(command: str, payload: Any) -> Any:
    """Strip the ``ok``/``result`` envelope, raising on ``ok: false``."""
    if not isinstance(payload, dict) or "ok" not in payload:
        return payload
    if payload.get("ok") is True:
        return payload.get("result")
    error = payload.get("error") or payload.get("message") or "unknown error"
    raise VynBackendError(f"{command} failed: {error}", command=command)


async def invoke_with_timeout(
    transport: BackendTransport,
    command: str,
    args: Mapping[str, Any] | None,
    timeout: float,
) -> Any:
    """Bound a transport call that may not enforce its own deadline."""
    try:
        return await asyncio.wait_for(transport.invoke(command, args), timeout)
    except TimeoutError as exc:
        raise VynTransportError(f"Request to {command} timed out", command=command) from exc
