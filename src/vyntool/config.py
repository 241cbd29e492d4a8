"""Client configuration for vyntool."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from vyntool._constants import (
    BACKEND_URL,
    DEFAULT_LOG_TAIL_LINES,
    DEFAULT_SIMULATION_SOURCE,
    PUSH_PORT,
    PUSH_TOPIC,
)
from vyntool.exceptions import VynConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_number(env_key: str, value: str, cast: type[int] | type[float]) -> int | float:
    try:
        return cast(value)
    except ValueError as exc:
        raise VynConfigError(f"{env_key} must be a number, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class VynConfig:
    """Client configuration.

    Parameters
    ----------
    backend_url : str
        Base URL of the native backend's command endpoint.
    request_timeout : float
        Seconds before a backend request is abandoned.
    push_enabled : bool
        Subscribe to the backend's snapshot push stream.
    push_host : str
        Host of the MQTT broker the backend publishes snapshots to.
    push_port : int
        Port of that broker.
    push_topic : str
        Topic carrying complete snapshot payloads.
    push_keepalive : int
        MQTT keepalive in seconds.
    simulation_source : str
        Sample-data path sent with simulation-mode scans.
    log_tail_lines : int
        Default number of lines requested by ``read_log_tail``.
    """

    backend_url: str = BACKEND_URL
    request_timeout: float = 10.0
    push_enabled: bool = True
    push_host: str = "127.0.0.1"
    push_port: int = PUSH_PORT
    push_topic: str = PUSH_TOPIC
    push_keepalive: int = 60
    simulation_source: str = DEFAULT_SIMULATION_SOURCE
    log_tail_lines: int = DEFAULT_LOG_TAIL_LINES

    @classmethod
    def from_env(cls, **overrides: Any) -> VynConfig:
        """Create configuration from ``VYN_*`` environment variables.

        Explicit keyword arguments override environment values.

        Raises
        ------
        VynConfigError
            If a numeric variable cannot be parsed.
        """
        env = os.environ

        _ENV_STR_MAP = {
            "VYN_BACKEND_URL": "backend_url",
            "VYN_PUSH_HOST": "push_host",
            "VYN_PUSH_TOPIC": "push_topic",
            "VYN_SIMULATION_SOURCE": "simulation_source",
        }
        _ENV_NUM_MAP: dict[str, tuple[str, type[int] | type[float]]] = {
            "VYN_REQUEST_TIMEOUT": ("request_timeout", float),
            "VYN_PUSH_PORT": ("push_port", int),
            "VYN_PUSH_KEEPALIVE": ("push_keepalive", int),
            "VYN_LOG_TAIL_LINES": ("log_tail_lines", int),
        }

        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_STR_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val.strip()

        for env_key, (field_name, cast) in _ENV_NUM_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = _env_number(env_key, val.strip(), cast)

        if "push_enabled" not in overrides:
            config_kwargs["push_enabled"] = _env_bool(env.get("VYN_PUSH_ENABLED"), True)

        config_kwargs.update(overrides)

        if config_kwargs.get("backend_url", BACKEND_URL).endswith("/"):
            config_kwargs["backend_url"] = config_kwargs["backend_url"].rstrip("/")

        return cls(**config_kwargs)
