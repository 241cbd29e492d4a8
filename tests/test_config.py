from __future__ import annotations

import pytest

from vyntool.config import VynConfig
from vyntool.exceptions import VynConfigError

_ENV_KEYS = (
    "VYN_BACKEND_URL",
    "VYN_REQUEST_TIMEOUT",
    "VYN_PUSH_ENABLED",
    "VYN_PUSH_HOST",
    "VYN_PUSH_PORT",
    "VYN_PUSH_TOPIC",
    "VYN_PUSH_KEEPALIVE",
    "VYN_SIMULATION_SOURCE",
    "VYN_LOG_TAIL_LINES",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_defaults() -> None:
    config = VynConfig.from_env()
    assert config.backend_url == "http://127.0.0.1:47615"
    assert config.request_timeout == 10.0
    assert config.push_enabled is True
    assert config.push_host == "127.0.0.1"
    assert config.push_port == 1883
    assert config.push_topic == "vyntool/snapshot"
    assert config.push_keepalive == 60
    assert config.simulation_source == "samples/f250_session.json"
    assert config.log_tail_lines == 80


def test_env_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("VYN_BACKEND_URL", "http://10.0.0.5:9000/")
    monkeypatch.setenv("VYN_REQUEST_TIMEOUT", "2.5")
    monkeypatch.setenv("VYN_PUSH_ENABLED", "off")
    monkeypatch.setenv("VYN_PUSH_PORT", " 1884 ")
    monkeypatch.setenv("VYN_SIMULATION_SOURCE", "samples/other.json")
    monkeypatch.setenv("VYN_LOG_TAIL_LINES", "200")

    config = VynConfig.from_env()

    assert config.backend_url == "http://10.0.0.5:9000"
    assert config.request_timeout == 2.5
    assert config.push_enabled is False
    assert config.push_port == 1884
    assert config.simulation_source == "samples/other.json"
    assert config.log_tail_lines == 200


def test_overrides_win_over_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("VYN_PUSH_ENABLED", "false")
    monkeypatch.setenv("VYN_PUSH_PORT", "not-a-port")
    monkeypatch.setenv("VYN_PUSH_TOPIC", "from/env")

    config = VynConfig.from_env(push_enabled=True, push_port=2000, push_topic="from/override")

    assert config.push_enabled is True
    assert config.push_port == 2000
    assert config.push_topic == "from/override"


def test_unparseable_bool_uses_default(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("VYN_PUSH_ENABLED", "maybe")
    assert VynConfig.from_env().push_enabled is True


def test_invalid_number_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("VYN_REQUEST_TIMEOUT", "soon")
    with pytest.raises(VynConfigError):
        VynConfig.from_env()


def test_config_is_frozen() -> None:
    config = VynConfig()
    with pytest.raises(AttributeError):
        config.backend_url = "http://elsewhere"  # type: ignore[misc]
