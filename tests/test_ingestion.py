from __future__ import annotations

import asyncio
import logging

import pytest

from vyntool._push import PushEndpoint, SnapshotPushRuntime, decode_push_payload
from vyntool.config import VynConfig
from vyntool.exceptions import VynPayloadError
from vyntool.ingestion.snapshot import build_update, parse_snapshot
from vyntool.models.snapshot import Phase
from vyntool.state.events import SnapshotSource


def test_build_update_keeps_raw_and_source() -> None:
    raw = {"phase": "identifying", "vin": "VIN123"}
    update = build_update(raw, SnapshotSource.PUSH)

    assert update.source == SnapshotSource.PUSH
    assert update.raw == raw
    assert update.snapshot.phase == Phase.IDENTIFYING
    assert update.snapshot.vehicle_id == "VIN123"
    assert update.received_at.tzinfo is not None


def test_parse_snapshot_rejects_non_objects() -> None:
    with pytest.raises(VynPayloadError):
        parse_snapshot(["phase", "ready"])
    with pytest.raises(VynPayloadError):
        parse_snapshot(None)


def test_parse_snapshot_wraps_validation_errors() -> None:
    with pytest.raises(VynPayloadError):
        parse_snapshot({"adapterConnected": "maybe"})


def test_parse_snapshot_coerces_wrong_typed_optionals() -> None:
    snapshot = parse_snapshot(
        {
            "phase": "ready",
            "sessionId": 42,
            "modules": [{"id": "ecm"}],
            "troubleCodesByModule": {"ecm": [{"code": 171}]},
        }
    )
    assert snapshot.session_id == "42"
    assert snapshot.trouble_codes_by_module["ecm"][0].code == "171"


def test_unknown_phase_logged_and_degraded(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger="vyntool.ingestion.snapshot"):
        snapshot = parse_snapshot({"phase": "calibrating"})

    assert snapshot.phase == Phase.DISCONNECTED
    assert any("calibrating" in record.getMessage() for record in caplog.records)


def test_known_phase_not_logged(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger="vyntool.ingestion.snapshot"):
        parse_snapshot({"phase": "ready"})
    assert caplog.records == []


# ------------------------------------------------------------------
# Push payloads
# ------------------------------------------------------------------


def test_decode_push_payload() -> None:
    assert decode_push_payload(b'{"phase":"ready"}') == {"phase": "ready"}


@pytest.mark.parametrize("payload", [b"not json", b"\xff\xfe", b'["ready"]'])
def test_decode_push_payload_rejects_garbage(payload: bytes) -> None:
    with pytest.raises(VynPayloadError):
        decode_push_payload(payload)


def test_push_endpoint_from_config() -> None:
    config = VynConfig(push_host="broker.local", push_port=1999, push_topic="bench/snapshot", push_keepalive=15)
    endpoint = PushEndpoint.from_config(config)

    assert endpoint.host == "broker.local"
    assert endpoint.port == 1999
    assert endpoint.topic == "bench/snapshot"
    assert endpoint.keepalive == 15
    assert endpoint.client_id.startswith("vyntool-")


@pytest.mark.asyncio
async def test_push_runtime_stop_before_start_is_noop() -> None:

    runtime = SnapshotPushRuntime(
        loop=asyncio.get_running_loop(),
        endpoint=PushEndpoint.from_config(VynConfig()),
    )
    runtime.stop()
    assert runtime.is_running is False
