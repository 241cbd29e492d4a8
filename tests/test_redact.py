from __future__ import annotations

from vyntool._redact import redact_for_log


def test_redact_for_log_redacts_sensitive_keys() -> None:
    payload = {
        "phase": "ready",
        "vehicleId": "1FT7W2BT5NEC00001",
        "logsPath": "C:/Users/tech/logs",
        "lastSessionSummary": {"vin": "1FT7W2BT5NEC00001", "moduleCount": 4},
        "adapter": {"driverPath": "C:/op20pt32.dll"},
        "destination": "/home/tech/export.zip",
    }

    redacted = redact_for_log(payload)
    assert redacted["phase"] == "ready"
    assert redacted["vehicleId"] == "<redacted>"
    assert redacted["logsPath"] == "<redacted>"
    assert redacted["lastSessionSummary"]["vin"] == "<redacted>"
    assert redacted["lastSessionSummary"]["moduleCount"] == 4
    assert redacted["adapter"]["driverPath"] == "<redacted>"
    assert redacted["destination"] == "<redacted>"


def test_redact_for_log_keeps_missing_values_visible() -> None:
    redacted = redact_for_log({"vehicleId": None, "simulation_path": None})
    assert redacted == {"vehicleId": None, "simulation_path": None}


def test_redact_for_log_truncates_long_strings() -> None:
    long_value = "x" * 600
    redacted = redact_for_log({"value": long_value}, max_string=10)
    assert redacted["value"].startswith("x" * 10)
    assert "<truncated>" in redacted["value"]


def test_redact_for_log_caps_long_lists() -> None:
    modules = [{"id": f"M{i}"} for i in range(60)]
    redacted = redact_for_log({"modules": modules}, max_items=5)
    assert len(redacted["modules"]) == 6
    assert redacted["modules"][-1] == "<+55 more>"
