from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone

from vyntool.ingestion.normalize import (
    clamp_percent,
    non_negative_or_zero,
    parse_timestamp,
    safe_float,
    safe_int,
    safe_str,
)


def test_safe_int_accepts_hex_strings() -> None:
    assert safe_int("0x7E0") == 0x7E0
    assert safe_int("0X7e8") == 0x7E8
    assert safe_int("0xZZ") is None


def test_safe_int_decimal_inputs() -> None:
    assert safe_int(2024) == 2024
    assert safe_int("12") == 12
    assert safe_int(3.9) == 3
    assert safe_int(None) is None
    assert safe_int("") is None
    assert safe_int(True) is None


def test_safe_float_rejects_nan() -> None:
    assert safe_float("nan") is None
    assert safe_float("1.5") == 1.5


def test_safe_str() -> None:
    assert safe_str(None) is None
    assert safe_str("") is None
    assert safe_str(12) == "12"


def test_clamp_percent() -> None:
    assert clamp_percent(101) == 100
    assert clamp_percent(-1) == 0
    assert clamp_percent(None) == 0
    assert clamp_percent("50") == 50


def test_non_negative_or_zero() -> None:
    assert non_negative_or_zero(-3) == 0
    assert non_negative_or_zero("7") == 7
    assert non_negative_or_zero("junk") == 0


def test_parse_timestamp_seconds_and_millis() -> None:
    expected = datetime.fromtimestamp(1_770_928_447, tz=UTC)
    assert parse_timestamp(1_770_928_447) == expected
    assert parse_timestamp(1_770_928_447_000) == expected
    assert parse_timestamp("1770928447") == expected


def test_parse_timestamp_iso_strings() -> None:
    assert parse_timestamp("2026-03-01T08:30:00Z") == datetime(2026, 3, 1, 8, 30, tzinfo=UTC)
    # Naive values are taken as UTC.
    assert parse_timestamp("2026-03-01T08:30:00") == datetime(2026, 3, 1, 8, 30, tzinfo=UTC)
    offset = parse_timestamp("2026-03-01T10:30:00+02:00")
    assert offset is not None
    assert offset.utcoffset() == timedelta(hours=2)
    assert offset == datetime(2026, 3, 1, 8, 30, tzinfo=UTC)


def test_parse_timestamp_rejects_garbage() -> None:
    assert parse_timestamp(None) is None
    assert parse_timestamp("") is None
    assert parse_timestamp("yesterday") is None
    assert parse_timestamp(0) is None
    assert parse_timestamp(-5) is None


def test_parse_timestamp_passes_aware_datetimes_through() -> None:
    value = datetime(2026, 1, 1, tzinfo=timezone(timedelta(hours=-5)))
    assert parse_timestamp(value) is value
