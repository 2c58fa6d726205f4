"""Tests for UTC datetime helpers."""

from datetime import UTC, datetime, timedelta, timezone

from beatcrest.shared.utils.datetime import ensure_utc, isoformat_utc, parse_timestamp


def test_ensure_utc_attaches_tz_to_naive() -> None:
    assert ensure_utc(datetime(2024, 1, 1, 12)) == datetime(2024, 1, 1, 12, tzinfo=UTC)


def test_ensure_utc_converts_aware() -> None:
    aware = datetime(2024, 1, 1, 12, tzinfo=timezone(timedelta(hours=2)))
    assert ensure_utc(aware) == datetime(2024, 1, 1, 10, tzinfo=UTC)
    assert ensure_utc(None) is None


def test_isoformat_utc() -> None:
    assert isoformat_utc(datetime(2024, 1, 1, tzinfo=UTC)) == "2024-01-01T00:00:00+00:00"
    assert isoformat_utc(None) is None


def test_parse_timestamp_accepts_z_and_nanoseconds() -> None:
    parsed = parse_timestamp("2024-03-05T10:11:12.123456789Z")
    assert parsed == datetime(2024, 3, 5, 10, 11, 12, 123456, tzinfo=UTC)


def test_parse_timestamp_passthrough() -> None:
    now = datetime(2024, 3, 5, tzinfo=UTC)
    assert parse_timestamp(now) == now
    assert parse_timestamp(None) is None
