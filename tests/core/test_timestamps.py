"""Tests for ULIDs and ISO 8601 helpers."""

from datetime import UTC, datetime, timedelta, timezone

from jobspine.core.timestamps import from_iso8601, generate_ulid, to_iso8601


def test_ulid_shape():
    ulid = generate_ulid()
    assert len(ulid) == 26
    assert ulid != generate_ulid()
    assert set(ulid) <= set("0123456789ABCDEFGHJKMNPQRSTVWXYZ")


def test_ulid_sorts_by_creation_time(monkeypatch):
    monkeypatch.setattr("jobspine.core.timestamps.time.time", lambda: 1_700_000_000.0)
    earlier = generate_ulid()
    monkeypatch.setattr("jobspine.core.timestamps.time.time", lambda: 1_700_000_001.0)
    later = generate_ulid()

    assert earlier < later
    assert earlier[:10] != later[:10]


def test_iso_roundtrip_normalises_to_utc():
    local = datetime(2025, 1, 6, 4, 0, tzinfo=timezone(timedelta(hours=-5)))

    text = to_iso8601(local)
    assert text == "2025-01-06T09:00:00+00:00"
    assert from_iso8601(text) == datetime(2025, 1, 6, 9, 0, tzinfo=UTC)


def test_naive_taken_as_utc():
    assert from_iso8601("2025-01-06T09:00:00") == datetime(2025, 1, 6, 9, 0, tzinfo=UTC)
    assert to_iso8601(datetime(2025, 1, 6, 9, 0)) == "2025-01-06T09:00:00+00:00"


def test_empty():
    assert to_iso8601(None) is None
    assert from_iso8601(None) is None
    assert from_iso8601("") is None
