"""
Unit tests for the entity model and the RFC-3339 timestamp codec.

Covers:
    - format_timestamp (fixed width, naive treated as UTC, offset normalized)
    - parse_timestamp (second and nanosecond precision, offsets, rejects junk)
    - Link helpers (counts, last_accessed, lazy expiry, snapshot isolation)
"""

from datetime import datetime, timedelta, timezone

import pytest

from shortlink_platform.model import Click, Link, format_timestamp, parse_timestamp

T0 = datetime(2026, 1, 2, 3, 4, 5, 123456, tzinfo=timezone.utc)


def test_format_timestamp_is_fixed_width_utc():
    assert format_timestamp(T0) == "2026-01-02T03:04:05.123456000Z"
    assert format_timestamp(T0.replace(microsecond=0)) == "2026-01-02T03:04:05.000000000Z"


def test_format_timestamp_naive_and_offset():
    naive = datetime(2026, 1, 2, 3, 4, 5)
    assert format_timestamp(naive) == "2026-01-02T03:04:05.000000000Z"
    plus_two = datetime(2026, 1, 2, 5, 4, 5, tzinfo=timezone(timedelta(hours=2)))
    assert format_timestamp(plus_two) == "2026-01-02T03:04:05.000000000Z"


def test_formatted_timestamps_sort_chronologically():
    earlier = format_timestamp(T0.replace(microsecond=0))
    later = format_timestamp(T0.replace(microsecond=500000))
    assert earlier < later


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("2026-01-02T03:04:05Z", T0.replace(microsecond=0)),
        ("2026-01-02T03:04:05.123456000Z", T0),
        ("2026-01-02T03:04:05.123456789Z", T0),
        ("2026-01-02T03:04:05.1Z", T0.replace(microsecond=100000)),
        ("2026-01-02T05:04:05+02:00", T0.replace(microsecond=0)),
        ("2026-01-01T22:04:05-05:00", T0.replace(microsecond=0)),
    ],
)
def test_parse_timestamp_precisions(raw, expected):
    parsed = parse_timestamp(raw)
    assert parsed == expected
    assert parsed.tzinfo == timezone.utc


@pytest.mark.parametrize(
    "raw",
    [
        "",
        "tomorrow",
        "2026-01-02",
        "2026-01-02T03:04:05",
        "2026-01-02 03:04:05Z",
        "2026-13-01T00:00:00Z",
        "2026-01-02T03:04:05+24:00",
        "9999-12-31T23:00:00-05:00",
        "0001-01-01T00:30:00+01:00",
    ],
)
def test_parse_timestamp_rejects_invalid(raw):
    with pytest.raises(ValueError):
        parse_timestamp(raw)


def test_roundtrip_keeps_microsecond_precision():
    assert parse_timestamp(format_timestamp(T0)) == T0


def test_link_counts_and_last_accessed():
    link = Link(code="abc", original_url="https://example.com", created_at=T0)
    assert link.total_clicks == 0
    assert link.unique_visitors == 0
    assert link.last_accessed is None

    later = T0 + timedelta(minutes=5)
    link.clicks.extend([Click(timestamp=T0, ip="1.1.1.1"), Click(timestamp=later, ip="1.1.1.1")])
    link.unique_ips.add("1.1.1.1")
    assert link.total_clicks == 2
    assert link.unique_visitors == 1
    assert link.last_accessed == later


def test_link_expiry_is_strictly_after():
    link = Link(code="abc", original_url="https://example.com", created_at=T0, expires_at=T0 + timedelta(hours=1))
    assert link.is_expired(T0) is False
    assert link.is_expired(T0 + timedelta(hours=1)) is False
    assert link.is_expired(T0 + timedelta(hours=1, microseconds=1)) is True


def test_link_without_expiry_never_expires():
    link = Link(code="abc", original_url="https://example.com", created_at=T0)
    assert link.is_expired(T0 + timedelta(days=10_000)) is False


def test_snapshot_is_isolated():
    link = Link(code="abc", original_url="https://example.com", created_at=T0)
    copy = link.snapshot()
    copy.clicks.append(Click(timestamp=T0))
    copy.unique_ips.add("9.9.9.9")
    assert link.clicks == []
    assert link.unique_ips == set()


def test_click_is_immutable():
    click = Click(timestamp=T0, ip="1.1.1.1")
    with pytest.raises(AttributeError):
        click.ip = "2.2.2.2"
