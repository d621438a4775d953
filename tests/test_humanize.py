"""Tests for value and time formatting."""

from datetime import datetime, timedelta, timezone

from tally.humanize import format_number, time_ago

NOW = datetime(2026, 10, 21, 14, 30, tzinfo=timezone.utc)


def test_format_number():
    assert format_number(3.0) == "3"
    assert format_number(-2.0) == "-2"
    assert format_number(0.25) == "0.25"


def test_time_ago():
    assert time_ago(None, NOW) == "No events yet"
    assert time_ago(NOW - timedelta(seconds=30), NOW) == "Just now"
    assert time_ago(NOW - timedelta(minutes=5), NOW) == "5m ago"
    assert time_ago(NOW - timedelta(hours=3, minutes=10), NOW) == "3h ago"
    assert time_ago(NOW - timedelta(days=2), NOW) == "2026-10-19"
