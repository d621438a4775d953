"""Human-friendly formatting of counter values and event times."""

from datetime import datetime
from typing import Optional


def format_number(value: float) -> str:
    """Render whole numbers without a trailing `.0`."""
    if float(value).is_integer():
        return str(int(value))
    return f"{value:g}"


def time_ago(ts: Optional[datetime], now: datetime) -> str:
    """Short relative description of `ts`, e.g. "5m ago"."""
    if ts is None:
        return "No events yet"
    minutes = (now - ts).total_seconds() / 60
    if minutes < 1:
        return "Just now"
    if minutes < 60:
        return f"{int(minutes)}m ago"
    if minutes < 1440:
        return f"{int(minutes // 60)}h ago"
    return ts.astimezone(now.tzinfo).date().isoformat()
