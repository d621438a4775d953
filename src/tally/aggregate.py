"""Aggregation engine: derive counter values from the raw event ledger.

Everything here is a pure function of its inputs. Values are recomputed
from all events on every read; nothing is cached between calls.
"""

from __future__ import annotations

import locale
from datetime import datetime, timedelta, timezone
from typing import Iterable, Sequence

from .models import Counter, CounterEvent, CounterStats, CounterView, Period, SortMethod


def _is_system_local(now: datetime) -> bool:
    # `datetime.now().astimezone()` yields a fixed offset standing in for
    # the system zone, which has no DST rules of its own.
    return isinstance(now.tzinfo, timezone) and now.utcoffset() == now.astimezone().utcoffset()


def period_anchors(now: datetime) -> dict[Period, datetime]:
    """Start instant of the period enclosing `now`, for every period.

    Anchors are local wall-clock starts, each with the UTC offset in
    force at the anchor itself. A naive `now`, or one carrying the system
    local offset, is resolved against the system time zone rules; any
    other zone is kept as is. The week starts on Monday, so on a Monday
    the week anchor is that day's midnight.
    """
    if now.tzinfo is None:
        now = now.astimezone()
    system_local = _is_system_local(now)

    def localize(start: datetime) -> datetime:
        return start.astimezone() if system_local else start.replace(tzinfo=now.tzinfo)

    wall = now.replace(tzinfo=None)
    midnight = wall.replace(hour=0, minute=0, second=0, microsecond=0)
    starts = {
        Period.HOUR: wall.replace(minute=0, second=0, microsecond=0),
        Period.DAY: midnight,
        Period.WEEK: midnight - timedelta(days=midnight.weekday()),
        Period.MONTH: midnight.replace(day=1),
        Period.YEAR: midnight.replace(month=1, day=1),
    }
    return {p: localize(start) for p, start in starts.items()}


def aggregate(
    counters: Iterable[Counter],
    events: Iterable[CounterEvent],
    now: datetime,
    period: Period,
) -> dict[str, CounterStats]:
    """Per-counter stats for every live counter.

    Args:
        counters: All counter records, deleted ones included
        events: All ledger events, in scan order
        now: Reference instant for the period anchors
        period: Window used for `windowed_value`

    Returns:
        Mapping of counter id to CounterStats. Deleted counters are
        absent and their events are skipped as orphans.
    """
    anchors = period_anchors(now)
    period = Period(period)

    lifetime: dict[str, float] = {}
    windows: dict[str, dict[Period, float]] = {}
    last_seen: dict[str, datetime | None] = {}
    starts: dict[str, float] = {}

    for counter in counters:
        if not counter.is_live:
            continue
        starts[counter.id] = counter.start_value
        lifetime[counter.id] = counter.start_value
        windows[counter.id] = {p: 0.0 for p in Period}
        last_seen[counter.id] = None

    for event in events:
        if event.counter_id not in lifetime:
            continue
        cid = event.counter_id
        lifetime[cid] += event.delta
        for p, anchor in anchors.items():
            if event.timestamp >= anchor:
                windows[cid][p] += event.delta
        # Strictly newer only: equal timestamps keep the first one scanned.
        last = last_seen[cid]
        if last is None or event.timestamp > last:
            last_seen[cid] = event.timestamp

    return {
        cid: CounterStats(
            lifetime_total=lifetime[cid],
            windowed_value=starts[cid] + windows[cid][period],
            windowed_delta=windows[cid][period],
            last_event_at=last_seen[cid],
            period_values={p: starts[cid] + total for p, total in windows[cid].items()},
        )
        for cid in lifetime
    }


def _recency_tiebreak(view: CounterView) -> tuple[float, str]:
    # Most recently created first, then id.
    return (-view.counter.created_at.timestamp(), view.counter.id)


def sort_counters(views: Sequence[CounterView], method: SortMethod) -> list[CounterView]:
    """Order views by `method`, with a deterministic tie-break."""
    method = SortMethod(method)
    if method is SortMethod.ALPHABETICAL:
        return sorted(
            views,
            key=lambda v: (locale.strxfrm(v.name.casefold()), v.name, *_recency_tiebreak(v)),
        )
    if method is SortMethod.HIGHEST:
        return sorted(views, key=lambda v: (-v.windowed_value, *_recency_tiebreak(v)))
    return sorted(views, key=lambda v: (v.counter.order_index, *_recency_tiebreak(v)))


def build_views(counters: Iterable[Counter], stats: dict[str, CounterStats]) -> list[CounterView]:
    """Join counters with their stats; counters without stats are dropped."""
    return [CounterView(counter=c, stats=stats[c.id]) for c in counters if c.id in stats]
