"""Read path: re-read both collections, aggregate, filter and sort."""

from datetime import datetime
from typing import Optional

from .aggregate import aggregate, build_views, sort_counters
from .ledger import local_now
from .models import CounterView, LifecycleState, ViewState
from .store import COUNTERS, EVENTS, CounterStore


async def load_board(
    store: CounterStore,
    view: ViewState,
    *,
    now: Optional[datetime] = None,
    archived: bool = False,
) -> list[CounterView]:
    """Counters of the active (or archived) view with fresh stats.

    The two collections are read independently; an event whose counter
    was deleted in between is skipped by aggregation.
    """
    counters = await store.get_all(COUNTERS)
    events = await store.get_all(EVENTS)

    stats = aggregate(counters, events, now or local_now(), view.period)
    wanted = LifecycleState.ARCHIVED if archived else LifecycleState.ACTIVE
    views = build_views((c for c in counters if c.state is wanted), stats)
    return sort_counters(views, view.sort)
