"""Append-only event ledger for Tally."""

import logging
import math
import uuid
from datetime import datetime
from typing import Optional

from .errors import InvalidInput, RecordNotFound
from .models import Counter, CounterEvent
from .store import COUNTERS, EVENTS, CounterStore

logger = logging.getLogger(__name__)


def local_now() -> datetime:
    """Current instant as a timezone-aware local datetime."""
    return datetime.now().astimezone()


class EventLedger:
    """Append-only ledger writer.

    One immutable event per increment/decrement. Events are never
    updated or removed, whatever happens to the owning counter.
    """

    def __init__(self, store: CounterStore):
        self.store = store

    async def record_event(
        self,
        counter_id: str,
        delta: float,
        *,
        now: Optional[datetime] = None,
    ) -> CounterEvent:
        """Append an event for `counter_id`.

        The counter's state is not checked: an event for an archived,
        deleted or unknown counter is still recorded, and aggregation
        decides whether it is visible.

        Args:
            counter_id: Owning counter id
            delta: Signed change, any finite number
            now: Event timestamp; defaults to the current local time

        Returns:
            The recorded CounterEvent
        """
        if isinstance(delta, bool) or not isinstance(delta, (int, float)) or not math.isfinite(delta):
            raise InvalidInput(f"Delta must be a finite number, got {delta!r}")

        timestamp = now or local_now()
        if timestamp.tzinfo is None:
            timestamp = timestamp.astimezone()

        event = CounterEvent(
            id=str(uuid.uuid4()),
            counter_id=counter_id,
            timestamp=timestamp,
            delta=float(delta),
        )
        await self.store.add(EVENTS, event)
        logger.info("Recorded %+g for counter %s", event.delta, counter_id)
        return event

    async def step(
        self,
        counter_id: str,
        direction: int = 1,
        *,
        now: Optional[datetime] = None,
    ) -> Optional[CounterEvent]:
        """Record one step (`direction * step_value`) for a counter.

        Returns None when the counter does not exist.
        """
        if direction not in (1, -1):
            raise InvalidInput(f"Direction must be +1 or -1, got {direction!r}")
        try:
            counter = await self._require_counter(counter_id)
        except RecordNotFound as e:
            logger.info("Step ignored: %s", e)
            return None
        return await self.record_event(counter_id, direction * counter.step_value, now=now)

    async def tail(self, n: int = 20) -> list[CounterEvent]:
        """The last `n` events, oldest first."""
        events = await self.store.get_all(EVENTS)
        events.sort(key=lambda e: e.timestamp)
        return events[-n:] if n > 0 else []

    async def _require_counter(self, counter_id: str) -> Counter:
        counter = await self.store.get(COUNTERS, counter_id)
        if counter is None:
            raise RecordNotFound(COUNTERS, counter_id)
        return counter
