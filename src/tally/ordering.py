"""Manual ordering index for counters."""

from __future__ import annotations

import logging
from typing import Iterable, Sequence

from .errors import InvalidInput
from .models import Counter
from .store import COUNTERS, CounterStore

logger = logging.getLogger(__name__)


def next_order_index(counters: Iterable[Counter]) -> int:
    """Index that places a new counter after every live counter.

    Dense policy: one past the highest live index, 0 for an empty board.
    Right after a reorder this equals the number of live counters.
    """
    indexes = [c.order_index for c in counters if c.is_live]
    return max(indexes) + 1 if indexes else 0


async def reorder(store: CounterStore, ordered_ids: Sequence[str]) -> list[Counter]:
    """Assign `order_index = position` following `ordered_ids`.

    Unknown and deleted ids are skipped without taking a position.
    Counters not listed keep their index. Only counters whose index
    actually changes are written.

    Returns:
        The listed live counters in their new order
    """
    result: list[Counter] = []
    seen: set[str] = set()
    for counter_id in ordered_ids:
        if counter_id in seen:
            raise InvalidInput(f"Counter {counter_id} listed twice in reorder")
        seen.add(counter_id)

        counter = await store.get(COUNTERS, counter_id)
        if counter is None or not counter.is_live:
            logger.debug("Reorder skipped missing or deleted counter %s", counter_id)
            continue

        position = len(result)
        if counter.order_index != position:
            counter = counter.model_copy(update={"order_index": position})
            await store.put(COUNTERS, counter)
        result.append(counter)

    logger.info("Reordered %d counter(s)", len(result))
    return result


async def move(
    store: CounterStore,
    counter_id: str,
    offset: int,
    visible_ids: Sequence[str],
) -> list[Counter]:
    """Move one counter `offset` places within the visible manual order.

    The position is clamped to the ends of the list. A counter that is
    not visible is a no-op.
    """
    ids = list(visible_ids)
    if counter_id not in ids:
        return []
    current = ids.index(counter_id)
    target = max(0, min(len(ids) - 1, current + offset))
    ids.insert(target, ids.pop(current))
    return await reorder(store, ids)
