"""Counter lifecycle: creation, edits, archive and soft delete."""

from __future__ import annotations

import logging
import math
import uuid
from datetime import datetime
from typing import Literal, Optional, Union

from .errors import InvalidInput, InvalidTransition, RecordNotFound
from .ledger import local_now
from .models import DEFAULT_COLOR, Counter, LifecycleState
from .ordering import next_order_index
from .store import COUNTERS, CounterStore

logger = logging.getLogger(__name__)

Action = Literal["archive", "unarchive", "toggle_archive", "delete"]
Number = Union[int, float, str]

_ACTIVE = LifecycleState.ACTIVE
_ARCHIVED = LifecycleState.ARCHIVED
_DELETED = LifecycleState.DELETED

_TRANSITIONS: dict[tuple[LifecycleState, str], LifecycleState] = {
    (_ACTIVE, "archive"): _ARCHIVED,
    (_ARCHIVED, "unarchive"): _ACTIVE,
    (_ACTIVE, "toggle_archive"): _ARCHIVED,
    (_ARCHIVED, "toggle_archive"): _ACTIVE,
    (_ACTIVE, "delete"): _DELETED,
    (_ARCHIVED, "delete"): _DELETED,
}


def transition(state: LifecycleState, action: Action) -> LifecycleState:
    """Next state for `action`; raises InvalidTransition if not allowed.

    Nothing leaves `deleted`.
    """
    try:
        return _TRANSITIONS[(LifecycleState(state), action)]
    except KeyError:
        raise InvalidTransition(f"Cannot {action} a counter that is {LifecycleState(state).value}") from None


def _parse_number(value: Number, *, name: str) -> float:
    if isinstance(value, bool):
        raise InvalidInput(f"{name} must be a number")
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            raise InvalidInput(f"{name} must be a number, got {value!r}") from None
    if not isinstance(value, (int, float)) or not math.isfinite(value):
        raise InvalidInput(f"{name} must be a finite number, got {value!r}")
    return float(value)


def _parse_name(name: Optional[str]) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise InvalidInput("Name is required")
    return cleaned


class LifecycleManager:
    """Owns every write to the `counters` collection except reordering.

    Operations on a missing counter are no-ops that return None. Edits of
    a deleted counter are no-ops too.
    """

    def __init__(self, store: CounterStore):
        self.store = store

    async def create(
        self,
        name: str,
        color: Optional[str] = None,
        start_value: Number = 0,
        step_value: Number = 1,
        *,
        now: Optional[datetime] = None,
    ) -> Counter:
        """Create an active counter placed last in the manual order.

        Raises:
            InvalidInput: Empty name or non-numeric start/step value
        """
        counter_name = _parse_name(name)
        start = _parse_number(start_value, name="Start value")
        step = _parse_number(step_value, name="Step value")

        existing = await self.store.get_all(COUNTERS)
        counter = Counter(
            id=str(uuid.uuid4()),
            name=counter_name,
            color=color or DEFAULT_COLOR,
            start_value=start,
            step_value=step,
            order_index=next_order_index(existing),
            state=LifecycleState.ACTIVE,
            created_at=now or local_now(),
        )
        await self.store.add(COUNTERS, counter)
        logger.info("Created counter %s (%s)", counter.id, counter.name)
        return counter

    async def get(self, counter_id: str) -> Optional[Counter]:
        """Live counter by id, or None."""
        counter = await self.store.get(COUNTERS, counter_id)
        if counter is None or not counter.is_live:
            return None
        return counter

    async def list_counters(self, state: Optional[LifecycleState] = None) -> list[Counter]:
        """Live counters, optionally narrowed to one state."""
        counters = [c for c in await self.store.get_all(COUNTERS) if c.is_live]
        if state is not None:
            counters = [c for c in counters if c.state is LifecycleState(state)]
        return counters

    async def update(
        self,
        counter_id: str,
        name: str,
        color: Optional[str],
        start_value: Number,
        step_value: Number,
    ) -> Optional[Counter]:
        """Replace the four editable fields of a counter.

        Order index and lifecycle state are left untouched. Returns None
        when the counter is missing or deleted.
        """
        changes = {
            "name": _parse_name(name),
            "start_value": _parse_number(start_value, name="Start value"),
            "step_value": _parse_number(step_value, name="Step value"),
        }
        if color:
            changes["color"] = color

        try:
            counter = await self._require_live(counter_id)
        except RecordNotFound as e:
            logger.info("Update ignored: %s", e)
            return None

        updated = counter.model_copy(update=changes)
        await self.store.put(COUNTERS, updated)
        logger.info("Updated counter %s", counter_id)
        return updated

    async def archive(self, counter_id: str) -> Optional[Counter]:
        return await self._apply(counter_id, "archive")

    async def unarchive(self, counter_id: str) -> Optional[Counter]:
        return await self._apply(counter_id, "unarchive")

    async def toggle_archive(self, counter_id: str) -> Optional[Counter]:
        return await self._apply(counter_id, "toggle_archive")

    async def delete(self, counter_id: str) -> Optional[Counter]:
        """Soft delete. The row and its events stay in the store."""
        return await self._apply(counter_id, "delete")

    async def _apply(self, counter_id: str, action: Action) -> Optional[Counter]:
        try:
            counter = await self._require_live(counter_id)
        except RecordNotFound as e:
            logger.info("%s ignored: %s", action, e)
            return None

        updated = counter.model_copy(update={"state": transition(counter.state, action)})
        await self.store.put(COUNTERS, updated)
        logger.info("Counter %s: %s -> %s", counter_id, counter.state.value, updated.state.value)
        return updated

    async def _require_live(self, counter_id: str) -> Counter:
        counter = await self.store.get(COUNTERS, counter_id)
        if counter is None or not counter.is_live:
            raise RecordNotFound(COUNTERS, counter_id)
        return counter
