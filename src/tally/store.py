"""Durable sqlite store for the `counters` and `events` collections.

Every operation is a coroutine that runs its sqlite work in a worker
thread. Operations are serialized per collection and each one commits on
its own; there is no transaction spanning both collections.
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from .errors import DuplicateKey, StorageUnavailable
from .models import Counter, CounterEvent, LifecycleState

logger = logging.getLogger(__name__)

COUNTERS = "counters"
EVENTS = "events"
COLLECTIONS = (COUNTERS, EVENTS)

Record = Union[Counter, CounterEvent]

_SCHEMA = """
CREATE TABLE IF NOT EXISTS counters(
  id TEXT PRIMARY KEY,
  name TEXT NOT NULL,
  color TEXT NOT NULL,
  start_value REAL NOT NULL DEFAULT 0,
  step_value REAL NOT NULL DEFAULT 1,
  order_index INTEGER NOT NULL DEFAULT 0,
  state TEXT NOT NULL DEFAULT 'active',
  created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS events(
  id TEXT PRIMARY KEY,
  counter_id TEXT NOT NULL,
  timestamp TEXT NOT NULL,
  date TEXT NOT NULL,
  delta REAL NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_events_counter_id ON events(counter_id);
"""


def _counter_from_row(row: sqlite3.Row) -> Counter:
    return Counter(
        id=str(row["id"]),
        name=str(row["name"]),
        color=str(row["color"]),
        start_value=float(row["start_value"]),
        step_value=float(row["step_value"]) if row["step_value"] is not None else 1.0,
        order_index=int(row["order_index"]),
        state=LifecycleState(row["state"]),
        created_at=datetime.fromisoformat(str(row["created_at"])),
    )


def _event_from_row(row: sqlite3.Row) -> CounterEvent:
    return CounterEvent(
        id=str(row["id"]),
        counter_id=str(row["counter_id"]),
        timestamp=datetime.fromisoformat(str(row["timestamp"])),
        delta=float(row["delta"]),
    )


def _counter_params(counter: Counter) -> tuple:
    return (
        counter.id,
        counter.name,
        counter.color,
        counter.start_value,
        counter.step_value,
        counter.order_index,
        counter.state.value,
        counter.created_at.isoformat(),
    )


def _event_params(event: CounterEvent) -> tuple:
    return (
        event.id,
        event.counter_id,
        event.timestamp.isoformat(),
        event.calendar_date.isoformat(),
        event.delta,
    )


_INSERT = {
    COUNTERS: (
        "INSERT INTO counters(id, name, color, start_value, step_value, order_index, state, created_at) "
        "VALUES(?, ?, ?, ?, ?, ?, ?, ?)"
    ),
    EVENTS: "INSERT INTO events(id, counter_id, timestamp, date, delta) VALUES(?, ?, ?, ?, ?)",
}

_UPSERT = {
    COUNTERS: _INSERT[COUNTERS]
    + " ON CONFLICT(id) DO UPDATE SET"
    " name=excluded.name,"
    " color=excluded.color,"
    " start_value=excluded.start_value,"
    " step_value=excluded.step_value,"
    " order_index=excluded.order_index,"
    " state=excluded.state,"
    " created_at=excluded.created_at",
    EVENTS: _INSERT[EVENTS]
    + " ON CONFLICT(id) DO UPDATE SET"
    " counter_id=excluded.counter_id,"
    " timestamp=excluded.timestamp,"
    " date=excluded.date,"
    " delta=excluded.delta",
}


class CounterStore:
    """Async key-value store with one table per collection.

    Records are keyed by their `id`. `get_all` returns rows in insertion
    order; callers must not rely on any other ordering.
    """

    def __init__(self, db_path: Path):
        self.db_path = db_path
        self._locks = {name: asyncio.Lock() for name in COLLECTIONS}
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._ensure_schema()
        except (OSError, sqlite3.Error) as e:
            raise StorageUnavailable(f"Cannot open counter store at {db_path}: {e}") from e

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_schema(self) -> None:
        conn = self._connect()
        try:
            conn.executescript(_SCHEMA)
            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _check_collection(collection: str) -> None:
        if collection not in COLLECTIONS:
            raise ValueError(f"Unknown collection: {collection}")

    @staticmethod
    def _from_row(collection: str, row: sqlite3.Row) -> Record:
        return _counter_from_row(row) if collection == COUNTERS else _event_from_row(row)

    @staticmethod
    def _params(collection: str, record: Record) -> tuple:
        if collection == COUNTERS:
            if not isinstance(record, Counter):
                raise TypeError(f"Expected Counter for {collection}, got {type(record).__name__}")
            return _counter_params(record)
        if not isinstance(record, CounterEvent):
            raise TypeError(f"Expected CounterEvent for {collection}, got {type(record).__name__}")
        return _event_params(record)

    # Synchronous workers, run via asyncio.to_thread

    def _select_all(self, collection: str) -> list[Record]:
        conn = self._connect()
        try:
            rows = conn.execute(f"SELECT * FROM {collection} ORDER BY rowid").fetchall()
            return [self._from_row(collection, r) for r in rows]
        finally:
            conn.close()

    def _select_one(self, collection: str, record_id: str) -> Optional[Record]:
        conn = self._connect()
        try:
            row = conn.execute(f"SELECT * FROM {collection} WHERE id = ?", (record_id,)).fetchone()
            return self._from_row(collection, row) if row is not None else None
        finally:
            conn.close()

    def _select_events_for(self, counter_id: str) -> list[CounterEvent]:
        conn = self._connect()
        try:
            rows = conn.execute(
                "SELECT * FROM events WHERE counter_id = ? ORDER BY rowid",
                (counter_id,),
            ).fetchall()
            return [_event_from_row(r) for r in rows]
        finally:
            conn.close()

    def _count(self, collection: str) -> int:
        conn = self._connect()
        try:
            row = conn.execute(f"SELECT COUNT(1) AS n FROM {collection}").fetchone()
            return int(row["n"]) if row is not None else 0
        finally:
            conn.close()

    def _write(self, sql: str, params: tuple) -> None:
        conn = self._connect()
        try:
            with conn:
                conn.execute(sql, params)
        finally:
            conn.close()

    def _insert(self, collection: str, params: tuple) -> None:
        try:
            self._write(_INSERT[collection], params)
        except sqlite3.IntegrityError as e:
            raise DuplicateKey(collection, params[0]) from e

    # Public async contract

    async def get_all(self, collection: str) -> list[Record]:
        self._check_collection(collection)
        async with self._locks[collection]:
            return await asyncio.to_thread(self._select_all, collection)

    async def get(self, collection: str, record_id: str) -> Optional[Record]:
        self._check_collection(collection)
        async with self._locks[collection]:
            return await asyncio.to_thread(self._select_one, collection, record_id)

    async def get_events_for_counter(self, counter_id: str) -> list[CounterEvent]:
        """Events of one counter, via the `counter_id` index."""
        async with self._locks[EVENTS]:
            return await asyncio.to_thread(self._select_events_for, counter_id)

    async def count(self, collection: str) -> int:
        self._check_collection(collection)
        async with self._locks[collection]:
            return await asyncio.to_thread(self._count, collection)

    async def put(self, collection: str, record: Record) -> None:
        """Insert or replace `record` by id."""
        self._check_collection(collection)
        params = self._params(collection, record)
        async with self._locks[collection]:
            await asyncio.to_thread(self._write, _UPSERT[collection], params)
        logger.debug("put %s/%s", collection, record.id)

    async def add(self, collection: str, record: Record) -> None:
        """Insert `record`; raises DuplicateKey if the id is taken."""
        self._check_collection(collection)
        params = self._params(collection, record)
        async with self._locks[collection]:
            await asyncio.to_thread(self._insert, collection, params)
        logger.debug("add %s/%s", collection, record.id)
