"""CSV export of the event ledger."""

import csv
import io
import logging
from datetime import date
from pathlib import Path
from typing import Iterable, Optional

from .models import Counter, CounterEvent
from .store import COUNTERS, EVENTS, CounterStore

logger = logging.getLogger(__name__)

CSV_HEADER = ["Date", "Time", "Counter Name", "Delta", "Event ID"]
UNKNOWN_COUNTER = "Unknown"


def format_delta(value: float) -> str:
    """Full-precision delta: whole numbers without `.0`, others via repr."""
    if value.is_integer():
        return str(int(value))
    return repr(value)


def default_export_name(day: date) -> str:
    return f"tally-export-{day.isoformat()}.csv"


def render_events_csv(counters: Iterable[Counter], events: Iterable[CounterEvent]) -> Optional[str]:
    """Render every event as a CSV row, oldest first.

    Names come from `counters`, deleted ones included; an event whose
    counter cannot be found is attributed to "Unknown".

    Returns:
        CSV text, or None when there are no events at all
    """
    rows = sorted(events, key=lambda e: e.timestamp)
    if not rows:
        return None

    names = {c.id: c.name for c in counters}
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for event in rows:
        writer.writerow(
            [
                event.timestamp.date().isoformat(),
                event.timestamp.strftime("%H:%M:%S"),
                names.get(event.counter_id, UNKNOWN_COUNTER),
                format_delta(event.delta),
                event.id,
            ]
        )
    return buf.getvalue()


async def export_events(store: CounterStore, destination: Path) -> int:
    """Write the CSV report to `destination`.

    Returns:
        Number of event rows written; 0 means nothing to export and no
        file is created.
    """
    counters = await store.get_all(COUNTERS)
    events = await store.get_all(EVENTS)
    text = render_events_csv(counters, events)
    if text is None:
        logger.info("Nothing to export")
        return 0

    destination.parent.mkdir(parents=True, exist_ok=True)
    destination.write_text(text, encoding="utf-8")
    logger.info("Exported %d event(s) to %s", len(events), destination)
    return len(events)
