"""End-to-end tests of the read path."""

from datetime import timedelta

import pytest

from tally.board import load_board
from tally.models import Period, SortMethod, ViewState


@pytest.mark.asyncio
async def test_coffee_end_to_end(manager, ledger, store, now):
    """Create Coffee, record +1, +1, -1 within the hour."""
    coffee = await manager.create("Coffee", start_value=0, step_value=1)
    await ledger.step(coffee.id, now=now - timedelta(minutes=20))
    await ledger.step(coffee.id, now=now - timedelta(minutes=10))
    third = await ledger.step(coffee.id, -1, now=now - timedelta(minutes=2))

    [view] = await load_board(store, ViewState(period=Period.HOUR), now=now)

    assert view.name == "Coffee"
    assert view.lifetime_total == 1
    assert view.windowed_value == 1
    assert view.stats.last_event_at == third.timestamp


@pytest.mark.asyncio
async def test_water_end_to_end(manager, ledger, store, now):
    """Water: start 5, step 2, one event yesterday and one today."""
    water = await manager.create("Water", start_value=5, step_value=2)
    await ledger.step(water.id, now=now - timedelta(days=1))
    await ledger.step(water.id, now=now - timedelta(hours=1))

    [view] = await load_board(store, ViewState(period=Period.DAY), now=now)

    assert view.stats.windowed_delta == 2
    assert view.windowed_value == 7
    assert view.lifetime_total == 9


@pytest.mark.asyncio
async def test_archive_moves_between_views(manager, ledger, store, now):
    counter = await manager.create("Coffee", start_value=1)
    await ledger.record_event(counter.id, 4, now=now)

    before = await load_board(store, ViewState(), now=now)
    await manager.archive(counter.id)
    active = await load_board(store, ViewState(), now=now)
    archived = await load_board(store, ViewState(), now=now, archived=True)

    assert [v.id for v in before] == [counter.id]
    assert active == []
    assert [v.id for v in archived] == [counter.id]
    assert archived[0].lifetime_total == before[0].lifetime_total == 5


@pytest.mark.asyncio
async def test_deleted_counter_disappears_but_events_remain(manager, ledger, store, now):
    keep = await manager.create("Keep")
    drop = await manager.create("Drop")
    await ledger.record_event(drop.id, 3, now=now)
    await manager.delete(drop.id)
    # An event for the deleted counter arriving afterwards is still recorded.
    await ledger.record_event(drop.id, 1, now=now)

    for sort in SortMethod:
        for period in Period:
            for archived in (False, True):
                views = await load_board(store, ViewState(sort=sort, period=period), now=now, archived=archived)
                assert drop.id not in [v.id for v in views]

    assert len(await store.get_events_for_counter(drop.id)) == 2
    assert [v.id for v in await load_board(store, ViewState(), now=now)] == [keep.id]


@pytest.mark.asyncio
async def test_board_applies_sort(manager, ledger, store, now):
    low = await manager.create("Low")
    high = await manager.create("High")
    await ledger.record_event(high.id, 10, now=now)

    manual = await load_board(store, ViewState(sort=SortMethod.MANUAL), now=now)
    highest = await load_board(store, ViewState(sort=SortMethod.HIGHEST), now=now)

    assert [v.id for v in manual] == [low.id, high.id]
    assert [v.id for v in highest] == [high.id, low.id]
