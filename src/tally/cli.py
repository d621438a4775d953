"""Typer-based CLI for Tally."""

import asyncio
import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from rich.text import Text

from .board import load_board
from .config import TallyConfig
from .errors import InvalidInput, StorageUnavailable, TallyError
from .export import default_export_name, export_events
from .humanize import format_number, time_ago
from .ledger import EventLedger, local_now
from .lifecycle import LifecycleManager
from .models import PRESET_COLORS, Counter, CounterView, Period, SortMethod, ViewState
from .ordering import move as move_counter
from .ordering import reorder as reorder_counters
from .paths import DataPaths
from .prefs import ViewPreferences
from .store import COUNTERS, CounterStore

app = typer.Typer(
    name="tally",
    help="Tally - track named counters backed by an append-only event ledger",
    add_completion=False,
)

console = Console()
err_console = Console(stderr=True)


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


@app.callback()
def main_options(
    ctx: typer.Context,
    data_dir: str = typer.Option(
        None,
        "--data-dir",
        "-d",
        help="Path to data directory (default: .tally/config.toml, TALLY_DATA_DIR env or ~/.tally)",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug logging",
    ),
):
    """Tally - track named counters backed by an append-only event ledger."""
    config = TallyConfig.from_env(data_dir)
    _setup_logging("DEBUG" if debug else config.log_level)
    ctx.obj = config


def _paths(ctx: typer.Context) -> DataPaths:
    return DataPaths.from_config(ctx.obj)


def _open_store(ctx: typer.Context) -> CounterStore:
    paths = _paths(ctx)
    if not paths.db_file.exists():
        console.print(f"[red]Error: No Tally data at {paths.root}[/red]")
        console.print("[yellow]Run 'tally init' first[/yellow]")
        raise typer.Exit(code=1)
    try:
        return CounterStore(paths.db_file)
    except StorageUnavailable as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)


def _run(coro):
    """Run a core coroutine, mapping Tally errors to a CLI failure."""
    try:
        return asyncio.run(coro)
    except InvalidInput as e:
        console.print(f"[red]Invalid input: {e}[/red]")
        raise typer.Exit(code=1)
    except TallyError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)


async def _resolve(store: CounterStore, ref: str) -> Optional[Counter]:
    """Find a live counter by exact id, exact name or unique id prefix."""
    counters = [c for c in await store.get_all(COUNTERS) if c.is_live]
    for counter in counters:
        if counter.id == ref:
            return counter
    by_name = [c for c in counters if c.name == ref]
    if len(by_name) == 1:
        return by_name[0]
    by_prefix = [c for c in counters if c.id.startswith(ref)]
    if len(by_prefix) == 1:
        return by_prefix[0]
    return None


def _require(store: CounterStore, ref: str) -> Counter:
    counter = _run(_resolve(store, ref))
    if counter is None:
        console.print(f"[red]Error: No counter matching '{ref}'[/red]")
        raise typer.Exit(code=1)
    return counter


def _board_table(views: list[CounterView], prefs: ViewPreferences, now: datetime, title: str) -> Table:
    table = Table(title=title)
    table.add_column("", no_wrap=True)
    table.add_column("Name", style="bold")
    table.add_column(prefs.period.value.capitalize(), justify="right", style="cyan")
    if not prefs.compact:
        table.add_column("Total", justify="right")
        table.add_column("Step", justify="right", style="dim")
        table.add_column("Last", style="dim")
        table.add_column("ID", style="yellow", no_wrap=True)

    for view in views:
        row = [
            Text("■", style=view.counter.color),
            view.name,
            format_number(view.windowed_value),
        ]
        if not prefs.compact:
            row += [
                format_number(view.lifetime_total),
                format_number(view.counter.step_value),
                time_ago(view.stats.last_event_at, now),
                view.id[:8],
            ]
        table.add_row(*row)
    return table


@app.command()
def init(ctx: typer.Context):
    """Create the data directory, counter store and preferences.

    Idempotent: existing data is never touched.
    """
    paths = _paths(ctx)
    for directory in paths.get_all_directories():
        directory.mkdir(parents=True, exist_ok=True)

    existed = paths.db_file.exists()
    try:
        CounterStore(paths.db_file)
    except StorageUnavailable as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)

    if existed:
        console.print(f"[dim]Store already exists: {paths.db_file}[/dim]")
    else:
        console.print(f"[green]+[/green] Created store: {paths.db_file}")

    if not paths.prefs_file.exists():
        ViewPreferences().save(paths.prefs_file)
        console.print(f"[green]+[/green] Created preferences: {paths.prefs_file}")

    console.print(f"[bold green]Tally ready at[/bold green] {paths.root}")


@app.command()
def add(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Counter name"),
    color: str = typer.Option(None, "--color", "-c", help="Display color (default: first preset)"),
    start: str = typer.Option("0", "--start", help="Start value added to every total"),
    step: str = typer.Option("1", "--step", help="Amount per increment/decrement"),
):
    """Create a new counter."""
    store = _open_store(ctx)
    counter = _run(LifecycleManager(store).create(name, color, start, step))
    console.print(f"[green]+[/green] Created [bold]{counter.name}[/bold] [dim]({counter.id[:8]})[/dim]")


@app.command()
def edit(
    ctx: typer.Context,
    counter_ref: str = typer.Argument(..., metavar="COUNTER", help="Counter id, id prefix or name"),
    name: str = typer.Option(None, "--name", help="New name"),
    color: str = typer.Option(None, "--color", "-c", help="New color"),
    start: str = typer.Option(None, "--start", help="New start value"),
    step: str = typer.Option(None, "--step", help="New step value"),
):
    """Edit a counter's name, color, start or step value."""
    store = _open_store(ctx)
    counter = _require(store, counter_ref)
    updated = _run(
        LifecycleManager(store).update(
            counter.id,
            name if name is not None else counter.name,
            color or counter.color,
            start if start is not None else counter.start_value,
            step if step is not None else counter.step_value,
        )
    )
    if updated is None:
        console.print("[yellow]Counter no longer exists; nothing changed[/yellow]")
        return
    console.print(f"[green]Updated[/green] [bold]{updated.name}[/bold]")


def _step(ctx: typer.Context, counter_ref: str, direction: int, amount: Optional[str]) -> None:
    store = _open_store(ctx)
    counter = _require(store, counter_ref)
    ledger = EventLedger(store)
    if amount is None:
        event = _run(ledger.step(counter.id, direction))
    else:
        try:
            value = float(amount)
        except ValueError:
            console.print(f"[red]Invalid input: amount must be a number, got {amount!r}[/red]")
            raise typer.Exit(code=1)
        event = _run(ledger.record_event(counter.id, direction * value))
    if event is None:
        console.print("[yellow]Counter no longer exists; nothing recorded[/yellow]")
        return
    console.print(f"[bold]{counter.name}[/bold] {event.delta:+g}")


@app.command()
def inc(
    ctx: typer.Context,
    counter_ref: str = typer.Argument(..., metavar="COUNTER", help="Counter id, id prefix or name"),
    by: str = typer.Option(None, "--by", help="Amount instead of the counter's step"),
):
    """Increment a counter by its step value."""
    _step(ctx, counter_ref, 1, by)


@app.command()
def dec(
    ctx: typer.Context,
    counter_ref: str = typer.Argument(..., metavar="COUNTER", help="Counter id, id prefix or name"),
    by: str = typer.Option(None, "--by", help="Amount instead of the counter's step"),
):
    """Decrement a counter by its step value."""
    _step(ctx, counter_ref, -1, by)


@app.command()
def board(
    ctx: typer.Context,
    archived: bool = typer.Option(False, "--archived", "-a", help="Show archived counters"),
    period: Optional[Period] = typer.Option(None, "--period", "-p", help="Aggregation period (default: saved)"),
    sort: Optional[SortMethod] = typer.Option(None, "--sort", "-s", help="Sort method (default: saved)"),
):
    """Show counters with their values for the selected period."""
    store = _open_store(ctx)
    paths = _paths(ctx)
    prefs = ViewPreferences.load(paths.prefs_file)
    if period is not None:
        prefs = prefs.model_copy(update={"period": period})
    if sort is not None:
        prefs = prefs.model_copy(update={"sort": sort})

    now = local_now()
    views = _run(load_board(store, prefs.view_state(), now=now, archived=archived))
    if not views:
        console.print("[dim]No archived counters[/dim]" if archived else "[dim]No counters yet[/dim]")
        return

    title = "Archived counters" if archived else f"Counters ({prefs.sort.value})"
    console.print(_board_table(views, prefs, now, title))


def _lifecycle_command(ctx: typer.Context, counter_ref: str, action: str, done: str) -> None:
    store = _open_store(ctx)
    counter = _require(store, counter_ref)
    manager = LifecycleManager(store)
    updated = _run(getattr(manager, action)(counter.id))
    if updated is None:
        console.print("[yellow]Counter no longer exists; nothing changed[/yellow]")
        return
    console.print(f"[green]{done}[/green] [bold]{updated.name}[/bold]")


@app.command()
def archive(
    ctx: typer.Context,
    counter_ref: str = typer.Argument(..., metavar="COUNTER", help="Counter id, id prefix or name"),
):
    """Move a counter to the archive."""
    _lifecycle_command(ctx, counter_ref, "archive", "Archived")


@app.command()
def unarchive(
    ctx: typer.Context,
    counter_ref: str = typer.Argument(..., metavar="COUNTER", help="Counter id, id prefix or name"),
):
    """Bring an archived counter back to the board."""
    _lifecycle_command(ctx, counter_ref, "unarchive", "Restored")


@app.command()
def delete(
    ctx: typer.Context,
    counter_ref: str = typer.Argument(..., metavar="COUNTER", help="Counter id, id prefix or name"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """Delete a counter. Its history stays in the ledger."""
    if not yes and not typer.confirm(f"Delete counter '{counter_ref}'? This cannot be undone"):
        console.print("[dim]Cancelled[/dim]")
        return
    _lifecycle_command(ctx, counter_ref, "delete", "Deleted")


@app.command()
def reorder(
    ctx: typer.Context,
    counter_refs: List[str] = typer.Argument(..., metavar="COUNTER...", help="Counters in their new order"),
):
    """Set the manual order of the listed counters."""
    store = _open_store(ctx)
    ids = [_require(store, ref).id for ref in counter_refs]
    ordered = _run(reorder_counters(store, ids))
    console.print(f"[green]Reordered[/green] {', '.join(c.name for c in ordered)}")


@app.command(context_settings={"ignore_unknown_options": True})
def move(
    ctx: typer.Context,
    counter_ref: str = typer.Argument(..., metavar="COUNTER", help="Counter id, id prefix or name"),
    offset: int = typer.Argument(..., help="Places to move; negative moves up"),
):
    """Move a counter up or down in the manual order of the active board."""
    store = _open_store(ctx)
    counter = _require(store, counter_ref)
    views = _run(load_board(store, ViewState(sort=SortMethod.MANUAL)))
    ordered = _run(move_counter(store, counter.id, offset, [v.id for v in views]))
    if not ordered:
        console.print("[yellow]Counter is not on the active board; nothing moved[/yellow]")
        return
    console.print(f"[green]Order:[/green] {', '.join(c.name for c in ordered)}")


@app.command()
def export(
    ctx: typer.Context,
    output: str = typer.Option(None, "--output", "-o", help="CSV file (default: <data-dir>/exports/tally-export-<date>.csv)"),
):
    """Export every recorded event as CSV."""
    store = _open_store(ctx)
    paths = _paths(ctx)
    destination = Path(output) if output else paths.exports / default_export_name(local_now().date())
    written = _run(export_events(store, destination))
    if written == 0:
        console.print("[yellow]Nothing to export[/yellow]")
        return
    console.print(f"[green]+[/green] Exported {written} event(s) to {destination}")


@app.command()
def prefs(
    ctx: typer.Context,
    sort: Optional[SortMethod] = typer.Option(None, "--sort", "-s", help="Default sort method"),
    period: Optional[Period] = typer.Option(None, "--period", "-p", help="Default aggregation period"),
    compact: Optional[bool] = typer.Option(None, "--compact/--no-compact", help="Compact board display"),
):
    """Show or change saved view preferences."""
    paths = _paths(ctx)
    current = ViewPreferences.load(paths.prefs_file)
    changes = {k: v for k, v in {"sort": sort, "period": period, "compact": compact}.items() if v is not None}
    if changes:
        current = current.model_copy(update=changes)
        current.save(paths.prefs_file)
        console.print("[green]Preferences saved[/green]")

    console.print(f"  [dim]Sort:[/dim]    {current.sort.value}")
    console.print(f"  [dim]Period:[/dim]  {current.period.value}")
    console.print(f"  [dim]Compact:[/dim] {current.compact}")


@app.command()
def colors():
    """List the preset colors."""
    for color in PRESET_COLORS:
        console.print(Text("■ ", style=color) + Text(color))


events_app = typer.Typer(help="Event ledger commands")
app.add_typer(events_app, name="events")


@events_app.command("tail")
def events_tail(
    ctx: typer.Context,
    n: int = typer.Option(
        20,
        "--n",
        help="Number of recent events to display",
    ),
):
    """Display the last N events from the ledger."""
    store = _open_store(ctx)
    events = _run(EventLedger(store).tail(n))
    if not events:
        console.print("[dim]No events in ledger[/dim]")
        return

    names = {c.id: c.name for c in _run(store.get_all(COUNTERS))}
    table = Table(title=f"Last {len(events)} Event(s)")
    table.add_column("Timestamp", style="cyan", no_wrap=True)
    table.add_column("Counter", style="magenta")
    table.add_column("Delta", justify="right")
    table.add_column("Event ID", style="yellow")

    for event in events:
        table.add_row(
            event.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
            names.get(event.counter_id, "Unknown"),
            f"{event.delta:+g}",
            event.id[:8] + "...",
        )
    console.print(table)


@app.command()
def version():
    """Show Tally version."""
    from . import __version__
    console.print(f"Tally v{__version__}")


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
