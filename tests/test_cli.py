"""Tests for the Typer CLI."""

import pytest
from typer.testing import CliRunner

from tally.cli import app

runner = CliRunner()


@pytest.fixture
def cli(tmp_path):
    """Invoke the CLI against a fresh, initialized data directory."""
    data_dir = tmp_path / "data"

    def invoke(*args, **kwargs):
        return runner.invoke(app, ["--data-dir", str(data_dir), *args], **kwargs)

    result = invoke("init")
    assert result.exit_code == 0, result.output
    invoke.data_dir = data_dir
    return invoke


def test_init_is_idempotent(cli):
    result = cli("init")
    assert result.exit_code == 0
    assert "already exists" in result.output


def test_requires_init(tmp_path):
    result = runner.invoke(app, ["--data-dir", str(tmp_path / "nowhere"), "board"])
    assert result.exit_code == 1
    assert "tally init" in result.output


def test_add_inc_dec_board(cli):
    assert cli("add", "Coffee").exit_code == 0
    assert cli("inc", "Coffee").exit_code == 0
    assert cli("inc", "Coffee").exit_code == 0
    assert cli("dec", "Coffee").exit_code == 0

    result = cli("board", "--period", "hour")

    assert result.exit_code == 0
    assert "Coffee" in result.output
    assert "Just now" in result.output


def test_inc_by_amount(cli):
    cli("add", "Water", "--step", "2")
    result = cli("inc", "Water", "--by", "0.5")
    assert result.exit_code == 0
    assert "+0.5" in result.output


def test_add_rejects_empty_name(cli):
    result = cli("add", "  ")
    assert result.exit_code == 1
    assert "Invalid input" in result.output


def test_add_rejects_non_numeric_step(cli):
    result = cli("add", "Coffee", "--step", "many")
    assert result.exit_code == 1


def test_unknown_counter(cli):
    result = cli("inc", "Nope")
    assert result.exit_code == 1
    assert "No counter matching" in result.output


def test_archive_and_delete(cli):
    cli("add", "Coffee")
    cli("add", "Tea")

    assert cli("archive", "Tea").exit_code == 0
    active = cli("board")
    archived = cli("board", "--archived")
    assert "Tea" not in active.output
    assert "Tea" in archived.output

    assert cli("delete", "Coffee", "--yes").exit_code == 0
    assert "No counters yet" in cli("board").output


def test_delete_asks_for_confirmation(cli):
    cli("add", "Coffee")
    result = cli("delete", "Coffee", input="n\n")
    assert "Cancelled" in result.output
    assert "Coffee" in cli("board").output


def test_edit(cli):
    cli("add", "Coffee")
    result = cli("edit", "Coffee", "--name", "Espresso", "--step", "2")
    assert result.exit_code == 0
    assert "Espresso" in cli("board").output


def test_reorder_and_move(cli):
    for name in ("A", "B", "C"):
        cli("add", name)

    result = cli("reorder", "C", "A", "B")
    assert result.exit_code == 0
    assert "C, A, B" in result.output

    result = cli("move", "B", "-2")
    assert result.exit_code == 0
    assert "B, C, A" in result.output


def test_export(cli, tmp_path):
    destination = tmp_path / "out.csv"
    cli("add", "Coffee")

    empty = cli("export", "--output", str(destination))
    assert "Nothing to export" in empty.output
    assert not destination.exists()

    cli("inc", "Coffee")
    result = cli("export", "--output", str(destination))
    assert result.exit_code == 0
    assert destination.read_text(encoding="utf-8").startswith("Date,Time,Counter Name,Delta,Event ID")


def test_prefs_persist(cli):
    result = cli("prefs", "--sort", "highest", "--period", "week", "--compact")
    assert result.exit_code == 0

    shown = cli("prefs")
    assert "highest" in shown.output
    assert "week" in shown.output
    assert "True" in shown.output


def test_events_tail(cli):
    assert "No events in ledger" in cli("events", "tail").output
    cli("add", "Coffee")
    cli("inc", "Coffee")
    result = cli("events", "tail")
    assert result.exit_code == 0
    assert "Coffee" in result.output


def test_version(cli):
    result = cli("version")
    assert result.exit_code == 0
    assert "Tally v" in result.output


def test_unknown_log_level_does_not_crash(cli, monkeypatch):
    monkeypatch.setenv("TALLY_LOG_LEVEL", "verbose")
    result = cli("colors")
    assert result.exit_code == 0, result.output
