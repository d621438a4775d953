"""Tests for data directory resolution."""

from pathlib import Path

from tally.config import TallyConfig, resolve_data_dir
from tally.paths import DataPaths


def test_cli_option_wins(tmp_path, monkeypatch):
    monkeypatch.setenv("TALLY_DATA_DIR", str(tmp_path / "env"))
    assert resolve_data_dir(str(tmp_path / "cli")) == (tmp_path / "cli").resolve()


def test_repo_config_before_env(tmp_path, monkeypatch):
    project = tmp_path / "project"
    (project / ".tally").mkdir(parents=True)
    (project / ".tally" / "config.toml").write_text('data_dir = "state"\n', encoding="utf-8")
    nested = project / "sub" / "dir"
    nested.mkdir(parents=True)
    monkeypatch.chdir(nested)
    monkeypatch.setenv("TALLY_DATA_DIR", str(tmp_path / "env"))

    assert resolve_data_dir() == (project / "state").resolve()


def test_malformed_repo_config_is_ignored(tmp_path, monkeypatch):
    (tmp_path / ".tally").mkdir()
    (tmp_path / ".tally" / "config.toml").write_text("data_dir = [", encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("TALLY_DATA_DIR", str(tmp_path / "env"))

    assert resolve_data_dir() == (tmp_path / "env").resolve()


def test_env_then_default(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("TALLY_DATA_DIR", str(tmp_path / "env"))
    assert resolve_data_dir() == (tmp_path / "env").resolve()

    monkeypatch.delenv("TALLY_DATA_DIR")
    assert resolve_data_dir() == Path("~/.tally").expanduser()


def test_from_env_reads_overrides(tmp_path, monkeypatch):
    monkeypatch.setenv("TALLY_DB_FILE", "other.sqlite")
    monkeypatch.setenv("TALLY_LOG_LEVEL", "debug")

    config = TallyConfig.from_env(str(tmp_path))
    paths = DataPaths.from_config(config)

    assert config.log_level == "DEBUG"
    assert paths.db_file == tmp_path.resolve() / "other.sqlite"
    assert paths.prefs_file == tmp_path.resolve() / "prefs.json"


def test_unknown_log_level_falls_back_to_warning(tmp_path, monkeypatch, caplog):
    monkeypatch.setenv("TALLY_LOG_LEVEL", "verbose")

    config = TallyConfig.from_env(str(tmp_path))

    assert config.log_level == "WARNING"
    assert "Unknown log level 'verbose'" in caplog.text
