"""Configuration management for Tally."""

import logging
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator

try:
    import tomllib  # Python 3.11+
except ImportError:
    import tomli as tomllib  # Python < 3.11

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = Path("~/.tally")
DEFAULT_DB_FILE = "tally.sqlite"
DEFAULT_LOG_LEVEL = "WARNING"
LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


def _find_repo_root(start_dir: Path) -> Path:
    """Find the project root by walking upward looking for .git or .tally."""
    current_dir = start_dir

    while True:
        if (current_dir / ".git").exists() or (current_dir / ".tally").is_dir():
            return current_dir

        parent_dir = current_dir.parent
        if parent_dir == current_dir:
            return start_dir

        current_dir = parent_dir


def _load_repo_config_data(repo_root: Path) -> Optional[dict]:
    """Load .tally/config.toml if it exists."""
    config_file = repo_root / ".tally" / "config.toml"

    if not config_file.exists():
        return None

    try:
        with open(config_file, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.warning(f"Ignoring malformed config {config_file}: {e}")
        return None


def resolve_data_dir(cli_data_dir: Optional[str] = None) -> Path:
    """Resolve the data directory with the following precedence:

    1. CLI --data-dir option
    2. `data_dir` in .tally/config.toml (walking upward from CWD)
    3. TALLY_DATA_DIR environment variable
    4. ~/.tally
    """
    if cli_data_dir:
        return Path(cli_data_dir).expanduser().resolve()

    repo_root = _find_repo_root(Path.cwd())
    data = _load_repo_config_data(repo_root) or {}
    repo_value = data.get("data_dir")
    if isinstance(repo_value, str) and repo_value:
        path = Path(repo_value).expanduser()
        if not path.is_absolute():
            path = repo_root / path
        return path.resolve()

    env_value = os.environ.get("TALLY_DATA_DIR")
    if env_value:
        return Path(env_value).expanduser().resolve()

    return DEFAULT_DATA_DIR.expanduser()


class TallyConfig(BaseModel):
    """Configuration for the Tally data directory and logging."""

    data_dir: Path = Field(default_factory=lambda: DEFAULT_DATA_DIR.expanduser())
    db_file: str = Field(default=DEFAULT_DB_FILE)
    log_level: str = Field(default=DEFAULT_LOG_LEVEL)

    @field_validator("log_level", mode="before")
    @classmethod
    def _known_log_level(cls, value: object) -> str:
        level = str(value).strip().upper()
        if level not in LOG_LEVELS:
            logger.warning(f"Unknown log level {value!r}, using {DEFAULT_LOG_LEVEL}")
            return DEFAULT_LOG_LEVEL
        return level

    @classmethod
    def from_env(cls, cli_data_dir: Optional[str] = None) -> "TallyConfig":
        """Load configuration from CLI option, repo config, environment or defaults."""
        return cls(
            data_dir=resolve_data_dir(cli_data_dir),
            db_file=os.environ.get("TALLY_DB_FILE", DEFAULT_DB_FILE),
            log_level=os.environ.get("TALLY_LOG_LEVEL", DEFAULT_LOG_LEVEL),
        )
