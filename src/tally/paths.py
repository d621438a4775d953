"""File layout of a Tally data directory."""

from pathlib import Path

from .config import TallyConfig


class DataPaths:
    """Manages paths within the Tally data directory."""

    def __init__(self, root: Path, db_file: str = "tally.sqlite"):
        self.root = root
        self.db_file = root / db_file
        self.prefs_file = root / "prefs.json"
        self.exports = root / "exports"

    @classmethod
    def from_config(cls, config: TallyConfig) -> "DataPaths":
        return cls(config.data_dir, config.db_file)

    def get_all_directories(self) -> list[Path]:
        return [self.root, self.exports]
