"""View preferences persisted outside the counter store."""

import json
import logging
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from .models import Period, SortMethod, ViewState

logger = logging.getLogger(__name__)


class ViewPreferences(BaseModel):
    """Selected sort, aggregation period and display density."""

    sort: SortMethod = Field(default=SortMethod.MANUAL)
    period: Period = Field(default=Period.DAY)
    compact: bool = Field(default=False)

    @classmethod
    def load(cls, prefs_file: Path) -> "ViewPreferences":
        """Load preferences from JSON; fall back to defaults on any problem."""
        if not prefs_file.exists():
            return cls()

        try:
            with open(prefs_file, "r", encoding="utf-8") as f:
                data = json.load(f)
            return cls(**data)
        except (OSError, json.JSONDecodeError, TypeError, ValidationError) as e:
            logger.warning(f"Failed to load preferences {prefs_file}: {e}, using defaults")
            return cls()

    def save(self, prefs_file: Path) -> None:
        """Save preferences to JSON atomically."""
        prefs_file.parent.mkdir(parents=True, exist_ok=True)

        temp_file = prefs_file.with_suffix(".tmp")
        try:
            with open(temp_file, "w", encoding="utf-8") as f:
                json.dump(self.model_dump(mode="json"), f, indent=2)
            temp_file.replace(prefs_file)
            logger.debug(f"Saved preferences to {prefs_file}")
        except OSError as e:
            logger.error(f"Failed to save preferences to {prefs_file}: {e}")
            temp_file.unlink(missing_ok=True)
            raise

    def view_state(self) -> ViewState:
        return ViewState(sort=self.sort, period=self.period)
