"""View-state and derived read models."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from .counter import Counter


class Period(str, Enum):
    """Aggregation window, anchored at the start of the enclosing period."""

    HOUR = "hour"
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


class SortMethod(str, Enum):
    MANUAL = "manual"
    ALPHABETICAL = "alphabetical"
    HIGHEST = "highest"


class ViewState(BaseModel):
    """Explicit view state threaded into aggregation and sorting."""

    sort: SortMethod = Field(default=SortMethod.MANUAL)
    period: Period = Field(default=Period.DAY)

    model_config = {"frozen": True}


class CounterStats(BaseModel):
    """Values derived from the ledger for one counter."""

    lifetime_total: float
    windowed_value: float
    windowed_delta: float = 0.0
    last_event_at: Optional[datetime] = None
    period_values: dict[Period, float] = Field(default_factory=dict)


class CounterView(BaseModel):
    """A counter joined with its derived stats, ready to render."""

    counter: Counter
    stats: CounterStats

    @property
    def id(self) -> str:
        return self.counter.id

    @property
    def name(self) -> str:
        return self.counter.name

    @property
    def windowed_value(self) -> float:
        return self.stats.windowed_value

    @property
    def lifetime_total(self) -> float:
        return self.stats.lifetime_total
