"""Pydantic models for counters."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

PRESET_COLORS: tuple[str, ...] = (
    "#FADCD9",
    "#F8E2CF",
    "#F5EECC",
    "#C9E4DE",
    "#C6DEF1",
    "#DBCDF0",
    "#F2C6DE",
    "#F7D9C4",
    "#E2E2E2",
    "#C1E1C1",
    "#F0E6EF",
    "#E2D1F9",
)
DEFAULT_COLOR = PRESET_COLORS[0]


class LifecycleState(str, Enum):
    """Visibility state of a counter.

    `deleted` is terminal: the row and its events stay on disk but the
    counter disappears from every view and from aggregation.
    """

    ACTIVE = "active"
    ARCHIVED = "archived"
    DELETED = "deleted"


class Counter(BaseModel):
    """Configuration and display state of one tracked quantity.

    The counter never stores its value; values are derived from the
    event ledger on every read.
    """

    id: str = Field(description="Unique counter identifier (uuid4)")
    name: str = Field(description="Display label")
    color: str = Field(default=DEFAULT_COLOR, description="Opaque display color")
    start_value: float = Field(default=0.0, description="Offset added to every aggregated sum")
    step_value: float = Field(default=1.0, description="Delta applied per increment/decrement")
    order_index: int = Field(default=0, description="Rank used by the manual sort")
    state: LifecycleState = Field(default=LifecycleState.ACTIVE)
    created_at: datetime = Field(description="Creation timestamp (timezone-aware)")

    model_config = {"frozen": True}

    @property
    def archived(self) -> bool:
        return self.state is LifecycleState.ARCHIVED

    @property
    def deleted(self) -> bool:
        return self.state is LifecycleState.DELETED

    @property
    def is_live(self) -> bool:
        """True for every state except `deleted`."""
        return self.state is not LifecycleState.DELETED

    def to_record(self) -> dict:
        """Flat record with the boolean `archived`/`deleted` view of `state`."""
        data = self.model_dump(mode="json")
        data["archived"] = self.archived
        data["deleted"] = self.deleted
        return data
