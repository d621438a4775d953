"""Pydantic models for ledger events."""

from datetime import date, datetime

from pydantic import BaseModel, Field, field_validator


class CounterEvent(BaseModel):
    """One signed change applied to a counter at a point in time.

    Append-only: never mutate or delete. Events outlive their counter;
    a deleted counter simply leaves its events orphaned.
    """

    id: str = Field(description="Unique event identifier (uuid4)")
    counter_id: str = Field(description="Owning counter id (non-owning reference)")
    timestamp: datetime = Field(description="Event instant (timezone-aware)")
    delta: float = Field(allow_inf_nan=False, description="Signed change")

    model_config = {"frozen": True}

    @field_validator("timestamp")
    @classmethod
    def _localize_naive(cls, value: datetime) -> datetime:
        # Naive timestamps are system local time.
        return value if value.tzinfo is not None else value.astimezone()

    @property
    def calendar_date(self) -> date:
        """Calendar date of the event in the timestamp's own time zone."""
        return self.timestamp.date()
