"""Pydantic models for Tally."""

from .counter import DEFAULT_COLOR, PRESET_COLORS, Counter, LifecycleState
from .event import CounterEvent
from .view import CounterStats, CounterView, Period, SortMethod, ViewState

__all__ = [
    "Counter",
    "CounterEvent",
    "LifecycleState",
    "DEFAULT_COLOR",
    "PRESET_COLORS",
    # Read side
    "Period",
    "SortMethod",
    "ViewState",
    "CounterStats",
    "CounterView",
]
