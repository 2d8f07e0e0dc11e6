"""
Clock and visibility source.

Injected into the store, the accumulator and the calendar so none of them
read the wall clock directly.
"""

from datetime import date
from typing import Protocol


def format_day(day: date) -> str:
    """Format a date as a progress record key (YYYY-MM-DD)."""
    return day.isoformat()


class Clock(Protocol):
    def today(self) -> date:
        ...

    def is_foreground_visible(self) -> bool:
        ...


class SystemClock:
    """
    Local wall clock.

    Hosts with a visibility signal call set_visible(); the Streamlit app
    has none and leaves the clock visible.
    """

    def __init__(self, visible: bool = True):
        self.visible = visible

    def today(self) -> date:
        return date.today()

    def is_foreground_visible(self) -> bool:
        return self.visible

    def set_visible(self, visible: bool):
        self.visible = visible
