"""
Calendar aggregation for the long-term progress heatmaps.

Turns a sparse day -> value record into a dense, newest-first list of
cells for a heatmap with one row per weekday:
- Days of the current week that have not happened yet are NO_DATA
- Days that passed without an entry are 0
- Nothing is emitted before the oldest entry
Everything here is pure; "today" is always passed in.
"""

import math
from collections.abc import Mapping
from datetime import date, timedelta
from typing import Optional, Sequence


# Monday=0, used by every weekday calculation in StudyTrack
WEEK_DAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")

NO_DATA = None

Cell = Optional[float]


def day_index(day: date) -> int:
    """Row of a day in the heatmap (Monday=0)."""
    return day.weekday()


def unelapsed_days(today: date) -> int:
    """Days of the current week after today."""
    return len(WEEK_DAYS) - 1 - day_index(today)


def grid_position(offset: int, today: date) -> tuple[int, int]:
    """
    Locate a cell of an aggregated sequence in the heatmap grid.

    Args:
        offset: Index into the sequence returned by aggregate_calendar
        today: Same day passed to aggregate_calendar

    Returns:
        (row, weeks_ago): weekday row (Monday=0) and column counted
        backwards from the current week
    """
    week_length = len(WEEK_DAYS)
    return week_length - 1 - offset % week_length, offset // week_length


def _merge_days(values: Mapping[str, float], today: date) -> list[tuple[date, float]]:
    merged: dict[date, float] = {}
    for key, value in values.items():
        day = date.fromisoformat(key)
        if day > today:
            continue
        merged[day] = merged.get(day, 0) + value
    return sorted(merged.items(), reverse=True)


def aggregate_calendar(values: Mapping[str, float], weeks: int, today: date) -> list[Cell]:
    """
    Build the dense heatmap sequence for one metric.

    Args:
        values: Sparse YYYY-MM-DD -> value record
        weeks: Number of weeks (columns) shown
        today: Current local day

    Returns:
        At most weeks * 7 cells, newest first. The leading NO_DATA cells
        are the rest of the current week, then today, then older days.
    """
    if weeks < 1:
        raise ValueError(f"At least one week must be displayed: {weeks}")

    limit = weeks * len(WEEK_DAYS)
    cells: list[Cell] = [NO_DATA] * unelapsed_days(today)

    entries = _merge_days(values, today)
    if not entries:
        cells.append(0)
        return cells[:limit]

    expected = today
    for day, value in entries:
        while expected > day and len(cells) < limit:
            cells.append(0)
            expected -= timedelta(days=1)
        if len(cells) >= limit:
            break
        cells.append(value)
        expected = day - timedelta(days=1)

    return cells[:limit]


def bucket_level(value: float, minimum: float, maximum: float, levels: int) -> int:
    """
    Map a value onto a discrete heatmap level in [0, levels].

    A value that falls short of level 1 but is at least halfway there is
    shown as level 1, so small amounts of activity stay visible.
    """
    if levels < 1:
        raise ValueError(f"At least one level is required: {levels}")
    if maximum <= minimum:
        raise ValueError(f"Maximum {maximum} must be greater than minimum {minimum}")

    normalized = (value - minimum) / ((maximum - minimum) / levels)
    normalized = min(max(normalized, 0.0), float(levels))

    level = math.floor(normalized)
    if level == 0 and normalized >= 0.5:
        level = 1
    return level


def bucket_levels(
    cells: Sequence[Cell],
    minimum: float,
    maximum: float,
    levels: int,
) -> list[Optional[int]]:
    """Bucket a whole sequence; NO_DATA cells stay NO_DATA."""
    return [
        NO_DATA if cell is NO_DATA else bucket_level(cell, minimum, maximum, levels)
        for cell in cells
    ]
