"""
StudyTrack Graphing - Pure data preparation for progress graphs.

This module provides:
- Calendar aggregation and level bucketing for heatmaps
- Cell states for time meters and chapter maps
"""

from .calendar import (
    WEEK_DAYS,
    NO_DATA,
    day_index,
    unelapsed_days,
    grid_position,
    aggregate_calendar,
    bucket_level,
    bucket_levels,
)

from .meters import (
    FINISHED,
    INCOMPLETE,
    EMPTY,
    meter_states,
    chapter_state,
)

__all__ = [
    # Calendar
    "WEEK_DAYS",
    "NO_DATA",
    "day_index",
    "unelapsed_days",
    "grid_position",
    "aggregate_calendar",
    "bucket_level",
    "bucket_levels",
    # Meters
    "FINISHED",
    "INCOMPLETE",
    "EMPTY",
    "meter_states",
    "chapter_state",
]
