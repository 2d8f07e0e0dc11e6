"""
StudyTrack Tracking - Runtime components for recording progress.

This module provides:
- CompletionModel: Chapter/section completion for one textbook
- ProgressStore: Owner of a course's completion record
- TimeAccumulator: Study clock with periodic flushes
- CourseSession: One open textbook, wiring the above together
- Summaries: Course-level progress and ordering
"""

from .clock import (
    Clock,
    SystemClock,
    format_day,
)

from .completion import (
    CompletionModel,
    ChapterEntry,
)

from .store import (
    CompletionPersistence,
    ProgressStore,
    rebase_completion,
)

from .timer import (
    TimeAccumulator,
    DEFAULT_TICK_INTERVAL,
    MAX_CATCH_UP_TICKS,
)

from .summary import (
    build_models,
    calculate_course_progress,
    count_completed_chapters,
    is_course_complete,
    is_course_started,
    is_course_completable,
    sort_courses,
)

from .session import CourseSession

__all__ = [
    # Clock
    "Clock",
    "SystemClock",
    "format_day",
    # Completion
    "CompletionModel",
    "ChapterEntry",
    # Store
    "CompletionPersistence",
    "ProgressStore",
    "rebase_completion",
    # Timer
    "TimeAccumulator",
    "DEFAULT_TICK_INTERVAL",
    "MAX_CATCH_UP_TICKS",
    # Summary
    "build_models",
    "calculate_course_progress",
    "count_completed_chapters",
    "is_course_complete",
    "is_course_started",
    "is_course_completable",
    "sort_courses",
    # Session
    "CourseSession",
]
