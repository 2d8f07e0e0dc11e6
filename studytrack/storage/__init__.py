"""
StudyTrack Storage - Durable state and course files.

This module provides:
- ProgressDatabase: SQLite store for progress, settings, active courses
- DatabasePersistence: Async persistence adapter for ProgressStore
- CourseLibrary: Course definitions on disk
"""

from .database import (
    ProgressDatabase,
)

from .persistence import (
    DatabasePersistence,
)

from .library import (
    CourseLibrary,
    COURSE_INDEX,
    into_relative_path,
)

__all__ = [
    "ProgressDatabase",
    "DatabasePersistence",
    "CourseLibrary",
    "COURSE_INDEX",
    "into_relative_path",
]
