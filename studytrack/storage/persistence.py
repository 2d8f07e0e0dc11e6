"""
Async persistence adapter over ProgressDatabase.

Runs each SQLite call in a worker thread so the event loop keeps
ticking while a write is in flight.
"""

import asyncio
import logging
import sqlite3

from pydantic import ValidationError

from studytrack.errors import PersistenceError
from studytrack.schemas import Course, CourseCompletionData
from studytrack.tracking.clock import Clock

from .database import ProgressDatabase


logger = logging.getLogger(__name__)


class DatabasePersistence:
    """CompletionPersistence backed by a ProgressDatabase."""

    def __init__(self, database: ProgressDatabase, clock: Clock):
        self.database = database
        self.clock = clock

    async def load(self, course_id: str) -> tuple[CourseCompletionData, int]:
        try:
            return await asyncio.to_thread(self.database.get_course_completion, course_id)
        except (sqlite3.Error, ValidationError) as e:
            raise PersistenceError(f"Could not read progress for course {course_id}: {e}") from e

    async def save(self, course: Course, data: CourseCompletionData, version: int) -> bool:
        try:
            written = await asyncio.to_thread(
                self.database.set_course_completion,
                course,
                data,
                version,
                self.clock.today(),
            )
        except (sqlite3.Error, ValidationError) as e:
            raise PersistenceError(f"Could not write progress for course {course.id}: {e}") from e

        if not written:
            logger.warning(f"Stored progress for {course.id} is newer than snapshot {version}")
        return written
