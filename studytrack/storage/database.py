"""
ProgressDatabase - Store course progress in ~/.studytrack/progress.db.

Stores user state separately from course content:
- Per-course completion records (versioned)
- Overall daily history across courses
- Active course list
- Settings
"""

import sqlite3
from datetime import date, datetime
from pathlib import Path
from typing import Optional

from studytrack.config import DEFAULT_PROGRESS_DB
from studytrack.schemas import Course, CourseCompletionData, OverallProgress, Settings
from studytrack.tracking.clock import format_day
from studytrack.tracking.summary import count_completed_chapters


OVERALL_KEY = "overall"
SETTINGS_KEY = "settings"


class ProgressDatabase:
    """
    Track course progress in an SQLite database.

    Each method opens its own connection, so one instance can be shared
    with worker threads.
    """

    def __init__(self, db_path: Optional[Path] = None):
        """
        Initialize progress database.

        Args:
            db_path: Path to progress.db (default: ~/.studytrack/progress.db)
        """
        self.db_path = Path(db_path) if db_path else DEFAULT_PROGRESS_DB
        self._ensure_database()

    def _ensure_database(self):
        """Create database and tables if they don't exist."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        conn = sqlite3.connect(str(self.db_path))
        try:
            conn.executescript("""
                CREATE TABLE IF NOT EXISTS course_completion (
                    course_id TEXT PRIMARY KEY,
                    data TEXT NOT NULL,
                    version INTEGER NOT NULL DEFAULT 0,
                    updated_at TEXT
                );

                CREATE TABLE IF NOT EXISTS documents (
                    key TEXT PRIMARY KEY,
                    data TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS active_courses (
                    course_id TEXT PRIMARY KEY,
                    position INTEGER NOT NULL
                );
            """)
            conn.commit()
        finally:
            conn.close()

    def _get_connection(self) -> sqlite3.Connection:
        """Get a new database connection."""
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        return conn

    # -------------------------------------------------------------------------
    # Course Completion
    # -------------------------------------------------------------------------

    def get_course_completion(self, course_id: str) -> tuple[CourseCompletionData, int]:
        """
        Get the stored completion record for a course.

        Returns:
            Tuple of (record, version); an empty record and version 0 if
            nothing has been stored yet.
        """
        conn = self._get_connection()
        try:
            row = conn.execute(
                "SELECT data, version FROM course_completion WHERE course_id = ?",
                (course_id,)
            ).fetchone()
            if not row:
                return CourseCompletionData(), 0
            return CourseCompletionData.model_validate_json(row["data"]), row["version"]
        finally:
            conn.close()

    def set_course_completion(
        self,
        course: Course,
        data: CourseCompletionData,
        version: int,
        day: date,
    ) -> bool:
        """
        Store a completion record if it is newer than the stored one.

        The overall history for `day` is updated with the change in study
        time and completed chapters against the previously stored record.

        Args:
            course: Course the record belongs to
            data: Full completion record
            version: Snapshot version; must exceed the stored version
            day: Day the changes are attributed to

        Returns:
            True if written, False if a newer version was already stored
        """
        conn = self._get_connection()
        try:
            conn.execute("BEGIN IMMEDIATE")

            row = conn.execute(
                "SELECT data, version FROM course_completion WHERE course_id = ?",
                (course.id,)
            ).fetchone()
            if row and row["version"] >= version:
                conn.rollback()
                return False

            old = CourseCompletionData.model_validate_json(row["data"]) if row else CourseCompletionData()

            conn.execute(
                """INSERT INTO course_completion (course_id, data, version, updated_at)
                   VALUES (?, ?, ?, ?)
                   ON CONFLICT(course_id) DO UPDATE SET
                     data = excluded.data,
                     version = excluded.version,
                     updated_at = excluded.updated_at""",
                (course.id, data.model_dump_json(), version, datetime.now().isoformat())
            )

            time_change = data.total_time() - old.total_time()
            chapter_change = count_completed_chapters(course, data) - count_completed_chapters(course, old)

            overall = self._read_document(conn, OVERALL_KEY, OverallProgress)
            overall.update(chapter_change, time_change, format_day(day))
            self._write_document(conn, OVERALL_KEY, overall)

            conn.commit()
            return True
        finally:
            # Closing without commit rolls the transaction back
            conn.close()

    def reset_course_progress(self, course_id: str):
        """Forget the completion record of a course; overall history is kept."""
        conn = self._get_connection()
        try:
            conn.execute(
                "DELETE FROM course_completion WHERE course_id = ?",
                (course_id,)
            )
            conn.commit()
        finally:
            conn.close()

    # -------------------------------------------------------------------------
    # Overall Progress & Settings
    # -------------------------------------------------------------------------

    def _read_document(self, conn: sqlite3.Connection, key: str, model):
        row = conn.execute("SELECT data FROM documents WHERE key = ?", (key,)).fetchone()
        if not row:
            return model()
        return model.model_validate_json(row["data"])

    def _write_document(self, conn: sqlite3.Connection, key: str, document):
        conn.execute(
            """INSERT INTO documents (key, data) VALUES (?, ?)
               ON CONFLICT(key) DO UPDATE SET data = excluded.data""",
            (key, document.model_dump_json())
        )

    def get_overall_progress(self) -> OverallProgress:
        """Get daily totals across all courses."""
        conn = self._get_connection()
        try:
            return self._read_document(conn, OVERALL_KEY, OverallProgress)
        finally:
            conn.close()

    def get_settings(self) -> Settings:
        conn = self._get_connection()
        try:
            return self._read_document(conn, SETTINGS_KEY, Settings)
        finally:
            conn.close()

    def set_settings(self, settings: Settings):
        conn = self._get_connection()
        try:
            self._write_document(conn, SETTINGS_KEY, settings)
            conn.commit()
        finally:
            conn.close()

    # -------------------------------------------------------------------------
    # Active Courses
    # -------------------------------------------------------------------------

    def get_active_courses(self) -> list[str]:
        """Get active course IDs in display order."""
        conn = self._get_connection()
        try:
            cursor = conn.execute(
                "SELECT course_id FROM active_courses ORDER BY position"
            )
            return [row["course_id"] for row in cursor.fetchall()]
        finally:
            conn.close()

    def set_active_courses(self, course_ids: list[str]):
        """Replace the active course list."""
        conn = self._get_connection()
        try:
            conn.execute("DELETE FROM active_courses")
            conn.executemany(
                "INSERT OR IGNORE INTO active_courses (course_id, position) VALUES (?, ?)",
                [(course_id, position) for position, course_id in enumerate(course_ids)]
            )
            conn.commit()
        finally:
            conn.close()
