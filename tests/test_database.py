"""
Tests for ProgressDatabase and its async persistence adapter.
"""

import asyncio
import sqlite3
from datetime import date

import pytest

from studytrack.errors import PersistenceError
from studytrack.schemas import CourseCompletionData, Settings
from studytrack.storage import DatabasePersistence, ProgressDatabase

from conftest import FakeClock


@pytest.fixture
def database(tmp_path):
    return ProgressDatabase(tmp_path / "progress.db")


def record(seconds: int, sections: set[str]) -> CourseCompletionData:
    data = CourseCompletionData(time_spent={"2024-01-03": seconds} if seconds else {})
    data.book(0).completed_sections = set(sections)
    return data


class TestCourseCompletion:
    """Test versioned completion records."""

    def test_missing_record(self, database):
        data, version = database.get_course_completion("nothing")
        assert data == CourseCompletionData()
        assert version == 0

    def test_store_and_read(self, database, course):
        data = record(60, {"s1.1"})
        data.book(0).position = "page=3"
        assert database.set_course_completion(course, data, 1, date(2024, 1, 3)) is True

        stored, version = database.get_course_completion(course.id)
        assert version == 1
        assert stored.books[0].completed_sections == {"s1.1"}
        assert stored.books[0].position == "page=3"
        assert stored.time_spent == {"2024-01-03": 60}

    def test_older_versions_rejected(self, database, course):
        assert database.set_course_completion(course, record(60, set()), 2, date(2024, 1, 3))
        assert database.set_course_completion(course, record(10, set()), 2, date(2024, 1, 3)) is False
        assert database.set_course_completion(course, record(10, set()), 1, date(2024, 1, 3)) is False

        stored, version = database.get_course_completion(course.id)
        assert version == 2
        assert stored.total_time() == 60

    def test_reset(self, database, course):
        database.set_course_completion(course, record(60, set()), 1, date(2024, 1, 3))
        database.reset_course_progress(course.id)
        assert database.get_course_completion(course.id) == (CourseCompletionData(), 0)


class TestOverallProgress:
    """Test daily history kept alongside completion records."""

    def test_changes_attributed_to_day(self, database, course):
        database.set_course_completion(course, record(60, {"c1"}), 1, date(2024, 1, 3))
        overall = database.get_overall_progress()
        assert overall.time_spent == {"2024-01-03": 60}
        assert overall.chapters_completed == {"2024-01-03": 1}

        data = record(90, {"c1", "c3"})
        database.set_course_completion(course, data, 2, date(2024, 1, 4))
        overall = database.get_overall_progress()
        assert overall.time_spent == {"2024-01-03": 60, "2024-01-04": 30}
        assert overall.chapters_completed == {"2024-01-03": 1, "2024-01-04": 1}

    def test_unchecking_reduces_same_day(self, database, course):
        database.set_course_completion(course, record(0, {"c1", "c3"}), 1, date(2024, 1, 3))
        database.set_course_completion(course, record(0, {"c3"}), 2, date(2024, 1, 3))
        assert database.get_overall_progress().chapters_completed == {"2024-01-03": 1}

    def test_rejected_write_leaves_history(self, database, course):
        database.set_course_completion(course, record(60, set()), 5, date(2024, 1, 3))
        database.set_course_completion(course, record(600, {"c1"}), 4, date(2024, 1, 3))
        overall = database.get_overall_progress()
        assert overall.time_spent == {"2024-01-03": 60}
        assert overall.chapters_completed == {}


class TestSettingsAndActiveCourses:
    """Test settings and active course storage."""

    def test_default_settings(self, database):
        assert database.get_settings() == Settings()

    def test_settings_roundtrip(self, database):
        database.set_settings(Settings(weeks_displayed=12, show_course_clock=False))
        settings = database.get_settings()
        assert settings.weeks_displayed == 12
        assert settings.show_course_clock is False

    def test_active_courses_keep_order(self, database):
        database.set_active_courses(["b", "a", "c"])
        assert database.get_active_courses() == ["b", "a", "c"]

        database.set_active_courses(["c"])
        assert database.get_active_courses() == ["c"]

    def test_persists_across_instances(self, tmp_path, course):
        path = tmp_path / "progress.db"
        ProgressDatabase(path).set_active_courses(["x"])
        assert ProgressDatabase(path).get_active_courses() == ["x"]


class TestDatabasePersistence:
    """Test the async adapter used by ProgressStore."""

    def test_save_and_load(self, database, course):
        persistence = DatabasePersistence(database, FakeClock(date(2024, 1, 3)))

        async def scenario():
            assert await persistence.save(course, record(30, {"c3"}), 1) is True
            assert await persistence.save(course, record(40, {"c3"}), 1) is False
            return await persistence.load(course.id)

        data, version = asyncio.run(scenario())
        assert version == 1
        assert data.total_time() == 30
        assert database.get_overall_progress().time_spent == {"2024-01-03": 30}

    def test_corrupt_record_raises_persistence_error(self, database, course):
        conn = sqlite3.connect(str(database.db_path))
        conn.execute(
            "INSERT INTO course_completion (course_id, data, version) VALUES (?, ?, ?)",
            (course.id, "not json", 1)
        )
        conn.commit()
        conn.close()

        persistence = DatabasePersistence(database, FakeClock())
        with pytest.raises(PersistenceError):
            asyncio.run(persistence.load(course.id))
        with pytest.raises(PersistenceError):
            asyncio.run(persistence.save(course, record(1, set()), 2))
