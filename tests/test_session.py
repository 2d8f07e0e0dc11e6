"""
Tests for CourseSession with a fake viewer adapter.
"""

import asyncio

import pytest

from studytrack.errors import RendererError
from studytrack.schemas import CourseCompletionData, Settings
from studytrack.tracking import CourseSession
from studytrack.viewer import ListingItem

from conftest import FakeAdapter, MemoryPersistence


LISTING = [
    ListingItem("Chapter 1", "c1", [
        ListingItem("Section 1.1", "s1.1"),
        ListingItem("Section 1.2", "s1.2"),
    ]),
    ListingItem("Chapter 2", None, [ListingItem("Section 2.1", "s2.1")]),
]


def make_session(course, persistence, clock, reporter, adapter=None, index=0):
    return CourseSession(course, index, persistence, clock, reporter, adapter=adapter)


class TestLifecycle:
    """Test open and close."""

    def test_open_builds_model_from_record(self, course, clock, reporter):
        stored = CourseCompletionData()
        stored.book(1).completed_sections = {"s1.1", "s1.2"}
        persistence = MemoryPersistence(stored, version=2)
        session = make_session(course, persistence, clock, reporter, index=1)

        async def scenario():
            model = await session.open(start_timer=False)
            await session.close()
            return model

        model = asyncio.run(scenario())
        assert model.is_checked("c1")
        assert session.next_item() == "s2.1"
        assert session.opened and session.closed

    def test_invalid_textbook_index(self, course, persistence, clock, reporter):
        with pytest.raises(IndexError):
            make_session(course, persistence, clock, reporter, index=5)

    def test_close_stops_timer_and_flushes(self, course, persistence, clock, reporter):
        session = make_session(course, persistence, clock, reporter)

        async def scenario():
            await session.open()
            assert session.accumulator.running
            await session.accumulator.tick()
            stored = await session.close()
            assert not session.accumulator.running
            return stored

        assert asyncio.run(scenario()) is True
        assert persistence.data.time_spent == {"2024-01-03": 1}

    def test_close_twice_only_flushes(self, course, persistence, clock, reporter):
        adapter = FakeAdapter(LISTING)
        session = make_session(course, persistence, clock, reporter, adapter)

        async def scenario():
            await session.open(start_timer=False)
            await session.close()
            adapter.torn_down = False
            return await session.close()

        assert asyncio.run(scenario()) is True
        assert adapter.torn_down is False

    def test_tick_interval_from_settings(self, course, persistence, clock, reporter):
        session = CourseSession(course, 0, persistence, clock, reporter, settings=Settings(tick_interval=5))
        assert session.accumulator.interval == 5


class TestToggle:
    """Test checklist edits through the session."""

    def test_toggle_persists_immediately(self, course, persistence, clock, reporter):
        session = make_session(course, persistence, clock, reporter)

        async def scenario():
            await session.open(start_timer=False)
            await session.toggle("s1.1", True)
            return await session.toggle("s1.2", True)

        assert asyncio.run(scenario()) is True
        assert persistence.data.books[0].completed_sections == {"c1", "s1.1", "s1.2"}
        assert session.progress().chapter_completion[0] == 1.0

    def test_toggle_before_open(self, course, persistence, clock, reporter):
        session = make_session(course, persistence, clock, reporter)
        with pytest.raises(RuntimeError):
            asyncio.run(session.toggle("c1", True))

    def test_other_textbooks_untouched(self, course, clock, reporter):
        stored = CourseCompletionData()
        stored.book(1).completed_sections = {"c3"}
        persistence = MemoryPersistence(stored, version=1)
        session = make_session(course, persistence, clock, reporter, index=0)

        async def scenario():
            await session.open(start_timer=False)
            await session.toggle("c1", True)

        asyncio.run(scenario())
        assert persistence.data.books[1].completed_sections == {"c3"}

    def test_toggle_after_failed_load_keeps_stored_progress(self, course, clock, reporter):
        stored = CourseCompletionData(time_spent={"2024-01-02": 3000})
        stored.book(0).completed_sections = {"c1"}
        persistence = MemoryPersistence(stored, version=5)
        persistence.fail_load = True
        session = make_session(course, persistence, clock, reporter)

        async def scenario():
            await session.open(start_timer=False)
            assert not session.model.is_checked("c1")
            persistence.fail_load = False
            return await session.toggle("c3", True)

        assert asyncio.run(scenario()) is True
        assert persistence.data.books[0].completed_sections == {"c1", "c3"}
        assert persistence.data.time_spent == {"2024-01-02": 3000}
        # The model picks up the merged record
        assert session.model.is_checked("c1")
        assert session.model.is_checked("s1.2")
        assert session.next_item() == "s2.1"

    def test_refresh_model_only_when_record_moved(self, course, persistence, clock, reporter):
        session = make_session(course, persistence, clock, reporter)

        async def scenario():
            await session.open(start_timer=False)
            assert session.refresh_model() is False
            session.store.book(0).completed_sections = {"c3"}
            assert session.refresh_model() is True

        asyncio.run(scenario())
        assert session.model.is_chapter_complete(2)

    def test_hiding_flushes_position(self, course, persistence, clock, reporter):
        adapter = FakeAdapter(LISTING)
        session = make_session(course, persistence, clock, reporter, adapter)

        async def scenario():
            await session.open(start_timer=False)
            adapter.move_to("page=2", "c1")
            await session.on_visibility_change(False)

        asyncio.run(scenario())
        assert persistence.data.books[0].position == "page=2"


class TestViewerSync:
    """Test the adapter contract from the session side."""

    def test_location_changes_recorded(self, course, persistence, clock, reporter):
        adapter = FakeAdapter(LISTING)
        session = make_session(course, persistence, clock, reporter, adapter)

        async def scenario():
            await session.open(start_timer=False)
            assert adapter.move_to("page=7", "s1.2")
            assert persistence.saves == []
            await session.close()

        asyncio.run(scenario())
        assert session.current_item == "s1.2"
        assert [item.identifier for item in session.highlight_path()] == ["c1", "s1.2"]
        assert persistence.data.books[0].position == "page=7"

    def test_position_restored_once(self, course, clock, reporter):
        stored = CourseCompletionData()
        stored.book(0).position = '{"cfi": "/6/4"}'
        persistence = MemoryPersistence(stored, version=1)
        adapter = FakeAdapter(LISTING)
        session = make_session(course, persistence, clock, reporter, adapter)

        asyncio.run(session.open(start_timer=False))
        assert adapter.restored == ['{"cfi": "/6/4"}']
        assert session.listing == LISTING

    def test_no_restore_without_position(self, course, persistence, clock, reporter):
        adapter = FakeAdapter(LISTING)
        session = make_session(course, persistence, clock, reporter, adapter)
        asyncio.run(session.open(start_timer=False))
        assert adapter.restored == []

    def test_no_events_after_teardown(self, course, persistence, clock, reporter):
        adapter = FakeAdapter(LISTING)
        session = make_session(course, persistence, clock, reporter, adapter)

        async def scenario():
            await session.open(start_timer=False)
            await session.close()

        asyncio.run(scenario())
        assert adapter.torn_down
        assert adapter.move_to("page=99", "s2.1") is False
        assert session.current_item is None

    def test_renderer_failure_reported(self, course, persistence, clock, reporter):
        adapter = FakeAdapter(fail_open=True)
        session = make_session(course, persistence, clock, reporter, adapter)

        async def scenario():
            await session.open(start_timer=False)
            return await session.toggle("c3", True)

        assert asyncio.run(scenario()) is True
        assert len(reporter.reports) == 1
        assert reporter.reports[0].message == "Unable to display document"
        assert session.listing == []

    def test_teardown_failure_reported(self, course, persistence, clock, reporter):
        class FailingTeardown(FakeAdapter):
            async def teardown(self):
                raise RendererError("renderer crashed")

        session = make_session(course, persistence, clock, reporter, FailingTeardown(LISTING))

        async def scenario():
            await session.open(start_timer=False)
            return await session.close()

        assert asyncio.run(scenario()) is True
        assert [report.cause for report in reporter.reports] == ["renderer crashed"]
