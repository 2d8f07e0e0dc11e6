"""
Shared fixtures and fakes for StudyTrack tests.
"""

from datetime import date
from typing import Optional

import pytest

from studytrack.errors import ErrorReport, PersistenceError, RendererError
from studytrack.schemas import Chapter, Course, CourseCompletionData, SectionGroup, Textbook
from studytrack.viewer import ListingItem, LocationChange, LocationEmitter


class FakeClock:
    """Clock with a settable day and visibility."""

    def __init__(self, today: date = date(2024, 1, 3), visible: bool = True):
        self.day = today
        self.visible = visible

    def today(self) -> date:
        return self.day

    def is_foreground_visible(self) -> bool:
        return self.visible


class MemoryPersistence:
    """In-memory CompletionPersistence that keeps every accepted snapshot."""

    def __init__(self, data: Optional[CourseCompletionData] = None, version: int = 0):
        self.data = data.model_copy(deep=True) if data else None
        self.version = version
        self.saves: list[tuple[int, CourseCompletionData]] = []
        self.fail_load = False
        self.fail_save = False

    async def load(self, course_id: str):
        if self.fail_load:
            raise PersistenceError("disk unavailable")
        if self.data is None:
            return CourseCompletionData(), 0
        return self.data.model_copy(deep=True), self.version

    async def save(self, course: Course, data: CourseCompletionData, version: int) -> bool:
        if self.fail_save:
            raise PersistenceError("disk full")
        if version <= self.version:
            return False
        self.data = data.model_copy(deep=True)
        self.version = version
        self.saves.append((version, self.data))
        return True


class RecordingReporter:
    def __init__(self):
        self.reports: list[ErrorReport] = []

    def report(self, error: ErrorReport) -> None:
        self.reports.append(error)


class FakeAdapter:
    """ViewerSyncAdapter double driven by the test."""

    def __init__(self, listing: Optional[list[ListingItem]] = None, fail_open: bool = False):
        self.emitter = LocationEmitter()
        self.listing = listing or []
        self.fail_open = fail_open
        self.restored: list[str] = []
        self.torn_down = False

    async def open(self, course: Course, textbook_index: int) -> list[ListingItem]:
        if self.fail_open:
            raise RendererError("corrupt document")
        return self.listing

    def on_location_changed(self, callback) -> None:
        self.emitter.on_location_changed(callback)

    async def restore_position(self, position: str) -> None:
        self.restored.append(position)

    async def teardown(self) -> None:
        self.torn_down = True
        self.emitter.close()

    def move_to(self, position: str, item_id: Optional[str] = None) -> bool:
        return self.emitter.emit(LocationChange(position=position, item_id=item_id))


def make_textbook(label: str = "Book") -> Textbook:
    """
    Textbook with one chapter of each kind:

    0: explicit root "c1" over leaves s1.1, s1.2 (weighted groups)
    1: implicit root over leaves s2.1, s2.2, s2.3
    2: root "c3" without leaves
    3: nothing to check
    """
    return Textbook(
        label=label,
        file="book.pdf",
        chapters=[
            Chapter(root="c1", groups=[
                SectionGroup(weight=3, sections=["s1.1"]),
                SectionGroup(weight=1, sections=["s1.2"]),
            ]),
            Chapter(groups=[SectionGroup(sections=["s2.1", "s2.2", "s2.3"])]),
            Chapter(root="c3"),
            Chapter(),
        ],
    )


def make_course(course_id: str = "course-1", title: str = "Course") -> Course:
    return Course(id=course_id, title=title, books=[make_textbook("Book A"), make_textbook("Book B")])


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def reporter():
    return RecordingReporter()


@pytest.fixture
def persistence():
    return MemoryPersistence()


@pytest.fixture
def course():
    return make_course()


@pytest.fixture
def textbook():
    return make_textbook()
