"""
ProgressStore - Single owner of one course's completion record.

Mutations happen in memory on the event loop thread; flush() writes a full
snapshot through the persistence collaborator. Every snapshot carries a
version number that only grows, so a slow, older write can never overwrite
a newer one.
"""

import logging
from typing import Iterable, Optional, Protocol

from studytrack.errors import ErrorReport, ErrorReporter, PersistenceError
from studytrack.schemas import Course, CourseCompletionData, TextbookCompletion

from .clock import Clock, format_day


logger = logging.getLogger(__name__)


class CompletionPersistence(Protocol):
    """Durable storage for completion records."""

    async def load(self, course_id: str) -> tuple[CourseCompletionData, int]:
        """Return the stored record and its version (empty record and 0 if none)."""
        ...

    async def save(self, course: Course, data: CourseCompletionData, version: int) -> bool:
        """Store a snapshot; return False if a newer version is already stored."""
        ...


def rebase_completion(
    base: CourseCompletionData,
    local: CourseCompletionData,
    stored: CourseCompletionData,
) -> CourseCompletionData:
    """
    Replay local changes made since `base` on top of `stored`.

    Args:
        base: Record the local changes started from
        local: Current in-memory record
        stored: Record found in storage

    Returns:
        New record: stored time plus time added locally, stored sections
        with local additions and removals applied, and the local position
        where it moved
    """
    merged = stored.model_copy(deep=True)

    for day, seconds in local.time_spent.items():
        added = seconds - base.time_spent.get(day, 0)
        if added > 0:
            merged.time_spent[day] = merged.time_spent.get(day, 0) + added

    empty = TextbookCompletion()
    for index, book in local.books.items():
        before = base.books.get(index, empty)
        target = merged.book(index)
        target.completed_sections = (
            (target.completed_sections - (before.completed_sections - book.completed_sections))
            | (book.completed_sections - before.completed_sections)
        )
        if book.position != before.position:
            target.position = book.position

    return merged


class ProgressStore:
    """
    Hold and persist the CourseCompletionData of one course.

    Explicit completion edits are flushed immediately; positions and time
    ride along with the next periodic flush.

    When the stored record could not be read, or storage turns out to hold
    a newer record than this store wrote, the next flush reads it again and
    replays the local changes on top of it. Nothing is written until that
    read succeeds, so the stored record is never replaced by a fallback.
    """

    def __init__(
        self,
        course: Course,
        persistence: CompletionPersistence,
        clock: Clock,
        reporter: Optional[ErrorReporter] = None,
    ):
        self.course = course
        self.persistence = persistence
        self.clock = clock
        self.reporter = reporter
        self.data = CourseCompletionData()
        self._base = CourseCompletionData()
        self._next_version = 1
        self._persisted_version = 0
        self._pending: set[int] = set()
        self.needs_rebase = False
        self.loaded = False

    @property
    def persisted_version(self) -> int:
        """Highest snapshot version known to be stored."""
        return self._persisted_version

    def _report(self, message: str, error: BaseException):
        if self.reporter is not None:
            self.reporter.report(ErrorReport.from_exception(message, error))
        else:
            logger.error(f"{message}: {error}")

    async def load(self) -> CourseCompletionData:
        """
        Fetch the course's record, or start from an empty one.

        A load failure is reported and leaves an empty record in place so
        the session can continue; the stored record is read again before
        the first write.
        """
        try:
            data, version = await self.persistence.load(self.course.id)
        except PersistenceError as e:
            self._report(f"Unable to load progress for {self.course.title}", e)
            data, version = CourseCompletionData(), 0
            self.needs_rebase = True

        self.data = data
        self._base = data.model_copy(deep=True)
        self._persisted_version = version
        self._next_version = version + 1
        self.loaded = True
        logger.debug(f"Loaded progress for {self.course.id} at version {version}")
        return self.data

    async def _rebase(self) -> bool:
        """Re-read the stored record and replay local changes onto it."""
        try:
            stored, version = await self.persistence.load(self.course.id)
        except PersistenceError as e:
            self._report(f"Unable to save progress for {self.course.title}", e)
            return False

        self.data = rebase_completion(self._base, self.data, stored)
        self._base = stored
        self._persisted_version = max(self._persisted_version, version)
        self._next_version = max(self._next_version, version + 1)
        self.needs_rebase = False
        logger.info(f"Merged local progress for {self.course.id} onto stored version {version}")
        return True

    def book(self, textbook_index: int) -> TextbookCompletion:
        return self.data.book(textbook_index)

    async def apply_completion_edit(self, textbook_index: int, completed_sections: Iterable[str]) -> bool:
        """Replace a textbook's completion set and flush right away."""
        self.data.book(textbook_index).completed_sections = set(completed_sections)
        return await self.flush()

    def record_position(self, textbook_index: int, position: str):
        """Remember the reader's position; written by the next flush."""
        self.data.book(textbook_index).position = position

    def accumulate_time(self, seconds: int) -> str:
        """
        Add study time to the current local day.

        The day is read from the clock on every call, so a session running
        past midnight starts a new bucket.

        Returns:
            The day key the time was added to
        """
        if seconds < 0:
            raise ValueError(f"Cannot accumulate negative time: {seconds}")
        day = format_day(self.clock.today())
        self.data.time_spent[day] = self.data.time_spent.get(day, 0) + seconds
        return day

    def time_spent_today(self) -> int:
        return self.data.time_spent.get(format_day(self.clock.today()), 0)

    async def flush(self) -> bool:
        """
        Write the full current record.

        Returns:
            True if this snapshot was stored. False if storage failed or
            holds a newer record (both reported, local changes kept for the
            next flush), or a newer snapshot of this store already won.
        """
        if self.needs_rebase and not await self._rebase():
            return False

        version = self._next_version
        self._next_version += 1
        snapshot = self.data.model_copy(deep=True)

        self._pending.add(version)
        try:
            written = await self.persistence.save(self.course, snapshot, version)
        except PersistenceError as e:
            self._report(f"Unable to save progress for {self.course.title}", e)
            return False
        finally:
            self._pending.discard(version)

        if version <= self._persisted_version:
            logger.debug(f"Discarded stale snapshot {version} for {self.course.id}")
            return False

        if not written:
            if any(pending > version for pending in self._pending):
                # A later snapshot of ours is still in flight
                logger.debug(f"Snapshot {version} for {self.course.id} overtaken")
                return False
            self.needs_rebase = True
            self._report(
                f"Unable to save progress for {self.course.title}",
                PersistenceError("storage holds newer progress; local changes will be merged on the next save"),
            )
            return False

        self._persisted_version = version
        self._base = snapshot
        return True
