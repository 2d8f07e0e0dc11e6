"""
CourseSession - One open textbook of one course.

Combines ProgressStore (record + persistence), CompletionModel (checkbox
state) and TimeAccumulator (study clock), and connects them to an
optional viewer adapter.
"""

import logging
from typing import Optional

from studytrack.errors import ErrorReport, ErrorReporter, RendererError
from studytrack.schemas import Course, Settings, Textbook, TextbookProgress
from studytrack.viewer.adapter import (
    ListingItem,
    LocationChange,
    ViewerSyncAdapter,
    find_listing_path,
)

from .clock import Clock
from .completion import CompletionModel
from .store import CompletionPersistence, ProgressStore
from .timer import TimeAccumulator


logger = logging.getLogger(__name__)


class CourseSession:
    """
    Session lifecycle: open() -> toggle()/location events -> close().

    Owns its timer; nothing is shared between sessions.
    """

    def __init__(
        self,
        course: Course,
        textbook_index: int,
        persistence: CompletionPersistence,
        clock: Clock,
        reporter: ErrorReporter,
        adapter: Optional[ViewerSyncAdapter] = None,
        settings: Optional[Settings] = None,
    ):
        """
        Initialize session.

        Args:
            course: Course being studied
            textbook_index: Index of the textbook within the course
            persistence: Storage for the course's completion record
            clock: Source of "today" and foreground visibility
            reporter: Receives user-facing errors
            adapter: Viewer adapter for the textbook, if any
            settings: User settings (tick interval)
        """
        if not 0 <= textbook_index < len(course.books):
            raise IndexError(f"Course {course.id} has no textbook {textbook_index}")

        self.course = course
        self.textbook_index = textbook_index
        self.clock = clock
        self.reporter = reporter
        self.adapter = adapter
        self.settings = settings or Settings()

        self.store = ProgressStore(course, persistence, clock, reporter)
        self.accumulator = TimeAccumulator(self.store, clock, self.settings.tick_interval)
        self.model: Optional[CompletionModel] = None
        self.listing: list[ListingItem] = []
        self.current_item: Optional[str] = None
        self.opened = False
        self.closed = False

    @property
    def textbook(self) -> Textbook:
        return self.course.books[self.textbook_index]

    async def open(self, start_timer: bool = True) -> CompletionModel:
        """
        Load progress, open the viewer and start the study clock.

        Viewer failures are reported; the checklist and clock still work.
        """
        data = await self.store.load()
        record = data.book(self.textbook_index)
        self.model = CompletionModel(self.textbook, record.completed_sections, self.textbook_index)

        if self.adapter is not None:
            await self._open_adapter(record.position)

        if start_timer:
            self.accumulator.start()

        self.opened = True
        logger.info(f"Opened {self.course.title} / {self.textbook.label}")
        return self.model

    async def _open_adapter(self, position: Optional[str]):
        try:
            self.listing = await self.adapter.open(self.course, self.textbook_index)
        except RendererError as e:
            self.reporter.report(ErrorReport.from_exception("Unable to display document", e))
            return

        self.adapter.on_location_changed(self.handle_location_change)

        if position is not None:
            try:
                await self.adapter.restore_position(position)
            except RendererError as e:
                self.reporter.report(ErrorReport.from_exception("Unable to restore reading position", e))

    def handle_location_change(self, change: LocationChange):
        """Store the reported position and track the highlighted item."""
        if self.closed:
            return
        self.store.record_position(self.textbook_index, change.position)
        if change.item_id is not None:
            self.current_item = change.item_id

    def highlight_path(self) -> list[ListingItem]:
        """Outline items to expand so the current item is visible."""
        if self.current_item is None:
            return []
        return find_listing_path(self.listing, self.current_item)

    async def toggle(self, identifier: str, checked: bool) -> bool:
        """
        Check or uncheck an item and persist the edit immediately.

        Returns:
            True if the owning chapter changed state
        """
        if self.model is None:
            raise RuntimeError("Session is not open")
        self.refresh_model()
        changed = self.model.toggle(identifier, checked)
        await self.store.apply_completion_edit(self.textbook_index, self.model.completed_sections)
        self.refresh_model()
        return changed

    def refresh_model(self) -> bool:
        """
        Rebuild the model if the store's record moved under it.

        Happens after the store merged local edits onto a record it could
        not read at open time.

        Returns:
            True if the model was rebuilt
        """
        if self.model is None:
            return False
        sections = self.store.book(self.textbook_index).completed_sections
        if sections == self.model.completed:
            return False
        self.model = CompletionModel(self.textbook, sections, self.textbook_index)
        return True

    def next_item(self) -> Optional[str]:
        return self.model.next_actionable_item() if self.model else None

    def progress(self) -> TextbookProgress:
        if self.model is None:
            raise RuntimeError("Session is not open")
        return self.model.to_progress()

    async def on_visibility_change(self, visible: bool):
        await self.accumulator.on_visibility_change(visible)

    async def close(self) -> bool:
        """
        Stop the clock, release the viewer and write the final snapshot.

        Returns:
            Whether the final flush was stored
        """
        if self.closed:
            return await self.store.flush()
        self.closed = True

        if self.adapter is not None:
            try:
                await self.adapter.teardown()
            except RendererError as e:
                self.reporter.report(ErrorReport.from_exception("Unable to close document", e))

        stored = await self.accumulator.stop()
        logger.info(f"Closed {self.course.title} / {self.textbook.label}")
        return stored
