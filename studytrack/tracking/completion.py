"""
CompletionModel - Chapter/section completion state for one textbook.

Provides:
- Roll-up of leaf sections into their chapter root
- Roll-down of a chapter root onto its leaves
- Per-chapter and per-textbook completion fractions
- The next chapter to work on, in document order
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from studytrack.schemas import Chapter, Textbook, TextbookProgress


logger = logging.getLogger(__name__)


@dataclass
class ChapterEntry:
    """Index entry for a known identifier."""
    chapter_index: int
    is_root: bool


class CompletionModel:
    """
    Track completion for one open textbook.

    For every chapter with leaf sections, the chapter root is in the
    completion set exactly when all of its leaves are. Identifiers that are
    not part of the textbook are ignored by every operation but are left in
    the set untouched, so stale records survive a course metadata change.
    """

    def __init__(
        self,
        textbook: Textbook,
        completed_sections: Iterable[str] = (),
        textbook_index: int = 0,
    ):
        """
        Build the identifier index and reconcile the initial completion set.

        Args:
            textbook: Textbook whose outline is tracked
            completed_sections: Identifiers already marked complete
            textbook_index: Position of the textbook within its course
        """
        self.textbook = textbook
        self.textbook_index = textbook_index
        self.completed: set[str] = set(completed_sections)
        self._index: dict[str, ChapterEntry] = {}
        self._build_index()
        self._reconcile()

    def _build_index(self):
        for chapter_index, chapter in enumerate(self.textbook.chapters):
            if chapter.root is not None:
                self._add_identifier(chapter.root, ChapterEntry(chapter_index, is_root=True))
            for section in chapter.leaves:
                self._add_identifier(section, ChapterEntry(chapter_index, is_root=False))

    def _add_identifier(self, identifier: str, entry: ChapterEntry):
        if identifier in self._index:
            # Authoring error in the course metadata; first occurrence wins
            logger.debug(f"Duplicate identifier {identifier!r} in {self.textbook.label!r}")
            return
        self._index[identifier] = entry

    def _reconcile(self):
        """
        Restore the roll-up invariant on loaded data.

        A stored root counts as an explicit "chapter done" and fills in its
        leaves; a chapter whose leaves are all done gains its root.
        """
        for chapter in self.textbook.chapters:
            if chapter.root is None or not chapter.has_leaves:
                continue
            if chapter.root in self.completed:
                self.completed.update(chapter.leaves)
            elif self._leaves_complete(chapter):
                self.completed.add(chapter.root)

    def _leaves_complete(self, chapter: Chapter) -> bool:
        return all(section in self.completed for section in chapter.leaves)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @property
    def completed_sections(self) -> set[str]:
        """Copy of the completion set, ready to hand to the store."""
        return set(self.completed)

    @property
    def chapters(self) -> list[Chapter]:
        return self.textbook.chapters

    @property
    def completable(self) -> bool:
        return self.textbook.completable

    def knows(self, identifier: str) -> bool:
        return identifier in self._index

    def chapter_index_of(self, identifier: str) -> Optional[int]:
        """Get the index of the chapter that owns an identifier."""
        entry = self._index.get(identifier)
        return entry.chapter_index if entry else None

    def is_checked(self, identifier: str) -> bool:
        return identifier in self._index and identifier in self.completed

    def is_chapter_complete(self, chapter_index: int) -> bool:
        chapter = self.textbook.chapters[chapter_index]
        if chapter.root is not None:
            return chapter.root in self.completed
        if chapter.has_leaves:
            return self._leaves_complete(chapter)
        return False

    def chapter_fraction(self, chapter_index: int) -> float:
        """1.0 if the chapter is complete, otherwise 0.0."""
        return 1.0 if self.is_chapter_complete(chapter_index) else 0.0

    def chapter_progress(self, chapter_index: int) -> float:
        """
        Weighted partial progress through a chapter, for display.

        Each group contributes its weight times the share of its sections
        done. Never used to decide completion.
        """
        if self.is_chapter_complete(chapter_index):
            return 1.0

        chapter = self.textbook.chapters[chapter_index]
        progress = 0.0
        total = 0.0
        for group in chapter.groups:
            weight = group.effective_weight
            total += weight
            if not group.sections:
                continue
            done = sum(1 for section in group.sections if section in self.completed)
            progress += done / len(group.sections) * weight

        if progress <= 0.0 or total <= 0.0:
            return 0.0
        return min(progress / total, 1.0)

    def overall_fraction(self) -> float:
        """Completed completable chapters over completable chapters; 0.0 if none."""
        completable = [
            index for index, chapter in enumerate(self.textbook.chapters)
            if chapter.completable
        ]
        if not completable:
            return 0.0
        done = sum(1 for index in completable if self.is_chapter_complete(index))
        return done / len(completable)

    def is_complete(self) -> bool:
        """A textbook without completable chapters is never complete."""
        return self.completable and self.overall_fraction() == 1.0

    def is_started(self) -> bool:
        """A textbook without completable chapters is never started."""
        if not self.completable:
            return False
        return any(
            self.chapter_progress(index) > 0.0
            for index, chapter in enumerate(self.textbook.chapters)
            if chapter.completable
        )

    def next_actionable_item(self) -> Optional[str]:
        """
        Get the first incomplete chapter in document order.

        Returns the chapter root, or for a chapter with an implicit root
        its first incomplete section. None when everything is done.
        """
        for index, chapter in enumerate(self.textbook.chapters):
            if not chapter.completable or self.is_chapter_complete(index):
                continue
            if chapter.root is not None:
                return chapter.root
            for section in chapter.leaves:
                if section not in self.completed:
                    return section
        return None

    def to_progress(self) -> TextbookProgress:
        """Summarize this textbook for display."""
        count = len(self.textbook.chapters)
        return TextbookProgress(
            completable=self.completable,
            overall_completion=self.overall_fraction(),
            chapter_completion=[self.chapter_fraction(i) for i in range(count)],
            chapter_progress=[self.chapter_progress(i) for i in range(count)],
        )

    # -------------------------------------------------------------------------
    # Mutation
    # -------------------------------------------------------------------------

    def toggle(self, identifier: str, checked: bool) -> bool:
        """
        Mark an identifier complete or incomplete.

        Args:
            identifier: Leaf section or chapter root
            checked: New state

        Returns:
            True if the owning chapter's root state changed. Unknown
            identifiers are ignored and return False.
        """
        entry = self._index.get(identifier)
        if entry is None:
            logger.debug(f"Ignoring toggle of unknown identifier {identifier!r}")
            return False

        chapter = self.textbook.chapters[entry.chapter_index]
        was_complete = self.is_chapter_complete(entry.chapter_index)

        if entry.is_root:
            self._set(identifier, checked)
            if chapter.has_leaves:
                for section in chapter.leaves:
                    self._set(section, checked)
        else:
            self._set(identifier, checked)
            if chapter.root is not None:
                self._set(chapter.root, self._leaves_complete(chapter))

        return self.is_chapter_complete(entry.chapter_index) != was_complete

    def _set(self, identifier: str, checked: bool):
        if checked:
            self.completed.add(identifier)
        else:
            self.completed.discard(identifier)
