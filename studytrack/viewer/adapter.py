"""
Document viewer adapter contract.

Renderers (PDF, ePub, ...) live outside StudyTrack. Each one is wrapped in
an adapter that:
- Opens a textbook and returns its navigable outline
- Reports location changes as (opaque position, enclosing item id)
- Restores a previously reported position
- Tears down cleanly and stops emitting afterwards
"""

import logging
from dataclasses import dataclass, field
from pathlib import PurePath
from typing import Callable, Iterator, Optional, Protocol

from studytrack.errors import RendererError
from studytrack.schemas import Course, Textbook


logger = logging.getLogger(__name__)


@dataclass
class ListingItem:
    """One entry of a document outline."""
    label: str
    identifier: Optional[str] = None
    subitems: list["ListingItem"] = field(default_factory=list)


@dataclass
class LocationChange:
    """Emitted when navigation or scrolling settles."""
    position: str                  # opaque, replayed verbatim
    item_id: Optional[str] = None  # smallest enclosing listing item


LocationCallback = Callable[[LocationChange], None]


class ViewerSyncAdapter(Protocol):
    async def open(self, course: Course, textbook_index: int) -> list[ListingItem]:
        """Load the textbook; raise RendererError on failure."""
        ...

    def on_location_changed(self, callback: LocationCallback) -> None:
        ...

    async def restore_position(self, position: str) -> None:
        ...

    async def teardown(self) -> None:
        ...


class LocationEmitter:
    """
    Callback bookkeeping shared by adapters.

    After close() no more events are delivered.
    """

    def __init__(self):
        self._callbacks: list[LocationCallback] = []
        self.closed = False

    def on_location_changed(self, callback: LocationCallback) -> None:
        self._callbacks.append(callback)

    def emit(self, change: LocationChange) -> bool:
        """Deliver a location change. Returns False if the emitter is closed."""
        if self.closed:
            return False
        for callback in list(self._callbacks):
            callback(change)
        return True

    def close(self):
        self.closed = True
        self._callbacks.clear()


def iter_listing(items: list[ListingItem]) -> Iterator[ListingItem]:
    """Walk an outline depth-first in document order."""
    for item in items:
        yield item
        yield from iter_listing(item.subitems)


def listing_identifiers(items: list[ListingItem]) -> list[str]:
    return [item.identifier for item in iter_listing(items) if item.identifier]


def find_listing_path(items: list[ListingItem], identifier: str) -> list[ListingItem]:
    """
    Get the chain of items from the top of the outline down to an identifier.

    Used to expand the parents of a highlighted item. Empty if not found.
    """
    for item in items:
        if item.identifier == identifier:
            return [item]
        path = find_listing_path(item.subitems, identifier)
        if path:
            return [item, *path]
    return []


AdapterFactory = Callable[[], ViewerSyncAdapter]


class AdapterRegistry:
    """Pick an adapter for a textbook by its file extension."""

    def __init__(self):
        self._factories: dict[str, AdapterFactory] = {}
        self._fallback: Optional[AdapterFactory] = None

    def register(self, suffix: str, factory: AdapterFactory):
        self._factories[suffix.lower().lstrip(".")] = factory

    def set_fallback(self, factory: AdapterFactory):
        self._fallback = factory

    def create(self, textbook: Textbook) -> ViewerSyncAdapter:
        suffix = PurePath(textbook.file).suffix.lower().lstrip(".")
        factory = self._factories.get(suffix, self._fallback)
        if factory is None:
            raise RendererError(f"No viewer available for {textbook.file!r}")
        return factory()
