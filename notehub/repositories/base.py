"""
Repository contract shared by every storage backend.

Implementations own the note lifecycle and publish one ChangeEvent per
successful mutation. A miss is never an error: ``get_by_id`` and ``update``
return None and ``delete`` returns False, with no event published.

Inputs are trusted: validation happens in the service layer before any
repository call.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from notehub.entities import ChangeEvent, ChangeKind, Note, utc_now
from notehub.errors import ResourceClosedError
from notehub.events import ChangeChannel, Subscription
from notehub.logging_config import get_logger

logger = get_logger(__name__)


class NoteRepository(ABC):
    def __init__(self) -> None:
        self._changes = ChangeChannel(name=type(self).__name__)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def subscriber_count(self) -> int:
        return self._changes.subscriber_count

    def _ensure_open(self) -> None:
        if self._closed:
            raise ResourceClosedError(f"{type(self).__name__} is closed")

    def _emit(self, kind: ChangeKind, note: Note) -> ChangeEvent:
        event = ChangeEvent(kind=kind, note=note, occurred_at=utc_now())
        delivered = self._changes.publish(event)
        logger.debug("note_change_published", kind=kind.value, note_id=note.id, subscribers=delivered)
        return event

    def subscribe(self) -> Subscription:
        """Subscribe to change events published from now on."""
        self._ensure_open()
        return self._changes.subscribe()

    @abstractmethod
    async def create(self, title: str, content: str) -> Note:
        """Persist a new note with a fresh id and timestamps; publishes ``created``."""

    @abstractmethod
    async def get_by_id(self, note_id: str) -> Optional[Note]:
        """Return the note, or None when no note has this id."""

    @abstractmethod
    async def get_all(self) -> List[Note]:
        """Return every note, newest ``created_at`` first."""

    @abstractmethod
    async def update(self, note_id: str, title: str, content: str) -> Optional[Note]:
        """Replace title/content and bump ``updated_at``; publishes ``updated``. None on miss."""

    @abstractmethod
    async def delete(self, note_id: str) -> bool:
        """Remove the note; publishes ``deleted`` with the last snapshot. False on miss."""

    @abstractmethod
    async def count(self) -> int:
        ...

    async def _dispose(self) -> None:
        """Release backend resources. Called once by ``close``."""

    async def close(self) -> None:
        """End every subscription and release resources. Idempotent."""
        if self._closed:
            return
        self._closed = True
        self._changes.close()
        await self._dispose()
        logger.info("repository_closed", repository=type(self).__name__)
