import asyncio
from typing import Dict, List, Optional

from notehub.entities import ChangeKind, Note, next_timestamp
from notehub.repositories.base import NoteRepository


class InMemoryNoteRepository(NoteRepository):
    """
    Dict-backed repository for development and tests.

    Every operation runs inside ``self._lock`` so operations never interleave
    partially. Change events are built from the post-mutation state and queued
    before the lock is released; queuing does not wait for any consumer.
    """

    def __init__(self) -> None:
        super().__init__()
        self._storage: Dict[str, Note] = {}
        self._lock = asyncio.Lock()

    async def create(self, title: str, content: str) -> Note:
        self._ensure_open()
        async with self._lock:
            note = Note.new(title, content)
            self._storage[note.id] = note
            self._emit(ChangeKind.CREATED, note)
            return note

    async def get_by_id(self, note_id: str) -> Optional[Note]:
        self._ensure_open()
        async with self._lock:
            return self._storage.get(note_id)

    async def get_all(self) -> List[Note]:
        self._ensure_open()
        async with self._lock:
            notes = list(self._storage.values())
        return sorted(notes, key=lambda n: n.created_at, reverse=True)

    async def update(self, note_id: str, title: str, content: str) -> Optional[Note]:
        self._ensure_open()
        async with self._lock:
            existing = self._storage.get(note_id)
            if existing is None:
                return None

            note = existing.copy_with(
                title=title, content=content, updated_at=next_timestamp(existing.updated_at)
            )
            self._storage[note_id] = note
            self._emit(ChangeKind.UPDATED, note)
            return note

    async def delete(self, note_id: str) -> bool:
        self._ensure_open()
        async with self._lock:
            note = self._storage.pop(note_id, None)
            if note is None:
                return False
            self._emit(ChangeKind.DELETED, note)
            return True

    async def count(self) -> int:
        self._ensure_open()
        async with self._lock:
            return len(self._storage)

    async def _dispose(self) -> None:
        self._storage.clear()
