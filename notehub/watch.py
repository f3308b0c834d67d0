"""
Live note change feed for one client.

A NoteWatch subscribes to the repository as soon as it is constructed, so no
event published after the call is missed, then yields NoteEvent objects until
the client goes away (``aclose`` or task cancellation) or the repository
shuts down. A watch is not restartable; a terminated client starts a new one.

    async with NoteWatch(repository, note_id) as watch:
        async for event in watch:
            ...
"""

from typing import Optional

from prometheus_client import Gauge

from notehub.entities import ChangeEvent
from notehub.errors import InternalError
from notehub.logging_config import get_logger
from notehub.repositories.base import NoteRepository
from notehub.schemas import NoteEvent

logger = get_logger(__name__)

ACTIVE_WATCHERS = Gauge(
    "notehub_active_watchers",
    "Number of open WatchNotes streams",
)


def translate(change: ChangeEvent) -> NoteEvent:
    return NoteEvent.from_change(change)


class NoteWatch:
    def __init__(self, repository: NoteRepository, note_id: Optional[str] = None):
        self.note_id = note_id.strip() if note_id and note_id.strip() else None
        self._subscription = repository.subscribe()
        self._finished = False
        self.forwarded = 0
        ACTIVE_WATCHERS.inc()
        logger.info("watch_started", note_id=self.note_id)

    @property
    def finished(self) -> bool:
        return self._finished

    def __aiter__(self) -> "NoteWatch":
        return self

    async def __anext__(self) -> NoteEvent:
        if self._finished:
            raise StopAsyncIteration
        try:
            async for change in self._subscription:
                if self.note_id is not None and change.note.id != self.note_id:
                    continue
                try:
                    event = translate(change)
                except Exception as e:
                    logger.exception("watch_translation_failed", note_id=change.note.id)
                    await self.aclose()
                    raise InternalError(f"Failed to watch notes: {e}") from e
                self.forwarded += 1
                return event
        except BaseException:
            # cancellation (client disconnect) or failure: release the subscription
            await self.aclose()
            raise
        # channel torn down
        await self.aclose()
        raise StopAsyncIteration

    async def aclose(self) -> None:
        if self._finished:
            return
        self._finished = True
        self._subscription.close()
        ACTIVE_WATCHERS.dec()
        logger.info("watch_ended", note_id=self.note_id, forwarded=self.forwarded)

    async def __aenter__(self) -> "NoteWatch":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()
