"""
SQLAlchemy-backed repository (PostgreSQL in production).

Each operation is one transaction. ``update`` locks the row (``FOR UPDATE``)
to read the stored ``updated_at`` so the new value is always later, then
writes with RETURNING; ``delete`` uses RETURNING and detects a miss from the
empty result.

SQLAlchemy runs on the synchronous psycopg2 driver; calls are offloaded to a
worker thread with ``run_sync``. Mutations commit under ``_commit_lock`` and
schedule their change event on the loop before releasing it, so events for
one id are published in commit order.
"""

import asyncio
import threading
from typing import Callable, List, Optional, TypeVar

from sqlalchemy import delete, func, select, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from notehub.async_utils import run_sync
from notehub.db import Base, create_session_factory
from notehub.entities import ChangeKind, Note, next_timestamp
from notehub.errors import StorageError
from notehub.logging_config import get_logger
from notehub.models import NoteRecord, as_utc, row_to_note
from notehub.repositories.base import NoteRepository

logger = get_logger(__name__)

T = TypeVar("T")

_RETURNING = (
    NoteRecord.id,
    NoteRecord.title,
    NoteRecord.content,
    NoteRecord.created_at,
    NoteRecord.updated_at,
)


class SqlNoteRepository(NoteRepository):
    def __init__(self, engine: Engine, dispose_engine: bool = True):
        super().__init__()
        self._engine = engine
        self._dispose_engine = dispose_engine
        self._session_factory = create_session_factory(engine)
        self._commit_lock = threading.Lock()

    def initialize(self) -> None:
        """Create the notes table and its index if they don't exist."""
        Base.metadata.create_all(bind=self._engine)
        logger.info("notes_schema_ready", url=self._engine.url.render_as_string(hide_password=True))

    async def _call(
        self,
        op: str,
        fn: Callable[[Session], T],
        kind: Optional[ChangeKind] = None,
    ) -> T:
        """
        Run ``fn`` in a session on a worker thread.

        With ``kind`` set, a non-None result is the changed note and its event
        is scheduled on the loop in the same critical section as the commit.
        """
        self._ensure_open()
        loop = asyncio.get_running_loop() if kind is not None else None
        return await run_sync(self._in_session, op, fn, kind, loop)

    def _in_session(
        self,
        op: str,
        fn: Callable[[Session], T],
        kind: Optional[ChangeKind],
        loop: Optional[asyncio.AbstractEventLoop],
    ) -> T:
        session = self._session_factory()
        try:
            result = fn(session)
            if kind is None or result is None:
                session.commit()
            else:
                with self._commit_lock:
                    session.commit()
                    loop.call_soon_threadsafe(self._emit, kind, result)
            return result
        except SQLAlchemyError as e:
            session.rollback()
            logger.error("storage_operation_failed", op=op, error=str(e))
            raise StorageError(f"Storage failure during {op}: {e}") from e
        finally:
            session.close()

    # ---- operations ----------------------------------------------------------
    async def create(self, title: str, content: str) -> Note:
        note = Note.new(title, content)

        def _insert(session: Session) -> Note:
            session.add(NoteRecord.from_note(note))
            session.flush()
            return note

        return await self._call("create", _insert, ChangeKind.CREATED)

    async def get_by_id(self, note_id: str) -> Optional[Note]:
        def _select(session: Session) -> Optional[Note]:
            record = session.get(NoteRecord, note_id)
            return record.to_note() if record is not None else None

        return await self._call("get_by_id", _select)

    async def get_all(self) -> List[Note]:
        def _select_all(session: Session) -> List[Note]:
            records = session.scalars(
                select(NoteRecord).order_by(NoteRecord.created_at.desc())
            ).all()
            return [r.to_note() for r in records]

        return await self._call("get_all", _select_all)

    async def update(self, note_id: str, title: str, content: str) -> Optional[Note]:
        def _update(session: Session) -> Optional[Note]:
            previous = session.scalar(
                select(NoteRecord.updated_at)
                .where(NoteRecord.id == note_id)
                .with_for_update()
            )
            if previous is None:
                return None
            stmt = (
                update(NoteRecord)
                .where(NoteRecord.id == note_id)
                .values(
                    title=title,
                    content=content,
                    updated_at=next_timestamp(as_utc(previous)),
                )
                .returning(*_RETURNING)
                .execution_options(synchronize_session=False)
            )
            row = session.execute(stmt).one_or_none()
            return row_to_note(row) if row is not None else None

        return await self._call("update", _update, ChangeKind.UPDATED)

    async def delete(self, note_id: str) -> bool:
        def _delete(session: Session) -> Optional[Note]:
            stmt = (
                delete(NoteRecord)
                .where(NoteRecord.id == note_id)
                .returning(*_RETURNING)
                .execution_options(synchronize_session=False)
            )
            row = session.execute(stmt).one_or_none()
            return row_to_note(row) if row is not None else None

        note = await self._call("delete", _delete, ChangeKind.DELETED)
        return note is not None

    async def count(self) -> int:
        def _count(session: Session) -> int:
            return session.scalar(select(func.count()).select_from(NoteRecord)) or 0

        return await self._call("count", _count)

    async def _dispose(self) -> None:
        if self._dispose_engine:
            await run_sync(self._engine.dispose)
