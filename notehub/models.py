# notehub/models.py
from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from notehub.db import Base
from notehub.entities import Note


def as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# ---- Reusable mixins ---------------------------------------------------------
class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


# ---- Note --------------------------------------------------------------------
class NoteRecord(TimestampMixin, Base):
    __tablename__ = "notes"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")

    __table_args__ = (
        Index("idx_notes_created_at", "created_at"),
    )

    @classmethod
    def from_note(cls, note: Note) -> "NoteRecord":
        return cls(
            id=note.id,
            title=note.title,
            content=note.content,
            created_at=note.created_at,
            updated_at=note.updated_at,
        )

    def to_note(self) -> Note:
        return row_to_note(self)

    def __repr__(self) -> str:  # pragma: no cover
        return f"<NoteRecord id={self.id} title={self.title!r}>"


def row_to_note(row) -> Note:
    """Build a Note from a NoteRecord or a result row with the same columns."""
    return Note(
        id=row.id,
        title=row.title,
        content=row.content,
        created_at=as_utc(row.created_at),
        updated_at=as_utc(row.updated_at),
    )
