# notehub/entities.py
from __future__ import annotations

import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from enum import Enum


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def next_timestamp(previous: datetime) -> datetime:
    """Current time, or one microsecond past ``previous`` when the clock has not moved beyond it."""
    now = utc_now()
    if now <= previous:
        return previous + timedelta(microseconds=1)
    return now


def to_millis(dt: datetime) -> int:
    """Milliseconds since the epoch, the timestamp unit used on the wire."""
    return int(dt.timestamp() * 1000)


@dataclass(frozen=True)
class Note:
    id: str
    title: str
    content: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def new(cls, title: str, content: str) -> "Note":
        now = utc_now()
        return cls(
            id=str(uuid.uuid4()),
            title=title,
            content=content,
            created_at=now,
            updated_at=now,
        )

    def copy_with(self, **changes) -> "Note":
        return replace(self, **changes)


class ChangeKind(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"


@dataclass(frozen=True)
class ChangeEvent:
    """One committed mutation. For deletions ``note`` is the last snapshot before removal."""

    kind: ChangeKind
    note: Note
    occurred_at: datetime
