from enum import Enum
from typing import List

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from notehub.entities import ChangeEvent, ChangeKind, Note, to_millis


class WireModel(BaseModel):
    # camelCase on the wire, snake_case in Python
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------- Requests ----------
class NoteCreate(WireModel):
    title: str = ""
    content: str = ""


class NoteUpdate(WireModel):
    title: str = ""
    content: str = ""


# ---------- Responses ----------
class NoteRead(WireModel):
    id: str
    title: str
    content: str
    created_at: int  # ms since epoch
    updated_at: int  # ms since epoch

    @classmethod
    def from_note(cls, note: Note) -> "NoteRead":
        return cls(
            id=note.id,
            title=note.title,
            content=note.content,
            created_at=to_millis(note.created_at),
            updated_at=to_millis(note.updated_at),
        )


class NoteList(WireModel):
    notes: List[NoteRead]


class DeleteResult(WireModel):
    success: bool


# ---------- Streaming ----------
class NoteEventType(str, Enum):
    UNKNOWN = "UNKNOWN"
    CREATED = "CREATED"
    UPDATED = "UPDATED"
    DELETED = "DELETED"


_EVENT_TYPES = {
    ChangeKind.CREATED: NoteEventType.CREATED,
    ChangeKind.UPDATED: NoteEventType.UPDATED,
    ChangeKind.DELETED: NoteEventType.DELETED,
}


class NoteEvent(WireModel):
    event_type: NoteEventType
    note: NoteRead
    timestamp: int  # ms since epoch

    @classmethod
    def from_change(cls, change: ChangeEvent) -> "NoteEvent":
        return cls(
            event_type=_EVENT_TYPES.get(change.kind, NoteEventType.UNKNOWN),
            note=NoteRead.from_note(change.note),
            timestamp=to_millis(change.occurred_at),
        )

    def to_sse(self) -> str:
        """Server-Sent Events frame: ``event: <type>`` plus the JSON payload."""
        data = self.model_dump_json(by_alias=True)
        return f"event: {self.event_type.value.lower()}\ndata: {data}\n\n"
