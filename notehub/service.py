"""
Note service: the RPC operations on top of a repository.

Validation runs here, never in the repository. A repository miss becomes
NotFoundError; any unexpected failure becomes InternalError.
"""

from functools import wraps
from typing import Callable, List, Optional, TypeVar

from notehub.entities import Note
from notehub.errors import ApplicationError, InternalError, InvalidArgumentError, NotFoundError
from notehub.logging_config import get_logger
from notehub.repositories.base import NoteRepository
from notehub.validation import note_validators
from notehub.validation.validator import ValidationResult
from notehub.watch import NoteWatch

logger = get_logger(__name__)

T = TypeVar("T")


def handle_service_error(operation: str):
    """Let ApplicationError through; wrap anything else as InternalError."""

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except ApplicationError:
                raise
            except Exception as e:
                logger.exception("service_operation_failed", operation=operation)
                raise InternalError(f"Failed to {operation}: {e}") from e

        return wrapper

    return decorator


def _require_valid(result: ValidationResult[T]) -> T:
    if not result.is_valid:
        raise InvalidArgumentError(
            note_validators.format_errors(result.errors),
            details={"errors": [e.to_dict() for e in result.errors]},
        )
    return result.value


def _not_found(note_id: str) -> NotFoundError:
    logger.info("note_not_found", note_id=note_id)
    return NotFoundError(f"Note with id {note_id} not found")


class NoteService:
    def __init__(self, repository: NoteRepository):
        self.repository = repository

    @handle_service_error("create note")
    async def create_note(self, title: str, content: str) -> Note:
        data = _require_valid(note_validators.validate_create(title, content))
        note = await self.repository.create(data.title, data.content)
        logger.info("note_created", note_id=note.id)
        return note

    @handle_service_error("get note")
    async def get_note(self, note_id: str) -> Note:
        note = await self.repository.get_by_id(note_id)
        if note is None:
            raise _not_found(note_id)
        return note

    @handle_service_error("list notes")
    async def list_notes(self) -> List[Note]:
        return await self.repository.get_all()

    @handle_service_error("update note")
    async def update_note(self, note_id: str, title: str, content: str) -> Note:
        data = _require_valid(note_validators.validate_update(note_id, title, content))
        note = await self.repository.update(data.id, data.title, data.content)
        if note is None:
            raise _not_found(data.id)
        logger.info("note_updated", note_id=note.id)
        return note

    @handle_service_error("delete note")
    async def delete_note(self, note_id: str) -> bool:
        if not await self.repository.delete(note_id):
            raise _not_found(note_id)
        logger.info("note_deleted", note_id=note_id)
        return True

    def watch_notes(self, note_id: Optional[str] = None) -> NoteWatch:
        """Open a live feed of change events, optionally for a single note."""
        try:
            return NoteWatch(self.repository, note_id)
        except ApplicationError:
            raise
        except Exception as e:
            logger.exception("watch_open_failed", note_id=note_id)
            raise InternalError(f"Failed to watch notes: {e}") from e

    async def count_notes(self) -> int:
        return await self.repository.count()
