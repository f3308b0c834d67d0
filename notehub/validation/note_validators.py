"""Validation schemas for note create/update requests."""

from dataclasses import dataclass
from typing import Iterable, List

from notehub.validation.validator import (
    ValidationError,
    ValidationErrorCode,
    ValidationFailure,
    ValidationResult,
    ValidationSuccess,
    Validator,
    Z,
)

TITLE_MAX_LENGTH = 200
CONTENT_MAX_LENGTH = 10_000

# Trimmed, at most 200 characters
title_schema = Z.string().trimmed().max(TITLE_MAX_LENGTH)

# Trimmed, at most 10,000 characters
content_schema = Z.string().trimmed().max(CONTENT_MAX_LENGTH)


@dataclass(frozen=True)
class CreateNoteInput:
    title: str
    content: str


@dataclass(frozen=True)
class UpdateNoteInput:
    id: str
    title: str
    content: str


def _field_errors(name: str, validator: Validator, value) -> List[ValidationError]:
    result = validator.validate(value)
    if result.is_valid:
        return []
    return [e.with_field(name) for e in result.errors]


def _id_errors(note_id) -> List[ValidationError]:
    if not isinstance(note_id, str) or not note_id.strip():
        return [
            ValidationError(
                field="id",
                message="Note ID cannot be empty",
                code=ValidationErrorCode.REQUIRED,
                value=note_id,
            )
        ]
    return []


def _note_errors(raw_title, raw_content) -> List[ValidationError]:
    errors = _field_errors("title", title_schema, raw_title)
    errors += _field_errors("content", content_schema, raw_content)

    if (
        isinstance(raw_title, str)
        and isinstance(raw_content, str)
        and not raw_title.strip()
        and not raw_content.strip()
    ):
        errors.append(
            ValidationError(
                field="note",
                message="Both title and content cannot be empty",
                code=ValidationErrorCode.CUSTOM,
            )
        )
    return errors


def validate_create(title: str, content: str) -> ValidationResult[CreateNoteInput]:
    errors = _note_errors(title, content)
    if errors:
        return ValidationFailure(errors)
    return ValidationSuccess(CreateNoteInput(title=title.strip(), content=content.strip()))


def validate_update(id: str, title: str, content: str) -> ValidationResult[UpdateNoteInput]:
    """Same rules as create, plus a non-empty id."""
    errors = _id_errors(id) + _note_errors(title, content)
    if errors:
        return ValidationFailure(errors)
    return ValidationSuccess(
        UpdateNoteInput(id=id.strip(), title=title.strip(), content=content.strip())
    )


def validate_id(id: str) -> ValidationResult[str]:
    errors = _id_errors(id)
    if errors:
        return ValidationFailure(errors)
    return ValidationSuccess(id.strip())


def format_errors(errors: Iterable[ValidationError]) -> str:
    """Render errors as ``[code] field: message`` joined with ``; ``."""
    return "; ".join(str(e) for e in errors)
