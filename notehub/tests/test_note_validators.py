# notehub/tests/test_note_validators.py
from notehub.validation.note_validators import (
    CONTENT_MAX_LENGTH,
    TITLE_MAX_LENGTH,
    format_errors,
    validate_create,
    validate_id,
    validate_update,
)
from notehub.validation.validator import ValidationErrorCode


def test_create_trims_fields():
    result = validate_create("  Hello  ", "  World ")
    assert result.is_valid
    assert result.value.title == "Hello"
    assert result.value.content == "World"


def test_create_allows_one_empty_field():
    assert validate_create("", "content only").is_valid
    assert validate_create("title only", "   ").is_valid


def test_create_rejects_both_empty():
    result = validate_create("  ", "\t")
    assert not result.is_valid
    [error] = result.errors
    assert error.field == "note"
    assert error.code == ValidationErrorCode.CUSTOM
    assert error.message == "Both title and content cannot be empty"


def test_create_length_limits_apply_after_trimming():
    padded = "  " + "a" * TITLE_MAX_LENGTH + "  "
    assert validate_create(padded, "x").is_valid

    result = validate_create("a" * (TITLE_MAX_LENGTH + 1), "x")
    [error] = result.errors
    assert error.field == "title"
    assert error.code == ValidationErrorCode.TOO_LONG
    assert error.message == "String must be at most 200 characters"


def test_create_content_limit():
    assert validate_create("t", "b" * CONTENT_MAX_LENGTH).is_valid
    result = validate_create("t", "b" * (CONTENT_MAX_LENGTH + 1))
    assert [e.field for e in result.errors] == ["content"]


def test_create_rejects_non_string_input():
    result = validate_create(None, "x")
    assert [e.code for e in result.errors] == [ValidationErrorCode.INVALID_TYPE]
    assert result.errors[0].field == "title"


def test_update_requires_id():
    result = validate_update("   ", "t", "c")
    [error] = result.errors
    assert error.field == "id"
    assert error.code == ValidationErrorCode.REQUIRED
    assert error.message == "Note ID cannot be empty"


def test_update_collects_all_errors():
    result = validate_update("", "", "")
    assert [e.field for e in result.errors] == ["id", "note"]


def test_update_success():
    result = validate_update(" abc ", " t ", " c ")
    assert result.value.id == "abc"
    assert result.value.title == "t"
    assert result.value.content == "c"


def test_validate_id():
    assert validate_id(" n1 ").value == "n1"
    assert not validate_id("").is_valid


def test_format_errors():
    result = validate_update("", "a" * 201, "")
    assert format_errors(result.errors) == (
        "[required] id: Note ID cannot be empty; "
        "[too-long] title: String must be at most 200 characters"
    )


def test_validation_is_idempotent():
    first = validate_create("  Hello ", " World  ").value
    second = validate_create(first.title, first.content).value
    assert second == first
