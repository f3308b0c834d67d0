"""
Fluent schema validation for request inputs.

Validators are immutable: every builder method returns a new validator, so a
configured validator can be shared as a module-level constant.

    title = Z.string().trimmed().max(200)
    result = title.validate("  Hello ")
    result.value  # "Hello"

Checks after the type check are all applied and their errors collected, never
short-circuited.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import (
    Any,
    Callable,
    Dict,
    Generic,
    List,
    Mapping,
    Optional,
    Sequence,
    TypeVar,
    Union,
)

T = TypeVar("T")


class ValidationErrorCode(str, Enum):
    INVALID_TYPE = "invalid-type"
    TOO_SHORT = "too-short"
    TOO_LONG = "too-long"
    TOO_SMALL = "too-small"
    TOO_LARGE = "too-large"
    INVALID_FORMAT = "invalid-format"
    INVALID_ENUM = "invalid-enum"
    REQUIRED = "required"
    CUSTOM = "custom"


@dataclass(frozen=True)
class ValidationError:
    field: str
    message: str
    code: ValidationErrorCode = ValidationErrorCode.CUSTOM
    value: Any = None

    def with_field(self, name: str) -> "ValidationError":
        return replace(self, field=name)

    def to_dict(self) -> Dict[str, Any]:
        out = {"field": self.field, "message": self.message, "code": self.code.value}
        if self.value is not None:
            out["value"] = str(self.value)
        return out

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.field}: {self.message}"


class ValidationException(Exception):
    """Raised when the value of a failed validation is requested."""

    def __init__(self, errors: Sequence[ValidationError]):
        self.errors = list(errors)
        super().__init__(self.message)

    @property
    def message(self) -> str:
        return "; ".join(f"{e.field}: {e.message}" for e in self.errors)


class ValidationResult(Generic[T]):
    """Outcome of a validation: either ValidationSuccess or ValidationFailure."""

    @property
    def is_valid(self) -> bool:
        return isinstance(self, ValidationSuccess)

    @property
    def value(self) -> T:
        if isinstance(self, ValidationSuccess):
            return self.data
        raise ValidationException(self.errors)

    @property
    def value_or_none(self) -> Optional[T]:
        if isinstance(self, ValidationSuccess):
            return self.data
        return None

    @property
    def errors(self) -> List[ValidationError]:
        return []


@dataclass(frozen=True)
class ValidationSuccess(ValidationResult[T]):
    data: T


@dataclass(frozen=True)
class ValidationFailure(ValidationResult[T]):
    failures: List[ValidationError] = field(default_factory=list)

    @property
    def errors(self) -> List[ValidationError]:
        return list(self.failures)


def _result(value: Any, errors: List[ValidationError]) -> ValidationResult:
    return ValidationSuccess(value) if not errors else ValidationFailure(errors)


class Validator(Generic[T]):
    def validate(self, value: Any) -> ValidationResult[T]:
        raise NotImplementedError

    def parse(self, value: Any) -> T:
        """Validate and return the value, raising ValidationException on failure."""
        return self.validate(value).value

    def safe_parse(self, value: Any) -> Optional[T]:
        """Validate and return the value, or None on failure."""
        return self.validate(value).value_or_none


def _type_error(expected: str, value: Any) -> ValidationFailure:
    return ValidationFailure(
        [
            ValidationError(
                field="value",
                message=f"Expected {expected}, got {type(value).__name__}",
                code=ValidationErrorCode.INVALID_TYPE,
                value=value,
            )
        ]
    )


@dataclass(frozen=True)
class StringValidator(Validator[str]):
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    pattern: Optional[re.Pattern] = None
    pattern_message: Optional[str] = None
    trim: bool = False
    allowed_values: Optional[tuple] = None

    def validate(self, value: Any) -> ValidationResult[str]:
        if not isinstance(value, str):
            return _type_error("string", value)

        s = value.strip() if self.trim else value
        errors: List[ValidationError] = []

        if self.min_length is not None and len(s) < self.min_length:
            errors.append(
                ValidationError(
                    field="value",
                    message=f"String must be at least {self.min_length} characters",
                    code=ValidationErrorCode.TOO_SHORT,
                    value=s,
                )
            )

        if self.max_length is not None and len(s) > self.max_length:
            errors.append(
                ValidationError(
                    field="value",
                    message=f"String must be at most {self.max_length} characters",
                    code=ValidationErrorCode.TOO_LONG,
                    value=s,
                )
            )

        if self.pattern is not None and not self.pattern.search(s):
            errors.append(
                ValidationError(
                    field="value",
                    message=self.pattern_message or "String does not match required pattern",
                    code=ValidationErrorCode.INVALID_FORMAT,
                    value=s,
                )
            )

        if self.allowed_values is not None and s not in self.allowed_values:
            errors.append(
                ValidationError(
                    field="value",
                    message=f"Value must be one of: {', '.join(self.allowed_values)}",
                    code=ValidationErrorCode.INVALID_ENUM,
                    value=s,
                )
            )

        return _result(s, errors)

    def min(self, length: int) -> "StringValidator":
        return replace(self, min_length=length)

    def max(self, length: int) -> "StringValidator":
        return replace(self, max_length=length)

    def regex(
        self, pattern: Union[str, re.Pattern], message: Optional[str] = None
    ) -> "StringValidator":
        compiled = re.compile(pattern) if isinstance(pattern, str) else pattern
        return replace(self, pattern=compiled, pattern_message=message)

    def trimmed(self) -> "StringValidator":
        return replace(self, trim=True)

    def one_of(self, values: Sequence[str]) -> "StringValidator":
        return replace(self, allowed_values=tuple(values))


@dataclass(frozen=True)
class NumberValidator(Validator[Union[int, float]]):
    min: Optional[float] = None
    max: Optional[float] = None
    require_integer: bool = False

    def validate(self, value: Any) -> ValidationResult[Union[int, float]]:
        # bool is an int subclass but never a valid number here
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return _type_error("number", value)

        errors: List[ValidationError] = []

        if self.require_integer and isinstance(value, float) and not value.is_integer():
            errors.append(
                ValidationError(
                    field="value",
                    message="Expected integer, got float",
                    code=ValidationErrorCode.INVALID_TYPE,
                    value=value,
                )
            )

        if self.min is not None and value < self.min:
            errors.append(
                ValidationError(
                    field="value",
                    message=f"Number must be at least {self.min}",
                    code=ValidationErrorCode.TOO_SMALL,
                    value=value,
                )
            )

        if self.max is not None and value > self.max:
            errors.append(
                ValidationError(
                    field="value",
                    message=f"Number must be at most {self.max}",
                    code=ValidationErrorCode.TOO_LARGE,
                    value=value,
                )
            )

        return _result(value, errors)

    def minimum(self, value: float) -> "NumberValidator":
        return replace(self, min=value)

    def maximum(self, value: float) -> "NumberValidator":
        return replace(self, max=value)

    def integer(self) -> "NumberValidator":
        return replace(self, require_integer=True)


class ObjectValidator(Validator[T]):
    """Validates a mapping field by field and builds the output with ``constructor``."""

    def __init__(
        self,
        constructor: Callable[[Dict[str, Any]], T],
        schema: Mapping[str, Validator],
    ):
        self.constructor = constructor
        self.schema = dict(schema)

    def validate(self, value: Any) -> ValidationResult[T]:
        if not isinstance(value, Mapping):
            return _type_error("object", value)

        errors: List[ValidationError] = []
        validated: Dict[str, Any] = {}

        for name, validator in self.schema.items():
            result = validator.validate(value.get(name))
            if result.is_valid:
                validated[name] = result.value
            else:
                errors.extend(e.with_field(name) for e in result.errors)

        if errors:
            return ValidationFailure(errors)
        return ValidationSuccess(self.constructor(validated))


class Z:
    """Entry points for building validators."""

    @staticmethod
    def string() -> StringValidator:
        return StringValidator()

    @staticmethod
    def number() -> NumberValidator:
        return NumberValidator()

    @staticmethod
    def object(
        constructor: Callable[[Dict[str, Any]], T], schema: Mapping[str, Validator]
    ) -> ObjectValidator[T]:
        return ObjectValidator(constructor=constructor, schema=schema)
