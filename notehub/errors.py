"""
Application errors and their HTTP mapping.

Every failure the API reports carries a category distinct from success:
invalid-argument and not-found are the caller-facing ones, everything else
is an internal failure.
"""

from enum import Enum
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from notehub.logging_config import get_logger

logger = get_logger(__name__)


class ErrorCategory(str, Enum):
    INVALID_ARGUMENT = "invalid_argument"
    NOT_FOUND = "not_found"
    INTERNAL = "internal"


_STATUS_BY_CATEGORY = {
    ErrorCategory.INVALID_ARGUMENT: status.HTTP_400_BAD_REQUEST,
    ErrorCategory.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCategory.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class ApplicationError(Exception):
    """Base class for errors surfaced to API callers."""

    category: ErrorCategory = ErrorCategory.INTERNAL
    code: str = "INTERNAL"

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        code: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if code is not None:
            self.code = code

    @property
    def http_status_code(self) -> int:
        return _STATUS_BY_CATEGORY[self.category]

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, "code": self.code, "details": self.details}


class InvalidArgumentError(ApplicationError):
    category = ErrorCategory.INVALID_ARGUMENT
    code = "INVALID_ARGUMENT"


class NotFoundError(ApplicationError):
    category = ErrorCategory.NOT_FOUND
    code = "NOT_FOUND"


class InternalError(ApplicationError):
    category = ErrorCategory.INTERNAL
    code = "INTERNAL"


class StorageError(InternalError):
    """The backing store failed (connection lost, constraint violated, ...)."""

    code = "STORAGE_ERROR"


class ResourceClosedError(InternalError):
    """An operation was attempted on a repository that has been closed."""

    code = "RESOURCE_CLOSED"


class ConfigurationError(InternalError):
    code = "CONFIGURATION_ERROR"


_ERROR_CLASSES = {
    status.HTTP_400_BAD_REQUEST: InvalidArgumentError,
    status.HTTP_404_NOT_FOUND: NotFoundError,
}


def error_from_response(status_code: int, body: Any) -> ApplicationError:
    """Rebuild an ApplicationError from an error response (used by the client)."""
    if isinstance(body, dict):
        message = str(body.get("error") or body)
        details = body.get("details") if isinstance(body.get("details"), dict) else {}
        code = body.get("code")
    else:
        message, details, code = str(body), {}, None
    cls = _ERROR_CLASSES.get(status_code, InternalError)
    return cls(message, details=details, code=code)


def register_exception_handlers(app: FastAPI) -> None:
    """Map ApplicationError subclasses and request validation errors to JSON responses."""

    @app.exception_handler(ApplicationError)
    async def application_error_handler(request: Request, exc: ApplicationError):
        if exc.category is ErrorCategory.INTERNAL:
            logger.error(
                "request_failed",
                path=request.url.path,
                method=request.method,
                code=exc.code,
                error=exc.message,
                exc_info=exc,
            )
        else:
            logger.info(
                "request_rejected",
                path=request.url.path,
                method=request.method,
                code=exc.code,
                error=exc.message,
            )
        return JSONResponse(status_code=exc.http_status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"error": "ValidationError", "details": jsonable_encoder(exc.errors())},
        )
