# app/core/exceptions.py

import enum
from typing import Any, NamedTuple


class ErrorKind(str, enum.Enum):
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    VALIDATION = "validation_error"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    BAD_REQUEST = "bad_request"
    INTERNAL = "internal_error"


class FieldError(NamedTuple):
    field: str
    message: str


class AppError(Exception):
    """
    Expected failure raised by the service layer.

    The `kind` decides the HTTP status at the transport boundary
    (see `app.core.error_handlers`); services never build HTTP responses.
    """
    kind: ErrorKind = ErrorKind.BAD_REQUEST

    def __init__(self, message: str, *, details: Any = None):
        super().__init__(message)
        self.message = message
        self.details = details


class NotFoundError(AppError):
    kind = ErrorKind.NOT_FOUND


class ConflictError(AppError):
    kind = ErrorKind.CONFLICT


class AuthenticationError(AppError):
    kind = ErrorKind.UNAUTHORIZED


class PermissionDenied(AppError):
    kind = ErrorKind.FORBIDDEN


class ValidationFailed(AppError):
    kind = ErrorKind.VALIDATION

    def __init__(self, errors: list[FieldError], message: str = "Invalid data"):
        super().__init__(
            message,
            details=[{"field": e.field, "message": e.message} for e in errors],
        )
        self.errors = errors
