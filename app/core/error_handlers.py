"""
Single place where errors become HTTP responses.

Every error body has the same shape:
    {"detail": str, "error_code": ErrorKind, "details": ..., "path": str, "request_id": str}
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.exceptions import AppError, ErrorKind

logger = logging.getLogger(__name__)

STATUS_BY_KIND = {
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.BAD_REQUEST: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

KIND_BY_STATUS = {
    400: ErrorKind.BAD_REQUEST,
    401: ErrorKind.UNAUTHORIZED,
    403: ErrorKind.FORBIDDEN,
    404: ErrorKind.NOT_FOUND,
    405: ErrorKind.BAD_REQUEST,
    409: ErrorKind.CONFLICT,
    422: ErrorKind.VALIDATION,
}


def _error_response(request: Request, status_code: int, message, kind: ErrorKind, details=None, headers=None):
    return JSONResponse(
        status_code=status_code,
        content={
            "detail": message,
            "error_code": kind.value,
            "details": jsonable_encoder(details),
            "path": request.url.path,
            "request_id": getattr(request.state, "request_id", None),
        },
        headers=headers,
    )


async def app_error_handler(request: Request, exc: AppError):
    headers = {"WWW-Authenticate": "Bearer"} if exc.kind is ErrorKind.UNAUTHORIZED else None
    return _error_response(request, STATUS_BY_KIND[exc.kind], exc.message, exc.kind, exc.details, headers)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # malformed request bodies and query strings, rejected before any service runs
    return _error_response(request, 422, "Invalid request data", ErrorKind.VALIDATION, exc.errors())


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    kind = KIND_BY_STATUS.get(exc.status_code, ErrorKind.INTERNAL)
    return _error_response(request, exc.status_code, exc.detail, kind, headers=getattr(exc, "headers", None))


async def integrity_error_handler(request: Request, exc: IntegrityError):
    # unique constraints that lost a race with the service-level checks
    logger.warning("Integrity error on %s %s: %s", request.method, request.url.path, exc.orig)
    return _error_response(request, status.HTTP_409_CONFLICT, "Database constraint violation", ErrorKind.CONFLICT)


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "Something went wrong. Please try again.",
        ErrorKind.INTERNAL,
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
