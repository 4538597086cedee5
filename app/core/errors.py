"""Доменные ошибки и их отображение в HTTP ответы."""
import logging
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import InterfaceError, OperationalError

logger = logging.getLogger(__name__)


class DocCollabError(Exception):
    """Базовая ошибка приложения"""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "error"
    default_message = "Internal error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthenticated(DocCollabError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "unauthenticated"
    default_message = "Could not validate credentials"


class Forbidden(DocCollabError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"
    default_message = "Access denied"


class NotFound(DocCollabError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"
    default_message = "Not found"


class Conflict(DocCollabError):
    status_code = status.HTTP_409_CONFLICT
    code = "conflict"
    default_message = "Conflict"


class ValidationError(DocCollabError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "validation_error"
    default_message = "Invalid request"


class Unavailable(DocCollabError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "unavailable"
    default_message = "Storage is unavailable, try again later"


STORAGE_ERRORS = (OperationalError, InterfaceError)


def _error_response(error: DocCollabError) -> JSONResponse:
    headers = None
    if isinstance(error, Unauthenticated):
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(
        status_code=error.status_code,
        content={"detail": error.message, "code": error.code},
        headers=headers,
    )


async def doccollab_error_handler(request: Request, exc: DocCollabError) -> JSONResponse:
    return _error_response(exc)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": jsonable_encoder(exc.errors()), "code": ValidationError.code},
    )


async def storage_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Storage error on {request.method} {request.url.path}: {exc}")
    return _error_response(Unavailable())


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DocCollabError, doccollab_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    for error_class in STORAGE_ERRORS:
        app.add_exception_handler(error_class, storage_error_handler)
