"""
Global exception handlers

Every error leaves the API as {"message": "..."} with the matching status code.
Database constraint violations are translated here so repositories and
routes can let them propagate.
"""
import re
import logging

import psycopg2
from psycopg2 import errors as pg_errors
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

# "Key (email)=(a@b.vn) already exists." / "Key (lower(email::text))=..."
_KEY_DETAIL = re.compile(r"Key \((?:lower\()?(\w+)")


class ServiceError(Exception):
    """
    Business rule violation raised by the service layer.

    Carries the HTTP status the API should answer with, so services stay
    independent of FastAPI.
    """

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def _duplicate_field(exc: psycopg2.Error) -> str:
    detail = getattr(exc.diag, "message_detail", None) or ""
    match = _KEY_DETAIL.search(detail)
    if not match:
        return "Value"
    field = match.group(1)
    # composite keys such as (product_id, user_id) come back as the first column
    return field.replace("_", " ").capitalize()


def format_validation_errors(errors) -> str:
    """Join pydantic error entries into one "field: message; ..." string"""
    messages = []
    for error in errors:
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path", "form")]
        field = ".".join(location)
        message = error.get("msg", "Invalid value")
        messages.append(f"{field}: {message}" if field else message)
    return "; ".join(messages) or "Invalid request"


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = exc.detail
    if exc.status_code == status.HTTP_404_NOT_FOUND and message == "Not Found":
        message = f"Not Found - {request.url.path}"
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} -> {exc.status_code}: {message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": message},
        headers=getattr(exc, "headers", None)
    )


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": format_validation_errors(exc.errors())}
    )


async def unique_violation_handler(request: Request, exc: pg_errors.UniqueViolation) -> JSONResponse:
    field = _duplicate_field(exc)
    logger.info(f"{request.method} {request.url.path} -> duplicate {field}")
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"message": f"{field} already in use"}
    )


async def foreign_key_violation_handler(request: Request, exc: pg_errors.ForeignKeyViolation) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": "Referenced record does not exist"}
    )


async def check_violation_handler(request: Request, exc: pg_errors.CheckViolation) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": "Invalid value for one or more fields"}
    )


async def database_unavailable_handler(request: Request, exc: psycopg2.OperationalError) -> JSONResponse:
    logger.error(f"{request.method} {request.url.path} -> database unavailable: {exc}")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"message": "Database unavailable, please try again later"}
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Internal server error"}
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach all handlers to the application"""
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(pg_errors.UniqueViolation, unique_violation_handler)
    app.add_exception_handler(pg_errors.ForeignKeyViolation, foreign_key_violation_handler)
    app.add_exception_handler(pg_errors.CheckViolation, check_violation_handler)
    app.add_exception_handler(psycopg2.OperationalError, database_unavailable_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
