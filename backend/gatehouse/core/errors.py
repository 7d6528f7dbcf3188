# gatehouse/core/errors.py
"""
Application-level errors and standardized error handlers.

Services raise GatehouseError subclasses; the handlers registered here turn
them (and request validation / ORM failures) into the JSON error envelope:

    {"success": false, "detail": {"code": "...", "message": "..."}}
"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from tortoise.exceptions import BaseORMException

logger = logging.getLogger("uvicorn.error")


class GatehouseError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"
    message: str = "Internal server error"

    def __init__(self, message: str | None = None, code: str | None = None):
        super().__init__(message or self.message)
        if message:
            self.message = message
        if code:
            self.code = code


class BadRequest(GatehouseError):
    """Malformed or missing input. The caller can fix it and retry."""
    status_code = status.HTTP_400_BAD_REQUEST
    code = "BAD_REQUEST"
    message = "Invalid request"


class NotAuthenticated(GatehouseError):
    """No session for the presented device, or a wrong credential."""
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "AUTH_REQUIRED"
    message = "Session not found. Please log in again."


class Forbidden(GatehouseError):
    """Authenticated, but not allowed: role, self-target, ban or site switch."""
    status_code = status.HTTP_403_FORBIDDEN
    code = "FORBIDDEN"
    message = "You are not allowed to do this"


class NotFound(GatehouseError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"
    message = "Not found"


class StorageFailure(GatehouseError):
    """Wraps a storage error; the detail is logged, never returned."""


def error_body(code: str, message: str) -> dict:
    return {"success": False, "detail": {"code": code, "message": message}}


async def handle_gatehouse_error(request: Request, exc: GatehouseError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("[error] %s %s failed: %s", request.method, request.url.path, exc.code)
    return JSONResponse(error_body(exc.code, exc.message), status_code=exc.status_code)


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Report the first offending field only; request bodies may carry credentials
    first = (exc.errors() or [{}])[0]
    field = ".".join(str(p) for p in first.get("loc", ()) if p != "body") or "request"
    message = f"{field}: {first.get('msg', 'invalid value')}"
    return JSONResponse(error_body("BAD_REQUEST", message), status_code=status.HTTP_400_BAD_REQUEST)


async def handle_storage_error(request: Request, exc: BaseORMException) -> JSONResponse:
    logger.error(
        "[storage] %s %s failed: %s", request.method, request.url.path, type(exc).__name__
    )
    return JSONResponse(
        error_body("INTERNAL_ERROR", "Internal server error"),
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(GatehouseError, handle_gatehouse_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(BaseORMException, handle_storage_error)
