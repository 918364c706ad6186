"""Uniform ``{success, error, details?}`` error envelope for every failure path."""

from __future__ import annotations

import logging

from daybook.config import get_settings
from daybook.errors import DaybookError
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

_LOCATION_PREFIXES = {"body", "query", "path", "header", "form", "cookie"}


def error_body(message: str, detail: str | None = None) -> dict:
    body: dict = {"success": False, "error": message}
    if detail and get_settings().is_development:
        body["details"] = detail
    return body


def describe_validation_error(exc: RequestValidationError) -> str:
    """First request validation failure as a single human-readable sentence."""
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = [str(part) for part in first.get("loc", ()) if str(part) not in _LOCATION_PREFIXES]
    field = ".".join(location) or "body"
    message = str(first.get("msg", "Invalid value"))
    if first.get("type") == "missing":
        return f"{field} field is required"
    if message.startswith("Value error, "):
        return message[len("Value error, ") :]
    return f"{field}: {message}"


async def daybook_error_handler(request: Request, exc: DaybookError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.detail)
    else:
        logger.info("%s %s rejected (%d): %s", request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.message, exc.detail))


async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    message = describe_validation_error(exc)
    logger.info("%s %s rejected (400): %s", request.method, request.url.path, message)
    return JSONResponse(status_code=400, content=error_body(message, str(exc.errors())))


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content=error_body("Internal server error", str(exc)))


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DaybookError, daybook_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
