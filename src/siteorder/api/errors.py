"""
siteorder.api.errors

Uniform error bodies.

Responsibilities:
- Render every handled error as `{"error": message}`.
- Map request validation failures to 400.
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import DBAPIError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.status import HTTP_400_BAD_REQUEST, HTTP_500_INTERNAL_SERVER_ERROR

from siteorder.observability.logging import get_logger

log = get_logger(__name__)


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def internal_error(e: Exception, *, event: str) -> JSONResponse:
    # Callers use this from their catch-all. Driver errors report only the
    # driver's message; the wrapped statement carries bound row values.
    log.exception(event)
    if isinstance(e, DBAPIError) and e.orig is not None:
        message = str(e.orig) or e.orig.__class__.__name__
    else:
        message = str(e) or e.__class__.__name__
    return error_response(HTTP_500_INTERNAL_SERVER_ERROR, message)


async def _http_exception_handler(_: Request, exc: StarletteHTTPException) -> JSONResponse:
    response = error_response(exc.status_code, str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def _validation_exception_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    log.info("request_validation_failed", errors=len(exc.errors()))
    return error_response(HTTP_400_BAD_REQUEST, "Invalid payload")


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)  # type: ignore[arg-type]
