"""Global exception handlers — map intake exceptions to HTTP responses.

Every expected failure is an ``IntakeError`` subclass that already carries
its HTTP status and a client-safe message, so route handlers never build
error responses themselves.  The exception's own text (which may name a
slug, question id or index) is logged server-side and never sent to the
client.
"""

import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from intake_forms.errors import IntakeError

logger = logging.getLogger(__name__)


async def intake_error_handler(request: Request, exc: IntakeError) -> JSONResponse:
    """Return the error's status code and stable message."""
    logger.warning(
        "%s [%d] at %s: %s", type(exc).__name__, exc.status_code, request.url.path, exc
    )
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.safe_message},
        headers=headers,
    )


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed bodies, path or query parameters are plain 400s."""
    logger.warning("Request validation failed at %s: %s", request.url.path, exc.errors())
    return JSONResponse(status_code=400, content={"detail": "Invalid request"})


async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unhandled exceptions — log full traceback, return 500."""
    logger.exception("Unhandled exception at %s", request.url.path)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )
