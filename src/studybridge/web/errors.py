"""Error envelope for the Web API.

Every failure leaves the service as ``{"error": "<message>"}`` with:

- 400 for missing or invalid request fields (no upstream call made)
- 401/404 for local auth and lookup failures
- the upstream status and message for failed upstream calls
- 500 and a fixed message for anything else
"""

from __future__ import annotations

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from studybridge.upstream.client import DEFAULT_ERROR_MESSAGE, UpstreamError
from studybridge.utils.validators import ClientInputError, NotFoundError, UnauthorizedError

logger = structlog.get_logger(__name__)


def error_response(status_code: int, message: str) -> JSONResponse:
    """Build the ``{"error": message}`` response."""
    return JSONResponse(status_code=status_code, content={"error": message})


async def _client_input_error(request: Request, exc: ClientInputError) -> JSONResponse:
    logger.info("client_input_error", path=request.url.path, error=exc.message)
    return error_response(exc.status_code, exc.message)


async def _request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
    else:
        message = "Invalid request"
    logger.info("request_validation_error", path=request.url.path, error=message)
    return error_response(status.HTTP_400_BAD_REQUEST, message)


async def _not_found_error(request: Request, exc: NotFoundError) -> JSONResponse:
    return error_response(exc.status_code, exc.message)


async def _unauthorized_error(request: Request, exc: UnauthorizedError) -> JSONResponse:
    return error_response(exc.status_code, exc.message)


async def _upstream_error(request: Request, exc: UpstreamError) -> JSONResponse:
    logger.error(
        "request_failed_upstream",
        path=request.url.path,
        status=exc.status_code,
        error=exc.message,
    )
    return error_response(exc.status_code, exc.message)


async def _unhandled_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("request_failed", path=request.url.path)
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, DEFAULT_ERROR_MESSAGE)


def register_error_handlers(app: FastAPI) -> None:
    """Install the envelope handlers on an app."""
    app.add_exception_handler(ClientInputError, _client_input_error)
    app.add_exception_handler(RequestValidationError, _request_validation_error)
    app.add_exception_handler(NotFoundError, _not_found_error)
    app.add_exception_handler(UnauthorizedError, _unauthorized_error)
    app.add_exception_handler(UpstreamError, _upstream_error)
    app.add_exception_handler(Exception, _unhandled_error)
