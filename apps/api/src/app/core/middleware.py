"""
HTTP Middleware and Error Envelope

- Request timeout: any request running past settings.request_timeout_seconds
  is cancelled and answered with 504.
- Error envelope: every error leaves the API as
  {"success": false, "message": ..., "code": ...}.
"""

import asyncio
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from app.core.redis import RedisUnavailableError

logger = logging.getLogger(__name__)


def error_envelope(message: str, code: str | None = None, **extra) -> dict:
    """Build the failure body shared by every error response."""
    body: dict = {"success": False, "message": message}
    if code:
        body["code"] = code
    body.update(extra)
    return body


class RequestTimeoutMiddleware(BaseHTTPMiddleware):
    """Abort requests that exceed a fixed time budget."""

    def __init__(self, app, timeout_seconds: float):
        super().__init__(app)
        self.timeout_seconds = timeout_seconds

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        try:
            return await asyncio.wait_for(call_next(request), timeout=self.timeout_seconds)
        except TimeoutError:
            logger.error(
                f"Request timed out after {self.timeout_seconds}s: "
                f"{request.method} {request.url.path}"
            )
            return JSONResponse(
                status_code=status.HTTP_504_GATEWAY_TIMEOUT,
                content=error_envelope("Request timeout", "REQUEST_TIMEOUT"),
            )


async def http_exception_handler(_request: Request, exc: HTTPException) -> JSONResponse:
    detail = exc.detail
    if isinstance(detail, dict):
        extra = {k: v for k, v in detail.items() if k not in ("error", "message")}
        content = error_envelope(
            str(detail.get("message", "Request failed")), detail.get("error"), **extra
        )
    else:
        content = error_envelope(str(detail))
    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)


async def validation_exception_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = [
        {"field": ".".join(str(p) for p in err["loc"][1:]), "message": err["msg"]}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_envelope("Validation failed", "VALIDATION_ERROR", errors=errors),
    )


async def redis_unavailable_handler(_request: Request, exc: RedisUnavailableError) -> JSONResponse:
    logger.error(f"Redis-backed endpoint called without Redis: {exc}")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content=error_envelope("Service temporarily unavailable", "SERVICE_UNAVAILABLE"),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_envelope("An unexpected error occurred.", "INTERNAL_ERROR"),
    )


def register_error_handlers(app: FastAPI) -> None:
    """Attach the envelope-producing exception handlers to the app."""
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(RedisUnavailableError, redis_unavailable_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
