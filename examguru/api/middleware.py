"""API middleware: CORS, request logging, and error handling.

Starlette runs middleware last-added-first, so ``main.py`` adds
``ErrorHandlingMiddleware`` before ``RequestLoggingMiddleware``; the
logger then sees the final status code, including converted errors.
"""

from __future__ import annotations

import time
import uuid

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from examguru.api.schemas import ErrorResponse
from examguru.utils.errors import (
    ContentGenerationError,
    ExamGuruError,
    LLMError,
    LLMNotInitializedError,
)
from examguru.utils.logging import get_logger, request_context

_logger: structlog.BoundLogger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# Checked in order; the first matching base class decides the status.
_STATUS_BY_ERROR: tuple[tuple[type[ExamGuruError], int], ...] = (
    (LLMNotInitializedError, 503),
    (ContentGenerationError, 502),
    (LLMError, 502),
)


def status_for(exc: ExamGuruError) -> int:
    for error_type, status in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status
    return 500


# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------


def configure_cors(app: FastAPI, *, allowed_origins: list[str] | None = None) -> None:
    """Add CORS middleware to the FastAPI application.

    Parameters
    ----------
    app:
        The FastAPI application instance.
    allowed_origins:
        Explicit list of allowed origins.  Defaults to ``["*"]`` for
        development; override with specific origins in production.
    """
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


# ---------------------------------------------------------------------------
# Request Logging
# ---------------------------------------------------------------------------


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every HTTP request with method, path, status code, and duration.

    The caller's ``X-Request-ID`` (or a fresh one) is bound to every log
    line emitted while the request runs and echoed on the response.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        start = time.perf_counter()
        response: Response | None = None

        with request_context(request_id, path=str(request.url.path)):
            try:
                response = await call_next(request)
                response.headers[REQUEST_ID_HEADER] = request_id
                return response
            finally:
                duration_ms = round((time.perf_counter() - start) * 1000, 2)
                _logger.info(
                    "http_request",
                    method=request.method,
                    status=response.status_code if response else 500,
                    duration_ms=duration_ms,
                )


# ---------------------------------------------------------------------------
# Error Handling
# ---------------------------------------------------------------------------


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Convert ``ExamGuruError`` subclasses into structured JSON errors.

    Model and provider failures map to 502, an uninitialised LLM runtime to
    503, and everything else in the hierarchy to 500.  Stack traces are
    logged server-side only.  Non-application exceptions fall through to
    FastAPI's default 500 handler.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        try:
            return await call_next(request)
        except ExamGuruError as exc:
            status = status_for(exc)
            _logger.error(
                "application_error",
                error_type=type(exc).__name__,
                message=exc.message,
                provider=exc.provider_name,
                path=str(request.url.path),
                status=status,
            )
            body = ErrorResponse(error=type(exc).__name__, detail=exc.message)
            return JSONResponse(status_code=status, content=body.model_dump())
