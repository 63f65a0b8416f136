"""HTTP middleware: request correlation, domain-error translation and CORS.

Registration order is the reverse of execution order, so setup_middleware()
adds CORS first and the request-ID layer last. That way the request_id is
already bound when ErrorHandlerMiddleware logs a failure.
"""

from __future__ import annotations

import time
import uuid
from typing import TYPE_CHECKING

import structlog
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from agent_autopilot.domain.exceptions import (
    AutopilotError,
    BalanceUnavailableError,
    BidNotFoundError,
    DuplicateBidError,
    DuplicateOperationError,
    InvalidControlActionError,
    InvalidStateTransitionError,
    LedgerWriteError,
    OversightNotFoundError,
)

if TYPE_CHECKING:
    from fastapi import FastAPI, Request, Response

logger = structlog.get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# Checked in order; the first matching class wins. Anything else derived
# from AutopilotError is a 400.
_STATUS_BY_ERROR: tuple[tuple[type[AutopilotError], int], ...] = (
    (BidNotFoundError, 404),
    (OversightNotFoundError, 404),
    (InvalidStateTransitionError, 409),
    (DuplicateBidError, 409),
    (DuplicateOperationError, 409),
    (LedgerWriteError, 503),
    (BalanceUnavailableError, 503),
    (InvalidControlActionError, 400),
)


def status_for(exc: AutopilotError) -> int:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return 400


def error_response(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": code, "message": message})


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Bind a request_id for the duration of the request and echo it back."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        started = time.perf_counter()

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        logger.debug(
            "http.request",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 1),
        )
        return response


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Turn domain exceptions into ``{"error": code, "message": ...}`` bodies."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        try:
            return await call_next(request)
        except AutopilotError as exc:
            status_code = status_for(exc)
            log = logger.warning if status_code < 500 else logger.error
            log(
                "api.domain_error",
                path=request.url.path,
                code=exc.code,
                error=exc.message,
                status=status_code,
            )
            return error_response(status_code, exc.code, exc.message)
        except Exception as exc:
            logger.exception("api.unhandled_error", path=request.url.path, error=str(exc))
            return error_response(500, "INTERNAL_ERROR", "An unexpected error occurred")


def setup_middleware(app: FastAPI) -> None:
    """Register CORS, error handling and request IDs on the app."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )
    app.add_middleware(ErrorHandlerMiddleware)
    app.add_middleware(RequestIDMiddleware)
