from __future__ import annotations

import logging
import os
import time
import uuid
from typing import Callable

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import TimeoutError as SATimeoutError
from starlette.responses import Response

from quotedesk.services.errors import QuoteError

_APP_START_MONOTONIC = time.monotonic()

_SLOW_REQUEST_MS = int(os.getenv("SLOW_REQUEST_MS", "2000"))

_QUIET_PATHS = {"/health", "/healthz"}


def uptime_seconds() -> float:
    return max(0.0, time.monotonic() - _APP_START_MONOTONIC)


def _app_logger(request: Request) -> logging.Logger:
    return getattr(request.app.state, "logger", None) or logging.getLogger("quotedesk")


def _request_id(request: Request) -> str:
    rid = getattr(request.state, "request_id", None)
    if rid:
        return rid
    return request.headers.get("x-request-id") or str(uuid.uuid4())


def _pool_status() -> str | None:
    try:
        from quotedesk.database import engine

        return engine.pool.status()
    except Exception:
        return None


def _cors_headers(request: Request) -> dict[str, str]:
    # Browsers turn real 500s into opaque CORS errors without these.
    origin = request.headers.get("origin")
    if not origin:
        return {}
    allowed = set(getattr(request.app.state, "settings_cors_origins", []) or [])
    if origin in allowed or "*" in allowed:
        return {
            "Access-Control-Allow-Origin": origin,
            "Access-Control-Allow-Credentials": "true",
            "Vary": "Origin",
        }
    return {}


async def quote_error_handler(request: Request, exc: QuoteError) -> JSONResponse:
    request_id = _request_id(request)
    content = exc.to_payload()
    content["request_id"] = request_id

    level = logging.WARNING if exc.status_code >= 409 else logging.INFO
    _app_logger(request).log(
        level,
        "quote_request_rejected",
        extra={
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "code": exc.code,
            "status_code": exc.status_code,
        },
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=jsonable_encoder(content),
        headers={"X-Request-ID": request_id},
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Request validation failures share the INVALID_ARGUMENT contract."""

    request_id = _request_id(request)
    return JSONResponse(
        status_code=400,
        content={
            "detail": "Invalid request",
            "code": "INVALID_ARGUMENT",
            "errors": jsonable_encoder(exc.errors()),
            "request_id": request_id,
        },
        headers={"X-Request-ID": request_id},
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Return a structured 500 without exposing internals; log the traceback."""

    request_id = _request_id(request)
    extra = {
        "request_id": request_id,
        "method": request.method,
        "path": request.url.path,
        "exception_type": type(exc).__name__,
    }
    _app_logger(request).exception("unhandled_exception", extra=extra)

    headers = {"X-Request-ID": request_id}
    headers.update(_cors_headers(request))
    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error. Please try again later.",
            "request_id": request_id,
            "code": "INTERNAL_SERVER_ERROR",
        },
        headers=headers,
    )


async def request_logging_middleware(request: Request, call_next: Callable) -> Response:
    """Request-level logging middleware.

    Adds/propagates X-Request-ID and measures request duration.
    Does not log request/response bodies.
    """

    request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
    request.state.request_id = request_id
    logger = _app_logger(request)

    start = time.perf_counter()
    try:
        response: Response = await call_next(request)
    except SATimeoutError as exc:
        duration_ms = (time.perf_counter() - start) * 1000.0
        logger.error(
            "db_pool_timeout",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "duration_ms": round(duration_ms, 2),
                "pool_status": _pool_status(),
                "error": str(exc),
            },
        )
        raise
    except Exception:
        duration_ms = (time.perf_counter() - start) * 1000.0
        logger.exception(
            "http_request_failed",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "duration_ms": round(duration_ms, 2),
            },
        )
        raise

    duration_ms = (time.perf_counter() - start) * 1000.0
    if duration_ms >= _SLOW_REQUEST_MS:
        logger.info(
            "slow_request",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "duration_ms": round(duration_ms, 2),
                "pool_status": _pool_status(),
            },
        )

    if request.url.path not in _QUIET_PATHS:
        logger.info(
            "http_request",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": round(duration_ms, 2),
            },
        )

    response.headers.setdefault("X-Request-ID", request_id)
    return response
