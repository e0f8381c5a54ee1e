import logging
import os

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from quotedesk.api.router import api_router
from quotedesk.config import settings
from quotedesk.core.clock import utc_now_iso
from quotedesk.core.observability import (
    global_exception_handler,
    quote_error_handler,
    request_logging_middleware,
    uptime_seconds,
    validation_exception_handler,
)
from quotedesk.database import POOL_CONFIG, engine
from quotedesk.services.errors import QuoteError

api_prefix = settings.api_prefix

logger = logging.getLogger("quotedesk")
logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")

app = FastAPI(
    title=settings.app_name,
    docs_url="/docs" if settings.enable_docs else None,
    redoc_url="/redoc" if settings.enable_docs else None,
    openapi_url=(f"{api_prefix}/openapi.json" if api_prefix else "/openapi.json")
    if settings.enable_docs
    else None,
)

# Expose logger and CORS origins to middleware/handlers without circular imports.
app.state.logger = logger
app.state.settings_cors_origins = list(settings.cors_origins or [])

app.add_exception_handler(QuoteError, quote_error_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)

# Request-level logging + request correlation id.
app.middleware("http")(request_logging_middleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix=api_prefix)


@app.on_event("startup")
def _log_runtime_config():
    pool_status = None
    try:
        pool_status = engine.pool.status()
    except Exception:
        pool_status = None

    logger.info(
        "runtime_config",
        extra={
            "pid": os.getpid(),
            "environment": settings.environment,
            "api_prefix": api_prefix,
            "db_pool": POOL_CONFIG,
            "db_pool_status": pool_status,
            "notifications_enabled": settings.notifications_enabled,
        },
    )


@app.get("/", tags=["meta"])
def root():
    docs_path = (
        (f"{api_prefix}/openapi.json" if api_prefix else "/openapi.json")
        if settings.enable_docs
        else None
    )
    return {"message": settings.app_name, "docs": docs_path}


@app.get("/health", tags=["meta"])
@app.get("/healthz", tags=["meta"])
def healthcheck():
    """Liveness check.

    Keep payload stable for monitoring systems.
    """

    return {
        "status": "ok",
        "service": settings.app_name,
        "environment": settings.environment,
        "time": utc_now_iso(),
        "uptime_seconds": round(uptime_seconds(), 2),
        "version": settings.build_version,
    }
