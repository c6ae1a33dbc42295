"""
Newsroom Editorial Workflow
===========================
HTTP adapter over the workflow orchestrator: lifecycle actions, revision and
breaking-news requests, review queue, notifications and audit log.
"""

import time
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from newsroom.api.envelope import error_envelope, success_envelope, workflow_error_envelope
from newsroom.api.routes.workflow import router as workflow_router
from newsroom.core.config import get_settings
from newsroom.core.context import (
    get_correlation_id,
    get_request_id,
    new_correlation_id,
    new_request_id,
    request_metadata_from_headers,
    set_correlation_id,
    set_request_metadata,
    set_request_id,
)
from newsroom.core.database import engine, init_db
from newsroom.core.errors import WorkflowError
from newsroom.core.logging import get_logger, setup_logging

settings = get_settings()
logger = get_logger("main")

_start_time = time.time()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup & shutdown lifecycle."""
    setup_logging()
    logger.info("app_starting", app=settings.app_name, env=settings.app_env)

    await init_db()
    logger.info("database_initialized")

    logger.info("app_ready", port=settings.app_port)
    yield

    await engine.dispose()
    logger.info("app_shutdown")


app = FastAPI(
    title=settings.app_name,
    description=(
        "Editorial workflow and authorization engine.\n\n"
        "Articles move DRAFT → REVIEW → PUBLISHED → ARCHIVED under a fixed role/capability "
        "table; revision and breaking-news requests are reviewed by editors."
    ),
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Request Logging Middleware ──

@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Bind request/correlation ids and log every request with timing."""
    request_id = request.headers.get("x-request-id") or new_request_id()
    correlation_id = request.headers.get("x-correlation-id") or new_correlation_id()
    set_request_id(request_id)
    set_correlation_id(correlation_id)
    client_host = request.client.host if request.client else None
    set_request_metadata(request_metadata_from_headers(request.headers, client_host))
    structlog.contextvars.bind_contextvars(request_id=request_id, correlation_id=correlation_id)
    start = time.time()
    response = None
    try:
        response = await call_next(request)
        return response
    finally:
        elapsed = round((time.time() - start) * 1000, 2)
        if response is not None:
            response.headers["x-request-id"] = request_id
            response.headers["x-correlation-id"] = correlation_id
            status_code = response.status_code
        else:
            status_code = 500

        if request.url.path not in ["/health", "/docs", "/redoc", "/openapi.json"]:
            logger.info(
                "http_request",
                method=request.method,
                path=request.url.path,
                status=status_code,
                elapsed_ms=elapsed,
                request_id=get_request_id(),
                correlation_id=get_correlation_id(),
            )

        structlog.contextvars.clear_contextvars()
        set_request_id("")
        set_correlation_id("")
        set_request_metadata(None)


# ── Exception Handlers ──

@app.exception_handler(WorkflowError)
async def workflow_exception_handler(request: Request, exc: WorkflowError):
    log = logger.error if exc.status_code >= 500 else logger.info
    log("workflow_error", path=request.url.path, code=exc.code, status_code=exc.status_code)
    return workflow_error_envelope(exc, meta={"path": request.url.path})


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    logger.warning(
        "http_exception",
        path=request.url.path,
        status_code=exc.status_code,
        detail=str(exc.detail),
    )
    return error_envelope(
        code="http_error",
        message="Request failed",
        status_code=exc.status_code,
        details=exc.detail,
        meta={"path": request.url.path},
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [{key: value for key, value in err.items() if key != "ctx"} for err in exc.errors()]
    logger.warning("validation_error", path=request.url.path, errors=errors)
    return error_envelope(
        code="validation_error",
        message="Validation failed",
        status_code=422,
        details=errors,
        meta={"path": request.url.path},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(
        "unhandled_exception",
        path=request.url.path,
        error=str(exc),
        error_type=type(exc).__name__,
    )
    return error_envelope(
        code="internal_error",
        message="Internal server error",
        status_code=500,
        meta={"path": request.url.path},
    )


# ── Register Routers ──

app.include_router(workflow_router, prefix="/api/v1")


@app.get("/health", tags=["System"])
async def health():
    return success_envelope(
        {
            "status": "ok",
            "app": settings.app_name,
            "uptime_seconds": round(time.time() - _start_time, 1),
        }
    )
