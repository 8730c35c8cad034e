"""
logdeck - Main Application.

FastAPI application serving the log ingestion and query API.
"""

import logging
import sys
import traceback
from contextlib import asynccontextmanager
from uuid import UUID, uuid4

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from logdeck import __version__
from logdeck.config import get_settings
from logdeck.exceptions import LogDeckException
from logdeck.modules.logs import router as logs_router
from logdeck.observability import get_metrics_store
from logdeck.schemas import ErrorDetail, ErrorResponse, HealthResponse


def configure_logging(level: str) -> None:
    """Configure stdlib logging and route structlog events through it."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.format_exc_info,
            structlog.processors.KeyValueRenderer(key_order=["event"]),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


configure_logging(get_settings().app_log_level)
logger = logging.getLogger("logdeck")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    settings = get_settings()
    logger.info(
        f"Starting logdeck API v{__version__} "
        f"[env={settings.app_env}] "
        f"[storage={settings.storage.path}] "
        f"[features={settings.features.to_dict()}]"
    )
    yield
    logger.info("Shutting down logdeck API")


# Create FastAPI application
app = FastAPI(
    title="logdeck API",
    description="Log ingestion and query service backed by a single JSON file.",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Middleware
# =============================================================================


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all requests."""
    request_id = getattr(request.state, "request_id", "unknown")
    logger.info(f"[{request_id}] {request.method} {request.url.path}")

    response = await call_next(request)

    logger.info(f"[{request_id}] {request.method} {request.url.path} -> {response.status_code}")

    return response


# Registered last so it runs first and the request ID is set before logging.
@app.middleware("http")
async def add_request_id(request: Request, call_next):
    """Add request ID to all requests."""
    request_id = request.headers.get("X-Request-ID") or str(uuid4())
    request.state.request_id = request_id

    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id

    return response


# =============================================================================
# Exception Handlers
# =============================================================================


def _request_uuid(request: Request) -> UUID | None:
    request_id_str = getattr(request.state, "request_id", None)
    if request_id_str:
        try:
            return UUID(request_id_str)
        except (ValueError, TypeError):
            pass
    return None


def _error_content(
    request: Request,
    code: str,
    message: str,
    details: dict | None = None,
) -> dict:
    error = ErrorDetail(code=code, message=message, details=details, request_id=_request_uuid(request))
    return ErrorResponse(error=error).model_dump(mode="json")


@app.exception_handler(LogDeckException)
async def logdeck_exception_handler(request: Request, exc: LogDeckException):
    """Handle logdeck custom exceptions."""
    if exc.status_code >= 500:
        logger.error(f"LogDeckException: {exc.code} - {exc.message}")
    else:
        logger.warning(f"LogDeckException: {exc.code} - {exc.message}")

    # Errors raised outside a tracked operation (guards, query checks)
    if not exc.metrics_recorded:
        get_metrics_store().record_error(exc.code)

    return JSONResponse(
        status_code=exc.status_code,
        content=_error_content(request, exc.code, exc.message, exc.details),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Render request validation failures as 400 VALIDATION_ERROR."""
    errors = [{"loc": list(err["loc"]), "msg": err["msg"]} for err in exc.errors()]

    logger.warning(f"Request validation failed on {request.url.path}: {errors}")
    get_metrics_store().record_error("VALIDATION_ERROR")

    return JSONResponse(
        status_code=400,
        content=_error_content(request, "VALIDATION_ERROR", "Invalid request", {"errors": errors}),
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.error(f"Unhandled exception on {request.url.path}")
    logger.error(f"Exception type: {type(exc).__name__}")
    logger.error(f"Exception message: {str(exc)}")
    logger.error(f"Traceback:\n{traceback.format_exc()}")
    get_metrics_store().record_error("INTERNAL_ERROR")

    return JSONResponse(
        status_code=500,
        content=_error_content(
            request,
            "INTERNAL_ERROR",
            str(exc) if get_settings().app_debug else "An unexpected error occurred",
        ),
    )


# =============================================================================
# Health Check & Metrics
# =============================================================================


@app.get("/health", response_model=HealthResponse, tags=["health"])
async def health_check():
    """Health check endpoint."""
    settings = get_settings()
    return HealthResponse(
        status="healthy",
        version=__version__,
        features=settings.features.to_dict(),
        app_env=settings.app_env,
        is_production=settings.is_production,
        storage_path=settings.storage.path,
    )


@app.get("/metrics", tags=["health"])
def get_metrics() -> dict:
    """
    Get current metrics summary.

    Returns per-operation latencies (p50, p90, p99, mean, max), call counts
    and error counts by code.
    """
    return get_metrics_store().get_summary()


# =============================================================================
# Register Module Routers
# =============================================================================

app.include_router(logs_router, prefix=get_settings().api_prefix)


@app.get("/", include_in_schema=False)
async def root():
    """Root endpoint."""
    return {"message": "Welcome to logdeck API", "docs": "/docs"}
