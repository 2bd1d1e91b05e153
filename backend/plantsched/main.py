"""
PlantSched FastAPI Application Entry Point

- Global exception handlers (convert domain exceptions → HTTP responses)
- Thin routers over the scheduler, module, plant-config and audit services
"""
import logging
import time
import uuid
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from plantsched.config import settings
from plantsched.database import create_tables, engine
from plantsched.core.exceptions import PlantSchedException, to_http_exception
from plantsched.utils.logging import configure_logging
from plantsched.routers import production_scheduling, modules, plant_config, calendar_audit

configure_logging(log_level=settings.LOG_LEVEL, log_format=settings.LOG_FORMAT)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    logger.info("Starting %s v%s", settings.APP_NAME, settings.APP_VERSION)
    create_tables()
    yield
    engine.dispose()
    logger.info("%s shut down.", settings.APP_NAME)


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Production capacity scheduler: suggestions, commits, simulation and calendar audit",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# ── CORS Middleware ───────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    """
    Adds request correlation metadata for observability.
    - Reads incoming X-Request-ID (if present) or generates one
    - Exposes request_id on request.state for handlers/endpoints
    - Adds timing header for basic performance visibility
    """
    start = time.perf_counter()
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id

    response = await call_next(request)

    duration_ms = (time.perf_counter() - start) * 1000
    if settings.ENABLE_REQUEST_ID:
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time-Ms"] = f"{duration_ms:.2f}"

    if settings.ENABLE_REQUEST_LOGGING:
        logger.info(
            "request_completed method=%s path=%s status=%s duration_ms=%.2f request_id=%s",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            request_id,
        )

    if settings.ENABLE_SECURITY_HEADERS:
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        if not settings.DEBUG:
            response.headers["Strict-Transport-Security"] = (
                f"max-age={settings.STRICT_TRANSPORT_SECURITY_SECONDS}; includeSubDomains"
            )

    return response

# ── Global Exception Handlers ─────────────────────────────────────────────────

@app.exception_handler(PlantSchedException)
async def plantsched_exception_handler(request: Request, exc: PlantSchedException) -> JSONResponse:
    """
    Converts all domain exceptions to structured HTTP responses.
    Keeps routers clean — they never need to catch domain exceptions.
    """
    http_exc = to_http_exception(exc)
    if http_exc.status_code >= 500:
        logger.warning(
            "request_failed code=%s path=%s request_id=%s",
            exc.code,
            request.url.path,
            getattr(request.state, "request_id", None),
        )
    return JSONResponse(
        status_code=http_exc.status_code,
        content={"success": False, "error": http_exc.detail},
    )


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"success": False, "error": {"code": "VALIDATION_ERROR", "message": str(exc)}},
    )


# ── API Routers ───────────────────────────────────────────────────────────────
API_PREFIX = "/api/v1"
app.include_router(production_scheduling.router, prefix=API_PREFIX)
app.include_router(modules.router, prefix=API_PREFIX)
app.include_router(plant_config.router, prefix=API_PREFIX)
app.include_router(calendar_audit.router, prefix=API_PREFIX)


# ── Lifecycle Events ──────────────────────────────────────────────────────────

@app.on_event("startup")
def startup_event():
    logger.info("Starting %s v%s", settings.APP_NAME, settings.APP_VERSION)
    create_tables()


@app.on_event("shutdown")
def shutdown_event():
    logger.info("%s shutting down.", settings.APP_NAME)


# ── Health Endpoints ──────────────────────────────────────────────────────────

@app.get("/", tags=["Health"])
def root():
    return {
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "docs": "/docs",
        "status": "running",
    }


@app.get("/health", tags=["Health"])
def health_check():
    return {"status": "healthy", "app": settings.APP_NAME}


@app.get("/ready", tags=["Health"])
def readiness_check(request: Request):
    """
    Lightweight readiness endpoint intended for orchestrators.
    """
    db_ok = True
    db_error = None

    if settings.READINESS_CHECK_DATABASE:
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except Exception as exc:
            db_ok = False
            db_error = str(exc)

    status = "ready" if db_ok else "not_ready"
    status_code = 200 if db_ok else 503

    return JSONResponse(
        status_code=status_code,
        content={
            "status": status,
            "app": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "request_id": getattr(request.state, "request_id", None),
            "checks": {
                "database": {
                    "enabled": settings.READINESS_CHECK_DATABASE,
                    "ok": db_ok,
                    "error": db_error,
                }
            },
        },
    )
