"""
Table booking service - FastAPI application
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
import structlog

from tablebook.config import settings
from tablebook.api import reservations, tables
from tablebook.errors import (
    ReservationError,
    ValidationFailed,
    SlotTaken,
    NotFound,
    NotOwner,
    AlreadyPast,
    NotCancellable,
    StoreUnavailable,
)

logging.basicConfig(format="%(message)s", level=settings.log_level.upper())

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
        if settings.log_format == "json"
        else structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()

# Most specific first; NotCancellable also covers InvalidTransition
ERROR_STATUS = (
    (ValidationFailed, 422),
    (SlotTaken, 409),
    (NotFound, 404),
    (NotOwner, 403),
    (AlreadyPast, 409),
    (NotCancellable, 409),
    (StoreUnavailable, 503),
)


def status_for(exc: ReservationError) -> int:
    for error_type, status_code in ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code
    return 400


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    logger.info("Starting table booking API", version="1.0.0", restaurant=settings.restaurant_name)
    yield
    from tablebook.database import engine

    await engine.dispose()
    logger.info("Shutting down table booking API")


# Create FastAPI application
app = FastAPI(
    title="Table Booking",
    description="Table reservations without double-booking",
    version="1.0.0",
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ReservationError)
async def reservation_error_handler(request: Request, exc: ReservationError):
    """Map booking errors to HTTP responses with diner-facing messages"""
    status_code = status_for(exc)
    if isinstance(exc, StoreUnavailable):
        logger.error(
            "Store unavailable",
            path=request.url.path,
            cause=repr(exc.__cause__) if exc.__cause__ else None,
        )
    else:
        logger.warning("Booking rejected", path=request.url.path, code=exc.code, detail=exc.message)
    return JSONResponse(status_code=status_code, content={"code": exc.code, "detail": exc.message})


# Health check endpoints
@app.get("/health")
async def health():
    """Basic health check"""
    return {"status": "healthy", "service": "api", "version": "1.0.0"}


@app.get("/health/ready")
async def ready():
    """Readiness check with dependency verification"""
    from tablebook.database import SessionLocal

    checks = {}

    # Check database
    try:
        async with SessionLocal() as db:
            await db.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as e:
        logger.error("Readiness check failed", dependency="database", error=str(e))
        checks["database"] = "failed"

    all_ok = all(v == "ok" for v in checks.values())

    return JSONResponse(
        status_code=200 if all_ok else 503,
        content={"status": "ready" if all_ok else "not_ready", "checks": checks},
    )


# Include API routers
app.include_router(tables.router, prefix="/tables", tags=["Tables"])
app.include_router(reservations.router, prefix="/reservations", tags=["Reservations"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "tablebook.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_debug,
    )
