"""FastAPI application setup and configuration."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from barberbook import __version__, config
from barberbook.api.middleware.error_handler import (
    booking_exception_handler,
    generic_exception_handler,
    http_exception_handler,
    integrity_exception_handler,
    permission_exception_handler,
    request_validation_exception_handler,
    validation_exception_handler,
)
from barberbook.api.middleware.logging import LoggingMiddleware, setup_logging
from barberbook.api.routes import appointments, auth, health, notifications, shops
from barberbook.exceptions import BookingError
from barberbook.services.cache import initialize_cache, shutdown_cache
from barberbook.services.database import initialize_database, shutdown_database


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan context manager.

    Opens the database pool and the Redis client on startup and closes
    both on shutdown.
    """
    setup_logging(log_level=config.LOG_LEVEL, log_format=config.LOG_FORMAT)

    db_manager = initialize_database(config.DATABASE_URL)
    await db_manager.initialize_async()
    initialize_cache(config.REDIS_URL)

    yield

    await shutdown_cache()
    await shutdown_database()


app = FastAPI(
    title="Barberbook",
    description="Appointment booking for barber shops: shops, services, availability and bookings",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

# ========== CORS Configuration ==========

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH"],
    allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
)

# ========== Custom Middleware ==========

# Added last so it wraps everything and logs all requests
app.add_middleware(LoggingMiddleware)

# ========== Exception Handlers ==========

app.add_exception_handler(BookingError, booking_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
app.add_exception_handler(ValidationError, validation_exception_handler)
app.add_exception_handler(IntegrityError, integrity_exception_handler)
app.add_exception_handler(PermissionError, permission_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)

# ========== Route Registration ==========

app.include_router(health.router)
app.include_router(auth.router)
app.include_router(shops.router)
app.include_router(appointments.router)
app.include_router(notifications.router)

# ========== Root Endpoint ==========


@app.get(
    "/",
    tags=["root"],
    summary="API root",
    description="Returns API information and available endpoints",
)
async def root() -> dict:
    """API root endpoint.

    Returns:
        API information and version
    """
    return {
        "service": "Barberbook",
        "version": __version__,
        "documentation": {
            "openapi": "/openapi.json",
            "swagger": "/docs",
            "redoc": "/redoc",
        },
        "health": {
            "liveness": "/v1/liveness",
            "readiness": "/v1/readiness",
            "health": "/v1/health",
        },
    }


# ========== Development Server ==========

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "barberbook.api.main:app",
        host="0.0.0.0",
        port=8080,
        reload=True,
        log_level="info",
    )
