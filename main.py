"""
Gym Check-in Service

FastAPI application entry point. Multi-tenant backend for gyms: registration
and login, user administration and attendance check-ins. Every gym is a
tenant; a user belongs to exactly one gym and only ever sees its data.

Example:
    Run the service with:

    $ uvicorn main:app --host 0.0.0.0 --port 3333 --reload

    Or in production:

    $ uvicorn main:app --host 0.0.0.0 --port 3333 --workers 4
"""

import logging
import sys
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncGenerator, Dict, Any
from uuid import uuid4

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
import uvicorn

from api.responses import error
from auth.jwt_handler import TokenCodec, TokenConfig
from auth.tenant_context import TenantContextMiddleware, TenantLogFilter
from config import settings
from services.database import get_database
from utils.errors import AppError

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format='%(asctime)s - %(name)s - %(levelname)s - [gym=%(gym_id)s] - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stdout)
    ]
)
for _handler in logging.getLogger().handlers:
    _handler.addFilter(TenantLogFilter())

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application lifespan events.

    Startup builds the token codec (missing JWT secrets abort here, before any
    request is served) and opens the database. Shutdown closes the database.

    Args:
        app: FastAPI application instance

    Yields:
        None: Control is yielded during application runtime
    """
    correlation_id = str(uuid4())
    logger.info(
        "Starting gym check-in service",
        extra={
            "correlation_id": correlation_id,
            "version": settings.VERSION,
            "port": settings.PORT,
            "environment": settings.ENVIRONMENT
        }
    )

    # Raises ConfigurationError when a secret is missing
    app.state.token_codec = TokenCodec(TokenConfig.from_settings(settings))

    logger.info(
        f"Initializing database ({settings.get_database_url()})...",
        extra={"correlation_id": correlation_id}
    )
    db = get_database()
    await db.init()
    await db.wait_until_ready()
    if settings.is_development:
        await db.create_all()
    app.state.db = db
    logger.info("Database initialized and healthy", extra={"correlation_id": correlation_id})

    try:
        yield
    finally:
        logger.info("Shutting down gym check-in service", extra={"correlation_id": correlation_id})
        try:
            await db.close()
        except Exception as e:
            logger.error(f"Error closing database: {str(e)}", extra={"correlation_id": correlation_id})


# Create FastAPI application
app = FastAPI(
    title="Gym Check-in Service",
    description=(
        "Multi-tenant gym management API: authentication, user administration "
        "and attendance check-ins."
    ),
    version=settings.VERSION,
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(TenantContextMiddleware)


@app.middleware("http")
async def add_correlation_id(request: Request, call_next):
    """Add correlation ID and security headers to every response.

    Args:
        request: Incoming HTTP request
        call_next: Next middleware or route handler

    Returns:
        Response with X-Correlation-ID header
    """
    correlation_id = request.headers.get("X-Correlation-ID") or str(uuid4())
    request.state.correlation_id = correlation_id

    response = await call_next(request)
    response.headers["X-Correlation-ID"] = correlation_id
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["X-XSS-Protection"] = "1; mode=block"

    return response


# ============================================================================
# EXCEPTION HANDLERS
# ============================================================================


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Render domain errors into the error envelope with their status."""
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__}: {exc.message}", extra=exc.context)
    else:
        logger.info(
            f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}",
            extra={"status_code": exc.status_code}
        )

    return JSONResponse(status_code=exc.status_code, content=error(exc.message))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ())[1:]) or "body",
            "message": err.get("msg", "Invalid value"),
        }
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error("Validation failed", errors=errors)
    )


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    logger.warning(f"Unique constraint violation: {type(exc.orig).__name__}")
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content=error("Resource already exists")
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler for unhandled errors.

    Logs the traceback and returns a generic 500. Exception text is only
    exposed in development.
    """
    correlation_id = getattr(request.state, "correlation_id", str(uuid4()))

    logger.error(
        f"Unhandled exception: {str(exc)}",
        extra={"correlation_id": correlation_id},
        exc_info=True
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error(
            str(exc) if settings.is_development else "Internal server error",
            correlation_id=correlation_id
        )
    )


@app.get("/health", tags=["Health"])
async def health_check(request: Request) -> Dict[str, Any]:
    """Health check endpoint for service monitoring.

    Returns:
        Dict containing status ("healthy" or "unhealthy"), version, timestamp
        and the database check result
    """
    db = getattr(request.app.state, "db", None)
    is_db_healthy = bool(db) and await db.health_check()

    return {
        "status": "healthy" if is_db_healthy else "unhealthy",
        "service": "gym-checkin",
        "version": settings.VERSION,
        "timestamp": datetime.utcnow().isoformat(),
        "environment": settings.ENVIRONMENT,
        "dependencies": {"database": "healthy" if is_db_healthy else "unhealthy"}
    }


@app.get("/", tags=["Root"])
async def root() -> Dict[str, str]:
    return {
        "service": "gym-checkin",
        "version": settings.VERSION,
        "description": "Multi-tenant gym management API"
    }


# Import and include API routes
from api import router as api_router  # noqa: E402
app.include_router(api_router)


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.is_development,
        log_level=settings.LOG_LEVEL.lower()
    )
