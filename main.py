import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.application.services.signing_service import CredentialSigner
from src.domain.exceptions import (
    ConfigurationError,
    GatekeeperException,
    ResourceNotFoundException,
    StorageUnavailable,
    SubjectNotFound,
    ValidationException,
)
from src.infrastructure.config.settings import get_settings
from src.infrastructure.persistence.database import engine, get_db
from src.presentation.api.dependencies import set_signer
from src.presentation.api.v1.routes import access_events, credentials, scanner, tables
from src.presentation.middleware.scanner_context import ScannerContextMiddleware
from src.shared.telemetry.logging import setup_logging
from src.shared.telemetry.telemetry import TelemetryConfig, get_telemetry, set_telemetry

logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan events for application initialization and cleanup"""
    setup_logging(settings)

    # Database schema is managed outside the app (migrations or create_all in tests)

    # Fail at startup, not on the first scan, when the secret is missing
    set_signer(CredentialSigner.from_settings(settings))

    if settings.telemetry_enabled:
        try:
            telemetry = TelemetryConfig.from_settings(settings)
            telemetry.setup(
                exporter_type=settings.telemetry_exporter,
                otlp_endpoint=settings.telemetry_otlp_endpoint,
                sample_rate=settings.telemetry_sample_rate,
            )
            telemetry.instrument_fastapi(app)
            telemetry.instrument_sqlalchemy(engine)
            set_telemetry(telemetry)
        except Exception as e:
            logger.warning(f"Telemetry initialization failed: {e}. Continuing without tracing.")
    else:
        logger.info("Distributed tracing disabled in configuration")

    yield

    telemetry_instance = get_telemetry()
    if telemetry_instance:
        try:
            telemetry_instance.shutdown()
        except Exception as e:
            logger.warning(f"Error during telemetry shutdown: {e}")
        set_telemetry(None)

    set_signer(None)
    await engine.dispose()
    logger.info("Database engine disposed")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    debug=settings.debug,
    lifespan=lifespan,
)

# Scanner context (client address, user agent, correlation id) for the access log
app.add_middleware(ScannerContextMiddleware)

# Security: Using allow_credentials=True requires specific origins (not wildcard)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in settings.allowed_origins.split(",")],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _status_for(exc: GatekeeperException) -> int:
    if isinstance(exc, (ResourceNotFoundException, SubjectNotFound)):
        return 404
    if isinstance(exc, ValidationException):
        return 422
    if isinstance(exc, StorageUnavailable):
        return 503
    if isinstance(exc, ConfigurationError):
        return 500
    return 400


@app.exception_handler(GatekeeperException)
async def gatekeeper_exception_handler(request: Request, exc: GatekeeperException):
    status_code = _status_for(exc)
    if status_code >= 500:
        logger.error("%s on %s: %s", exc.error_code, request.url.path, exc.message)
    return JSONResponse(status_code=status_code, content=exc.to_dict())


@app.exception_handler(SQLAlchemyError)
async def storage_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.error("Storage error on %s: %s", request.url.path, type(exc).__name__)
    error = StorageUnavailable(request.url.path, type(exc).__name__)
    return JSONResponse(status_code=503, content=error.to_dict())


# Routers
app.include_router(scanner.router, prefix="/scanner", tags=["scanner"])
app.include_router(credentials.router, prefix="/credentials", tags=["credentials"])
app.include_router(tables.router, prefix="/tables", tags=["tables"])
app.include_router(access_events.router, prefix="/access-events", tags=["access-events"])


@app.get("/")
async def root():
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "status": "running",
    }


@app.get("/health")
async def health_check(db: AsyncSession = Depends(get_db)):
    """
    Health check endpoint for load balancers and monitoring.

    Returns:
    - 200 OK if the database answers
    - 503 Service Unavailable otherwise
    """
    checks: dict[str, Any] = {"api": True, "database": False}
    try:
        await db.execute(text("SELECT 1"))
        checks["database"] = True
        return {"status": "healthy", "checks": checks}
    except (SQLAlchemyError, OSError) as e:
        checks["error"] = type(e).__name__
        return JSONResponse(status_code=503, content={"status": "unhealthy", "checks": checks})
