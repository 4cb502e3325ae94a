# infrabase/main.py
"""
infrabase Admin API
FastAPI application factory
"""

import logging
from datetime import datetime
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from infrabase.api.v1 import admin
from infrabase.config import Settings, get_settings
from infrabase.core.machine_manager import MachineManager
from infrabase.database.session import Database
from infrabase.exceptions import (
    ConfigurationError,
    DuplicateAddressError,
    DuplicateMachineError,
    InfrabaseError,
    KeyFileError,
    MachineNotFoundError,
    MissingSourceMachineError,
    NoAddressAvailableError,
    ProviderNotFoundError,
    WireGuardAddressTakenError,
)
from infrabase.schemas.base import HealthResponse

logger = logging.getLogger(__name__)

# (error type, HTTP status, error code), most specific first
ERROR_STATUS = [
    (MissingSourceMachineError, status.HTTP_404_NOT_FOUND, "MISSING_SOURCE_MACHINE"),
    (MachineNotFoundError, status.HTTP_404_NOT_FOUND, "MACHINE_NOT_FOUND"),
    (ProviderNotFoundError, status.HTTP_404_NOT_FOUND, "PROVIDER_NOT_FOUND"),
    (DuplicateMachineError, status.HTTP_409_CONFLICT, "DUPLICATE_MACHINE"),
    (DuplicateAddressError, status.HTTP_409_CONFLICT, "DUPLICATE_ADDRESS"),
    (WireGuardAddressTakenError, status.HTTP_409_CONFLICT, "WIREGUARD_ADDRESS_TAKEN"),
    (NoAddressAvailableError, status.HTTP_503_SERVICE_UNAVAILABLE, "NO_ADDRESS_AVAILABLE"),
    (ConfigurationError, status.HTTP_500_INTERNAL_SERVER_ERROR, "CONFIGURATION_ERROR"),
    (KeyFileError, status.HTTP_500_INTERNAL_SERVER_ERROR, "KEY_FILE_ERROR"),
]


def error_status(exc: InfrabaseError):
    for exc_type, status_code, error_code in ERROR_STATUS:
        if isinstance(exc, exc_type):
            return status_code, error_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR, "INFRABASE_ERROR"


def error_body(error: str, error_code: str, details: Optional[dict] = None) -> dict:
    return {
        "success": False,
        "error": error,
        "error_code": error_code,
        "details": details,
        "timestamp": datetime.utcnow().isoformat()
    }


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    """
    Build the application

    Args:
        settings: Defaults to get_settings()
        database: Defaults to a Database built from settings.DATABASE_URL
    """
    settings = settings or get_settings()
    database = database or Database.from_settings(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Application lifespan events
        - Startup: Initialize database
        - Shutdown: Cleanup resources
        """
        logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
        database.init_db()
        app.state.startup_time = datetime.utcnow()

        yield

        logger.info("Shutting down application")
        database.dispose()

    app = FastAPI(
        title=settings.APP_NAME,
        description="Machine inventory: machines, network addresses and WireGuard identities",
        version=settings.APP_VERSION,
        lifespan=lifespan
    )
    app.state.settings = settings
    app.state.database = database
    app.state.manager = MachineManager(settings)
    app.state.startup_time = None

    # === Exception Handlers ===

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle Pydantic validation errors"""
        errors = [
            {
                "field": ".".join(str(loc) for loc in error["loc"]),
                "message": error["msg"],
                "type": error["type"]
            }
            for error in exc.errors()
        ]
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=error_body("Validation error", "VALIDATION_ERROR", {"errors": errors})
        )

    @app.exception_handler(InfrabaseError)
    async def infrabase_exception_handler(request: Request, exc: InfrabaseError):
        status_code, error_code = error_status(exc)
        if status_code >= 500:
            logger.error(f"{error_code}: {exc}")
        details = {k: str(v) for k, v in vars(exc).items()} or None
        return JSONResponse(
            status_code=status_code,
            content=error_body(str(exc), error_code, details)
        )

    # === Routers ===

    app.include_router(admin.router, prefix="/api/v1/admin", tags=["Admin"])

    @app.get(
        "/health",
        response_model=HealthResponse,
        summary="Health check",
        description="Check application and database health"
    )
    async def health_check():
        """Health check endpoint for monitoring"""
        db_status = "connected" if database.check_connection() else "disconnected"

        uptime = None
        if app.state.startup_time:
            uptime = (datetime.utcnow() - app.state.startup_time).total_seconds()

        return HealthResponse(
            status="healthy" if db_status == "connected" else "unhealthy",
            service=settings.APP_NAME,
            version=settings.APP_VERSION,
            uptime_seconds=uptime,
            database=db_status
        )

    return app
