"""FastAPI application factory and configuration.

This module provides the application factory function for creating
and configuring the FastAPI application with all middleware, routes,
exception handlers and lifecycle handlers.
"""

import uuid
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from contentbase.core.config import Settings, get_settings
from contentbase.core.exceptions import (
    BadRequestError,
    ConflictError,
    NotFoundError,
    ServerError,
)
from contentbase.core.logging import (
    bind_correlation_id,
    clear_context,
    configure_logging,
    get_logger,
)
from contentbase.infrastructure.persistence.database import (
    close_database,
    get_db_manager,
    init_database,
)
from contentbase.infrastructure.persistence.entry_store import EntryStoreRegistry
from contentbase.infrastructure.services.notification_service import NotificationService
from contentbase.infrastructure.storage import (
    LocalObjectStorage,
    ObjectStorage,
    create_object_storage,
)
from contentbase.infrastructure.storage.local_storage_provider import FILES_ROUTE

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Initializes the database on startup and closes it on shutdown.
    """
    settings = get_settings()
    configure_logging(settings)

    logger.info(
        "Starting ContentBase",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
    )

    if isinstance(app.state.object_storage, LocalObjectStorage):
        app.state.object_storage.storage_path.mkdir(parents=True, exist_ok=True)
        logger.info(
            "Storage directory created",
            path=str(app.state.object_storage.storage_path),
        )

    try:
        await init_database()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error("Failed to initialize database", error=str(e))
        raise

    yield

    logger.info("Shutting down ContentBase")
    await close_database()
    logger.info("Database connection closed")


def create_app(
    settings: Settings | None = None,
    object_storage: ObjectStorage | None = None,
    notifications: NotificationService | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings to use instead of the cached environment settings.
        object_storage: Object storage to use instead of the configured one.
        notifications: Notification service to use instead of the configured one.

    Returns:
        FastAPI: Configured FastAPI application instance.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Headless CMS with schema-driven collections",
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
        lifespan=lifespan,
    )

    # Shared for the whole process, handed to services per request
    app.state.entry_store_registry = EntryStoreRegistry()
    app.state.object_storage = object_storage or create_object_storage(settings)
    app.state.notifications = notifications or NotificationService(settings=settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    register_health_check(app, settings)
    register_routes(app, settings)
    register_exception_handlers(app, settings)
    register_middleware(app)

    if isinstance(app.state.object_storage, LocalObjectStorage):
        app.mount(
            FILES_ROUTE,
            StaticFiles(directory=str(app.state.object_storage.storage_path), check_dir=False),
            name="files",
        )

    return app


def register_health_check(app: FastAPI, settings: Settings) -> None:
    """Register health check endpoints."""

    @app.get("/health", tags=["health"])
    async def health_check():
        """Basic health check endpoint.

        Returns 200 if the service is running. Does not check
        database connectivity or other dependencies.
        """
        return {
            "status": "healthy",
            "service": settings.app_name,
            "version": settings.app_version,
        }

    @app.get("/ready", tags=["health"])
    async def readiness_check():
        """Readiness check endpoint, including database connectivity."""
        db = get_db_manager()
        if await db.check_connection():
            return {
                "status": "ready",
                "service": settings.app_name,
                "version": settings.app_version,
                "database": "connected",
            }
        return JSONResponse(
            status_code=503,
            content={
                "status": "not_ready",
                "service": settings.app_name,
                "database": "disconnected",
            },
        )

    @app.get("/live", tags=["health"])
    async def liveness_check():
        """Liveness check endpoint."""
        return {
            "status": "alive",
            "service": settings.app_name,
            "version": settings.app_version,
        }


def register_routes(app: FastAPI, settings: Settings) -> None:
    """Register API routes."""
    from contentbase.infrastructure.api.routes import collections_router, entries_router

    app.include_router(
        collections_router, prefix=f"{settings.api_prefix}/collections", tags=["collections"]
    )
    app.include_router(
        entries_router, prefix=f"{settings.api_prefix}/collections", tags=["entries"]
    )

    @app.get(settings.api_prefix, tags=["root"])
    async def api_root():
        """API root endpoint."""
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "api_version": "v1",
        }


def _location(loc: tuple) -> str:
    parts = [str(p) for p in loc]
    if parts and parts[0] in {"body", "query", "path"}:
        parts = parts[1:]
    return ".".join(parts) or "body"


def register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    """Map the service error taxonomy to HTTP responses."""

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={
                "errors": [
                    {"path": _location(error.get("loc", ())), "msg": error.get("msg", "")}
                    for error in exc.errors()
                ]
            },
        )

    @app.exception_handler(BadRequestError)
    async def bad_request_handler(request: Request, exc: BadRequestError):
        logger.info("Bad request", path=request.url.path, error=str(exc))
        return JSONResponse(
            status_code=400,
            content={"errors": [issue.to_dict() for issue in exc.issues]},
        )

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return JSONResponse(
            status_code=404,
            content={"error": "Not Found", "message": exc.msg, "path": exc.path},
        )

    @app.exception_handler(ConflictError)
    async def conflict_handler(request: Request, exc: ConflictError):
        return JSONResponse(
            status_code=409,
            content={"error": "Conflict", "message": exc.msg, "path": exc.path},
        )

    @app.exception_handler(ServerError)
    async def server_error_handler(request: Request, exc: ServerError):
        logger.error(
            "Server error",
            path=request.url.path,
            method=request.method,
            error=exc.message,
            exc_type=type(exc).__name__,
        )
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "message": exc.message if settings.debug else exc.public_message,
            },
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Handle uncaught exceptions."""
        logger.error(
            "Unhandled exception",
            path=str(request.url),
            method=request.method,
            error=str(exc),
            exc_type=type(exc).__name__,
        )
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "message": str(exc) if settings.debug else ServerError.public_message,
            },
        )


def register_middleware(app: FastAPI) -> None:
    """Register custom middleware."""

    @app.middleware("http")
    async def logging_middleware(request, call_next):
        """Log every request and bind a correlation ID."""
        correlation_id = request.headers.get("X-Correlation-ID", f"cid_{uuid.uuid4().hex[:12]}")
        bind_correlation_id(correlation_id)

        logger.info(
            "Request started",
            method=request.method,
            path=str(request.url.path),
        )

        try:
            response = await call_next(request)
            logger.info(
                "Request completed",
                method=request.method,
                path=str(request.url.path),
                status_code=response.status_code,
            )
            response.headers["X-Correlation-ID"] = correlation_id
            return response
        finally:
            clear_context()


# Create the application instance
app = create_app()
