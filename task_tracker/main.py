"""FastAPI main application with app factory and route configuration."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings
from .deps import build_task_service, build_task_store, get_settings
from .errors import (
    Conflict,
    FieldTooLong,
    InvalidCursor,
    InvalidLimit,
    InvalidStatus,
    MissingField,
    NotFound,
    StoreUnavailable,
    TaskServiceError,
)
from .routes import tasks
from .schemas import HealthResponse
from .utils.logging import log_requests, setup_logging

logger = logging.getLogger(__name__)

APP_VERSION = "1.0.0"

ERROR_STATUS_CODES = {
    MissingField: status.HTTP_400_BAD_REQUEST,
    FieldTooLong: status.HTTP_400_BAD_REQUEST,
    InvalidStatus: status.HTTP_400_BAD_REQUEST,
    InvalidLimit: status.HTTP_400_BAD_REQUEST,
    InvalidCursor: status.HTTP_400_BAD_REQUEST,
    NotFound: status.HTTP_404_NOT_FOUND,
    Conflict: status.HTTP_409_CONFLICT,
    StoreUnavailable: status.HTTP_503_SERVICE_UNAVAILABLE,
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager for startup and shutdown events.

    Args:
        app: FastAPI application instance
    """
    logger.info("Starting up Task Tracker application")

    try:
        settings: Settings = app.state.settings

        setup_logging(settings)
        logger.info("Logging configured")

        store = build_task_store(settings)
        app.state.task_service = build_task_service(settings, store)

        logger.info("Application startup completed successfully")

    except Exception as e:
        logger.error(f"Error during application startup: {str(e)}")
        raise

    yield

    logger.info("Shutting down Task Tracker application")
    app.state.task_service = None


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings to run with, defaults to the environment settings

    Returns:
        Configured FastAPI application instance
    """
    app = FastAPI(
        title="Task Tracker",
        description="Create, list, update the status of, and delete short tasks",
        version=APP_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings or get_settings()
    app.state.task_service = None

    app.middleware("http")(log_requests)

    @app.exception_handler(TaskServiceError)
    async def task_service_error_handler(request: Request, exc: TaskServiceError):
        """Render task service errors with their kind and message."""
        status_code = ERROR_STATUS_CODES.get(type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)
        logger.warning(f"{exc.code} ({status_code}): {exc.message} for {request.method} {request.url}")

        content = exc.to_dict()
        content.update({"status_code": status_code, "path": str(request.url)})
        return JSONResponse(status_code=status_code, content=content)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Handle HTTP exceptions with proper logging."""
        logger.warning(
            f"HTTP {exc.status_code}: {exc.detail} for {request.method} {request.url}"
        )

        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": exc.detail,
                "status_code": exc.status_code,
                "path": str(request.url),
            },
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ):
        """Handle request validation errors with detailed information."""
        logger.warning(
            f"Validation error for {request.method} {request.url}: {exc.errors()}"
        )

        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "error": "Validation error",
                "details": jsonable_errors(exc),
                "status_code": 422,
                "path": str(request.url),
            },
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle unexpected exceptions."""
        logger.error(
            f"Unexpected error for {request.method} {request.url}: {str(exc)}",
            exc_info=True,
        )

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": "Internal server error",
                "status_code": 500,
                "path": str(request.url),
            },
        )

    @app.get("/healthz", tags=["health"], response_model=HealthResponse)
    async def health_check(request: Request) -> HealthResponse:
        """Health check endpoint for monitoring and load balancers.

        Returns:
            Health status information
        """
        task_service = request.app.state.task_service
        if task_service is None:
            return HealthResponse(status="degraded", version=APP_VERSION)

        return HealthResponse(
            version=APP_VERSION,
            store_backend=task_service.store.backend_name,
        )

    @app.get("/", tags=["root"])
    async def root():
        """Root endpoint with API information."""
        return {
            "name": "Task Tracker API",
            "version": APP_VERSION,
            "docs_url": "/docs",
            "health_check": "/healthz",
            "endpoints": {
                "tasks": "/tasks",
            },
        }

    app.include_router(tasks.router, prefix="/tasks", tags=["tasks"])

    logger.info("FastAPI application created and configured")

    return app


def jsonable_errors(exc: RequestValidationError) -> list:
    """Strip non-serializable context from validation errors."""
    return [
        {key: value for key, value in error.items() if key in ("type", "loc", "msg")}
        for error in exc.errors()
    ]


def run() -> None:
    """Run the application with uvicorn."""
    settings = get_settings()
    uvicorn.run(
        "task_tracker.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.debug,
    )


# Create the app instance
app = create_app()
