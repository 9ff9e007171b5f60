"""FastAPI application entry point."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from volunteerhub.api import router as api_router
from volunteerhub.api import websocket
from volunteerhub.api.websocket import ConnectionManager
from volunteerhub.config import get_settings
from volunteerhub.db.session import close_db, init_db
from volunteerhub.exceptions import VolunteerHubError
from volunteerhub.middleware.logging import LoggingMiddleware
from volunteerhub.middleware.request_id import RequestIDMiddleware
from volunteerhub.services.publisher import NotificationPublisher

logger = structlog.get_logger()
settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager for startup/shutdown events."""
    # Startup
    logger.info("Starting VolunteerHub API", version=settings.app_version)
    await init_db()
    logger.info("Database connection initialized")

    yield

    # Shutdown
    logger.info("Shutting down VolunteerHub API")
    await close_db()
    logger.info("Database connection closed")


async def domain_error_handler(request: Request, exc: VolunteerHubError) -> ORJSONResponse:
    """Render service-layer errors as ``{message, code}``."""
    if exc.status_code >= 500:
        logger.error("request_error", code=exc.code, error=exc.message)
    else:
        logger.info("request_rejected", code=exc.code, error=exc.message)
    return ORJSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message, "code": exc.code},
    )


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> ORJSONResponse:
    """Malformed bodies are client errors: 400 with the same body shape."""
    errors = exc.errors()
    details = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()) if p != 'body')}: {err.get('msg')}"
        for err in errors
    )
    logger.info("request_rejected", code="VALIDATION_ERROR", error=details)
    return ORJSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": f"Invalid request: {details}", "code": "VALIDATION_ERROR"},
    )


def create_app(publisher: NotificationPublisher | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        publisher: Fan-out publisher handed to request handlers. Defaults to
            the application's own WebSocket connection manager.
    """
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Volunteer task lifecycle and notification fan-out service",
        openapi_url=f"{settings.api_prefix}/openapi.json",
        docs_url=f"{settings.api_prefix}/docs",
        redoc_url=f"{settings.api_prefix}/redoc",
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
    )

    connections = ConnectionManager(settings.broadcast_recipient)
    app.state.connections = connections
    app.state.publisher = publisher or connections

    # Add middleware (order matters - last added is first executed)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    # Trust proxy headers (X-Forwarded-Proto, X-Forwarded-For) from nginx
    app.add_middleware(ProxyHeadersMiddleware, trusted_hosts=["*"])

    app.add_exception_handler(VolunteerHubError, domain_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    # Include API router
    app.include_router(api_router, prefix=settings.api_prefix)
    app.include_router(websocket.router)

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint for load balancers."""
        return {"status": "healthy", "version": settings.app_version}

    return app


app = create_app()
