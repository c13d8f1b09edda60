"""
Event Ticketing API - Main Application Entry Point

An event ticketing service demonstrating:
- Oversell-proof ticket booking with a conditional decrement inside one transaction
- Booking and payment written atomically
- Role-gated management with roles re-read from the database per request
- Structured logging with request correlation
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ticketing.core.config import get_settings
from ticketing.core.exceptions import register_exception_handlers
from ticketing.core.logging import setup_logging, get_logger
from ticketing.core.metrics import metrics_endpoint
from ticketing.api.router import api_router
from ticketing.api.middleware import RequestLoggingMiddleware
from ticketing.db.session import Database


def create_app(database: Optional[Database] = None) -> FastAPI:
    """
    Build the application.

    When `database` is given it is used as is and left open on shutdown;
    otherwise one is created from settings at startup and disposed at exit.
    """
    settings = get_settings()
    setup_logging()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifecycle: startup and shutdown hooks."""
        logger = get_logger(__name__)
        logger.info(
            "application_starting",
            app=settings.APP_NAME,
            version=settings.APP_VERSION,
            environment=settings.ENVIRONMENT,
        )

        owned = getattr(app.state, "database", None) is None
        if owned:
            app.state.database = Database.from_settings(settings)
        logger.info("database_ready", backend=app.state.database.url.get_backend_name())

        yield

        if owned:
            await app.state.database.dispose()
        logger.info("application_shutdown")

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Event ticketing API with transactional, oversell-proof bookings",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    if database is not None:
        app.state.database = database

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.CLIENT_ORIGIN],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    register_exception_handlers(app)
    app.include_router(api_router)

    @app.get("/health", tags=["Health"])
    async def health_check():
        """Health check endpoint for Docker and load balancers."""
        return {
            "status": "healthy",
            "version": settings.APP_VERSION,
            "environment": settings.ENVIRONMENT,
        }

    @app.get("/metrics", include_in_schema=False)
    def metrics():
        return metrics_endpoint()

    return app


app = create_app()
