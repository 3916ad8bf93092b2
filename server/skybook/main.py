"""FastAPI application initialization and configuration."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from .core.config import Settings, settings
from .core.database import async_session_factory, close_db, engine, init_db
from .core.exceptions import (
    ProblemDetailsException,
    generic_exception_handler,
    problem_details_handler,
    validation_exception_handler,
)
from .core.middleware import setup_middleware
from .core.observability import (
    SERVICE_VERSION,
    instrument_fastapi,
    instrument_sqlalchemy,
    setup_metrics,
    setup_structured_logging,
    setup_tracing,
)
from .routers import airports, auth, booking, flights, health, metrics, sse, users
from .services.email_service import EmailService
from .services.identity_provider import GoTrueIdentityProvider
from .services.notification_relay import NotificationRelay
from .workers.manager import WorkerManager

setup_structured_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan context manager.

    Starts observability, the schema and background workers; on shutdown
    closes SSE streams, workers, the identity client and the engine.
    """
    logger.info(
        "Starting SkyBook API",
        extra={"environment": settings.environment, "debug": settings.debug}
    )

    try:
        setup_tracing()
        setup_metrics()
        instrument_sqlalchemy(engine)

        if not settings.is_production:
            # Production schema is owned by Alembic
            await init_db()
            logger.info("Database tables ensured")

        app.state.worker_manager = WorkerManager(
            settings,
            async_session_factory,
            relay=app.state.notification_relay,
        )
        await app.state.worker_manager.start_all()
    except Exception as e:
        logger.error("Failed to initialize application", extra={"error": str(e)}, exc_info=True)
        raise

    logger.info("Application startup complete")

    yield

    logger.info("Shutting down SkyBook API")

    try:
        app.state.notification_relay.shutdown()
        await app.state.worker_manager.stop_all()
        await app.state.identity_provider.aclose()
        await close_db()
    except Exception as e:
        logger.error("Error during application cleanup", extra={"error": str(e)}, exc_info=True)

    logger.info("Application shutdown complete")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ProblemDetailsException, problem_details_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)


def register_routers(app: FastAPI) -> None:
    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(flights.router)
    app.include_router(airports.router)
    app.include_router(booking.router)
    app.include_router(users.router)
    app.include_router(sse.router)
    app.include_router(metrics.router)


def create_app(app_settings: Settings = settings) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        FastAPI: Configured FastAPI application instance
    """
    app = FastAPI(
        title="SkyBook API",
        description="Flight search and booking API with realtime seat and booking updates",
        version=SERVICE_VERSION,
        debug=app_settings.debug,
        lifespan=lifespan,
        docs_url="/docs" if app_settings.debug else None,
        redoc_url="/redoc" if app_settings.debug else None,
    )

    # Process-wide collaborators, injected into routes via core.dependencies
    app.state.notification_relay = NotificationRelay(heartbeat_seconds=app_settings.sse_heartbeat_seconds)
    app.state.email_service = EmailService(app_settings)
    app.state.identity_provider = GoTrueIdentityProvider(app_settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "traceparent", "tracestate"],
    )

    setup_middleware(app, enable_logging=True)
    instrument_fastapi(app)

    register_exception_handlers(app)
    register_routers(app)

    logger.info("FastAPI application created and configured")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "skybook.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
