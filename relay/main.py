"""
FastAPI application factory and configuration.
"""
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from relay.core.config import Settings, get_settings
from relay.core.context import AppContext, build_context
from relay.core.logging import setup_logging, get_logger
from relay.api import conversations, health, send, webhook


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger = get_logger(__name__)
    logger.info("Starting application...")

    if getattr(app.state, "context", None) is None:
        app.state.context = build_context(app.state.settings)

    app.state.context.store.init_schema()
    logger.info("Database initialized")

    yield

    logger.info("Shutting down application...")
    app.state.context.store.engine.dispose()


def create_app(
    settings: Optional[Settings] = None,
    context: Optional[AppContext] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Without an explicit ``context`` the store and send client are built
    from settings on startup.
    """
    if settings is None:
        settings = context.settings if context is not None else get_settings()

    setup_logging(settings)
    logger = get_logger(__name__)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Relay between the WhatsApp Cloud API webhook and an operator frontend",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.context = context

    # The operator frontend is served from another origin
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    app.include_router(webhook.router)
    app.include_router(health.router)
    app.include_router(conversations.router)
    app.include_router(send.router)

    logger.info(
        "Application created",
        extra={
            "extra_data": {
                "app_name": settings.app_name,
                "version": settings.app_version,
                "debug": settings.debug,
            }
        }
    )

    return app


# Create the application instance
app = create_app()


def run() -> None:
    """Serve the relay on HOST:PORT."""
    settings = get_settings()
    uvicorn.run(
        "relay.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
