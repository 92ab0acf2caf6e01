"""FastAPI application for the intent relay API."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from intent_relay import __version__
from intent_relay.api.errors import register_exception_handlers
from intent_relay.api.routes import config, health, objects, text
from intent_relay.config import get_settings
from intent_relay.services import build_services

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    # Startup
    logger.info("Starting Intent Relay API")
    if getattr(app.state, "services", None) is None:
        app.state.services = build_services(get_settings())

    yield

    # Shutdown
    logger.info("Shutting down Intent Relay API")
    services = getattr(app.state, "services", None)
    if services is not None:
        await services.close()
        app.state.services = None


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application.
    """
    app = FastAPI(
        title="Intent Relay API",
        description="Intent-routed structured generation with streamed partial objects",
        version=__version__,
        lifespan=lifespan,
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Include routers
    app.include_router(health.router, tags=["Health"])
    app.include_router(objects.router, prefix="/api", tags=["Objects"])
    app.include_router(text.router, prefix="/api", tags=["Text"])
    app.include_router(config.router, prefix="/api/config", tags=["Config"])

    return app


# Application instance
app = create_app()


def run_server() -> None:
    """Run the API server."""
    settings = get_settings()

    # Configure logging
    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    uvicorn.run(
        "intent_relay.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=False,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run_server()
