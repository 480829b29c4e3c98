"""
FastAPI application entry point.

Initializes FastAPI app, registers routers, adds middleware, and configures
lifespan: logging, the idle-session sweep and engine disposal.

Dependencies: fastapi, uvicorn, widgetchat.api, widgetchat.observability, widgetchat.configs
System role: Application initialization and configuration
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from widgetchat.api import api_router, chat_ws_router
from widgetchat.api.deps import ServiceCache, get_service_cache
from widgetchat.boundary.db import dispose_engine
from widgetchat.boundary.db.create_tables import create_all_tables
from widgetchat.configs import get_settings
from widgetchat.observability.logger import configure_logging, install_loop_exception_handler
from widgetchat.observability.middleware import CorrelationMiddleware, RequestLoggingMiddleware

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Startup: configure logging, install the loop exception guard, optionally
    create tables, start the idle-session sweep.
    Shutdown: stop the sweep, clear cached components, dispose the engine.
    """
    cache: ServiceCache = app.state.service_cache
    settings = cache.settings

    configure_logging(settings.log_level)
    install_loop_exception_handler()
    logger.info("Application startup: logging configured")

    if settings.database.auto_create_tables:
        await create_all_tables()

    session_manager = cache.session_manager
    session_manager.start()

    yield

    await session_manager.stop()
    cache.clear()
    await dispose_engine()
    logger.info("Application shutdown complete")


def create_app(service_cache: ServiceCache | None = None) -> FastAPI:
    """
    Create and configure FastAPI application with routers.

    Args:
        service_cache: Component container; the process-wide cache when None

    Returns:
        FastAPI: Configured application instance with all routers registered
    """
    app = FastAPI(
        title="Widget Chat API",
        description="Real-time chat sessions with context rules, knowledge retrieval and model fallback",
        version="0.1.0",
        lifespan=lifespan,
    )

    cache = service_cache or get_service_cache()
    app.state.service_cache = cache
    if service_cache is not None:
        app.dependency_overrides[get_service_cache] = lambda: service_cache

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cache.settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add observability middleware
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(CorrelationMiddleware)

    # Register REST routers with /api/v1 prefix for versioning
    app.include_router(api_router, prefix="/api/v1")
    app.include_router(chat_ws_router)

    return app


app = create_app()


if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run("widgetchat.main:app", host=settings.host, port=settings.port)
