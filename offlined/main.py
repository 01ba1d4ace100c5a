"""Main FastAPI application for offlined daemon.

This module creates and configures the FastAPI application that puts the
offline engine in front of the host application, with SSE streaming of
engine events.
"""

import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from offline_library.config import EngineSettings
from offline_library.config import load_config
from offline_library.engine import OfflineEngine
from offline_library.errors import PrecacheError

from . import __version__
from .routers import control_router
from .routers import events_router
from .routers import proxy_router
from .services.global_events import publish_engine_event
from .services.notification_surface import EventStreamNavigator
from .services.notification_surface import EventStreamSurface
from .services.sync_scheduler import SyncScheduler

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def create_app(settings: EngineSettings | None = None, http_client: httpx.AsyncClient | None = None) -> FastAPI:
    """Build the daemon application.

    Args:
        settings: Engine settings (default: loaded from YAML and environment)
        http_client: Optional HTTP client for the engine's transport

    Returns:
        Configured FastAPI application
    """
    settings = settings or load_config()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager.

        Starts the engine (install/activate) and the periodic sync
        scheduler, and tears both down on shutdown.
        """
        logger.info(f"Starting offlined {__version__} on {settings.host}:{settings.port}")
        logger.info(f"Application origin: {settings.app_origin}, version: {settings.version}")

        engine = OfflineEngine(
            settings,
            http_client=http_client,
            surface=EventStreamSurface(),
            navigator=EventStreamNavigator(),
            on_event=publish_engine_event,
        )
        app.state.engine = engine

        try:
            state = await engine.start()
            logger.info(f"Engine started in state {state.value}")
        except PrecacheError as e:
            # Keep serving: the previous version (or plain network) still works
            logger.error(f"Install failed, continuing without version {settings.version}: {e}")

        scheduler = None
        if settings.sync_interval_seconds:
            try:
                scheduler = SyncScheduler(engine, settings.sync_interval_seconds)
                await scheduler.start()
                app.state.sync_scheduler = scheduler
            except Exception as e:
                logger.error(f"Failed to start sync scheduler: {e}")
                scheduler = None

        yield

        logger.info("Shutting down offlined daemon")
        if scheduler is not None:
            try:
                await scheduler.stop()
            except Exception as e:
                logger.error(f"Failed to stop sync scheduler: {e}")
        await engine.aclose()
        app.state.engine = None

    app = FastAPI(
        title="offlined",
        description="Offline resilience daemon: cache, write queue and sync in front of a web application",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.engine = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Offline-Source", "X-Offline-Reason", "X-Offline-Queued-Id"],
    )
    logger.info(f"CORS enabled for origins: {settings.cors_origins}")

    app.include_router(control_router)
    app.include_router(events_router)
    # Catch-all, must stay last
    app.include_router(proxy_router)

    return app
