"""Shared dependency factories for FastAPI endpoints.

The engine and its settings are created once by the application lifespan
and stored on ``app.state``.
"""

from fastapi import HTTPException
from fastapi import Request

from offline_library.config import EngineSettings
from offline_library.engine import OfflineEngine


def get_engine(request: Request) -> OfflineEngine:
    """Get the offline engine from app state.

    Raises:
        HTTPException: 503 if the engine is not running
    """
    engine = getattr(request.app.state, "engine", None)
    if engine is None:
        raise HTTPException(status_code=503, detail="Offline engine not running")
    return engine


def get_settings(request: Request) -> EngineSettings:
    """Get the daemon settings from app state."""
    return request.app.state.settings
