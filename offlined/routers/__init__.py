"""API routers for offlined daemon.

The proxy router matches every path and must be included last.
"""

from .control import router as control_router
from .events import router as events_router
from .proxy import router as proxy_router

__all__ = [
    "control_router",
    "events_router",
    "proxy_router",
]
