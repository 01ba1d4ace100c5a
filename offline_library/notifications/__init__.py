"""Push notifications."""

from .dispatcher import Navigator
from .dispatcher import NotificationDispatcher
from .dispatcher import NotificationSurface

__all__ = [
    "Navigator",
    "NotificationDispatcher",
    "NotificationSurface",
]
