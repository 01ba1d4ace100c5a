"""Network access and fetch strategies."""

from .strategies import FetchStrategyEngine
from .transport import NetworkTransport

__all__ = [
    "FetchStrategyEngine",
    "NetworkTransport",
]
