"""Request routing."""

from .router import RequestRouter

__all__ = ["RequestRouter"]
