"""Install-time asset precaching."""

from .manager import PrecacheManager

__all__ = ["PrecacheManager"]
