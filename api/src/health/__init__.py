"""Service health checks."""

from .router import router


__all__ = ["router"]
