"""API routes."""

from .execute import router as execute_router
from .attempts import router as attempts_router

__all__ = ["execute_router", "attempts_router"]
