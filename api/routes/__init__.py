"""API Routes."""

from api.routes.assistant import router as assistant_router
from api.routes.health import router as health_router

__all__ = ["assistant_router", "health_router"]
