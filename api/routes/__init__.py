"""API Routes."""

from api.routes.health import router as health_router
from api.routes.replication import router as replication_router

__all__ = ["replication_router", "health_router"]
