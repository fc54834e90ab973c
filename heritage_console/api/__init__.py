# API endpoints and routers

from .session_endpoints import router as session_router
from .health_endpoints import router as health_router

__all__ = [
    "session_router",
    "health_router",
]
