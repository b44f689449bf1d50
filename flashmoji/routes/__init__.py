"""API routers."""

from flashmoji.routes.images import router as images_router
from flashmoji.routes.logs import router as logs_router

__all__ = ["images_router", "logs_router"]
