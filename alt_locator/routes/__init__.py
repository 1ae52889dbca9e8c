"""FastAPI router modules for the alt text endpoints."""

from .health import router as health_router
from .page_images import router as page_images_router

__all__ = [
    "health_router",
    "page_images_router",
]
