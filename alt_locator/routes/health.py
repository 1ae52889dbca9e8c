"""Health and diagnostics routes."""

from fastapi import APIRouter

from alt_locator.settings import get_settings

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health")
async def health() -> dict:
    """Return basic service health information."""
    return {"status": "ok", "fallbackMode": get_settings().fallback_mode.value}
