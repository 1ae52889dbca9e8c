"""Environment-driven configuration."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any, List, Optional

from dotenv import load_dotenv

from alt_locator.results import FallbackMode

logger = logging.getLogger(__name__)

FALLBACK_MODE_ENV = "ALT_LOCATOR_FALLBACK_MODE"
LOG_LEVEL_ENV = "ALT_LOCATOR_LOG_LEVEL"
CORS_ORIGINS_ENV = "ALT_LOCATOR_CORS_ORIGINS"
MAX_UPLOAD_MB_ENV = "ALT_LOCATOR_MAX_UPLOAD_MB"

DEFAULT_FALLBACK_MODE = FallbackMode.SPATIAL
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_MAX_UPLOAD_MB = 50

load_dotenv()


def _parse_positive_int(value: Any) -> Optional[int]:
    """Return value as positive int if possible; otherwise None."""
    if value is None:
        return None

    try:
        number = int(value)
    except (TypeError, ValueError):
        return None

    return number if number > 0 else None


def _parse_fallback_mode(value: Optional[str]) -> FallbackMode:
    if not value:
        return DEFAULT_FALLBACK_MODE
    try:
        return FallbackMode.parse(value)
    except ValueError:
        logger.warning(
            "[Settings] Ignoring %s=%r; using %s",
            FALLBACK_MODE_ENV,
            value,
            DEFAULT_FALLBACK_MODE.value,
        )
        return DEFAULT_FALLBACK_MODE


def _parse_origins(value: Optional[str]) -> List[str]:
    if not value:
        return ["*"]
    origins = [origin.strip() for origin in value.split(",") if origin.strip()]
    return origins or ["*"]


@dataclass
class Settings:
    fallback_mode: FallbackMode = DEFAULT_FALLBACK_MODE
    log_level: str = DEFAULT_LOG_LEVEL
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    max_upload_mb: int = DEFAULT_MAX_UPLOAD_MB

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            fallback_mode=_parse_fallback_mode(os.getenv(FALLBACK_MODE_ENV)),
            log_level=(os.getenv(LOG_LEVEL_ENV) or DEFAULT_LOG_LEVEL).upper(),
            cors_origins=_parse_origins(os.getenv(CORS_ORIGINS_ENV)),
            max_upload_mb=_parse_positive_int(os.getenv(MAX_UPLOAD_MB_ENV)) or DEFAULT_MAX_UPLOAD_MB,
        )


_settings: Optional[Settings] = None


def configure_settings(settings: Optional[Settings] = None) -> Settings:
    """Replace the process-wide settings (reading the environment if omitted)."""
    global _settings
    _settings = settings or Settings.from_env()
    return _settings


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        configure_settings()
    return _settings


__all__ = ["Settings", "configure_settings", "get_settings"]
