"""
Live preview service configuration — all environment variables in one place.

Read from environment at runtime.
"""

from __future__ import annotations

import os


def _flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in {"1", "true", "yes", "on"}


class Settings:
    """Application settings from environment variables."""

    # Preview lifecycle
    PREVIEW_GRACE_PERIOD_SECONDS: float = float(os.environ.get("PREVIEW_GRACE_PERIOD_SECONDS", "2.0"))

    # Harness
    PREVIEW_REACT_VERSION: str = os.environ.get("PREVIEW_REACT_VERSION", "18")
    PREVIEW_TAILWIND: bool = _flag("PREVIEW_TAILWIND", "true")

    # Limits
    PREVIEW_MAX_CODE_BYTES: int = int(os.environ.get("PREVIEW_MAX_CODE_BYTES", "500000"))

    # Logging
    LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO").upper()

    # Application
    ENVIRONMENT: str = os.environ.get("ENVIRONMENT", "development")


# Singleton instance
settings = Settings()

if settings.PREVIEW_GRACE_PERIOD_SECONDS < 0:
    raise RuntimeError("PREVIEW_GRACE_PERIOD_SECONDS must not be negative")
if settings.PREVIEW_MAX_CODE_BYTES <= 0:
    raise RuntimeError("PREVIEW_MAX_CODE_BYTES must be positive")
