"""
Settings Module - Centralized Configuration Management
=======================================================

All configuration comes from environment variables (a ``.env`` file is
loaded first when present). Settings are frozen dataclasses.

The analysis API key set by an administrator in the dashboard is stored in
the database and takes precedence over ``GEMINI_API_KEY``.
"""

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class DatabaseSettings:
    """SQLite store location."""

    path: Path = field(
        default_factory=lambda: Path(os.getenv("CROWDSCORE_DB", "crowdscore.db"))
    )


@dataclass(frozen=True)
class LLMSettings:
    """Gemini settings for the company reputation summary."""

    api_key: str = field(default_factory=lambda: os.getenv("GEMINI_API_KEY", ""))
    api_url: str = "https://generativelanguage.googleapis.com/v1beta/models"
    model: str = field(default_factory=lambda: os.getenv("GEMINI_MODEL", "gemini-2.5-flash"))

    temperature: float = 0.4
    timeout_seconds: int = 30


@dataclass(frozen=True)
class WebSettings:
    """Uvicorn server settings."""

    host: str = field(default_factory=lambda: os.getenv("CROWDSCORE_HOST", "127.0.0.1"))
    port: int = field(default_factory=lambda: int(os.getenv("CROWDSCORE_PORT", "8000")))
    reload: bool = field(default_factory=lambda: _env_bool("CROWDSCORE_RELOAD", False))


@dataclass(frozen=True)
class Settings:
    """
    Root settings container.

    Usage:
        from crowdscore.infrastructure.config import get_settings
        settings = get_settings()
        print(settings.database.path)
    """

    database: DatabaseSettings = field(default_factory=DatabaseSettings)
    llm: LLMSettings = field(default_factory=LLMSettings)
    web: WebSettings = field(default_factory=WebSettings)

    def validate(self) -> list[str]:
        """Return warnings; an empty list means everything is set."""
        issues = []

        if not self.llm.api_key:
            issues.append(
                "WARNING: GEMINI_API_KEY not set. "
                "AI analysis stays disabled until an admin saves a key."
            )

        parent = self.database.path.parent
        if str(parent) not in ("", ".") and not parent.exists():
            issues.append(f"WARNING: Database directory not found: {parent}")

        return issues


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cached Settings instance."""
    return Settings()
