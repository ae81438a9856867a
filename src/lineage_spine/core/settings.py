"""Settings for the lineage publication service.

All fields can be set through ``LINEAGE_*`` environment variables (for
example ``LINEAGE_MAX_WORKERS=16``) or a ``.env`` file. Unknown variables
are ignored so a shared environment does not break startup.

Examples:
    >>> from lineage_spine.core.settings import get_settings
    >>> settings = get_settings()
    >>> settings.max_workers
    8
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LineageSettings(BaseSettings):
    """Configuration for the publication engine, context builder and logging."""

    model_config = SettingsConfigDict(
        env_prefix="LINEAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Dispatch ─────────────────────────────────────────────────
    max_workers: int = Field(default=8, ge=1, description="Worker pool size for bulk publish")

    # ── Context building ─────────────────────────────────────────
    max_traversal_depth: int | None = Field(
        default=None,
        ge=1,
        description="Hop limit per relationship walk; None walks until every reachable vertex is visited",
    )
    glossary_term_type: str = Field(default="GlossaryTerm")
    process_type: str = Field(default="Process")

    # ── Observability ────────────────────────────────────────────
    service_name: str = Field(default="lineage-spine")
    log_level: str = Field(default="INFO")
    log_format: Literal["json", "console"] = Field(default="json")


_settings: LineageSettings | None = None


def get_settings() -> LineageSettings:
    """Return the process-wide settings, loading them on first use."""
    global _settings
    if _settings is None:
        _settings = LineageSettings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None


__all__ = ["LineageSettings", "get_settings", "reset_settings"]
