"""
Configuration settings for the kaqui scheduler.

Uses Pydantic Settings for environment variable management with .env file support.
All variables are prefixed with ``KAQUI_`` (e.g. ``KAQUI_DATABASE_URL``).
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_DB_PATH = Path.home() / ".kaqui" / "kaqui.db"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="KAQUI_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Database
    # ========================================
    database_url: str = Field(
        default=f"sqlite:///{DEFAULT_DB_PATH}",
        description="SQLAlchemy connection string for the item/score store",
    )

    # ========================================
    # Scheduler
    # ========================================
    strict_invariants: bool = Field(
        default=True,
        description="Raise on out-of-range weights/scores instead of only logging them",
    )
    recent_questions_to_avoid: int = Field(
        default=6,
        ge=1,
        description="Size of the window of recently asked items excluded from question picks",
    )
    max_history_size: int = Field(
        default=40,
        ge=1,
        description="Number of graded answers kept in the session history",
    )
    default_answer_count: int = Field(
        default=6,
        ge=2,
        description="Number of answer candidates shown for multiple-choice quizzes",
    )
    composition_answer_count: int = Field(
        default=9,
        ge=2,
        description="Number of answer candidates shown for the kanji composition quiz",
    )

    state_dir: Path = Field(
        default=DEFAULT_DB_PATH.parent,
        description="Directory where interrupted quiz sessions are saved",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING",
        description="Logging verbosity level",
    )
    log_file: str | None = Field(
        default=None,
        description="Log file path (None for stderr only)",
    )

    def get_database_path(self) -> Path | None:
        """Return the filesystem path of a SQLite database URL, if any."""
        prefix = "sqlite:///"
        if not self.database_url.startswith(prefix):
            return None
        raw = self.database_url[len(prefix):]
        if not raw or raw == ":memory:":
            return None
        return Path(raw)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
