"""Server configuration loaded from ``BINGO_*`` environment variables or ``.env``."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_PROJECT_ROOT = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="BINGO_",
        env_file=str(_PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Server ───────────────────────────────────────────────────────────
    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    debug: bool = False

    # ── Persistence ──────────────────────────────────────────────────────
    data_dir: Path = Field(default=_PROJECT_ROOT / "data" / "sessions")
    persist_sessions: bool = True

    # ── Catalog ──────────────────────────────────────────────────────────
    catalog_file: Optional[Path] = Field(
        default=None,
        description="JSON list of extra categories merged over the built-in ones",
    )

    # ── Speech ───────────────────────────────────────────────────────────
    speech_language: str = "en-US"
    auto_restart: bool = True
    restart_delay_ms: int = 100
    recent_detections: int = 10


settings = Settings()
