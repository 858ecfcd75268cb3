"""Service configuration loaded from environment variables."""

from __future__ import annotations

from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from the environment and a .env file.

    Every field can be overridden with a ``NOTES_``-prefixed variable,
    e.g. ``NOTES_DATA_FILE=/var/lib/notes/notes.json``.
    """

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "NOTES_",
        "extra": "ignore",
    }

    # Persistence
    data_file: Path = Path("data") / "notes.json"

    # HTTP server
    host: str = "0.0.0.0"
    port: int = 3001
    cors_origins: list[str] = ["*"]

    # Logging
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, v: str) -> str:
        """logging only knows upper-case level names."""
        return v.strip().upper()


settings = Settings()
