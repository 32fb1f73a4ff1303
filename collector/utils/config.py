"""
Configuration management for the Arena data collector.

Uses pydantic-settings to load configuration from environment variables
and .env files.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional
from pydantic import PositiveInt
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # Collector output
    collector_log_path: Path = Path("collector.log")
    export_path: Path = Path("collection_export.json")

    # Polling cadence (seconds)
    readiness_interval: float = 5.0
    resync_interval: float = 1800.0

    # Inventory channels to follow; empty means every channel the host exposes
    inventory_channels: str = ""

    # Dedup seen-set bound; None keeps every digest for the process lifetime
    dedup_max_entries: Optional[PositiveInt] = None

    # API Configuration
    api_port: int = 8000
    log_level: str = "INFO"
    api_title: str = "Arena Data Collector API"
    api_version: str = "1.0.0"

    # Log watcher
    watch_poll: float = 1.0

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    def get_inventory_channels(self) -> list[str]:
        """Parse inventory channels into list, dropping blanks."""
        return [
            c.strip()
            for c in self.inventory_channels.split(',')
            if c.strip()
        ]


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
