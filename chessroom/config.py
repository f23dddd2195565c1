"""Runtime configuration read from the environment."""
from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Server settings. Every field can be overridden by an env var of the same name (``PORT``, ``INITIAL_MINUTES`` ...)."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    host: str = "0.0.0.0"
    port: int = 3000
    # Starting allowance for each side, in minutes.
    initial_minutes: int = 5
    # Seconds between two clock ticks.
    tick_interval: float = 1.0
    # Directory with a browser client speaking the /ws protocol; mounted at "/" when set.
    static_dir: Optional[str] = None
    log_level: str = "INFO"

    @property
    def initial_ms(self) -> int:
        return self.initial_minutes * 60 * 1000


@lru_cache
def get_settings() -> Settings:
    return Settings()


__all__ = ["Settings", "get_settings"]
