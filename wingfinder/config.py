"""Application configuration loaded from environment variables."""

from typing import Optional

from pydantic_settings import BaseSettings
from pydantic import Field
from functools import lru_cache


class Settings(BaseSettings):
    """Centralised settings — no hardcoded values anywhere else."""

    # Database
    database_url: str = Field("sqlite+aiosqlite:///./wingfinder.db")

    # Security
    service_token: str = Field(...)
    allowed_origins: str = Field("http://localhost:5173,http://localhost:3000")

    # App
    app_env: str = Field("development")
    log_level: str = Field("INFO")

    # Static items snapshot (JSON array of item records); merged with live rows
    snapshot_path: Optional[str] = Field(None)
    snapshot_cache_ttl: int = Field(300)

    # Civil time for "open now". Fixed offset, not DST-aware: UTC-7 is only
    # correct while Pacific daylight time is in effect.
    civil_utc_offset_hours: int = Field(-7)
    # Before this hour an overnight range from the previous date may still apply
    overnight_cutoff_hour: int = Field(6)

    # Upper bound for an explicit ?limit=
    max_page_size: int = Field(200)

    # Derived
    @property
    def allowed_origins_list(self) -> list[str]:
        """Return ALLOWED_ORIGINS as a list."""
        return [o.strip() for o in self.allowed_origins.split(",")]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached Settings instance."""
    return Settings()


settings = get_settings()
