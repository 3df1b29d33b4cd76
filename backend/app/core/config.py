"""Application configuration using Pydantic Settings."""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # App
    app_name: str = "Aero Club Ops"
    debug: bool = False
    api_prefix: str = "/api"
    log_level: str = "INFO"
    allowed_origins: str = "http://localhost:3000"

    # Database
    database_url: str

    # Firebase Auth
    firebase_project_id: str
    google_application_credentials: Optional[str] = None

    # Scheduler timeline (hour columns, fixed pixel width)
    scheduler_day_start_hour: int = 8
    scheduler_day_end_hour: int = 19
    scheduler_hour_width_px: int = 100

    # Check-in: minimum meter advance for a valid reading
    meter_epsilon: float = 0.1

    @property
    def origins(self) -> list[str]:
        """Parsed CORS origins."""
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance."""
    return Settings()
