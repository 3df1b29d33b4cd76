"""
Runtime Environment Validation Module

Validates required environment variables at application startup.
If validation fails, the application refuses to start (hard fail).
"""

import os
import sys
from typing import Optional

from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict


class ProductionSettings(BaseSettings):
    """
    Strict validation schema for environment variables.

    All required fields MUST be present and valid, or the application will not start.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================================================
    # CRITICAL: Database Configuration
    # ========================================================================
    database_url: str  # REQUIRED: PostgreSQL connection string

    # ========================================================================
    # CRITICAL: Firebase Authentication
    # ========================================================================
    firebase_project_id: str
    google_application_credentials: Optional[str] = None

    # ========================================================================
    # Application Configuration
    # ========================================================================
    app_name: str = "Aero Club Ops"
    debug: bool = False
    api_prefix: str = "/api"
    allowed_origins: str = "http://localhost:3000"

    # ========================================================================
    # Scheduler / workflow
    # ========================================================================
    scheduler_day_start_hour: int = 8
    scheduler_day_end_hour: int = 19
    scheduler_hour_width_px: int = 100
    meter_epsilon: float = 0.1


def _fail(message: str) -> None:
    print(f"❌ FATAL: {message}", file=sys.stderr)
    sys.exit(1)


def validate_environment() -> ProductionSettings:
    """
    Validate all required environment variables at startup.

    Returns:
        ProductionSettings: Validated settings object

    Raises:
        SystemExit: If validation fails (exit code 1)
    """
    try:
        settings = ProductionSettings()
    except ValidationError as e:
        print("❌ FATAL: Environment validation failed", file=sys.stderr)
        print("\nMissing or invalid environment variables:", file=sys.stderr)
        for error in e.errors():
            field = " -> ".join(str(loc) for loc in error["loc"])
            print(f"   • {field}: {error['msg']}", file=sys.stderr)
        print("\nPlease check your .env file or environment variables.", file=sys.stderr)
        sys.exit(1)

    # 1. CORS: wildcard only allowed in debug
    if not settings.debug:
        origins = [o.strip() for o in settings.allowed_origins.split(",")]
        if "*" in origins:
            _fail("Wildcard CORS origin (*) detected in production mode.")

    # 2. Database URL: PostgreSQL outside debug (exclusion constraints live there)
    if not settings.database_url.startswith("postgresql") and not settings.debug:
        _fail(
            "DATABASE_URL must be a PostgreSQL connection string "
            "(postgresql:// or postgresql+asyncpg://)"
        )

    # 3. Scheduler: visible day must be non-empty
    if settings.scheduler_day_end_hour <= settings.scheduler_day_start_hour:
        _fail("SCHEDULER_DAY_END_HOUR must be after SCHEDULER_DAY_START_HOUR")
    if settings.scheduler_hour_width_px <= 0:
        _fail("SCHEDULER_HOUR_WIDTH_PX must be positive")

    # 4. Firebase: credentials path exists (if provided)
    if settings.google_application_credentials:
        if not os.path.exists(settings.google_application_credentials):
            _fail(f"Firebase credentials file not found: {settings.google_application_credentials}")

    print("✅ Environment validation passed")
    print(f"   App: {settings.app_name}")
    print(f"   Debug: {settings.debug}")
    print(f"   CORS Origins: {settings.allowed_origins}")

    return settings


if __name__ == "__main__":
    validate_environment()
    print("\n✅ All environment variables are valid!")
