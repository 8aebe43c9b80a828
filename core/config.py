"""Application configuration with environment-specific profiles.

Supports dev, staging, production and test environments via APP_ENV.
All values can be overridden by environment variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache


@dataclass(frozen=True)
class Settings:
    """Immutable application settings resolved from environment."""

    database_url: str
    app_env: str = "dev"
    log_level: str = "INFO"

    # Calendar windows
    week_starts_on: int = 0
    month_grid_days: int = 42
    max_range_days: int = 366

    # Fallback colors when a workout carries none
    direct_color: str = "#6366f1"
    program_color: str = "#3b82f6"

    # HTTP surface
    request_id_header_name: str = "X-Request-ID"
    cors_origins: list[str] = field(default_factory=lambda: ["http://localhost:5173"])

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def is_dev(self) -> bool:
        return self.app_env == "dev"


# -- Environment profiles --

_ENV_PROFILES: dict[str, dict] = {
    "dev": {
        "log_level": "DEBUG",
    },
    "staging": {
        "log_level": "INFO",
    },
    "production": {
        "log_level": "WARNING",
        "max_range_days": 186,
    },
    "test": {
        "log_level": "WARNING",
    },
}


def get_database_url() -> str:
    """Resolve database URL from env var or local default."""
    env_url = os.getenv("DATABASE_URL")
    if env_url:
        return env_url
    return "postgresql+psycopg2://localhost:5432/workout_calendar"


def _split_origins(raw: str) -> list[str]:
    return [o.strip() for o in raw.split(",") if o.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Build Settings by merging environment profile with env-var overrides."""
    app_env = os.getenv("APP_ENV", "dev")
    profile = _ENV_PROFILES.get(app_env, _ENV_PROFILES["dev"])

    return Settings(
        database_url=get_database_url(),
        app_env=app_env,
        log_level=os.getenv("LOG_LEVEL", profile.get("log_level", "INFO")),
        week_starts_on=int(os.getenv("WEEK_STARTS_ON", "0")),
        month_grid_days=int(os.getenv("MONTH_GRID_DAYS", "42")),
        max_range_days=int(os.getenv("MAX_RANGE_DAYS", str(profile.get("max_range_days", 366)))),
        direct_color=os.getenv("DIRECT_COLOR", "#6366f1"),
        program_color=os.getenv("PROGRAM_COLOR", "#3b82f6"),
        request_id_header_name=os.getenv("REQUEST_ID_HEADER_NAME", "X-Request-ID"),
        cors_origins=_split_origins(os.getenv("CORS_ORIGINS", "http://localhost:5173")),
    )
