"""
Service configuration from environment variables and `.env`.
Invalid values stop the process at import time.
"""

from pydantic_settings import BaseSettings
from pydantic import Field, field_validator
from typing import Optional
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # SC2Pulse upstream
    pulse_base_url: str = Field(
        default="https://sc2pulse.nephest.com/sc2/api/",
        description="Base URL of the SC2Pulse API",
    )
    pulse_timeout_ms: int = Field(
        default=8000, ge=100, description="Per-request timeout for SC2Pulse (ms)"
    )
    pulse_max_retries: int = Field(
        default=3, ge=0, le=10, description="Retries after the first attempt"
    )
    pulse_retry_backoff_ms: int = Field(
        default=250, ge=0, description="Initial retry backoff (ms), doubled per retry"
    )
    pulse_batch_size: int = Field(
        default=100,
        ge=1,
        le=100,
        description="Character ids per group/team request",
    )
    sc2pulse_rps: float = Field(
        default=10, ge=0, description="Upstream requests per second, 0 disables"
    )
    pulse_season_region: str = Field(
        default="US", description="Region whose season list is authoritative"
    )

    # Caching
    pulse_cache_ttl_ms: int = Field(
        default=30000, ge=0, description="Live ranking cache TTL (ms)"
    )
    season_cache_ttl_seconds: int = Field(
        default=3600, ge=0, description="Current season cache TTL (s)"
    )
    position_indicator_cache: int = Field(
        default=24,
        ge=1,
        description="Hours the daily baseline snapshot is kept, rounded up to midnights",
    )

    # Ranking derivation
    online_threshold_minutes: int = Field(
        default=30, ge=0, description="Minutes since last game to count as online"
    )
    online_threshold_hours: int = Field(
        default=24, ge=0, description="Hours since last game to count as recent"
    )
    ranking_timezone: str = Field(
        default="America/Costa_Rica",
        description="Time zone used for all wall-clock comparisons",
    )
    ranking_min_games: int = Field(
        default=10, ge=0, description="Minimum games for the display ranking"
    )

    # Roster
    roster_csv_path: str = Field(
        default="data/ladderCR.csv", description="Path of the display-name roster CSV"
    )

    # MongoDB (snapshot store)
    mongodb_uri: str = Field(
        default="mongodb://localhost:27017",
        description="MongoDB connection URI",
    )
    mongodb_db: str = Field(default="sc2ladder", description="MongoDB database name")
    snapshot_retention_days: int = Field(
        default=90, ge=1, description="Days stored ranking snapshots are kept"
    )

    # Admin
    admin_api_token: Optional[str] = Field(
        default=None,
        min_length=16,
        description="Token for administrative endpoints; admin routes are disabled when unset",
    )

    # HTTP layer
    rate_limit: int = Field(default=60, ge=1, description="Requests per client per window")
    rate_period: int = Field(default=60, ge=1, description="Rate limit window (s)")
    redis_url: Optional[str] = Field(
        default=None,
        description="Shared rate-limit counters; in-process counters when unset",
    )
    cors_origins: str = Field(
        default="http://localhost,http://localhost:3000",
        description="Comma-separated allowed CORS origins",
    )

    log_level: str = Field(default="INFO", description="Application log level")

    @field_validator("cors_origins")
    @classmethod
    def require_cors_origin(cls, v: str) -> str:
        if not any(o.strip() for o in v.split(",")):
            raise ValueError("CORS_ORIGINS needs at least one origin")
        return v

    @field_validator("ranking_timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown time zone '{v}'")
        return v

    def get_cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }


@lru_cache
def get_settings() -> Settings:
    """Settings read once per process; invalid values raise ``ValidationError``."""
    return Settings()


ENV_HELP = {
    "PULSE_BASE_URL": "SC2Pulse API base URL",
    "PULSE_TIMEOUT_MS": "SC2Pulse request timeout (default 8000)",
    "PULSE_MAX_RETRIES": "SC2Pulse retries after the first attempt (default 3)",
    "PULSE_BATCH_SIZE": "Character ids per team request, at most 100",
    "SC2PULSE_RPS": "Upstream requests per second, 0 disables spacing (default 10)",
    "PULSE_CACHE_TTL_MS": "Live ranking cache TTL (default 30000)",
    "POSITION_INDICATOR_CACHE": "Hours the daily baseline is kept (default 24)",
    "ONLINE_THRESHOLD_MINUTES": "Minutes since last game to count as online (default 30)",
    "ONLINE_THRESHOLD_HOURS": "Hours since last game to count as recent (default 24)",
    "RANKING_TIMEZONE": "IANA time zone (default America/Costa_Rica)",
    "ROSTER_CSV_PATH": "Display-name roster CSV",
    "MONGODB_URI / MONGODB_DB": "Snapshot store",
    "ADMIN_API_TOKEN": "Admin endpoint token, at least 16 characters",
    "REDIS_URL": "Shared rate-limit counters",
    "CORS_ORIGINS": "Comma-separated allowed origins",
}

# fail fast on bad configuration
try:
    settings = get_settings()
except Exception as e:
    import sys

    print(f"Configuration Error: {e}\n\nEnvironment variables:", file=sys.stderr)
    for name, help_text in ENV_HELP.items():
        print(f"  - {name}: {help_text}", file=sys.stderr)
    raise
