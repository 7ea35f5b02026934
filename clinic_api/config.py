import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


@dataclass(frozen=True)
class Settings:
    """Process configuration, built once at startup and injected where needed."""

    database_url: str = "sqlite:///./clinic.db"
    jwt_secret: str = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only
    jwt_algorithm: str = "HS256"
    jwt_expire_hours: int = 8
    # IANA zone used to read naive datetimes sent by the front desk UI
    clinic_timezone: str = "UTC"
    default_duration_minutes: int = 30

    # Database pool / timeouts
    pool_size: int = 20
    max_overflow: int = 30
    pool_timeout: int = 30
    pool_recycle: int = 300
    statement_timeout_ms: int = 0
    log_slow_queries: bool = True
    slow_query_threshold: float = 1.0

    # Rate limiting for appointment writes
    rate_limit_enabled: bool = True
    booking_rate_limit: int = 60
    booking_rate_window_seconds: int = 60

    redis_url: Optional[str] = None

    allowed_origins: tuple[str, ...] = field(
        default=("http://localhost:5173", "http://localhost:3000")
    )


def load_settings() -> Settings:
    """Read Settings from the environment"""
    jwt_secret = os.getenv("JWT_SECRET")
    if not jwt_secret:
        import warnings

        warnings.warn(
            "JWT_SECRET not set! Using insecure default - DO NOT USE IN PRODUCTION",
            RuntimeWarning,
            stacklevel=2,
        )
        jwt_secret = Settings.jwt_secret

    origins = os.getenv("ALLOWED_ORIGINS")

    return Settings(
        database_url=os.getenv("DATABASE_URL", Settings.database_url),
        jwt_secret=jwt_secret,
        jwt_expire_hours=int(os.getenv("JWT_EXPIRE_HOURS", "8")),
        clinic_timezone=os.getenv("CLINIC_TIMEZONE", "UTC"),
        default_duration_minutes=int(os.getenv("DEFAULT_DURATION_MINUTES", "30")),
        pool_size=int(os.getenv("DB_POOL_SIZE", "20")),
        max_overflow=int(os.getenv("DB_MAX_OVERFLOW", "30")),
        pool_timeout=int(os.getenv("DB_POOL_TIMEOUT", "30")),
        pool_recycle=int(os.getenv("DB_POOL_RECYCLE", "300")),
        statement_timeout_ms=int(os.getenv("DB_STATEMENT_TIMEOUT_MS", "0")),
        log_slow_queries=_env_bool("DB_LOG_SLOW_QUERIES", "true"),
        slow_query_threshold=float(os.getenv("DB_SLOW_QUERY_THRESHOLD", "1.0")),
        rate_limit_enabled=_env_bool("RATE_LIMIT_ENABLED", "true"),
        booking_rate_limit=int(os.getenv("BOOKING_RATE_LIMIT", "60")),
        booking_rate_window_seconds=int(os.getenv("BOOKING_RATE_WINDOW_SECONDS", "60")),
        redis_url=os.getenv("REDIS_URL") or None,
        allowed_origins=(
            tuple(o.strip() for o in origins.split(",") if o.strip())
            if origins
            else Settings().allowed_origins
        ),
    )


@lru_cache
def get_settings() -> Settings:
    return load_settings()
