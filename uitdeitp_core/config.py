"""
Service Configuration
=====================
Environment-driven settings for the reminder service.
"""

import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List, Optional


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    value = os.environ.get(name)
    if value is None or value.strip() == "":
        return default
    return int(value)


def _env_int_list(name: str, default: List[int]) -> List[int]:
    value = os.environ.get(name)
    if value is None or value.strip() == "":
        return list(default)
    return [int(part) for part in value.split(",") if part.strip()]


@dataclass
class Settings:
    """Runtime configuration, usually built with ``Settings.from_env()``."""

    service_name: str = "uitdeitp-core"
    environment: str = "development"
    log_level: str = "INFO"
    log_json: bool = False

    # Storage
    database_url: Optional[str] = None
    redis_url: Optional[str] = None

    # Outbound providers
    notifyhub_url: str = "https://ntf.uitdeitp.ro"
    notifyhub_api_key: Optional[str] = None
    notifyhub_timeout: float = 5.0
    notifyhub_max_attempts: int = 3
    resend_api_key: Optional[str] = None
    resend_from_email: str = "uitdeITP <notificari@uitdeitp.ro>"

    # Public links
    app_url: str = "https://uitdeitp.ro"

    # Cron endpoint bearer secret
    cron_secret: Optional[str] = None

    # Verification codes
    code_ttl_seconds: int = 600
    max_attempts: int = 3
    codes_per_phone_per_hour: int = 3
    expose_codes: bool = False
    verify_min_response_ms: int = 150
    verify_jitter_ms: int = 50
    kiosk_verification_window_minutes: int = 30

    # Per-IP budgets (requests per hour)
    send_ip_limit: int = 10
    resend_ip_limit: int = 5
    verify_ip_limit: int = 20

    # Reminder batch
    timezone: str = "Europe/Bucharest"
    batch_time_budget_seconds: float = 60.0
    default_intervals: List[int] = field(default_factory=lambda: [7, 3, 1])

    cors_origins: List[str] = field(default_factory=list)

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def codes_visible(self) -> bool:
        """Codes may be returned or logged only outside production."""
        return self.expose_codes and not self.is_production

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables."""
        origins = os.environ.get("CORS_ORIGINS", "")
        environment = os.environ.get("APP_ENV", "development")
        return cls(
            environment=environment,
            log_level=os.environ.get("LOG_LEVEL", "INFO"),
            log_json=_env_bool("LOG_JSON", environment == "production"),
            database_url=os.environ.get("DATABASE_URL"),
            redis_url=os.environ.get("REDIS_URL"),
            notifyhub_url=os.environ.get("NOTIFYHUB_URL", "https://ntf.uitdeitp.ro"),
            notifyhub_api_key=os.environ.get("NOTIFYHUB_API_KEY"),
            resend_api_key=os.environ.get("RESEND_API_KEY"),
            resend_from_email=os.environ.get(
                "RESEND_FROM_EMAIL", "uitdeITP <notificari@uitdeitp.ro>"
            ),
            app_url=os.environ.get("APP_URL", "https://uitdeitp.ro").rstrip("/"),
            cron_secret=os.environ.get("CRON_SECRET"),
            expose_codes=_env_bool("EXPOSE_CODES", False),
            verify_min_response_ms=_env_int("VERIFY_MIN_RESPONSE_MS", 150),
            verify_jitter_ms=_env_int("VERIFY_JITTER_MS", 50),
            batch_time_budget_seconds=float(
                os.environ.get("BATCH_TIME_BUDGET_SECONDS", "60")
            ),
            default_intervals=_env_int_list("DEFAULT_INTERVALS", [7, 3, 1]),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
        )


@lru_cache
def get_settings() -> Settings:
    """Cached settings for the running process."""
    return Settings.from_env()
