"""
Configuration management with environment variable support and validation.

Design principles:
- Environment-specific configs (dev, staging, prod)
- Validation at startup (fail fast)
- Type safety with Pydantic
- Every clinical threshold lives here, not in the rule code
"""

import os
from datetime import UTC, tzinfo
from functools import lru_cache
from typing import Literal, cast
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from checkin_alerts.domain.models import PAIN_MAX, PAIN_MIN, MoodBucket

# Load environment variables from .env file
load_dotenv()


class EscalationConfig(BaseModel):
    """Thresholds for the escalation rules and the notification cooldown."""

    model_config = ConfigDict(frozen=True)

    high_pain_threshold: int = Field(
        default=8, ge=PAIN_MIN, le=PAIN_MAX, description="Pain at or above this alerts at once"
    )
    mood_escalation_threshold: MoodBucket = Field(
        default=MoodBucket.SAD, description="Mood at or below this rank alerts at once"
    )
    rapid_pain_lookback_days: int = Field(default=3, gt=0)
    rapid_pain_increase: int = Field(
        default=3, gt=0, description="Minimum first-to-last pain rise inside the lookback"
    )
    rapid_pain_floor: int = Field(
        default=6, ge=PAIN_MIN, le=PAIN_MAX, description="Latest pain must reach this level"
    )
    rapid_mood_lookback_days: int = Field(default=5, gt=0)
    min_trend_samples: int = Field(default=3, ge=2)
    notification_cooldown_hours: float = Field(default=12, ge=0)
    consecutive_sad_mood_count: int = Field(default=2, ge=1)
    max_history_samples: int = Field(
        default=15, gt=0, description="Cap on history records fetched per evaluation"
    )


class TrendConfig(BaseModel):
    """Defaults for trend computation requested by the UI."""

    model_config = ConfigDict(frozen=True)

    window_days: int = Field(default=30, ge=1)
    max_records: int = Field(default=250, gt=0)
    top_categories: int = Field(
        default=5, gt=0, description="Categories that get a per-day series"
    )
    timezone: str = Field(default="UTC", description="IANA zone for day buckets and dayparts")

    @field_validator("timezone")
    def validate_timezone(cls, v: str) -> str:
        if v.upper() == "UTC":
            return "UTC"
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {v}") from e
        return v

    @property
    def tzinfo(self) -> tzinfo:
        return UTC if self.timezone == "UTC" else ZoneInfo(self.timezone)


class DigestConfig(BaseModel):
    """At-risk / overdue digest settings."""

    model_config = ConfigDict(frozen=True)

    include_at_risk: bool = Field(default=True)
    include_overdue: bool = Field(default=True)
    overdue_days_threshold: int = Field(
        default=7, gt=0, description="Days since last check-in before a subject is overdue"
    )
    max_subjects_per_section: int = Field(
        default=4, gt=0, description="Keeps the digest text short"
    )


class DatabaseConfig(BaseModel):
    """Database for durable cooldown state."""

    url: str = Field(default="sqlite:///./cooldowns.db", description="SQLAlchemy database URL")
    echo: bool = Field(default=False, description="Echo SQL statements")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    format: Literal["json", "console"] = Field(default="json", description="Logging format")


class AppConfig(BaseModel):
    """Main application configuration combining all subsystems."""

    # Environment
    environment: Literal["development", "staging", "production"] = Field(
        default="development", description="Environment"
    )
    debug: bool = Field(default=False, description="Enable debug mode")

    # Component configs
    escalation: EscalationConfig = Field(default_factory=EscalationConfig)
    trends: TrendConfig = Field(default_factory=TrendConfig)
    digest: DigestConfig = Field(default_factory=DigestConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def debug_only_in_dev(self) -> "AppConfig":
        """Ensure debug mode is only allowed in development environment."""
        if self.debug and self.environment != "development":
            raise ValueError("debug mode is only allowed in development environment")
        return self


def load_config_from_env() -> AppConfig:
    """Load configuration from environment variables with validation."""

    def _env_to_literal(val: str) -> Literal["development", "staging", "production"]:
        v = val.strip().lower()
        if v in {"dev", "development"}:
            return "development"
        if v in {"stage", "staging"}:
            return "staging"
        return "production"

    def _level_to_literal(val: str) -> Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
        v = val.strip().upper()
        return cast(
            Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
            v if v in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"} else "INFO",
        )

    # Detect environment
    environment = _env_to_literal(os.getenv("ENVIRONMENT", "development"))
    debug = environment == "development"

    escalation_config = EscalationConfig(
        high_pain_threshold=int(os.getenv("HIGH_PAIN_THRESHOLD", "8")),
        notification_cooldown_hours=float(os.getenv("NOTIFICATION_COOLDOWN_HOURS", "12")),
        max_history_samples=int(os.getenv("MAX_HISTORY_SAMPLES", "15")),
    )

    trend_config = TrendConfig(
        window_days=int(os.getenv("TREND_WINDOW_DAYS", "30")),
        max_records=int(os.getenv("TREND_MAX_RECORDS", "250")),
        timezone=os.getenv("TREND_TIMEZONE", "UTC"),
    )

    digest_config = DigestConfig(
        overdue_days_threshold=int(os.getenv("OVERDUE_DAYS_THRESHOLD", "7")),
    )

    database_config = DatabaseConfig(
        url=os.getenv("COOLDOWN_DATABASE_URL", "sqlite:///./cooldowns.db"),
    )

    logging_config = LoggingConfig(
        level=_level_to_literal(os.getenv("LOG_LEVEL", "INFO")),
        format="console" if debug else "json",
    )

    return AppConfig(
        environment=environment,
        debug=debug,
        escalation=escalation_config,
        trends=trend_config,
        digest=digest_config,
        database=database_config,
        logging=logging_config,
    )


@lru_cache
def get_config() -> AppConfig:
    """Get cached application configuration."""
    return load_config_from_env()
