"""
Tests for configuration management in `checkin_alerts/config.py`.

Covers:
- Environment parsing and debug defaults
- Logging level coercion to the expected Literal
- Threshold and cooldown overrides from the environment
- Timezone validation
- get_config cache behavior
- AppConfig validation (debug only allowed in development)
"""

from __future__ import annotations

from collections.abc import Iterator
from datetime import UTC

import pytest

from checkin_alerts.config import (
    AppConfig,
    DigestConfig,
    EscalationConfig,
    TrendConfig,
    get_config,
    load_config_from_env,
)
from checkin_alerts.domain.models import MoodBucket

_ENV_VARS = (
    "ENVIRONMENT",
    "HIGH_PAIN_THRESHOLD",
    "NOTIFICATION_COOLDOWN_HOURS",
    "MAX_HISTORY_SAMPLES",
    "TREND_WINDOW_DAYS",
    "TREND_MAX_RECORDS",
    "TREND_TIMEZONE",
    "OVERDUE_DAYS_THRESHOLD",
    "COOLDOWN_DATABASE_URL",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Start from a known environment and a cold config cache."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    get_config.cache_clear()
    yield
    get_config.cache_clear()


def test_load_config_dev_defaults() -> None:
    config = load_config_from_env()

    assert config.environment == "development"
    assert config.debug is True
    assert config.logging.format == "console"
    assert config.escalation.high_pain_threshold == 8
    assert config.escalation.notification_cooldown_hours == 12
    assert config.escalation.max_history_samples == 15
    assert config.trends.window_days == 30
    assert config.trends.max_records == 250
    assert config.digest.overdue_days_threshold == 7


def test_production_uses_json_logging(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENVIRONMENT", "prod")

    config = load_config_from_env()

    assert config.environment == "production"
    assert config.debug is False
    assert config.logging.format == "json"


def test_threshold_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HIGH_PAIN_THRESHOLD", "7")
    monkeypatch.setenv("NOTIFICATION_COOLDOWN_HOURS", "0.5")
    monkeypatch.setenv("TREND_TIMEZONE", "America/Chicago")
    monkeypatch.setenv("COOLDOWN_DATABASE_URL", "sqlite:///:memory:")

    config = load_config_from_env()

    assert config.escalation.high_pain_threshold == 7
    assert config.escalation.notification_cooldown_hours == 0.5
    assert config.trends.timezone == "America/Chicago"
    assert config.database.url == "sqlite:///:memory:"


def test_logging_level_literal_coercion(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENVIRONMENT", "staging")

    monkeypatch.setenv("LOG_LEVEL", "unknown")
    assert load_config_from_env().logging.level == "INFO"

    monkeypatch.setenv("LOG_LEVEL", "error")
    assert load_config_from_env().logging.level == "ERROR"


def test_out_of_range_threshold_fails_fast(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HIGH_PAIN_THRESHOLD", "11")
    with pytest.raises(ValueError):
        load_config_from_env()


def test_get_config_is_cached(monkeypatch: pytest.MonkeyPatch) -> None:
    first = get_config()
    monkeypatch.setenv("HIGH_PAIN_THRESHOLD", "5")
    assert get_config() is first

    get_config.cache_clear()
    assert get_config().escalation.high_pain_threshold == 5


def test_debug_only_allowed_in_development() -> None:
    with pytest.raises(ValueError, match="debug mode is only allowed"):
        AppConfig(environment="production", debug=True)


class TestComponentConfigs:
    def test_escalation_defaults(self) -> None:
        config = EscalationConfig()
        assert config.mood_escalation_threshold is MoodBucket.SAD
        assert config.rapid_pain_lookback_days == 3
        assert config.rapid_pain_increase == 3
        assert config.rapid_pain_floor == 6
        assert config.rapid_mood_lookback_days == 5
        assert config.min_trend_samples == 3
        assert config.consecutive_sad_mood_count == 2

    def test_negative_cooldown_rejected(self) -> None:
        with pytest.raises(ValueError):
            EscalationConfig(notification_cooldown_hours=-1)

    def test_min_trend_samples_needs_two_points(self) -> None:
        with pytest.raises(ValueError):
            EscalationConfig(min_trend_samples=1)

    def test_utc_timezone(self) -> None:
        config = TrendConfig(timezone="utc")
        assert config.timezone == "UTC"
        assert config.tzinfo is UTC

    def test_unknown_timezone_rejected(self) -> None:
        with pytest.raises(ValueError, match="Unknown timezone"):
            TrendConfig(timezone="Mars/Olympus_Mons")

    def test_digest_caps_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            DigestConfig(max_subjects_per_section=0)
