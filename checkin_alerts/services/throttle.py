"""
Per-(subject, reason) cooldown for escalation alerts.

The throttle knows nothing about why an alert fired; it is a keyed
last-notified store with a single question: has enough time passed?

Per pair the state is implicit: no record (unarmed), inside the cooldown
(cooling), or past it (armed). Only ``mark_notified`` moves a pair into
cooling; leaving it is purely a function of elapsed time.
"""

import threading
from datetime import datetime, timedelta
from typing import Protocol

import structlog

from checkin_alerts.config import EscalationConfig
from checkin_alerts.domain.models import (
    CooldownKey,
    CooldownRecord,
    EscalationReasonKind,
    as_utc,
)

logger = structlog.get_logger(__name__)


class CooldownStore(Protocol):
    """Durable mapping of (subject, reason) to the last dispatch time."""

    def last_notified(self, key: CooldownKey) -> datetime | None:
        ...

    def mark_notified(self, key: CooldownKey, at: datetime) -> None:
        ...


class InMemoryCooldownStore:
    """Process-local store; a single lock makes every upsert atomic."""

    def __init__(self) -> None:
        self._records: dict[CooldownKey, datetime] = {}
        self._lock = threading.Lock()

    def last_notified(self, key: CooldownKey) -> datetime | None:
        with self._lock:
            return self._records.get(key)

    def mark_notified(self, key: CooldownKey, at: datetime) -> None:
        with self._lock:
            self._records[key] = at

    def records(self) -> list[CooldownRecord]:
        with self._lock:
            return [
                CooldownRecord(subject_id=k.subject_id, reason=k.reason, last_notified_at=v)
                for k, v in self._records.items()
            ]


class NotificationThrottle:
    """
    Decides whether a detected reason may fire now, and records that it fired.

    Without an explicit ``cooldown_hours`` the throttle follows
    ``EscalationConfig.notification_cooldown_hours``; ``EscalationService``
    points such a throttle at its own config via ``follow_config``.
    """

    def __init__(self, store: CooldownStore, cooldown_hours: float | None = None) -> None:
        if cooldown_hours is not None and cooldown_hours < 0:
            raise ValueError("cooldown_hours must be non-negative")
        self.store = store
        self.explicit_cooldown = cooldown_hours is not None
        if cooldown_hours is None:
            cooldown_hours = EscalationConfig().notification_cooldown_hours
        self.cooldown = timedelta(hours=cooldown_hours)
        self.logger = logger.bind(component="notification_throttle")

    @classmethod
    def from_config(cls, store: CooldownStore, config: EscalationConfig) -> "NotificationThrottle":
        return cls(store, config.notification_cooldown_hours)

    def follow_config(self, config: EscalationConfig) -> None:
        """Adopt the configured cooldown unless one was given explicitly."""
        if not self.explicit_cooldown:
            self.cooldown = timedelta(hours=config.notification_cooldown_hours)

    def should_notify(self, subject_id: str, reason: EscalationReasonKind, now: datetime) -> bool:
        """True when the pair has never fired or its cooldown has fully elapsed (inclusive)."""
        last = self.store.last_notified(CooldownKey(subject_id, reason))
        if last is None:
            return True
        return as_utc(now) - as_utc(last) >= self.cooldown

    def mark_notified(self, subject_id: str, reason: EscalationReasonKind, now: datetime) -> None:
        self.store.mark_notified(CooldownKey(subject_id, reason), as_utc(now))
        self.logger.debug("cooldown_marked", subject_id=subject_id, reason=reason.value)

    def remaining(
        self, subject_id: str, reason: EscalationReasonKind, now: datetime
    ) -> timedelta:
        """Time left before the pair is armed again; zero when already armed."""
        last = self.store.last_notified(CooldownKey(subject_id, reason))
        if last is None:
            return timedelta(0)
        return max(timedelta(0), as_utc(last) + self.cooldown - as_utc(now))
