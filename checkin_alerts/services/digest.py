"""
At-risk / overdue digest for clinical staff.

At-risk status comes from the same EscalationDetector that drives real-time
alerts, so the digest and the alerts cannot disagree about thresholds.
Overdue status is days since the last check-in, counted in calendar days.
"""

from collections.abc import Callable
from datetime import UTC, datetime, tzinfo

import structlog
from pydantic import BaseModel, Field

from checkin_alerts.config import DigestConfig, EscalationConfig
from checkin_alerts.domain.models import (
    CheckInRecord,
    EscalationReasonKind,
    MoodBucket,
    as_utc,
)
from checkin_alerts.services.escalation import Detection, EscalationDetector
from checkin_alerts.services.history import (
    HistoryFilter,
    HistorySource,
    SubjectDirectory,
    fetch_history_safely,
)
from checkin_alerts.services.trends import start_of_day

logger = structlog.get_logger(__name__)

DEFAULT_SUBJECT_NAME = "This client"


class DigestEntry(BaseModel):
    subject_id: str
    name: str
    detail: str


class AlertsDigest(BaseModel):
    """Subjects needing attention, grouped by why."""

    at_risk: list[DigestEntry] = Field(default_factory=list)
    overdue: list[DigestEntry] = Field(default_factory=list)
    generated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    def body_text(self, config: DigestConfig) -> str:
        parts: list[str] = []
        if config.include_at_risk:
            parts.append(f"At-risk: {len(self.at_risk)} ({_names(self.at_risk)})")
        if config.include_overdue:
            parts.append(f"Overdue: {len(self.overdue)} ({_names(self.overdue)})")
        if not parts:
            return "No at-risk patients or overdue follow-ups right now."
        return " • ".join(parts)


def _names(entries: list[DigestEntry]) -> str:
    return ", ".join(e.name for e in entries) if entries else "none"


def at_risk_detail(detection: Detection) -> str:
    match detection.kind:
        case EscalationReasonKind.HIGH_PAIN:
            return f"High pain {detection.pain_level}/10"
        case EscalationReasonKind.LOW_MOOD:
            mood = detection.mood.display_text if detection.mood else "Sad"
            return f"Low mood ({mood})"
        case EscalationReasonKind.RAPID_PAIN_INCREASE:
            return f"Pain up {detection.pain_from}→{detection.pain_to}"
        case EscalationReasonKind.RAPID_MOOD_DROP:
            if detection.previous_mood in (None, MoodBucket.SAD):
                return "Mood stayed Sad"
            return f"Mood down from {detection.previous_mood.display_text}"


def overdue_detail(
    history: list[CheckInRecord], now: datetime, threshold_days: int, tz: tzinfo
) -> str | None:
    last = next((r.created_at for r in history if r.created_at is not None), None)
    if last is None:
        return "No check-ins yet"

    days = (start_of_day(now, tz).date() - start_of_day(last, tz).date()).days
    if days >= threshold_days:
        return f"Last check-in {days}d ago"
    return None


class AlertsDigestBuilder:
    """Builds the digest across every subject in the directory."""

    def __init__(
        self,
        history_source: HistorySource,
        subjects: SubjectDirectory,
        config: DigestConfig | None = None,
        escalation_config: EscalationConfig | None = None,
        tz: tzinfo = UTC,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.history_source = history_source
        self.subjects = subjects
        self.config = config or DigestConfig()
        self.escalation_config = escalation_config or EscalationConfig()
        self.detector = EscalationDetector(self.escalation_config)
        self.tz = tz
        self.clock = clock or (lambda: datetime.now(UTC))
        self.logger = logger.bind(component="alerts_digest")

    async def build_digest(self, now: datetime | None = None) -> AlertsDigest:
        now = as_utc(now or self.clock())
        at_risk: list[DigestEntry] = []
        overdue: list[DigestEntry] = []
        skipped = 0

        for subject in await self.subjects.list_subjects():
            result = await fetch_history_safely(
                self.history_source,
                subject.id,
                HistoryFilter(limit=self.escalation_config.max_history_samples),
            )
            if result.is_err():
                skipped += 1
                self.logger.warning(
                    "digest_subject_skipped",
                    subject_id=subject.id,
                    error=str(result.unwrap_err()),
                )
                continue

            history = result.unwrap()
            name = subject.name or DEFAULT_SUBJECT_NAME

            if self.config.include_at_risk and history:
                detection = self.detector.evaluate(history[0], history, now)
                if detection is not None:
                    detail = at_risk_detail(detection)
                    at_risk.append(DigestEntry(subject_id=subject.id, name=name, detail=detail))

            if self.config.include_overdue:
                detail = overdue_detail(history, now, self.config.overdue_days_threshold, self.tz)
                if detail is not None:
                    overdue.append(DigestEntry(subject_id=subject.id, name=name, detail=detail))

        cap = self.config.max_subjects_per_section
        self.logger.info(
            "digest_built",
            at_risk=len(at_risk),
            overdue=len(overdue),
            skipped_subjects=skipped,
        )
        return AlertsDigest(at_risk=at_risk[:cap], overdue=overdue[:cap], generated_at=now)
