"""
Escalation detection and the check-in alerting workflow.

Rule precedence is fixed and first match wins:
1. High pain on the latest check-in
2. Low mood on the latest check-in
3. Rapid pain increase over the recent window
4. Rapid mood drop over the recent window

Acute single readings are checked before trends so that a severe reading is
never masked by an absent trend; the trend rules catch gradual deterioration
that single thresholds miss.
"""

import asyncio
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Literal

import structlog
from pydantic import BaseModel, ConfigDict, Field

from checkin_alerts.config import EscalationConfig
from checkin_alerts.domain.models import (
    CheckInRecord,
    EscalationReasonKind,
    MoodBucket,
    Subject,
    as_utc,
)
from checkin_alerts.errors import CooldownStoreUnavailable
from checkin_alerts.services.history import (
    HistoryFilter,
    HistorySource,
    SubjectDirectory,
    fetch_history_safely,
)
from checkin_alerts.services.notifications import NotificationDispatcher
from checkin_alerts.services.throttle import NotificationThrottle

logger = structlog.get_logger(__name__)

OutcomeStatus = Literal["no_escalation", "notified", "suppressed", "skipped"]


class Detection(BaseModel):
    """A triggered rule plus the evidence that triggered it."""

    model_config = ConfigDict(frozen=True)

    kind: EscalationReasonKind
    pain_level: int | None = Field(default=None, description="High pain reading")
    mood: MoodBucket | None = Field(default=None, description="Low mood reading")
    pain_from: int | None = None
    pain_to: int | None = None
    previous_mood: MoodBucket | None = Field(
        default=None, description="Mood sample before the latest sad one"
    )


class AlertMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    body: str


class EscalationOutcome(BaseModel):
    """What happened to one check-in evaluation."""

    subject_id: str
    status: OutcomeStatus
    reason: EscalationReasonKind | None = None
    message: AlertMessage | None = None
    error: str | None = None


def _chronological(records: list[CheckInRecord]) -> list[CheckInRecord]:
    return sorted(records, key=lambda r: r.created_at)  # type: ignore[arg-type, return-value]


class EscalationDetector:
    """Evaluates the latest check-in plus a bounded history window against the rules."""

    def __init__(self, config: EscalationConfig | None = None) -> None:
        self.config = config or EscalationConfig()

    def detect(
        self,
        latest: CheckInRecord,
        recent_history: list[CheckInRecord],
        now: datetime | None = None,
    ) -> EscalationReasonKind | None:
        detection = self.evaluate(latest, recent_history, now)
        return detection.kind if detection else None

    def evaluate(
        self,
        latest: CheckInRecord,
        recent_history: list[CheckInRecord],
        now: datetime | None = None,
    ) -> Detection | None:
        """
        Return the first matching rule, or None.

        ``recent_history`` is newest-first and may or may not contain ``latest``;
        when it does not, ``latest`` joins the trend windows so both call styles
        agree.
        """
        now = as_utc(now or datetime.now(UTC))

        if latest.pain_level >= self.config.high_pain_threshold:
            return Detection(kind=EscalationReasonKind.HIGH_PAIN, pain_level=latest.pain_level)

        mood = latest.mood_bucket
        if mood is not None and mood.rank <= self.config.mood_escalation_threshold.rank:
            return Detection(kind=EscalationReasonKind.LOW_MOOD, mood=mood)

        history = self._with_latest(latest, recent_history)
        return self._rapid_pain_increase(history, now) or self._rapid_mood_drop(history, now)

    def _with_latest(
        self, latest: CheckInRecord, recent_history: list[CheckInRecord]
    ) -> list[CheckInRecord]:
        if latest.created_at is None or any(r.id == latest.id for r in recent_history):
            return recent_history
        return [latest, *recent_history]

    def _window(
        self, history: list[CheckInRecord], now: datetime, days: int
    ) -> list[CheckInRecord]:
        cutoff = now - timedelta(days=days)
        return _chronological(
            [r for r in history if r.created_at is not None and r.created_at >= cutoff]
        )

    def _rapid_pain_increase(
        self, history: list[CheckInRecord], now: datetime
    ) -> Detection | None:
        window = self._window(history, now, self.config.rapid_pain_lookback_days)
        if len(window) < self.config.min_trend_samples:
            return None

        first, last = window[0].pain_level, window[-1].pain_level
        if last - first >= self.config.rapid_pain_increase and last >= self.config.rapid_pain_floor:
            return Detection(
                kind=EscalationReasonKind.RAPID_PAIN_INCREASE, pain_from=first, pain_to=last
            )
        return None

    def _rapid_mood_drop(self, history: list[CheckInRecord], now: datetime) -> Detection | None:
        window = self._window(history, now, self.config.rapid_mood_lookback_days)
        moods = [r.mood_bucket for r in window if r.mood_bucket is not None]
        if len(moods) < 2 or moods[-1] is not MoodBucket.SAD:
            return None

        previous = moods[-2]
        streak = moods[-self.config.consecutive_sad_mood_count :]
        stayed_sad = len(streak) == self.config.consecutive_sad_mood_count and all(
            m is MoodBucket.SAD for m in streak
        )
        if stayed_sad or previous.rank > MoodBucket.SAD.rank:
            return Detection(kind=EscalationReasonKind.RAPID_MOOD_DROP, previous_mood=previous)
        return None


def notification_message(detection: Detection, subject_name: str | None) -> AlertMessage:
    """Staff-facing alert text for a detection."""
    name = subject_name or "this client"

    match detection.kind:
        case EscalationReasonKind.HIGH_PAIN:
            return AlertMessage(
                title="High pain alert",
                body=f"{name} reported pain {detection.pain_level}/10. "
                "Notify an admin to follow up.",
            )
        case EscalationReasonKind.LOW_MOOD:
            mood_text = detection.mood.display_text if detection.mood else "Sad"
            return AlertMessage(
                title="Low mood alert",
                body=f'{name} reported mood "{mood_text}". Consider proactive outreach.',
            )
        case EscalationReasonKind.RAPID_PAIN_INCREASE:
            return AlertMessage(
                title="Pain trending up",
                body=f"{name}'s pain climbed from {detection.pain_from}/10 "
                f"to {detection.pain_to}/10 in the last few days.",
            )
        case EscalationReasonKind.RAPID_MOOD_DROP:
            previous = (
                detection.previous_mood.display_text if detection.previous_mood else "recent days"
            )
            return AlertMessage(
                title="Mood worsening quickly",
                body=f"{name}'s mood dropped to Sad from {previous}. Review their check-ins.",
            )


class EscalationService:
    """
    Runs detection for each new check-in and dispatches throttled alerts.

    Failure semantics are fail-open: if the subject cannot be resolved, the
    history cannot be read or the cooldown store cannot be queried, the
    evaluation is logged and skipped, never raised. A cooldown that cannot be
    recorded after dispatch is logged and the outcome stays "notified".
    """

    def __init__(
        self,
        history_source: HistorySource,
        subjects: SubjectDirectory,
        throttle: NotificationThrottle,
        dispatcher: NotificationDispatcher,
        detector: EscalationDetector | None = None,
        config: EscalationConfig | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.config = config or (detector.config if detector else EscalationConfig())
        self.detector = detector or EscalationDetector(self.config)
        self.history_source = history_source
        self.subjects = subjects
        self.throttle = throttle
        self.throttle.follow_config(self.config)
        self.dispatcher = dispatcher
        self.clock = clock or (lambda: datetime.now(UTC))
        self.logger = logger.bind(component="escalation_service")

        # Guards check -> dispatch -> mark; never held across a history fetch.
        self._notify_lock = asyncio.Lock()
        self._pending: set[asyncio.Task[EscalationOutcome]] = set()

    async def handle_check_in(
        self, subject_id: str, latest: CheckInRecord, at: datetime | None = None
    ) -> EscalationOutcome:
        now = as_utc(at or self.clock())

        subject_result = await self.subjects.resolve_subject(subject_id)
        if subject_result.is_err():
            return self._skipped(subject_id, subject_result.unwrap_err())
        subject: Subject = subject_result.unwrap()

        history_result = await fetch_history_safely(
            self.history_source,
            subject_id,
            HistoryFilter(limit=self.config.max_history_samples),
        )
        if history_result.is_err():
            return self._skipped(subject_id, history_result.unwrap_err())

        detection = self.detector.evaluate(latest, history_result.unwrap(), now)
        if detection is None:
            return EscalationOutcome(subject_id=subject_id, status="no_escalation")

        message = notification_message(detection, subject.name)
        async with self._notify_lock:
            # Store I/O runs off the event loop.
            try:
                remaining = await asyncio.to_thread(
                    self.throttle.remaining, subject_id, detection.kind, now
                )
            except Exception as e:
                return self._skipped(subject_id, CooldownStoreUnavailable(subject_id, str(e)))

            if remaining > timedelta(0):
                self.logger.info(
                    "escalation_suppressed",
                    subject_id=subject_id,
                    reason=detection.kind.value,
                    remaining_seconds=remaining.total_seconds(),
                )
                return EscalationOutcome(
                    subject_id=subject_id, status="suppressed", reason=detection.kind
                )

            self._dispatch(message, subject_id)
            try:
                await asyncio.to_thread(
                    self.throttle.mark_notified, subject_id, detection.kind, now
                )
            except Exception as e:
                self.logger.error(
                    "cooldown_mark_failed",
                    subject_id=subject_id,
                    reason=detection.kind.value,
                    error=str(e),
                )

        self.logger.warning(
            "escalation_notified", subject_id=subject_id, reason=detection.kind.value
        )
        return EscalationOutcome(
            subject_id=subject_id, status="notified", reason=detection.kind, message=message
        )

    def submit(
        self, subject_id: str, latest: CheckInRecord, at: datetime | None = None
    ) -> asyncio.Task[EscalationOutcome]:
        """Schedule evaluation off the check-in write path; requires a running loop."""
        task = asyncio.get_running_loop().create_task(
            self.handle_check_in(subject_id, latest, at)
        )
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def drain(self) -> list[EscalationOutcome]:
        """Wait for every scheduled evaluation to finish."""
        if not self._pending:
            return []
        return list(await asyncio.gather(*self._pending))

    def _dispatch(self, message: AlertMessage, subject_id: str) -> None:
        try:
            self.dispatcher.send(message.title, message.body)
        except Exception as e:
            self.logger.error("alert_dispatch_failed", subject_id=subject_id, error=str(e))

    def _skipped(self, subject_id: str, error: Exception) -> EscalationOutcome:
        self.logger.error(
            "escalation_evaluation_skipped",
            subject_id=subject_id,
            error_type=type(error).__name__,
            error=str(error),
        )
        return EscalationOutcome(subject_id=subject_id, status="skipped", error=str(error))
