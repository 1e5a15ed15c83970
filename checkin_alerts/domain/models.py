"""
Domain models for check-in trend analysis and escalation.

These models represent the core clinical concepts and are framework-agnostic.
They use Pydantic for validation; records are frozen once created.
"""

from dataclasses import dataclass
from datetime import UTC, datetime, tzinfo
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

PAIN_MIN = 0
PAIN_MAX = 10
MAX_TEXT_CHARS = 1000


class EnergyBucket(str, Enum):
    """Self-reported energy, low to high."""

    LOW = "low"
    OKAY = "okay"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return ENERGY_RANK[self]

    @property
    def display_text(self) -> str:
        return self.value.capitalize()

    @classmethod
    def parse(cls, raw: Any) -> "EnergyBucket | None":
        """Accept a member, its text (legacy free-text column) or its stored rank."""
        return _parse_bucket(cls, raw, ENERGY_RANK)


class MoodBucket(str, Enum):
    """Self-reported mood, sad to good."""

    SAD = "sad"
    NEUTRAL = "neutral"
    GOOD = "good"

    @property
    def rank(self) -> int:
        return MOOD_RANK[self]

    @property
    def display_text(self) -> str:
        return self.value.capitalize()

    @classmethod
    def parse(cls, raw: Any) -> "MoodBucket | None":
        """Accept a member, its text (legacy free-text column) or its stored rank."""
        return _parse_bucket(cls, raw, MOOD_RANK)


# Severity scales. Lower rank means worse; comparisons never rely on declaration order.
ENERGY_RANK: dict[EnergyBucket, int] = {
    EnergyBucket.LOW: 0,
    EnergyBucket.OKAY: 1,
    EnergyBucket.HIGH: 2,
}

MOOD_RANK: dict[MoodBucket, int] = {
    MoodBucket.SAD: 0,
    MoodBucket.NEUTRAL: 1,
    MoodBucket.GOOD: 2,
}


def _parse_bucket(enum_cls: type[Enum], raw: Any, ranks: dict[Any, int]) -> Any:
    if raw is None or isinstance(raw, enum_cls):
        return raw
    if isinstance(raw, int) and not isinstance(raw, bool):
        for member, rank in ranks.items():
            if rank == raw:
                return member
        return None
    if isinstance(raw, str):
        text = raw.strip().lower()
        for member in enum_cls:
            if member.value == text:
                return member
        return None
    return None


def as_utc(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC."""
    return value.replace(tzinfo=UTC) if value.tzinfo is None else value


def sanitize_text(value: str | None, max_chars: int = MAX_TEXT_CHARS) -> str | None:
    """Trim free text; blank becomes None; overly long text is truncated."""
    if value is None:
        return None
    trimmed = value.strip()
    if not trimmed:
        return None
    return trimmed[:max_chars]


class Daypart(str, Enum):
    """Coarse time-of-day classification used for aggregate reporting only."""

    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"
    NIGHT = "night"

    @classmethod
    def from_timestamp(cls, timestamp: datetime, tz: tzinfo = UTC) -> "Daypart":
        hour = timestamp.astimezone(tz).hour
        if 5 <= hour < 12:
            return cls.MORNING
        if 12 <= hour < 17:
            return cls.AFTERNOON
        if 17 <= hour < 22:
            return cls.EVENING
        return cls.NIGHT


class CheckInRecord(BaseModel):
    """A single patient check-in. Immutable once created; never mutated by this package."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid4()))
    subject_id: str
    created_at: datetime | None = Field(default=None, description="None only for legacy rows")
    pain_level: int = Field(default=PAIN_MIN, ge=PAIN_MIN, le=PAIN_MAX)
    energy_bucket: EnergyBucket | None = None
    mood_bucket: MoodBucket | None = None
    symptoms_text: str | None = None
    concerns_text: str | None = None
    team_note: str | None = None

    @field_validator("pain_level", mode="before")
    @classmethod
    def clamp_pain(cls, v: Any) -> int:
        if v is None:
            return PAIN_MIN
        return min(PAIN_MAX, max(PAIN_MIN, int(v)))

    @field_validator("energy_bucket", mode="before")
    @classmethod
    def parse_energy(cls, v: Any) -> EnergyBucket | None:
        return EnergyBucket.parse(v)

    @field_validator("mood_bucket", mode="before")
    @classmethod
    def parse_mood(cls, v: Any) -> MoodBucket | None:
        return MoodBucket.parse(v)

    @field_validator("symptoms_text", "concerns_text", "team_note", mode="before")
    @classmethod
    def clean_text(cls, v: Any) -> str | None:
        return sanitize_text(v) if isinstance(v, str) or v is None else v

    @field_validator("created_at")
    @classmethod
    def assume_utc(cls, v: datetime | None) -> datetime | None:
        # Naive timestamps from legacy stores are UTC.
        return as_utc(v) if v is not None else None


class Subject(BaseModel):
    """A patient whose check-ins are monitored."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str | None = None


class PainPoint(BaseModel):
    """One pain reading in a chronological series."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    value: float


class DailyCount(BaseModel):
    """Number of mentions of a category on one calendar day."""

    model_config = ConfigDict(frozen=True)

    day: datetime = Field(description="Start of day in the caller's timezone")
    count: int = Field(ge=0)


class TrendResult(BaseModel):
    """Summarized trend data for one subject over a window."""

    pain_series: list[PainPoint] = Field(default_factory=list)
    energy_distribution: dict[EnergyBucket, int] = Field(default_factory=dict)
    mood_distribution: dict[MoodBucket, int] = Field(default_factory=dict)
    symptom_category_totals: dict[str, int] = Field(default_factory=dict)
    top_symptom_categories: list[tuple[str, int]] = Field(default_factory=list)
    symptom_category_daily: dict[str, list[DailyCount]] = Field(default_factory=dict)
    concern_category_totals: dict[str, int] = Field(default_factory=dict)
    submissions_by_daypart: dict[Daypart, int] = Field(default_factory=dict)
    total_records_in_window: int = Field(default=0, ge=0)
    window_start: datetime
    window_end: datetime


class EscalationReasonKind(str, Enum):
    """Why an alert fired. At most one is produced per evaluation."""

    HIGH_PAIN = "highPain"
    LOW_MOOD = "lowMood"
    RAPID_PAIN_INCREASE = "rapidPainIncrease"
    RAPID_MOOD_DROP = "rapidMoodDrop"


@dataclass(frozen=True)
class CooldownKey:
    """Composite key for cooldown state: one entry per (subject, reason) pair."""

    subject_id: str
    reason: EscalationReasonKind

    @property
    def storage_key(self) -> str:
        return f"{self.subject_id}|{self.reason.value}"

    @classmethod
    def from_storage_key(cls, raw: str) -> "CooldownKey":
        subject_id, _, reason = raw.rpartition("|")
        if not subject_id:
            raise ValueError(f"Malformed cooldown key: {raw!r}")
        return cls(subject_id=subject_id, reason=EscalationReasonKind(reason))


class CooldownRecord(BaseModel):
    """When an alert for a (subject, reason) pair was last dispatched."""

    model_config = ConfigDict(frozen=True)

    subject_id: str
    reason: EscalationReasonKind
    last_notified_at: datetime

    @property
    def key(self) -> CooldownKey:
        return CooldownKey(self.subject_id, self.reason)


class SummaryFields(BaseModel):
    """The 'latest check-in' view of a subject, derived on demand from history."""

    model_config = ConfigDict(frozen=True)

    created_at: datetime | None
    pain_level: int | None
    energy_bucket: EnergyBucket | None
    mood_bucket: MoodBucket | None
    symptoms_text: str | None
    concerns_text: str | None
    team_note: str | None


def latest_summary(history: list[CheckInRecord]) -> SummaryFields | None:
    """
    Summarize the newest record of a newest-first history.

    Pain 0 is reported as None, matching how an empty snapshot was reconciled.
    """
    if not history:
        return None
    latest = history[0]
    return SummaryFields(
        created_at=latest.created_at,
        pain_level=latest.pain_level or None,
        energy_bucket=latest.energy_bucket,
        mood_bucket=latest.mood_bucket,
        symptoms_text=latest.symptoms_text,
        concerns_text=latest.concerns_text,
        team_note=latest.team_note,
    )
