"""
History access contracts shared by trend and escalation services.

Key patterns:
- Protocol-based dependency injection for the record store
- Generic Result type for expected failures (missing subject, store outage)
- Typed query filter instead of ad-hoc keyword arguments
"""

from datetime import datetime
from typing import Generic, Protocol, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

from checkin_alerts.domain.models import CheckInRecord, Subject, as_utc
from checkin_alerts.errors import HistoryUnavailable, SubjectNotFound
from checkin_alerts.log import logger

# Generic Result type for explicit error handling
ValueT = TypeVar("ValueT")
ErrorT = TypeVar("ErrorT", bound=BaseException, default=Exception)


class Result(Generic[ValueT, ErrorT]):
    """
    Explicit error handling without exceptions for expected failures.

    Why: Makes error paths visible in type system, forces handling decisions.
    When to use: When failure is expected business logic, not exceptional.
    """

    def __init__(self, value: ValueT | None = None, error: ErrorT | None = None) -> None:
        if value is not None and error is not None:
            raise ValueError("Result cannot have both value and error")
        if value is None and error is None:
            raise ValueError("Result must have either value or error")
        self._value: ValueT | None = value
        self._error: ErrorT | None = error

    @classmethod
    def ok(cls, value: ValueT) -> "Result[ValueT, ErrorT]":
        return cls(value=value)

    @classmethod
    def err(cls, error: ErrorT) -> "Result[ValueT, ErrorT]":
        return cls(error=error)

    def is_ok(self) -> bool:
        return self._error is None

    def is_err(self) -> bool:
        return self._error is not None

    def unwrap(self) -> ValueT:
        if self._error is not None:
            raise self._error
        return self._value  # type: ignore

    def unwrap_or(self, default: ValueT) -> ValueT:
        return self._value if self._error is None else default  # type: ignore

    def unwrap_err(self) -> ErrorT:
        if self._error is None:
            raise ValueError("Called unwrap_err() on an Ok value")
        return self._error


class HistoryFilter(BaseModel):
    """Typed filter for check-in history queries. Bounds are inclusive."""

    model_config = ConfigDict(frozen=True)

    start_date: datetime | None = None
    end_date: datetime | None = None
    keyword: str | None = Field(
        default=None, description="Case-insensitive match on symptoms or concerns"
    )
    limit: int | None = Field(default=None, ge=0, description="Newest records first")

    @field_validator("start_date", "end_date")
    @classmethod
    def bounds_in_utc(cls, v: datetime | None) -> datetime | None:
        return as_utc(v) if v is not None else None

    @property
    def normalized_keyword(self) -> str | None:
        if self.keyword is None:
            return None
        return " ".join(self.keyword.split()) or None

    def matches(self, record: CheckInRecord) -> bool:
        """Apply date and keyword bounds to one record (limit is applied by the caller)."""
        if self.start_date is not None or self.end_date is not None:
            if record.created_at is None:
                return False
            if self.start_date is not None and record.created_at < self.start_date:
                return False
            if self.end_date is not None and record.created_at > self.end_date:
                return False

        keyword = self.normalized_keyword
        if keyword is not None:
            needle = keyword.casefold()
            haystacks = (record.symptoms_text, record.concerns_text)
            if not any(text and needle in text.casefold() for text in haystacks):
                return False
        return True


class HistorySource(Protocol):
    """
    Read access to a subject's check-in records.

    Implementations return records newest-first by ``created_at`` and report
    failures as ``Result.err(HistoryUnavailable | SubjectNotFound)``.
    """

    async def fetch_history(
        self, subject_id: str, history_filter: HistoryFilter
    ) -> Result[list[CheckInRecord], HistoryUnavailable]:
        ...


class SubjectDirectory(Protocol):
    """Resolves subjects for messaging and enumerates them for digests."""

    async def resolve_subject(self, subject_id: str) -> Result[Subject, SubjectNotFound]:
        ...

    async def list_subjects(self) -> list[Subject]:
        ...


async def fetch_history_safely(
    source: HistorySource, subject_id: str, history_filter: HistoryFilter
) -> Result[list[CheckInRecord], HistoryUnavailable]:
    """
    Call a History Source and contain anything it raises.

    Sources are expected to return ``Result.err`` themselves; a source that raises
    instead still only fails the current evaluation.
    """
    try:
        return await source.fetch_history(subject_id, history_filter)
    except Exception as e:
        logger.exception("history_source_raised", subject_id=subject_id, error=str(e))
        error = HistoryUnavailable(subject_id, f"History source failed: {e}")
        error.__cause__ = e
        return Result.err(error)
