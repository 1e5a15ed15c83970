"""
In-memory check-in repository.

Implements both HistorySource and SubjectDirectory over plain dicts. Used by
tests, the demo, and as the reference for query semantics a persistent store
must match (newest-first ordering, inclusive date bounds, keyword on symptoms
or concerns, limit applied last).
"""

import threading
from datetime import UTC, datetime

import structlog

from checkin_alerts.domain.models import CheckInRecord, Subject
from checkin_alerts.errors import HistoryUnavailable, SubjectNotFound
from checkin_alerts.services.history import HistoryFilter, Result

logger = structlog.get_logger(__name__)

_OLDEST = datetime.min.replace(tzinfo=UTC)


class InMemoryCheckInRepository:
    def __init__(self) -> None:
        self._subjects: dict[str, Subject] = {}
        self._records: dict[str, list[CheckInRecord]] = {}
        self._lock = threading.Lock()
        self.logger = logger.bind(component="memory_repository")

    def add_subject(self, subject: Subject) -> Subject:
        with self._lock:
            self._subjects[subject.id] = subject
            self._records.setdefault(subject.id, [])
        return subject

    def add_record(self, record: CheckInRecord) -> CheckInRecord:
        """Store a record for a known subject."""
        with self._lock:
            if record.subject_id not in self._subjects:
                raise SubjectNotFound(record.subject_id)
            self._records[record.subject_id].append(record)
        self.logger.debug("check_in_recorded", subject_id=record.subject_id, record_id=record.id)
        return record

    async def fetch_history(
        self, subject_id: str, history_filter: HistoryFilter
    ) -> Result[list[CheckInRecord], HistoryUnavailable]:
        with self._lock:
            if subject_id not in self._subjects:
                return Result.err(SubjectNotFound(subject_id))
            matching = [r for r in self._records[subject_id] if history_filter.matches(r)]

        matching.sort(key=lambda r: r.created_at or _OLDEST, reverse=True)
        if history_filter.limit is not None:
            matching = matching[: history_filter.limit]
        return Result.ok(matching)

    async def resolve_subject(self, subject_id: str) -> Result[Subject, SubjectNotFound]:
        with self._lock:
            subject = self._subjects.get(subject_id)
        if subject is None:
            return Result.err(SubjectNotFound(subject_id))
        return Result.ok(subject)

    async def list_subjects(self) -> list[Subject]:
        with self._lock:
            return list(self._subjects.values())
