"""Shared fixtures for check-in analysis tests."""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from checkin_alerts.adapters.memory import InMemoryCheckInRepository
from checkin_alerts.domain.models import CheckInRecord, Subject

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=UTC)

RecordFactory = Callable[..., CheckInRecord]


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def make_record() -> RecordFactory:
    """Build a record ``days_ago`` (may be fractional) before NOW."""

    def _make(
        subject_id: str = "subject-1", days_ago: float | None = 0, **fields: Any
    ) -> CheckInRecord:
        created_at = None if days_ago is None else NOW - timedelta(days=days_ago)
        return CheckInRecord(subject_id=subject_id, created_at=created_at, **fields)

    return _make


@pytest.fixture
def repository() -> InMemoryCheckInRepository:
    repo = InMemoryCheckInRepository()
    repo.add_subject(Subject(id="subject-1", name="Alex"))
    return repo
