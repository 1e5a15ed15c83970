"""
Trend computation over a subject's check-in history.

Turns a windowed, newest-first history into chart-ready data: a chronological
pain series, energy and mood histograms, symptom category totals and per-day
counts for the leading categories. Read-only; safe to run concurrently.
"""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta, tzinfo
from typing import Protocol

import structlog

from checkin_alerts.config import TrendConfig
from checkin_alerts.domain.categorizer import concern_categorizer, symptom_categorizer
from checkin_alerts.domain.models import (
    CheckInRecord,
    DailyCount,
    Daypart,
    EnergyBucket,
    MoodBucket,
    PainPoint,
    TrendResult,
    as_utc,
)
from checkin_alerts.errors import HistoryUnavailable
from checkin_alerts.services.history import (
    HistoryFilter,
    HistorySource,
    Result,
    fetch_history_safely,
)

logger = structlog.get_logger(__name__)


class TextCategorizer(Protocol):
    """Maps free text to canonical category tags; blank input yields []."""

    def categorize(self, text: str | None) -> list[str]:
        ...


def start_of_day(timestamp: datetime, tz: tzinfo) -> datetime:
    local = timestamp.astimezone(tz)
    return local.replace(hour=0, minute=0, second=0, microsecond=0)


def rank_categories(totals: dict[str, int]) -> list[tuple[str, int]]:
    """Order by count descending; ``totals`` insertion order breaks ties (first seen wins)."""
    return sorted(totals.items(), key=lambda item: -item[1])


class TrendComputer:
    """Computes per-subject trend datasets from check-in history."""

    def __init__(
        self,
        history_source: HistorySource,
        categorizer: TextCategorizer = symptom_categorizer,
        concern_categorizer: TextCategorizer | None = concern_categorizer,
        config: TrendConfig | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.history_source = history_source
        self.categorizer = categorizer
        self.concern_categorizer = concern_categorizer
        self.config = config or TrendConfig()
        self.clock = clock or (lambda: datetime.now(UTC))
        self.logger = logger.bind(component="trend_computer")

    async def compute_trends(
        self,
        subject_id: str,
        window_days: int | None = None,
        max_records: int | None = None,
        tz: tzinfo | None = None,
    ) -> Result[TrendResult, HistoryUnavailable]:
        """
        Compute trends for one subject over ``window_days`` ending now.

        Returns ``Result.err(HistoryUnavailable)`` when the history cannot be read;
        no partial result is produced in that case. An empty window is a valid,
        empty ``TrendResult``.
        """
        days = max(1, window_days if window_days is not None else self.config.window_days)
        limit = max_records if max_records is not None else self.config.max_records
        tz = tz or self.config.tzinfo

        window_end = as_utc(self.clock())
        window_start = window_end - timedelta(days=days)

        history_result = await fetch_history_safely(
            self.history_source,
            subject_id,
            HistoryFilter(start_date=window_start, end_date=window_end, limit=limit),
        )
        if history_result.is_err():
            error = history_result.unwrap_err()
            self.logger.warning(
                "trend_history_unavailable", subject_id=subject_id, error=str(error)
            )
            return Result.err(error)

        records = history_result.unwrap()
        trends = self._build(records, window_start, window_end, tz)

        self.logger.info(
            "trends_computed",
            subject_id=subject_id,
            window_days=days,
            records=trends.total_records_in_window,
            symptom_categories=len(trends.symptom_category_totals),
        )
        return Result.ok(trends)

    def _build(
        self,
        records: list[CheckInRecord],
        window_start: datetime,
        window_end: datetime,
        tz: tzinfo,
    ) -> TrendResult:
        # Stable sort: records sharing a timestamp keep their fetch order.
        chronological = sorted(
            records, key=lambda r: r.created_at or datetime.min.replace(tzinfo=UTC)
        )

        pain_series = [
            PainPoint(timestamp=r.created_at, value=float(r.pain_level))
            for r in chronological
            if r.created_at is not None
        ]

        energy_distribution: dict[EnergyBucket, int] = {}
        mood_distribution: dict[MoodBucket, int] = {}
        dayparts: dict[Daypart, int] = {}
        symptom_totals: dict[str, int] = {}
        symptom_by_day: dict[str, dict[datetime, int]] = {}
        concern_totals: dict[str, int] = {}

        for record in chronological:
            if record.energy_bucket is not None:
                energy_distribution[record.energy_bucket] = (
                    energy_distribution.get(record.energy_bucket, 0) + 1
                )
            if record.mood_bucket is not None:
                mood_distribution[record.mood_bucket] = (
                    mood_distribution.get(record.mood_bucket, 0) + 1
                )
            if record.created_at is not None:
                daypart = Daypart.from_timestamp(record.created_at, tz)
                dayparts[daypart] = dayparts.get(daypart, 0) + 1

            if self.concern_categorizer is not None:
                for category in self.concern_categorizer.categorize(record.concerns_text):
                    concern_totals[category] = concern_totals.get(category, 0) + 1

            categories = self.categorizer.categorize(record.symptoms_text)
            if not categories:
                continue

            day = start_of_day(record.created_at or window_end, tz)
            for category in categories:
                symptom_totals[category] = symptom_totals.get(category, 0) + 1
                per_day = symptom_by_day.setdefault(category, {})
                per_day[day] = per_day.get(day, 0) + 1

        ranked = rank_categories(symptom_totals)
        symptom_category_daily = {
            category: [
                DailyCount(day=day, count=count)
                for day, count in sorted(symptom_by_day[category].items())
            ]
            for category, _ in ranked[: self.config.top_categories]
        }

        return TrendResult(
            pain_series=pain_series,
            energy_distribution=energy_distribution,
            mood_distribution=mood_distribution,
            symptom_category_totals=dict(ranked),
            top_symptom_categories=ranked,
            symptom_category_daily=symptom_category_daily,
            concern_category_totals=dict(rank_categories(concern_totals)),
            submissions_by_daypart=dayparts,
            total_records_in_window=len(records),
            window_start=window_start,
            window_end=window_end,
        )
