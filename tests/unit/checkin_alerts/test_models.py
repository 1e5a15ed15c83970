"""
Tests for domain models in `checkin_alerts/domain/models.py`.

Covers:
- Pain clamping and text sanitation on CheckInRecord
- Bucket parsing from members, text and stored ranks
- Daypart classification across timezones
- latest_summary over newest-first history
- CooldownKey storage key round trip
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone

import pytest
from hypothesis import given
from hypothesis import strategies as st

from checkin_alerts.domain.models import (
    ENERGY_RANK,
    MAX_TEXT_CHARS,
    MOOD_RANK,
    CheckInRecord,
    CooldownKey,
    Daypart,
    EnergyBucket,
    EscalationReasonKind,
    MoodBucket,
    latest_summary,
    sanitize_text,
)


class TestCheckInRecord:
    @given(raw=st.integers(min_value=-1000, max_value=1000))
    def test_pain_is_always_clamped_into_range(self, raw: int) -> None:
        record = CheckInRecord(subject_id="s", pain_level=raw)
        assert 0 <= record.pain_level <= 10

    def test_missing_pain_is_zero(self) -> None:
        assert CheckInRecord(subject_id="s", pain_level=None).pain_level == 0

    def test_text_fields_are_trimmed_and_blank_becomes_none(self) -> None:
        record = CheckInRecord(
            subject_id="s", symptoms_text="  cramps  ", concerns_text="   ", team_note=None
        )
        assert record.symptoms_text == "cramps"
        assert record.concerns_text is None
        assert record.team_note is None

    def test_long_text_is_truncated(self) -> None:
        record = CheckInRecord(subject_id="s", symptoms_text="x" * (MAX_TEXT_CHARS + 50))
        assert record.symptoms_text is not None
        assert len(record.symptoms_text) == MAX_TEXT_CHARS

    def test_naive_timestamp_is_treated_as_utc(self) -> None:
        record = CheckInRecord(subject_id="s", created_at=datetime(2024, 1, 1, 9, 30))
        assert record.created_at == datetime(2024, 1, 1, 9, 30, tzinfo=UTC)

    def test_buckets_parse_from_legacy_values(self) -> None:
        record = CheckInRecord(subject_id="s", energy_bucket=" High ", mood_bucket=0)
        assert record.energy_bucket is EnergyBucket.HIGH
        assert record.mood_bucket is MoodBucket.SAD

    def test_records_are_immutable(self) -> None:
        record = CheckInRecord(subject_id="s", pain_level=3)
        with pytest.raises(ValueError, match="frozen"):
            record.pain_level = 5  # type: ignore

    def test_ids_are_unique_by_default(self) -> None:
        assert CheckInRecord(subject_id="s").id != CheckInRecord(subject_id="s").id


class TestBuckets:
    def test_rank_tables_order_worst_first(self) -> None:
        assert (
            MOOD_RANK[MoodBucket.SAD] < MOOD_RANK[MoodBucket.NEUTRAL] < MOOD_RANK[MoodBucket.GOOD]
        )
        assert (
            ENERGY_RANK[EnergyBucket.LOW]
            < ENERGY_RANK[EnergyBucket.OKAY]
            < ENERGY_RANK[EnergyBucket.HIGH]
        )

    @pytest.mark.parametrize(
        "raw,expected",
        [
            (MoodBucket.GOOD, MoodBucket.GOOD),
            ("sad", MoodBucket.SAD),
            ("NEUTRAL", MoodBucket.NEUTRAL),
            (2, MoodBucket.GOOD),
            (7, None),
            ("ecstatic", None),
            (None, None),
            (True, None),
            (1.5, None),
        ],
    )
    def test_mood_parse(self, raw: object, expected: MoodBucket | None) -> None:
        assert MoodBucket.parse(raw) is expected

    def test_display_text_is_capitalized(self) -> None:
        assert MoodBucket.NEUTRAL.display_text == "Neutral"
        assert EnergyBucket.OKAY.display_text == "Okay"


class TestSanitizeText:
    @pytest.mark.parametrize(
        "raw,expected", [(None, None), ("", None), (" \n ", None), (" hi ", "hi")]
    )
    def test_sanitize(self, raw: str | None, expected: str | None) -> None:
        assert sanitize_text(raw) == expected

    def test_custom_limit(self) -> None:
        assert sanitize_text("abcdef", max_chars=3) == "abc"


class TestDaypart:
    @pytest.mark.parametrize(
        "hour,expected",
        [
            (4, Daypart.NIGHT),
            (5, Daypart.MORNING),
            (11, Daypart.MORNING),
            (12, Daypart.AFTERNOON),
            (17, Daypart.EVENING),
            (21, Daypart.EVENING),
            (22, Daypart.NIGHT),
        ],
    )
    def test_boundaries_in_utc(self, hour: int, expected: Daypart) -> None:
        assert Daypart.from_timestamp(datetime(2024, 3, 1, hour, tzinfo=UTC)) is expected

    def test_uses_requested_timezone(self) -> None:
        ts = datetime(2024, 3, 1, 3, tzinfo=UTC)
        assert Daypart.from_timestamp(ts) is Daypart.NIGHT
        assert Daypart.from_timestamp(ts, timezone(timedelta(hours=5))) is Daypart.MORNING


class TestLatestSummary:
    def test_empty_history_has_no_summary(self) -> None:
        assert latest_summary([]) is None

    def test_uses_first_record_and_reports_zero_pain_as_none(self) -> None:
        newest = CheckInRecord(subject_id="s", pain_level=0, mood_bucket="good", team_note="ok")
        older = CheckInRecord(subject_id="s", pain_level=9)

        summary = latest_summary([newest, older])

        assert summary is not None
        assert summary.pain_level is None
        assert summary.mood_bucket is MoodBucket.GOOD
        assert summary.team_note == "ok"


class TestCooldownKey:
    def test_storage_key_round_trip_with_pipe_in_subject(self) -> None:
        key = CooldownKey("ward|7", EscalationReasonKind.LOW_MOOD)
        assert key.storage_key == "ward|7|lowMood"
        assert CooldownKey.from_storage_key(key.storage_key) == key

    def test_malformed_key_raises(self) -> None:
        with pytest.raises(ValueError):
            CooldownKey.from_storage_key("highPain")

    def test_keys_are_hashable_and_distinct_per_reason(self) -> None:
        keys = {
            CooldownKey("s", EscalationReasonKind.HIGH_PAIN),
            CooldownKey("s", EscalationReasonKind.HIGH_PAIN),
            CooldownKey("s", EscalationReasonKind.LOW_MOOD),
        }
        assert len(keys) == 2
