"""Tests for keyword categorization of symptoms and concerns."""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from checkin_alerts.domain.categorizer import (
    CONCERN_KEYWORDS,
    OTHER_CATEGORY,
    SYMPTOM_KEYWORDS,
    KeywordTextCategorizer,
    categorize_text,
    concern_categorizer,
    symptom_categorizer,
)


@pytest.mark.parametrize("text", [None, "", "   ", "\n\t"])
def test_blank_text_has_no_categories(text: str | None) -> None:
    assert symptom_categorizer.categorize(text) == []


def test_unmatched_text_is_other() -> None:
    assert symptom_categorizer.categorize("felt fine, watched a movie") == [OTHER_CATEGORY]


def test_multiple_matches_are_sorted_and_case_insensitive() -> None:
    assert symptom_categorizer.categorize("Bad HEADACHE and some Cramps") == [
        "cramps",
        "headache",
    ]


def test_concern_map_is_separate() -> None:
    assert concern_categorizer.categorize("worried about my insurance bill") == [
        "emotional_support",
        "financial_insurance",
    ]


def test_default_categorizer_uses_symptom_map() -> None:
    assert KeywordTextCategorizer().keyword_map is SYMPTOM_KEYWORDS


def test_custom_keyword_map() -> None:
    categorizer = KeywordTextCategorizer({"sleep": ("insomnia", "awake")})
    assert categorizer.categorize("Insomnia again") == ["sleep"]
    assert categorizer.categorize("dizzy") == [OTHER_CATEGORY]


@given(text=st.text(max_size=200))
def test_categories_always_come_from_the_map(text: str) -> None:
    categories = categorize_text(text, CONCERN_KEYWORDS)
    allowed = set(CONCERN_KEYWORDS) | {OTHER_CATEGORY}
    assert set(categories) <= allowed
    assert categories == sorted(set(categories))
    assert (categories == []) == (not text.strip())
