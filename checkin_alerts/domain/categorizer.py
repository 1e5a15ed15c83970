"""
Keyword-based categorization of free-text symptoms and concerns.

Pure functions over lowercase substring matching. Text that is present but matches
no keyword is tagged "other" so it still shows up in aggregate counts.
"""

OTHER_CATEGORY = "other"

SYMPTOM_KEYWORDS: dict[str, tuple[str, ...]] = {
    "cramps": ("cramp", "cramps", "charley horse"),
    "nausea": ("nausea", "nauseous", "vomit", "throw up"),
    "dizziness": ("dizzy", "dizziness", "lightheaded"),
    "shortness_of_breath": ("short of breath", "breathless", "can't breathe"),
    "swelling": ("swelling", "swollen", "edema", "puffy"),
    "headache": ("headache", "migraine"),
    "access_site": ("fistula", "graft", "catheter", "access", "arm pain", "needle"),
    "fatigue": ("tired", "fatigue", "exhausted", "weak"),
    "fever_chills": ("fever", "chills", "hot", "cold"),
}

CONCERN_KEYWORDS: dict[str, tuple[str, ...]] = {
    "diet_fluids": ("diet", "food", "salt", "sodium", "fluid", "thirst", "water"),
    "medications": ("med", "meds", "medicine", "pill", "prescription"),
    "schedule_transport": ("late", "time", "schedule", "ride", "transport", "bus"),
    "access_care": ("access", "needle", "arm", "fistula", "graft", "catheter"),
    "symptoms": ("cramp", "nausea", "dizzy", "breath", "swelling", "pain"),
    "financial_insurance": ("bill", "cost", "insurance", "money"),
    "emotional_support": ("scared", "anxious", "stress", "depressed", "worried"),
}


def categorize_text(text: str | None, keyword_map: dict[str, tuple[str, ...]]) -> list[str]:
    """Return the sorted categories whose keywords occur in ``text``."""
    if text is None or not text.strip():
        return []

    normalized = text.lower()
    categories = [
        category
        for category, keywords in keyword_map.items()
        if any(keyword in normalized for keyword in keywords)
    ]
    if not categories:
        categories.append(OTHER_CATEGORY)
    return sorted(categories)


class KeywordTextCategorizer:
    """Production Text Categorizer over one keyword map."""

    def __init__(self, keyword_map: dict[str, tuple[str, ...]] | None = None) -> None:
        self.keyword_map = keyword_map if keyword_map is not None else SYMPTOM_KEYWORDS

    def categorize(self, text: str | None) -> list[str]:
        return categorize_text(text, self.keyword_map)


symptom_categorizer = KeywordTextCategorizer(SYMPTOM_KEYWORDS)
concern_categorizer = KeywordTextCategorizer(CONCERN_KEYWORDS)
