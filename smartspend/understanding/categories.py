"""
Category Classifier

Keyword-scored classification over a fixed category taxonomy.

DESIGN DECISION: We use simple keyword matching rather than ML because:
1. The result is explainable to the user ("matched 'coffee'")
2. It is deterministic and easy to test
3. The user confirms or overrides the suggestion anyway

Both tables below are read-only configuration. Declaration order matters:
it breaks score ties in `suggest_categories` and decides precedence in
`categorize_description`.
"""

import re
from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import Optional


FALLBACK_CATEGORY = "Food"
DESCRIPTION_FALLBACK_CATEGORY = "Other"
MAX_SUGGESTIONS = 3

MERCHANT_MATCH_WEIGHT = 2
KEYWORD_MATCH_WEIGHT = 1

CATEGORY_KEYWORDS: Mapping[str, tuple[str, ...]] = MappingProxyType({
    "Food": (
        "food", "restaurant", "cafe", "coffee", "pizza",
        "burger", "subway", "starbucks", "groceries", "supermarket",
    ),
    "Transport": ("uber", "taxi", "gas", "petrol", "auto", "bus", "train", "metro"),
    "Entertainment": ("movie", "theater", "game", "netflix", "spotify", "gaming"),
    "Shopping": ("mall", "store", "amazon", "flipkart", "shop", "retail"),
    "Utilities": ("electric", "water", "internet", "phone", "bill"),
    "Health": ("medical", "doctor", "pharmacy", "hospital", "clinic", "health"),
})

# Smaller table for free-text descriptions typed in commands.
# First matching rule wins.
DESCRIPTION_CATEGORY_RULES: tuple[tuple[re.Pattern, str], ...] = tuple(
    (re.compile(pattern, re.IGNORECASE), category)
    for pattern, category in (
        (r"coffee|food|lunch|dinner|breakfast|restaurant|cafe|pizza|burger|subway", "Food"),
        (r"uber|taxi|bus|train|gas|petrol|transport|metro|auto", "Transport"),
        (r"movie|game|entertainment|show|concert|fun", "Entertainment"),
        (r"grocery|vegetables|milk|butter|fruit", "Food"),
        (r"electricity|water|internet|phone|utility|bill", "Utilities"),
        (r"shopping|clothes|shoes|dress|mall|store", "Shopping"),
        (r"medicine|doctor|health|hospital|pharmacy|clinic", "Health"),
        (r"salary|paycheck|wage|income", "Salary"),
    )
)


def _category_score(
    words: Iterable[str],
    merchant_lower: str,
    keywords_lower: list[str],
) -> int:
    score = 0
    for word in words:
        if word in merchant_lower:
            score += MERCHANT_MATCH_WEIGHT
        if any(word in keyword for keyword in keywords_lower):
            score += KEYWORD_MATCH_WEIGHT
    return score


def suggest_categories(
    merchant: Optional[str],
    keywords: Optional[Iterable[str]] = None,
) -> list[str]:
    """
    Rank categories for a merchant name plus optional extra keywords.

    Each category keyword found in the merchant name scores 2; each one
    found inside any supplied keyword scores 1. Zero-score categories are
    dropped, the rest sorted by score (ties keep table order) and the top
    three returned.

    Never returns an empty list - with no match the result is ["Food"].
    """
    merchant_lower = (merchant or "").lower()
    keywords_lower = [
        keyword.lower() for keyword in (keywords or ()) if isinstance(keyword, str)
    ]

    scored = []
    for category, words in CATEGORY_KEYWORDS.items():
        score = _category_score(words, merchant_lower, keywords_lower)
        if score > 0:
            scored.append((category, score))

    # sorted() is stable, so equal scores stay in declaration order
    ranked = sorted(scored, key=lambda pair: pair[1], reverse=True)
    suggestions = [category for category, _ in ranked[:MAX_SUGGESTIONS]]

    return suggestions or [FALLBACK_CATEGORY]


def categorize_description(description: Optional[str]) -> str:
    """Map a free-text description to one category, or "Other"."""
    text = description or ""
    for pattern, category in DESCRIPTION_CATEGORY_RULES:
        if pattern.search(text):
            return category
    return DESCRIPTION_FALLBACK_CATEGORY
