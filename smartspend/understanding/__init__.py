"""
Understanding package.

Pure, deterministic functions that turn unstructured text into domain
objects. No I/O, no shared mutable state - safe to call from any thread.
"""

from smartspend.understanding.categories import (
    CATEGORY_KEYWORDS,
    categorize_description,
    suggest_categories,
)
from smartspend.understanding.confidence import (
    receipt_confidence,
    score_confidence,
)
from smartspend.understanding.intents import (
    PATTERN_TABLE,
    IntentRule,
    detect_intent,
)
from smartspend.understanding.receipt_parser import parse_receipt

__all__ = [
    "CATEGORY_KEYWORDS",
    "PATTERN_TABLE",
    "IntentRule",
    "categorize_description",
    "detect_intent",
    "parse_receipt",
    "receipt_confidence",
    "score_confidence",
    "suggest_categories",
]
