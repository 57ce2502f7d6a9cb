"""
Confidence Scorer

A purely additive, capped heuristic: every present signal adds its fixed
weight to a base score and the sum is clamped to [0, ceiling].

CONTRACT:
- Deterministic: same signals, same score
- Monotonic: turning a signal on never lowers the score (weights are >= 0)
- Bounded: the result always lies in [0, ceiling]

Callers depend only on `receipt_confidence` / `score_confidence`, never on
the weight tables.
"""

from collections.abc import Mapping
from types import MappingProxyType


CONFIDENCE_CEILING = 100

RECEIPT_BASE_CONFIDENCE = 50
RECEIPT_SIGNAL_WEIGHTS: Mapping[str, int] = MappingProxyType({
    "merchant": 10,
    "date": 10,
    "total": 15,
    "line_items": 15,
})


def score_confidence(
    signals: Mapping[str, bool],
    weights: Mapping[str, int],
    base: int = 0,
    ceiling: int = CONFIDENCE_CEILING,
) -> int:
    """
    Add the weight of every true signal to `base` and clamp to [0, ceiling].

    Signals without a weight are ignored; weights without a signal count
    as absent.
    """
    score = base + sum(
        weight for name, weight in weights.items() if signals.get(name)
    )
    return max(0, min(ceiling, score))


def receipt_confidence(
    *,
    has_merchant: bool,
    has_date: bool,
    has_total: bool,
    has_line_items: bool,
) -> int:
    """Confidence (0-100) for a parsed receipt."""
    return score_confidence(
        {
            "merchant": has_merchant,
            "date": has_date,
            "total": has_total,
            "line_items": has_line_items,
        },
        RECEIPT_SIGNAL_WEIGHTS,
        base=RECEIPT_BASE_CONFIDENCE,
    )
