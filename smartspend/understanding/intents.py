"""
Intent Matcher

Rule-based classification of free-form commands ("add ₹150 for coffee
today") into an Intent plus extracted parameters.

HOW IT WORKS:
1. The input is trimmed and lower-cased for matching only
2. PATTERN_TABLE is walked in declaration order; inside each rule the
   patterns are tried in declaration order
3. The first pattern that matches anywhere wins - there is no scoring
   across intents, so table order IS priority
4. The winning rule's extractor reads parameters from the ORIGINAL input

A match always reports confidence 0.85; no match yields UNKNOWN with
confidence 0 and no parameters.

DATES: only the words "today" and "yesterday" become ISO dates. Other
date-like text ("12/03", "tomorrow") is recognized by the date pattern but
deliberately left unconverted.
"""

import re
from collections.abc import Callable
from datetime import date, timedelta
from decimal import Decimal, InvalidOperation
from typing import NamedTuple, Optional

from smartspend.models.intent import (
    GoalParams,
    GoalStatusParams,
    Intent,
    IntentParams,
    IntentResult,
    ReportParams,
    SpendingQueryParams,
    TransactionParams,
)
from smartspend.understanding.categories import categorize_description


MATCH_CONFIDENCE = 0.85

_CUR = r"(?:₹|rs|rs\.)"
_NUM = r"(\d+(?:\.\d{2})?)"


def _compile(*patterns: str) -> tuple[re.Pattern, ...]:
    return tuple(re.compile(pattern, re.IGNORECASE) for pattern in patterns)


# =============================================================================
# PARAMETER EXTRACTION
# =============================================================================

AMOUNT_PATTERN = re.compile(r"(?:₹|rs\.?)?\s*(\d+(?:\.\d{2})?)", re.IGNORECASE)
DATE_PATTERN = re.compile(
    r"(today|tomorrow|yesterday|(\d{1,2})[-/](\d{1,2})(?:[-/](\d{4}))?)",
    re.IGNORECASE,
)
DESCRIPTION_PATTERN = re.compile(
    r"\b(?:for|on|at)\s+(.+?)(?=\s+(?:(?:at|today|yesterday|on|rs)\b|₹)|\s*$)",
    re.IGNORECASE,
)
SPENDING_CATEGORY_PATTERN = re.compile(
    r"\b(?:on|at)\s+(.+?)(?:\s+(?:this|last|for))?(?:\s+(?:month|week|year|today))?\s*$",
    re.IGNORECASE,
)
GOAL_NAME_PATTERN = re.compile(
    r"\b(?:goal|target)\s+(?:(?:named?|called|for)\s+)?(.+?)\s+(?:(?:of|to)\s+)?(?:₹|rs\.?)\s*\d",
    re.IGNORECASE,
)
GOAL_TRAILING_NAME_PATTERN = re.compile(
    r"\bto\s+(?:goal|saving)\s+(.+?)\s*$",
    re.IGNORECASE,
)
GOAL_STATUS_PATTERN = re.compile(
    r"\b(?:(?:saving\s+goal|goal|saving)(?:\s+(?:status|progress))?|saved)"
    r"(?:\s+(?:for\s+)?(.+?))?\s*$",
    re.IGNORECASE,
)
REPORT_TOPIC_PATTERN = re.compile(
    r"\b(?:report|analysis)(?:\s+(?:on|for|about))?(?:\s+(.+?))?\s*$",
    re.IGNORECASE,
)

DEFAULT_REPORT_TOPIC = "general"
_CAPTURE_TRIM = " \t.,!?"


def _clean(captured: Optional[str]) -> Optional[str]:
    """Trim a captured phrase; empty means not extracted."""
    if captured is None:
        return None
    return captured.strip(_CAPTURE_TRIM) or None


def extract_amount(user_input: str) -> Optional[Decimal]:
    """First number in the input, with or without a ₹/rs marker."""
    match = AMOUNT_PATTERN.search(user_input)
    if match is None:
        return None
    try:
        return Decimal(match.group(1))
    except InvalidOperation:
        return None


def extract_date(user_input: str, today: date) -> Optional[str]:
    """ISO date for 'today' / 'yesterday'; any other date text is ignored."""
    match = DATE_PATTERN.search(user_input)
    if match is None:
        return None
    word = match.group(1).lower()
    if word == "today":
        return today.isoformat()
    if word == "yesterday":
        return (today - timedelta(days=1)).isoformat()
    return None


Extractor = Callable[[str, Optional[Decimal], Optional[str]], Optional[IntentParams]]


def _transaction_params(user_input, amount, when) -> TransactionParams:
    description = category = None
    match = DESCRIPTION_PATTERN.search(user_input)
    if match:
        description = _clean(match.group(1))
        if description:
            category = categorize_description(description)
    return TransactionParams(
        amount=amount, date=when, description=description, category=category
    )


def _spending_params(user_input, amount, when) -> SpendingQueryParams:
    match = SPENDING_CATEGORY_PATTERN.search(user_input)
    category = _clean(match.group(1)) if match else None
    return SpendingQueryParams(amount=amount, date=when, category=category)


def _goal_params(user_input, amount, when) -> GoalParams:
    match = GOAL_NAME_PATTERN.search(user_input) or GOAL_TRAILING_NAME_PATTERN.search(user_input)
    goal_name = _clean(match.group(1)) if match else None
    return GoalParams(amount=amount, date=when, goal_name=goal_name, goal_amount=amount)


def _goal_status_params(user_input, amount, when) -> GoalStatusParams:
    match = GOAL_STATUS_PATTERN.search(user_input)
    goal_name = _clean(match.group(1)) if match else None
    return GoalStatusParams(amount=amount, date=when, goal_name=goal_name)


def _report_params(user_input, amount, when) -> ReportParams:
    match = REPORT_TOPIC_PATTERN.search(user_input)
    description = None
    if match:
        description = _clean(match.group(1)) or DEFAULT_REPORT_TOPIC
    return ReportParams(amount=amount, date=when, description=description)


def _common_params(user_input, amount, when) -> IntentParams:
    return IntentParams(amount=amount, date=when)


def _no_params(user_input, amount, when) -> None:
    return None


# =============================================================================
# PATTERN TABLE
# =============================================================================

class IntentRule(NamedTuple):
    """One entry of the dispatch table: what to match and how to extract."""
    intent: Intent
    patterns: tuple[re.Pattern, ...]
    extract: Extractor

    def matches(self, normalized: str) -> bool:
        return any(pattern.search(normalized) for pattern in self.patterns)


# Order is priority. Reordering changes classification results.
PATTERN_TABLE: tuple[IntentRule, ...] = (
    IntentRule(Intent.ADD_EXPENSE, _compile(
        rf"add\s+{_CUR}\s*{_NUM}\s+(?:for\s+)?(.+?)(?:\s+(?:today|yesterday|on|at|to))?",
        rf"spent?\s+{_CUR}\s*{_NUM}\s+(?:on|for)\s+(.+?)(?:\s+(?:today|yesterday))?",
        rf"{_CUR}\s*{_NUM}\s+(?:on|for)\s+(.+?)(?:\s+(?:today|yesterday))?",
    ), _transaction_params),
    IntentRule(Intent.ADD_INCOME, _compile(
        rf"add\s+(?:income|salary|earnings?)\s+{_CUR}\s*{_NUM}\s+(?:from\s+)?(.+?)",
        rf"earned?\s+{_CUR}\s*{_NUM}\s+(?:from|for)\s+(.+?)",
    ), _transaction_params),
    IntentRule(Intent.CHECK_SPENDING, _compile(
        r"how\s+much\s+(?:did\s+)?i\s+spend\s+(?:on|at)?\s*(.+?)(?:\s+(?:this|last))?\s*(month|week|today)",
        r"spending\s+on\s+(.+?)(?:\s+this\s+(month|week|year))?",
        r"total\s+(?:expenses?|spending)\s+on\s+(.+?)(?:\s+(?:this\s+)?(month|week|year))?",
    ), _spending_params),
    IntentRule(Intent.CREATE_GOAL, _compile(
        rf"create\s+(?:a\s+)?(?:saving\s+)?goal\s+(?:named?|called?|for)?\s*(.+?)\s+(?:of\s+)?{_CUR}\s*{_NUM}",
        rf"(?:new|set\s+a)\s+(?:saving\s+)?goal\s+(?:for\s+)?(.+?)\s+{_CUR}\s*{_NUM}",
    ), _goal_params),
    IntentRule(Intent.UPDATE_GOAL, _compile(
        rf"update\s+(?:my\s+)?goal\s+(.+?)\s+(?:to\s+)?{_CUR}\s*{_NUM}",
        rf"(?:add|contribute)\s+{_CUR}\s*{_NUM}\s+to\s+(?:goal|saving)\s+(.+?)",
    ), _goal_params),
    IntentRule(Intent.SHOW_REPORTS, _compile(
        r"show\s+(?:me\s+)?(?:my\s+)?reports?",
        r"(?:analytics|analysis|expenses?\s+report|summary)",
        r"breakdown\s+of\s+(?:my\s+)?expenses?",
    ), _common_params),
    IntentRule(Intent.GOAL_STATUS, _compile(
        r"(?:what\s+is\s+my|check\s+my|show\s+my)\s+(?:goal|saving)\s+(?:status|progress)?(?:\s+for\s+)?(.+?)?",
        r"(?:goal|saving)\s+(?:status|progress)\s+(?:for\s+)?(.+?)?",
        r"how\s+much\s+(?:have\s+)?i\s+saved\s+for\s+(.+?)?",
    ), _goal_status_params),
    IntentRule(Intent.OPEN_RECEIPT, _compile(
        r"(?:upload|add|scan|show\s+me)\s+(?:my\s+)?(?:receipt|bill|invoice)",
        r"open\s+receipt\s+(?:uploader|upload)",
    ), _common_params),
    IntentRule(Intent.RECURRING_EXPENSE, _compile(
        rf"(?:set|add|create)\s+(?:a\s+)?recurring\s+(?:expense|payment)\s+{_CUR}\s*{_NUM}\s+(?:for|on)\s+(.+?)",
    ), _common_params),
    IntentRule(Intent.SHOW_BUDGET, _compile(
        r"(?:show|check)\s+(?:my\s+)?budget",
        r"budget\s+for\s+(.+?)(?:\s+this\s+month)?",
    ), _common_params),
    IntentRule(Intent.ASK_REPORT, _compile(
        r"(?:generate|create|make)\s+(?:a\s+)?(?:custom\s+)?report",
        r"(?:give\s+me|show\s+me)\s+(?:a\s+)?(?:detailed\s+)?report(?:\s+on)?",
        r"(?:detailed\s+)?report(?:\s+for\s+)?(.+?)?",
    ), _report_params),
    IntentRule(Intent.GREETING, _compile(
        r"^(?:hi|hello|hey|greetings|namaste)",
    ), _no_params),
    IntentRule(Intent.HELP, _compile(
        r"(?:help|what\s+can\s+you\s+do|commands?|guide)",
    ), _no_params),
)


def match_intent(user_input: str) -> Optional[IntentRule]:
    """First rule, in table order, with a pattern matching the input."""
    normalized = user_input.strip().lower()
    for rule in PATTERN_TABLE:
        if rule.matches(normalized):
            return rule
    return None


def detect_intent(user_input: Optional[str], today: Optional[date] = None) -> IntentResult:
    """
    Classify a command and extract its parameters.

    Args:
        user_input: Free-form command text
        today: Reference date for 'today' / 'yesterday'. Defaults to date.today().

    Returns:
        IntentResult - UNKNOWN with confidence 0 when no pattern matches
    """
    user_input = user_input or ""
    rule = match_intent(user_input)
    if rule is None:
        return IntentResult.unknown()

    params = rule.extract(
        user_input,
        extract_amount(user_input),
        extract_date(user_input, today or date.today()),
    )
    return IntentResult(intent=rule.intent, confidence=MATCH_CONFIDENCE, params=params)
