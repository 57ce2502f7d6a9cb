"""
Intent Models for SmartSpend

A free-form command ("add ₹150 for coffee today") is classified into one
label of a closed set and, depending on the label, carries a small record
of extracted parameters.

DESIGN DECISION: Each intent family gets its own parameter record instead
of one grab-bag object. Every field is independently optional - None means
"not extracted", never zero or empty.
"""

from decimal import Decimal
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class Intent(str, Enum):
    """Closed set of command intents."""
    ADD_EXPENSE = "add_expense"
    ADD_INCOME = "add_income"
    CHECK_SPENDING = "check_spending"
    CREATE_GOAL = "create_goal"
    UPDATE_GOAL = "update_goal"
    SHOW_REPORTS = "show_reports"
    OPEN_RECEIPT = "open_receipt"
    RECURRING_EXPENSE = "recurring_expense"
    SHOW_BUDGET = "show_budget"
    GOAL_STATUS = "goal_status"
    ASK_REPORT = "ask_report"
    GREETING = "greeting"
    HELP = "help"
    UNKNOWN = "unknown"


# =============================================================================
# PARAMETER RECORDS
# =============================================================================

class IntentParams(BaseModel):
    """
    Parameters any non-conversational intent may carry.

    Used as-is by show_reports, open_receipt, recurring_expense and
    show_budget.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    amount: Optional[Decimal] = Field(
        default=None,
        ge=0,
        description="First currency amount in the command"
    )
    date: Optional[str] = Field(
        default=None,
        description="ISO date resolved from 'today' / 'yesterday'"
    )


class TransactionParams(IntentParams):
    """Parameters for add_expense and add_income."""

    description: Optional[str] = None
    category: Optional[str] = None


class SpendingQueryParams(IntentParams):
    """Parameters for check_spending."""

    category: Optional[str] = Field(
        default=None,
        description="Free text after 'on'/'at', as typed"
    )


class GoalParams(IntentParams):
    """Parameters for create_goal and update_goal."""

    goal_name: Optional[str] = None
    goal_amount: Optional[Decimal] = Field(default=None, ge=0)


class GoalStatusParams(IntentParams):
    """Parameters for goal_status."""

    goal_name: Optional[str] = None


class ReportParams(IntentParams):
    """Parameters for ask_report."""

    description: Optional[str] = None


# Most specific first so validation keeps the concrete record type
AnyIntentParams = Union[
    TransactionParams,
    SpendingQueryParams,
    GoalParams,
    GoalStatusParams,
    ReportParams,
    IntentParams,
]


class IntentResult(BaseModel):
    """
    Classified command.

    INVARIANT: confidence is 0 exactly when the intent is UNKNOWN,
    and an UNKNOWN result never carries parameters.
    """
    model_config = ConfigDict(frozen=True)

    intent: Intent
    confidence: float = Field(
        ...,
        ge=0.0,
        le=1.0,
        description="Fixed heuristic confidence, not a probability"
    )
    params: Optional[AnyIntentParams] = None

    @model_validator(mode='after')
    def validate_unknown(self) -> 'IntentResult':
        """Keep confidence and params consistent with the intent."""
        is_unknown = self.intent == Intent.UNKNOWN
        if is_unknown != (self.confidence == 0):
            raise ValueError("Confidence must be 0 exactly when intent is unknown")
        if is_unknown and self.params is not None:
            raise ValueError("Unknown intent cannot carry parameters")
        return self

    @classmethod
    def unknown(cls) -> 'IntentResult':
        return cls(intent=Intent.UNKNOWN, confidence=0.0)
