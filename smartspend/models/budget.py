"""
Budget and Report Models for SmartSpend

Read-side shapes computed from stored transactions. Nothing here is
persisted except the Budget a user sets.
"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


MONTH_PATTERN = r"^\d{4}-\d{2}$"


class Budget(BaseModel):
    """A spending limit for one category."""
    model_config = ConfigDict(
        str_strip_whitespace=True,
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    category: str = Field(..., min_length=1, max_length=100)
    limit: Decimal = Field(
        ...,
        gt=0,
        description="Monthly limit for the category"
    )
    month: Optional[str] = Field(
        default=None,
        pattern=MONTH_PATTERN,
        description="YYYY-MM the budget was set in"
    )


class BudgetStatus(Budget):
    """
    A budget compared against this month's expenses.

    `remaining` goes negative once the budget is exceeded; `percentage`
    is capped at 100.
    """

    spent: Decimal = Field(..., ge=0)
    remaining: Decimal
    percentage: float = Field(..., ge=0.0, le=100.0)


class MonthlyTotals(BaseModel):
    """Income and expense sums for one YYYY-MM month."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    month: str = Field(..., pattern=MONTH_PATTERN)
    income: Decimal = Decimal("0")
    expense: Decimal = Decimal("0")
