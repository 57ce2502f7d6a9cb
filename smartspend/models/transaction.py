"""
Transaction Models for SmartSpend

A transaction is the record the persistence collaborator keeps for every
expense or income entry, whether typed in, spoken as a command, or
confirmed from a receipt.
"""

from datetime import date as date_type, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class StorageScope(str, Enum):
    """
    Auth scope that keys all stored records.
    
    Guests keep data until they sign up; on sign-up their receipt
    analyses are migrated into the user scope.
    """
    GUEST = "guest"
    USER = "user"
    
    @classmethod
    def for_login_state(cls, is_logged_in: bool) -> "StorageScope":
        return cls.USER if is_logged_in else cls.GUEST


class TransactionType(str, Enum):
    """Direction of money flow."""
    EXPENSE = "expense"
    INCOME = "income"


class Transaction(BaseModel):
    """A single stored expense or income entry."""
    model_config = ConfigDict(
        str_strip_whitespace=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )
    
    id: UUID = Field(default_factory=uuid4)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    
    type: TransactionType
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Amount (always positive; direction comes from `type`)"
    )
    category: str = Field(..., min_length=1, max_length=100)
    description: str = Field(default="", max_length=500)
    date: date_type
    recurring: bool = False
    receipt_url: Optional[str] = None
