"""
Receipt Models for SmartSpend

These models define the schemas for data produced from receipt text.

DESIGN DECISION: ParsedReceipt is a transient value object. It is computed
per call, has no identity and is never persisted as-is. Only a
ReceiptAnalysis (which wraps a parse plus the user's category choice) is
handed to storage.

Field names are snake_case in Python and serialize with camelCase aliases
(lineItems, parsedTotal, ...) for the calling layer.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ReceiptLineItem(BaseModel):
    """One (description, amount) pair read from a single receipt line."""
    model_config = ConfigDict(
        str_strip_whitespace=True,
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )
    
    description: str = Field(
        ...,
        min_length=1,
        description="Line text with the amount token removed"
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        decimal_places=2,
        description="Line amount (always positive)"
    )


class ParsedReceipt(BaseModel):
    """
    Structured result of parsing raw receipt text.
    
    CRITICAL: This is PROPOSED data, NOT verified.
    Every field is populated - fallbacks are applied for missing signals:
    merchant "Unknown", date = today (ISO), total 0.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )
    
    merchant: str = Field(
        ...,
        description="Merchant name, or 'Unknown'"
    )
    date: str = Field(
        ...,
        description="First date-shaped substring of the text, or today's ISO date"
    )
    line_items: list[ReceiptLineItem] = Field(
        default_factory=list,
        description="Items read before the grand total, in receipt order"
    )
    total: Decimal = Field(
        ...,
        ge=0,
        description="Grand total, or the sum of line items when no total line exists"
    )
    confidence: int = Field(
        ...,
        ge=0,
        le=100,
        description="Heuristic extraction confidence (0-100)"
    )


class OCRResult(BaseModel):
    """
    Output of the OCR collaborator.
    
    The understanding core never produces this - it only consumes `text`.
    """
    
    text: str = Field(
        default="",
        description="Raw recognized text"
    )
    confidence: Optional[float] = Field(
        default=None,
        ge=0.0,
        le=100.0,
        description="Engine confidence (0-100) if reported"
    )
    success: bool = Field(
        default=True,
        description="Did the OCR pass produce usable text?"
    )
    error: Optional[str] = Field(
        default=None,
        description="Why the OCR pass failed"
    )


class ReceiptAnalysis(BaseModel):
    """
    A receipt parse enriched with category suggestions.
    
    This is what the calling layer shows the user for review, and what
    gets stored when the user keeps it in reports.
    """
    model_config = ConfigDict(
        str_strip_whitespace=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )
    
    id: UUID = Field(
        default_factory=uuid4,
        description="Unique analysis ID"
    )
    created_at: datetime = Field(
        default_factory=_utcnow,
        description="When the analysis was produced"
    )
    
    date: str
    merchant: str
    parsed_total: Decimal = Field(ge=0)
    confidence: int = Field(ge=0, le=100)
    line_items: list[ReceiptLineItem] = Field(default_factory=list)
    
    suggested_categories: list[str] = Field(
        ...,
        min_length=1,
        max_length=3,
        description="Ranked category suggestions"
    )
    selected_category: str = Field(
        ...,
        min_length=1,
        description="Category the user kept (defaults to the top suggestion)"
    )
    
    extracted_text: str = Field(
        default="",
        description="Text the parse was run on"
    )
    ocr_confidence: float = Field(
        ge=0.0,
        le=100.0,
        description="OCR engine confidence, or the parse confidence when OCR gave none"
    )
    include_in_reports: bool = True
    receipt_url: Optional[str] = None
    
    @field_validator('suggested_categories')
    @classmethod
    def unique_suggestions(cls, v: list[str]) -> list[str]:
        """Suggestions must not repeat."""
        if len(set(v)) != len(v):
            raise ValueError("Suggested categories must be unique")
        return v
