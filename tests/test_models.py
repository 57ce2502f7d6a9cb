"""
Tests for SmartSpend models and settings

Test strategy:
1. Unit tests for individual components (models, validators)
2. Flow tests with fake OCR and in-memory storage (test_orchestrator.py)
3. No real OCR engine in tests
"""

import pytest
from datetime import date
from decimal import Decimal
from uuid import uuid4

from pydantic import ValidationError

from smartspend.config import AppSettings, OCRSettings, validate_all_settings
from smartspend.models.receipt import (
    OCRResult,
    ParsedReceipt,
    ReceiptAnalysis,
    ReceiptLineItem,
)
from smartspend.models.intent import (
    GoalParams,
    Intent,
    IntentParams,
    IntentResult,
    TransactionParams,
)
from smartspend.models.transaction import StorageScope, Transaction, TransactionType
from smartspend.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


def make_analysis(**overrides) -> ReceiptAnalysis:
    fields = dict(
        date="2025-03-12",
        merchant="Starbucks Coffee",
        parsed_total=Decimal("253"),
        confidence=100,
        suggested_categories=["Food"],
        selected_category="Food",
        ocr_confidence=88.0,
    )
    fields.update(overrides)
    return ReceiptAnalysis(**fields)


class TestReceiptModels:
    """Tests for receipt-related Pydantic models."""

    def test_line_item_creation(self):
        item = ReceiptLineItem(description="Café Latte", amount=Decimal("150"))
        assert item.description == "Café Latte"
        assert item.amount == Decimal("150")

    def test_line_item_strips_whitespace(self):
        """Test that whitespace is stripped from descriptions."""
        item = ReceiptLineItem(description="  Croissant  ", amount=Decimal("80"))
        assert item.description == "Croissant"

    @pytest.mark.parametrize("amount", ["0", "-10"])
    def test_line_item_rejects_non_positive_amount(self, amount):
        """Test that line items always carry a positive amount."""
        with pytest.raises(ValidationError):
            ReceiptLineItem(description="Test", amount=Decimal(amount))

    def test_line_item_rejects_extra_precision(self):
        with pytest.raises(ValidationError):
            ReceiptLineItem(description="Test", amount=Decimal("1.234"))

    def test_line_item_is_frozen(self):
        item = ReceiptLineItem(description="Tea", amount=Decimal("10"))
        with pytest.raises(ValidationError):
            item.amount = Decimal("20")

    def test_parsed_receipt_bounds(self):
        """Test confidence and total bounds."""
        with pytest.raises(ValidationError):
            ParsedReceipt(merchant="X", date="2025-01-01", total=Decimal("1"), confidence=101)
        with pytest.raises(ValidationError):
            ParsedReceipt(merchant="X", date="2025-01-01", total=Decimal("-1"), confidence=50)

    def test_parsed_receipt_camel_case_dump(self):
        receipt = ParsedReceipt(
            merchant="Shop",
            date="2025-01-01",
            line_items=[ReceiptLineItem(description="A", amount=Decimal("10"))],
            total=Decimal("10"),
            confidence=90,
        )
        dumped = receipt.model_dump(by_alias=True)
        assert "lineItems" in dumped
        assert dumped["lineItems"][0]["amount"] == Decimal("10")

    def test_ocr_result_defaults(self):
        result = OCRResult()
        assert result.text == ""
        assert result.success
        assert result.confidence is None

    def test_analysis_creation(self):
        analysis = make_analysis()
        assert analysis.include_in_reports
        assert analysis.line_items == []
        assert analysis.id is not None

    def test_analysis_accepts_camel_case(self):
        analysis = ReceiptAnalysis(
            date="2025-03-12",
            merchant="Shop",
            parsedTotal="10",
            confidence=60,
            suggestedCategories=["Shopping"],
            selectedCategory="Shopping",
            ocrConfidence=60,
        )
        assert analysis.parsed_total == Decimal("10")

    def test_analysis_rejects_duplicate_suggestions(self):
        with pytest.raises(ValidationError):
            make_analysis(suggested_categories=["Food", "Food"])

    def test_analysis_limits_suggestions(self):
        with pytest.raises(ValidationError):
            make_analysis(suggested_categories=[])
        with pytest.raises(ValidationError):
            make_analysis(suggested_categories=["Food", "Transport", "Health", "Shopping"])


class TestIntentModels:
    """Tests for intent results and parameter records."""

    def test_unknown(self):
        result = IntentResult.unknown()
        assert result.intent == Intent.UNKNOWN
        assert result.confidence == 0
        assert result.params is None

    def test_known_intent_needs_confidence(self):
        with pytest.raises(ValidationError):
            IntentResult(intent=Intent.GREETING, confidence=0.0)

    def test_unknown_cannot_have_confidence(self):
        with pytest.raises(ValidationError):
            IntentResult(intent=Intent.UNKNOWN, confidence=0.85)

    def test_unknown_cannot_have_params(self):
        with pytest.raises(ValidationError):
            IntentResult(intent=Intent.UNKNOWN, confidence=0.0, params=IntentParams())

    def test_concrete_params_type_is_kept(self):
        """Test that a subclass record survives union validation."""
        params = GoalParams(goal_name="bike", goal_amount=Decimal("9000"))
        result = IntentResult(intent=Intent.CREATE_GOAL, confidence=0.85, params=params)
        assert isinstance(result.params, GoalParams)
        assert result.params.goal_name == "bike"

    def test_params_serialize_camel_case(self):
        params = GoalParams(goal_name="bike", goal_amount=Decimal("9000"))
        dumped = params.model_dump(by_alias=True, exclude_none=True)
        assert dumped == {"goalName": "bike", "goalAmount": Decimal("9000")}

    def test_params_reject_negative_amount(self):
        with pytest.raises(ValidationError):
            TransactionParams(amount=Decimal("-1"))

    def test_params_fields_default_to_none(self):
        params = TransactionParams()
        assert params.amount is None
        assert params.date is None
        assert params.description is None
        assert params.category is None


class TestTransactionModels:
    """Tests for stored transactions and scopes."""

    def test_transaction_creation(self):
        transaction = Transaction(
            type=TransactionType.EXPENSE,
            amount=Decimal("253"),
            category="Food",
            description="Starbucks Coffee - Receipt uploaded",
            date=date(2025, 3, 12),
        )
        assert not transaction.recurring
        assert transaction.receipt_url is None

    def test_transaction_rejects_zero_amount(self):
        with pytest.raises(ValidationError):
            Transaction(
                type=TransactionType.EXPENSE,
                amount=Decimal("0"),
                category="Food",
                date=date(2025, 3, 12),
            )

    def test_transaction_requires_category(self):
        with pytest.raises(ValidationError):
            Transaction(
                type=TransactionType.INCOME,
                amount=Decimal("10"),
                category="",
                date=date(2025, 3, 12),
            )

    @pytest.mark.parametrize("logged_in,expected", [
        (True, StorageScope.USER),
        (False, StorageScope.GUEST),
    ])
    def test_scope_for_login_state(self, logged_in, expected):
        assert StorageScope.for_login_state(logged_in) == expected


class TestAuditModels:
    """Tests for audit event models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.RECEIPT_ANALYZED,
            description="Receipt parsed",
        )
        assert event.event_id is not None
        assert event.timestamp is not None
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        correlation_id = uuid4()
        event = AuditEvent(
            event_type=AuditEventType.TRANSACTION_SAVED,
            description="Test event",
            correlation_id=correlation_id,
        )
        log_dict = event.to_log_dict()

        assert log_dict["event_type"] == "transaction_saved"
        assert log_dict["correlation_id"] == str(correlation_id)
        assert log_dict["entity_id"] is None
        assert "timestamp" in log_dict

    def test_builder_receipt_analyzed(self):
        """Test AuditEventBuilder.receipt_analyzed."""
        analysis_id = uuid4()
        event = AuditEventBuilder.receipt_analyzed(
            analysis_id=analysis_id,
            merchant="Starbucks Coffee",
            total="253",
            confidence=100,
            item_count=3,
            correlation_id=uuid4(),
        )

        assert event.event_type == AuditEventType.RECEIPT_ANALYZED
        assert event.entity_id == analysis_id
        assert event.details["item_count"] == 3
        assert "Starbucks Coffee" in event.description

    def test_builder_ocr_completed_without_confidence(self):
        event = AuditEventBuilder.ocr_completed(
            confidence=None,
            text_length=42,
            correlation_id=uuid4(),
        )
        assert "n/a" in event.description

    def test_builder_save_failed_is_error(self):
        event = AuditEventBuilder.save_failed(
            entity_type="receipt",
            error_message="disk full",
            correlation_id=uuid4(),
        )
        assert event.severity == AuditSeverity.ERROR
        assert event.error_message == "disk full"

    def test_builder_intent_detected_is_user_action(self):
        event = AuditEventBuilder.intent_detected(
            intent="add_expense",
            confidence=0.85,
            params=None,
            correlation_id=uuid4(),
        )
        assert event.is_user_action
        assert event.details["params"] == {}


class TestSettings:
    """Tests for settings validation."""

    def test_log_level_is_normalized(self):
        assert AppSettings(log_level=" debug ").log_level == "DEBUG"

    def test_unknown_log_level_rejected(self):
        with pytest.raises(ValidationError):
            AppSettings(log_level="LOUD")

    def test_fallback_defaults(self):
        settings = AppSettings()
        assert settings.fallback_receipt_text.startswith("Starbucks Coffee")
        assert settings.fallback_ocr_confidence == 60.0

    def test_ocr_confidence_bounds(self):
        with pytest.raises(ValidationError):
            OCRSettings(min_confidence=150)

    def test_validate_all_settings(self):
        results = validate_all_settings()
        assert results["ocr"] is True
        assert results["app"] is True
