"""
Tests for the receipt and command flows.

OCR is replaced by small fakes; storage and audit use the in-memory
backends.
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from smartspend.audit import AuditLogger
from smartspend.config import AppSettings
from smartspend.models.audit import AuditEventBuilder, AuditEventType, AuditSeverity
from smartspend.models.intent import Intent
from smartspend.models.receipt import OCRResult
from smartspend.models.transaction import StorageScope, TransactionType
from smartspend.orchestrator import CommandFlow, ReceiptAnalysisFlow, create_app_components
from smartspend.services.ocr import OCRError, OCRServiceInterface
from smartspend.services.storage import (
    AuditStorageInterface,
    InMemoryAuditStorage,
    InMemoryReceiptStorage,
    NotFoundError,
    StorageError,
)


FRESH_MART = "Fresh Mart\nMilk 30\nBread 40\nTotal 70"
STARBUCKS = "Starbucks Coffee\nDate: 12/03/2025\nCafé Latte - 150\nCroissant - 80\nTax - 23\nTotal: 253"


class FakeOCR(OCRServiceInterface):
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = 0

    async def extract_text(self, image_bytes):
        self.calls += 1
        if self.error:
            raise self.error
        return self.result


class FailingReceiptStorage(InMemoryReceiptStorage):
    async def add_transaction(self, transaction, scope):
        raise StorageError("disk full")


class FailingAuditStorage(AuditStorageInterface):
    async def append_event(self, event):
        raise RuntimeError("audit backend down")

    async def get_events_by_correlation_id(self, correlation_id):
        return []


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def storage():
    return InMemoryReceiptStorage()


def make_flow(storage=None, audit_storage=None, ocr=None):
    return ReceiptAnalysisFlow(
        ocr_service=ocr,
        storage=storage,
        audit_logger=AuditLogger(storage=audit_storage),
        settings=AppSettings(fallback_receipt_text=STARBUCKS, fallback_ocr_confidence=60.0),
    )


async def event_types(audit_storage, correlation_id):
    events = await audit_storage.get_events_by_correlation_id(correlation_id)
    return [event.event_type for event in events]


class TestAnalyzeImage:
    """Tests for the image -> analysis flow."""

    @pytest.mark.asyncio
    async def test_successful_ocr(self, audit_storage):
        """Test that recognized text is parsed and audited."""
        ocr = FakeOCR(OCRResult(text=FRESH_MART, confidence=88.0))
        flow = make_flow(audit_storage=audit_storage, ocr=ocr)
        correlation_id = uuid4()

        analysis = await flow.analyze_image(b"img", correlation_id=correlation_id)

        assert analysis.merchant == "Fresh Mart"
        assert analysis.parsed_total == Decimal("70")
        assert analysis.ocr_confidence == 88.0
        assert analysis.extracted_text == FRESH_MART
        assert analysis.selected_category == analysis.suggested_categories[0]
        assert await event_types(audit_storage, correlation_id) == [
            AuditEventType.OCR_COMPLETED,
            AuditEventType.RECEIPT_ANALYZED,
            AuditEventType.CATEGORIES_SUGGESTED,
        ]

    @pytest.mark.asyncio
    async def test_unsuccessful_ocr_uses_fallback(self, audit_storage):
        """Test that a low-quality pass is replaced by the fallback text."""
        ocr = FakeOCR(OCRResult(text="~~", confidence=12.0, success=False,
                                error="OCR confidence too low"))
        flow = make_flow(audit_storage=audit_storage, ocr=ocr)
        correlation_id = uuid4()

        analysis = await flow.analyze_image(b"img", correlation_id=correlation_id)

        assert analysis.merchant == "Starbucks Coffee"
        assert analysis.parsed_total == Decimal("253")
        assert analysis.ocr_confidence == 60.0
        assert analysis.extracted_text == STARBUCKS
        assert await event_types(audit_storage, correlation_id) == [
            AuditEventType.OCR_FAILED,
            AuditEventType.OCR_FALLBACK_USED,
            AuditEventType.RECEIPT_ANALYZED,
            AuditEventType.CATEGORIES_SUGGESTED,
        ]

    @pytest.mark.asyncio
    async def test_ocr_error_is_absorbed(self, audit_storage):
        """Test that a raising OCR service never breaks the flow."""
        ocr = FakeOCR(error=OCRError("engine crashed"))
        flow = make_flow(audit_storage=audit_storage, ocr=ocr)
        correlation_id = uuid4()

        analysis = await flow.analyze_image(b"img", correlation_id=correlation_id)

        assert analysis.merchant == "Starbucks Coffee"
        types = await event_types(audit_storage, correlation_id)
        assert types[:2] == [
            AuditEventType.EXTERNAL_SERVICE_ERROR,
            AuditEventType.OCR_FALLBACK_USED,
        ]

    @pytest.mark.asyncio
    async def test_without_ocr_service(self):
        flow = make_flow()
        analysis = await flow.analyze_image(b"img")
        assert analysis.merchant == "Starbucks Coffee"
        assert analysis.ocr_confidence == 60.0

    @pytest.mark.asyncio
    async def test_receipt_url_is_attached(self):
        flow = make_flow(ocr=FakeOCR(OCRResult(text=FRESH_MART, confidence=90.0)))
        analysis = await flow.analyze_image(b"img", receipt_url="https://example.com/r.png")
        assert analysis.receipt_url == "https://example.com/r.png"


class TestAnalyzeText:
    """Tests for text -> analysis."""

    @pytest.mark.asyncio
    async def test_item_descriptions_feed_suggestions(self):
        """Test that a generic merchant is classified by what was bought."""
        flow = make_flow()
        analysis = await flow.analyze_text("City Mall\nPizza 200\nTotal 200")
        assert analysis.suggested_categories == ["Shopping", "Food"]
        assert analysis.selected_category == "Shopping"

    @pytest.mark.asyncio
    async def test_parse_confidence_when_no_ocr_confidence(self):
        flow = make_flow()
        analysis = await flow.analyze_text(STARBUCKS)
        assert analysis.confidence == 100
        assert analysis.ocr_confidence == 100

    @pytest.mark.asyncio
    async def test_fixed_today(self):
        flow = make_flow()
        analysis = await flow.analyze_text("Shop\nA 10", today=date(2025, 2, 1))
        assert analysis.date == "2025-02-01"

    def test_resuggest(self):
        assert ReceiptAnalysisFlow.resuggest("Uber") == ["Transport"]
        assert ReceiptAnalysisFlow.resuggest("Shop", ["coffee"]) == ["Shopping", "Food"]


class TestSave:
    """Tests for saving a reviewed analysis."""

    @pytest.mark.asyncio
    async def test_save_defaults(self, storage, audit_storage):
        """Test that an unedited analysis becomes an expense transaction."""
        flow = make_flow(storage=storage, audit_storage=audit_storage)
        analysis = await flow.analyze_text(STARBUCKS)
        correlation_id = uuid4()

        transaction = await flow.save(
            analysis, StorageScope.GUEST, correlation_id=correlation_id
        )

        assert transaction.type == TransactionType.EXPENSE
        assert transaction.amount == Decimal("253")
        assert transaction.category == "Food"
        assert transaction.description == "Starbucks Coffee - Receipt uploaded"
        # "12/03/2025" is not ISO, so the save date falls back to today
        assert transaction.date == date.today()

        assert len(await storage.list_transactions(StorageScope.GUEST)) == 1
        assert len(await storage.list_transactions(StorageScope.USER)) == 0
        stored = await storage.list_analyses(StorageScope.GUEST)
        assert [a.id for a in stored] == [analysis.id]
        assert stored[0].date == date.today().isoformat()

        assert await event_types(audit_storage, correlation_id) == [
            AuditEventType.TRANSACTION_SAVED,
            AuditEventType.ANALYSIS_SAVED,
        ]

    @pytest.mark.asyncio
    async def test_iso_analysis_date_is_kept(self, storage):
        flow = make_flow(storage=storage)
        analysis = await flow.analyze_text("Shop\n2025-01-15\nA 10")
        transaction = await flow.save(analysis, StorageScope.USER)
        assert transaction.date == date(2025, 1, 15)

    @pytest.mark.asyncio
    async def test_user_edits_override_parse(self, storage):
        """Test that edited fields win over parsed values."""
        flow = make_flow(storage=storage)
        analysis = await flow.analyze_text(STARBUCKS)

        transaction = await flow.save(
            analysis,
            StorageScope.USER,
            category="Shopping",
            amount="300.50",
            merchant="Cafe X",
            receipt_date=date(2025, 3, 1),
            include_in_reports=False,
        )

        assert transaction.amount == Decimal("300.50")
        assert transaction.category == "Shopping"
        assert transaction.description == "Cafe X - Receipt uploaded"
        assert transaction.date == date(2025, 3, 1)
        assert await storage.list_analyses(StorageScope.USER) == []

    @pytest.mark.asyncio
    async def test_original_analysis_is_untouched(self, storage):
        flow = make_flow(storage=storage)
        analysis = await flow.analyze_text(STARBUCKS)
        await flow.save(analysis, StorageScope.USER, category="Health")
        assert analysis.selected_category == "Food"

    @pytest.mark.parametrize("amount", ["abc", "0", "-5", "", "NaN"])
    @pytest.mark.asyncio
    async def test_invalid_amount_falls_back_to_parsed_total(self, storage, amount):
        flow = make_flow(storage=storage)
        analysis = await flow.analyze_text(STARBUCKS)
        transaction = await flow.save(analysis, StorageScope.USER, amount=amount)
        assert transaction.amount == Decimal("253")

    @pytest.mark.asyncio
    async def test_zero_total_without_edit_is_rejected(self, storage):
        flow = make_flow(storage=storage)
        analysis = await flow.analyze_text("Shop\nA 10\nTotal 0")

        with pytest.raises(ValueError):
            await flow.save(analysis, StorageScope.USER)
        assert await storage.list_transactions(StorageScope.USER) == []

    @pytest.mark.asyncio
    async def test_no_storage(self):
        flow = make_flow()
        analysis = await flow.analyze_text(STARBUCKS)
        with pytest.raises(StorageError):
            await flow.save(analysis, StorageScope.USER)

    @pytest.mark.asyncio
    async def test_storage_failure_is_audited_and_raised(self, audit_storage):
        flow = make_flow(storage=FailingReceiptStorage(), audit_storage=audit_storage)
        analysis = await flow.analyze_text(STARBUCKS)
        correlation_id = uuid4()

        with pytest.raises(StorageError):
            await flow.save(analysis, StorageScope.USER, correlation_id=correlation_id)

        events = await audit_storage.get_events_by_correlation_id(correlation_id)
        assert [event.event_type for event in events] == [AuditEventType.SAVE_FAILED]
        assert events[0].error_message == "disk full"


class TestRetrievalAndMigration:
    """Tests for reading back analyses and guest migration."""

    @pytest.mark.asyncio
    async def test_get_analysis(self, storage):
        flow = make_flow(storage=storage)
        analysis = await flow.analyze_text(STARBUCKS)
        await flow.save(analysis, StorageScope.GUEST)

        found = await flow.get_analysis(analysis.id, StorageScope.GUEST)
        assert found.merchant == "Starbucks Coffee"

        with pytest.raises(NotFoundError):
            await flow.get_analysis(analysis.id, StorageScope.USER)

    @pytest.mark.asyncio
    async def test_migrate_on_signup(self, storage, audit_storage):
        """Test that guest analyses are copied into the user scope once."""
        flow = make_flow(storage=storage, audit_storage=audit_storage)
        for text in (STARBUCKS, FRESH_MART):
            analysis = await flow.analyze_text(text)
            await flow.save(analysis, StorageScope.GUEST)

        correlation_id = uuid4()
        assert await flow.migrate_on_signup(correlation_id=correlation_id) == 2
        assert len(await storage.list_analyses(StorageScope.USER)) == 2
        assert await flow.migrate_on_signup() == 0

        events = await audit_storage.get_events_by_correlation_id(correlation_id)
        assert events[0].event_type == AuditEventType.GUEST_DATA_MIGRATED
        assert events[0].details["migrated_count"] == 2

    @pytest.mark.asyncio
    async def test_scope_from_login_state(self, storage):
        flow = make_flow(storage=storage)
        analysis = await flow.analyze_text(STARBUCKS)
        await flow.save(analysis, StorageScope.for_login_state(True))
        assert len(await storage.list_transactions(StorageScope.USER)) == 1


class TestCommandFlow:
    """Tests for command classification with auditing."""

    @pytest.mark.asyncio
    async def test_detected_intent_is_audited(self, audit_storage):
        flow = CommandFlow(audit_logger=AuditLogger(storage=audit_storage))
        correlation_id = uuid4()

        result = await flow.handle(
            "add ₹150 for coffee today",
            today=date(2025, 3, 12),
            correlation_id=correlation_id,
        )

        assert result.intent == Intent.ADD_EXPENSE
        events = await audit_storage.get_events_by_correlation_id(correlation_id)
        assert len(events) == 1
        assert events[0].event_type == AuditEventType.INTENT_DETECTED
        assert events[0].is_user_action
        assert events[0].details["params"] == {
            "amount": "150",
            "date": "2025-03-12",
            "description": "coffee",
            "category": "Food",
        }

    @pytest.mark.asyncio
    async def test_unknown_intent_is_a_warning(self, audit_storage):
        flow = CommandFlow(audit_logger=AuditLogger(storage=audit_storage))
        correlation_id = uuid4()

        result = await flow.handle("blah", correlation_id=correlation_id)

        assert result.intent == Intent.UNKNOWN
        events = await audit_storage.get_events_by_correlation_id(correlation_id)
        assert events[0].event_type == AuditEventType.INTENT_UNKNOWN
        assert events[0].severity == AuditSeverity.WARNING
        assert events[0].details["input_length"] == 4

    @pytest.mark.asyncio
    async def test_without_audit_logger(self):
        result = await CommandFlow().handle("hello")
        assert result.intent == Intent.GREETING


class TestAuditLogger:
    """Tests for audit persistence behavior."""

    @pytest.mark.asyncio
    async def test_storage_failure_is_swallowed(self):
        logger = AuditLogger(storage=FailingAuditStorage())
        event = AuditEventBuilder.ocr_failed("blurry", correlation_id=uuid4())
        assert await logger.log(event) is False

    @pytest.mark.asyncio
    async def test_local_only(self):
        logger = AuditLogger()
        event = AuditEventBuilder.ocr_failed("blurry", correlation_id=uuid4())
        assert await logger.log(event) is True


class TestAppComponents:
    """Tests for component wiring."""

    @pytest.mark.asyncio
    async def test_wiring_without_ocr(self):
        receipt_flow, command_flow, analytics, audit_logger = create_app_components(
            use_ocr=False
        )

        analysis = await receipt_flow.analyze_image(b"img")
        transaction = await receipt_flow.save(analysis, StorageScope.GUEST)

        assert transaction.amount == analysis.parsed_total
        assert await analytics.total_expenses(StorageScope.GUEST) == analysis.parsed_total
        assert isinstance(audit_logger, AuditLogger)
        assert (await command_flow.handle("show my budget")).intent == Intent.SHOW_BUDGET
