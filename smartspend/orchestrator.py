"""
Main Orchestrator for SmartSpend

This module ties the understanding core to its collaborators and defines
the end-to-end flows for:
1. Receipt analysis (image -> OCR -> parse -> suggest categories -> review -> save)
2. Commands (text -> intent + parameters)

DESIGN DECISION: The understanding functions never touch OCR, storage or
logs. Everything impure lives here:
- OCR failures are absorbed by analyzing fallback text
- Nothing is stored until the caller explicitly saves
- Every step is audited
"""

from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Optional
from uuid import UUID

from smartspend.audit import AuditLogger, configure_logging, create_correlation_id
from smartspend.config import AppSettings, get_settings
from smartspend.models.intent import IntentResult
from smartspend.models.receipt import OCRResult, ReceiptAnalysis
from smartspend.models.transaction import StorageScope, Transaction, TransactionType
from smartspend.queries import SpendingAnalytics
from smartspend.services.ocr import OCRError, OCRServiceInterface, TesseractOCRService
from smartspend.services.storage import (
    InMemoryAuditStorage,
    InMemoryReceiptStorage,
    NotFoundError,
    ReceiptStorageInterface,
    StorageError,
)
from smartspend.understanding import detect_intent, parse_receipt, suggest_categories


class ReceiptAnalysisFlow:
    """
    Orchestrates the receipt analysis flow.

    Flow:
    1. OCR -> raw text (fallback text when OCR fails or is unavailable)
    2. Parse -> ParsedReceipt
    3. Suggest -> ranked categories from merchant and item descriptions
    4. Review -> caller shows the ReceiptAnalysis (PAUSE)
    5. Save -> expense transaction, plus the analysis if kept for reports
    """

    def __init__(
        self,
        ocr_service: Optional[OCRServiceInterface] = None,
        storage: Optional[ReceiptStorageInterface] = None,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[AppSettings] = None,
    ):
        self._ocr_service = ocr_service
        self._storage = storage
        self._audit_logger = audit_logger
        self._settings = settings or get_settings().app

    async def _read_image(
        self,
        image_bytes: bytes,
        correlation_id: UUID,
    ) -> OCRResult:
        """
        Run OCR, never raising.

        Returns an unsuccessful OCRResult when no OCR service is configured
        or the service fails.
        """
        if self._ocr_service is None:
            return OCRResult(success=False, error="OCR service not configured")

        try:
            result = await self._ocr_service.extract_text(image_bytes)
        except OCRError as e:
            if self._audit_logger:
                await self._audit_logger.log_external_service_error(
                    service="ocr",
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            return OCRResult(success=False, error=str(e))

        if self._audit_logger:
            if result.success:
                await self._audit_logger.log_ocr_completed(
                    confidence=result.confidence,
                    text_length=len(result.text),
                    correlation_id=correlation_id,
                )
            else:
                await self._audit_logger.log_ocr_failed(
                    error_message=result.error or "OCR pass unsuccessful",
                    correlation_id=correlation_id,
                )
        return result

    async def analyze_image(
        self,
        image_bytes: bytes,
        receipt_url: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> ReceiptAnalysis:
        """
        Analyze a receipt image.

        When OCR is unavailable or unreliable, the configured fallback
        receipt text is analyzed instead so the user can still edit and save.
        """
        correlation_id = correlation_id or create_correlation_id()

        ocr_result = await self._read_image(image_bytes, correlation_id)

        if ocr_result.success:
            text = ocr_result.text
            ocr_confidence = ocr_result.confidence
        else:
            text = self._settings.fallback_receipt_text
            ocr_confidence = self._settings.fallback_ocr_confidence
            if self._audit_logger:
                await self._audit_logger.log_ocr_fallback_used(
                    fallback_confidence=ocr_confidence,
                    correlation_id=correlation_id,
                )

        analysis = await self.analyze_text(
            text,
            ocr_confidence=ocr_confidence,
            correlation_id=correlation_id,
        )
        if receipt_url:
            analysis.receipt_url = receipt_url
        return analysis

    async def analyze_text(
        self,
        text: str,
        ocr_confidence: Optional[float] = None,
        today: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> ReceiptAnalysis:
        """
        Parse receipt text and attach category suggestions.

        Item descriptions are passed as extra keywords so a generic merchant
        name ("City Mall") can still be classified by what was bought.
        """
        correlation_id = correlation_id or create_correlation_id()

        parsed = parse_receipt(text, today=today)
        suggestions = suggest_categories(
            parsed.merchant,
            [item.description for item in parsed.line_items],
        )

        analysis = ReceiptAnalysis(
            date=parsed.date,
            merchant=parsed.merchant,
            parsed_total=parsed.total,
            confidence=parsed.confidence,
            line_items=list(parsed.line_items),
            suggested_categories=suggestions,
            selected_category=suggestions[0],
            extracted_text=text,
            ocr_confidence=(
                ocr_confidence if ocr_confidence is not None else parsed.confidence
            ),
        )

        if self._audit_logger:
            await self._audit_logger.log_receipt_analyzed(
                analysis_id=analysis.id,
                merchant=parsed.merchant,
                total=str(parsed.total),
                confidence=parsed.confidence,
                item_count=len(parsed.line_items),
                categories=suggestions,
                correlation_id=correlation_id,
            )

        return analysis

    async def save(
        self,
        analysis: ReceiptAnalysis,
        scope: StorageScope,
        category: Optional[str] = None,
        amount: Optional[str] = None,
        merchant: Optional[str] = None,
        receipt_date: Optional[date] = None,
        include_in_reports: Optional[bool] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Transaction:
        """
        Save a reviewed analysis.

        User edits override the parse: an amount that is not a positive
        number falls back to the parsed total, a missing date falls back to
        the analysis date when it is ISO shaped, else today.

        Raises:
            ValueError: If neither the edit nor the parse gives an amount
            StorageError: If no storage is configured or a write fails
        """
        correlation_id = correlation_id or create_correlation_id()

        if self._storage is None:
            raise StorageError("No receipt storage configured")

        final_category = category or analysis.selected_category
        final_merchant = merchant or analysis.merchant
        final_amount = _parse_amount(amount) or analysis.parsed_total
        final_date = receipt_date or _parse_iso_date(analysis.date) or date.today()

        if final_amount <= 0:
            raise ValueError(
                "Receipt has no amount - enter the amount before saving"
            )

        transaction = Transaction(
            type=TransactionType.EXPENSE,
            amount=final_amount,
            category=final_category,
            description=f"{final_merchant} - Receipt uploaded",
            date=final_date,
            receipt_url=analysis.receipt_url,
        )

        kept = analysis.model_copy(update={
            "selected_category": final_category,
            "merchant": final_merchant,
            "date": final_date.isoformat(),
            "include_in_reports": (
                analysis.include_in_reports
                if include_in_reports is None
                else include_in_reports
            ),
        })

        try:
            await self._storage.add_transaction(transaction, scope)
            if kept.include_in_reports:
                await self._storage.save_analysis(kept, scope)
        except StorageError as e:
            if self._audit_logger:
                await self._audit_logger.log_save_failed(
                    entity_type="receipt",
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise

        if self._audit_logger:
            await self._audit_logger.log_transaction_saved(
                transaction_id=transaction.id,
                category=final_category,
                amount=str(final_amount),
                scope=scope.value,
                correlation_id=correlation_id,
            )
            if kept.include_in_reports:
                await self._audit_logger.log_analysis_saved(
                    analysis_id=kept.id,
                    scope=scope.value,
                    correlation_id=correlation_id,
                )

        return transaction

    async def get_analysis(
        self,
        analysis_id: UUID,
        scope: StorageScope,
    ) -> ReceiptAnalysis:
        """
        Raises:
            NotFoundError: If the analysis is not stored in that scope
        """
        if self._storage is None:
            raise StorageError("No receipt storage configured")
        analysis = await self._storage.get_analysis(analysis_id, scope)
        if analysis is None:
            raise NotFoundError(f"Receipt analysis {analysis_id} not found")
        return analysis

    async def migrate_on_signup(
        self,
        correlation_id: Optional[UUID] = None,
    ) -> int:
        """Move guest receipt analyses into the signed-in user's scope."""
        correlation_id = correlation_id or create_correlation_id()
        if self._storage is None:
            raise StorageError("No receipt storage configured")

        migrated = await self._storage.migrate_guest_data()
        if self._audit_logger:
            await self._audit_logger.log_guest_data_migrated(
                migrated_count=migrated,
                correlation_id=correlation_id,
            )
        return migrated

    @staticmethod
    def resuggest(merchant: str, keywords: Optional[list[str]] = None) -> list[str]:
        """Re-rank categories while the user edits the merchant or keywords."""
        return suggest_categories(merchant, keywords or [])


class CommandFlow:
    """
    Orchestrates command classification.

    The flow only classifies; acting on the intent (adding the expense,
    opening the uploader) belongs to the calling layer.
    """

    def __init__(
        self,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._audit_logger = audit_logger

    async def handle(
        self,
        user_input: str,
        today: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> IntentResult:
        correlation_id = correlation_id or create_correlation_id()

        result = detect_intent(user_input, today=today)

        if self._audit_logger:
            await self._audit_logger.log_intent(
                intent=result.intent.value,
                confidence=result.confidence,
                params=(
                    result.params.model_dump(mode="json", exclude_none=True)
                    if result.params
                    else None
                ),
                input_length=len(user_input or ""),
                correlation_id=correlation_id,
            )

        return result


def _parse_amount(raw: Optional[str]) -> Optional[Decimal]:
    """Positive decimal from a user-edited field, or None."""
    if not raw:
        return None
    try:
        value = Decimal(raw.strip())
    except InvalidOperation:
        return None
    return value if value.is_finite() and value > 0 else None


def _parse_iso_date(raw: str) -> Optional[date]:
    try:
        return date.fromisoformat(raw)
    except ValueError:
        return None


def create_app_components(
    use_ocr: bool = True,
) -> tuple[ReceiptAnalysisFlow, CommandFlow, SpendingAnalytics, AuditLogger]:
    """
    Factory function to create all application components.

    Args:
        use_ocr: If False, receipts are analyzed from fallback text only
                 (useful when Tesseract is not installed)

    Returns:
        (receipt_flow, command_flow, analytics, audit_logger)
    """
    settings = get_settings()
    configure_logging(settings.app.log_level)

    audit_logger = AuditLogger(storage=InMemoryAuditStorage())
    storage = InMemoryReceiptStorage()
    ocr_service = TesseractOCRService(settings.ocr) if use_ocr else None

    receipt_flow = ReceiptAnalysisFlow(
        ocr_service=ocr_service,
        storage=storage,
        audit_logger=audit_logger,
        settings=settings.app,
    )
    command_flow = CommandFlow(audit_logger=audit_logger)
    analytics = SpendingAnalytics(storage)

    return receipt_flow, command_flow, analytics, audit_logger
