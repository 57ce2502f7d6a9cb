"""
Audit Logger

DESIGN DECISION: Every step of a receipt or command flow is logged.
This provides:
1. Traceability from OCR text to stored transaction
2. Debugging capability when parsing falls back to defaults
3. A history the user can inspect

The audit logger:
- Always logs locally through structlog
- Persists to audit storage when one is configured
- Never crashes a flow when persisting fails
- Supports correlation IDs to trace related events
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from smartspend.models.audit import AuditEvent, AuditEventBuilder
from smartspend.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(log_level: str = "INFO") -> None:
    """Route structlog output through stdlib logging at the given level."""
    logging.basicConfig(format="%(message)s", level=log_level.upper())
    logging.getLogger().setLevel(log_level.upper())


class AuditLogger:
    """
    Central audit logging service.
    
    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage (for persistence and user visibility)
    """
    
    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.
        
        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("smartspend.audit")
    
    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.
        
        Always logs locally. Persists to storage if available.
        
        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()
        
        if event.severity.value == "error":
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        elif event.severity.value == "debug":
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)
        
        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False
        
        return True
    
    async def log_ocr_completed(
        self,
        confidence: Optional[float],
        text_length: int,
        correlation_id: UUID,
    ) -> None:
        """Log a usable OCR pass."""
        await self.log(AuditEventBuilder.ocr_completed(
            confidence=confidence,
            text_length=text_length,
            correlation_id=correlation_id,
        ))
    
    async def log_ocr_failed(
        self,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        """Log an OCR pass that produced nothing usable."""
        await self.log(AuditEventBuilder.ocr_failed(
            error_message=error_message,
            correlation_id=correlation_id,
        ))
    
    async def log_ocr_fallback_used(
        self,
        fallback_confidence: float,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.ocr_fallback_used(
            fallback_confidence=fallback_confidence,
            correlation_id=correlation_id,
        ))
    
    async def log_receipt_analyzed(
        self,
        analysis_id: UUID,
        merchant: str,
        total: str,
        confidence: int,
        item_count: int,
        categories: list[str],
        correlation_id: UUID,
    ) -> None:
        """Log a parsed receipt and the categories suggested for it."""
        await self.log(AuditEventBuilder.receipt_analyzed(
            analysis_id=analysis_id,
            merchant=merchant,
            total=total,
            confidence=confidence,
            item_count=item_count,
            correlation_id=correlation_id,
        ))
        await self.log(AuditEventBuilder.categories_suggested(
            analysis_id=analysis_id,
            categories=categories,
            correlation_id=correlation_id,
        ))
    
    async def log_intent(
        self,
        intent: str,
        confidence: float,
        params: Optional[dict],
        input_length: int,
        correlation_id: UUID,
    ) -> None:
        """Log a classified command (or a miss)."""
        if intent == "unknown":
            event = AuditEventBuilder.intent_unknown(
                input_length=input_length,
                correlation_id=correlation_id,
            )
        else:
            event = AuditEventBuilder.intent_detected(
                intent=intent,
                confidence=confidence,
                params=params,
                correlation_id=correlation_id,
            )
        await self.log(event)
    
    async def log_analysis_saved(
        self,
        analysis_id: UUID,
        scope: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.analysis_saved(
            analysis_id=analysis_id,
            scope=scope,
            correlation_id=correlation_id,
        ))
    
    async def log_transaction_saved(
        self,
        transaction_id: UUID,
        category: str,
        amount: str,
        scope: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.transaction_saved(
            transaction_id=transaction_id,
            category=category,
            amount=amount,
            scope=scope,
            correlation_id=correlation_id,
        ))
    
    async def log_guest_data_migrated(
        self,
        migrated_count: int,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.guest_data_migrated(
            migrated_count=migrated_count,
            correlation_id=correlation_id,
        ))
    
    async def log_save_failed(
        self,
        entity_type: str,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.save_failed(
            entity_type=entity_type,
            error_message=error_message,
            correlation_id=correlation_id,
        ))
    
    async def log_external_service_error(
        self,
        service: str,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        """Log external service error."""
        await self.log(AuditEventBuilder.external_service_error(
            service=service,
            error_message=error_message,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.
    
    Use this at the start of a new user action (e.g., receipt upload).
    Pass it through all subsequent operations.
    """
    return uuid4()
