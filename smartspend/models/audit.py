"""
Audit Models for SmartSpend

Every step of a receipt analysis or command flow is recorded as an
audit event. This provides:
1. Traceability from OCR text to stored transaction
2. Debugging information when parsing degrades to fallbacks
3. A history the user can inspect

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # OCR collaborator
    OCR_COMPLETED = "ocr_completed"
    OCR_FAILED = "ocr_failed"
    OCR_FALLBACK_USED = "ocr_fallback_used"

    # Understanding
    RECEIPT_ANALYZED = "receipt_analyzed"
    CATEGORIES_SUGGESTED = "categories_suggested"
    INTENT_DETECTED = "intent_detected"
    INTENT_UNKNOWN = "intent_unknown"

    # Persistence
    ANALYSIS_SAVED = "analysis_saved"
    TRANSACTION_SAVED = "transaction_saved"
    GUEST_DATA_MIGRATED = "guest_data_migrated"
    SAVE_FAILED = "save_failed"

    # System events
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """
    A single audit event.

    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'analysis', 'transaction', 'command')"
    )
    entity_id: Optional[UUID] = None

    # Correlation - ties together all events of one flow
    correlation_id: Optional[UUID] = None

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)

    error_message: Optional[str] = None
    is_user_action: bool = False

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.receipt_analyzed(analysis_id, merchant, ...)
        event = AuditEventBuilder.intent_detected(intent, confidence, ...)
    """

    @staticmethod
    def ocr_completed(
        confidence: Optional[float],
        text_length: int,
        correlation_id: UUID
    ) -> AuditEvent:
        shown = f"{confidence:.0f}" if confidence is not None else "n/a"
        return AuditEvent(
            event_type=AuditEventType.OCR_COMPLETED,
            entity_type="ocr",
            correlation_id=correlation_id,
            description=f"OCR completed with confidence {shown}",
            details={
                "confidence": confidence,
                "text_length": text_length,
            },
        )

    @staticmethod
    def ocr_failed(
        error_message: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.OCR_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="ocr",
            correlation_id=correlation_id,
            description="OCR did not produce usable text",
            error_message=error_message,
        )

    @staticmethod
    def ocr_fallback_used(
        fallback_confidence: float,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.OCR_FALLBACK_USED,
            severity=AuditSeverity.WARNING,
            entity_type="ocr",
            correlation_id=correlation_id,
            description="Fallback receipt text analyzed instead of OCR output",
            details={
                "fallback_confidence": fallback_confidence,
            },
        )

    @staticmethod
    def receipt_analyzed(
        analysis_id: UUID,
        merchant: str,
        total: str,
        confidence: int,
        item_count: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECEIPT_ANALYZED,
            entity_type="analysis",
            entity_id=analysis_id,
            correlation_id=correlation_id,
            description=f"Receipt parsed: {merchant} - {total} ({confidence}%)",
            details={
                "merchant": merchant,
                "total": total,
                "confidence": confidence,
                "item_count": item_count,
            },
        )

    @staticmethod
    def categories_suggested(
        analysis_id: UUID,
        categories: list[str],
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORIES_SUGGESTED,
            entity_type="analysis",
            entity_id=analysis_id,
            correlation_id=correlation_id,
            description=f"Categories suggested: {', '.join(categories)}",
            details={
                "categories": categories,
            },
        )

    @staticmethod
    def intent_detected(
        intent: str,
        confidence: float,
        params: Optional[dict],
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INTENT_DETECTED,
            entity_type="command",
            correlation_id=correlation_id,
            description=f"Command classified as {intent}",
            details={
                "intent": intent,
                "confidence": confidence,
                "params": params or {},
            },
            is_user_action=True,
        )

    @staticmethod
    def intent_unknown(
        input_length: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INTENT_UNKNOWN,
            severity=AuditSeverity.WARNING,
            entity_type="command",
            correlation_id=correlation_id,
            description="Command did not match any known intent",
            details={
                "input_length": input_length,
            },
            is_user_action=True,
        )

    @staticmethod
    def analysis_saved(
        analysis_id: UUID,
        scope: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ANALYSIS_SAVED,
            entity_type="analysis",
            entity_id=analysis_id,
            correlation_id=correlation_id,
            description=f"Receipt analysis saved to {scope} scope",
            details={
                "scope": scope,
            },
            is_user_action=True,
        )

    @staticmethod
    def transaction_saved(
        transaction_id: UUID,
        category: str,
        amount: str,
        scope: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_SAVED,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"Transaction saved: {category} - {amount}",
            details={
                "category": category,
                "amount": amount,
                "scope": scope,
            },
            is_user_action=True,
        )

    @staticmethod
    def guest_data_migrated(
        migrated_count: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GUEST_DATA_MIGRATED,
            entity_type="analysis",
            correlation_id=correlation_id,
            description=f"Migrated {migrated_count} guest receipt analyses",
            details={
                "migrated_count": migrated_count,
            },
        )

    @staticmethod
    def save_failed(
        entity_type: str,
        error_message: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type=entity_type,
            correlation_id=correlation_id,
            description=f"Failed to save {entity_type}",
            error_message=error_message,
        )

    @staticmethod
    def external_service_error(
        service: str,
        error_message: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"External service error: {service}",
            error_message=error_message,
            details={
                "service": service,
            },
            correlation_id=correlation_id,
        )
