"""
Data Models Package

This package contains all Pydantic models used in SmartSpend.
All data flowing through the system must conform to these schemas.
"""

from smartspend.models.receipt import (
    OCRResult,
    ParsedReceipt,
    ReceiptAnalysis,
    ReceiptLineItem,
)
from smartspend.models.intent import (
    AnyIntentParams,
    GoalParams,
    GoalStatusParams,
    Intent,
    IntentParams,
    IntentResult,
    ReportParams,
    SpendingQueryParams,
    TransactionParams,
)
from smartspend.models.transaction import (
    StorageScope,
    Transaction,
    TransactionType,
)
from smartspend.models.budget import (
    Budget,
    BudgetStatus,
    MonthlyTotals,
)
from smartspend.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Receipt models
    "OCRResult",
    "ParsedReceipt",
    "ReceiptAnalysis",
    "ReceiptLineItem",
    # Intent models
    "AnyIntentParams",
    "GoalParams",
    "GoalStatusParams",
    "Intent",
    "IntentParams",
    "IntentResult",
    "ReportParams",
    "SpendingQueryParams",
    "TransactionParams",
    # Transaction models
    "StorageScope",
    "Transaction",
    "TransactionType",
    # Budget models
    "Budget",
    "BudgetStatus",
    "MonthlyTotals",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
