"""
In-Memory Storage Implementation

Keeps records in per-scope dictionaries. Used for tests and local runs
where no hosted backend is configured.

Records are copied on the way in and out so callers can never mutate
stored state through a reference they hold.
"""

import asyncio
from typing import Optional
from uuid import UUID

from smartspend.models.audit import AuditEvent
from smartspend.models.receipt import ReceiptAnalysis
from smartspend.models.transaction import StorageScope, Transaction, TransactionType
from smartspend.services.storage.interface import (
    AuditStorageInterface,
    ReceiptStorageInterface,
    StorageError,
)


class InMemoryReceiptStorage(ReceiptStorageInterface):
    """Receipt and transaction storage held in process memory."""
    
    def __init__(self):
        self._analyses: dict[StorageScope, dict[UUID, ReceiptAnalysis]] = {
            scope: {} for scope in StorageScope
        }
        self._transactions: dict[StorageScope, dict[UUID, Transaction]] = {
            scope: {} for scope in StorageScope
        }
        self._lock = asyncio.Lock()
    
    async def save_analysis(
        self,
        analysis: ReceiptAnalysis,
        scope: StorageScope,
    ) -> bool:
        async with self._lock:
            self._analyses[scope][analysis.id] = analysis.model_copy(deep=True)
        return True
    
    async def get_analysis(
        self,
        analysis_id: UUID,
        scope: StorageScope,
    ) -> Optional[ReceiptAnalysis]:
        stored = self._analyses[scope].get(analysis_id)
        return stored.model_copy(deep=True) if stored else None
    
    async def list_analyses(
        self,
        scope: StorageScope,
        reports_only: bool = False,
    ) -> list[ReceiptAnalysis]:
        return [
            analysis.model_copy(deep=True)
            for analysis in self._analyses[scope].values()
            if analysis.include_in_reports or not reports_only
        ]
    
    async def add_transaction(
        self,
        transaction: Transaction,
        scope: StorageScope,
    ) -> bool:
        async with self._lock:
            if transaction.id in self._transactions[scope]:
                raise StorageError(f"Transaction {transaction.id} already exists")
            self._transactions[scope][transaction.id] = transaction.model_copy(deep=True)
        return True
    
    async def list_transactions(
        self,
        scope: StorageScope,
        transaction_type: Optional[TransactionType] = None,
        category: Optional[str] = None,
    ) -> list[Transaction]:
        results = []
        for transaction in self._transactions[scope].values():
            if transaction_type and transaction.type != transaction_type:
                continue
            if category and transaction.category.lower() != category.lower():
                continue
            results.append(transaction.model_copy(deep=True))
        return results
    
    async def migrate_guest_data(self) -> int:
        async with self._lock:
            guest = self._analyses[StorageScope.GUEST]
            user = self._analyses[StorageScope.USER]
            missing = [analysis_id for analysis_id in guest if analysis_id not in user]
            for analysis_id in missing:
                user[analysis_id] = guest[analysis_id].model_copy(deep=True)
        return len(missing)


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only audit log held in process memory."""
    
    def __init__(self):
        self._events: list[AuditEvent] = []
    
    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True
    
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        return sorted(
            (event for event in self._events if event.correlation_id == correlation_id),
            key=lambda event: event.timestamp,
        )
