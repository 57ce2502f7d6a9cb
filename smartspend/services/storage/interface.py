"""
Abstract Storage Interface

DESIGN DECISION: Persistence is a collaborator, not part of the core.
The interface lets us:
1. Swap the in-memory store for a hosted database later
2. Use in-memory storage for testing
3. Keep receipt/command flows decoupled from the storage backend

Every record is keyed by a StorageScope (guest vs signed-in user).
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from smartspend.models.audit import AuditEvent
from smartspend.models.receipt import ReceiptAnalysis
from smartspend.models.transaction import StorageScope, Transaction, TransactionType


class ReceiptStorageInterface(ABC):
    """
    Abstract interface for receipt analyses and transactions.
    """
    
    @abstractmethod
    async def save_analysis(
        self,
        analysis: ReceiptAnalysis,
        scope: StorageScope,
    ) -> bool:
        """
        Save a receipt analysis.
        
        Returns:
            True if saved successfully
            
        Raises:
            StorageError: If save fails
        """
        pass
    
    @abstractmethod
    async def get_analysis(
        self,
        analysis_id: UUID,
        scope: StorageScope,
    ) -> Optional[ReceiptAnalysis]:
        """Retrieve an analysis by ID, or None if absent in that scope."""
        pass
    
    @abstractmethod
    async def list_analyses(
        self,
        scope: StorageScope,
        reports_only: bool = False,
    ) -> list[ReceiptAnalysis]:
        """
        List analyses in a scope, oldest first.
        
        Args:
            scope: Guest or user scope
            reports_only: Only analyses flagged include_in_reports
        """
        pass
    
    @abstractmethod
    async def add_transaction(
        self,
        transaction: Transaction,
        scope: StorageScope,
    ) -> bool:
        """
        Save a transaction.
        
        Raises:
            StorageError: If save fails
        """
        pass
    
    @abstractmethod
    async def list_transactions(
        self,
        scope: StorageScope,
        transaction_type: Optional[TransactionType] = None,
        category: Optional[str] = None,
    ) -> list[Transaction]:
        """List transactions in a scope with optional filters."""
        pass
    
    @abstractmethod
    async def migrate_guest_data(self) -> int:
        """
        Copy guest receipt analyses into the user scope (called on sign-up).
        
        Returns:
            Number of analyses copied
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.
    
    Audit logs are append-only - we never delete or modify them.
    """
    
    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.
        
        Returns:
            True if logged successfully
        """
        pass
    
    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """All events of one flow, in chronological order."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass
