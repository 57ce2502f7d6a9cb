"""
Storage Services Package

Provides abstract interfaces and an in-memory implementation for the
persistence collaborator.
"""

from smartspend.services.storage.interface import (
    AuditStorageInterface,
    NotFoundError,
    ReceiptStorageInterface,
    StorageError,
)
from smartspend.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryReceiptStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "ReceiptStorageInterface",
    # Exceptions
    "NotFoundError",
    "StorageError",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryReceiptStorage",
]
