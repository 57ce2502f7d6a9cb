"""Services package."""

from smartspend.services.ocr import (
    InvalidImageError,
    OCRError,
    OCRServiceInterface,
    OCRUnavailableError,
    TesseractOCRService,
)
from smartspend.services.storage import (
    AuditStorageInterface,
    InMemoryAuditStorage,
    InMemoryReceiptStorage,
    NotFoundError,
    ReceiptStorageInterface,
    StorageError,
)

__all__ = [
    # OCR services
    "InvalidImageError",
    "OCRError",
    "OCRServiceInterface",
    "OCRUnavailableError",
    "TesseractOCRService",
    # Storage services
    "AuditStorageInterface",
    "InMemoryAuditStorage",
    "InMemoryReceiptStorage",
    "NotFoundError",
    "ReceiptStorageInterface",
    "StorageError",
]
