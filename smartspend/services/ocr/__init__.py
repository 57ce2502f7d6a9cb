"""OCR services package."""

from smartspend.services.ocr.interface import (
    InvalidImageError,
    OCRError,
    OCRServiceInterface,
    OCRUnavailableError,
)
from smartspend.services.ocr.tesseract_service import TesseractOCRService

__all__ = [
    "InvalidImageError",
    "OCRError",
    "OCRServiceInterface",
    "OCRUnavailableError",
    "TesseractOCRService",
]
