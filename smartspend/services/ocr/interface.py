"""
OCR Collaborator Interface

OCR is a black box for SmartSpend: image bytes in, raw text plus an
optional confidence out. It may fail or be unavailable - the receipt flow
then falls back to default text so parsing always has input.
"""

from abc import ABC, abstractmethod

from smartspend.models.receipt import OCRResult


class OCRError(Exception):
    """Base exception for OCR errors."""
    pass


class OCRUnavailableError(OCRError):
    """The OCR engine is not installed or cannot be reached."""
    pass


class InvalidImageError(OCRError):
    """The uploaded bytes are not a readable image."""
    pass


class OCRServiceInterface(ABC):
    """Anything that can turn a receipt image into text."""
    
    @abstractmethod
    async def extract_text(self, image_bytes: bytes) -> OCRResult:
        """
        Recognize text in an image.
        
        Returns:
            OCRResult - `success` is False when text was produced but is
            too unreliable to use
            
        Raises:
            OCRUnavailableError: If the engine cannot run
            InvalidImageError: If the bytes are not an image
            OCRError: For any other engine failure
        """
        pass
