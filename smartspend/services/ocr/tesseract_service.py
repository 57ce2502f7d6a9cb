"""
OCR Service using Tesseract

DESIGN DECISION: We use Tesseract (via pytesseract) because:
1. It is free and runs locally - receipts never leave the machine
2. It returns word-level confidences we can average
3. Raw text is all the receipt parser needs

The engine call is blocking, so it runs in a worker thread. Transient
engine failures are retried; a missing binary or an unreadable image is
not.
"""

import asyncio
from io import BytesIO
from typing import Optional

import pytesseract
from PIL import Image, UnidentifiedImageError
from tenacity import (
    retry,
    retry_if_exception_type,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from smartspend.config import OCRSettings, get_settings
from smartspend.models.receipt import OCRResult
from smartspend.services.ocr.interface import (
    InvalidImageError,
    OCRError,
    OCRServiceInterface,
    OCRUnavailableError,
)


class TesseractOCRService(OCRServiceInterface):
    """
    Tesseract-backed OCR.
    
    A pass counts as successful when it produced text AND the mean word
    confidence exceeds `OCRSettings.min_confidence`.
    """
    
    def __init__(self, settings: Optional[OCRSettings] = None):
        self._settings = settings or get_settings().ocr
        if self._settings.tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = self._settings.tesseract_cmd
    
    @staticmethod
    def _mean_confidence(data: dict) -> Optional[float]:
        """Average word confidence; Tesseract reports -1 for non-words."""
        confidences = []
        for raw in data.get("conf", []):
            try:
                value = float(raw)
            except (TypeError, ValueError):
                continue
            if value >= 0:
                confidences.append(value)
        if not confidences:
            return None
        return sum(confidences) / len(confidences)
    
    def _load_image(self, image_bytes: bytes) -> Image.Image:
        try:
            image = Image.open(BytesIO(image_bytes))
            image.load()
        except (UnidentifiedImageError, OSError) as e:
            raise InvalidImageError(f"Not a readable image: {e}") from e
        return image
    
    def _recognize(self, image_bytes: bytes) -> OCRResult:
        image = self._load_image(image_bytes)
        
        try:
            text = pytesseract.image_to_string(image, lang=self._settings.language)
            data = pytesseract.image_to_data(
                image,
                lang=self._settings.language,
                output_type=pytesseract.Output.DICT,
            )
        except pytesseract.TesseractNotFoundError as e:
            raise OCRUnavailableError("Tesseract binary not found") from e
        except pytesseract.TesseractError as e:
            raise OCRError(f"Tesseract failed: {e}") from e
        
        confidence = self._mean_confidence(data)
        
        if not text.strip():
            return OCRResult(text="", confidence=confidence, success=False,
                             error="No text recognized")
        
        if confidence is None or confidence <= self._settings.min_confidence:
            return OCRResult(text=text, confidence=confidence, success=False,
                             error="OCR confidence too low")
        
        return OCRResult(text=text, confidence=confidence, success=True)
    
    @retry(
        retry=(
            retry_if_exception_type(OCRError)
            & retry_if_not_exception_type((OCRUnavailableError, InvalidImageError))
        ),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def extract_text(self, image_bytes: bytes) -> OCRResult:
        """
        Recognize receipt text.
        
        Raises:
            InvalidImageError: If the bytes are not an image
            OCRUnavailableError: If Tesseract is not installed
            OCRError: If Tesseract keeps failing after retries
        """
        return await asyncio.to_thread(self._recognize, image_bytes)
