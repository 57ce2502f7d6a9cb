"""
Configuration Management for SmartSpend

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The keyword and pattern tables of the understanding core are NOT settings -
they are fixed code constants so parsing stays deterministic.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_FALLBACK_RECEIPT_TEXT = (
    "Starbucks Coffee\n"
    "Date: 12/03/2025\n"
    "Café Latte - 150\n"
    "Croissant - 80\n"
    "Tax - 23\n"
    "Total: 253"
)


class OCRSettings(BaseSettings):
    """Tesseract OCR collaborator configuration."""
    
    model_config = SettingsConfigDict(
        env_prefix="OCR_",
        extra="ignore"
    )
    
    tesseract_cmd: Optional[str] = Field(
        default=None,
        description="Path to the tesseract binary (uses PATH if unset)"
    )
    language: str = Field(
        default="eng",
        description="Tesseract language code"
    )
    min_confidence: float = Field(
        default=30.0,
        ge=0.0,
        le=100.0,
        description="Mean word confidence an OCR pass must exceed to count as success"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.
    
    Loads configuration from environment variables and .env file.
    """
    
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )
    
    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        description="Minimum level for local structured logs"
    )
    
    # OCR fallback
    fallback_receipt_text: str = Field(
        default=DEFAULT_FALLBACK_RECEIPT_TEXT,
        description="Receipt text analyzed when OCR fails or is unavailable"
    )
    fallback_ocr_confidence: float = Field(
        default=60.0,
        ge=0.0,
        le=100.0,
        description="OCR confidence reported for the fallback text"
    )
    
    @field_validator('log_level')
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Accept any casing, store upper-case."""
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


class Settings(BaseSettings):
    """
    Root settings container.
    
    Aggregates all sub-settings for easy access.
    """
    
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )
    
    @property
    def ocr(self) -> OCRSettings:
        return OCRSettings()
    
    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).
    
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.
    
    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}
    
    settings = get_settings()
    
    try:
        _ = settings.ocr
        results["ocr"] = True
    except Exception as e:
        results["ocr"] = False
        results["ocr_error"] = str(e)
    
    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)
    
    return results
