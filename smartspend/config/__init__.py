"""Configuration package."""

from smartspend.config.settings import (
    AppSettings,
    OCRSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "OCRSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
