"""Configuration package."""

from controlgastos.config.settings import (
    ApiSettings,
    AppSettings,
    AuthSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "ApiSettings",
    "AppSettings",
    "AuthSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
