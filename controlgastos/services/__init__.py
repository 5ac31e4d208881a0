"""Services package."""

from controlgastos.services.auth import (
    AuthProviderInterface,
    SupabaseAuthProvider,
)
from controlgastos.services.api import FinanceApiClient, extract_error_message

__all__ = [
    # Auth services
    "AuthProviderInterface",
    "SupabaseAuthProvider",
    # API services
    "FinanceApiClient",
    "extract_error_message",
]
