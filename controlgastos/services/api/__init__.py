"""Finance API services package."""

from controlgastos.services.api.client import FinanceApiClient, extract_error_message

__all__ = [
    "FinanceApiClient",
    "extract_error_message",
]
