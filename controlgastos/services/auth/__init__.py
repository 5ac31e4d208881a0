"""
Auth Services Package

Provides the abstract auth provider interface and the Supabase
implementation.
"""

from controlgastos.services.auth.interface import AuthProviderInterface
from controlgastos.services.auth.supabase import SupabaseAuthProvider

__all__ = [
    "AuthProviderInterface",
    "SupabaseAuthProvider",
]
