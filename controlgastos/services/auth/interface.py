"""
Abstract Auth Provider Interface

DESIGN DECISION: The session layer talks to an abstract auth provider.
This allows us to:
1. Use Supabase today without the rest of the client knowing
2. Use an in-memory provider for testing
3. Swap the identity backend later

Provider internals (password rules, email verification, token refresh)
belong to the provider, not to this client.
"""

from abc import ABC, abstractmethod

from controlgastos.models.finance import AuthGrant


class AuthProviderInterface(ABC):
    """Operations the client needs from an identity provider."""

    @abstractmethod
    async def sign_up(self, email: str, password: str, full_name: str) -> None:
        """
        Register a new account.

        Args:
            email: Account email
            password: Chosen password
            full_name: Stored as user metadata and shown in the navbar

        Raises:
            AuthError: If the provider rejects the registration
            TransportError: If the provider cannot be reached
        """
        pass

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> AuthGrant:
        """
        Exchange credentials for a bearer token.

        Returns:
            The access token and the identity it belongs to

        Raises:
            AuthError: If the credentials are rejected
            TransportError: If the provider cannot be reached
        """
        pass

    @abstractmethod
    async def sign_out(self, access_token: str) -> None:
        """
        Revoke a token on the provider side.

        Raises:
            AuthError: If the provider rejects the request
            TransportError: If the provider cannot be reached
        """
        pass
