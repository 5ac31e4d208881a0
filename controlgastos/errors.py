"""
Client Error Taxonomy

Every failure the client can hit falls into one of four buckets:

NOT READY      - no session (yet, or any more). Benign; the action is skipped.
VALIDATION     - local input is missing or malformed. No request is sent.
REMOTE REJECTED - the API answered non-2xx. Its message is shown verbatim.
TRANSPORT      - the request never produced a usable answer.

None of these are fatal. Each is scoped to the view or action that
triggered it and can be retried.
"""

from typing import Optional


GENERIC_TRANSPORT_MESSAGE = (
    "Could not reach the server. Check your connection and try again."
)


class FinanceClientError(Exception):
    """Base exception for the client data layer."""
    pass


class NotReadyError(FinanceClientError):
    """There is no session to act with."""
    pass


class SessionExpiredError(NotReadyError):
    """The session was invalidated while a request was in flight."""
    pass


class FormValidationError(FinanceClientError):
    """Local input failed validation before any request was made."""

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(message)


class ApiError(FinanceClientError):
    """Base exception for failed API calls."""

    @property
    def user_message(self) -> str:
        return GENERIC_TRANSPORT_MESSAGE


class RemoteRejectedError(ApiError):
    """The API answered with a non-2xx status."""

    def __init__(self, status_code: int, message: str, path: Optional[str] = None):
        self.status_code = status_code
        self.message = message
        self.path = path
        super().__init__(message)

    @property
    def user_message(self) -> str:
        return self.message


class TransportError(ApiError):
    """Network failure, undecodable body, or unexpected response shape."""
    pass


class AuthError(RemoteRejectedError):
    """The auth provider rejected a sign-up, sign-in or sign-out."""
    pass
