"""
Account Controllers

Sign-up and sign-in forms. Neither needs a session, so they sit outside
the ViewController hierarchy but follow the same action-state rules.
"""

from typing import Optional

import structlog

from controlgastos.audit import AuditLogger
from controlgastos.controllers.base import ActionState
from controlgastos.errors import ApiError, FormValidationError, RemoteRejectedError
from controlgastos.models.forms import RegistrationDraft, is_valid_email
from controlgastos.session import Session, SessionProvider


logger = structlog.get_logger(__name__)

REGISTRATION_SUCCESS_MESSAGE = (
    "Account created! Check your email to confirm it, or sign in."
)


class RegistrationController:
    """Creates an account with the auth provider."""

    def __init__(
        self,
        provider: SessionProvider,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._provider = provider
        self._audit_logger = audit_logger
        self.draft = RegistrationDraft()
        self.action = ActionState()
        self.completed = False
        self.message: Optional[str] = None

    async def register(self) -> bool:
        if self.action.in_flight:
            return False

        try:
            self.draft.validate_fields()
        except FormValidationError as e:
            self.action.error = e.message
            return False

        email = self.draft.email.strip()
        self.action.in_flight = True
        self.action.error = None
        try:
            await self._provider.auth.sign_up(
                email,
                self.draft.password,
                self.draft.full_name.strip(),
            )
        except RemoteRejectedError as e:
            self.action.error = e.message
            return False
        except ApiError as e:
            logger.error("sign_up_failed", error=str(e))
            self.action.error = e.user_message
            return False
        finally:
            self.action.in_flight = False

        self.completed = True
        self.message = REGISTRATION_SUCCESS_MESSAGE
        self.draft.reset()
        if self._audit_logger:
            await self._audit_logger.log_sign_up_completed(email=email)
        return True


class SignInController:
    """Email/password sign-in through the SessionProvider."""

    def __init__(self, provider: SessionProvider):
        self._provider = provider
        self.email = ""
        self.password = ""
        self.action = ActionState()

    async def sign_in(self) -> Optional[Session]:
        if self.action.in_flight:
            return None

        if not is_valid_email(self.email):
            self.action.error = "Please enter a valid email"
            return None
        if not self.password:
            self.action.error = "Please enter your password"
            return None

        self.action.in_flight = True
        self.action.error = None
        try:
            session = await self._provider.sign_in(self.email.strip(), self.password)
        except RemoteRejectedError as e:
            self.action.error = e.message
            return None
        except ApiError as e:
            logger.error("sign_in_failed", error=str(e))
            self.action.error = e.user_message
            return None
        finally:
            self.action.in_flight = False

        self.password = ""
        return session

    async def sign_out(self) -> None:
        await self._provider.sign_out()
        self.action.clear()
