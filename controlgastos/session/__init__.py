"""Session package."""

from controlgastos.session.session import Session
from controlgastos.session.provider import SessionListener, SessionProvider

__all__ = ["Session", "SessionListener", "SessionProvider"]
