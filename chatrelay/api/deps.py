"""Shared FastAPI dependencies."""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from chatrelay.db.connection import get_db
from chatrelay.errors import AuthenticationError, MissingUserIdError
from chatrelay.services.account_service import SessionUser
from chatrelay.services.conversation_store import ConversationStore
from chatrelay.services.credential_store import CredentialStore
from chatrelay.services.dispatch_engine import DispatchEngine
from chatrelay.services.session_tokens import user_from_payload


def get_current_user(request: Request) -> SessionUser:
    """Identity validated by the session gate middleware.

    Raises:
        AuthenticationError: No session on the request (gate bypassed).
        MissingUserIdError: Session is valid but names no user.
    """
    payload = getattr(request.state, "session", None)
    if payload is None:
        raise AuthenticationError("Unauthorized")
    user = user_from_payload(payload)
    if user is None:
        raise MissingUserIdError()
    return user


def get_credential_store(db: Session = Depends(get_db)) -> CredentialStore:
    return CredentialStore(db)


def get_conversation_store(db: Session = Depends(get_db)) -> ConversationStore:
    return ConversationStore(db)


def get_dispatch_engine(db: Session = Depends(get_db)) -> DispatchEngine:
    return DispatchEngine(db)
