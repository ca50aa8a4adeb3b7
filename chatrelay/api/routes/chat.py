"""API routes for sending chat messages and reading history.

Endpoints:
    POST /chat: Send a message, get the assistant reply
    GET /messages: Up to MAX_DISPLAY_MESSAGES turns, oldest first
"""

import logging

from fastapi import APIRouter, Depends

from chatrelay.api.deps import get_conversation_store, get_current_user, get_dispatch_engine
from chatrelay.api.schemas import (
    MessagesResponse,
    SendMessageRequest,
    SendMessageResponse,
)
from chatrelay.errors import ValidationError
from chatrelay.services.account_service import SessionUser
from chatrelay.services.conversation_store import ConversationStore
from chatrelay.services.dispatch_engine import DispatchEngine

logger = logging.getLogger(__name__)

router = APIRouter(tags=["chat"])

MAX_DISPLAY_MESSAGES = 50


@router.post("/chat", response_model=SendMessageResponse)
async def send_message(
    data: SendMessageRequest,
    user: SessionUser = Depends(get_current_user),
    engine: DispatchEngine = Depends(get_dispatch_engine),
):
    """Record the message, dispatch it, and return the reply."""
    if not isinstance(data.message, str) or not data.message.strip():
        raise ValidationError("Message must be a non-empty string")

    reply = await engine.dispatch(user.id, user.sender_label, data.message)
    return SendMessageResponse(response=reply)


@router.get("/messages", response_model=MessagesResponse)
def list_messages(
    user: SessionUser = Depends(get_current_user),
    store: ConversationStore = Depends(get_conversation_store),
):
    """Return the user's most recent turns in chronological order."""
    turns = store.all_history(user.id, MAX_DISPLAY_MESSAGES)
    return MessagesResponse(messages=[t.to_dict() for t in turns])
