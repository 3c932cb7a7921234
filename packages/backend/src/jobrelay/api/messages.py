"""Chat message API routes.

Learn: POST /send-message is the HTTP twin of the send-message WebSocket
event. GET /messages is how a client catches up after reconnecting:
nothing is pushed on reconnect, history is pulled.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from jobrelay.config import settings
from jobrelay.dependencies import get_router
from jobrelay.schemas.message import ChatMessageRead, MessageSent, SendMessage
from jobrelay.services.notification_router import NotificationRouter
from jobrelay.services.persistence import PersistenceError

router = APIRouter()


@router.post("/send-message", response_model=MessageSent)
async def send_message(
    body: SendMessage,
    notifications: NotificationRouter = Depends(get_router),
):
    """Store a direct message and push it to the receiver if online."""
    try:
        sent = await notifications.send_message(
            body.sender_identity, body.receiver_identity, body.text
        )
    except PersistenceError:
        raise HTTPException(status_code=500, detail="Failed to send message.")
    return MessageSent(delivered=sent.delivered, message=sent.message)


@router.get("/messages", response_model=list[ChatMessageRead])
async def list_messages(
    user_a: str = Query(..., alias="userA", min_length=1),
    user_b: str = Query(..., alias="userB", min_length=1),
    before: Optional[datetime] = Query(None, description="Only messages older than this"),
    limit: int = Query(settings.message_history_limit, ge=1, le=200),
    notifications: NotificationRouter = Depends(get_router),
):
    """Conversation between two users, newest first."""
    try:
        return await notifications.conversation(
            user_a, user_b, before=before, limit=limit
        )
    except PersistenceError:
        raise HTTPException(status_code=500, detail="Failed to load messages.")
