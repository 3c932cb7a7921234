"""Pydantic schemas for direct chat messages."""

from datetime import datetime

from pydantic import ConfigDict, Field
from pydantic.alias_generators import to_camel

from jobrelay.db.models import IDENTITY_MAX_LENGTH
from jobrelay.schemas.job import CamelModel


class SendMessage(CamelModel):
    """Inbound send-message event / POST /send-message body."""

    sender_identity: str = Field(..., min_length=1, max_length=IDENTITY_MAX_LENGTH)
    receiver_identity: str = Field(..., min_length=1, max_length=IDENTITY_MAX_LENGTH)
    text: str = Field(..., min_length=1)


class ChatMessageRead(CamelModel):
    """A stored message, exactly as delivered in message-received."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )

    sender_identity: str
    receiver_identity: str
    text: str
    room_id: str
    timestamp: datetime


class MessageSent(CamelModel):
    success: bool = True
    delivered: bool
    message: ChatMessageRead
