# tsoam/schemas/messages.py
from __future__ import annotations

import uuid
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

MessageType = Literal["Internal", "SMS", "Email", "Announcement"]


class MessageSend(BaseModel):
    recipient_ids: List[str] = Field(..., min_length=1)
    recipient_type: str = "individual"
    subject: str = Field(..., min_length=1, max_length=300)
    content: str = Field(..., min_length=1)
    message_type: MessageType = "Internal"
    parent_message_id: Optional[uuid.UUID] = None


class ReplyIn(BaseModel):
    original_message_id: uuid.UUID
    content: str = Field(..., min_length=1)
    reply_to_all: bool = False


class DeleteIn(BaseModel):
    message_ids: List[uuid.UUID] = Field(..., min_length=1)


class MessageOut(BaseModel):
    id: uuid.UUID
    sender_id: str
    sender_name: Optional[str] = None
    recipient_ids: List[str]
    recipient_type: str
    subject: str
    content: str
    message_type: MessageType
    status: str
    parent_message_id: Optional[uuid.UUID] = None
    thread_root_id: Optional[uuid.UUID] = None
    thread_depth: int
    is_reply: bool
    read_by: List[str]
    created_at: datetime
    read_at: Optional[datetime] = None
    reply_count: int = 0

    model_config = ConfigDict(from_attributes=True)


class MessageStats(BaseModel):
    sent: int
    received: int
    unread: int
    threads: int
