# tsoam/models/messages.py
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from tsoam.db import Base, JSONType


class Message(Base):
    __tablename__ = "messages"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    sender_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    sender_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    recipient_ids: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    recipient_type: Mapped[str] = mapped_column(String(20), nullable=False, default="individual")

    subject: Mapped[str] = mapped_column(String(300), nullable=False)
    content: Mapped[str] = mapped_column(Text(), nullable=False)
    # Internal | SMS | Email | Announcement
    message_type: Mapped[str] = mapped_column(String(14), nullable=False, default="Internal")
    status: Mapped[str] = mapped_column(String(10), nullable=False, default="sent")

    parent_message_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("messages.id", ondelete="SET NULL"), nullable=True, index=True
    )
    thread_root_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True, index=True)
    thread_depth: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_reply: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    read_by: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    deleted_by: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    read_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
