# tsoam/models/system_log.py
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Integer, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from tsoam.db import Base, JSONType


class SystemLog(Base):
    __tablename__ = "system_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    log_id: Mapped[str] = mapped_column(String(40), nullable=False, unique=True)
    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True, index=True)
    user_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    action: Mapped[str] = mapped_column(String(120), nullable=False)
    # HR | Finance | Inventory | Events | Members | Auth | System | Welfare | Messaging | HomeCells | Appointments
    module: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    entity_type: Mapped[Optional[str]] = mapped_column(String(60), nullable=True)
    entity_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    # Info | Warning | Error | Security | Audit
    severity: Mapped[str] = mapped_column(String(10), nullable=False, default="Info", index=True)
    risk_level: Mapped[str] = mapped_column(String(10), nullable=False, default="low")
    details: Mapped[dict] = mapped_column(JSONType, nullable=False, default=dict)
    ip_address: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[Optional[str]] = mapped_column(Text(), nullable=True)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), index=True
    )
