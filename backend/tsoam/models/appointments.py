# tsoam/models/appointments.py
from __future__ import annotations

import uuid
from datetime import date, datetime, time
from typing import Optional

from sqlalchemy import Boolean, Date, DateTime, String, Text, Time, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from tsoam.db import Base, JSONType


class Appointment(Base):
    __tablename__ = "appointments"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text(), nullable=True)
    appointment_type: Mapped[str] = mapped_column(String(40), nullable=False, default="Counseling")

    appointed_with: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    assigned_to: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True, index=True)
    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True, index=True)
    # list of user ids (strings)
    attendees: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)

    appointment_date: Mapped[date] = mapped_column(Date(), nullable=False, index=True)
    start_time: Mapped[time] = mapped_column(Time(), nullable=False)
    end_time: Mapped[time] = mapped_column(Time(), nullable=False)
    location: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    # Scheduled | Confirmed | Completed | Cancelled
    status: Mapped[str] = mapped_column(String(12), nullable=False, default="Scheduled")
    notes: Mapped[Optional[str]] = mapped_column(Text(), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )
