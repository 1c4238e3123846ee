# tsoam/models/events.py
from __future__ import annotations

import uuid
from datetime import date, datetime, time
from typing import Optional

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Integer, String, Text, Time, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tsoam.db import Base


class ChurchEvent(Base):
    __tablename__ = "events"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    event_id: Mapped[str] = mapped_column(String(32), nullable=False, unique=True)  # EVT-001

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text(), nullable=True)
    event_type: Mapped[str] = mapped_column(String(40), nullable=False, default="Service")

    start_date: Mapped[date] = mapped_column(Date(), nullable=False, index=True)
    end_date: Mapped[Optional[date]] = mapped_column(Date(), nullable=True)
    start_time: Mapped[Optional[time]] = mapped_column(Time(), nullable=True)
    end_time: Mapped[Optional[time]] = mapped_column(Time(), nullable=True)
    location: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    organizer: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    registration_required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    registration_deadline: Mapped[Optional[date]] = mapped_column(Date(), nullable=True)
    max_attendees: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Scheduled | Ongoing | Completed | Cancelled
    status: Mapped[str] = mapped_column(String(12), nullable=False, default="Scheduled")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_by: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    registrations: Mapped[list["EventRegistration"]] = relationship(
        back_populates="event", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<ChurchEvent {self.event_id} {self.title!r} {self.start_date}>"


class EventRegistration(Base):
    __tablename__ = "event_registrations"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    event_pk: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    special_requirements: Mapped[Optional[str]] = mapped_column(Text(), nullable=True)
    status: Mapped[str] = mapped_column(String(12), nullable=False, default="Confirmed")
    registration_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    event: Mapped[ChurchEvent] = relationship(back_populates="registrations")
