# tsoam/models/members.py
from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Integer, Numeric, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tsoam.db import Base


class Member(Base):
    __tablename__ = "members"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    member_id: Mapped[str] = mapped_column(String(32), nullable=False, unique=True, index=True)  # TSOAM-MEM-001
    tithe_number: Mapped[Optional[str]] = mapped_column(String(32), nullable=True, unique=True)  # TN-001

    full_name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    date_of_birth: Mapped[Optional[date]] = mapped_column(Date(), nullable=True)
    gender: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    marital_status: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    address: Mapped[Optional[str]] = mapped_column(Text(), nullable=True)
    emergency_contact_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    emergency_contact_phone: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)

    homecell_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("homecells.id", ondelete="SET NULL"), nullable=True, index=True
    )

    membership_status: Mapped[str] = mapped_column(String(20), nullable=False, default="Active")
    membership_date: Mapped[Optional[date]] = mapped_column(Date(), nullable=True)
    baptized: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    baptism_date: Mapped[Optional[date]] = mapped_column(Date(), nullable=True)
    bible_study_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    employment_status: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    homecell: Mapped[Optional["HomeCell"]] = relationship("HomeCell", back_populates="members")  # noqa: F821
    tithes: Mapped[list["Tithe"]] = relationship(back_populates="member")

    def __repr__(self) -> str:
        return f"<Member {self.member_id} {self.full_name!r}>"


class Tithe(Base):
    __tablename__ = "tithes"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    member_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("members.id", ondelete="SET NULL"), nullable=True, index=True
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="KES")
    payment_method: Mapped[str] = mapped_column(String(30), nullable=False, default="Cash")
    payment_date: Mapped[date] = mapped_column(Date(), nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    notes: Mapped[Optional[str]] = mapped_column(Text(), nullable=True)
    recorded_by: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())

    member: Mapped[Optional[Member]] = relationship(back_populates="tithes")
