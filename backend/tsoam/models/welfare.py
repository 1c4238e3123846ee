# tsoam/models/welfare.py
from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Integer, Numeric, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tsoam.db import Base


class WelfareRequest(Base):
    __tablename__ = "welfare_requests"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    request_id: Mapped[str] = mapped_column(String(40), nullable=False, unique=True)  # WR-<ts>-<rand>

    applicant_name: Mapped[str] = mapped_column(String(200), nullable=False)
    phone_number: Mapped[str] = mapped_column(String(32), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    residence: Mapped[str] = mapped_column(String(200), nullable=False)
    member_id: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    household_size: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    assistance_type: Mapped[str] = mapped_column(String(60), nullable=False)
    amount_requested: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    reason: Mapped[Optional[str]] = mapped_column(Text(), nullable=True)
    # Low | Medium | High | Critical
    urgency_level: Mapped[str] = mapped_column(String(10), nullable=False, default="Medium")

    # Pending | Under Review | Approved | Rejected | Disbursed
    status: Mapped[str] = mapped_column(String(14), nullable=False, default="Pending", index=True)
    amount_approved: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)
    review_notes: Mapped[Optional[str]] = mapped_column(Text(), nullable=True)
    reviewed_by: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    review_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    approvals: Mapped[list["WelfareApproval"]] = relationship(
        back_populates="request", cascade="all, delete-orphan", order_by="WelfareApproval.id"
    )


class WelfareApproval(Base):
    __tablename__ = "welfare_approvals"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    request_pk: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("welfare_requests.id", ondelete="CASCADE"), nullable=False, index=True
    )
    approver: Mapped[str] = mapped_column(String(200), nullable=False)
    action: Mapped[str] = mapped_column(String(14), nullable=False)
    amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)
    comments: Mapped[Optional[str]] = mapped_column(Text(), nullable=True)
    action_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())

    request: Mapped[WelfareRequest] = relationship(back_populates="approvals")
