# tsoam/models/leave.py
from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tsoam.db import Base, JSONType


class LeaveType(Base):
    __tablename__ = "leave_types"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(8), nullable=False, unique=True)  # AL, SL, ML, ...
    name: Mapped[str] = mapped_column(String(60), nullable=False)
    default_days: Mapped[int] = mapped_column(Integer, nullable=False)
    max_days_per_year: Mapped[int] = mapped_column(Integer, nullable=False)
    carry_over_allowed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    max_carry_over_days: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    requires_documentation: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_paid: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    category: Mapped[str] = mapped_column(String(12), nullable=False, default="company")
    min_tenure_months: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    gender_restriction: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class LeaveBalance(Base):
    __tablename__ = "leave_balances"
    __table_args__ = (UniqueConstraint("employee_id", "leave_type_id", "year", name="uq_leave_balance"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    employee_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True
    )
    leave_type_id: Mapped[int] = mapped_column(Integer, ForeignKey("leave_types.id"), nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    entitlement: Mapped[Decimal] = mapped_column(Numeric(6, 1), nullable=False, default=Decimal("0"))
    used: Mapped[Decimal] = mapped_column(Numeric(6, 1), nullable=False, default=Decimal("0"))
    pending: Mapped[Decimal] = mapped_column(Numeric(6, 1), nullable=False, default=Decimal("0"))
    carried_over: Mapped[Decimal] = mapped_column(Numeric(6, 1), nullable=False, default=Decimal("0"))

    leave_type: Mapped[LeaveType] = relationship()

    @property
    def available(self) -> Decimal:
        return (self.entitlement or 0) + (self.carried_over or 0) - (self.used or 0) - (self.pending or 0)


class LeaveRequest(Base):
    __tablename__ = "leave_requests"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    request_no: Mapped[str] = mapped_column(String(20), nullable=False, unique=True)  # LR-2025-0001
    employee_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True
    )
    leave_type_id: Mapped[int] = mapped_column(Integer, ForeignKey("leave_types.id"), nullable=False)

    start_date: Mapped[date] = mapped_column(Date(), nullable=False)
    end_date: Mapped[date] = mapped_column(Date(), nullable=False)
    resumption_date: Mapped[date] = mapped_column(Date(), nullable=False)
    total_days: Mapped[int] = mapped_column(Integer, nullable=False)
    working_days: Mapped[int] = mapped_column(Integer, nullable=False)

    reason: Mapped[Optional[str]] = mapped_column(Text(), nullable=True)
    # draft | submitted | approved | rejected | cancelled
    status: Mapped[str] = mapped_column(String(12), nullable=False, default="submitted", index=True)
    priority: Mapped[str] = mapped_column(String(12), nullable=False, default="normal")
    handover_notes: Mapped[Optional[str]] = mapped_column(Text(), nullable=True)
    covering_employee: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    approval_history: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    compliance_flags: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)

    submitted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    decided_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    leave_type: Mapped[LeaveType] = relationship()
    employee: Mapped["Employee"] = relationship("Employee")  # noqa: F821
