# tsoam/models/payroll_approval.py
"""
Payroll approval ORM models.

Tables:
- payroll_batches            (one row per batch submitted by HR to Finance)
- payroll_batch_items        (one line per employee inside a batch)
- payroll_approval_actions   (audit trail of approve / reject / approve_partial)
- finance_notifications      (Finance inbox; newest 100 retained)
- hr_finance_notices         (Finance -> HR responses)
- disbursement_reports
"""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, Numeric, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tsoam.db import Base, JSONType


class PayrollBatch(Base):
    __tablename__ = "payroll_batches"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    batch_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True, index=True)
    period: Mapped[str] = mapped_column(String(40), nullable=False)

    total_employees: Mapped[int] = mapped_column(Integer, nullable=False)
    total_gross_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    total_net_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)

    # Pending | Partially_Approved | Fully_Approved | Rejected
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="Pending", index=True)
    submitted_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    submitted_by: Mapped[str] = mapped_column(String(200), nullable=False)

    summary: Mapped[dict] = mapped_column(JSONType, nullable=False, default=dict)

    approval_deadline: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    priority: Mapped[str] = mapped_column(String(10), nullable=False, default="medium")
    department: Mapped[str] = mapped_column(String(60), nullable=False, default="HR")
    fiscal_year: Mapped[int] = mapped_column(Integer, nullable=False)
    quarter: Mapped[int] = mapped_column(Integer, nullable=False)

    finalized_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    items: Mapped[list["PayrollBatchItem"]] = relationship(
        back_populates="batch", cascade="all, delete-orphan", order_by="PayrollBatchItem.id"
    )
    actions: Mapped[list["ApprovalAction"]] = relationship(
        back_populates="batch", cascade="all, delete-orphan", order_by="ApprovalAction.id"
    )

    def __repr__(self) -> str:
        return f"<PayrollBatch {self.batch_id} {self.status}>"


class PayrollBatchItem(Base):
    __tablename__ = "payroll_batch_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    batch_pk: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("payroll_batches.id", ondelete="CASCADE"), nullable=False, index=True
    )
    employee_id: Mapped[str] = mapped_column(String(32), nullable=False)
    employee_name: Mapped[str] = mapped_column(String(200), nullable=False)
    gross_salary: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    net_salary: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    # {paye, nssf, sha, housing_levy, loan, insurance, total}
    deductions: Mapped[dict] = mapped_column(JSONType, nullable=False, default=dict)

    # Pending | Approved | Rejected
    status: Mapped[str] = mapped_column(String(10), nullable=False, default="Pending")
    approved_by: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    approved_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    rejected_by: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    rejected_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    rejection_reason: Mapped[Optional[str]] = mapped_column(Text(), nullable=True)
    payment_reference: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)

    batch: Mapped[PayrollBatch] = relationship(back_populates="items")


class ApprovalAction(Base):
    __tablename__ = "payroll_approval_actions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    batch_pk: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("payroll_batches.id", ondelete="CASCADE"), nullable=False, index=True
    )
    action_type: Mapped[str] = mapped_column(String(20), nullable=False)  # approve | reject | approve_partial
    performed_by: Mapped[str] = mapped_column(String(200), nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    reason: Mapped[Optional[str]] = mapped_column(Text(), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text(), nullable=True)
    employee_ids: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)

    batch: Mapped[PayrollBatch] = relationship(back_populates="actions")


class FinanceNotification(Base):
    __tablename__ = "finance_notifications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # payroll_approval | payroll_approved | payroll_rejected | payment_disbursed
    type: Mapped[str] = mapped_column(String(30), nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    message: Mapped[str] = mapped_column(Text(), nullable=False)
    batch_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)
    employee_id: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 2), nullable=True)
    priority: Mapped[str] = mapped_column(String(10), nullable=False, default="medium")
    read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    meta: Mapped[dict] = mapped_column(JSONType, nullable=False, default=dict)


class HRFinanceNotice(Base):
    __tablename__ = "hr_finance_notices"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    event_type: Mapped[str] = mapped_column(String(30), nullable=False, index=True)
    batch_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    data: Mapped[dict] = mapped_column(JSONType, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class DisbursementReport(Base):
    __tablename__ = "disbursement_reports"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    report_id: Mapped[str] = mapped_column(String(120), nullable=False, unique=True)
    batch_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    report_type: Mapped[str] = mapped_column(String(30), nullable=False)  # approved_disbursement | rejected_disbursement
    period: Mapped[str] = mapped_column(String(40), nullable=False)
    total_employees: Mapped[int] = mapped_column(Integer, nullable=False)
    total_gross_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    total_deductions: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    total_net_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    disbursement_method: Mapped[str] = mapped_column(String(30), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    approved_by: Mapped[str] = mapped_column(String(200), nullable=False)
    employees: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    notes: Mapped[Optional[str]] = mapped_column(Text(), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
