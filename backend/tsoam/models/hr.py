# tsoam/models/hr.py
"""
HR ORM models.

Tables:
- employees
- payroll_records        (one row per employee per pay period)
- performance_reviews
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Integer, Numeric, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tsoam.db import Base


class Employee(Base):
    __tablename__ = "employees"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    employee_id: Mapped[str] = mapped_column(String(32), unique=True, nullable=False, index=True)  # TSOAM-EMP-001

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    gender: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    date_of_birth: Mapped[Optional[date]] = mapped_column(Date(), nullable=True)

    # Statutory numbers
    national_id: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    kra_pin: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    nhif_number: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    nssf_number: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    position: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    department: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True)
    employment_type: Mapped[str] = mapped_column(String(20), nullable=False, default="Permanent")
    employment_status: Mapped[str] = mapped_column(String(20), nullable=False, default="Active")

    basic_salary: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    allowances: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))

    hire_date: Mapped[Optional[date]] = mapped_column(Date(), nullable=True)
    bank_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    bank_account: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    payroll_records: Mapped[list["PayrollRecord"]] = relationship(
        back_populates="employee", cascade="all, delete-orphan"
    )
    reviews: Mapped[list["PerformanceReview"]] = relationship(
        back_populates="employee", cascade="all, delete-orphan"
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __repr__(self) -> str:
        return f"<Employee {self.employee_id} {self.last_name}>"


class PayrollRecord(Base):
    __tablename__ = "payroll_records"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    payroll_id: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)  # PAY-001
    employee_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True
    )

    period_start: Mapped[date] = mapped_column(Date(), nullable=False)
    period_end: Mapped[date] = mapped_column(Date(), nullable=False)

    basic_salary: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    allowances: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    overtime_hours: Mapped[Decimal] = mapped_column(Numeric(6, 2), nullable=False, default=Decimal("0"))
    overtime_rate: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    overtime_pay: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    gross_pay: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    paye: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    nssf: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    sha: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    housing_levy: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    loan_deduction: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    insurance_deduction: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    other_deductions: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    total_deductions: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    net_pay: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    # Pending | Submitted | Approved | Rejected | Paid
    status: Mapped[str] = mapped_column(String(12), nullable=False, default="Pending")
    processed_by: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    batch_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())

    employee: Mapped[Employee] = relationship(back_populates="payroll_records")


class PerformanceReview(Base):
    __tablename__ = "performance_reviews"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    employee_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True
    )
    review_period: Mapped[str] = mapped_column(String(40), nullable=False)
    review_type: Mapped[str] = mapped_column(String(30), nullable=False, default="Annual")

    job_knowledge: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    work_quality: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    productivity: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    communication: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    teamwork: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    initiative: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    punctuality: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    overall_rating: Mapped[Optional[Decimal]] = mapped_column(Numeric(3, 2), nullable=True)

    strengths: Mapped[Optional[str]] = mapped_column(Text(), nullable=True)
    areas_for_improvement: Mapped[Optional[str]] = mapped_column(Text(), nullable=True)
    goals: Mapped[Optional[str]] = mapped_column(Text(), nullable=True)
    reviewer: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    review_date: Mapped[date] = mapped_column(Date(), nullable=False)
    status: Mapped[str] = mapped_column(String(12), nullable=False, default="draft")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())

    employee: Mapped[Employee] = relationship(back_populates="reviews")
