# tsoam/schemas/hr.py
"""
Pydantic schemas for HR.

Covers:
- Employees
- Payroll records (per employee per period)
- Performance reviews

Monetary values use Decimal to avoid float rounding.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

# ------------------------- Enum Literals (string) ------------------------- #
EmploymentType = Literal["Permanent", "Contract", "Volunteer", "Full-time", "Part-time"]

EmploymentStatus = Literal["Active", "On Leave", "Suspended", "Terminated"]

PayrollStatus = Literal["Pending", "Submitted", "Approved", "Rejected", "Paid"]


# ------------------------------- Employees -------------------------------- #
class EmployeeBase(BaseModel):
    first_name: str = Field(..., max_length=100)
    last_name: str = Field(..., max_length=100)
    email: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=32)
    gender: Optional[Literal["Male", "Female"]] = None
    date_of_birth: Optional[date] = None

    national_id: Optional[str] = Field(None, max_length=20)
    kra_pin: Optional[str] = Field(None, max_length=20)
    nhif_number: Optional[str] = Field(None, max_length=20)
    nssf_number: Optional[str] = Field(None, max_length=20)

    position: Optional[str] = Field(None, max_length=100)
    department: Optional[str] = Field(None, max_length=100)
    employment_type: EmploymentType = "Permanent"
    employment_status: EmploymentStatus = "Active"

    basic_salary: Decimal = Field(Decimal("0"), ge=0)
    allowances: Decimal = Field(Decimal("0"), ge=0)
    hire_date: Optional[date] = None
    bank_name: Optional[str] = None
    bank_account: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class EmployeeCreate(EmployeeBase):
    pass


class EmployeeUpdate(BaseModel):
    # All optional for PATCH-style updates
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    email: Optional[str] = None
    phone: Optional[str] = None
    gender: Optional[Literal["Male", "Female"]] = None
    date_of_birth: Optional[date] = None
    national_id: Optional[str] = None
    kra_pin: Optional[str] = None
    nhif_number: Optional[str] = None
    nssf_number: Optional[str] = None
    position: Optional[str] = None
    department: Optional[str] = None
    employment_type: Optional[EmploymentType] = None
    employment_status: Optional[EmploymentStatus] = None
    basic_salary: Optional[Decimal] = Field(None, ge=0)
    allowances: Optional[Decimal] = Field(None, ge=0)
    hire_date: Optional[date] = None
    bank_name: Optional[str] = None
    bank_account: Optional[str] = None


class EmployeeOut(EmployeeBase):
    id: uuid.UUID
    employee_id: str
    is_active: bool
    # Blanked for callers without salary visibility
    basic_salary: Optional[Decimal] = None
    allowances: Optional[Decimal] = None
    created_at: Optional[datetime] = None


class EmployeeStats(BaseModel):
    total: int
    active: int
    by_department: Dict[str, int]
    by_employment_type: Dict[str, int]


# ---------------------------- Payroll records ----------------------------- #
class PayrollRecordCreate(BaseModel):
    employee_id: uuid.UUID
    period_start: date
    period_end: date
    basic_salary: Optional[Decimal] = Field(None, ge=0, description="Defaults to the employee's basic salary")
    allowances: Optional[Decimal] = Field(None, ge=0, description="Defaults to the employee's allowances")
    overtime_hours: Decimal = Field(Decimal("0"), ge=0)
    overtime_rate: Decimal = Field(Decimal("0"), ge=0)
    loan_deduction: Decimal = Field(Decimal("0"), ge=0)
    insurance_deduction: Decimal = Field(Decimal("0"), ge=0)
    other_deductions: Decimal = Field(Decimal("0"), ge=0)
    # Statutory amounts are computed when omitted
    paye: Optional[Decimal] = Field(None, ge=0)
    nssf: Optional[Decimal] = Field(None, ge=0)
    sha: Optional[Decimal] = Field(None, ge=0)
    housing_levy: Optional[Decimal] = Field(None, ge=0)

    @model_validator(mode="after")
    def _period_order(self) -> "PayrollRecordCreate":
        if self.period_end < self.period_start:
            raise ValueError("period_end must be on or after period_start.")
        return self


class PayrollRecordOut(BaseModel):
    id: uuid.UUID
    payroll_id: str
    employee_id: uuid.UUID
    period_start: date
    period_end: date
    basic_salary: Decimal
    allowances: Decimal
    overtime_hours: Decimal
    overtime_rate: Decimal
    overtime_pay: Decimal
    gross_pay: Decimal
    paye: Decimal
    nssf: Decimal
    sha: Decimal
    housing_levy: Decimal
    loan_deduction: Decimal
    insurance_deduction: Decimal
    other_deductions: Decimal
    total_deductions: Decimal
    net_pay: Decimal
    status: PayrollStatus
    processed_by: Optional[str] = None
    batch_id: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class PayrollBatchAssemble(BaseModel):
    period_start: date
    period_end: date
    batch_id: Optional[str] = Field(None, max_length=64, description="Generated when omitted")
    notes: Optional[str] = None


# -------------------------- Performance reviews --------------------------- #
Score = Optional[int]


class PerformanceReviewBase(BaseModel):
    employee_id: uuid.UUID
    review_period: str = Field(..., max_length=40)
    review_type: str = Field("Annual", max_length=30)
    job_knowledge: Score = Field(None, ge=1, le=5)
    work_quality: Score = Field(None, ge=1, le=5)
    productivity: Score = Field(None, ge=1, le=5)
    communication: Score = Field(None, ge=1, le=5)
    teamwork: Score = Field(None, ge=1, le=5)
    initiative: Score = Field(None, ge=1, le=5)
    punctuality: Score = Field(None, ge=1, le=5)
    strengths: Optional[str] = None
    areas_for_improvement: Optional[str] = None
    goals: Optional[str] = None
    review_date: date
    status: Literal["draft", "completed"] = "draft"

    model_config = ConfigDict(from_attributes=True)


class PerformanceReviewCreate(PerformanceReviewBase):
    pass


class PerformanceReviewUpdate(BaseModel):
    job_knowledge: Score = Field(None, ge=1, le=5)
    work_quality: Score = Field(None, ge=1, le=5)
    productivity: Score = Field(None, ge=1, le=5)
    communication: Score = Field(None, ge=1, le=5)
    teamwork: Score = Field(None, ge=1, le=5)
    initiative: Score = Field(None, ge=1, le=5)
    punctuality: Score = Field(None, ge=1, le=5)
    strengths: Optional[str] = None
    areas_for_improvement: Optional[str] = None
    goals: Optional[str] = None
    status: Optional[Literal["draft", "completed"]] = None


class PerformanceReviewOut(PerformanceReviewBase):
    id: uuid.UUID
    overall_rating: Optional[Decimal] = None
    reviewer: Optional[str] = None
