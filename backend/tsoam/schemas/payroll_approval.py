# tsoam/schemas/payroll_approval.py
"""
Pydantic schemas for payroll batch approval (HR submits, Finance decides).

Batch status:     Pending | Partially_Approved | Fully_Approved | Rejected
Employee status:  Pending | Approved | Rejected
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

BatchStatus = Literal["Pending", "Partially_Approved", "Fully_Approved", "Rejected"]
ItemStatus = Literal["Pending", "Approved", "Rejected"]
Priority = Literal["low", "medium", "high", "urgent"]


class Deductions(BaseModel):
    paye: Decimal = Decimal("0")
    nssf: Decimal = Decimal("0")
    sha: Decimal = Decimal("0")
    housing_levy: Decimal = Decimal("0")
    loan: Decimal = Decimal("0")
    insurance: Decimal = Decimal("0")
    total: Decimal = Decimal("0")


class BatchEmployeeIn(BaseModel):
    employee_id: str = Field(..., min_length=1, max_length=32)
    employee_name: str = Field(..., max_length=200)
    gross_salary: Decimal = Field(..., ge=0)
    net_salary: Decimal = Field(..., ge=0)
    deductions: Deductions = Field(default_factory=Deductions)


class BatchSubmit(BaseModel):
    # batch_id / employees are checked by the service so that the error
    # message matches the workflow ("batch_id is required", ...)
    batch_id: Optional[str] = Field(None, max_length=64)
    period: str = Field(..., max_length=40)
    submitted_by: Optional[str] = None
    employees: List[BatchEmployeeIn] = Field(default_factory=list)

    total_employees: Optional[int] = Field(None, ge=0)
    total_gross_amount: Optional[Decimal] = Field(None, ge=0)
    total_net_amount: Optional[Decimal] = Field(None, ge=0)
    summary: Dict[str, Any] = Field(default_factory=dict)

    approval_deadline: Optional[datetime] = None
    priority: Optional[Priority] = None
    department: Optional[str] = None
    fiscal_year: Optional[int] = None
    quarter: Optional[int] = Field(None, ge=1, le=4)


class ApproveBatchIn(BaseModel):
    notes: Optional[str] = None


class RejectBatchIn(BaseModel):
    reason: str = Field(..., min_length=1)


class ApproveIndividualIn(BaseModel):
    employee_ids: List[str] = Field(..., min_length=1)
    notes: Optional[str] = None


class EmployeeRejection(BaseModel):
    employee_id: str
    reason: str = Field(..., min_length=1)


class RejectIndividualIn(BaseModel):
    rejections: List[EmployeeRejection] = Field(..., min_length=1)


# --------------------------------- output --------------------------------- #

class BatchItemOut(BaseModel):
    employee_id: str
    employee_name: str
    gross_salary: Decimal
    net_salary: Decimal
    deductions: Dict[str, Any]
    status: ItemStatus
    approved_by: Optional[str] = None
    approved_date: Optional[datetime] = None
    rejected_by: Optional[str] = None
    rejected_date: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    payment_reference: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class ApprovalActionOut(BaseModel):
    action_type: str
    performed_by: str
    timestamp: datetime
    reason: Optional[str] = None
    notes: Optional[str] = None
    employee_ids: List[str] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class BatchOut(BaseModel):
    batch_id: str
    period: str
    total_employees: int
    total_gross_amount: Decimal
    total_net_amount: Decimal
    status: BatchStatus
    submitted_date: datetime
    submitted_by: str
    summary: Dict[str, Any]
    approval_deadline: datetime
    priority: Priority
    department: str
    fiscal_year: int
    quarter: int
    finalized_at: Optional[datetime] = None
    items: List[BatchItemOut] = Field(default_factory=list)
    actions: List[ApprovalActionOut] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class NotificationOut(BaseModel):
    id: int
    type: str
    title: str
    message: str
    batch_id: Optional[str] = None
    employee_id: Optional[str] = None
    amount: Optional[Decimal] = None
    priority: str
    read: bool
    created_at: datetime
    expires_at: Optional[datetime] = None
    meta: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(from_attributes=True)


class HRNoticeOut(BaseModel):
    id: int
    event_type: str
    batch_id: str
    data: Dict[str, Any]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DisbursementReportOut(BaseModel):
    report_id: str
    batch_id: str
    report_type: str
    period: str
    total_employees: int
    total_gross_amount: Decimal
    total_deductions: Decimal
    total_net_amount: Decimal
    disbursement_method: str
    status: str
    approved_by: str
    employees: List[Dict[str, Any]]
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class FinancialImpact(BaseModel):
    approved_count: int
    approved_amount: Decimal
    rejected_count: int
    rejected_amount: Decimal
    pending_count: int
    pending_amount: Decimal
    cash_flow_impact: Decimal
