# tsoam/schemas/leave.py
from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

LeaveStatus = Literal["draft", "submitted", "approved", "rejected", "cancelled"]
LeavePriority = Literal["normal", "urgent", "emergency"]


class LeaveTypeOut(BaseModel):
    id: int
    code: str
    name: str
    default_days: int
    max_days_per_year: int
    carry_over_allowed: bool
    max_carry_over_days: int
    requires_documentation: bool
    is_paid: bool
    category: str
    min_tenure_months: int
    gender_restriction: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class LeaveBalanceOut(BaseModel):
    leave_type: str
    year: int
    entitlement: Decimal
    used: Decimal
    pending: Decimal
    carried_over: Decimal
    available: Decimal


class LeaveRequestIn(BaseModel):
    employee_id: uuid.UUID
    leave_type: str = Field(..., description="Leave type code, e.g. AL")
    start_date: date
    end_date: date
    reason: Optional[str] = None
    priority: LeavePriority = "normal"
    handover_notes: Optional[str] = None
    covering_employee: Optional[str] = None


class DecisionIn(BaseModel):
    comments: Optional[str] = None


class ComplianceFlag(BaseModel):
    type: str
    severity: Literal["error", "warning"]
    message: str


class ValidationOut(BaseModel):
    is_valid: bool
    working_days: int
    total_days: int
    resumption_date: Optional[date] = None
    flags: List[ComplianceFlag]


class LeaveRequestOut(BaseModel):
    id: uuid.UUID
    request_no: str
    employee_id: uuid.UUID
    leave_type: str
    start_date: date
    end_date: date
    resumption_date: date
    total_days: int
    working_days: int
    reason: Optional[str] = None
    status: LeaveStatus
    priority: LeavePriority
    handover_notes: Optional[str] = None
    covering_employee: Optional[str] = None
    approval_history: List[Dict[str, Any]]
    compliance_flags: List[Dict[str, Any]]
    submitted_at: Optional[datetime] = None
    decided_at: Optional[datetime] = None


class LeaveAnalytics(BaseModel):
    total_requests: int
    by_status: Dict[str, int]
    by_type: Dict[str, int]
    days_by_department: Dict[str, int]
    average_processing_hours: Optional[float] = None
