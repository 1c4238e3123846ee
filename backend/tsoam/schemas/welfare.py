# tsoam/schemas/welfare.py
from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

Urgency = Literal["Low", "Medium", "High", "Critical"]
WelfareStatus = Literal["Pending", "Under Review", "Approved", "Rejected", "Disbursed"]


class WelfareCreate(BaseModel):
    applicant_name: str = Field(..., min_length=1, max_length=200)
    phone_number: str = Field(..., min_length=1, max_length=32)
    email: Optional[str] = None
    residence: str = Field(..., min_length=1, max_length=200)
    member_id: Optional[str] = None
    household_size: Optional[int] = Field(None, ge=1)
    assistance_type: str = Field(..., min_length=1, max_length=60)
    amount_requested: Decimal = Field(..., gt=0)
    reason: Optional[str] = None
    urgency_level: Urgency = "Medium"


class WelfareReview(BaseModel):
    status: WelfareStatus
    amount_approved: Optional[Decimal] = Field(None, ge=0)
    review_notes: Optional[str] = None


class WelfareApprovalOut(BaseModel):
    approver: str
    action: str
    amount: Optional[Decimal] = None
    comments: Optional[str] = None
    action_date: datetime

    model_config = ConfigDict(from_attributes=True)


class WelfareOut(WelfareCreate):
    id: uuid.UUID
    request_id: str
    status: WelfareStatus
    amount_approved: Optional[Decimal] = None
    review_notes: Optional[str] = None
    reviewed_by: Optional[str] = None
    review_date: Optional[datetime] = None
    created_at: datetime
    approvals: List[WelfareApprovalOut] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class WelfareStats(BaseModel):
    total_requests: int
    by_status: Dict[str, int]
    total_requested: Decimal
    total_approved: Decimal
