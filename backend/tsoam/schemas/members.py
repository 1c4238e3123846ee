# tsoam/schemas/members.py
from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

MembershipStatus = Literal["Active", "Inactive", "Transferred", "Deceased"]
Gender = Literal["Male", "Female"]


class MemberBase(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=200)
    email: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=32)
    date_of_birth: Optional[date] = None
    gender: Optional[Gender] = None
    marital_status: Optional[str] = None
    address: Optional[str] = None
    emergency_contact_name: Optional[str] = None
    emergency_contact_phone: Optional[str] = None
    homecell_id: Optional[int] = None
    membership_status: MembershipStatus = "Active"
    membership_date: Optional[date] = None
    baptized: bool = False
    baptism_date: Optional[date] = None
    bible_study_completed: bool = False
    employment_status: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class MemberCreate(MemberBase):
    pass


class MemberUpdate(BaseModel):
    full_name: Optional[str] = Field(None, min_length=1, max_length=200)
    email: Optional[str] = None
    phone: Optional[str] = None
    date_of_birth: Optional[date] = None
    gender: Optional[Gender] = None
    marital_status: Optional[str] = None
    address: Optional[str] = None
    emergency_contact_name: Optional[str] = None
    emergency_contact_phone: Optional[str] = None
    homecell_id: Optional[int] = None
    membership_status: Optional[MembershipStatus] = None
    membership_date: Optional[date] = None
    baptized: Optional[bool] = None
    baptism_date: Optional[date] = None
    bible_study_completed: Optional[bool] = None
    employment_status: Optional[str] = None


class MemberOut(MemberBase):
    id: uuid.UUID
    member_id: str
    tithe_number: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None


class MemberStats(BaseModel):
    total: int
    active: int
    inactive: int
    baptized: int
    by_gender: Dict[str, int]


# --------------------------------- tithes --------------------------------- #

class TitheCreate(BaseModel):
    member_id: Optional[uuid.UUID] = None
    amount: Decimal = Field(..., gt=0)
    currency: str = Field("KES", max_length=3)
    payment_method: str = "Cash"
    payment_date: date
    notes: Optional[str] = None


class TitheOut(BaseModel):
    id: uuid.UUID
    member_id: Optional[uuid.UUID] = None
    amount: Decimal
    currency: str
    payment_method: str
    payment_date: date
    month: int
    year: int
    notes: Optional[str] = None
    recorded_by: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class TitheSummary(BaseModel):
    year: int
    total: Decimal
    count: int
    by_month: List[Dict[str, object]]
