# tsoam/schemas/auth.py
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from tsoam.services.access import normalize_role

Role = Literal["admin", "pastor", "hr", "finance", "user"]


class LoginIn(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class UserBase(BaseModel):
    email: str = Field(..., max_length=255)
    full_name: str = Field(..., max_length=200)
    phone: Optional[str] = Field(None, max_length=32)
    role: Role = "user"
    department: Optional[str] = Field(None, max_length=100)
    employee_id: Optional[str] = Field(None, max_length=32)

    @field_validator("role", mode="before")
    @classmethod
    def _normalize_role(cls, v: Any) -> str:
        return normalize_role(v)

    @field_validator("email")
    @classmethod
    def _email_shape(cls, v: str) -> str:
        v = v.strip().lower()
        if "@" not in v:
            raise ValueError("Invalid email address")
        return v


class UserCreate(UserBase):
    password: str = Field(..., min_length=8)


class UserUpdate(BaseModel):
    full_name: Optional[str] = Field(None, max_length=200)
    phone: Optional[str] = Field(None, max_length=32)
    role: Optional[Role] = None
    department: Optional[str] = None
    employee_id: Optional[str] = None
    is_active: Optional[bool] = None
    can_create_accounts: Optional[bool] = None
    can_delete_accounts: Optional[bool] = None

    @field_validator("role", mode="before")
    @classmethod
    def _normalize_role(cls, v: Any) -> Optional[str]:
        return normalize_role(v) if v is not None else None


class ProfileUpdate(BaseModel):
    full_name: Optional[str] = Field(None, max_length=200)
    phone: Optional[str] = Field(None, max_length=32)


class UserOut(BaseModel):
    id: uuid.UUID
    email: str
    full_name: str
    phone: Optional[str] = None
    role: str
    department: Optional[str] = None
    employee_id: Optional[str] = None
    is_active: bool
    can_create_accounts: bool
    can_delete_accounts: bool
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class LoginOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserOut
    permissions: Dict[str, Any]


class ForgotPasswordIn(BaseModel):
    email: str


class VerifyCodeIn(BaseModel):
    email: str
    code: str


class ResetPasswordIn(VerifyCodeIn):
    new_password: str = Field(..., min_length=8)


class AccountRequestCreate(BaseModel):
    email: str = Field(..., max_length=255)
    full_name: str = Field(..., min_length=1, max_length=200)
    phone: Optional[str] = None
    role: Role = "user"
    department: Optional[str] = None

    @field_validator("role", mode="before")
    @classmethod
    def _normalize_role(cls, v: Any) -> str:
        return normalize_role(v)


class AccountRequestReview(BaseModel):
    reason: Optional[str] = None
    admin_notes: Optional[str] = None


class AccountRequestOut(BaseModel):
    id: uuid.UUID
    email: str
    full_name: str
    phone: Optional[str] = None
    role: str
    department: Optional[str] = None
    status: str
    requested_at: Optional[datetime] = None
    reviewed_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    admin_notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
