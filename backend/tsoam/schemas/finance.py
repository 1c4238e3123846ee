# tsoam/schemas/finance.py
from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

TransactionType = Literal["Income", "Expense"]
TransactionStatus = Literal["Pending", "Approved", "Rejected"]
PaymentMethod = Literal["Cash", "M-Pesa", "Bank Transfer", "Cheque", "Card", "Other"]


class TransactionBase(BaseModel):
    transaction_type: TransactionType
    amount: Decimal = Field(..., gt=0)
    currency: str = Field("KES", max_length=3)
    category: str = Field(..., min_length=1, max_length=100)
    subcategory: Optional[str] = Field(None, max_length=100)
    payment_method: Optional[PaymentMethod] = "Cash"
    transaction_date: date
    description: Optional[str] = None
    reference_id: Optional[str] = Field(None, max_length=64)
    member_id: Optional[str] = Field(None, max_length=32)

    model_config = ConfigDict(from_attributes=True)


class TransactionCreate(TransactionBase):
    pass


class TransactionUpdate(BaseModel):
    transaction_type: Optional[TransactionType] = None
    amount: Optional[Decimal] = Field(None, gt=0)
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    subcategory: Optional[str] = None
    payment_method: Optional[PaymentMethod] = None
    transaction_date: Optional[date] = None
    description: Optional[str] = None
    reference_id: Optional[str] = None
    member_id: Optional[str] = None


class TransactionOut(TransactionBase):
    id: uuid.UUID
    transaction_id: str
    status: TransactionStatus
    recorded_by: Optional[str] = None
    approved_by: Optional[str] = None
    approval_date: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None


class RejectIn(BaseModel):
    reason: str = Field(..., min_length=1)


class FinanceSummary(BaseModel):
    total_income: Decimal
    total_expenses: Decimal
    net_income: Decimal
    pending_count: int
    currency: str


class MonthRow(BaseModel):
    month: int
    income: Decimal
    expenses: Decimal
    net: Decimal


class CategoryRow(BaseModel):
    category: str
    transaction_type: str
    total: Decimal
    count: int


class MonthlyReport(BaseModel):
    year: int
    month: int
    income: Decimal
    expenses: Decimal
    net: Decimal
    by_category: List[CategoryRow]


class YearlyReport(BaseModel):
    year: int
    income: Decimal
    expenses: Decimal
    net: Decimal
    months: List[MonthRow]
    by_category: List[CategoryRow]


