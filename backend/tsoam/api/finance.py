# tsoam/api/finance.py
from __future__ import annotations

import uuid
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from tsoam.config import get_settings
from tsoam.db import get_db
from tsoam.dependencies import http_errors, require_permission
from tsoam.models.users import User
from tsoam.schemas.finance import (
    FinanceSummary,
    MonthlyReport,
    RejectIn,
    TransactionCreate,
    TransactionOut,
    TransactionUpdate,
    YearlyReport,
)
from tsoam.schemas.members import TitheCreate, TitheOut, TitheSummary
from tsoam.services import finance as svc
from tsoam.services.demo_data import with_demo_fallback

router = APIRouter(prefix="/finance", tags=["Finance"])

_finance = require_permission("can_access_finance")
_reports = require_permission("can_view_financial_reports")

# ----------------------------- transactions ----------------------------- #


@router.get("/transactions", response_model=List[TransactionOut], dependencies=[Depends(_finance)])
def list_transactions(
    type: Optional[str] = Query(None, description="Income | Expense"),
    category: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    search: Optional[str] = Query(None),
    limit: int = Query(200, ge=1, le=1000),
    db: Session = Depends(get_db),
):
    return with_demo_fallback(
        "transactions",
        lambda: svc.list_transactions(
            db, transaction_type=type, category=category, status=status, start=start, end=end, search=search, limit=limit
        ),
        db,
    )


@router.get("/transactions/pending/approval", response_model=List[TransactionOut], dependencies=[Depends(_finance)])
def pending_transactions(db: Session = Depends(get_db)):
    return svc.list_transactions(db, status="Pending")


@router.get("/transactions/category/{category}", response_model=List[TransactionOut], dependencies=[Depends(_finance)])
def transactions_by_category(category: str, db: Session = Depends(get_db)):
    return svc.list_transactions(db, category=category)


@router.get("/transactions/search/{term}", response_model=List[TransactionOut], dependencies=[Depends(_finance)])
def search_transactions(term: str, db: Session = Depends(get_db)):
    return svc.list_transactions(db, search=term)


@router.get("/transactions/{tx_pk}", response_model=TransactionOut, dependencies=[Depends(_finance)])
def get_transaction(tx_pk: uuid.UUID, db: Session = Depends(get_db)):
    with http_errors(db):
        return svc.get_transaction(db, tx_pk)


@router.post("/transactions", response_model=TransactionOut, status_code=status.HTTP_201_CREATED)
def create_transaction(payload: TransactionCreate, db: Session = Depends(get_db), user: User = Depends(_finance)):
    with http_errors(db):
        return svc.create_transaction(db, payload, user)


@router.put("/transactions/{tx_pk}", response_model=TransactionOut)
def update_transaction(tx_pk: uuid.UUID, payload: TransactionUpdate, db: Session = Depends(get_db), user: User = Depends(_finance)):
    with http_errors(db):
        return svc.update_transaction(db, tx_pk, payload, user)


@router.delete("/transactions/{tx_pk}", response_model=TransactionOut)
def delete_transaction(tx_pk: uuid.UUID, db: Session = Depends(get_db), user: User = Depends(require_permission("can_delete_data"))):
    with http_errors(db):
        return svc.delete_transaction(db, tx_pk, user)


@router.put("/transactions/{tx_pk}/approve", response_model=TransactionOut)
def approve_transaction(tx_pk: uuid.UUID, db: Session = Depends(get_db), user: User = Depends(_finance)):
    with http_errors(db):
        return svc.approve_transaction(db, tx_pk, user)


@router.put("/transactions/{tx_pk}/reject", response_model=TransactionOut)
def reject_transaction(tx_pk: uuid.UUID, payload: RejectIn, db: Session = Depends(get_db), user: User = Depends(_finance)):
    with http_errors(db):
        return svc.reject_transaction(db, tx_pk, user, payload.reason)


# ------------------------------- reports ------------------------------- #

@router.get("/summary", response_model=FinanceSummary, dependencies=[Depends(_finance)])
def summary(db: Session = Depends(get_db)):
    return svc.summary(db, get_settings().currency)


@router.get("/reports/monthly", response_model=MonthlyReport, dependencies=[Depends(_reports)])
def monthly_report(year: int = Query(..., ge=2000, le=2100), month: int = Query(..., ge=1, le=12), db: Session = Depends(get_db)):
    with http_errors(db):
        return svc.monthly_report(db, year, month)


@router.get("/reports/yearly", response_model=YearlyReport, dependencies=[Depends(_reports)])
def yearly_report(year: int = Query(..., ge=2000, le=2100), db: Session = Depends(get_db)):
    return svc.yearly_report(db, year)


# -------------------------------- tithes -------------------------------- #

@router.post("/tithes", response_model=TitheOut, status_code=status.HTTP_201_CREATED)
def record_tithe(payload: TitheCreate, db: Session = Depends(get_db), user: User = Depends(_finance)):
    with http_errors(db):
        return svc.record_tithe(db, payload, user)


@router.get("/tithes", response_model=List[TitheOut], dependencies=[Depends(_finance)])
def list_tithes(member_id: Optional[uuid.UUID] = Query(None), year: Optional[int] = Query(None), db: Session = Depends(get_db)):
    return svc.list_tithes(db, member_id=member_id, year=year)


@router.get("/tithes/summary", response_model=TitheSummary, dependencies=[Depends(_finance)])
def tithe_summary(year: int = Query(..., ge=2000, le=2100), db: Session = Depends(get_db)):
    return svc.tithe_summary(db, year)
