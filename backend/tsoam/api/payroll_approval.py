# tsoam/api/payroll_approval.py
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from tsoam.db import get_db
from tsoam.dependencies import http_errors, require_permission
from tsoam.models.users import User
from tsoam.schemas.payroll_approval import (
    ApproveBatchIn,
    ApproveIndividualIn,
    BatchOut,
    BatchSubmit,
    DisbursementReportOut,
    FinancialImpact,
    NotificationOut,
    RejectBatchIn,
    RejectIndividualIn,
)
from tsoam.services import payroll_approval as svc

router = APIRouter(prefix="/finance/payroll-approvals", tags=["Payroll Approvals"])

_finance = require_permission("can_access_finance")
_approver = require_permission("can_approve_payroll")


@router.post("", response_model=BatchOut, status_code=status.HTTP_201_CREATED)
def submit_batch(payload: BatchSubmit, db: Session = Depends(get_db), user: User = Depends(require_permission("can_process_payroll"))):
    with http_errors(db):
        return svc.submit_batch(db, payload, user)


@router.get("/pending", response_model=List[BatchOut], dependencies=[Depends(_finance)])
def pending(db: Session = Depends(get_db)):
    return svc.pending_batches(db)


@router.get("/history", response_model=List[BatchOut], dependencies=[Depends(_finance)])
def history(limit: int = Query(100, ge=1, le=1000), db: Session = Depends(get_db)):
    return svc.history(db, limit=limit)


@router.get("/notifications", response_model=List[NotificationOut], dependencies=[Depends(_finance)])
def notifications(unread_only: bool = Query(False), db: Session = Depends(get_db)):
    return svc.list_notifications(db, unread_only=unread_only)


@router.patch("/notifications/{notification_id}/read", response_model=NotificationOut, dependencies=[Depends(_finance)])
def mark_read(notification_id: int, db: Session = Depends(get_db)):
    with http_errors(db):
        return svc.mark_notification_read(db, notification_id)


@router.get("/disbursement-reports", response_model=List[DisbursementReportOut], dependencies=[Depends(_finance)])
def all_disbursement_reports(batch_id: Optional[str] = Query(None), db: Session = Depends(get_db)):
    return svc.list_disbursement_reports(db, batch_id)


@router.get("/{batch_id}", response_model=BatchOut, dependencies=[Depends(_finance)])
def get_batch(batch_id: str, db: Session = Depends(get_db)):
    with http_errors(db):
        return svc.get_batch(db, batch_id)


@router.get("/{batch_id}/impact", response_model=FinancialImpact, dependencies=[Depends(_finance)])
def impact(batch_id: str, db: Session = Depends(get_db)):
    with http_errors(db):
        return svc.financial_impact(db, batch_id)


@router.get("/{batch_id}/disbursement-reports", response_model=List[DisbursementReportOut], dependencies=[Depends(_finance)])
def batch_disbursement_reports(batch_id: str, db: Session = Depends(get_db)):
    with http_errors(db):
        svc.get_batch(db, batch_id)
        return svc.list_disbursement_reports(db, batch_id)


@router.post("/{batch_id}/disbursement-reports", response_model=List[DisbursementReportOut])
def create_disbursement_report(batch_id: str, db: Session = Depends(get_db), user: User = Depends(_approver)):
    with http_errors(db):
        return svc.create_disbursement_report(db, batch_id, user)


@router.post("/{batch_id}/approve", response_model=BatchOut)
def approve_batch(batch_id: str, payload: ApproveBatchIn, db: Session = Depends(get_db), user: User = Depends(_approver)):
    with http_errors(db):
        return svc.approve_batch(db, batch_id, user, notes=payload.notes)


@router.post("/{batch_id}/reject", response_model=BatchOut)
def reject_batch(batch_id: str, payload: RejectBatchIn, db: Session = Depends(get_db), user: User = Depends(_approver)):
    with http_errors(db):
        return svc.reject_batch(db, batch_id, user, payload.reason)


@router.post("/{batch_id}/approve-individual", response_model=BatchOut)
def approve_individual(batch_id: str, payload: ApproveIndividualIn, db: Session = Depends(get_db), user: User = Depends(_approver)):
    with http_errors(db):
        return svc.approve_individual(db, batch_id, payload.employee_ids, user, notes=payload.notes)


@router.post("/{batch_id}/reject-individual", response_model=BatchOut)
def reject_individual(batch_id: str, payload: RejectIndividualIn, db: Session = Depends(get_db), user: User = Depends(_approver)):
    with http_errors(db):
        return svc.reject_individual(db, batch_id, payload.rejections, user)
