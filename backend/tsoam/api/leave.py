# tsoam/api/leave.py
from __future__ import annotations

import uuid
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from tsoam.db import get_db
from tsoam.dependencies import get_current_user, http_errors, require_permission
from tsoam.models.users import User
from tsoam.schemas.leave import (
    DecisionIn,
    LeaveAnalytics,
    LeaveBalanceOut,
    LeaveRequestIn,
    LeaveRequestOut,
    LeaveTypeOut,
    ValidationOut,
)
from tsoam.services import leave as svc
from tsoam.services.demo_data import with_demo_fallback

router = APIRouter(prefix="/leave", tags=["Leave"])

_hr = require_permission("can_access_hr")
_approver = require_permission("can_manage_employees")


@router.get("/types", response_model=List[LeaveTypeOut], dependencies=[Depends(get_current_user)])
def leave_types(db: Session = Depends(get_db)):
    return with_demo_fallback("leave_types", lambda: svc.list_leave_types(db), db)


@router.get("/balances/{emp_pk}", response_model=List[LeaveBalanceOut], dependencies=[Depends(_hr)])
def balances(emp_pk: uuid.UUID, year: Optional[int] = Query(None), db: Session = Depends(get_db)):
    with http_errors(db):
        return svc.balances_for(db, emp_pk, year or date.today().year)


@router.post("/validate", response_model=ValidationOut, dependencies=[Depends(get_current_user)])
def validate(payload: LeaveRequestIn, db: Session = Depends(get_db)):
    with http_errors(db):
        result = svc.validate_request(db, payload)
    db.rollback()
    return result


@router.get("/requests", response_model=List[LeaveRequestOut], dependencies=[Depends(_hr)])
def list_requests(
    employee_id: Optional[uuid.UUID] = Query(None),
    status: Optional[str] = Query(None),
    leave_type: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    rows = svc.list_requests(db, employee_id=employee_id, status=status, leave_type=leave_type)
    return [svc.request_out(r) for r in rows]


@router.post("/requests", response_model=LeaveRequestOut, status_code=status.HTTP_201_CREATED)
def submit(payload: LeaveRequestIn, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    with http_errors(db):
        return svc.request_out(svc.submit_request(db, payload, user))


@router.get("/requests/{req_pk}", response_model=LeaveRequestOut, dependencies=[Depends(_hr)])
def get_request(req_pk: uuid.UUID, db: Session = Depends(get_db)):
    with http_errors(db):
        return svc.request_out(svc.get_request(db, req_pk))


@router.post("/requests/{req_pk}/approve", response_model=LeaveRequestOut)
def approve(req_pk: uuid.UUID, payload: DecisionIn, db: Session = Depends(get_db), user: User = Depends(_approver)):
    with http_errors(db):
        return svc.request_out(svc.approve_request(db, req_pk, user, payload.comments))


@router.post("/requests/{req_pk}/reject", response_model=LeaveRequestOut)
def reject(req_pk: uuid.UUID, payload: DecisionIn, db: Session = Depends(get_db), user: User = Depends(_approver)):
    with http_errors(db):
        return svc.request_out(svc.reject_request(db, req_pk, user, payload.comments))


@router.post("/requests/{req_pk}/cancel", response_model=LeaveRequestOut)
def cancel(req_pk: uuid.UUID, payload: DecisionIn, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    with http_errors(db):
        return svc.request_out(svc.cancel_request(db, req_pk, user, payload.comments))


@router.get("/calendar", response_model=List[LeaveRequestOut], dependencies=[Depends(_hr)])
def calendar(year: int = Query(...), month: int = Query(..., ge=1, le=12), db: Session = Depends(get_db)):
    return [svc.request_out(r) for r in svc.calendar(db, year, month)]


@router.get("/analytics", response_model=LeaveAnalytics, dependencies=[Depends(_hr)])
def analytics(start: date = Query(...), end: date = Query(...), db: Session = Depends(get_db)):
    return svc.analytics(db, start, end)
