# tsoam/api/hr.py
from __future__ import annotations

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from tsoam.db import get_db
from tsoam.dependencies import http_errors, require_permission
from tsoam.models.users import User
from tsoam.schemas.hr import (
    EmployeeCreate,
    EmployeeOut,
    EmployeeStats,
    EmployeeUpdate,
    PayrollBatchAssemble,
    PayrollRecordCreate,
    PayrollRecordOut,
    PerformanceReviewCreate,
    PerformanceReviewOut,
    PerformanceReviewUpdate,
)
from tsoam.schemas.payroll_approval import BatchOut, HRNoticeOut
from tsoam.services import hr as svc
from tsoam.services import payroll_approval
from tsoam.services.access import has_permission
from tsoam.services.demo_data import with_demo_fallback

router = APIRouter(prefix="/hr", tags=["HR"])

_hr = require_permission("can_access_hr")
_manage = require_permission("can_manage_employees")
_payroll = require_permission("can_process_payroll")


def _visible(user: User, rows):
    if has_permission(user.role, "can_view_salaries"):
        return rows
    return [svc.redact_salary(r) if not isinstance(r, dict) else {**r, "basic_salary": None, "allowances": None} for r in rows]


# ------------------------------- employees ------------------------------- #

@router.get("/employees", response_model=List[EmployeeOut])
def list_employees(
    department: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    user: User = Depends(_hr),
):
    rows = with_demo_fallback(
        "employees",
        lambda: svc.list_employees(db, department=department, status=status, search=search),
        db,
    )
    return _visible(user, rows)


@router.get("/employees/stats/summary", response_model=EmployeeStats, dependencies=[Depends(_hr)])
def employee_stats(db: Session = Depends(get_db)):
    return svc.employee_stats(db)


@router.get("/employees/search/{term}", response_model=List[EmployeeOut])
def search_employees(term: str, db: Session = Depends(get_db), user: User = Depends(_hr)):
    return _visible(user, svc.list_employees(db, search=term))


@router.get("/employees/{emp_pk}", response_model=EmployeeOut)
def get_employee(emp_pk: uuid.UUID, db: Session = Depends(get_db), user: User = Depends(_hr)):
    with http_errors(db):
        return _visible(user, [svc.get_employee(db, emp_pk)])[0]


@router.post("/employees", response_model=EmployeeOut, status_code=status.HTTP_201_CREATED)
def create_employee(payload: EmployeeCreate, db: Session = Depends(get_db), user: User = Depends(_manage)):
    with http_errors(db):
        return svc.create_employee(db, payload, user)


@router.put("/employees/{emp_pk}", response_model=EmployeeOut)
def update_employee(emp_pk: uuid.UUID, payload: EmployeeUpdate, db: Session = Depends(get_db), user: User = Depends(_manage)):
    with http_errors(db):
        return svc.update_employee(db, emp_pk, payload, user)


@router.delete("/employees/{emp_pk}", response_model=EmployeeOut)
def delete_employee(emp_pk: uuid.UUID, db: Session = Depends(get_db), user: User = Depends(_manage)):
    with http_errors(db):
        return svc.deactivate_employee(db, emp_pk, user)


# -------------------------------- payroll -------------------------------- #

@router.post("/payroll", response_model=PayrollRecordOut, status_code=status.HTTP_201_CREATED)
def create_payroll_record(payload: PayrollRecordCreate, db: Session = Depends(get_db), user: User = Depends(_payroll)):
    with http_errors(db):
        return svc.create_payroll_record(db, payload, user)


@router.post("/payroll/batches", response_model=BatchOut, status_code=status.HTTP_201_CREATED)
def submit_payroll_batch(payload: PayrollBatchAssemble, db: Session = Depends(get_db), user: User = Depends(_payroll)):
    """Send the period's pending payroll records to Finance for approval."""
    with http_errors(db):
        return svc.assemble_batch(db, payload, user)


@router.get("/payroll/{emp_pk}", response_model=List[PayrollRecordOut], dependencies=[Depends(require_permission("can_view_salaries"))])
def list_payroll_records(
    emp_pk: uuid.UUID,
    year: Optional[int] = Query(None),
    month: Optional[int] = Query(None, ge=1, le=12),
    db: Session = Depends(get_db),
):
    with http_errors(db):
        return svc.list_payroll_records(db, emp_pk, year=year, month=month)


@router.get("/finance-responses", response_model=List[HRNoticeOut], dependencies=[Depends(_hr)])
def finance_responses(batch_id: Optional[str] = Query(None), limit: int = Query(50, ge=1, le=500), db: Session = Depends(get_db)):
    return payroll_approval.list_hr_notices(db, batch_id=batch_id, limit=limit)


# --------------------------- performance reviews --------------------------- #

@router.get("/performance-reviews", response_model=List[PerformanceReviewOut], dependencies=[Depends(_hr)])
def list_reviews(employee_id: Optional[uuid.UUID] = Query(None), db: Session = Depends(get_db)):
    return svc.list_reviews(db, employee_id)


@router.post("/performance-reviews", response_model=PerformanceReviewOut, status_code=status.HTTP_201_CREATED)
def create_review(payload: PerformanceReviewCreate, db: Session = Depends(get_db), user: User = Depends(_manage)):
    with http_errors(db):
        return svc.create_review(db, payload, user)


@router.put("/performance-reviews/{review_pk}", response_model=PerformanceReviewOut, dependencies=[Depends(_manage)])
def update_review(review_pk: uuid.UUID, payload: PerformanceReviewUpdate, db: Session = Depends(get_db)):
    with http_errors(db):
        return svc.update_review(db, review_pk, payload)


@router.delete("/performance-reviews/{review_pk}", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(_manage)])
def delete_review(review_pk: uuid.UUID, db: Session = Depends(get_db)) -> Response:
    with http_errors(db):
        svc.delete_review(db, review_pk)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
