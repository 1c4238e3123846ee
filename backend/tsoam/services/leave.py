# tsoam/services/leave.py
"""
Leave management: leave types, yearly balances and the request workflow.

    submitted -> approved | rejected | cancelled
    approved  -> cancelled   (only before the leave starts)

Submitting reserves the request's working days as `pending` on the balance;
approval moves them to `used`; rejection or cancellation releases them.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional

from dateutil.relativedelta import relativedelta
from sqlalchemy import select
from sqlalchemy.orm import Session

from tsoam.models.hr import Employee
from tsoam.models.leave import LeaveBalance, LeaveRequest, LeaveType
from tsoam.schemas.leave import LeaveRequestIn
from tsoam.services import system_logs
from tsoam.services.access import has_permission
from tsoam.services.identifiers import next_formatted_id

logger = logging.getLogger(__name__)

ACTIVE_STATES = ("submitted", "approved")

DEFAULT_LEAVE_TYPES: List[Dict[str, Any]] = [
    {"code": "AL", "name": "Annual Leave", "default_days": 21, "max_days_per_year": 30, "carry_over_allowed": True,
     "max_carry_over_days": 5, "category": "statutory"},
    {"code": "SL", "name": "Sick Leave", "default_days": 30, "max_days_per_year": 60, "requires_documentation": True,
     "category": "statutory"},
    {"code": "ML", "name": "Maternity Leave", "default_days": 90, "max_days_per_year": 120, "requires_documentation": True,
     "category": "statutory", "min_tenure_months": 12, "gender_restriction": "Female"},
    {"code": "PL", "name": "Paternity Leave", "default_days": 14, "max_days_per_year": 14, "requires_documentation": True,
     "category": "statutory", "min_tenure_months": 12, "gender_restriction": "Male"},
    {"code": "EL", "name": "Emergency Leave", "default_days": 5, "max_days_per_year": 10, "is_paid": False,
     "category": "company", "min_tenure_months": 3},
    {"code": "STL", "name": "Study Leave", "default_days": 30, "max_days_per_year": 60, "is_paid": False,
     "requires_documentation": True, "category": "special", "min_tenure_months": 24},
]


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _actor(user: Any) -> str:
    return getattr(user, "full_name", None) or getattr(user, "email", None) or "system"


# ------------------------------- date math ------------------------------- #

def working_days_between(start: date, end: date) -> int:
    """Mon-Fri days in [start, end]."""
    if end < start:
        return 0
    days = 0
    d = start
    while d <= end:
        if d.weekday() < 5:
            days += 1
        d += timedelta(days=1)
    return days


def next_working_day(d: date) -> date:
    d += timedelta(days=1)
    while d.weekday() >= 5:
        d += timedelta(days=1)
    return d


def _months_between(a: date, b: date) -> int:
    delta = relativedelta(b, a)
    return delta.years * 12 + delta.months


# ------------------------------- leave types ------------------------------- #

def ensure_default_leave_types(db: Session) -> None:
    existing = set(db.execute(select(LeaveType.code)).scalars().all())
    missing = [t for t in DEFAULT_LEAVE_TYPES if t["code"] not in existing]
    if not missing:
        return
    for row in missing:
        db.add(LeaveType(**row))
    db.commit()
    logger.info("seeded leave types %s", [t["code"] for t in missing])


def list_leave_types(db: Session) -> List[LeaveType]:
    ensure_default_leave_types(db)
    return list(db.execute(select(LeaveType).where(LeaveType.is_active.is_(True)).order_by(LeaveType.id)).scalars().all())


def _leave_type(db: Session, code: str) -> Optional[LeaveType]:
    ensure_default_leave_types(db)
    return db.execute(select(LeaveType).where(LeaveType.code == code.upper())).scalars().first()


# -------------------------------- balances -------------------------------- #

def get_or_create_balance(db: Session, employee: Employee, leave_type: LeaveType, year: int) -> LeaveBalance:
    bal = db.execute(
        select(LeaveBalance).where(
            LeaveBalance.employee_id == employee.id,
            LeaveBalance.leave_type_id == leave_type.id,
            LeaveBalance.year == year,
        )
    ).scalars().first()
    if bal is None:
        bal = LeaveBalance(
            employee_id=employee.id,
            leave_type_id=leave_type.id,
            year=year,
            entitlement=Decimal(leave_type.default_days),
            used=Decimal("0"),
            pending=Decimal("0"),
            carried_over=Decimal("0"),
        )
        bal.leave_type = leave_type
        db.add(bal)
        db.flush()
    return bal


def balances_for(db: Session, emp_pk, year: int) -> List[Dict[str, Any]]:
    employee = _employee(db, emp_pk)
    out = []
    for lt in list_leave_types(db):
        bal = get_or_create_balance(db, employee, lt, year)
        out.append(
            {
                "leave_type": lt.code,
                "year": year,
                "entitlement": bal.entitlement,
                "used": bal.used,
                "pending": bal.pending,
                "carried_over": bal.carried_over,
                "available": bal.available,
            }
        )
    db.commit()
    return out


def _employee(db: Session, emp_pk) -> Employee:
    emp = db.get(Employee, emp_pk)
    if emp is None or not emp.is_active:
        raise LookupError("Employee not found")
    return emp


# ------------------------------- validation ------------------------------- #

def _flag(flags: List[Dict[str, str]], kind: str, severity: str, message: str) -> None:
    flags.append({"type": kind, "severity": severity, "message": message})


def validate_request(db: Session, data: LeaveRequestIn, exclude_id=None) -> Dict[str, Any]:
    flags: List[Dict[str, str]] = []
    employee = _employee(db, data.employee_id)
    leave_type = _leave_type(db, data.leave_type)

    total_days = (data.end_date - data.start_date).days + 1
    working = working_days_between(data.start_date, data.end_date)
    resumption = next_working_day(data.end_date) if data.end_date >= data.start_date else None

    if data.end_date < data.start_date:
        _flag(flags, "date_range", "error", "End date must be after start date")
    if data.start_date < date.today():
        _flag(flags, "notice_period", "warning", "Leave start date is in the past")

    if leave_type is None or not leave_type.is_active:
        _flag(flags, "leave_type", "error", f"Unknown leave type {data.leave_type}")
    else:
        if leave_type.gender_restriction and employee.gender and employee.gender != leave_type.gender_restriction:
            _flag(flags, "eligibility", "error", f"{leave_type.name} is only available to {leave_type.gender_restriction.lower()} employees")
        if leave_type.min_tenure_months and employee.hire_date:
            tenure = _months_between(employee.hire_date, data.start_date)
            if tenure < leave_type.min_tenure_months:
                _flag(flags, "tenure", "error", f"{leave_type.name} requires {leave_type.min_tenure_months} months of service")
        if working > leave_type.max_days_per_year:
            _flag(flags, "max_days", "error", f"{leave_type.name} allows at most {leave_type.max_days_per_year} days per year")
        bal = get_or_create_balance(db, employee, leave_type, data.start_date.year)
        if working > bal.available:
            _flag(flags, "balance", "error", f"Insufficient balance: {bal.available} days available, {working} requested")
        if leave_type.requires_documentation:
            _flag(flags, "documentation", "warning", f"{leave_type.name} requires supporting documentation")

    overlap_stmt = select(LeaveRequest).where(
        LeaveRequest.employee_id == employee.id,
        LeaveRequest.status.in_(ACTIVE_STATES),
        LeaveRequest.start_date <= data.end_date,
        LeaveRequest.end_date >= data.start_date,
    )
    if exclude_id is not None:
        overlap_stmt = overlap_stmt.where(LeaveRequest.id != exclude_id)
    if db.execute(overlap_stmt).scalars().first():
        _flag(flags, "overlap", "error", "Overlaps with an existing leave request")

    return {
        "is_valid": not any(f["severity"] == "error" for f in flags),
        "working_days": working,
        "total_days": max(total_days, 0),
        "resumption_date": resumption,
        "flags": flags,
    }


# -------------------------------- workflow -------------------------------- #

def _append_step(req: LeaveRequest, action: str, user: Any, comments: Optional[str] = None) -> None:
    history = list(req.approval_history or [])
    history.append(
        {
            "step": len(history) + 1,
            "action": action,
            "by": _actor(user),
            "at": _now().isoformat(),
            "comments": comments,
        }
    )
    req.approval_history = history


def submit_request(db: Session, data: LeaveRequestIn, user: Any = None) -> LeaveRequest:
    result = validate_request(db, data)
    if not result["is_valid"]:
        errors = "; ".join(f["message"] for f in result["flags"] if f["severity"] == "error")
        raise ValueError(errors)

    employee = _employee(db, data.employee_id)
    leave_type = _leave_type(db, data.leave_type)
    bal = get_or_create_balance(db, employee, leave_type, data.start_date.year)
    bal.pending = (bal.pending or 0) + result["working_days"]

    req = LeaveRequest(
        request_no=next_formatted_id(db, LeaveRequest.request_no, f"LR-{data.start_date.year}-", width=4),
        employee_id=employee.id,
        leave_type_id=leave_type.id,
        start_date=data.start_date,
        end_date=data.end_date,
        resumption_date=result["resumption_date"],
        total_days=result["total_days"],
        working_days=result["working_days"],
        reason=data.reason,
        status="submitted",
        priority=data.priority,
        handover_notes=data.handover_notes,
        covering_employee=data.covering_employee,
        compliance_flags=result["flags"],
        approval_history=[],
    )
    _append_step(req, "submitted", user)
    db.add(req)
    system_logs.record(
        db, action="Submit leave request", module="HR", user=user, entity_type="leave_request",
        entity_id=req.request_no, details={"employee": employee.employee_id, "days": result["working_days"]},
    )
    db.commit()
    db.refresh(req)
    logger.info("leave request %s submitted employee=%s days=%s", req.request_no, employee.employee_id, req.working_days)
    return req


def get_request(db: Session, req_pk) -> LeaveRequest:
    req = db.get(LeaveRequest, req_pk)
    if req is None:
        raise LookupError("Leave request not found")
    return req


def _balance_of(db: Session, req: LeaveRequest) -> LeaveBalance:
    return get_or_create_balance(db, req.employee, req.leave_type, req.start_date.year)


def approve_request(db: Session, req_pk, user: Any, comments: Optional[str] = None) -> LeaveRequest:
    req = get_request(db, req_pk)
    if req.status != "submitted":
        raise ValueError(f"Cannot approve a request that is {req.status}")
    bal = _balance_of(db, req)
    bal.pending = max((bal.pending or 0) - req.working_days, 0)
    bal.used = (bal.used or 0) + req.working_days
    req.status = "approved"
    req.decided_at = _now()
    _append_step(req, "approved", user, comments)
    system_logs.record(db, action="Approve leave request", module="HR", user=user, entity_type="leave_request", entity_id=req.request_no, severity="Audit")
    db.commit()
    db.refresh(req)
    return req


def reject_request(db: Session, req_pk, user: Any, comments: Optional[str] = None) -> LeaveRequest:
    req = get_request(db, req_pk)
    if req.status != "submitted":
        raise ValueError(f"Cannot reject a request that is {req.status}")
    bal = _balance_of(db, req)
    bal.pending = max((bal.pending or 0) - req.working_days, 0)
    req.status = "rejected"
    req.decided_at = _now()
    _append_step(req, "rejected", user, comments)
    system_logs.record(db, action="Reject leave request", module="HR", user=user, entity_type="leave_request", entity_id=req.request_no, severity="Audit")
    db.commit()
    db.refresh(req)
    return req


def cancel_request(db: Session, req_pk, user: Any, comments: Optional[str] = None) -> LeaveRequest:
    req = get_request(db, req_pk)
    is_owner = getattr(user, "employee_id", None) and user.employee_id == req.employee.employee_id
    if not is_owner and not has_permission(getattr(user, "role", None), "can_access_hr"):
        raise PermissionError("Only the employee or HR can cancel this request")

    bal = _balance_of(db, req)
    if req.status == "submitted":
        bal.pending = max((bal.pending or 0) - req.working_days, 0)
    elif req.status == "approved":
        if req.start_date <= date.today():
            raise ValueError("Leave has already started and cannot be cancelled")
        bal.used = max((bal.used or 0) - req.working_days, 0)
    else:
        raise ValueError(f"Cannot cancel a request that is {req.status}")
    req.status = "cancelled"
    _append_step(req, "cancelled", user, comments)
    db.commit()
    db.refresh(req)
    return req


def list_requests(
    db: Session,
    *,
    employee_id=None,
    status: Optional[str] = None,
    leave_type: Optional[str] = None,
) -> List[LeaveRequest]:
    stmt = select(LeaveRequest)
    if employee_id is not None:
        stmt = stmt.where(LeaveRequest.employee_id == employee_id)
    if status:
        stmt = stmt.where(LeaveRequest.status == status)
    if leave_type:
        stmt = stmt.join(LeaveType).where(LeaveType.code == leave_type.upper())
    return list(db.execute(stmt.order_by(LeaveRequest.start_date.desc())).scalars().all())


def calendar(db: Session, year: int, month: int) -> List[LeaveRequest]:
    first = date(year, month, 1)
    last = first + relativedelta(months=1) - timedelta(days=1)
    stmt = (
        select(LeaveRequest)
        .where(
            LeaveRequest.status.in_(ACTIVE_STATES),
            LeaveRequest.start_date <= last,
            LeaveRequest.end_date >= first,
        )
        .order_by(LeaveRequest.start_date)
    )
    return list(db.execute(stmt).scalars().all())


def analytics(db: Session, start: date, end: date) -> Dict[str, Any]:
    rows = db.execute(
        select(LeaveRequest).where(LeaveRequest.start_date >= start, LeaveRequest.start_date <= end)
    ).scalars().all()
    by_status: Dict[str, int] = {}
    by_type: Dict[str, int] = {}
    by_dept: Dict[str, int] = {}
    hours: List[float] = []
    for r in rows:
        by_status[r.status] = by_status.get(r.status, 0) + 1
        by_type[r.leave_type.code] = by_type.get(r.leave_type.code, 0) + 1
        if r.status == "approved":
            dept = r.employee.department or "Unassigned"
            by_dept[dept] = by_dept.get(dept, 0) + r.working_days
        if r.decided_at and r.submitted_at:
            decided = r.decided_at if r.decided_at.tzinfo else r.decided_at.replace(tzinfo=timezone.utc)
            submitted = r.submitted_at if r.submitted_at.tzinfo else r.submitted_at.replace(tzinfo=timezone.utc)
            hours.append((decided - submitted).total_seconds() / 3600)
    return {
        "total_requests": len(rows),
        "by_status": by_status,
        "by_type": by_type,
        "days_by_department": by_dept,
        "average_processing_hours": round(sum(hours) / len(hours), 2) if hours else None,
    }


def request_out(req: LeaveRequest) -> Dict[str, Any]:
    return {
        "id": req.id,
        "request_no": req.request_no,
        "employee_id": req.employee_id,
        "leave_type": req.leave_type.code,
        "start_date": req.start_date,
        "end_date": req.end_date,
        "resumption_date": req.resumption_date,
        "total_days": req.total_days,
        "working_days": req.working_days,
        "reason": req.reason,
        "status": req.status,
        "priority": req.priority,
        "handover_notes": req.handover_notes,
        "covering_employee": req.covering_employee,
        "approval_history": req.approval_history or [],
        "compliance_flags": req.compliance_flags or [],
        "submitted_at": req.submitted_at,
        "decided_at": req.decided_at,
    }
