# tsoam/services/hr.py
"""
HR service: employees, payroll records and performance reviews.

- Employee numbers follow TSOAM-EMP-###; payroll records PAY-###.
- Payroll records compute Kenyan statutory deductions (payroll_rates) unless
  the caller supplies them.
- `assemble_batch` turns the Pending records of a pay period into a payroll
  approval batch for Finance and marks those records Submitted.
"""

from __future__ import annotations

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from tsoam.models.hr import Employee, PayrollRecord, PerformanceReview
from tsoam.models.payroll_approval import PayrollBatch
from tsoam.schemas.hr import (
    EmployeeCreate,
    EmployeeUpdate,
    PayrollBatchAssemble,
    PayrollRecordCreate,
    PerformanceReviewCreate,
    PerformanceReviewUpdate,
)
from tsoam.schemas.payroll_approval import BatchEmployeeIn, BatchSubmit, Deductions
from tsoam.services import payroll_approval, system_logs
from tsoam.services.identifiers import next_formatted_id
from tsoam.services.payroll_rates import compute_statutory_deductions

logger = logging.getLogger(__name__)

EMPLOYEE_PREFIX = "TSOAM-EMP-"
PAYROLL_PREFIX = "PAY-"

_SCORE_FIELDS = (
    "job_knowledge",
    "work_quality",
    "productivity",
    "communication",
    "teamwork",
    "initiative",
    "punctuality",
)


# ----------------------------- Decimal helpers ----------------------------- #

def D(val) -> Decimal:
    try:
        return val if isinstance(val, Decimal) else Decimal(str(val))
    except Exception:
        return Decimal("0")


def q2(val) -> Decimal:
    return D(val).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def _actor(user: Any) -> Optional[str]:
    return getattr(user, "full_name", None) or getattr(user, "email", None)


# -------------------------------- employees -------------------------------- #

def create_employee(db: Session, data: EmployeeCreate, user: Any = None) -> Employee:
    emp = Employee(
        **data.model_dump(),
        employee_id=next_formatted_id(db, Employee.employee_id, EMPLOYEE_PREFIX),
        is_active=True,
    )
    db.add(emp)
    system_logs.record(db, action="Create employee", module="HR", user=user, entity_type="employee", entity_id=emp.employee_id)
    db.commit()
    db.refresh(emp)
    logger.info("employee created employee_id=%s", emp.employee_id)
    return emp


def list_employees(
    db: Session,
    *,
    department: Optional[str] = None,
    status: Optional[str] = None,
    search: Optional[str] = None,
) -> List[Employee]:
    stmt = select(Employee).where(Employee.is_active.is_(True))
    if department:
        stmt = stmt.where(Employee.department == department)
    if status:
        stmt = stmt.where(Employee.employment_status == status)
    if search:
        like = f"%{search.strip()}%"
        stmt = stmt.where(
            or_(
                Employee.first_name.ilike(like),
                Employee.last_name.ilike(like),
                Employee.employee_id.ilike(like),
                Employee.email.ilike(like),
                Employee.position.ilike(like),
            )
        )
    return list(db.execute(stmt.order_by(Employee.employee_id)).scalars().all())


def get_employee(db: Session, emp_pk) -> Employee:
    emp = db.get(Employee, emp_pk)
    if emp is None or not emp.is_active:
        raise LookupError("Employee not found")
    return emp


def update_employee(db: Session, emp_pk, data: EmployeeUpdate, user: Any = None) -> Employee:
    emp = get_employee(db, emp_pk)
    changes = data.model_dump(exclude_unset=True)
    for k, v in changes.items():
        setattr(emp, k, v)
    system_logs.record(
        db, action="Update employee", module="HR", user=user, entity_type="employee",
        entity_id=emp.employee_id, details={"fields": sorted(changes)},
    )
    db.commit()
    db.refresh(emp)
    return emp


def deactivate_employee(db: Session, emp_pk, user: Any = None) -> Employee:
    emp = get_employee(db, emp_pk)
    emp.is_active = False
    emp.employment_status = "Terminated"
    system_logs.record(db, action="Deactivate employee", module="HR", user=user, entity_type="employee", entity_id=emp.employee_id, severity="Warning")
    db.commit()
    db.refresh(emp)
    return emp


def employee_stats(db: Session) -> Dict[str, Any]:
    active_filter = Employee.is_active.is_(True)
    total = db.execute(select(func.count(Employee.id)).where(active_filter)).scalar_one()
    active = db.execute(
        select(func.count(Employee.id)).where(active_filter, Employee.employment_status == "Active")
    ).scalar_one()
    by_dept = db.execute(
        select(Employee.department, func.count(Employee.id)).where(active_filter).group_by(Employee.department)
    ).all()
    by_type = db.execute(
        select(Employee.employment_type, func.count(Employee.id)).where(active_filter).group_by(Employee.employment_type)
    ).all()
    return {
        "total": total,
        "active": active,
        "by_department": {(d or "Unassigned"): n for d, n in by_dept},
        "by_employment_type": {t: n for t, n in by_type},
    }


def redact_salary(emp: Employee) -> Dict[str, Any]:
    """Employee as a dict with salary fields blanked."""
    data = {c.key: getattr(emp, c.key) for c in Employee.__table__.columns}
    data["basic_salary"] = None
    data["allowances"] = None
    return data


# ----------------------------- payroll records ----------------------------- #

def create_payroll_record(db: Session, data: PayrollRecordCreate, user: Any = None) -> PayrollRecord:
    emp = get_employee(db, data.employee_id)

    basic = q2(data.basic_salary if data.basic_salary is not None else emp.basic_salary)
    allowances = q2(data.allowances if data.allowances is not None else emp.allowances)
    overtime_pay = q2(D(data.overtime_hours) * D(data.overtime_rate))
    gross = q2(basic + allowances + overtime_pay)

    statutory = compute_statutory_deductions(gross)
    paye = q2(data.paye) if data.paye is not None else statutory["paye"]
    nssf = q2(data.nssf) if data.nssf is not None else statutory["nssf"]
    sha = q2(data.sha) if data.sha is not None else statutory["sha"]
    housing = q2(data.housing_levy) if data.housing_levy is not None else statutory["housing_levy"]

    total = q2(paye + nssf + sha + housing + data.loan_deduction + data.insurance_deduction + data.other_deductions)
    net = q2(gross - total)
    if net < 0:
        raise ValueError("Deductions exceed gross pay")

    record = PayrollRecord(
        payroll_id=next_formatted_id(db, PayrollRecord.payroll_id, PAYROLL_PREFIX),
        employee_id=emp.id,
        period_start=data.period_start,
        period_end=data.period_end,
        basic_salary=basic,
        allowances=allowances,
        overtime_hours=data.overtime_hours,
        overtime_rate=data.overtime_rate,
        overtime_pay=overtime_pay,
        gross_pay=gross,
        paye=paye,
        nssf=nssf,
        sha=sha,
        housing_levy=housing,
        loan_deduction=q2(data.loan_deduction),
        insurance_deduction=q2(data.insurance_deduction),
        other_deductions=q2(data.other_deductions),
        total_deductions=total,
        net_pay=net,
        status="Pending",
        processed_by=_actor(user),
    )
    db.add(record)
    system_logs.record(
        db, action="Process payroll", module="HR", user=user, entity_type="payroll_record",
        entity_id=record.payroll_id, details={"employee": emp.employee_id, "net": str(net)},
    )
    db.commit()
    db.refresh(record)
    logger.info("payroll record %s employee=%s gross=%s net=%s", record.payroll_id, emp.employee_id, gross, net)
    return record


def list_payroll_records(
    db: Session, emp_pk, *, year: Optional[int] = None, month: Optional[int] = None
) -> List[PayrollRecord]:
    get_employee(db, emp_pk)
    rows = db.execute(
        select(PayrollRecord).where(PayrollRecord.employee_id == emp_pk).order_by(PayrollRecord.period_start.desc())
    ).scalars().all()
    if year is not None:
        rows = [r for r in rows if r.period_start.year == year]
    if month is not None:
        rows = [r for r in rows if r.period_start.month == month]
    return list(rows)


def assemble_batch(db: Session, data: PayrollBatchAssemble, user: Any = None) -> PayrollBatch:
    records = db.execute(
        select(PayrollRecord)
        .where(
            PayrollRecord.status == "Pending",
            PayrollRecord.period_start >= data.period_start,
            PayrollRecord.period_end <= data.period_end,
        )
        .order_by(PayrollRecord.payroll_id)
    ).scalars().all()
    if not records:
        raise ValueError("No pending payroll records for this period")

    period = data.period_start.strftime("%B %Y")
    batch_id = data.batch_id or f"PAYROLL-{data.period_start.strftime('%Y%m')}-{len(records):03d}-{records[0].payroll_id}"

    employees = [
        BatchEmployeeIn(
            employee_id=r.employee.employee_id,
            employee_name=r.employee.full_name,
            gross_salary=r.gross_pay,
            net_salary=r.net_pay,
            deductions=Deductions(
                paye=r.paye,
                nssf=r.nssf,
                sha=r.sha,
                housing_levy=r.housing_levy,
                loan=r.loan_deduction,
                insurance=r.insurance_deduction,
                total=r.total_deductions,
            ),
        )
        for r in records
    ]
    summary = {
        "total_basic_salary": str(q2(sum((D(r.basic_salary) for r in records), Decimal("0")))),
        "total_allowances": str(q2(sum((D(r.allowances) for r in records), Decimal("0")))),
    }
    if data.notes:
        summary["notes"] = data.notes

    for r in records:
        r.status = "Submitted"
        r.batch_id = batch_id
    db.flush()

    return payroll_approval.submit_batch(
        db,
        BatchSubmit(batch_id=batch_id, period=period, employees=employees, summary=summary),
        user,
    )


# --------------------------- performance reviews --------------------------- #

def _overall(review: PerformanceReview) -> Optional[Decimal]:
    scores = [getattr(review, f) for f in _SCORE_FIELDS if getattr(review, f) is not None]
    if not scores:
        return None
    return q2(Decimal(sum(scores)) / Decimal(len(scores)))


def create_review(db: Session, data: PerformanceReviewCreate, user: Any = None) -> PerformanceReview:
    get_employee(db, data.employee_id)
    review = PerformanceReview(**data.model_dump(), reviewer=_actor(user))
    review.overall_rating = _overall(review)
    db.add(review)
    db.commit()
    db.refresh(review)
    return review


def list_reviews(db: Session, emp_pk=None) -> List[PerformanceReview]:
    stmt = select(PerformanceReview)
    if emp_pk is not None:
        stmt = stmt.where(PerformanceReview.employee_id == emp_pk)
    return list(db.execute(stmt.order_by(PerformanceReview.review_date.desc())).scalars().all())


def update_review(db: Session, review_pk, data: PerformanceReviewUpdate) -> PerformanceReview:
    review = db.get(PerformanceReview, review_pk)
    if review is None:
        raise LookupError("Performance review not found")
    if review.status == "completed":
        raise ValueError("Completed reviews cannot be edited")
    for k, v in data.model_dump(exclude_unset=True).items():
        setattr(review, k, v)
    review.overall_rating = _overall(review)
    db.commit()
    db.refresh(review)
    return review


def delete_review(db: Session, review_pk) -> None:
    review = db.get(PerformanceReview, review_pk)
    if review is None:
        raise LookupError("Performance review not found")
    db.delete(review)
    db.commit()
