# tsoam/services/payroll_approval.py
"""
Payroll batch approval workflow.

HR submits a batch of employee pay lines; Finance approves or rejects the
whole batch or individual employees. Batch-level actions apply only to lines
that are still Pending. After every action the batch status is recomputed:

- no Pending lines left  -> finalised: Fully_Approved when at least one line
  is Approved, otherwise Rejected. Disbursement reports are produced and
  the batch leaves the pending queue.
- some Pending lines, at least one Approved  -> Partially_Approved
- otherwise                                   -> Pending

Finance sees `finance_notifications` (newest 100 kept); HR sees
`hr_finance_notices`. Matching HR payroll records follow their line status.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterable, List, Optional, Sequence

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from tsoam.models.hr import Employee, PayrollRecord
from tsoam.models.payroll_approval import (
    ApprovalAction,
    DisbursementReport,
    FinanceNotification,
    HRFinanceNotice,
    PayrollBatch,
    PayrollBatchItem,
)
from tsoam.schemas.payroll_approval import BatchSubmit, EmployeeRejection
from tsoam.services import system_logs
from tsoam.services.identifiers import timestamp_ms

logger = logging.getLogger(__name__)

PENDING_STATES = ("Pending", "Partially_Approved")
MAX_NOTIFICATIONS = 100
APPROVAL_WINDOW = timedelta(hours=48)


# ----------------------------- Decimal helpers ----------------------------- #

def D(val) -> Decimal:
    try:
        return val if isinstance(val, Decimal) else Decimal(str(val))
    except Exception:
        return Decimal("0")


def q2(val) -> Decimal:
    return D(val).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def q0(val) -> Decimal:
    return D(val).quantize(Decimal("1"), rounding=ROUND_HALF_UP)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _actor(user: Any) -> str:
    return getattr(user, "full_name", None) or getattr(user, "email", None) or "Finance"


# ------------------------------- priority ------------------------------- #

def calculate_priority(amount, employee_count: int) -> str:
    amount = D(amount)
    if amount > 5_000_000 or employee_count > 50:
        return "urgent"
    if amount > 2_000_000 or employee_count > 20:
        return "high"
    if amount > 500_000 or employee_count > 10:
        return "medium"
    return "low"


# ---------------------------- notifications ---------------------------- #

def _notify(db: Session, **fields) -> FinanceNotification:
    note = FinanceNotification(**fields)
    db.add(note)
    db.flush()
    stale = (
        db.execute(
            select(FinanceNotification.id)
            .order_by(FinanceNotification.created_at.desc(), FinanceNotification.id.desc())
            .offset(MAX_NOTIFICATIONS)
        )
        .scalars()
        .all()
    )
    if stale:
        db.execute(delete(FinanceNotification).where(FinanceNotification.id.in_(stale)))
    return note


def _hr_notice(db: Session, event_type: str, batch_id: str, data: Dict[str, Any]) -> HRFinanceNotice:
    notice = HRFinanceNotice(event_type=event_type, batch_id=batch_id, data=data)
    db.add(notice)
    logger.info("hr notice %s batch=%s", event_type, batch_id)
    return notice


def list_notifications(db: Session, unread_only: bool = False) -> List[FinanceNotification]:
    stmt = select(FinanceNotification)
    if unread_only:
        stmt = stmt.where(FinanceNotification.read.is_(False))
    stmt = stmt.order_by(FinanceNotification.created_at.desc(), FinanceNotification.id.desc())
    return list(db.execute(stmt).scalars().all())


def mark_notification_read(db: Session, notification_id: int) -> FinanceNotification:
    note = db.get(FinanceNotification, notification_id)
    if note is None:
        raise LookupError("Notification not found")
    note.read = True
    db.commit()
    db.refresh(note)
    return note


def list_hr_notices(db: Session, batch_id: Optional[str] = None, limit: int = 50) -> List[HRFinanceNotice]:
    stmt = select(HRFinanceNotice)
    if batch_id:
        stmt = stmt.where(HRFinanceNotice.batch_id == batch_id)
    stmt = stmt.order_by(HRFinanceNotice.created_at.desc(), HRFinanceNotice.id.desc()).limit(limit)
    return list(db.execute(stmt).scalars().all())


# ------------------------------- lookups ------------------------------- #

def _find(db: Session, batch_id: str) -> Optional[PayrollBatch]:
    return db.execute(select(PayrollBatch).where(PayrollBatch.batch_id == batch_id)).scalars().first()


def get_batch(db: Session, batch_id: str) -> PayrollBatch:
    batch = _find(db, batch_id)
    if batch is None:
        raise LookupError(f"Payroll batch {batch_id} not found")
    return batch


def _open_batch(db: Session, batch_id: str) -> PayrollBatch:
    batch = get_batch(db, batch_id)
    if batch.status not in PENDING_STATES:
        raise ValueError(f"Payroll batch {batch_id} is already {batch.status}")
    return batch


def pending_batches(db: Session) -> List[PayrollBatch]:
    stmt = (
        select(PayrollBatch)
        .where(PayrollBatch.status.in_(PENDING_STATES))
        .order_by(PayrollBatch.submitted_date.desc())
    )
    return list(db.execute(stmt).scalars().all())


def history(db: Session, limit: int = 100) -> List[PayrollBatch]:
    stmt = (
        select(PayrollBatch)
        .where(PayrollBatch.status.not_in(PENDING_STATES))
        .order_by(PayrollBatch.finalized_at.desc(), PayrollBatch.submitted_date.desc())
        .limit(limit)
    )
    return list(db.execute(stmt).scalars().all())


# -------------------------------- submit -------------------------------- #

def submit_batch(db: Session, data: BatchSubmit, user: Any = None) -> PayrollBatch:
    if not data.batch_id or not data.batch_id.strip():
        raise ValueError("batch_id is required")
    if not data.employees:
        raise ValueError("At least one employee is required")
    if _find(db, data.batch_id):
        raise FileExistsError(f"Payroll batch {data.batch_id} already exists")

    now = _now()
    employees = data.employees
    gross = q2(data.total_gross_amount if data.total_gross_amount is not None else sum((e.gross_salary for e in employees), Decimal("0")))
    net = q2(data.total_net_amount if data.total_net_amount is not None else sum((e.net_salary for e in employees), Decimal("0")))
    count = data.total_employees if data.total_employees is not None else len(employees)

    def _total(field: str) -> Decimal:
        return q2(sum((D(getattr(e.deductions, field)) for e in employees), Decimal("0")))

    summary = {
        # HR sends basic and allowance totals in `summary`; batch lines only carry gross.
        "total_basic_salary": "0.00",
        "total_allowances": "0.00",
        "total_paye": str(_total("paye")),
        "total_nssf": str(_total("nssf")),
        "total_sha": str(_total("sha")),
        "total_housing_levy": str(_total("housing_levy")),
        "total_loans": str(_total("loan")),
        "total_insurance": str(_total("insurance")),
        "total_deductions": str(_total("total")),
        "projected_cash_flow": str(net),
        "bank_balance": "0.00",
        "approval_required": True,
    }
    summary.update(data.summary or {})

    priority = data.priority or calculate_priority(net, count)
    batch = PayrollBatch(
        batch_id=data.batch_id.strip(),
        period=data.period,
        total_employees=count,
        total_gross_amount=gross,
        total_net_amount=net,
        status="Pending",
        submitted_date=now,
        submitted_by=data.submitted_by or _actor(user),
        summary=summary,
        approval_deadline=data.approval_deadline or now + APPROVAL_WINDOW,
        priority=priority,
        department=data.department or "HR",
        fiscal_year=data.fiscal_year or now.year,
        quarter=data.quarter or math.ceil(now.month / 3),
    )
    for e in employees:
        batch.items.append(
            PayrollBatchItem(
                employee_id=e.employee_id,
                employee_name=e.employee_name,
                gross_salary=q2(e.gross_salary),
                net_salary=q2(e.net_salary),
                deductions={k: str(q2(v)) for k, v in e.deductions.model_dump().items()},
                status="Pending",
            )
        )
    db.add(batch)

    _notify(
        db,
        type="payroll_approval",
        title="New Payroll Batch Requires Approval",
        message=f"Payroll batch {batch.batch_id} for {batch.period} with {count} employees "
        f"(KES {net:,.2f}) awaits Finance approval",
        batch_id=batch.batch_id,
        amount=net,
        priority=priority,
        expires_at=batch.approval_deadline,
        meta={"submitted_by": batch.submitted_by, "total_employees": count},
    )
    system_logs.record(
        db, action="Submit payroll batch", module="HR", user=user, entity_type="payroll_batch",
        entity_id=batch.batch_id, severity="Audit", details={"employees": count, "net": str(net)},
    )
    db.commit()
    db.refresh(batch)
    logger.info("payroll batch submitted batch=%s employees=%s net=%s priority=%s", batch.batch_id, count, net, priority)
    return batch


# ------------------------------ line changes ------------------------------ #

def _sync_payroll_record(db: Session, batch_id: str, item: PayrollBatchItem) -> None:
    record = db.execute(
        select(PayrollRecord)
        .join(Employee, Employee.id == PayrollRecord.employee_id)
        .where(PayrollRecord.batch_id == batch_id, Employee.employee_id == item.employee_id)
    ).scalars().first()
    if record is not None:
        record.status = item.status


def _approve_item(db: Session, batch: PayrollBatch, item: PayrollBatchItem, by: str, now: datetime) -> None:
    item.status = "Approved"
    item.approved_by = by
    item.approved_date = now
    _sync_payroll_record(db, batch.batch_id, item)


def _reject_item(db: Session, batch: PayrollBatch, item: PayrollBatchItem, by: str, now: datetime, reason: str) -> None:
    item.status = "Rejected"
    item.rejected_by = by
    item.rejected_date = now
    item.rejection_reason = reason
    _sync_payroll_record(db, batch.batch_id, item)


def _matching_items(batch: PayrollBatch, employee_ids: Iterable[str]) -> List[PayrollBatchItem]:
    wanted = set(employee_ids)
    found = [i for i in batch.items if i.employee_id in wanted]
    if not found:
        raise LookupError(f"None of the given employees belong to batch {batch.batch_id}")
    return found


# ------------------------------ settlement ------------------------------ #

def _settle(db: Session, batch: PayrollBatch, user: Any) -> None:
    db.flush()
    pending = sum(1 for i in batch.items if i.status == "Pending")
    approved = sum(1 for i in batch.items if i.status == "Approved")

    if pending:
        batch.status = "Partially_Approved" if approved else "Pending"
        return

    batch.status = "Fully_Approved" if approved else "Rejected"
    batch.finalized_at = _now()
    _write_disbursement_reports(db, batch, user)
    _hr_notice(
        db,
        "batch_approved" if approved else "batch_rejected",
        batch.batch_id,
        {
            "status": batch.status,
            "period": batch.period,
            "approved_count": approved,
            "rejected_count": len(batch.items) - approved,
            "finalized_by": _actor(user),
        },
    )
    logger.info("payroll batch finalised batch=%s status=%s", batch.batch_id, batch.status)


# ------------------------------ batch actions ------------------------------ #

def approve_batch(db: Session, batch_id: str, user: Any, notes: Optional[str] = None) -> PayrollBatch:
    batch = _open_batch(db, batch_id)
    by, now = _actor(user), _now()
    changed = [i for i in batch.items if i.status == "Pending"]
    for item in changed:
        _approve_item(db, batch, item, by, now)

    amount = q2(sum((D(i.net_salary) for i in changed), Decimal("0")))
    batch.actions.append(
        ApprovalAction(
            action_type="approve", performed_by=by, timestamp=now, notes=notes,
            employee_ids=[i.employee_id for i in changed],
        )
    )
    _notify(
        db,
        type="payroll_approved",
        title="Payroll Batch Approved",
        message=f"Payroll batch {batch.batch_id} approved by {by} ({len(changed)} payments, KES {amount:,.2f})",
        batch_id=batch.batch_id,
        amount=amount,
        priority="medium",
    )
    system_logs.record(
        db, action="Approve payroll batch", module="Finance", user=user, entity_type="payroll_batch",
        entity_id=batch.batch_id, severity="Audit", details={"approved": len(changed), "amount": str(amount)},
    )
    _settle(db, batch, user)
    db.commit()
    db.refresh(batch)
    logger.info("payroll batch approved batch=%s by=%s", batch.batch_id, by)
    return batch


def reject_batch(db: Session, batch_id: str, user: Any, reason: str) -> PayrollBatch:
    if not reason or not reason.strip():
        raise ValueError("A rejection reason is required")
    batch = _open_batch(db, batch_id)
    by, now = _actor(user), _now()
    changed = [i for i in batch.items if i.status == "Pending"]
    for item in changed:
        _reject_item(db, batch, item, by, now, reason)

    batch.actions.append(
        ApprovalAction(
            action_type="reject", performed_by=by, timestamp=now, reason=reason,
            employee_ids=[i.employee_id for i in changed],
        )
    )
    _notify(
        db,
        type="payroll_rejected",
        title="Payroll Batch Rejected",
        message=f"Payroll batch {batch.batch_id} rejected by {by}: {reason}",
        batch_id=batch.batch_id,
        amount=q2(sum((D(i.net_salary) for i in changed), Decimal("0"))),
        priority="high",
    )
    system_logs.record(
        db, action="Reject payroll batch", module="Finance", user=user, entity_type="payroll_batch",
        entity_id=batch.batch_id, severity="Audit", details={"rejected": len(changed), "reason": reason},
    )
    _settle(db, batch, user)
    db.commit()
    db.refresh(batch)
    logger.info("payroll batch rejected batch=%s by=%s reason=%s", batch.batch_id, by, reason)
    return batch


def approve_individual(
    db: Session, batch_id: str, employee_ids: Sequence[str], user: Any, notes: Optional[str] = None
) -> PayrollBatch:
    if not employee_ids:
        raise ValueError("employee_ids must not be empty")
    batch = _open_batch(db, batch_id)
    by, now = _actor(user), _now()
    changed = [i for i in _matching_items(batch, employee_ids) if i.status == "Pending"]
    for item in changed:
        _approve_item(db, batch, item, by, now)
        _hr_notice(
            db,
            "individual_approved",
            batch.batch_id,
            {
                "employee_id": item.employee_id,
                "employee_name": item.employee_name,
                "amount": str(item.net_salary),
                "approved_by": by,
                "notes": notes,
            },
        )

    amount = q2(sum((D(i.net_salary) for i in changed), Decimal("0")))
    batch.actions.append(
        ApprovalAction(
            action_type="approve_partial", performed_by=by, timestamp=now, notes=notes,
            employee_ids=[i.employee_id for i in changed],
        )
    )
    if changed:
        _notify(
            db,
            type="payroll_approved",
            title="Individual Payments Approved",
            message=f"{len(changed)} payments approved in batch {batch.batch_id} (KES {amount:,.2f})",
            batch_id=batch.batch_id,
            amount=amount,
            priority="medium",
            meta={"employee_ids": [i.employee_id for i in changed]},
        )
    system_logs.record(
        db, action="Approve individual payments", module="Finance", user=user, entity_type="payroll_batch",
        entity_id=batch.batch_id, severity="Audit", details={"employee_ids": [i.employee_id for i in changed]},
    )
    _settle(db, batch, user)
    db.commit()
    db.refresh(batch)
    return batch


def reject_individual(db: Session, batch_id: str, rejections: Sequence[EmployeeRejection], user: Any) -> PayrollBatch:
    if not rejections:
        raise ValueError("rejections must not be empty")
    batch = _open_batch(db, batch_id)
    by, now = _actor(user), _now()
    reasons = {r.employee_id: r.reason for r in rejections}
    changed = [i for i in _matching_items(batch, reasons) if i.status == "Pending"]
    for item in changed:
        _reject_item(db, batch, item, by, now, reasons[item.employee_id])
        _hr_notice(
            db,
            "individual_rejected",
            batch.batch_id,
            {
                "employee_id": item.employee_id,
                "employee_name": item.employee_name,
                "amount": str(item.net_salary),
                "rejected_by": by,
                "reason": item.rejection_reason,
            },
        )

    batch.actions.append(
        ApprovalAction(
            action_type="reject", performed_by=by, timestamp=now,
            reason="; ".join(f"{i.employee_id}: {i.rejection_reason}" for i in changed) or None,
            employee_ids=[i.employee_id for i in changed],
        )
    )
    if changed:
        _notify(
            db,
            type="payroll_rejected",
            title="Individual Payments Rejected",
            message=f"{len(changed)} payments rejected in batch {batch.batch_id}",
            batch_id=batch.batch_id,
            amount=q2(sum((D(i.net_salary) for i in changed), Decimal("0"))),
            priority="high",
            meta={"employee_ids": [i.employee_id for i in changed]},
        )
    system_logs.record(
        db, action="Reject individual payments", module="Finance", user=user, entity_type="payroll_batch",
        entity_id=batch.batch_id, severity="Audit", details={"employee_ids": [i.employee_id for i in changed]},
    )
    _settle(db, batch, user)
    db.commit()
    db.refresh(batch)
    return batch


# --------------------------- financial impact --------------------------- #

def financial_impact(db: Session, batch_id: str) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "approved_count": 0,
        "approved_amount": Decimal("0.00"),
        "rejected_count": 0,
        "rejected_amount": Decimal("0.00"),
        "pending_count": 0,
        "pending_amount": Decimal("0.00"),
        "cash_flow_impact": Decimal("0.00"),
    }
    batch = _find(db, batch_id)
    if batch is None:
        return out
    for item in batch.items:
        key = item.status.lower()
        out[f"{key}_count"] += 1
        out[f"{key}_amount"] = q2(out[f"{key}_amount"] + D(item.net_salary))
    out["cash_flow_impact"] = out["approved_amount"]
    return out


# --------------------------- disbursement reports --------------------------- #

def _write_disbursement_reports(db: Session, batch: PayrollBatch, user: Any) -> List[DisbursementReport]:
    ts = timestamp_ms()
    by = _actor(user)
    reports: List[DisbursementReport] = []

    approved = [i for i in batch.items if i.status == "Approved"]
    rejected = [i for i in batch.items if i.status == "Rejected"]

    if approved:
        gross = q0(sum((D(i.gross_salary) for i in approved), Decimal("0")))
        net = q0(sum((D(i.net_salary) for i in approved), Decimal("0")))
        deductions = q0(sum((D(i.gross_salary) - D(i.net_salary) for i in approved), Decimal("0")))
        rows = []
        for i in approved:
            i.payment_reference = f"PAY-{i.employee_id}-{ts}"
            rows.append(
                {
                    "employee_id": i.employee_id,
                    "employee_name": i.employee_name,
                    "gross_salary": str(q0(i.gross_salary)),
                    "net_salary": str(q0(i.net_salary)),
                    "deductions": dict(i.deductions or {}),
                    "payment_reference": i.payment_reference,
                    "approved_by": i.approved_by,
                }
            )
        report = DisbursementReport(
            report_id=f"DISB-APPROVED-{batch.batch_id}-{ts}",
            batch_id=batch.batch_id,
            report_type="approved_disbursement",
            period=batch.period,
            total_employees=len(approved),
            total_gross_amount=gross,
            total_deductions=deductions,
            total_net_amount=net,
            disbursement_method="Bank Transfer",
            status="Approved",
            approved_by=by,
            employees=rows,
            notes=f"Approved payments for {batch.period}",
        )
        db.add(report)
        reports.append(report)
        _hr_notice(db, "disbursement_approved", batch.batch_id, {"report_id": report.report_id, "total_net_amount": str(net), "employees": len(approved)})
        _notify(
            db,
            type="payment_disbursed",
            title="Disbursement Report Ready",
            message=f"Disbursement of KES {net:,.0f} to {len(approved)} employees for {batch.period} is ready",
            batch_id=batch.batch_id,
            amount=net,
            priority="medium",
            meta={"report_id": report.report_id},
        )

    if rejected:
        rows = [
            {
                "employee_id": i.employee_id,
                "employee_name": i.employee_name,
                "gross_salary": str(q0(i.gross_salary)),
                "net_salary": str(q0(i.net_salary)),
                "rejection_reason": i.rejection_reason,
                "rejected_by": i.rejected_by,
            }
            for i in rejected
        ]
        report = DisbursementReport(
            report_id=f"DISB-REJECTED-{batch.batch_id}-{ts}",
            batch_id=batch.batch_id,
            report_type="rejected_disbursement",
            period=batch.period,
            total_employees=len(rejected),
            total_gross_amount=Decimal("0"),
            total_deductions=Decimal("0"),
            total_net_amount=Decimal("0"),
            disbursement_method="Not Applicable",
            status="Rejected",
            approved_by=by,
            employees=rows,
            notes=f"Rejected payments for {batch.period}",
        )
        db.add(report)
        reports.append(report)
        _hr_notice(db, "disbursement_rejected", batch.batch_id, {"report_id": report.report_id, "employees": len(rejected)})

    return reports


def create_disbursement_report(db: Session, batch_id: str, user: Any = None) -> List[DisbursementReport]:
    """Reports for a finalised batch; reuses existing ones when already produced."""
    batch = get_batch(db, batch_id)
    if batch.status in PENDING_STATES:
        raise ValueError(f"Payroll batch {batch_id} is not finalised yet")
    existing = list_disbursement_reports(db, batch_id)
    if existing:
        return existing
    reports = _write_disbursement_reports(db, batch, user)
    db.commit()
    return reports


def list_disbursement_reports(db: Session, batch_id: Optional[str] = None) -> List[DisbursementReport]:
    stmt = select(DisbursementReport)
    if batch_id:
        stmt = stmt.where(DisbursementReport.batch_id == batch_id)
    return list(db.execute(stmt.order_by(DisbursementReport.id)).scalars().all())
