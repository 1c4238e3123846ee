# tsoam/services/dashboard.py
"""
Dashboard aggregation.

`collect()` builds the full figure set; the router passes it through
`access.filter_dashboard_data` for the caller's role.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Optional

from dateutil.relativedelta import relativedelta
from sqlalchemy import func, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tsoam.models.hr import Employee
from tsoam.models.leave import LeaveRequest
from tsoam.models.members import Member
from tsoam.models.payroll_approval import PayrollBatch
from tsoam.services import events, finance, system_logs

logger = logging.getLogger(__name__)


def _previous_month(today: date) -> tuple[int, int]:
    prev = today - relativedelta(months=1)
    return prev.year, prev.month


def monthly_growth(current: Decimal, previous: Decimal) -> float:
    """Percent change in income vs. the previous month; 0 when there is no baseline."""
    if not previous:
        return 0.0
    return round(float((Decimal(current) - Decimal(previous)) / Decimal(previous) * 100), 2)


def _db_ok(db: Session) -> bool:
    try:
        db.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError:
        db.rollback()
        logger.warning("dashboard health check failed", exc_info=True)
        return False


def collect(db: Session, today: Optional[date] = None) -> Dict[str, Any]:
    today = today or date.today()
    current = finance.month_totals(db, today.year, today.month)
    prev_year, prev_month = _previous_month(today)
    previous = finance.month_totals(db, prev_year, prev_month)

    total_members = db.execute(select(func.count(Member.id)).where(Member.is_active.is_(True))).scalar_one()
    total_employees = db.execute(select(func.count(Employee.id)).where(Employee.is_active.is_(True))).scalar_one()
    active_employees = db.execute(
        select(func.count(Employee.id)).where(Employee.is_active.is_(True), Employee.employment_status == "Active")
    ).scalar_one()
    pending_leave = db.execute(
        select(func.count(LeaveRequest.id)).where(LeaveRequest.status == "submitted")
    ).scalar_one()
    pending_payroll = db.execute(
        select(func.coalesce(func.sum(PayrollBatch.total_net_amount), 0)).where(
            PayrollBatch.status.in_(("Pending", "Partially_Approved"))
        )
    ).scalar_one()

    upcoming = [
        {"event_id": e.event_id, "title": e.title, "start_date": e.start_date.isoformat(), "location": e.location}
        for e in events.upcoming(db, limit=5)
    ]
    activities = [
        {**a, "timestamp": a["timestamp"].isoformat() if a["timestamp"] else None}
        for a in system_logs.recent_activities(db, limit=10)
    ]

    return {
        "total_members": total_members,
        "total_employees": total_employees,
        "active_employees": active_employees,
        "pending_leave_requests": pending_leave,
        "total_revenue": str(current["income"]),
        "total_expenses": str(current["expenses"]),
        "net_income": str(Decimal(current["income"]) - Decimal(current["expenses"])),
        "monthly_growth": monthly_growth(current["income"], previous["income"]),
        "pending_payroll_amount": str(Decimal(str(pending_payroll))),
        "upcoming_events": upcoming,
        "recent_activities": activities,
        "system_health": {"database": "ok" if _db_ok(db) else "error"},
    }
