# tsoam/services/finance.py
"""
Income / expense ledger and tithe records.

Only Approved transactions count toward summaries and reports. A
transaction moves Pending -> Approved or Pending -> Rejected exactly once.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional

from sqlalchemy import extract, func, or_, select
from sqlalchemy.orm import Session

from tsoam.models.finance import FinancialTransaction
from tsoam.models.members import Member, Tithe
from tsoam.schemas.finance import TransactionCreate, TransactionUpdate
from tsoam.schemas.members import TitheCreate
from tsoam.services import system_logs
from tsoam.services.identifiers import next_formatted_id

logger = logging.getLogger(__name__)


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


# ------------------------------ transactions ------------------------------ #

def create_transaction(db: Session, data: TransactionCreate, user: Any = None) -> FinancialTransaction:
    prefix = f"TXN-{data.transaction_date.strftime('%Y%m%d')}-"
    tx = FinancialTransaction(
        **data.model_dump(),
        transaction_id=next_formatted_id(db, FinancialTransaction.transaction_id, prefix, width=4),
        recorded_by=_actor(user),
        status="Pending",
        is_active=True,
    )
    tx.amount = q2(tx.amount)
    db.add(tx)
    system_logs.record(
        db, action="Create transaction", module="Finance", user=user, entity_type="transaction",
        entity_id=tx.transaction_id, details={"type": tx.transaction_type, "amount": str(tx.amount)},
    )
    db.commit()
    db.refresh(tx)
    logger.info("transaction created id=%s type=%s amount=%s", tx.transaction_id, tx.transaction_type, tx.amount)
    return tx


def list_transactions(
    db: Session,
    *,
    transaction_type: Optional[str] = None,
    category: Optional[str] = None,
    status: Optional[str] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
    search: Optional[str] = None,
    limit: int = 200,
) -> List[FinancialTransaction]:
    stmt = select(FinancialTransaction).where(FinancialTransaction.is_active.is_(True))
    if transaction_type:
        stmt = stmt.where(FinancialTransaction.transaction_type == transaction_type)
    if category:
        stmt = stmt.where(FinancialTransaction.category == category)
    if status:
        stmt = stmt.where(FinancialTransaction.status == status)
    if start:
        stmt = stmt.where(FinancialTransaction.transaction_date >= start)
    if end:
        stmt = stmt.where(FinancialTransaction.transaction_date <= end)
    if search:
        like = f"%{search.strip()}%"
        stmt = stmt.where(
            or_(
                FinancialTransaction.description.ilike(like),
                FinancialTransaction.category.ilike(like),
                FinancialTransaction.transaction_id.ilike(like),
                FinancialTransaction.reference_id.ilike(like),
            )
        )
    stmt = stmt.order_by(FinancialTransaction.transaction_date.desc(), FinancialTransaction.created_at.desc()).limit(limit)
    return list(db.execute(stmt).scalars().all())


def get_transaction(db: Session, tx_pk) -> FinancialTransaction:
    tx = db.get(FinancialTransaction, tx_pk)
    if tx is None or not tx.is_active:
        raise LookupError("Transaction not found")
    return tx


def update_transaction(db: Session, tx_pk, data: TransactionUpdate, user: Any = None) -> FinancialTransaction:
    tx = get_transaction(db, tx_pk)
    if tx.status != "Pending":
        raise ValueError(f"Cannot edit a transaction that is {tx.status}")
    for k, v in data.model_dump(exclude_unset=True).items():
        setattr(tx, k, q2(v) if k == "amount" else v)
    system_logs.record(db, action="Update transaction", module="Finance", user=user, entity_type="transaction", entity_id=tx.transaction_id)
    db.commit()
    db.refresh(tx)
    return tx


def delete_transaction(db: Session, tx_pk, user: Any = None) -> FinancialTransaction:
    tx = get_transaction(db, tx_pk)
    tx.is_active = False
    system_logs.record(
        db, action="Delete transaction", module="Finance", user=user, entity_type="transaction",
        entity_id=tx.transaction_id, severity="Warning",
    )
    db.commit()
    db.refresh(tx)
    return tx


def approve_transaction(db: Session, tx_pk, user: Any) -> FinancialTransaction:
    tx = get_transaction(db, tx_pk)
    if tx.status != "Pending":
        raise ValueError(f"Transaction already {tx.status}")
    tx.status = "Approved"
    tx.approved_by = _actor(user)
    tx.approval_date = datetime.now(timezone.utc)
    system_logs.record(db, action="Approve transaction", module="Finance", user=user, entity_type="transaction", entity_id=tx.transaction_id, severity="Audit")
    db.commit()
    db.refresh(tx)
    logger.info("transaction approved id=%s by=%s", tx.transaction_id, tx.approved_by)
    return tx


def reject_transaction(db: Session, tx_pk, user: Any, reason: str) -> FinancialTransaction:
    tx = get_transaction(db, tx_pk)
    if tx.status != "Pending":
        raise ValueError(f"Transaction already {tx.status}")
    tx.status = "Rejected"
    tx.approved_by = _actor(user)
    tx.approval_date = datetime.now(timezone.utc)
    tx.rejection_reason = reason
    system_logs.record(
        db, action="Reject transaction", module="Finance", user=user, entity_type="transaction",
        entity_id=tx.transaction_id, severity="Audit", details={"reason": reason},
    )
    db.commit()
    db.refresh(tx)
    logger.info("transaction rejected id=%s reason=%s", tx.transaction_id, reason)
    return tx


# -------------------------------- reports -------------------------------- #

def _approved():
    return select(FinancialTransaction).where(
        FinancialTransaction.is_active.is_(True), FinancialTransaction.status == "Approved"
    )


def _sum(db: Session, tx_type: str, *conds) -> Decimal:
    total = db.execute(
        select(func.coalesce(func.sum(FinancialTransaction.amount), 0)).where(
            FinancialTransaction.is_active.is_(True),
            FinancialTransaction.status == "Approved",
            FinancialTransaction.transaction_type == tx_type,
            *conds,
        )
    ).scalar_one()
    return q2(total)


def summary(db: Session, currency: str = "KES") -> Dict[str, Any]:
    income = _sum(db, "Income")
    expenses = _sum(db, "Expense")
    pending = db.execute(
        select(func.count(FinancialTransaction.id)).where(
            FinancialTransaction.is_active.is_(True), FinancialTransaction.status == "Pending"
        )
    ).scalar_one()
    return {
        "total_income": income,
        "total_expenses": expenses,
        "net_income": q2(income - expenses),
        "pending_count": pending,
        "currency": currency,
    }


def _period_rows(db: Session, start: date, end: date) -> List[FinancialTransaction]:
    stmt = _approved().where(
        FinancialTransaction.transaction_date >= start, FinancialTransaction.transaction_date <= end
    )
    return list(db.execute(stmt).scalars().all())


def _by_category(rows: List[FinancialTransaction]) -> List[Dict[str, Any]]:
    buckets: Dict[tuple, Dict[str, Any]] = {}
    for tx in rows:
        key = (tx.category, tx.transaction_type)
        b = buckets.setdefault(key, {"category": tx.category, "transaction_type": tx.transaction_type, "total": Decimal("0"), "count": 0})
        b["total"] += D(tx.amount)
        b["count"] += 1
    out = sorted(buckets.values(), key=lambda b: (b["transaction_type"], -b["total"], b["category"]))
    for b in out:
        b["total"] = q2(b["total"])
    return out


def _month_end(year: int, month: int) -> date:
    if month == 12:
        return date(year, 12, 31)
    return date.fromordinal(date(year, month + 1, 1).toordinal() - 1)


def monthly_report(db: Session, year: int, month: int) -> Dict[str, Any]:
    if not 1 <= month <= 12:
        raise ValueError("month must be between 1 and 12")
    rows = _period_rows(db, date(year, month, 1), _month_end(year, month))
    income = q2(sum((D(t.amount) for t in rows if t.transaction_type == "Income"), Decimal("0")))
    expenses = q2(sum((D(t.amount) for t in rows if t.transaction_type == "Expense"), Decimal("0")))
    return {
        "year": year,
        "month": month,
        "income": income,
        "expenses": expenses,
        "net": q2(income - expenses),
        "by_category": _by_category(rows),
    }


def yearly_report(db: Session, year: int) -> Dict[str, Any]:
    rows = _period_rows(db, date(year, 1, 1), date(year, 12, 31))
    months = []
    for m in range(1, 13):
        inc = sum((D(t.amount) for t in rows if t.transaction_date.month == m and t.transaction_type == "Income"), Decimal("0"))
        exp = sum((D(t.amount) for t in rows if t.transaction_date.month == m and t.transaction_type == "Expense"), Decimal("0"))
        months.append({"month": m, "income": q2(inc), "expenses": q2(exp), "net": q2(inc - exp)})
    income = q2(sum((m["income"] for m in months), Decimal("0")))
    expenses = q2(sum((m["expenses"] for m in months), Decimal("0")))
    return {
        "year": year,
        "income": income,
        "expenses": expenses,
        "net": q2(income - expenses),
        "months": months,
        "by_category": _by_category(rows),
    }


def month_totals(db: Session, year: int, month: int) -> Dict[str, Decimal]:
    """Approved income and expenses for one calendar month (dashboard)."""
    conds = (
        extract("year", FinancialTransaction.transaction_date) == year,
        extract("month", FinancialTransaction.transaction_date) == month,
    )
    return {"income": _sum(db, "Income", *conds), "expenses": _sum(db, "Expense", *conds)}


# --------------------------------- tithes --------------------------------- #

def record_tithe(db: Session, data: TitheCreate, user: Any = None) -> Tithe:
    if data.member_id is not None:
        member = db.get(Member, data.member_id)
        if member is None or not member.is_active:
            raise LookupError("Member not found")
    tithe = Tithe(
        **data.model_dump(),
        month=data.payment_date.month,
        year=data.payment_date.year,
        recorded_by=_actor(user),
    )
    tithe.amount = q2(tithe.amount)
    db.add(tithe)
    system_logs.record(db, action="Record tithe", module="Finance", user=user, entity_type="tithe", details={"amount": str(tithe.amount)})
    db.commit()
    db.refresh(tithe)
    return tithe


def list_tithes(db: Session, *, member_id=None, year: Optional[int] = None) -> List[Tithe]:
    stmt = select(Tithe).where(Tithe.is_active.is_(True))
    if member_id is not None:
        stmt = stmt.where(Tithe.member_id == member_id)
    if year is not None:
        stmt = stmt.where(Tithe.year == year)
    return list(db.execute(stmt.order_by(Tithe.payment_date.desc())).scalars().all())


def tithe_summary(db: Session, year: int) -> Dict[str, Any]:
    rows = db.execute(
        select(Tithe.month, func.coalesce(func.sum(Tithe.amount), 0), func.count(Tithe.id))
        .where(Tithe.is_active.is_(True), Tithe.year == year)
        .group_by(Tithe.month)
        .order_by(Tithe.month)
    ).all()
    by_month = [{"month": m, "total": q2(t), "count": c} for m, t, c in rows]
    return {
        "year": year,
        "total": q2(sum((b["total"] for b in by_month), Decimal("0"))),
        "count": sum(b["count"] for b in by_month),
        "by_month": by_month,
    }
