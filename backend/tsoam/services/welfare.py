# tsoam/services/welfare.py
from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from tsoam.models.welfare import WelfareApproval, WelfareRequest
from tsoam.schemas.welfare import WelfareCreate, WelfareReview
from tsoam.services import system_logs
from tsoam.services.identifiers import random_suffix, timestamp_ms

logger = logging.getLogger(__name__)

# status -> action recorded on the approval trail
_ACTIONS = {
    "Under Review": "reviewed",
    "Approved": "approved",
    "Rejected": "rejected",
    "Disbursed": "disbursed",
    "Pending": "reopened",
}


def _actor(user: Any) -> str:
    return getattr(user, "full_name", None) or getattr(user, "email", None) or "system"


def create_request(db: Session, data: WelfareCreate, user: Any = None) -> WelfareRequest:
    req = WelfareRequest(
        **data.model_dump(),
        request_id=f"WR-{timestamp_ms()}-{random_suffix(6)}",
        status="Pending",
    )
    db.add(req)
    system_logs.record(
        db, action="Submit welfare request", module="Welfare", user=user, entity_type="welfare_request",
        entity_id=req.request_id, details={"urgency": req.urgency_level},
    )
    db.commit()
    db.refresh(req)
    logger.info("welfare request %s urgency=%s", req.request_id, req.urgency_level)
    return req


def list_requests(
    db: Session, *, status: Optional[str] = None, urgency: Optional[str] = None
) -> List[WelfareRequest]:
    stmt = select(WelfareRequest)
    if status:
        stmt = stmt.where(WelfareRequest.status == status)
    if urgency:
        stmt = stmt.where(WelfareRequest.urgency_level == urgency)
    return list(db.execute(stmt.order_by(WelfareRequest.created_at.desc())).scalars().all())


def get_request(db: Session, req_pk) -> WelfareRequest:
    req = db.get(WelfareRequest, req_pk)
    if req is None:
        raise LookupError("Welfare request not found")
    return req


def review_request(db: Session, req_pk, data: WelfareReview, user: Any) -> WelfareRequest:
    req = get_request(db, req_pk)
    if data.amount_approved is not None and data.amount_approved > req.amount_requested:
        raise ValueError("Approved amount cannot exceed the requested amount")
    if data.status == "Disbursed" and req.status != "Approved":
        raise ValueError("Only approved requests can be disbursed")

    by = _actor(user)
    req.status = data.status
    if data.amount_approved is not None:
        req.amount_approved = data.amount_approved
    elif data.status == "Approved" and req.amount_approved is None:
        req.amount_approved = req.amount_requested
    req.review_notes = data.review_notes
    req.reviewed_by = by
    req.review_date = datetime.now(timezone.utc)

    db.add(
        WelfareApproval(
            request_pk=req.id,
            approver=by,
            action=_ACTIONS[data.status],
            amount=req.amount_approved if data.status in ("Approved", "Disbursed") else None,
            comments=data.review_notes,
        )
    )
    system_logs.record(
        db, action=f"Welfare request {data.status.lower()}", module="Welfare", user=user,
        entity_type="welfare_request", entity_id=req.request_id, severity="Audit",
    )
    db.commit()
    db.refresh(req)
    return req


def welfare_stats(db: Session) -> Dict[str, Any]:
    total = db.execute(select(func.count(WelfareRequest.id))).scalar_one()
    by_status = db.execute(select(WelfareRequest.status, func.count(WelfareRequest.id)).group_by(WelfareRequest.status)).all()
    requested = db.execute(select(func.coalesce(func.sum(WelfareRequest.amount_requested), 0))).scalar_one()
    approved = db.execute(
        select(func.coalesce(func.sum(WelfareRequest.amount_approved), 0)).where(
            WelfareRequest.status.in_(("Approved", "Disbursed"))
        )
    ).scalar_one()
    return {
        "total_requests": total,
        "by_status": {s: n for s, n in by_status},
        "total_requested": Decimal(str(requested)),
        "total_approved": Decimal(str(approved)),
    }
