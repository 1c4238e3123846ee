# tsoam/services/system_logs.py
"""
Audit trail writer.

`record()` is called by the other services after a state change; it adds the
row to the caller's session and leaves the commit to the caller.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from tsoam.models.system_log import SystemLog
from tsoam.services.identifiers import random_suffix, timestamp_ms

logger = logging.getLogger(__name__)

SEVERITIES = ("Info", "Warning", "Error", "Security", "Audit")
MODULES = ("HR", "Finance", "Inventory", "Events", "Members", "Auth", "System", "Welfare", "Messaging", "HomeCells", "Appointments", "Modules")

_RISK_BY_SEVERITY = {"Info": "low", "Audit": "low", "Warning": "medium", "Error": "high", "Security": "high"}


def record(
    db: Session,
    *,
    action: str,
    module: str,
    user: Any = None,
    entity_type: Optional[str] = None,
    entity_id: Any = None,
    severity: str = "Info",
    details: Optional[Dict[str, Any]] = None,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> SystemLog:
    if severity not in SEVERITIES:
        severity = "Info"
    row = SystemLog(
        log_id=f"LOG-{timestamp_ms()}-{random_suffix(5)}",
        user_id=getattr(user, "id", None),
        user_name=getattr(user, "full_name", None) or getattr(user, "email", None),
        action=action,
        module=module,
        entity_type=entity_type,
        entity_id=str(entity_id) if entity_id is not None else None,
        severity=severity,
        risk_level=_RISK_BY_SEVERITY[severity],
        details=dict(details or {}),
        ip_address=ip_address,
        user_agent=user_agent,
    )
    db.add(row)
    logger.info("audit module=%s action=%s entity=%s:%s", module, action, entity_type, entity_id)
    return row


def list_logs(
    db: Session,
    *,
    module: Optional[str] = None,
    severity: Optional[str] = None,
    user_id: Any = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    limit: int = 100,
) -> List[SystemLog]:
    stmt = select(SystemLog)
    if module:
        stmt = stmt.where(SystemLog.module == module)
    if severity:
        stmt = stmt.where(SystemLog.severity == severity)
    if user_id is not None:
        stmt = stmt.where(SystemLog.user_id == user_id)
    if start:
        stmt = stmt.where(SystemLog.timestamp >= start)
    if end:
        stmt = stmt.where(SystemLog.timestamp <= end)
    stmt = stmt.order_by(SystemLog.timestamp.desc(), SystemLog.id.desc()).limit(limit)
    return list(db.execute(stmt).scalars().all())


def recent_activities(db: Session, limit: int = 10) -> List[Dict[str, Any]]:
    return [
        {
            "action": r.action,
            "module": r.module,
            "user": r.user_name,
            "severity": r.severity,
            "timestamp": r.timestamp,
        }
        for r in list_logs(db, limit=limit)
    ]
