# tsoam/api/system_logs.py
from __future__ import annotations

import uuid
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from tsoam.db import get_db
from tsoam.dependencies import require_permission
from tsoam.schemas.system_logs import SystemLogOut
from tsoam.services import system_logs as svc

router = APIRouter(prefix="/system-logs", tags=["System Logs"])


@router.get("", response_model=List[SystemLogOut], dependencies=[Depends(require_permission("can_access_system_logs"))])
def list_logs(
    module: Optional[str] = Query(None),
    severity: Optional[str] = Query(None),
    user_id: Optional[uuid.UUID] = Query(None),
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    limit: int = Query(100, ge=1, le=1000),
    db: Session = Depends(get_db),
):
    return svc.list_logs(db, module=module, severity=severity, user_id=user_id, start=start, end=end, limit=limit)
