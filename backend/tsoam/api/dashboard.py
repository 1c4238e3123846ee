# tsoam/api/dashboard.py
from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from tsoam.db import get_db
from tsoam.dependencies import get_current_user
from tsoam.models.users import User
from tsoam.services import dashboard as svc
from tsoam.services.access import filter_dashboard_data, permissions_for

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("")
def dashboard(db: Session = Depends(get_db), user: User = Depends(get_current_user)) -> Dict[str, Any]:
    data = svc.collect(db)
    return {
        "role": user.role,
        "sections": permissions_for(user.role)["dashboard_sections"],
        "data": filter_dashboard_data(user.role, data),
    }
