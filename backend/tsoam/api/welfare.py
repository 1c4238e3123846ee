# tsoam/api/welfare.py
from __future__ import annotations

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from tsoam.db import get_db
from tsoam.dependencies import http_errors, require_permission
from tsoam.models.users import User
from tsoam.schemas.welfare import WelfareCreate, WelfareOut, WelfareReview, WelfareStats
from tsoam.services import welfare as svc

router = APIRouter(prefix="/welfare", tags=["Welfare"])

_welfare = require_permission("can_access_welfare")


@router.post("", response_model=WelfareOut, status_code=status.HTTP_201_CREATED)
def create_request(payload: WelfareCreate, db: Session = Depends(get_db)):
    """Public application form; no login needed."""
    with http_errors(db):
        return svc.create_request(db, payload)


@router.get("", response_model=List[WelfareOut], dependencies=[Depends(_welfare)])
def list_requests(
    status: Optional[str] = Query(None),
    urgency: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    return svc.list_requests(db, status=status, urgency=urgency)


@router.get("/stats/summary", response_model=WelfareStats, dependencies=[Depends(_welfare)])
def stats(db: Session = Depends(get_db)):
    return svc.welfare_stats(db)


@router.get("/{req_pk}", response_model=WelfareOut, dependencies=[Depends(_welfare)])
def get_request(req_pk: uuid.UUID, db: Session = Depends(get_db)):
    with http_errors(db):
        return svc.get_request(db, req_pk)


@router.put("/{req_pk}", response_model=WelfareOut)
def review_request(req_pk: uuid.UUID, payload: WelfareReview, db: Session = Depends(get_db), user: User = Depends(_welfare)):
    with http_errors(db):
        return svc.review_request(db, req_pk, payload, user)
