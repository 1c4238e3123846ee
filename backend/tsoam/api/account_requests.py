# tsoam/api/account_requests.py
from __future__ import annotations

import uuid
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query, status
from sqlalchemy.orm import Session

from tsoam.db import get_db
from tsoam.dependencies import http_errors, require_permission
from tsoam.models.users import User
from tsoam.schemas.auth import AccountRequestCreate, AccountRequestOut, AccountRequestReview, UserOut
from tsoam.services import auth as svc

router = APIRouter(prefix="/account-requests", tags=["Account Requests"])


@router.post("", response_model=AccountRequestOut, status_code=status.HTTP_201_CREATED)
def submit_request(payload: AccountRequestCreate, db: Session = Depends(get_db)):
    with http_errors(db):
        return svc.create_account_request(db, payload)


@router.get("", response_model=List[AccountRequestOut], dependencies=[Depends(require_permission("can_access_users"))])
def list_requests(status: Optional[str] = Query(None), db: Session = Depends(get_db)):
    return svc.list_account_requests(db, status)


@router.post("/{request_id}/approve")
def approve_request(
    request_id: uuid.UUID,
    payload: Optional[AccountRequestReview] = Body(None),
    db: Session = Depends(get_db),
    reviewer: User = Depends(require_permission("can_access_users")),
):
    with http_errors(db):
        res = svc.approve_account_request(db, request_id, reviewer, payload.admin_notes if payload else None)
    return {
        "request": AccountRequestOut.model_validate(res["request"]),
        "user": UserOut.model_validate(res["user"]),
        "temporary_password": res["temporary_password"],
    }


@router.post("/{request_id}/reject", response_model=AccountRequestOut)
def reject_request(
    request_id: uuid.UUID,
    payload: Optional[AccountRequestReview] = Body(None),
    db: Session = Depends(get_db),
    reviewer: User = Depends(require_permission("can_access_users")),
):
    with http_errors(db):
        return svc.reject_account_request(db, request_id, reviewer, payload.reason if payload else None)
