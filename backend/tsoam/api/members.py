# tsoam/api/members.py
from __future__ import annotations

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from tsoam.db import get_db
from tsoam.dependencies import http_errors, require_permission
from tsoam.models.users import User
from tsoam.schemas.members import MemberCreate, MemberOut, MemberStats, MemberUpdate
from tsoam.services import members as svc
from tsoam.services.demo_data import with_demo_fallback

router = APIRouter(prefix="/members", tags=["Members"])

_read = require_permission("can_access_members")
_write = require_permission("can_access_new_members")


@router.get("", response_model=List[MemberOut], dependencies=[Depends(_read)])
def list_members(
    status: Optional[str] = Query(None),
    homecell_id: Optional[int] = Query(None),
    search: Optional[str] = Query(None),
    limit: int = Query(500, ge=1, le=2000),
    db: Session = Depends(get_db),
):
    return with_demo_fallback(
        "members",
        lambda: svc.list_members(db, status=status, homecell_id=homecell_id, search=search, limit=limit),
        db,
    )


@router.get("/stats", response_model=MemberStats, dependencies=[Depends(_read)])
def stats(db: Session = Depends(get_db)):
    return svc.member_stats(db)


@router.get("/{member_pk}", response_model=MemberOut, dependencies=[Depends(_read)])
def get_member(member_pk: uuid.UUID, db: Session = Depends(get_db)):
    with http_errors(db):
        return svc.get_member(db, member_pk)


@router.post("", response_model=MemberOut, status_code=status.HTTP_201_CREATED)
def create_member(payload: MemberCreate, db: Session = Depends(get_db), user: User = Depends(_write)):
    with http_errors(db):
        return svc.create_member(db, payload, user)


@router.put("/{member_pk}", response_model=MemberOut)
def update_member(member_pk: uuid.UUID, payload: MemberUpdate, db: Session = Depends(get_db), user: User = Depends(_write)):
    with http_errors(db):
        return svc.update_member(db, member_pk, payload, user)


@router.delete("/{member_pk}", response_model=MemberOut)
def delete_member(member_pk: uuid.UUID, db: Session = Depends(get_db), user: User = Depends(require_permission("can_delete_data"))):
    with http_errors(db):
        return svc.deactivate_member(db, member_pk, user)
