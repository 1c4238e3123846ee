# tsoam/api/messages.py
from __future__ import annotations

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from tsoam.db import get_db
from tsoam.dependencies import http_errors, require_permission
from tsoam.models.users import User
from tsoam.schemas.messages import DeleteIn, MessageOut, MessageSend, MessageStats, ReplyIn
from tsoam.services import messages as svc
from tsoam.services.access import normalize_role

router = APIRouter(prefix="/messages", tags=["Messaging"])

_messaging = require_permission("can_access_messaging")


def _mailbox(user: User, user_id: Optional[str]) -> str:
    """Admins may read any mailbox; everyone else only their own."""
    if user_id is None or user_id == str(user.id):
        return str(user.id)
    if normalize_role(user.role) != "admin":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Cannot read another user's messages")
    return user_id


@router.get("", response_model=List[MessageOut])
def list_messages(
    user_id: Optional[str] = Query(None),
    limit: int = Query(200, ge=1, le=1000),
    db: Session = Depends(get_db),
    user: User = Depends(_messaging),
):
    return svc.list_messages(db, _mailbox(user, user_id), limit)


@router.get("/stats", response_model=MessageStats)
def stats(user_id: Optional[str] = Query(None), db: Session = Depends(get_db), user: User = Depends(_messaging)):
    return svc.message_stats(db, _mailbox(user, user_id))


@router.get("/thread/{message_id}", response_model=List[MessageOut])
def thread(message_id: uuid.UUID, db: Session = Depends(get_db), user: User = Depends(_messaging)):
    with http_errors(db):
        return svc.get_thread(db, message_id, str(user.id))


@router.post("", response_model=MessageOut, status_code=status.HTTP_201_CREATED)
def send(payload: MessageSend, db: Session = Depends(get_db), user: User = Depends(_messaging)):
    with http_errors(db):
        return svc.send_message(db, payload, user)


@router.post("/reply", response_model=MessageOut, status_code=status.HTTP_201_CREATED)
def reply(payload: ReplyIn, db: Session = Depends(get_db), user: User = Depends(_messaging)):
    with http_errors(db):
        return svc.reply(db, payload, user)


@router.patch("/{message_id}/read", response_model=MessageOut)
def mark_read(message_id: uuid.UUID, db: Session = Depends(get_db), user: User = Depends(_messaging)):
    with http_errors(db):
        return svc.mark_read(db, message_id, str(user.id))


@router.delete("/delete")
def delete(payload: DeleteIn, db: Session = Depends(get_db), user: User = Depends(_messaging)):
    n = svc.delete_for_user(db, payload.message_ids, str(user.id))
    return {"deleted": n}
