# tsoam/services/messages.py
"""
Internal messaging with threaded replies.

A reply stores `parent_message_id` (the message answered) and
`thread_root_id` (the first message of the thread); its depth is one more
than the deepest message already in the thread. Deletion is per user: the
caller's id is added to `deleted_by` and the row stays for everyone else.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Sequence

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from tsoam.models.messages import Message
from tsoam.schemas.messages import MessageSend, ReplyIn
from tsoam.services import system_logs

logger = logging.getLogger(__name__)

SYSTEM_SENDER = "system"


def _visible_to(msg: Message, user_id: str) -> bool:
    if user_id in (msg.deleted_by or []):
        return False
    return msg.sender_id == user_id or user_id in (msg.recipient_ids or [])


def _root_of(msg: Message):
    return msg.thread_root_id or msg.id


def _thread_rows(db: Session, root_id) -> List[Message]:
    stmt = (
        select(Message)
        .where(or_(Message.id == root_id, Message.thread_root_id == root_id))
        .order_by(Message.created_at, Message.thread_depth)
    )
    return list(db.execute(stmt).scalars().all())


def _reply_counts(db: Session, root_ids: Sequence) -> Dict[Any, int]:
    if not root_ids:
        return {}
    rows = db.execute(
        select(Message.thread_root_id, func.count(Message.id))
        .where(Message.thread_root_id.in_(list(root_ids)))
        .group_by(Message.thread_root_id)
    ).all()
    return {root: n for root, n in rows}


def message_out(msg: Message, reply_count: int = 0) -> Dict[str, Any]:
    data = {c.key: getattr(msg, c.key) for c in Message.__table__.columns}
    data["reply_count"] = reply_count
    return data


def list_messages(db: Session, user_id: str, limit: int = 200) -> List[Dict[str, Any]]:
    """Messages sent or received by `user_id`, newest first."""
    rows = db.execute(select(Message).order_by(Message.created_at.desc())).scalars().all()
    mine = [m for m in rows if _visible_to(m, user_id)][:limit]
    counts = _reply_counts(db, [m.id for m in mine if not m.is_reply])
    return [message_out(m, counts.get(m.id, 0)) for m in mine]


def get_thread(db: Session, message_id, user_id: str) -> List[Message]:
    msg = db.get(Message, message_id)
    if msg is None or not _visible_to(msg, user_id):
        raise LookupError("Message not found")
    return [m for m in _thread_rows(db, _root_of(msg)) if user_id not in (m.deleted_by or [])]


def send_message(db: Session, data: MessageSend, user: Any) -> Message:
    sender_id = str(user.id)
    parent = None
    if data.parent_message_id is not None:
        parent = db.get(Message, data.parent_message_id)
        if parent is None:
            raise LookupError("Parent message not found")

    msg = Message(
        sender_id=sender_id,
        sender_name=getattr(user, "full_name", None),
        recipient_ids=[str(r) for r in data.recipient_ids],
        recipient_type=data.recipient_type,
        subject=data.subject,
        content=data.content,
        message_type=data.message_type,
        status="sent",
        read_by=[],
        deleted_by=[],
    )
    if parent is not None:
        root_id = _root_of(parent)
        depth = max(m.thread_depth for m in _thread_rows(db, root_id))
        msg.parent_message_id = parent.id
        msg.thread_root_id = root_id
        msg.thread_depth = depth + 1
        msg.is_reply = True

    db.add(msg)
    db.flush()
    system_logs.record(
        db, action="Send message", module="Messaging", user=user, entity_type="message", entity_id=msg.id,
        details={"recipients": len(msg.recipient_ids), "type": msg.message_type, "reply": msg.is_reply},
    )
    db.commit()
    db.refresh(msg)
    logger.info("message %s sent by %s to %s recipient(s)", msg.id, sender_id, len(msg.recipient_ids))
    return msg


def notify(db: Session, recipient_ids: Sequence, subject: str, content: str) -> Message:
    """Queue a system-originated message. The caller commits."""
    msg = Message(
        sender_id=SYSTEM_SENDER,
        sender_name="TSOAM System",
        recipient_ids=[str(r) for r in recipient_ids],
        recipient_type="individual",
        subject=subject,
        content=content,
        message_type="Internal",
        status="sent",
        read_by=[],
        deleted_by=[],
    )
    db.add(msg)
    return msg


def _mark_read(msg: Message, user_id: str) -> None:
    if user_id in (msg.read_by or []):
        return
    msg.read_by = list(msg.read_by or []) + [user_id]
    msg.status = "read"
    msg.read_at = datetime.now(timezone.utc)


def reply(db: Session, data: ReplyIn, user: Any) -> Message:
    original = db.get(Message, data.original_message_id)
    user_id = str(user.id)
    if original is None or not _visible_to(original, user_id):
        raise LookupError("Original message not found")

    recipients = [original.sender_id]
    if data.reply_to_all:
        recipients += [r for r in original.recipient_ids if r != user_id]
    recipients = [r for r in dict.fromkeys(recipients) if r != user_id] or [original.sender_id]

    subject = original.subject if original.subject.startswith("Re: ") else f"Re: {original.subject}"
    _mark_read(original, user_id)
    return send_message(
        db,
        MessageSend(
            recipient_ids=recipients,
            subject=subject[:300],
            content=data.content,
            message_type=original.message_type,
            parent_message_id=original.id,
        ),
        user,
    )


def mark_read(db: Session, message_id, user_id: str) -> Message:
    msg = db.get(Message, message_id)
    if msg is None or not _visible_to(msg, user_id):
        raise LookupError("Message not found")
    _mark_read(msg, user_id)
    db.commit()
    db.refresh(msg)
    return msg


def delete_for_user(db: Session, message_ids: Sequence, user_id: str) -> int:
    rows = db.execute(select(Message).where(Message.id.in_(list(message_ids)))).scalars().all()
    n = 0
    for m in rows:
        if _visible_to(m, user_id):
            m.deleted_by = list(m.deleted_by or []) + [user_id]
            n += 1
    db.commit()
    return n


def message_stats(db: Session, user_id: str) -> Dict[str, int]:
    rows = [m for m in db.execute(select(Message)).scalars().all() if _visible_to(m, user_id)]
    received = [m for m in rows if user_id in (m.recipient_ids or [])]
    return {
        "sent": sum(1 for m in rows if m.sender_id == user_id),
        "received": len(received),
        "unread": sum(1 for m in received if user_id not in (m.read_by or [])),
        "threads": len({_root_of(m) for m in rows}),
    }
