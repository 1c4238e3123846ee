# tsoam/services/members.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from tsoam.models.homecells import HomeCell
from tsoam.models.members import Member
from tsoam.schemas.members import MemberCreate, MemberUpdate
from tsoam.services import homecells, system_logs
from tsoam.services.homecell_hierarchy import hierarchy
from tsoam.services.identifiers import next_formatted_id

logger = logging.getLogger(__name__)

MEMBER_PREFIX = "TSOAM-MEM-"
TITHE_PREFIX = "TN-"


def _check_homecell(db: Session, homecell_id: Optional[int]) -> None:
    if homecell_id is not None and db.get(HomeCell, homecell_id) is None:
        raise ValueError(f"Home cell {homecell_id} does not exist")


def create_member(db: Session, data: MemberCreate, user: Any = None) -> Member:
    _check_homecell(db, data.homecell_id)
    member = Member(
        **data.model_dump(),
        member_id=next_formatted_id(db, Member.member_id, MEMBER_PREFIX),
        tithe_number=next_formatted_id(db, Member.tithe_number, TITHE_PREFIX),
        is_active=True,
    )
    db.add(member)
    if member.homecell_id is not None:
        db.flush()
        homecells.place_member(db, member, member.homecell_id)
    system_logs.record(db, action="Create member", module="Members", user=user, entity_type="member", entity_id=member.member_id)
    db.commit()
    db.refresh(member)
    if member.homecell_id is not None:
        hierarchy.invalidate()
    logger.info("member created member_id=%s", member.member_id)
    return member


def list_members(
    db: Session,
    *,
    status: Optional[str] = None,
    homecell_id: Optional[int] = None,
    search: Optional[str] = None,
    include_inactive: bool = False,
    limit: int = 500,
) -> List[Member]:
    stmt = select(Member)
    if not include_inactive:
        stmt = stmt.where(Member.is_active.is_(True))
    if status:
        stmt = stmt.where(Member.membership_status == status)
    if homecell_id is not None:
        stmt = stmt.where(Member.homecell_id == homecell_id)
    if search:
        like = f"%{search.strip()}%"
        stmt = stmt.where(
            or_(
                Member.full_name.ilike(like),
                Member.email.ilike(like),
                Member.phone.ilike(like),
                Member.member_id.ilike(like),
            )
        )
    stmt = stmt.order_by(Member.full_name).limit(limit)
    return list(db.execute(stmt).scalars().all())


def get_member(db: Session, member_pk) -> Member:
    member = db.get(Member, member_pk)
    if member is None or not member.is_active:
        raise LookupError("Member not found")
    return member


def update_member(db: Session, member_pk, data: MemberUpdate, user: Any = None) -> Member:
    member = get_member(db, member_pk)
    changes = data.model_dump(exclude_unset=True)
    moved = "homecell_id" in changes and changes["homecell_id"] != member.homecell_id
    new_cell = changes.pop("homecell_id", None)
    if moved:
        _check_homecell(db, new_cell)
    for k, v in changes.items():
        setattr(member, k, v)
    if moved:
        if new_cell is None:
            homecells.release_member(db, member)
        else:
            homecells.place_member(db, member, new_cell)
        changes["homecell_id"] = new_cell
    system_logs.record(
        db, action="Update member", module="Members", user=user, entity_type="member",
        entity_id=member.member_id, details={"fields": sorted(changes)},
    )
    db.commit()
    db.refresh(member)
    if moved:
        hierarchy.invalidate()
    return member


def deactivate_member(db: Session, member_pk, user: Any = None) -> Member:
    member = get_member(db, member_pk)
    member.is_active = False
    member.membership_status = "Inactive"
    # History keeps the cell id; the cell just stops counting this member.
    homecells.release_member(db, member, clear_cell=False)
    system_logs.record(
        db, action="Deactivate member", module="Members", user=user, entity_type="member",
        entity_id=member.member_id, severity="Warning",
    )
    db.commit()
    db.refresh(member)
    hierarchy.invalidate()
    return member


def member_stats(db: Session) -> Dict[str, Any]:
    total = db.execute(select(func.count(Member.id))).scalar_one()
    active = db.execute(
        select(func.count(Member.id)).where(Member.is_active.is_(True), Member.membership_status == "Active")
    ).scalar_one()
    baptized = db.execute(
        select(func.count(Member.id)).where(Member.is_active.is_(True), Member.baptized.is_(True))
    ).scalar_one()
    by_gender = {
        (g or "Unknown"): n
        for g, n in db.execute(
            select(Member.gender, func.count(Member.id)).where(Member.is_active.is_(True)).group_by(Member.gender)
        ).all()
    }
    return {"total": total, "active": active, "inactive": total - active, "baptized": baptized, "by_gender": by_gender}
