# tsoam/services/homecells.py
"""
Home-cell hierarchy service.

District -> zone -> home cell, each soft-deleted through `is_active`. A home
cell's district is always taken from its zone. Every write invalidates the
shared `hierarchy` cache.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from tsoam.models.homecells import District, HomeCell, HomeCellAssignment, Zone
from tsoam.models.members import Member
from tsoam.schemas.homecells import (
    DistrictIn,
    DistrictUpdate,
    HomeCellIn,
    HomeCellUpdate,
    ZoneIn,
    ZoneUpdate,
)
from tsoam.services import system_logs
from tsoam.services.homecell_hierarchy import DISTRICT_FIELDS, HOMECELL_FIELDS, ZONE_FIELDS, row_dict, hierarchy
from tsoam.services.identifiers import next_formatted_id

logger = logging.getLogger(__name__)


def _changed(db: Session, user: Any, action: str, entity_type: str, entity_id: str) -> None:
    system_logs.record(db, action=action, module="HomeCells", user=user, entity_type=entity_type, entity_id=entity_id)
    db.commit()
    hierarchy.invalidate()


# -------------------------------- districts -------------------------------- #

def list_districts(db: Session) -> List[District]:
    return list(db.execute(select(District).where(District.is_active.is_(True)).order_by(District.name)).scalars().all())


def district_rows(db: Session) -> List[Dict[str, Any]]:
    return [row_dict(d, DISTRICT_FIELDS) for d in list_districts(db)]


def get_district(db: Session, pk: int) -> District:
    d = db.get(District, pk)
    if d is None:
        raise LookupError("District not found")
    return d


def create_district(db: Session, data: DistrictIn, user: Any = None) -> District:
    d = District(**data.model_dump(), district_id=next_formatted_id(db, District.district_id, "DIST-"), is_active=True)
    db.add(d)
    _changed(db, user, "Create district", "district", d.district_id)
    db.refresh(d)
    return d


def update_district(db: Session, pk: int, data: DistrictUpdate, user: Any = None) -> District:
    d = get_district(db, pk)
    for k, v in data.model_dump(exclude_unset=True).items():
        setattr(d, k, v)
    _changed(db, user, "Update district", "district", d.district_id)
    db.refresh(d)
    return d


def deactivate_district(db: Session, pk: int, user: Any = None) -> District:
    d = get_district(db, pk)
    d.is_active = False
    _changed(db, user, "Deactivate district", "district", d.district_id)
    db.refresh(d)
    return d


# ---------------------------------- zones ---------------------------------- #

def list_zones(db: Session, district_pk: Optional[int] = None) -> List[Zone]:
    stmt = select(Zone).where(Zone.is_active.is_(True))
    if district_pk is not None:
        stmt = stmt.where(Zone.district_pk == district_pk)
    return list(db.execute(stmt.order_by(Zone.name)).scalars().all())


def get_zone(db: Session, pk: int) -> Zone:
    z = db.get(Zone, pk)
    if z is None:
        raise LookupError("Zone not found")
    return z


def _active_district(db: Session, pk: int) -> District:
    d = db.get(District, pk)
    if d is None or not d.is_active:
        raise ValueError(f"District {pk} does not exist or is inactive")
    return d


def create_zone(db: Session, data: ZoneIn, user: Any = None) -> Zone:
    _active_district(db, data.district_pk)
    z = Zone(**data.model_dump(), zone_id=next_formatted_id(db, Zone.zone_id, "ZONE-"), is_active=True)
    db.add(z)
    _changed(db, user, "Create zone", "zone", z.zone_id)
    db.refresh(z)
    return z


def update_zone(db: Session, pk: int, data: ZoneUpdate, user: Any = None) -> Zone:
    z = get_zone(db, pk)
    changes = data.model_dump(exclude_unset=True)
    if changes.get("district_pk") is not None:
        _active_district(db, changes["district_pk"])
    for k, v in changes.items():
        setattr(z, k, v)
    if "district_pk" in changes:
        for hc in z.homecells:
            hc.district_pk = z.district_pk
    _changed(db, user, "Update zone", "zone", z.zone_id)
    db.refresh(z)
    return z


def deactivate_zone(db: Session, pk: int, user: Any = None) -> Zone:
    z = get_zone(db, pk)
    z.is_active = False
    _changed(db, user, "Deactivate zone", "zone", z.zone_id)
    db.refresh(z)
    return z


# -------------------------------- home cells -------------------------------- #

def list_homecells(db: Session, zone_pk: Optional[int] = None) -> List[HomeCell]:
    stmt = select(HomeCell).where(HomeCell.is_active.is_(True))
    if zone_pk is not None:
        stmt = stmt.where(HomeCell.zone_pk == zone_pk)
    return list(db.execute(stmt.order_by(HomeCell.name)).scalars().all())


def get_homecell(db: Session, pk: int) -> HomeCell:
    hc = db.get(HomeCell, pk)
    if hc is None:
        raise LookupError("Home cell not found")
    return hc


def _active_zone(db: Session, pk: int) -> Zone:
    z = db.get(Zone, pk)
    if z is None or not z.is_active:
        raise ValueError(f"Zone {pk} does not exist or is inactive")
    return z


def create_homecell(db: Session, data: HomeCellIn, user: Any = None) -> HomeCell:
    zone = _active_zone(db, data.zone_pk)
    hc = HomeCell(
        **data.model_dump(),
        homecell_id=next_formatted_id(db, HomeCell.homecell_id, "HC-"),
        district_pk=zone.district_pk,
        member_count=0,
        is_active=True,
    )
    db.add(hc)
    _changed(db, user, "Create home cell", "homecell", hc.homecell_id)
    db.refresh(hc)
    return hc


def update_homecell(db: Session, pk: int, data: HomeCellUpdate, user: Any = None) -> HomeCell:
    hc = get_homecell(db, pk)
    changes = data.model_dump(exclude_unset=True)
    if changes.get("zone_pk") is not None:
        hc.district_pk = _active_zone(db, changes["zone_pk"]).district_pk
    for k, v in changes.items():
        setattr(hc, k, v)
    _changed(db, user, "Update home cell", "homecell", hc.homecell_id)
    db.refresh(hc)
    return hc


def deactivate_homecell(db: Session, pk: int, user: Any = None) -> HomeCell:
    hc = get_homecell(db, pk)
    hc.is_active = False
    _changed(db, user, "Deactivate home cell", "homecell", hc.homecell_id)
    db.refresh(hc)
    return hc


# ------------------------------ nested reads ------------------------------ #

def _homecell_dict(hc: HomeCell) -> Dict[str, Any]:
    return row_dict(hc, HOMECELL_FIELDS) | {"description": hc.description}


def _zone_dict(z: Zone) -> Dict[str, Any]:
    out = row_dict(z, ZONE_FIELDS)
    out["homecells"] = [_homecell_dict(h) for h in z.homecells if h.is_active]
    return out


def _district_dict(d: District) -> Dict[str, Any]:
    out = row_dict(d, DISTRICT_FIELDS)
    out["zones"] = [_zone_dict(z) for z in d.zones if z.is_active]
    return out


def district_detail(db: Session, pk: int) -> Dict[str, Any]:
    return _district_dict(get_district(db, pk))


def zone_detail(db: Session, pk: int) -> Dict[str, Any]:
    return _zone_dict(get_zone(db, pk))


def full_hierarchy(db: Session) -> List[Dict[str, Any]]:
    return [_district_dict(d) for d in list_districts(db)]


# ------------------------------- membership ------------------------------- #

def _refresh_count(db: Session, homecell_pk: Optional[int]) -> None:
    if homecell_pk is None:
        return
    hc = db.get(HomeCell, homecell_pk)
    if hc is None:
        return
    db.flush()
    hc.member_count = db.execute(
        select(func.count(Member.id)).where(Member.homecell_id == homecell_pk, Member.is_active.is_(True))
    ).scalar_one()


def _close_assignments(db: Session, member: Member) -> None:
    for a in db.execute(
        select(HomeCellAssignment).where(
            HomeCellAssignment.member_pk == member.id, HomeCellAssignment.is_active.is_(True)
        )
    ).scalars():
        a.is_active = False


def _assign(db: Session, member: Member, hc: HomeCell, notes: Optional[str] = None) -> HomeCellAssignment:
    previous = member.homecell_id
    _close_assignments(db, member)
    member.homecell_id = hc.id
    assignment = HomeCellAssignment(member_pk=member.id, homecell_pk=hc.id, notes=notes, is_active=True)
    db.add(assignment)
    if previous != hc.id:
        _refresh_count(db, previous)
    _refresh_count(db, hc.id)
    return assignment


def place_member(db: Session, member: Member, homecell_pk: int) -> HomeCellAssignment:
    """Move a member into `homecell_pk` from the members module. The caller commits."""
    return _assign(db, member, get_homecell(db, homecell_pk))


def release_member(db: Session, member: Member, *, clear_cell: bool = True) -> None:
    """Close the member's active assignment and recount the cell they left. The caller commits."""
    previous = member.homecell_id
    _close_assignments(db, member)
    if clear_cell:
        member.homecell_id = None
    _refresh_count(db, previous)


def assign_member(db: Session, homecell_pk: int, member_pk, notes: Optional[str] = None, user: Any = None) -> HomeCellAssignment:
    hc = get_homecell(db, homecell_pk)
    if not hc.is_active:
        raise ValueError("Home cell is inactive")
    member = db.get(Member, member_pk)
    if member is None or not member.is_active:
        raise LookupError("Member not found")
    assignment = _assign(db, member, hc, notes)
    system_logs.record(
        db, action="Assign member to home cell", module="HomeCells", user=user, entity_type="member",
        entity_id=member.member_id, details={"homecell": hc.homecell_id},
    )
    db.commit()
    db.refresh(assignment)
    hierarchy.invalidate()
    logger.info("member %s assigned to %s", member.member_id, hc.homecell_id)
    return assignment


def homecell_members(db: Session, homecell_pk: int) -> List[Member]:
    get_homecell(db, homecell_pk)
    return list(
        db.execute(
            select(Member).where(Member.homecell_id == homecell_pk, Member.is_active.is_(True)).order_by(Member.full_name)
        ).scalars().all()
    )


def homecell_stats(db: Session, homecell_pk: int) -> Dict[str, int]:
    members = homecell_members(db, homecell_pk)
    return {
        "total_members": len(members),
        "active_members": sum(1 for m in members if m.membership_status == "Active"),
        "inactive_members": sum(1 for m in members if m.membership_status == "Inactive"),
        "male_members": sum(1 for m in members if m.gender == "Male"),
        "female_members": sum(1 for m in members if m.gender == "Female"),
    }


def district_summary(db: Session, pk: int) -> Dict[str, Any]:
    d = get_district(db, pk)
    zones = [z for z in d.zones if z.is_active]
    cells = [h for z in zones for h in z.homecells if h.is_active]
    members = 0
    if cells:
        members = db.execute(
            select(func.count(Member.id)).where(
                Member.homecell_id.in_([h.id for h in cells]), Member.is_active.is_(True)
            )
        ).scalar_one()
    return {"district_id": d.district_id, "name": d.name, "zones": len(zones), "homecells": len(cells), "members": members}


def auto_assign(db: Session, zone_pk: int, user: Any = None) -> Dict[str, Any]:
    """Spread unassigned active members round-robin over the zone's active home cells."""
    zone = get_zone(db, zone_pk)
    cells = [h for h in sorted(zone.homecells, key=lambda h: h.id) if h.is_active]
    if not cells:
        raise ValueError("No home cells found for this zone")
    members = db.execute(
        select(Member)
        .where(Member.homecell_id.is_(None), Member.is_active.is_(True), Member.membership_status == "Active")
        .order_by(Member.member_id)
    ).scalars().all()
    for i, member in enumerate(members):
        _assign(db, member, cells[i % len(cells)], notes="auto-assigned")
    system_logs.record(
        db, action="Auto-assign members", module="HomeCells", user=user, entity_type="zone",
        entity_id=zone.zone_id, details={"assigned": len(members)},
    )
    db.commit()
    hierarchy.invalidate()
    logger.info("auto-assigned %s members in zone %s", len(members), zone.zone_id)
    return {
        "assigned_count": len(members),
        "message": f"Auto-assigned {len(members)} members to home cells in {zone.name}",
    }
