# tsoam/api/homecells.py
from __future__ import annotations

import uuid
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query, Response, status
from sqlalchemy.orm import Session

from tsoam.db import get_db
from tsoam.dependencies import get_current_user, http_errors, require_permission
from tsoam.models.users import User
from tsoam.schemas.homecells import (
    AssignIn,
    AutoAssignIn,
    DistrictIn,
    DistrictOut,
    DistrictSummary,
    DistrictUpdate,
    HomeCellIn,
    HomeCellOption,
    HomeCellOut,
    HomeCellStats,
    HomeCellUpdate,
    ZoneIn,
    ZoneOut,
    ZoneUpdate,
)
from tsoam.schemas.members import MemberOut
from tsoam.services import homecell_reports as reports
from tsoam.services import homecells as svc
from tsoam.services.demo_data import with_demo_fallback
from tsoam.services.homecell_hierarchy import hierarchy

router = APIRouter(prefix="/homecells", tags=["Home Cells"])

_members = require_permission("can_access_members")


def _download(report, fmt: str) -> Response:
    body, media_type, filename = reports.render(report, fmt)
    return Response(content=body, media_type=media_type, headers={"Content-Disposition": f'attachment; filename="{filename}"'})


@router.get("/options", response_model=List[HomeCellOption], dependencies=[Depends(get_current_user)])
def homecell_options(refresh: bool = Query(False), db: Session = Depends(get_db)):
    """Active home cells as dropdown options, served from the hierarchy cache."""
    if refresh:
        hierarchy.refresh(db)
    else:
        hierarchy.initialize(db)
    return hierarchy.active_homecell_options()


@router.get("/hierarchy/full", response_model=List[DistrictOut], dependencies=[Depends(_members)])
def full_hierarchy(db: Session = Depends(get_db)):
    return with_demo_fallback("hierarchy", lambda: svc.full_hierarchy(db), db)


@router.post("/auto-assign-members")
def auto_assign(payload: AutoAssignIn, db: Session = Depends(get_db), user: User = Depends(_members)):
    with http_errors(db):
        return svc.auto_assign(db, payload.zone_id, user)


# -------------------------------- districts -------------------------------- #

@router.get("/districts", response_model=List[DistrictOut], dependencies=[Depends(_members)])
def list_districts(db: Session = Depends(get_db)):
    return svc.district_rows(db)


@router.get("/districts/{pk}", response_model=DistrictOut, dependencies=[Depends(_members)])
def get_district(pk: int, db: Session = Depends(get_db)):
    with http_errors(db):
        return svc.district_detail(db, pk)


@router.get("/districts/{pk}/zones", response_model=List[ZoneOut], dependencies=[Depends(_members)])
def district_zones(pk: int, db: Session = Depends(get_db)):
    return [svc.zone_detail(db, z.id) for z in svc.list_zones(db, pk)]


@router.get("/districts/{pk}/summary", response_model=DistrictSummary, dependencies=[Depends(_members)])
def district_summary(pk: int, db: Session = Depends(get_db)):
    with http_errors(db):
        return svc.district_summary(db, pk)


@router.get("/districts/{pk}/export", dependencies=[Depends(_members)])
def export_district(pk: int, format: str = Query("html", pattern="^(csv|html)$"), db: Session = Depends(get_db)):
    """Zone list of a district as CSV or printable HTML."""
    with http_errors(db):
        return _download(reports.district_report(db, pk), format)


@router.post("/districts", response_model=DistrictOut, status_code=status.HTTP_201_CREATED)
def create_district(payload: DistrictIn, db: Session = Depends(get_db), user: User = Depends(_members)):
    with http_errors(db):
        return svc.create_district(db, payload, user)


@router.put("/districts/{pk}", response_model=DistrictOut)
def update_district(pk: int, payload: DistrictUpdate, db: Session = Depends(get_db), user: User = Depends(_members)):
    with http_errors(db):
        return svc.update_district(db, pk, payload, user)


@router.delete("/districts/{pk}", response_model=DistrictOut)
def delete_district(pk: int, db: Session = Depends(get_db), user: User = Depends(_members)):
    with http_errors(db):
        return svc.deactivate_district(db, pk, user)


# ---------------------------------- zones ---------------------------------- #

@router.get("/zones/{pk}", response_model=ZoneOut, dependencies=[Depends(_members)])
def get_zone(pk: int, db: Session = Depends(get_db)):
    with http_errors(db):
        return svc.zone_detail(db, pk)


@router.get("/zones/{pk}/homecells", response_model=List[HomeCellOut], dependencies=[Depends(_members)])
def zone_homecells(pk: int, db: Session = Depends(get_db)):
    return svc.list_homecells(db, pk)


@router.post("/zones", response_model=ZoneOut, status_code=status.HTTP_201_CREATED)
def create_zone(payload: ZoneIn, db: Session = Depends(get_db), user: User = Depends(_members)):
    with http_errors(db):
        return svc.create_zone(db, payload, user)


@router.put("/zones/{pk}", response_model=ZoneOut)
def update_zone(pk: int, payload: ZoneUpdate, db: Session = Depends(get_db), user: User = Depends(_members)):
    with http_errors(db):
        return svc.update_zone(db, pk, payload, user)


@router.delete("/zones/{pk}", response_model=ZoneOut)
def delete_zone(pk: int, db: Session = Depends(get_db), user: User = Depends(_members)):
    with http_errors(db):
        return svc.deactivate_zone(db, pk, user)


# -------------------------------- home cells -------------------------------- #

@router.get("", response_model=List[HomeCellOut], dependencies=[Depends(_members)])
def list_homecells(zone_id: Optional[int] = Query(None), db: Session = Depends(get_db)):
    return svc.list_homecells(db, zone_id)


@router.get("/{pk}", response_model=HomeCellOut, dependencies=[Depends(_members)])
def get_homecell(pk: int, db: Session = Depends(get_db)):
    with http_errors(db):
        return svc.get_homecell(db, pk)


@router.post("", response_model=HomeCellOut, status_code=status.HTTP_201_CREATED)
def create_homecell(payload: HomeCellIn, db: Session = Depends(get_db), user: User = Depends(_members)):
    with http_errors(db):
        return svc.create_homecell(db, payload, user)


@router.put("/{pk}", response_model=HomeCellOut)
def update_homecell(pk: int, payload: HomeCellUpdate, db: Session = Depends(get_db), user: User = Depends(_members)):
    with http_errors(db):
        return svc.update_homecell(db, pk, payload, user)


@router.delete("/{pk}", response_model=HomeCellOut)
def delete_homecell(pk: int, db: Session = Depends(get_db), user: User = Depends(_members)):
    with http_errors(db):
        return svc.deactivate_homecell(db, pk, user)


@router.post("/{pk}/members/{member_pk}")
def assign_member(
    pk: int,
    member_pk: uuid.UUID,
    payload: Optional[AssignIn] = Body(None),
    db: Session = Depends(get_db),
    user: User = Depends(_members),
):
    with http_errors(db):
        a = svc.assign_member(db, pk, member_pk, payload.notes if payload else None, user)
    return {"member_id": str(a.member_pk), "homecell_id": a.homecell_pk, "assigned_date": a.assigned_date, "notes": a.notes}


@router.get("/{pk}/members", response_model=List[MemberOut], dependencies=[Depends(_members)])
def homecell_members(pk: int, db: Session = Depends(get_db)):
    with http_errors(db):
        return svc.homecell_members(db, pk)


@router.get("/{pk}/stats", response_model=HomeCellStats, dependencies=[Depends(_members)])
def homecell_stats(pk: int, db: Session = Depends(get_db)):
    with http_errors(db):
        return svc.homecell_stats(db, pk)


@router.get("/{pk}/export", dependencies=[Depends(_members)])
def export_homecell(pk: int, format: str = Query("html", pattern="^(csv|html)$"), db: Session = Depends(get_db)):
    """Member roster of a home cell as CSV or printable HTML."""
    with http_errors(db):
        return _download(reports.homecell_report(db, pk), format)
