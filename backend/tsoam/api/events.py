# tsoam/api/events.py
from __future__ import annotations

import uuid
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Query, Response, UploadFile, status
from sqlalchemy.orm import Session

from tsoam.db import get_db
from tsoam.dependencies import get_current_user, http_errors, require_permission
from tsoam.models.users import User
from tsoam.schemas.events import (
    EventCreate,
    EventOut,
    EventStats,
    EventUpdate,
    RegistrationIn,
    RegistrationOut,
)
from tsoam.services import events as svc
from tsoam.services.demo_data import with_demo_fallback

router = APIRouter(prefix="/events", tags=["Events"])

_events = require_permission("can_access_events")


@router.get("", response_model=List[EventOut], dependencies=[Depends(_events)])
def list_events(
    event_type: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    db: Session = Depends(get_db),
):
    def _load():
        rows = svc.list_events(db, event_type=event_type, status=status, start=start, end=end)
        return [svc.event_out(db, e) for e in rows]

    return with_demo_fallback("events", _load, db)


@router.get("/upcoming/list", response_model=List[EventOut], dependencies=[Depends(get_current_user)])
def upcoming(limit: int = Query(10, ge=1, le=100), db: Session = Depends(get_db)):
    return [svc.event_out(db, e) for e in svc.upcoming(db, limit)]


@router.get("/stats/summary", response_model=EventStats, dependencies=[Depends(_events)])
def stats(db: Session = Depends(get_db)):
    return svc.event_stats(db)


@router.get("/search/{term}", response_model=List[EventOut], dependencies=[Depends(_events)])
def search(term: str, db: Session = Depends(get_db)):
    return [svc.event_out(db, e) for e in svc.list_events(db, search=term)]


@router.get("/export.ics", dependencies=[Depends(_events)])
def export_ics(start: Optional[date] = Query(None), end: Optional[date] = Query(None), db: Session = Depends(get_db)):
    """Export events as VCALENDAR. Events without a start time use VALUE=DATE."""
    events = svc.list_events(db, start=start, end=end)
    ics_text = svc.to_ics(events)
    stamp = f"{start or 'all'}_{end or 'all'}"
    headers = {"Content-Disposition": f'attachment; filename="tsoam_events_{stamp}.ics"'}
    return Response(content=ics_text, media_type="text/calendar", headers=headers)


@router.post("/import", response_model=List[EventOut], status_code=status.HTTP_201_CREATED)
async def import_ics(
    file: UploadFile = File(...),
    event_type: str = Query("Service"),
    db: Session = Depends(get_db),
    user: User = Depends(_events),
):
    raw = await file.read()
    with http_errors(db):
        created = svc.import_ics(db, raw, user, event_type=event_type)
    return [svc.event_out(db, e) for e in created]


@router.get("/{event_pk}", response_model=EventOut, dependencies=[Depends(_events)])
def get_event(event_pk: uuid.UUID, db: Session = Depends(get_db)):
    with http_errors(db):
        return svc.event_out(db, svc.get_event(db, event_pk))


@router.post("", response_model=EventOut, status_code=status.HTTP_201_CREATED)
def create_event(payload: EventCreate, db: Session = Depends(get_db), user: User = Depends(_events)):
    with http_errors(db):
        return svc.event_out(db, svc.create_event(db, payload, user))


@router.put("/{event_pk}", response_model=EventOut)
def update_event(event_pk: uuid.UUID, payload: EventUpdate, db: Session = Depends(get_db), user: User = Depends(_events)):
    with http_errors(db):
        return svc.event_out(db, svc.update_event(db, event_pk, payload, user))


@router.delete("/{event_pk}", response_model=EventOut)
def delete_event(event_pk: uuid.UUID, db: Session = Depends(get_db), user: User = Depends(_events)):
    with http_errors(db):
        return svc.event_out(db, svc.delete_event(db, event_pk, user))


@router.post("/{event_pk}/register", response_model=RegistrationOut, status_code=status.HTTP_201_CREATED)
def register(event_pk: uuid.UUID, payload: RegistrationIn, db: Session = Depends(get_db)):
    """Public registration; no login needed."""
    with http_errors(db):
        return svc.register(db, event_pk, payload)


@router.get("/{event_pk}/registrations", response_model=List[RegistrationOut], dependencies=[Depends(_events)])
def registrations(event_pk: uuid.UUID, db: Session = Depends(get_db)):
    with http_errors(db):
        return svc.registrations(db, event_pk)
