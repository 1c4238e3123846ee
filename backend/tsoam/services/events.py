# tsoam/services/events.py
from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from tsoam.models.events import ChurchEvent, EventRegistration
from tsoam.schemas.events import EventCreate, EventUpdate, RegistrationIn
from tsoam.services import system_logs
from tsoam.services.identifiers import next_formatted_id

logger = logging.getLogger(__name__)

EVENT_PREFIX = "EVT-"


def _actor(user: Any) -> Optional[str]:
    return getattr(user, "full_name", None) or getattr(user, "email", None)


def create_event(db: Session, data: EventCreate, user: Any = None) -> ChurchEvent:
    event = ChurchEvent(
        **data.model_dump(),
        event_id=next_formatted_id(db, ChurchEvent.event_id, EVENT_PREFIX),
        created_by=_actor(user),
        is_active=True,
    )
    db.add(event)
    system_logs.record(db, action="Create event", module="Events", user=user, entity_type="event", entity_id=event.event_id)
    db.commit()
    db.refresh(event)
    logger.info("event created event_id=%s date=%s", event.event_id, event.start_date)
    return event


def list_events(
    db: Session,
    *,
    event_type: Optional[str] = None,
    status: Optional[str] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
    search: Optional[str] = None,
) -> List[ChurchEvent]:
    stmt = select(ChurchEvent).where(ChurchEvent.is_active.is_(True))
    if event_type:
        stmt = stmt.where(ChurchEvent.event_type == event_type)
    if status:
        stmt = stmt.where(ChurchEvent.status == status)
    if start:
        stmt = stmt.where(ChurchEvent.start_date >= start)
    if end:
        stmt = stmt.where(ChurchEvent.start_date <= end)
    if search:
        like = f"%{search.strip()}%"
        stmt = stmt.where(
            or_(
                ChurchEvent.title.ilike(like),
                ChurchEvent.description.ilike(like),
                ChurchEvent.location.ilike(like),
                ChurchEvent.organizer.ilike(like),
            )
        )
    return list(db.execute(stmt.order_by(ChurchEvent.start_date, ChurchEvent.start_time)).scalars().all())


def upcoming(db: Session, limit: int = 10) -> List[ChurchEvent]:
    stmt = (
        select(ChurchEvent)
        .where(
            ChurchEvent.is_active.is_(True),
            ChurchEvent.start_date >= date.today(),
            ChurchEvent.status != "Cancelled",
        )
        .order_by(ChurchEvent.start_date, ChurchEvent.start_time)
        .limit(limit)
    )
    return list(db.execute(stmt).scalars().all())


def get_event(db: Session, event_pk) -> ChurchEvent:
    event = db.get(ChurchEvent, event_pk)
    if event is None or not event.is_active:
        raise LookupError("Event not found")
    return event


def update_event(db: Session, event_pk, data: EventUpdate, user: Any = None) -> ChurchEvent:
    event = get_event(db, event_pk)
    for k, v in data.model_dump(exclude_unset=True).items():
        setattr(event, k, v)
    if event.end_date and event.end_date < event.start_date:
        raise ValueError("end_date must be on or after start_date")
    system_logs.record(db, action="Update event", module="Events", user=user, entity_type="event", entity_id=event.event_id)
    db.commit()
    db.refresh(event)
    return event


def delete_event(db: Session, event_pk, user: Any = None) -> ChurchEvent:
    event = get_event(db, event_pk)
    event.is_active = False
    system_logs.record(db, action="Delete event", module="Events", user=user, entity_type="event", entity_id=event.event_id, severity="Warning")
    db.commit()
    db.refresh(event)
    return event


def _confirmed(event: ChurchEvent) -> List[EventRegistration]:
    return [r for r in event.registrations if r.status == "Confirmed"]


def register(db: Session, event_pk, data: RegistrationIn, today: Optional[date] = None) -> EventRegistration:
    event = get_event(db, event_pk)
    today = today or date.today()
    if not event.registration_required:
        raise ValueError("This event does not take registrations")
    if event.registration_deadline and today > event.registration_deadline:
        raise ValueError("Registration deadline has passed")
    confirmed = _confirmed(event)
    if event.max_attendees is not None and len(confirmed) >= event.max_attendees:
        raise ValueError("Event is full")
    email = data.email.strip().lower()
    if any(r.email.lower() == email for r in confirmed):
        raise FileExistsError("Already registered for this event")

    reg = EventRegistration(event_pk=event.id, **{**data.model_dump(), "email": email}, status="Confirmed")
    db.add(reg)
    db.commit()
    db.refresh(reg)
    logger.info("registration event=%s email=%s", event.event_id, email)
    return reg


def registrations(db: Session, event_pk) -> List[EventRegistration]:
    event = get_event(db, event_pk)
    return sorted(event.registrations, key=lambda r: r.registration_date)


def registration_count(db: Session, event: ChurchEvent) -> int:
    return db.execute(
        select(func.count(EventRegistration.id)).where(
            EventRegistration.event_pk == event.id, EventRegistration.status == "Confirmed"
        )
    ).scalar_one()


def event_stats(db: Session) -> Dict[str, Any]:
    active = ChurchEvent.is_active.is_(True)
    total = db.execute(select(func.count(ChurchEvent.id)).where(active)).scalar_one()
    upcoming_n = db.execute(
        select(func.count(ChurchEvent.id)).where(active, ChurchEvent.start_date >= date.today())
    ).scalar_one()
    by_type = db.execute(select(ChurchEvent.event_type, func.count(ChurchEvent.id)).where(active).group_by(ChurchEvent.event_type)).all()
    by_status = db.execute(select(ChurchEvent.status, func.count(ChurchEvent.id)).where(active).group_by(ChurchEvent.status)).all()
    regs = db.execute(
        select(func.count(EventRegistration.id))
        .join(ChurchEvent, ChurchEvent.id == EventRegistration.event_pk)
        .where(active, EventRegistration.status == "Confirmed")
    ).scalar_one()
    return {
        "total_events": total,
        "upcoming_events": upcoming_n,
        "by_type": {t: n for t, n in by_type},
        "by_status": {s: n for s, n in by_status},
        "total_registrations": regs,
    }


# ------------------------------- ICS export ------------------------------- #

def _sanitize_ics_text(text: Optional[str]) -> str:
    if not text:
        return ""
    return (
        text.replace("\\", "\\\\")
        .replace(",", "\\,")
        .replace(";", "\\;")
        .replace("\r\n", "\\n")
        .replace("\n", "\\n")
    )


def _format_ics_dt(dt: datetime) -> str:
    return dt.strftime("%Y%m%dT%H%M%S")


def to_ics(events: List[ChurchEvent], calendar_name: str = "TSOAM Church Events") -> str:
    """VCALENDAR text. Events without a start time are exported as all-day (VALUE=DATE)."""
    now_utc = datetime.now(timezone.utc)
    lines: List[str] = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        "PRODID:-//TSOAM//Church Events//EN",
        "CALSCALE:GREGORIAN",
        "METHOD:PUBLISH",
        f"X-WR-CALNAME:{calendar_name}",
    ]
    for e in events:
        lines.append("BEGIN:VEVENT")
        lines.append(f"UID:{e.event_id}@tsoam")
        lines.append(f"DTSTAMP:{now_utc.strftime('%Y%m%dT%H%M%SZ')}")
        last_day = e.end_date or e.start_date
        if e.start_time is None:
            lines.append(f"DTSTART;VALUE=DATE:{e.start_date.strftime('%Y%m%d')}")
            # DTEND is exclusive for all-day events
            lines.append(f"DTEND;VALUE=DATE:{(last_day + timedelta(days=1)).strftime('%Y%m%d')}")
        else:
            start_dt = datetime.combine(e.start_date, e.start_time)
            end_dt = datetime.combine(last_day, e.end_time or e.start_time)
            lines.append(f"DTSTART:{_format_ics_dt(start_dt)}")
            lines.append(f"DTEND:{_format_ics_dt(end_dt)}")
        lines.append(f"SUMMARY:{_sanitize_ics_text(e.title)}")
        if e.location:
            lines.append(f"LOCATION:{_sanitize_ics_text(e.location)}")
        if e.description:
            lines.append(f"DESCRIPTION:{_sanitize_ics_text(e.description)}")
        if e.status == "Cancelled":
            lines.append("STATUS:CANCELLED")
        lines.append("END:VEVENT")
    lines.append("END:VCALENDAR")
    return "\r\n".join(lines) + "\r\n"


# ------------------------------- ICS import ------------------------------- #

def import_ics(db: Session, raw: bytes, user: Any = None, event_type: str = "Service") -> List[ChurchEvent]:
    """Create events from the VEVENTs of an .ics file."""
    import icalendar

    try:
        cal = icalendar.Calendar.from_ical(raw)
    except ValueError as e:
        raise ValueError(f"Invalid ICS file: {e}")

    created: List[ChurchEvent] = []
    for comp in cal.walk("VEVENT"):
        dtstart = comp.get("DTSTART")
        if dtstart is None:
            continue
        start = dtstart.dt
        dtend = comp.get("DTEND")
        end = dtend.dt if dtend is not None else None

        if isinstance(start, datetime):
            start_date, start_time = start.date(), start.time().replace(tzinfo=None)
            end_date = end.date() if isinstance(end, datetime) else None
            end_time = end.time().replace(tzinfo=None) if isinstance(end, datetime) else None
        else:
            start_date, start_time, end_time = start, None, None
            # all-day DTEND is exclusive
            end_date = end - timedelta(days=1) if isinstance(end, date) else None

        if end_date is not None and end_date <= start_date:
            end_date = None

        event = ChurchEvent(
            event_id=next_formatted_id(db, ChurchEvent.event_id, EVENT_PREFIX),
            title=str(comp.get("SUMMARY") or "Untitled event")[:200],
            description=str(comp.get("DESCRIPTION")) if comp.get("DESCRIPTION") else None,
            location=str(comp.get("LOCATION")) if comp.get("LOCATION") else None,
            event_type=event_type,
            start_date=start_date,
            end_date=end_date,
            start_time=start_time,
            end_time=end_time if start_time is not None else None,
            status="Scheduled",
            created_by=_actor(user),
            is_active=True,
        )
        db.add(event)
        db.flush()
        created.append(event)

    if not created:
        raise ValueError("No events found in ICS file")
    system_logs.record(
        db, action="Import events", module="Events", user=user, entity_type="event",
        details={"count": len(created)},
    )
    db.commit()
    for e in created:
        db.refresh(e)
    logger.info("imported %s events from ICS", len(created))
    return created


def event_out(db: Session, event: ChurchEvent) -> Dict[str, Any]:
    data = {c.key: getattr(event, c.key) for c in ChurchEvent.__table__.columns}
    data["registration_count"] = registration_count(db, event)
    return data
