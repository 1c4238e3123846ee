# tsoam/services/appointments.py
from __future__ import annotations

import logging
from datetime import date
from typing import Any, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from tsoam.models.appointments import Appointment
from tsoam.schemas.appointments import AppointmentCreate, AppointmentUpdate
from tsoam.services import system_logs
from tsoam.services.access import filter_appointments

logger = logging.getLogger(__name__)


def create_appointment(db: Session, data: AppointmentCreate, user: Any = None) -> Appointment:
    appt = Appointment(**data.model_dump(), created_by=getattr(user, "id", None), is_active=True)
    db.add(appt)
    db.flush()
    system_logs.record(db, action="Create appointment", module="Appointments", user=user, entity_type="appointment", entity_id=appt.id)
    db.commit()
    db.refresh(appt)
    return appt


def list_appointments(
    db: Session,
    user: Any,
    *,
    on: Optional[date] = None,
    status: Optional[str] = None,
) -> List[Appointment]:
    """Appointments visible to `user`."""
    stmt = select(Appointment).where(Appointment.is_active.is_(True))
    if on:
        stmt = stmt.where(Appointment.appointment_date == on)
    if status:
        stmt = stmt.where(Appointment.status == status)
    rows = db.execute(stmt.order_by(Appointment.appointment_date, Appointment.start_time)).scalars().all()
    return filter_appointments(getattr(user, "role", None), getattr(user, "id", None), rows)


def get_appointment(db: Session, appt_pk, user: Any) -> Appointment:
    appt = db.get(Appointment, appt_pk)
    if appt is None or not appt.is_active or not filter_appointments(user.role, user.id, [appt]):
        raise LookupError("Appointment not found")
    return appt


def update_appointment(db: Session, appt_pk, data: AppointmentUpdate, user: Any) -> Appointment:
    appt = get_appointment(db, appt_pk, user)
    for k, v in data.model_dump(exclude_unset=True).items():
        setattr(appt, k, v)
    if appt.end_time <= appt.start_time:
        raise ValueError("end_time must be after start_time")
    db.commit()
    db.refresh(appt)
    return appt


def cancel_appointment(db: Session, appt_pk, user: Any) -> Appointment:
    appt = get_appointment(db, appt_pk, user)
    # Status change only; cancelled appointments stay readable and listable.
    appt.status = "Cancelled"
    system_logs.record(db, action="Cancel appointment", module="Appointments", user=user, entity_type="appointment", entity_id=appt.id)
    db.commit()
    db.refresh(appt)
    logger.info("appointment %s cancelled", appt.id)
    return appt
