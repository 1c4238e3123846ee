# tsoam/api/appointments.py
from __future__ import annotations

import uuid
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from tsoam.db import get_db
from tsoam.dependencies import http_errors, require_permission
from tsoam.models.users import User
from tsoam.schemas.appointments import AppointmentCreate, AppointmentOut, AppointmentUpdate
from tsoam.services import appointments as svc

router = APIRouter(prefix="/appointments", tags=["Appointments"])

_appointments = require_permission("can_access_appointments")


@router.get("", response_model=List[AppointmentOut])
def list_appointments(
    on: Optional[date] = Query(None, alias="date"),
    status: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    user: User = Depends(_appointments),
):
    return svc.list_appointments(db, user, on=on, status=status)


@router.get("/{appt_pk}", response_model=AppointmentOut)
def get_appointment(appt_pk: uuid.UUID, db: Session = Depends(get_db), user: User = Depends(_appointments)):
    with http_errors(db):
        return svc.get_appointment(db, appt_pk, user)


@router.post("", response_model=AppointmentOut, status_code=status.HTTP_201_CREATED)
def create_appointment(payload: AppointmentCreate, db: Session = Depends(get_db), user: User = Depends(_appointments)):
    with http_errors(db):
        return svc.create_appointment(db, payload, user)


@router.put("/{appt_pk}", response_model=AppointmentOut)
def update_appointment(appt_pk: uuid.UUID, payload: AppointmentUpdate, db: Session = Depends(get_db), user: User = Depends(_appointments)):
    with http_errors(db):
        return svc.update_appointment(db, appt_pk, payload, user)


@router.delete("/{appt_pk}", response_model=AppointmentOut)
def cancel_appointment(appt_pk: uuid.UUID, db: Session = Depends(get_db), user: User = Depends(_appointments)):
    with http_errors(db):
        return svc.cancel_appointment(db, appt_pk, user)
