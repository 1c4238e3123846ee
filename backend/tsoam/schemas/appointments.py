# tsoam/schemas/appointments.py
from __future__ import annotations

import uuid
from datetime import date, datetime, time
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

AppointmentStatus = Literal["Scheduled", "Confirmed", "Completed", "Cancelled"]


class AppointmentBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    appointment_type: str = "Counseling"
    appointed_with: Optional[str] = None
    assigned_to: Optional[uuid.UUID] = None
    attendees: List[str] = Field(default_factory=list)
    appointment_date: date
    start_time: time
    end_time: time
    location: Optional[str] = None
    status: AppointmentStatus = "Scheduled"
    notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class AppointmentCreate(AppointmentBase):
    @model_validator(mode="after")
    def _check_times(self):
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class AppointmentUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    appointment_type: Optional[str] = None
    appointed_with: Optional[str] = None
    assigned_to: Optional[uuid.UUID] = None
    attendees: Optional[List[str]] = None
    appointment_date: Optional[date] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    location: Optional[str] = None
    status: Optional[AppointmentStatus] = None
    notes: Optional[str] = None


class AppointmentOut(AppointmentBase):
    id: uuid.UUID
    created_by: Optional[uuid.UUID] = None
    is_active: bool
    created_at: datetime
