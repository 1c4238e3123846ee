# tsoam/schemas/events.py
from __future__ import annotations

import uuid
from datetime import date, datetime, time
from typing import Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

EventStatus = Literal["Scheduled", "Ongoing", "Completed", "Cancelled"]


class EventBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    event_type: str = "Service"
    start_date: date
    end_date: Optional[date] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    location: Optional[str] = None
    organizer: Optional[str] = None
    registration_required: bool = False
    registration_deadline: Optional[date] = None
    max_attendees: Optional[int] = Field(None, ge=1)
    status: EventStatus = "Scheduled"

    model_config = ConfigDict(from_attributes=True)


class EventCreate(EventBase):
    @model_validator(mode="after")
    def _check_dates(self):
        if self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date")
        return self


class EventUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    event_type: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    location: Optional[str] = None
    organizer: Optional[str] = None
    registration_required: Optional[bool] = None
    registration_deadline: Optional[date] = None
    max_attendees: Optional[int] = Field(None, ge=1)
    status: Optional[EventStatus] = None


class EventOut(EventBase):
    id: uuid.UUID
    event_id: str
    is_active: bool = True
    created_by: Optional[str] = None
    registration_count: int = 0


class RegistrationIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    email: str = Field(..., min_length=3, max_length=255)
    phone: Optional[str] = None
    special_requirements: Optional[str] = None


class RegistrationOut(RegistrationIn):
    id: uuid.UUID
    status: str
    registration_date: datetime

    model_config = ConfigDict(from_attributes=True)


class EventStats(BaseModel):
    total_events: int
    upcoming_events: int
    by_type: Dict[str, int]
    by_status: Dict[str, int]
    total_registrations: int
