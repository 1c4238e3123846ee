# tsoam/schemas/homecells.py
from __future__ import annotations

from datetime import time
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class DistrictIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    description: Optional[str] = None
    leader_id: Optional[str] = None


class DistrictUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=120)
    description: Optional[str] = None
    leader_id: Optional[str] = None
    is_active: Optional[bool] = None


class ZoneIn(DistrictIn):
    district_pk: int


class ZoneUpdate(DistrictUpdate):
    district_pk: Optional[int] = None


class HomeCellIn(DistrictIn):
    zone_pk: int
    meeting_day: Optional[str] = None
    meeting_time: Optional[time] = None
    meeting_location: Optional[str] = None


class HomeCellUpdate(DistrictUpdate):
    zone_pk: Optional[int] = None
    meeting_day: Optional[str] = None
    meeting_time: Optional[time] = None
    meeting_location: Optional[str] = None


class HomeCellOut(BaseModel):
    id: int
    homecell_id: str
    name: str
    description: Optional[str] = None
    leader_id: Optional[str] = None
    zone_pk: Optional[int] = None
    district_pk: Optional[int] = None
    meeting_day: Optional[str] = None
    meeting_time: Optional[time] = None
    meeting_location: Optional[str] = None
    member_count: int = 0
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class ZoneOut(BaseModel):
    id: int
    zone_id: str
    name: str
    description: Optional[str] = None
    leader_id: Optional[str] = None
    district_pk: Optional[int] = None
    is_active: bool
    homecells: List[HomeCellOut] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class DistrictOut(BaseModel):
    id: int
    district_id: str
    name: str
    description: Optional[str] = None
    leader_id: Optional[str] = None
    is_active: bool
    zones: List[ZoneOut] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class AssignIn(BaseModel):
    notes: Optional[str] = None


class AutoAssignIn(BaseModel):
    zone_id: int


class HomeCellStats(BaseModel):
    total_members: int
    active_members: int
    inactive_members: int
    male_members: int
    female_members: int


class DistrictSummary(BaseModel):
    district_id: str
    name: str
    zones: int
    homecells: int
    members: int


class HomeCellOption(BaseModel):
    value: str
    label: str
