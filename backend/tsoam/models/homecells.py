# tsoam/models/homecells.py
"""
Home-cell hierarchy: district -> zone -> home cell.

Members point at their current home cell (`members.homecell_id`); the
assignment table keeps the history of moves.
"""

from __future__ import annotations

import uuid
from datetime import datetime, time
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text, Time, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tsoam.db import Base


class District(Base):
    __tablename__ = "districts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    district_id: Mapped[str] = mapped_column(String(32), nullable=False, unique=True)  # DIST-001
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text(), nullable=True)
    leader_id: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())

    zones: Mapped[list["Zone"]] = relationship(back_populates="district", order_by="Zone.name")


class Zone(Base):
    __tablename__ = "zones"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    zone_id: Mapped[str] = mapped_column(String(32), nullable=False, unique=True)  # ZONE-001
    district_pk: Mapped[int] = mapped_column(Integer, ForeignKey("districts.id"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text(), nullable=True)
    leader_id: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())

    district: Mapped[District] = relationship(back_populates="zones")
    homecells: Mapped[list["HomeCell"]] = relationship(back_populates="zone", order_by="HomeCell.name")


class HomeCell(Base):
    __tablename__ = "homecells"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    homecell_id: Mapped[str] = mapped_column(String(32), nullable=False, unique=True)  # HC-001
    zone_pk: Mapped[int] = mapped_column(Integer, ForeignKey("zones.id"), nullable=False, index=True)
    district_pk: Mapped[int] = mapped_column(Integer, ForeignKey("districts.id"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text(), nullable=True)
    leader_id: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    meeting_day: Mapped[Optional[str]] = mapped_column(String(12), nullable=True)
    meeting_time: Mapped[Optional[time]] = mapped_column(Time(), nullable=True)
    meeting_location: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    member_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())

    zone: Mapped[Zone] = relationship(back_populates="homecells")
    members: Mapped[list["Member"]] = relationship("Member", back_populates="homecell")  # noqa: F821


class HomeCellAssignment(Base):
    __tablename__ = "homecell_members"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    member_pk: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("members.id", ondelete="CASCADE"), nullable=False, index=True
    )
    homecell_pk: Mapped[int] = mapped_column(
        Integer, ForeignKey("homecells.id", ondelete="CASCADE"), nullable=False, index=True
    )
    assigned_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    notes: Mapped[Optional[str]] = mapped_column(Text(), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
