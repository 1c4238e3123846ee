# tsoam/models/modules.py
"""
Module store: the catalog of sellable modules, their features, the
church's subscriptions and an access audit trail.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, Numeric, String, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tsoam.db import Base


class Module(Base):
    __tablename__ = "modules"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    module_code: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)  # finance, hr, ...
    module_name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text(), nullable=True)
    version: Mapped[str] = mapped_column(String(20), nullable=False, default="1.0.0")
    price_usd: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    price_kes: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    # monthly | annual | one-time
    billing_cycle: Mapped[str] = mapped_column(String(20), nullable=False, default="monthly")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    features: Mapped[list["ModuleFeature"]] = relationship(
        back_populates="module", cascade="all, delete-orphan", order_by="ModuleFeature.id"
    )


class ModuleFeature(Base):
    __tablename__ = "module_features"
    __table_args__ = (UniqueConstraint("module_id", "feature_code", name="uq_module_feature"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    module_id: Mapped[int] = mapped_column(Integer, ForeignKey("modules.id", ondelete="CASCADE"), nullable=False, index=True)
    feature_code: Mapped[str] = mapped_column(String(100), nullable=False)
    feature_name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text(), nullable=True)
    is_required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    module: Mapped[Module] = relationship(back_populates="features")


class ChurchSubscription(Base):
    __tablename__ = "church_subscriptions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    module_id: Mapped[int] = mapped_column(Integer, ForeignKey("modules.id", ondelete="CASCADE"), nullable=False, index=True)
    license_key: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)  # LIC-<ms>-<random>
    # active | inactive | expired
    status: Mapped[str] = mapped_column(String(12), nullable=False, default="active", index=True)
    purchase_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    activation_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    expiration_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    # perpetual | trial | subscription
    license_type: Mapped[str] = mapped_column(String(20), nullable=False, default="perpetual")
    max_users: Mapped[int] = mapped_column(Integer, nullable=False, default=-1)  # -1 = unlimited
    active_users_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    notes: Mapped[Optional[str]] = mapped_column(Text(), nullable=True)

    module: Mapped[Module] = relationship()


class ModuleAccessLog(Base):
    __tablename__ = "module_access_log"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)
    module_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("modules.id", ondelete="SET NULL"), nullable=True, index=True
    )
    # access_granted | access_denied | module_activated | module_deactivated
    action: Mapped[str] = mapped_column(String(32), nullable=False)
    details: Mapped[Optional[str]] = mapped_column(Text(), nullable=True)
    ip_address: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), index=True
    )
