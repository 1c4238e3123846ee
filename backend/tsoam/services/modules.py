# tsoam/services/modules.py
"""
Module store: catalog, purchases and per-module access checks.

A module is "purchased" while it has an active subscription whose
expiration date (if any) is still in the future. An active subscription
found past its expiration date is flipped to `expired` on the next read.
Every access check and (de)activation is written to `module_access_log`.

Raises:
- LookupError      unknown module / no subscription (404)
- FileExistsError  module already purchased (409)
- ValueError       reactivating a lapsed subscription (400)
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional

from dateutil.relativedelta import relativedelta
from sqlalchemy import select
from sqlalchemy.orm import Session

from tsoam.models.modules import ChurchSubscription, Module, ModuleAccessLog, ModuleFeature
from tsoam.schemas.modules import PurchaseIn
from tsoam.services import system_logs
from tsoam.services.identifiers import random_suffix, timestamp_ms

logger = logging.getLogger(__name__)

TRIAL_PERIOD = timedelta(days=30)

DEFAULT_MODULES: List[Dict[str, Any]] = [
    {"module_code": "member_management", "module_name": "Member Management",
     "description": "Complete member registration, tracking, and communication system",
     "price_usd": "29.99", "price_kes": "3500"},
    {"module_code": "finance", "module_name": "Finance & Accounting",
     "description": "Tithe tracking, offering management, expense tracking, and financial reports",
     "price_usd": "49.99", "price_kes": "5800"},
    {"module_code": "hr", "module_name": "HR & Payroll",
     "description": "Employee management, attendance tracking, and payroll processing",
     "price_usd": "39.99", "price_kes": "4600"},
    {"module_code": "homecells", "module_name": "HomeCells Management",
     "description": "Organize church into districts, zones, and home cells with hierarchy management",
     "price_usd": "24.99", "price_kes": "2900"},
    {"module_code": "welfare", "module_name": "Welfare & Support",
     "description": "Track member assistance, support requests, and welfare programs",
     "price_usd": "19.99", "price_kes": "2300"},
    {"module_code": "events", "module_name": "Events Management",
     "description": "Plan, organize, and track church events and services",
     "price_usd": "19.99", "price_kes": "2300"},
    {"module_code": "inventory", "module_name": "Inventory Management",
     "description": "Track church assets, equipment, and supplies",
     "price_usd": "19.99", "price_kes": "2300"},
    {"module_code": "appointments", "module_name": "Appointments & Scheduling",
     "description": "Schedule and manage pastoral appointments and counseling sessions",
     "price_usd": "14.99", "price_kes": "1700"},
]

# module_code -> (feature_code, feature_name, description, is_required)
DEFAULT_FEATURES: Dict[str, List[tuple]] = {
    "member_management": [
        ("member_registration", "Member Registration", "Register new members into the system", True),
        ("member_reports", "Member Reports", "Generate reports on member statistics", True),
        ("bulk_messaging", "Bulk SMS Messaging", "Send bulk SMS to members", False),
    ],
    "finance": [
        ("tithe_tracking", "Tithe Tracking", "Track tithes and offerings", True),
        ("expense_tracking", "Expense Tracking", "Track church expenses", True),
        ("financial_reports", "Financial Reports", "Generate financial reports", True),
        ("budget_planning", "Budget Planning", "Plan and track budgets", False),
    ],
    "hr": [
        ("employee_management", "Employee Management", "Manage employee records", True),
        ("attendance_tracking", "Attendance Tracking", "Track employee attendance", True),
        ("payroll", "Payroll Processing", "Process employee payroll", True),
    ],
    "homecells": [
        ("district_management", "District Management", "Manage church districts", True),
        ("zone_management", "Zone Management", "Manage zones within districts", True),
        ("homecell_organization", "HomeCell Organization", "Organize and manage home cells", True),
    ],
}


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _utc(dt: datetime) -> datetime:
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


# -------------------------------- catalog -------------------------------- #

def ensure_default_modules(db: Session) -> None:
    existing = set(db.execute(select(Module.module_code)).scalars().all())
    missing = [m for m in DEFAULT_MODULES if m["module_code"] not in existing]
    if not missing:
        return
    for row in missing:
        module = Module(
            **{**row, "price_usd": Decimal(row["price_usd"]), "price_kes": Decimal(row["price_kes"])},
            billing_cycle="monthly",
            is_active=True,
        )
        module.features = [
            ModuleFeature(feature_code=code, feature_name=name, description=desc, is_required=required)
            for code, name, desc, required in DEFAULT_FEATURES.get(row["module_code"], [])
        ]
        db.add(module)
    db.commit()
    logger.info("seeded modules %s", [m["module_code"] for m in missing])


def module_out(module: Module) -> Dict[str, Any]:
    data = {c.key: getattr(module, c.key) for c in Module.__table__.columns}
    data["features"] = list(module.features)
    data["feature_count"] = len(module.features)
    return data


def list_modules(db: Session) -> List[Module]:
    ensure_default_modules(db)
    return list(
        db.execute(select(Module).where(Module.is_active.is_(True)).order_by(Module.module_name)).scalars().all()
    )


def get_module(db: Session, module_pk: int) -> Module:
    ensure_default_modules(db)
    module = db.get(Module, module_pk)
    if module is None:
        raise LookupError("Module not found")
    return module


# ----------------------------- subscriptions ----------------------------- #

def _expire_lapsed(db: Session) -> None:
    now = _now()
    lapsed = [
        s
        for s in db.execute(
            select(ChurchSubscription).where(
                ChurchSubscription.status == "active", ChurchSubscription.expiration_date.is_not(None)
            )
        ).scalars()
        if _utc(s.expiration_date) <= now
    ]
    for s in lapsed:
        s.status = "expired"
        logger.info("subscription %s for module %s expired", s.license_key, s.module_id)
    if lapsed:
        db.commit()


def active_subscription(db: Session, module_pk: int) -> Optional[ChurchSubscription]:
    _expire_lapsed(db)
    return (
        db.execute(
            select(ChurchSubscription)
            .where(ChurchSubscription.module_id == module_pk, ChurchSubscription.status == "active")
            .order_by(ChurchSubscription.id.desc())
        )
        .scalars()
        .first()
    )


def _latest_subscription(db: Session, module_pk: int) -> ChurchSubscription:
    sub = (
        db.execute(
            select(ChurchSubscription)
            .where(ChurchSubscription.module_id == module_pk)
            .order_by(ChurchSubscription.id.desc())
        )
        .scalars()
        .first()
    )
    if sub is None:
        raise LookupError("No subscription for this module")
    return sub


def purchased_modules(db: Session) -> List[Dict[str, Any]]:
    _expire_lapsed(db)
    subs = db.execute(
        select(ChurchSubscription).where(ChurchSubscription.status == "active").order_by(ChurchSubscription.id)
    ).scalars().all()
    return [{"module": module_out(s.module), "subscription": s} for s in subs]


def _log_access(db: Session, user: Any, module_pk: Optional[int], action: str, ip: Optional[str], details: Optional[str] = None) -> None:
    db.add(
        ModuleAccessLog(
            user_id=str(getattr(user, "id", "")) or None,
            module_id=module_pk,
            action=action,
            details=details,
            ip_address=ip,
        )
    )


def check_access(db: Session, module_pk: int, user: Any, ip: Optional[str] = None) -> Dict[str, Any]:
    get_module(db, module_pk)
    sub = active_subscription(db, module_pk)
    _log_access(db, user, module_pk, "access_granted" if sub else "access_denied", ip)
    db.commit()
    return {"module_id": module_pk, "has_access": sub is not None, "subscription": sub}


def _expiry_for(license_type: str, start: datetime) -> Optional[datetime]:
    if license_type == "subscription":
        return start + relativedelta(months=1)
    if license_type == "trial":
        return start + TRIAL_PERIOD
    return None


def purchase(db: Session, data: PurchaseIn, user: Any = None, ip: Optional[str] = None) -> ChurchSubscription:
    module = get_module(db, data.module_id)
    if active_subscription(db, module.id) is not None:
        raise FileExistsError("Module already purchased")

    now = _now()
    sub = ChurchSubscription(
        module_id=module.id,
        license_key=f"LIC-{timestamp_ms()}-{random_suffix(6)}",
        status="active",
        purchase_date=now,
        activation_date=now,
        expiration_date=_expiry_for(data.license_type, now),
        license_type=data.license_type,
        max_users=data.max_users,
        active_users_count=0,
        notes=f"Payment Ref: {data.payment_reference}" if data.payment_reference else None,
    )
    db.add(sub)
    _log_access(db, user, module.id, "module_activated", ip, details=f"Purchased with license type: {data.license_type}")
    system_logs.record(
        db, action="Purchase module", module="Modules", user=user, entity_type="module",
        entity_id=module.module_code, details={"license_type": data.license_type},
    )
    db.commit()
    db.refresh(sub)
    logger.info("module %s purchased license=%s", module.module_code, sub.license_key)
    return sub


def activate(db: Session, module_pk: int, user: Any = None, ip: Optional[str] = None) -> ChurchSubscription:
    module = get_module(db, module_pk)
    sub = _latest_subscription(db, module.id)
    if sub.expiration_date is not None and _utc(sub.expiration_date) <= _now():
        raise ValueError("Subscription has expired; purchase a renewal")
    sub.status = "active"
    sub.activation_date = _now()
    _log_access(db, user, module.id, "module_activated", ip)
    system_logs.record(db, action="Activate module", module="Modules", user=user, entity_type="module", entity_id=module.module_code)
    db.commit()
    db.refresh(sub)
    return sub


def deactivate(db: Session, module_pk: int, user: Any = None, ip: Optional[str] = None) -> ChurchSubscription:
    module = get_module(db, module_pk)
    sub = _latest_subscription(db, module.id)
    sub.status = "inactive"
    _log_access(db, user, module.id, "module_deactivated", ip)
    system_logs.record(
        db, action="Deactivate module", module="Modules", user=user, entity_type="module",
        entity_id=module.module_code, severity="Warning",
    )
    db.commit()
    db.refresh(sub)
    return sub


def module_statuses(db: Session) -> Dict[str, Any]:
    modules = list_modules(db)
    _expire_lapsed(db)
    purchased = set(
        db.execute(select(ChurchSubscription.module_id).where(ChurchSubscription.status == "active")).scalars().all()
    )
    rows = [
        {
            "id": m.id,
            "code": m.module_code,
            "name": m.module_name,
            "is_purchased": m.id in purchased,
            "price_usd": m.price_usd,
            "price_kes": m.price_kes,
        }
        for m in modules
    ]
    return {"module_statuses": rows, "total_modules": len(modules), "purchased_count": len(purchased)}
