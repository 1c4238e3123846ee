# tsoam/services/demo_data.py
"""
Static demo fixtures served when the database is unreachable.

List endpoints wrap their query in `with_demo_fallback(kind, loader, db)`:
on a SQLAlchemyError the session is rolled back, a warning is logged and,
with DEMO_FALLBACK on, the fixtures for `kind` are returned instead of a 503.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Callable, Dict, List, Optional, TypeVar

from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tsoam.config import get_settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEMO_MEMBERS: List[Dict[str, Any]] = [
    {
        "id": "00000000-0000-0000-0000-0000000000a1",
        "member_id": "TSOAM-MEM-001",
        "tithe_number": "TN-001",
        "full_name": "Grace Wanjiku",
        "email": "grace.wanjiku@example.org",
        "phone": "+254700000001",
        "gender": "Female",
        "membership_status": "Active",
        "baptized": True,
        "homecell_id": None,
        "is_active": True,
    },
    {
        "id": "00000000-0000-0000-0000-0000000000a2",
        "member_id": "TSOAM-MEM-002",
        "tithe_number": "TN-002",
        "full_name": "Peter Otieno",
        "email": "peter.otieno@example.org",
        "phone": "+254700000002",
        "gender": "Male",
        "membership_status": "Active",
        "baptized": False,
        "homecell_id": None,
        "is_active": True,
    },
]

DEMO_EMPLOYEES: List[Dict[str, Any]] = [
    {
        "id": "00000000-0000-0000-0000-0000000000b1",
        "employee_id": "TSOAM-EMP-001",
        "first_name": "Mary",
        "last_name": "Achieng",
        "position": "Church Administrator",
        "department": "Administration",
        "employment_type": "Permanent",
        "employment_status": "Active",
        "basic_salary": "65000.00",
        "allowances": "5000.00",
        "is_active": True,
    },
    {
        "id": "00000000-0000-0000-0000-0000000000b2",
        "employee_id": "TSOAM-EMP-002",
        "first_name": "John",
        "last_name": "Kamau",
        "position": "Youth Pastor",
        "department": "Ministry",
        "employment_type": "Permanent",
        "employment_status": "Active",
        "basic_salary": "55000.00",
        "allowances": "3000.00",
        "is_active": True,
    },
]

DEMO_EVENTS: List[Dict[str, Any]] = [
    {
        "id": "00000000-0000-0000-0000-0000000000c1",
        "event_id": "EVT-001",
        "title": "Sunday Worship Service",
        "event_type": "Service",
        "start_date": "2025-01-05",
        "start_time": "09:00:00",
        "end_time": "12:00:00",
        "location": "Main Sanctuary",
        "status": "Scheduled",
        "registration_required": False,
        "is_active": True,
    },
    {
        "id": "00000000-0000-0000-0000-0000000000c2",
        "event_id": "EVT-002",
        "title": "Youth Conference",
        "event_type": "Conference",
        "start_date": "2025-02-14",
        "start_time": "08:00:00",
        "end_time": "17:00:00",
        "location": "Fellowship Hall",
        "status": "Scheduled",
        "registration_required": True,
        "max_attendees": 200,
        "is_active": True,
    },
]

DEMO_TRANSACTIONS: List[Dict[str, Any]] = [
    {
        "id": "00000000-0000-0000-0000-0000000000d1",
        "transaction_id": "TXN-20250105-0001",
        "transaction_type": "Income",
        "amount": "125000.00",
        "currency": "KES",
        "category": "Tithes",
        "transaction_date": "2025-01-05",
        "status": "Approved",
        "is_active": True,
    },
    {
        "id": "00000000-0000-0000-0000-0000000000d2",
        "transaction_id": "TXN-20250107-0001",
        "transaction_type": "Expense",
        "amount": "18000.00",
        "currency": "KES",
        "category": "Utilities",
        "transaction_date": "2025-01-07",
        "status": "Pending",
        "is_active": True,
    },
]

DEMO_LEAVE_TYPES: List[Dict[str, Any]] = [
    {"id": 1, "code": "AL", "name": "Annual Leave", "default_days": 21, "max_days_per_year": 30, "carry_over_allowed": True,
     "max_carry_over_days": 5, "requires_documentation": False, "is_paid": True, "category": "statutory", "min_tenure_months": 0},
    {"id": 2, "code": "SL", "name": "Sick Leave", "default_days": 30, "max_days_per_year": 60, "carry_over_allowed": False,
     "max_carry_over_days": 0, "requires_documentation": True, "is_paid": True, "category": "statutory", "min_tenure_months": 0},
]

DEMO_HIERARCHY: List[Dict[str, Any]] = [
    {
        "id": 1,
        "district_id": "DIST-001",
        "name": "Nairobi Central",
        "is_active": True,
        "zones": [
            {
                "id": 1,
                "zone_id": "ZONE-001",
                "name": "CBD",
                "is_active": True,
                "homecells": [
                    {"id": 1, "homecell_id": "HC-001", "name": "Upper Hill Cell", "meeting_day": "Wednesday", "is_active": True},
                    {"id": 2, "homecell_id": "HC-002", "name": "Ngara Cell", "meeting_day": "Thursday", "is_active": True},
                ],
            }
        ],
    }
]

_FIXTURES: Dict[str, Any] = {
    "members": DEMO_MEMBERS,
    "employees": DEMO_EMPLOYEES,
    "events": DEMO_EVENTS,
    "transactions": DEMO_TRANSACTIONS,
    "leave_types": DEMO_LEAVE_TYPES,
    "hierarchy": DEMO_HIERARCHY,
}


def fixtures(kind: str) -> Any:
    if kind not in _FIXTURES:
        raise KeyError(f"No demo fixtures for {kind!r}")
    return copy.deepcopy(_FIXTURES[kind])


def with_demo_fallback(kind: str, loader: Callable[[], T], db: Optional[Session] = None) -> T | Any:
    try:
        return loader()
    except SQLAlchemyError:
        if db is not None:
            db.rollback()
        if not get_settings().demo_fallback:
            logger.error("database unavailable while loading %s", kind, exc_info=True)
            raise HTTPException(status_code=503, detail="Database unavailable")
        logger.warning("database unavailable; serving demo %s", kind, exc_info=True)
        return fixtures(kind)
