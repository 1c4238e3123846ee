# tsoam/services/access.py
"""
Role-based access rules.

Five roles (admin, pastor, hr, finance, user) each map to a fixed set of
permission flags and data restrictions. Dashboard payloads and appointment
lists are filtered here before they leave the API.
"""

from __future__ import annotations

import copy
from typing import Any, Dict, Iterable, List, Mapping, Optional

ROLES = ("admin", "pastor", "hr", "finance", "user")

_LEGACY_LABELS = {
    "admin": "admin",
    "administrator": "admin",
    "pastor": "pastor",
    "hr": "hr",
    "hr officer": "hr",
    "finance": "finance",
    "finance officer": "finance",
    "user": "user",
}

PERMISSION_FLAGS = (
    "can_access_dashboard",
    "can_access_full_dashboard",
    "can_access_hr",
    "can_access_finance",
    "can_access_events",
    "can_access_members",
    "can_access_new_members",
    "can_access_inventory",
    "can_access_welfare",
    "can_access_messaging",
    "can_access_appointments",
    "can_access_all_appointments",
    "can_access_system_logs",
    "can_access_settings",
    "can_access_users",
    "can_export_data",
    "can_delete_data",
    "can_approve_payroll",
    "can_process_payroll",
    "can_view_salaries",
    "can_view_financial_reports",
    "can_manage_employees",
)

_ALL_SECTIONS = ["overview", "members", "finance", "hr", "events", "inventory", "welfare", "activities", "health"]

_GRANTS: Dict[str, set] = {
    "admin": set(PERMISSION_FLAGS),
    "pastor": set(PERMISSION_FLAGS)
    - {"can_access_settings", "can_access_users", "can_delete_data", "can_process_payroll", "can_access_system_logs"},
    "hr": {
        "can_access_dashboard",
        "can_access_hr",
        "can_access_events",
        "can_access_members",
        "can_access_new_members",
        "can_access_welfare",
        "can_access_messaging",
        "can_access_appointments",
        "can_manage_employees",
        "can_process_payroll",
        "can_view_salaries",
    },
    "finance": {
        "can_access_dashboard",
        "can_access_finance",
        "can_access_events",
        "can_access_inventory",
        "can_access_messaging",
        "can_access_appointments",
        "can_approve_payroll",
        "can_view_salaries",
        "can_view_financial_reports",
        "can_export_data",
    },
    "user": {
        "can_access_dashboard",
        "can_access_events",
        "can_access_members",
        "can_access_messaging",
        "can_access_appointments",
    },
}

_SECTIONS = {
    "admin": _ALL_SECTIONS,
    "pastor": _ALL_SECTIONS,
    "hr": ["overview", "hr", "events", "welfare", "activities"],
    "finance": ["overview", "finance", "events", "inventory", "activities"],
    "user": ["events", "activities"],
}

_RESTRICTIONS = {
    "admin": {"hide_financial_amounts": False, "hide_salary_details": False, "hide_personal_data": False, "show_only_own_data": False},
    "pastor": {"hide_financial_amounts": False, "hide_salary_details": False, "hide_personal_data": False, "show_only_own_data": False},
    "hr": {"hide_financial_amounts": True, "hide_salary_details": False, "hide_personal_data": False, "show_only_own_data": False},
    "finance": {"hide_financial_amounts": False, "hide_salary_details": False, "hide_personal_data": True, "show_only_own_data": False},
    "user": {"hide_financial_amounts": True, "hide_salary_details": True, "hide_personal_data": True, "show_only_own_data": True},
}

_ACTIVITY_MODULES = {
    "hr": {"HR", "Events", "Welfare"},
    "finance": {"Finance", "Events", "Inventory"},
    "user": {"Events", "Members"},
}

_FINANCIAL_KEYS = ("total_revenue", "total_expenses", "net_income", "monthly_growth", "pending_payroll_amount")
_HR_KEYS = ("total_employees", "active_employees", "pending_leave_requests")


def normalize_role(role: Optional[str]) -> str:
    if not role:
        return "user"
    return _LEGACY_LABELS.get(role.strip().lower(), "user")


def permissions_for(role: Optional[str]) -> Dict[str, Any]:
    r = normalize_role(role)
    granted = _GRANTS[r]
    perms: Dict[str, Any] = {flag: flag in granted for flag in PERMISSION_FLAGS}
    perms["dashboard_sections"] = list(_SECTIONS[r])
    return perms


def restrictions_for(role: Optional[str]) -> Dict[str, bool]:
    return dict(_RESTRICTIONS[normalize_role(role)])


def has_permission(role: Optional[str], flag: str) -> bool:
    return flag in _GRANTS[normalize_role(role)]


def _activities(data: Mapping[str, Any], modules: Iterable[str]) -> List[Dict[str, Any]]:
    allowed = set(modules)
    return [a for a in data.get("recent_activities", []) if a.get("module") in allowed]


def filter_dashboard_data(role: Optional[str], data: Mapping[str, Any]) -> Dict[str, Any]:
    """Strip dashboard figures the role must not see."""
    if role is not None and role.strip().lower() not in _LEGACY_LABELS:
        return {}
    r = normalize_role(role)
    if r in ("admin", "pastor"):
        return copy.deepcopy(dict(data))

    if r == "hr":
        out = {k: v for k, v in data.items() if k not in ("recent_activities", "upcoming_events")}
        for key in _FINANCIAL_KEYS:
            if key in out:
                out[key] = None
        out["upcoming_events"] = list(data.get("upcoming_events", []))
        out["recent_activities"] = _activities(data, _ACTIVITY_MODULES["hr"])
        return out

    if r == "finance":
        out = {k: v for k, v in data.items() if k not in ("recent_activities", "upcoming_events")}
        for key in _HR_KEYS:
            out.pop(key, None)
        out["upcoming_events"] = list(data.get("upcoming_events", []))
        out["recent_activities"] = _activities(data, _ACTIVITY_MODULES["finance"])
        return out

    return {
        "upcoming_events": list(data.get("upcoming_events", [])),
        "recent_activities": _activities(data, _ACTIVITY_MODULES["user"]),
    }


def filter_appointments(role: Optional[str], user_id: Any, rows: Iterable[Any]) -> List[Any]:
    """Admins and pastors see every appointment; others only ones they take part in."""
    rows = list(rows)
    if has_permission(role, "can_access_all_appointments"):
        return rows
    uid = str(user_id)

    def _mine(a: Any) -> bool:
        return (
            str(getattr(a, "created_by", None)) == uid
            or str(getattr(a, "assigned_to", None)) == uid
            or uid in [str(x) for x in (getattr(a, "attendees", None) or [])]
        )

    return [a for a in rows if _mine(a)]
