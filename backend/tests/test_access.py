# tests/test_access.py
from types import SimpleNamespace

from tsoam.services.access import (
    PERMISSION_FLAGS,
    filter_appointments,
    filter_dashboard_data,
    has_permission,
    normalize_role,
    permissions_for,
    restrictions_for,
)

DASHBOARD = {
    "total_members": 120,
    "total_employees": 8,
    "active_employees": 7,
    "pending_leave_requests": 2,
    "total_revenue": 500000,
    "total_expenses": 200000,
    "net_income": 300000,
    "monthly_growth": 12.5,
    "pending_payroll_amount": 250000,
    "upcoming_events": [{"title": "Sunday Service"}],
    "recent_activities": [
        {"module": "HR", "action": "Create employee"},
        {"module": "Finance", "action": "Approve payroll batch"},
        {"module": "Events", "action": "Create event"},
        {"module": "Members", "action": "Create member"},
    ],
    "system_health": {"database": "ok"},
}


def test_normalize_role_accepts_legacy_labels():
    assert normalize_role("Administrator") == "admin"
    assert normalize_role("HR Officer") == "hr"
    assert normalize_role(" finance officer ") == "finance"
    assert normalize_role(None) == "user"
    assert normalize_role("janitor") == "user"


def test_permission_matrix():
    admin = permissions_for("admin")
    assert all(admin[f] for f in PERMISSION_FLAGS)

    pastor = permissions_for("pastor")
    assert pastor["can_approve_payroll"]
    assert not pastor["can_process_payroll"]
    assert not pastor["can_access_system_logs"]
    assert not pastor["can_delete_data"]

    assert has_permission("hr", "can_process_payroll")
    assert not has_permission("hr", "can_approve_payroll")
    assert has_permission("finance", "can_approve_payroll")
    assert not has_permission("finance", "can_access_hr")

    user = permissions_for("user")
    assert user["dashboard_sections"] == ["events", "activities"]
    assert not user["can_access_finance"]


def test_restrictions():
    assert restrictions_for("user")["show_only_own_data"]
    assert restrictions_for("hr")["hide_financial_amounts"]
    assert not restrictions_for("admin")["hide_salary_details"]


def test_dashboard_for_admin_is_a_copy():
    out = filter_dashboard_data("admin", DASHBOARD)
    assert out == DASHBOARD
    out["recent_activities"].clear()
    assert len(DASHBOARD["recent_activities"]) == 4


def test_dashboard_for_hr_hides_money():
    out = filter_dashboard_data("hr", DASHBOARD)
    assert out["total_revenue"] is None
    assert out["pending_payroll_amount"] is None
    assert out["total_employees"] == 8
    assert {a["module"] for a in out["recent_activities"]} == {"HR", "Events"}


def test_dashboard_for_finance_drops_hr_figures():
    out = filter_dashboard_data("finance", DASHBOARD)
    assert "total_employees" not in out
    assert "pending_leave_requests" not in out
    assert out["net_income"] == 300000
    assert {a["module"] for a in out["recent_activities"]} == {"Finance", "Events"}


def test_dashboard_for_user_and_unknown_label():
    out = filter_dashboard_data("user", DASHBOARD)
    assert set(out) == {"upcoming_events", "recent_activities"}
    assert {a["module"] for a in out["recent_activities"]} == {"Events", "Members"}
    assert filter_dashboard_data("janitor", DASHBOARD) == {}


def test_filter_appointments():
    rows = [
        SimpleNamespace(id=1, created_by="u1", assigned_to="u2", attendees=[]),
        SimpleNamespace(id=2, created_by="u3", assigned_to="u1", attendees=None),
        SimpleNamespace(id=3, created_by="u3", assigned_to="u4", attendees=["u1"]),
        SimpleNamespace(id=4, created_by="u3", assigned_to="u4", attendees=["u5"]),
    ]
    assert [a.id for a in filter_appointments("pastor", "u9", rows)] == [1, 2, 3, 4]
    assert [a.id for a in filter_appointments("user", "u1", rows)] == [1, 2, 3]
    assert filter_appointments("finance", "u9", rows) == []
