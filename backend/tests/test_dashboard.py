# tests/test_dashboard.py
from datetime import date
from decimal import Decimal

from fastapi.testclient import TestClient

from tsoam.main import app
from tsoam.services.dashboard import monthly_growth

client = TestClient(app)


def test_monthly_growth():
    assert monthly_growth(Decimal("1200"), Decimal("1000")) == 20.0
    assert monthly_growth(Decimal("500"), Decimal("0")) == 0.0
    assert monthly_growth(Decimal("750"), Decimal("1000")) == -25.0


def _seed(admin):
    client.post("/api/members", json={"full_name": "Grace Wanjiku"}, headers=admin)
    client.post(
        "/api/events",
        json={"title": "Harvest Sunday", "start_date": date.today().isoformat()},
        headers=admin,
    )


def test_admin_sees_everything(admin):
    _seed(admin)
    body = client.get("/api/dashboard", headers=admin).json()
    assert body["role"] == "admin"
    assert "health" in body["sections"]
    data = body["data"]
    assert data["total_members"] == 1
    assert data["total_revenue"] is not None
    assert data["system_health"] == {"database": "ok"}
    assert [e["title"] for e in data["upcoming_events"]] == ["Harvest Sunday"]
    assert {a["module"] for a in data["recent_activities"]} == {"Members", "Events"}


def test_hr_loses_money_figures(admin, hr):
    _seed(admin)
    body = client.get("/api/dashboard", headers=hr).json()
    assert body["sections"] == ["overview", "hr", "events", "welfare", "activities"]
    data = body["data"]
    assert data["total_revenue"] is None
    assert data["pending_payroll_amount"] is None
    assert data["total_employees"] == 0
    assert [a["module"] for a in data["recent_activities"]] == ["Events"]


def test_finance_loses_staff_figures(admin, finance):
    _seed(admin)
    data = client.get("/api/dashboard", headers=finance).json()["data"]
    assert "total_employees" not in data
    assert "pending_leave_requests" not in data
    assert data["total_revenue"] is not None


def test_plain_user_sees_events_and_activity_only(admin, member_user):
    _seed(admin)
    data = client.get("/api/dashboard", headers=member_user).json()["data"]
    assert set(data) == {"upcoming_events", "recent_activities"}
    assert {a["module"] for a in data["recent_activities"]} == {"Members", "Events"}


def test_requires_login():
    assert client.get("/api/dashboard").status_code == 401
