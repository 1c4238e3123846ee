# tests/test_appointments.py
from datetime import date, timedelta

from fastapi.testclient import TestClient

from conftest import auth_headers, make_user
from tsoam.main import app

client = TestClient(app)

DAY = (date.today() + timedelta(days=3)).isoformat()


def _book(headers, **extra):
    payload = {
        "title": "Marriage counseling",
        "appointment_date": DAY,
        "start_time": "10:00:00",
        "end_time": "11:00:00",
        **extra,
    }
    return client.post("/api/appointments", json=payload, headers=headers)


def test_times_must_be_ordered(member_user):
    r = _book(member_user, start_time="11:00:00", end_time="10:00:00")
    assert r.status_code == 422


def test_visibility_by_role(db, pastor):
    alice = make_user(db, "user", email="alice@tsoam.test")
    bob = make_user(db, "user", email="bob@tsoam.test")
    carol = make_user(db, "user", email="carol@tsoam.test")

    r = _book(auth_headers(alice), assigned_to=str(bob.id))
    assert r.status_code == 201, r.text
    appt = r.json()
    assert appt["created_by"] == str(alice.id)
    _book(auth_headers(carol), title="Visit", attendees=[str(alice.id)])

    mine = client.get("/api/appointments", headers=auth_headers(alice)).json()
    assert sorted(a["title"] for a in mine) == ["Marriage counseling", "Visit"]
    assert [a["title"] for a in client.get("/api/appointments", headers=auth_headers(bob)).json()] == ["Marriage counseling"]
    assert len(client.get("/api/appointments", headers=pastor).json()) == 2

    # hidden rows look missing
    assert client.get(f"/api/appointments/{appt['id']}", headers=auth_headers(carol)).status_code == 404
    assert client.get(f"/api/appointments/{appt['id']}", headers=auth_headers(bob)).status_code == 200


def test_update_and_cancel(member_user):
    appt = _book(member_user).json()
    r = client.put(f"/api/appointments/{appt['id']}", json={"status": "Confirmed", "location": "Office"}, headers=member_user)
    assert r.json()["status"] == "Confirmed"

    bad = client.put(f"/api/appointments/{appt['id']}", json={"end_time": "09:00:00"}, headers=member_user)
    assert bad.status_code == 400

    r = client.delete(f"/api/appointments/{appt['id']}", headers=member_user)
    assert r.json()["status"] == "Cancelled"

    r = client.get(f"/api/appointments/{appt['id']}", headers=member_user)
    assert r.status_code == 200
    assert r.json()["status"] == "Cancelled"
    assert r.json()["is_active"] is True
    rows = client.get("/api/appointments", params={"status": "Cancelled"}, headers=member_user).json()
    assert [a["id"] for a in rows] == [appt["id"]]
    assert client.get("/api/appointments", params={"status": "Scheduled"}, headers=member_user).json() == []


def test_filter_by_date(member_user):
    _book(member_user)
    other = (date.today() + timedelta(days=9)).isoformat()
    _book(member_user, title="Later", appointment_date=other)
    rows = client.get("/api/appointments", params={"date": other}, headers=member_user).json()
    assert [a["title"] for a in rows] == ["Later"]
