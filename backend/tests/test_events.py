# tests/test_events.py
from datetime import date, time, timedelta

from fastapi.testclient import TestClient

from tsoam.main import app
from tsoam.models.events import ChurchEvent
from tsoam.services.events import to_ics

client = TestClient(app)


def _event(headers, **extra):
    payload = {
        "title": "Youth Conference",
        "event_type": "Conference",
        "start_date": (date.today() + timedelta(days=10)).isoformat(),
        "start_time": "09:00:00",
        "end_time": "16:00:00",
        "location": "Main Sanctuary",
        **extra,
    }
    r = client.post("/api/events", json=payload, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()


def test_create_list_and_ids(member_user):
    a = _event(member_user)
    b = _event(member_user, title="Prayer Night", event_type="Prayer")
    assert a["event_id"] == "EVT-001"
    assert b["event_id"] == "EVT-002"
    assert a["registration_count"] == 0

    prayer = client.get("/api/events", params={"event_type": "Prayer"}, headers=member_user).json()
    assert [e["title"] for e in prayer] == ["Prayer Night"]

    found = client.get("/api/events/search/sanctuary", headers=member_user).json()
    assert len(found) == 2


def test_end_date_before_start_rejected(member_user):
    start = date.today() + timedelta(days=5)
    r = client.post(
        "/api/events",
        json={"title": "Bad", "start_date": start.isoformat(), "end_date": (start - timedelta(days=1)).isoformat()},
        headers=member_user,
    )
    assert r.status_code == 422

    ev = _event(member_user)
    r = client.put(f"/api/events/{ev['id']}", json={"end_date": "2000-01-01"}, headers=member_user)
    assert r.status_code == 400


def test_upcoming_skips_past_and_cancelled(member_user):
    _event(member_user, title="Past", start_date=(date.today() - timedelta(days=3)).isoformat())
    _event(member_user, title="Called off", status="Cancelled")
    _event(member_user, title="Soon")
    titles = [e["title"] for e in client.get("/api/events/upcoming/list", headers=member_user).json()]
    assert titles == ["Soon"]


def test_delete_is_soft(member_user):
    ev = _event(member_user)
    assert client.delete(f"/api/events/{ev['id']}", headers=member_user).json()["is_active"] is False
    assert client.get(f"/api/events/{ev['id']}", headers=member_user).status_code == 404
    stats = client.get("/api/events/stats/summary", headers=member_user).json()
    assert stats["total_events"] == 0


def test_registration_rules(member_user):
    ev = _event(member_user, registration_required=True, max_attendees=2)
    url = f"/api/events/{ev['id']}/register"

    # public endpoint: no token
    r = client.post(url, json={"name": "Ann", "email": "Ann@Example.org"})
    assert r.status_code == 201, r.text
    assert r.json()["email"] == "ann@example.org"

    dup = client.post(url, json={"name": "Ann again", "email": "ann@example.org"})
    assert dup.status_code == 409

    assert client.post(url, json={"name": "Ben", "email": "ben@example.org"}).status_code == 201
    full = client.post(url, json={"name": "Cy", "email": "cy@example.org"})
    assert full.status_code == 400
    assert full.json()["detail"] == "Event is full"

    regs = client.get(f"/api/events/{ev['id']}/registrations", headers=member_user).json()
    assert sorted(x["name"] for x in regs) == ["Ann", "Ben"]
    assert client.get(f"/api/events/{ev['id']}", headers=member_user).json()["registration_count"] == 2

    stats = client.get("/api/events/stats/summary", headers=member_user).json()
    assert stats["total_registrations"] == 2
    assert stats["by_type"] == {"Conference": 1}


def test_registration_closed(member_user):
    no_reg = _event(member_user)
    r = client.post(f"/api/events/{no_reg['id']}/register", json={"name": "A", "email": "a@example.org"})
    assert r.status_code == 400

    late = _event(member_user, registration_required=True, registration_deadline=(date.today() - timedelta(days=1)).isoformat())
    r = client.post(f"/api/events/{late['id']}/register", json={"name": "A", "email": "a@example.org"})
    assert r.status_code == 400
    assert "deadline" in r.json()["detail"]


def test_to_ics_formats_timed_and_all_day_events():
    timed = ChurchEvent(
        event_id="EVT-001", title="Service; Main, Hall", event_type="Service",
        start_date=date(2025, 3, 9), start_time=time(10, 0), end_time=time(12, 30),
        description="Line one\nLine two", status="Scheduled",
    )
    all_day = ChurchEvent(
        event_id="EVT-002", title="Retreat", event_type="Retreat",
        start_date=date(2025, 4, 18), end_date=date(2025, 4, 20), status="Cancelled",
    )
    text = to_ics([timed, all_day])
    assert text.startswith("BEGIN:VCALENDAR\r\n")
    assert text.endswith("END:VCALENDAR\r\n")
    assert "UID:EVT-001@tsoam" in text
    assert "DTSTART:20250309T100000" in text
    assert "DTEND:20250309T123000" in text
    assert "SUMMARY:Service\\; Main\\, Hall" in text
    assert "DESCRIPTION:Line one\\nLine two" in text
    assert "DTSTART;VALUE=DATE:20250418" in text
    assert "DTEND;VALUE=DATE:20250421" in text
    assert "STATUS:CANCELLED" in text


def test_export_endpoint(member_user):
    _event(member_user)
    r = client.get("/api/events/export.ics", headers=member_user)
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/calendar")
    assert "attachment" in r.headers["content-disposition"]
    assert "SUMMARY:Youth Conference" in r.text


ICS_FILE = (
    "BEGIN:VCALENDAR\r\n"
    "VERSION:2.0\r\n"
    "PRODID:-//Test//EN\r\n"
    "BEGIN:VEVENT\r\n"
    "UID:one@test\r\n"
    "DTSTAMP:20250101T000000Z\r\n"
    "DTSTART:20250309T100000\r\n"
    "DTEND:20250309T120000\r\n"
    "SUMMARY:Imported Service\r\n"
    "LOCATION:Annex\r\n"
    "END:VEVENT\r\n"
    "BEGIN:VEVENT\r\n"
    "UID:two@test\r\n"
    "DTSTAMP:20250101T000000Z\r\n"
    "DTSTART;VALUE=DATE:20250418\r\n"
    "DTEND;VALUE=DATE:20250421\r\n"
    "SUMMARY:Easter Retreat\r\n"
    "STATUS:CANCELLED\r\n"
    "END:VEVENT\r\n"
    "END:VCALENDAR\r\n"
)


def test_import_ics(member_user):
    r = client.post(
        "/api/events/import",
        params={"event_type": "Retreat"},
        files={"file": ("cal.ics", ICS_FILE.encode(), "text/calendar")},
        headers=member_user,
    )
    assert r.status_code == 201, r.text
    by_title = {e["title"]: e for e in r.json()}
    service = by_title["Imported Service"]
    assert service["start_date"] == "2025-03-09"
    assert service["start_time"] == "10:00:00"
    assert service["end_time"] == "12:00:00"
    assert service["location"] == "Annex"
    assert service["event_type"] == "Retreat"

    retreat = by_title["Easter Retreat"]
    assert retreat["start_time"] is None
    assert retreat["end_date"] == "2025-04-20"
    # imports always start out Scheduled, whatever STATUS the file carries
    assert {e["status"] for e in r.json()} == {"Scheduled"}


def test_import_rejects_empty_calendar(member_user):
    empty = "BEGIN:VCALENDAR\r\nVERSION:2.0\r\nPRODID:-//Test//EN\r\nEND:VCALENDAR\r\n"
    r = client.post("/api/events/import", files={"file": ("cal.ics", empty.encode(), "text/calendar")}, headers=member_user)
    assert r.status_code == 400
