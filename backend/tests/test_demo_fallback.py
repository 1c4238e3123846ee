# tests/test_demo_fallback.py
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker

from conftest import auth_headers, make_user
from tsoam.db import get_db
from tsoam.main import app
from tsoam.services import demo_data, events, finance, homecells, hr, leave, members
from tsoam.services.demo_data import fixtures, with_demo_fallback

client = TestClient(app)


def _down():
    raise OperationalError("SELECT 1", {}, Exception("connection refused"))


def test_fixtures_are_copies():
    rows = fixtures("members")
    rows[0]["full_name"] = "changed"
    assert fixtures("members")[0]["full_name"] == "Grace Wanjiku"
    with pytest.raises(KeyError):
        fixtures("sermons")


def test_fallback_serves_fixtures_and_rolls_back():
    db = MagicMock()
    rows = with_demo_fallback("leave_types", _down, db)
    assert [t["code"] for t in rows] == ["AL", "SL"]
    db.rollback.assert_called_once()


def test_loader_result_passes_through():
    assert with_demo_fallback("events", lambda: ["live"]) == ["live"]


def test_disabled_fallback_is_503(monkeypatch):
    monkeypatch.setattr(demo_data, "get_settings", lambda: SimpleNamespace(demo_fallback=False))
    with pytest.raises(HTTPException) as exc:
        with_demo_fallback("members", _down)
    assert exc.value.status_code == 503


def test_leave_types_endpoint_falls_back(monkeypatch, member_user):
    monkeypatch.setattr(leave, "list_leave_types", lambda db: _down())
    r = client.get("/api/leave/types", headers=member_user)
    assert r.status_code == 200
    assert [t["name"] for t in r.json()] == ["Annual Leave", "Sick Leave"]


# ----- whole database unreachable ----- #

_unreachable = sessionmaker(bind=create_engine("sqlite:////nonexistent_dir/tsoam.db"))


def _unreachable_db():
    db = _unreachable()
    try:
        yield db
    finally:
        db.close()


FALLBACK_ENDPOINTS = [
    ("/api/members", "members", "full_name"),
    ("/api/hr/employees", "employees", "employee_id"),
    ("/api/events", "events", "title"),
    ("/api/finance/transactions", "transactions", "transaction_id"),
    ("/api/homecells/hierarchy/full", "hierarchy", "district_id"),
    ("/api/leave/types", "leave_types", "code"),
]


@pytest.mark.parametrize("path,kind,key", FALLBACK_ENDPOINTS)
def test_endpoint_serves_fixtures_when_database_is_down(db, monkeypatch, path, kind, key):
    headers = auth_headers(make_user(db, "admin"))
    monkeypatch.setitem(app.dependency_overrides, get_db, _unreachable_db)

    r = client.get(path, headers=headers)
    assert r.status_code == 200, r.text
    assert [row[key] for row in r.json()] == [row[key] for row in fixtures(kind)]


@pytest.mark.parametrize("path,kind,key", FALLBACK_ENDPOINTS)
def test_fixtures_validate_against_response_model(monkeypatch, admin, path, kind, key):
    # Live database, failing loader: the fixture rows go through the same response_model.
    def _broken(*args, **kwargs):
        _down()

    for target, name in (
        (members, "list_members"),
        (hr, "list_employees"),
        (events, "list_events"),
        (finance, "list_transactions"),
        (homecells, "full_hierarchy"),
        (leave, "list_leave_types"),
    ):
        monkeypatch.setattr(target, name, _broken)

    r = client.get(path, headers=admin)
    assert r.status_code == 200, r.text
    assert len(r.json()) == len(fixtures(kind))


def test_hierarchy_fixture_keeps_nesting(db, monkeypatch):
    headers = auth_headers(make_user(db, "admin"))
    monkeypatch.setitem(app.dependency_overrides, get_db, _unreachable_db)
    district = client.get("/api/homecells/hierarchy/full", headers=headers).json()[0]
    assert [hc["name"] for hc in district["zones"][0]["homecells"]] == ["Upper Hill Cell", "Ngara Cell"]
    assert district["zones"][0]["homecells"][0]["member_count"] == 0


def test_unreachable_database_without_fallback_is_503(db, monkeypatch):
    from tsoam import dependencies

    headers = auth_headers(make_user(db, "admin"))
    monkeypatch.setattr(dependencies, "get_settings", lambda: SimpleNamespace(auth_enforce=True, demo_fallback=False))
    monkeypatch.setitem(app.dependency_overrides, get_db, _unreachable_db)

    r = client.get("/api/members", headers=headers)
    assert r.status_code == 503
    assert r.json()["detail"] == "Database unavailable"


def test_token_claims_still_gate_permissions_when_database_is_down(db, monkeypatch):
    headers = auth_headers(make_user(db, "user"))
    monkeypatch.setitem(app.dependency_overrides, get_db, _unreachable_db)

    assert client.get("/api/leave/types", headers=headers).status_code == 200
    assert client.get("/api/finance/transactions", headers=headers).status_code == 403
