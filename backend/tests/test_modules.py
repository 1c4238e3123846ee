# tests/test_modules.py
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from fastapi.testclient import TestClient
from sqlalchemy import select

from tsoam.main import app
from tsoam.models.modules import ChurchSubscription, ModuleAccessLog

client = TestClient(app)


def _module_pk(headers, code):
    catalog = client.get("/api/modules", headers=headers).json()
    return next(m["id"] for m in catalog if m["module_code"] == code)


def _buy(headers, module_pk, **extra):
    return client.post("/api/modules/purchase", json={"module_id": module_pk, **extra}, headers=headers)


def test_catalog_is_seeded_and_sorted(member_user):
    r = client.get("/api/modules", headers=member_user)
    assert r.status_code == 200, r.text
    catalog = r.json()
    assert len(catalog) == 8
    names = [m["module_name"] for m in catalog]
    assert names == sorted(names)

    finance = next(m for m in catalog if m["module_code"] == "finance")
    assert Decimal(finance["price_kes"]) == Decimal("5800")
    assert finance["feature_count"] == 4
    assert {f["feature_code"] for f in finance["features"]} >= {"tithe_tracking", "budget_planning"}

    detail = client.get(f"/api/modules/{finance['id']}", headers=member_user).json()
    assert detail["module_name"] == "Finance & Accounting"
    assert client.get("/api/modules/9999", headers=member_user).status_code == 404


def test_purchase_requires_settings_access(member_user, admin):
    pk = _module_pk(admin, "hr")
    assert _buy(member_user, pk).status_code == 403
    assert _buy(admin, 9999).status_code == 404


def test_purchase_license_types(admin):
    sub = _buy(admin, _module_pk(admin, "finance")).json()
    assert sub["license_key"].startswith("LIC-")
    assert sub["status"] == "active"
    expires = datetime.fromisoformat(sub["expiration_date"]).replace(tzinfo=None)
    assert 27 <= (expires - datetime.now(timezone.utc).replace(tzinfo=None)).days <= 31

    trial = _buy(admin, _module_pk(admin, "welfare"), license_type="trial", payment_reference="MPESA-123").json()
    expires = datetime.fromisoformat(trial["expiration_date"]).replace(tzinfo=None)
    assert (expires - datetime.now(timezone.utc).replace(tzinfo=None)).days in (29, 30)
    assert trial["notes"] == "Payment Ref: MPESA-123"

    forever = _buy(admin, _module_pk(admin, "events"), license_type="perpetual").json()
    assert forever["expiration_date"] is None

    again = _buy(admin, _module_pk(admin, "events"))
    assert again.status_code == 409
    assert again.json()["detail"] == "Module already purchased"


def test_access_checks_are_logged(db, admin, member_user):
    pk = _module_pk(admin, "inventory")
    r = client.get(f"/api/modules/{pk}/access", headers=member_user)
    assert r.json() == {"module_id": pk, "has_access": False, "subscription": None}

    _buy(admin, pk, license_type="perpetual")
    r = client.get(f"/api/modules/{pk}/access", headers=member_user).json()
    assert r["has_access"] is True
    assert r["subscription"]["license_type"] == "perpetual"

    actions = db.execute(
        select(ModuleAccessLog.action).where(ModuleAccessLog.module_id == pk).order_by(ModuleAccessLog.id)
    ).scalars().all()
    assert actions == ["access_denied", "module_activated", "access_granted"]


def test_deactivate_and_reactivate(admin, member_user):
    pk = _module_pk(admin, "appointments")
    assert client.post(f"/api/modules/{pk}/activate", headers=admin).status_code == 404

    _buy(admin, pk, license_type="perpetual")
    assert client.post(f"/api/modules/{pk}/deactivate", headers=member_user).status_code == 403
    r = client.post(f"/api/modules/{pk}/deactivate", headers=admin)
    assert r.json()["status"] == "inactive"
    assert client.get(f"/api/modules/{pk}/access", headers=member_user).json()["has_access"] is False

    statuses = client.get("/api/modules/status/all", headers=member_user).json()
    assert statuses["total_modules"] == 8
    assert statuses["purchased_count"] == 0

    r = client.post(f"/api/modules/{pk}/activate", headers=admin)
    assert r.json()["status"] == "active"
    statuses = client.get("/api/modules/status/all", headers=member_user).json()
    row = next(s for s in statuses["module_statuses"] if s["id"] == pk)
    assert row["is_purchased"] is True and row["code"] == "appointments"

    purchased = client.get("/api/modules/purchased", headers=member_user).json()
    assert [p["module"]["module_code"] for p in purchased] == ["appointments"]


def test_lapsed_subscription_expires(db, admin, member_user):
    pk = _module_pk(admin, "hr")
    _buy(admin, pk, license_type="trial")

    sub = db.execute(select(ChurchSubscription).where(ChurchSubscription.module_id == pk)).scalars().one()
    sub.expiration_date = datetime.now(timezone.utc) - timedelta(days=1)
    db.commit()

    assert client.get(f"/api/modules/{pk}/access", headers=member_user).json()["has_access"] is False
    db.refresh(sub)
    assert sub.status == "expired"

    r = client.post(f"/api/modules/{pk}/activate", headers=admin)
    assert r.status_code == 400
    # a lapsed module can be bought again
    assert _buy(admin, pk).status_code == 201
