# tests/test_homecells.py
import csv
import io
from unittest.mock import MagicMock

from fastapi.testclient import TestClient
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from tsoam.main import app
from tsoam.models.homecells import HomeCellAssignment
from tsoam.services.homecell_hierarchy import HomeCellHierarchy, hierarchy

client = TestClient(app)


def _tree(headers):
    d = client.post("/api/homecells/districts", json={"name": "Nairobi East"}, headers=headers).json()
    z = client.post("/api/homecells/zones", json={"name": "Kasarani", "district_pk": d["id"]}, headers=headers).json()
    cells = [
        client.post(
            "/api/homecells",
            json={"name": name, "zone_pk": z["id"], "meeting_day": "Wednesday", "meeting_time": "18:30:00"},
            headers=headers,
        ).json()
        for name in ("Bethel", "Canaan")
    ]
    return d, z, cells


def _member(headers, name, gender="Female"):
    r = client.post("/api/members", json={"full_name": name, "gender": gender}, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()


def test_ids_and_district_derived_from_zone(hr):
    d, z, cells = _tree(hr)
    assert d["district_id"] == "DIST-001"
    assert z["zone_id"] == "ZONE-001"
    assert [c["homecell_id"] for c in cells] == ["HC-001", "HC-002"]
    assert all(c["district_pk"] == d["id"] for c in cells)

    other = client.post("/api/homecells/districts", json={"name": "Nairobi West"}, headers=hr).json()
    client.put(f"/api/homecells/zones/{z['id']}", json={"district_pk": other["id"]}, headers=hr)
    moved = client.get(f"/api/homecells/{cells[0]['id']}", headers=hr).json()
    assert moved["district_pk"] == other["id"]


def test_zone_requires_active_district(hr):
    d = client.post("/api/homecells/districts", json={"name": "Old"}, headers=hr).json()
    client.delete(f"/api/homecells/districts/{d['id']}", headers=hr)
    r = client.post("/api/homecells/zones", json={"name": "Z", "district_pk": d["id"]}, headers=hr)
    assert r.status_code == 400
    r = client.post("/api/homecells", json={"name": "H", "zone_pk": 999}, headers=hr)
    assert r.status_code == 400


def test_full_hierarchy_hides_inactive(hr):
    d, z, cells = _tree(hr)
    client.delete(f"/api/homecells/{cells[1]['id']}", headers=hr)
    tree = client.get("/api/homecells/hierarchy/full", headers=hr).json()
    assert len(tree) == 1
    zone = tree[0]["zones"][0]
    assert zone["zone_id"] == "ZONE-001"
    assert [h["name"] for h in zone["homecells"]] == ["Bethel"]

    flat = client.get("/api/homecells/districts", headers=hr).json()
    assert flat[0]["zones"] == []


def test_options_follow_writes(hr, member_user):
    assert client.get("/api/homecells/options", headers=member_user).json() == []
    _, _, cells = _tree(hr)
    options = client.get("/api/homecells/options", headers=member_user).json()
    assert options == [{"value": "HC-001", "label": "Bethel"}, {"value": "HC-002", "label": "Canaan"}]

    client.delete(f"/api/homecells/{cells[0]['id']}", headers=hr)
    options = client.get("/api/homecells/options", headers=member_user).json()
    assert [o["label"] for o in options] == ["Canaan"]


def test_assignment_moves_counts(hr):
    _, _, (bethel, canaan) = _tree(hr)
    m = _member(hr, "Grace Wanjiku")

    r = client.post(f"/api/homecells/{bethel['id']}/members/{m['id']}", json={"notes": "new convert"}, headers=hr)
    assert r.status_code == 200, r.text
    assert r.json()["homecell_id"] == bethel["id"]
    assert client.get(f"/api/homecells/{bethel['id']}", headers=hr).json()["member_count"] == 1

    client.post(f"/api/homecells/{canaan['id']}/members/{m['id']}", headers=hr)
    assert client.get(f"/api/homecells/{bethel['id']}", headers=hr).json()["member_count"] == 0
    assert client.get(f"/api/homecells/{canaan['id']}", headers=hr).json()["member_count"] == 1

    members = client.get(f"/api/homecells/{canaan['id']}/members", headers=hr).json()
    assert [x["full_name"] for x in members] == ["Grace Wanjiku"]
    stats = client.get(f"/api/homecells/{canaan['id']}/stats", headers=hr).json()
    assert stats == {"total_members": 1, "active_members": 1, "inactive_members": 0, "male_members": 0, "female_members": 1}


def test_member_edits_keep_cell_counts(hr, admin, db):
    _, _, (bethel, canaan) = _tree(hr)
    leaving = client.post("/api/members", json={"full_name": "Ruth", "homecell_id": bethel["id"]}, headers=hr).json()
    moving = client.post("/api/members", json={"full_name": "Naomi", "homecell_id": bethel["id"]}, headers=hr).json()
    assert client.get(f"/api/homecells/{bethel['id']}", headers=hr).json()["member_count"] == 2

    assert client.delete(f"/api/members/{leaving['id']}", headers=admin).status_code == 200
    r = client.put(f"/api/members/{moving['id']}", json={"homecell_id": canaan["id"]}, headers=hr)
    assert r.status_code == 200, r.text

    assert client.get(f"/api/homecells/{bethel['id']}", headers=hr).json()["member_count"] == 0
    assert client.get(f"/api/homecells/{canaan['id']}", headers=hr).json()["member_count"] == 1
    tree = client.get("/api/homecells/hierarchy/full", headers=hr).json()
    assert {h["name"]: h["member_count"] for h in tree[0]["zones"][0]["homecells"]} == {"Bethel": 0, "Canaan": 1}

    open_rows = db.execute(
        select(HomeCellAssignment.homecell_pk).where(HomeCellAssignment.is_active.is_(True))
    ).scalars().all()
    assert open_rows == [canaan["id"]]

    r = client.put(f"/api/members/{moving['id']}", json={"homecell_id": None}, headers=hr)
    assert r.json()["homecell_id"] is None
    assert client.get(f"/api/homecells/{canaan['id']}", headers=hr).json()["member_count"] == 0


def test_assign_unknown_member(hr):
    _, _, (bethel, _) = _tree(hr)
    r = client.post(f"/api/homecells/{bethel['id']}/members/00000000-0000-0000-0000-00000000beef", headers=hr)
    assert r.status_code == 404


def test_auto_assign_round_robin(hr):
    d, z, (bethel, canaan) = _tree(hr)
    for name in ("A One", "B Two", "C Three"):
        _member(hr, name)

    r = client.post("/api/homecells/auto-assign-members", json={"zone_id": z["id"]}, headers=hr)
    assert r.status_code == 200, r.text
    assert r.json()["assigned_count"] == 3
    assert "Kasarani" in r.json()["message"]

    counts = [client.get(f"/api/homecells/{c['id']}", headers=hr).json()["member_count"] for c in (bethel, canaan)]
    assert counts == [2, 1]

    # everyone already placed
    again = client.post("/api/homecells/auto-assign-members", json={"zone_id": z["id"]}, headers=hr).json()
    assert again["assigned_count"] == 0

    summary = client.get(f"/api/homecells/districts/{d['id']}/summary", headers=hr).json()
    assert summary == {"district_id": "DIST-001", "name": "Nairobi East", "zones": 1, "homecells": 2, "members": 3}


def test_auto_assign_empty_zone(hr):
    d = client.post("/api/homecells/districts", json={"name": "D"}, headers=hr).json()
    z = client.post("/api/homecells/zones", json={"name": "Empty", "district_pk": d["id"]}, headers=hr).json()
    r = client.post("/api/homecells/auto-assign-members", json={"zone_id": z["id"]}, headers=hr)
    assert r.status_code == 400
    assert r.json()["detail"] == "No home cells found for this zone"


def test_cache_lookups(db, hr):
    d, z, cells = _tree(hr)
    assert hierarchy.refresh(db) is True
    assert hierarchy.district(d["id"])["name"] == "Nairobi East"
    assert [x["zone_id"] for x in hierarchy.zones_by_district(d["id"])] == ["ZONE-001"]
    assert len(hierarchy.homecells_by_zone(z["id"])) == 2
    assert hierarchy.homecell(cells[1]["id"])["homecell_id"] == "HC-002"
    assert hierarchy.zone(999) is None


def test_cache_load_failure_leaves_it_empty():
    cache = HomeCellHierarchy()
    broken = MagicMock()
    broken.execute.side_effect = OperationalError("SELECT 1", {}, Exception("db down"))
    assert cache.initialize(broken) is False
    assert cache.initialized is False
    assert cache.homecells() == []
    broken.rollback.assert_called_once()


def test_homecell_export(hr):
    _, _, (bethel, _) = _tree(hr)
    leader = client.post(
        "/api/members",
        json={"full_name": "Pastor <Ann>", "phone": "+254700000009", "gender": "Female", "homecell_id": bethel["id"]},
        headers=hr,
    ).json()
    client.post("/api/members", json={"full_name": "Ben, Jr", "gender": "Male", "homecell_id": bethel["id"]}, headers=hr)
    client.put(f"/api/homecells/{bethel['id']}", json={"leader_id": leader["member_id"]}, headers=hr)

    r = client.get(f"/api/homecells/{bethel['id']}/export", params={"format": "csv"}, headers=hr)
    assert r.status_code == 200, r.text
    assert r.headers["content-type"].startswith("text/csv")
    assert r.headers["content-disposition"] == 'attachment; filename="homecell-bethel-members.csv"'
    rows = list(csv.reader(io.StringIO(r.text)))
    assert rows[0] == ["Full Name", "Member ID", "Email", "Phone", "Status", "Membership Date"]
    assert [row[0] for row in rows[1:]] == ["Ben, Jr", "Pastor <Ann>"]
    assert rows[2][1] == leader["member_id"]

    page = client.get(f"/api/homecells/{bethel['id']}/export", headers=hr)
    assert page.headers["content-type"].startswith("text/html")
    assert "Pastor &lt;Ann&gt;" in page.text
    assert "<script" not in page.text
    assert '<span class="label">Leader Phone:</span> +254700000009' in page.text
    assert '<span class="label">Male:</span> 1' in page.text
    assert "Kasarani" in page.text and "Nairobi East" in page.text

    assert client.get(f"/api/homecells/{bethel['id']}/export", params={"format": "pdf"}, headers=hr).status_code == 422
    assert client.get("/api/homecells/999/export", headers=hr).status_code == 404


def test_district_export(hr, finance):
    d, _, (bethel, _) = _tree(hr)
    for name in ("Ruth", "Naomi"):
        client.post("/api/members", json={"full_name": name, "homecell_id": bethel["id"]}, headers=hr)

    r = client.get(f"/api/homecells/districts/{d['id']}/export", params={"format": "csv"}, headers=hr)
    assert r.headers["content-disposition"] == 'attachment; filename="district-nairobi-east-zones.csv"'
    rows = list(csv.reader(io.StringIO(r.text)))
    assert rows == [
        ["Zone ID", "Zone Name", "Zone Leader", "Leader Phone", "Home Cells", "Members", "Status"],
        ["ZONE-001", "Kasarani", "Not assigned", "", "2", "2", "Active"],
    ]

    page = client.get(f"/api/homecells/districts/{d['id']}/export", params={"format": "html"}, headers=hr).text
    assert "<h2>Zones in this District</h2>" in page
    assert '<span class="label">Total Zones:</span> 1' in page

    assert client.get(f"/api/homecells/districts/{d['id']}/export", headers=finance).status_code == 403
    assert client.get("/api/homecells/districts/999/export", headers=hr).status_code == 404
