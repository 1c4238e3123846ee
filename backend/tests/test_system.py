# tests/test_system.py
from fastapi.testclient import TestClient

from tsoam import __version__
from tsoam.main import app

client = TestClient(app)


def test_health():
    body = client.get("/health").json()
    assert body["status"] == "ok"
    assert body["db"]["status"] == "ok"
    assert body["time"]["tz"] == "Africa/Nairobi"


def test_version():
    body = client.get("/version").json()
    assert body["version"] == __version__
    assert body["currency"] == "KES"


def test_system_logs_admin_only(admin, pastor):
    client.post("/api/inventory", json={"name": "Projector", "category": "AV"}, headers=admin)
    rows = client.get("/api/system-logs", params={"module": "Inventory"}, headers=admin).json()
    assert [r["action"] for r in rows] == ["Add inventory item"]
    assert rows[0]["user_name"] == "Admin Tester"
    assert client.get("/api/system-logs", headers=pastor).status_code == 403
