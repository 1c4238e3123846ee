# tests/test_inventory.py
from decimal import Decimal

from fastapi.testclient import TestClient

from tsoam.main import app

client = TestClient(app)


def _item(headers, **extra):
    payload = {"name": "Yamaha Keyboard", "category": "Instruments", "quantity": 2, "unit_cost": "45000.00", **extra}
    r = client.post("/api/inventory", json=payload, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()


def test_crud_and_codes(finance):
    a = _item(finance)
    b = _item(finance, name="Plastic chairs", category="Furniture", quantity=150, unit_cost="800")
    assert (a["item_code"], b["item_code"]) == ("INV-001", "INV-002")
    assert a["condition"] == "Good"

    r = client.put(f"/api/inventory/{a['id']}", json={"status": "Maintenance", "condition": "Fair"}, headers=finance)
    assert r.json()["status"] == "Maintenance"

    found = client.get("/api/inventory", params={"search": "chair"}, headers=finance).json()
    assert [i["item_code"] for i in found] == ["INV-002"]

    assert client.delete(f"/api/inventory/{b['id']}", headers=finance).json()["is_active"] is False
    assert client.get(f"/api/inventory/{b['id']}", headers=finance).status_code == 404


def test_stats(finance):
    _item(finance)
    _item(finance, name="Plastic chairs", category="Furniture", quantity=150, unit_cost="800")
    stats = client.get("/api/inventory/stats/overview", headers=finance).json()
    assert stats["total_items"] == 2
    assert stats["total_quantity"] == 152
    assert Decimal(stats["total_value"]) == Decimal("210000")
    assert stats["by_category"] == {"Instruments": 1, "Furniture": 1}


def test_validation_and_access(finance, hr):
    r = client.post("/api/inventory", json={"name": "Mic", "category": "Sound", "quantity": -1}, headers=finance)
    assert r.status_code == 422
    assert client.get("/api/inventory", headers=hr).status_code == 403
