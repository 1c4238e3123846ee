# tests/test_members_finance.py
from decimal import Decimal

from fastapi.testclient import TestClient

from tsoam.main import app

client = TestClient(app)


def _member(headers, name="Grace Wanjiku", **extra):
    r = client.post("/api/members", json={"full_name": name, "gender": "Female", **extra}, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()


def _tx(headers, tx_type="Income", amount="1000", category="Tithes", day="2025-03-09", **extra):
    payload = {
        "transaction_type": tx_type,
        "amount": amount,
        "category": category,
        "transaction_date": day,
        **extra,
    }
    r = client.post("/api/finance/transactions", json=payload, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()


# -------------------------------- members -------------------------------- #

def test_member_numbers_and_tithe_numbers(hr):
    a = _member(hr)
    b = _member(hr, name="Peter Otieno", gender="Male")
    assert (a["member_id"], a["tithe_number"]) == ("TSOAM-MEM-001", "TN-001")
    assert (b["member_id"], b["tithe_number"]) == ("TSOAM-MEM-002", "TN-002")


def test_member_crud_and_soft_delete(admin, hr):
    m = _member(hr, email="grace@example.org", baptized=True)
    r = client.put(f"/api/members/{m['id']}", json={"phone": "+254700000009"}, headers=hr)
    assert r.json()["phone"] == "+254700000009"

    found = client.get("/api/members", params={"search": "grace@"}, headers=hr).json()
    assert [x["member_id"] for x in found] == ["TSOAM-MEM-001"]

    # hr may not delete
    assert client.delete(f"/api/members/{m['id']}", headers=hr).status_code == 403
    r = client.delete(f"/api/members/{m['id']}", headers=admin)
    assert r.status_code == 200
    assert r.json()["membership_status"] == "Inactive"
    assert client.get(f"/api/members/{m['id']}", headers=admin).status_code == 404

    stats = client.get("/api/members/stats", headers=admin).json()
    assert stats == {"total": 1, "active": 0, "inactive": 1, "baptized": 0, "by_gender": {}}


def test_member_rejects_unknown_homecell(hr):
    r = client.post("/api/members", json={"full_name": "X", "homecell_id": 999}, headers=hr)
    assert r.status_code == 400
    assert "999" in r.json()["detail"]


def test_plain_user_reads_but_cannot_create_members(member_user):
    assert client.get("/api/members", headers=member_user).status_code == 200
    assert client.post("/api/members", json={"full_name": "X"}, headers=member_user).status_code == 403


# -------------------------------- finance -------------------------------- #

def test_transaction_ids_and_approval(finance):
    t1 = _tx(finance)
    t2 = _tx(finance, tx_type="Expense", amount="250.5", category="Utilities")
    assert t1["transaction_id"] == "TXN-20250309-0001"
    assert t2["transaction_id"] == "TXN-20250309-0002"
    assert t1["status"] == "Pending"

    pending = client.get("/api/finance/transactions/pending/approval", headers=finance).json()
    assert len(pending) == 2

    r = client.put(f"/api/finance/transactions/{t1['id']}/approve", headers=finance)
    assert r.status_code == 200
    assert r.json()["status"] == "Approved"
    assert r.json()["approved_by"] == "Finance Tester"

    again = client.put(f"/api/finance/transactions/{t1['id']}/approve", headers=finance)
    assert again.status_code == 400

    # approved rows are frozen
    edit = client.put(f"/api/finance/transactions/{t1['id']}", json={"amount": "5"}, headers=finance)
    assert edit.status_code == 400

    r = client.put(f"/api/finance/transactions/{t2['id']}/reject", json={"reason": "No receipt"}, headers=finance)
    assert r.json()["status"] == "Rejected"
    assert r.json()["rejection_reason"] == "No receipt"


def test_summary_counts_only_approved(finance):
    inc = _tx(finance, amount="10000")
    exp = _tx(finance, tx_type="Expense", amount="2500", category="Utilities")
    _tx(finance, amount="999")  # stays pending
    for t in (inc, exp):
        client.put(f"/api/finance/transactions/{t['id']}/approve", headers=finance)

    s = client.get("/api/finance/summary", headers=finance).json()
    assert Decimal(s["total_income"]) == Decimal("10000.00")
    assert Decimal(s["total_expenses"]) == Decimal("2500.00")
    assert Decimal(s["net_income"]) == Decimal("7500.00")
    assert s["pending_count"] == 1
    assert s["currency"] == "KES"


def test_monthly_and_yearly_reports(finance):
    rows = [
        _tx(finance, amount="8000", day="2025-03-02"),
        _tx(finance, amount="2000", category="Offerings", day="2025-03-16"),
        _tx(finance, tx_type="Expense", amount="3000", category="Utilities", day="2025-03-20"),
        _tx(finance, amount="4000", day="2025-04-06"),
    ]
    for t in rows:
        client.put(f"/api/finance/transactions/{t['id']}/approve", headers=finance)

    march = client.get("/api/finance/reports/monthly", params={"year": 2025, "month": 3}, headers=finance).json()
    assert Decimal(march["income"]) == Decimal("10000.00")
    assert Decimal(march["net"]) == Decimal("7000.00")
    cats = [(c["transaction_type"], c["category"]) for c in march["by_category"]]
    assert cats == [("Expense", "Utilities"), ("Income", "Tithes"), ("Income", "Offerings")]

    year = client.get("/api/finance/reports/yearly", params={"year": 2025}, headers=finance).json()
    assert Decimal(year["income"]) == Decimal("14000.00")
    assert Decimal(year["months"][3]["income"]) == Decimal("4000.00")
    assert len(year["months"]) == 12


def test_reports_need_report_permission(hr):
    r = client.get("/api/finance/reports/monthly", params={"year": 2025, "month": 3}, headers=hr)
    assert r.status_code == 403


def test_soft_deleted_transaction_hidden(admin):
    t = _tx(admin)
    assert client.delete(f"/api/finance/transactions/{t['id']}", headers=admin).status_code == 200
    assert client.get(f"/api/finance/transactions/{t['id']}", headers=admin).status_code == 404


def test_tithes(hr, finance):
    m = _member(hr)
    r = client.post(
        "/api/finance/tithes",
        json={"member_id": m["id"], "amount": "1500", "payment_date": "2025-02-02", "payment_method": "M-Pesa"},
        headers=finance,
    )
    assert r.status_code == 201, r.text
    assert (r.json()["month"], r.json()["year"]) == (2, 2025)
    client.post("/api/finance/tithes", json={"amount": "500", "payment_date": "2025-02-09"}, headers=finance)
    client.post("/api/finance/tithes", json={"amount": "700", "payment_date": "2025-05-04"}, headers=finance)

    s = client.get("/api/finance/tithes/summary", params={"year": 2025}, headers=finance).json()
    assert Decimal(s["total"]) == Decimal("2700.00")
    assert s["count"] == 3
    assert [b["month"] for b in s["by_month"]] == [2, 5]

    mine = client.get("/api/finance/tithes", params={"member_id": m["id"]}, headers=finance).json()
    assert len(mine) == 1

    missing = client.post(
        "/api/finance/tithes",
        json={"member_id": "00000000-0000-0000-0000-00000000dead", "amount": "1", "payment_date": "2025-01-01"},
        headers=finance,
    )
    assert missing.status_code == 404
