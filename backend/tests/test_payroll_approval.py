# tests/test_payroll_approval.py
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import select

from tsoam.main import app
from tsoam.models.payroll_approval import FinanceNotification, HRFinanceNotice
from tsoam.services import payroll_approval as svc

client = TestClient(app)

BASE = "/api/finance/payroll-approvals"


def _employee(emp_id, net, gross=None):
    gross = gross if gross is not None else net + 5000
    return {
        "employee_id": emp_id,
        "employee_name": f"Staff {emp_id}",
        "gross_salary": gross,
        "net_salary": net,
        "deductions": {"paye": 3000, "nssf": 1080, "sha": 920, "total": 5000},
    }


def _submit(headers, batch_id="PAYROLL-202501-003", employees=None):
    employees = employees or [
        _employee("TSOAM-EMP-001", 40000),
        _employee("TSOAM-EMP-002", 55000),
        _employee("TSOAM-EMP-003", 30000),
    ]
    r = client.post(
        BASE,
        json={"batch_id": batch_id, "period": "January 2025", "employees": employees},
        headers=headers,
    )
    return r


def test_priority_thresholds():
    assert svc.calculate_priority(100_000, 3) == "low"
    assert svc.calculate_priority(500_000, 10) == "low"
    assert svc.calculate_priority(500_001, 3) == "medium"
    assert svc.calculate_priority(10_000, 11) == "medium"
    assert svc.calculate_priority(2_000_001, 1) == "high"
    assert svc.calculate_priority(10_000, 21) == "high"
    assert svc.calculate_priority(5_000_001, 1) == "urgent"
    assert svc.calculate_priority(10_000, 51) == "urgent"


def test_submit_builds_batch_and_notifies_finance(hr, finance):
    r = _submit(hr)
    assert r.status_code == 201, r.text
    batch = r.json()
    assert batch["status"] == "Pending"
    assert batch["total_employees"] == 3
    assert Decimal(batch["total_net_amount"]) == Decimal("125000.00")
    assert Decimal(batch["total_gross_amount"]) == Decimal("140000.00")
    assert batch["priority"] == "low"
    assert batch["department"] == "HR"
    assert batch["summary"]["total_paye"] == "9000.00"
    assert batch["summary"]["approval_required"] is True
    # not derivable from the batch lines
    assert batch["summary"]["total_basic_salary"] == "0.00"
    assert batch["summary"]["total_allowances"] == "0.00"
    assert batch["summary"]["bank_balance"] == "0.00"
    assert batch["summary"]["projected_cash_flow"] == "125000.00"
    assert all(i["status"] == "Pending" for i in batch["items"])

    pending = client.get(f"{BASE}/pending", headers=finance).json()
    assert [b["batch_id"] for b in pending] == ["PAYROLL-202501-003"]

    notes = client.get(f"{BASE}/notifications", headers=finance).json()
    assert notes[0]["type"] == "payroll_approval"
    assert notes[0]["batch_id"] == "PAYROLL-202501-003"
    assert notes[0]["read"] is False


def test_submit_validation(hr):
    assert _submit(hr).status_code == 201
    dup = _submit(hr)
    assert dup.status_code == 409

    empty = client.post(BASE, json={"batch_id": "B-EMPTY", "period": "Jan", "employees": []}, headers=hr)
    assert empty.status_code == 400
    assert "employee" in empty.json()["detail"]

    no_id = client.post(BASE, json={"period": "Jan", "employees": [_employee("E1", 100)]}, headers=hr)
    assert no_id.status_code == 400
    assert no_id.json()["detail"] == "batch_id is required"


def test_roles(hr, finance, member_user):
    assert _submit(member_user).status_code == 403
    assert _submit(finance).status_code == 403
    assert _submit(hr).status_code == 201

    r = client.post(f"{BASE}/PAYROLL-202501-003/approve", json={}, headers=hr)
    assert r.status_code == 403
    assert client.get(f"{BASE}/pending", headers=member_user).status_code == 403


def test_approve_individual_then_reject_rest_finalises(db, hr, finance):
    _submit(hr)

    r = client.post(
        f"{BASE}/PAYROLL-202501-003/approve-individual",
        json={"employee_ids": ["TSOAM-EMP-001"], "notes": "ok"},
        headers=finance,
    )
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["status"] == "Partially_Approved"
    assert body["finalized_at"] is None
    statuses = {i["employee_id"]: i["status"] for i in body["items"]}
    assert statuses == {"TSOAM-EMP-001": "Approved", "TSOAM-EMP-002": "Pending", "TSOAM-EMP-003": "Pending"}

    # still in the pending queue
    pending = client.get(f"{BASE}/pending", headers=finance).json()
    assert [b["batch_id"] for b in pending] == ["PAYROLL-202501-003"]

    r = client.post(
        f"{BASE}/PAYROLL-202501-003/reject-individual",
        json={"rejections": [
            {"employee_id": "TSOAM-EMP-002", "reason": "Bank details missing"},
            {"employee_id": "TSOAM-EMP-003", "reason": "On unpaid leave"},
        ]},
        headers=finance,
    )
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["status"] == "Fully_Approved"
    assert body["finalized_at"] is not None
    rejected = {i["employee_id"]: i["rejection_reason"] for i in body["items"] if i["status"] == "Rejected"}
    assert rejected == {"TSOAM-EMP-002": "Bank details missing", "TSOAM-EMP-003": "On unpaid leave"}
    approved = [i for i in body["items"] if i["status"] == "Approved"]
    assert approved[0]["payment_reference"].startswith("PAY-TSOAM-EMP-001-")

    assert client.get(f"{BASE}/pending", headers=finance).json() == []
    hist = client.get(f"{BASE}/history", headers=finance).json()
    assert [b["batch_id"] for b in hist] == ["PAYROLL-202501-003"]

    reports = client.get(f"{BASE}/PAYROLL-202501-003/disbursement-reports", headers=finance).json()
    by_type = {rep["report_type"]: rep for rep in reports}
    assert set(by_type) == {"approved_disbursement", "rejected_disbursement"}
    ok = by_type["approved_disbursement"]
    assert ok["report_id"].startswith("DISB-APPROVED-PAYROLL-202501-003-")
    assert ok["total_employees"] == 1
    assert Decimal(ok["total_net_amount"]) == Decimal("40000")
    assert ok["disbursement_method"] == "Bank Transfer"
    bad = by_type["rejected_disbursement"]
    assert bad["report_id"].startswith("DISB-REJECTED-")
    assert bad["total_employees"] == 2
    assert Decimal(bad["total_net_amount"]) == Decimal("0")
    assert bad["disbursement_method"] == "Not Applicable"

    impact = client.get(f"{BASE}/PAYROLL-202501-003/impact", headers=finance).json()
    assert impact["approved_count"] == 1
    assert impact["rejected_count"] == 2
    assert impact["pending_count"] == 0
    assert Decimal(impact["cash_flow_impact"]) == Decimal("40000.00")

    events = [n.event_type for n in db.execute(select(HRFinanceNotice)).scalars().all()]
    assert events.count("individual_approved") == 1
    assert events.count("individual_rejected") == 2
    assert "batch_approved" in events
    assert "disbursement_approved" in events
    assert "disbursement_rejected" in events


def test_batch_approve_touches_only_pending_items(hr, finance):
    _submit(hr)
    client.post(
        f"{BASE}/PAYROLL-202501-003/reject-individual",
        json={"rejections": [{"employee_id": "TSOAM-EMP-002", "reason": "Duplicate"}]},
        headers=finance,
    )
    r = client.post(f"{BASE}/PAYROLL-202501-003/approve", json={"notes": "rest ok"}, headers=finance)
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "Fully_Approved"
    statuses = {i["employee_id"]: i["status"] for i in body["items"]}
    assert statuses["TSOAM-EMP-002"] == "Rejected"
    assert statuses["TSOAM-EMP-001"] == "Approved"
    assert [a["action_type"] for a in body["actions"]] == ["reject", "approve"]


def test_reject_whole_batch(hr, finance):
    _submit(hr)
    r = client.post(f"{BASE}/PAYROLL-202501-003/reject", json={"reason": "Budget freeze"}, headers=finance)
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "Rejected"
    assert all(i["rejection_reason"] == "Budget freeze" for i in body["items"])

    reports = client.get(f"{BASE}/disbursement-reports", params={"batch_id": "PAYROLL-202501-003"}, headers=finance).json()
    assert [rep["report_type"] for rep in reports] == ["rejected_disbursement"]

    # finalised batches refuse further action
    again = client.post(f"{BASE}/PAYROLL-202501-003/approve", json={}, headers=finance)
    assert again.status_code == 400
    assert "already Rejected" in again.json()["detail"]


def test_reject_requires_reason(db, hr, finance):
    _submit(hr)
    r = client.post(f"{BASE}/PAYROLL-202501-003/reject", json={"reason": ""}, headers=finance)
    assert r.status_code == 422

    with pytest.raises(ValueError, match="reason"):
        svc.reject_batch(db, "PAYROLL-202501-003", None, "   ")


def test_unknown_batch_and_employee(hr, finance):
    assert client.get(f"{BASE}/NOPE", headers=finance).status_code == 404
    _submit(hr)
    r = client.post(
        f"{BASE}/PAYROLL-202501-003/approve-individual",
        json={"employee_ids": ["NOT-IN-BATCH"]},
        headers=finance,
    )
    assert r.status_code == 404

    impact = client.get(f"{BASE}/NOPE/impact", headers=finance).json()
    assert impact["approved_count"] == 0
    assert Decimal(impact["cash_flow_impact"]) == Decimal("0")


def test_disbursement_report_needs_final_batch(hr, finance):
    _submit(hr)
    r = client.post(f"{BASE}/PAYROLL-202501-003/disbursement-reports", headers=finance)
    assert r.status_code == 400

    client.post(f"{BASE}/PAYROLL-202501-003/approve", json={}, headers=finance)
    first = client.post(f"{BASE}/PAYROLL-202501-003/disbursement-reports", headers=finance).json()
    second = client.post(f"{BASE}/PAYROLL-202501-003/disbursement-reports", headers=finance).json()
    assert [x["report_id"] for x in first] == [x["report_id"] for x in second]
    assert len(first) == 1


def test_mark_notification_read(hr, finance):
    _submit(hr)
    notes = client.get(f"{BASE}/notifications", headers=finance).json()
    r = client.patch(f"{BASE}/notifications/{notes[0]['id']}/read", headers=finance)
    assert r.status_code == 200
    assert r.json()["read"] is True
    assert client.get(f"{BASE}/notifications", params={"unread_only": True}, headers=finance).json() == []
    assert client.patch(f"{BASE}/notifications/99999/read", headers=finance).status_code == 404


def test_notifications_capped(db):
    for n in range(svc.MAX_NOTIFICATIONS + 5):
        svc._notify(db, type="payroll_approval", title=f"n{n}", message="m", priority="low")
    db.commit()
    rows = db.execute(select(FinanceNotification)).scalars().all()
    assert len(rows) == svc.MAX_NOTIFICATIONS
    titles = {r.title for r in rows}
    assert "n0" not in titles
    assert f"n{svc.MAX_NOTIFICATIONS + 4}" in titles
