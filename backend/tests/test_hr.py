# tests/test_hr.py
from decimal import Decimal

from fastapi.testclient import TestClient

from tsoam.main import app
from tsoam.models.hr import Employee
from tsoam.services import hr as hr_svc
from tsoam.services.payroll_rates import compute_paye, compute_statutory_deductions

client = TestClient(app)


def _employee(headers, **overrides):
    payload = {
        "first_name": "Grace",
        "last_name": "Wanjiru",
        "email": "grace@tsoam.test",
        "gender": "Female",
        "position": "Accountant",
        "department": "Finance",
        "basic_salary": "45000",
        "allowances": "5000",
        "hire_date": "2022-03-01",
    }
    payload.update(overrides)
    r = client.post("/api/hr/employees", json=payload, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()


def test_statutory_deductions_mid_salary():
    out = compute_statutory_deductions(Decimal("50000"))
    assert out["nssf"] == Decimal("3000.00")
    assert out["sha"] == Decimal("1375.00")
    assert out["housing_levy"] == Decimal("750.00")
    assert out["taxable"] == Decimal("44875.00")
    assert out["paye"] == Decimal("5845.85")
    assert out["total"] == Decimal("10970.85")


def test_statutory_deductions_floors_and_caps():
    low = compute_statutory_deductions(10000)
    assert low["sha"] == Decimal("300.00")
    assert low["paye"] == Decimal("0.00")

    high = compute_statutory_deductions(200000)
    assert high["nssf"] == Decimal("4320.00")
    assert compute_paye(0) == Decimal("0.00")


def test_employee_ids_are_sequential(hr):
    first = _employee(hr)
    second = _employee(hr, first_name="Peter", email="peter@tsoam.test", gender="Male")
    assert first["employee_id"] == "TSOAM-EMP-001"
    assert second["employee_id"] == "TSOAM-EMP-002"


def test_employee_permissions(hr, finance, member_user):
    _employee(hr)
    assert client.get("/api/hr/employees", headers=finance).status_code == 403
    assert client.get("/api/hr/employees", headers=member_user).status_code == 403
    r = client.post("/api/hr/employees", json={"first_name": "A", "last_name": "B"}, headers=finance)
    assert r.status_code == 403


def test_update_search_and_deactivate(hr):
    emp = _employee(hr)
    r = client.put(f"/api/hr/employees/{emp['id']}", json={"position": "Senior Accountant"}, headers=hr)
    assert r.status_code == 200
    assert r.json()["position"] == "Senior Accountant"

    found = client.get("/api/hr/employees/search/wanjiru", headers=hr).json()
    assert [e["employee_id"] for e in found] == [emp["employee_id"]]

    stats = client.get("/api/hr/employees/stats/summary", headers=hr).json()
    assert stats["total"] == 1
    assert stats["by_department"] == {"Finance": 1}

    r = client.delete(f"/api/hr/employees/{emp['id']}", headers=hr)
    assert r.status_code == 200
    assert r.json()["employment_status"] == "Terminated"
    assert client.get(f"/api/hr/employees/{emp['id']}", headers=hr).status_code == 404


def test_redact_salary():
    emp = Employee(employee_id="TSOAM-EMP-009", first_name="A", last_name="B", basic_salary=Decimal("1000"), allowances=Decimal("10"))
    data = hr_svc.redact_salary(emp)
    assert data["basic_salary"] is None
    assert data["allowances"] is None
    assert data["employee_id"] == "TSOAM-EMP-009"


def test_payroll_record_computes_deductions(hr):
    emp = _employee(hr)
    r = client.post(
        "/api/hr/payroll",
        json={
            "employee_id": emp["id"],
            "period_start": "2025-01-01",
            "period_end": "2025-01-31",
            "loan_deduction": "1000",
        },
        headers=hr,
    )
    assert r.status_code == 201, r.text
    rec = r.json()
    assert rec["payroll_id"] == "PAY-001"
    assert Decimal(rec["gross_pay"]) == Decimal("50000.00")
    assert Decimal(rec["paye"]) == Decimal("5845.85")
    assert Decimal(rec["total_deductions"]) == Decimal("11970.85")
    assert Decimal(rec["net_pay"]) == Decimal("38029.15")
    assert rec["status"] == "Pending"

    listed = client.get(f"/api/hr/payroll/{emp['id']}", params={"year": 2025, "month": 1}, headers=hr).json()
    assert [x["payroll_id"] for x in listed] == ["PAY-001"]
    assert client.get(f"/api/hr/payroll/{emp['id']}", params={"year": 2024}, headers=hr).json() == []


def test_payroll_record_rejects_negative_net(hr):
    emp = _employee(hr, basic_salary="1000", allowances="0")
    r = client.post(
        "/api/hr/payroll",
        json={"employee_id": emp["id"], "period_start": "2025-01-01", "period_end": "2025-01-31", "other_deductions": "5000"},
        headers=hr,
    )
    assert r.status_code == 400
    assert r.json()["detail"] == "Deductions exceed gross pay"


def test_payroll_period_order_validated(hr):
    emp = _employee(hr)
    r = client.post(
        "/api/hr/payroll",
        json={"employee_id": emp["id"], "period_start": "2025-02-01", "period_end": "2025-01-31"},
        headers=hr,
    )
    assert r.status_code == 422


def test_assemble_batch_and_finance_decision_flow_back(hr, finance):
    a = _employee(hr)
    b = _employee(hr, first_name="Peter", email="peter@tsoam.test", gender="Male", basic_salary="30000", allowances="0")
    for emp in (a, b):
        client.post(
            "/api/hr/payroll",
            json={"employee_id": emp["id"], "period_start": "2025-01-01", "period_end": "2025-01-31"},
            headers=hr,
        )

    r = client.post("/api/hr/payroll/batches", json={"period_start": "2025-01-01", "period_end": "2025-01-31"}, headers=hr)
    assert r.status_code == 201, r.text
    batch = r.json()
    assert batch["batch_id"] == "PAYROLL-202501-002-PAY-001"
    assert batch["period"] == "January 2025"
    assert batch["total_employees"] == 2
    assert batch["summary"]["total_basic_salary"] == "75000.00"
    assert [i["employee_id"] for i in batch["items"]] == ["TSOAM-EMP-001", "TSOAM-EMP-002"]

    records = client.get(f"/api/hr/payroll/{a['id']}", headers=hr).json()
    assert records[0]["status"] == "Submitted"
    assert records[0]["batch_id"] == batch["batch_id"]

    # nothing left to assemble for the period
    again = client.post("/api/hr/payroll/batches", json={"period_start": "2025-01-01", "period_end": "2025-01-31"}, headers=hr)
    assert again.status_code == 400

    client.post(
        f"/api/finance/payroll-approvals/{batch['batch_id']}/reject-individual",
        json={"rejections": [{"employee_id": "TSOAM-EMP-002", "reason": "Wrong bank"}]},
        headers=finance,
    )
    client.post(f"/api/finance/payroll-approvals/{batch['batch_id']}/approve", json={}, headers=finance)

    assert client.get(f"/api/hr/payroll/{a['id']}", headers=hr).json()[0]["status"] == "Approved"
    assert client.get(f"/api/hr/payroll/{b['id']}", headers=hr).json()[0]["status"] == "Rejected"

    notices = client.get("/api/hr/finance-responses", params={"batch_id": batch["batch_id"]}, headers=hr).json()
    kinds = {n["event_type"] for n in notices}
    assert {"individual_rejected", "batch_approved", "disbursement_approved", "disbursement_rejected"} <= kinds


def test_performance_review_rating(hr):
    emp = _employee(hr)
    r = client.post(
        "/api/hr/performance-reviews",
        json={
            "employee_id": emp["id"],
            "review_period": "2024",
            "review_date": "2025-01-15",
            "job_knowledge": 4,
            "work_quality": 5,
            "teamwork": 3,
        },
        headers=hr,
    )
    assert r.status_code == 201, r.text
    review = r.json()
    assert Decimal(review["overall_rating"]) == Decimal("4.00")
    assert review["reviewer"] == "Hr Tester"

    r = client.put(f"/api/hr/performance-reviews/{review['id']}", json={"punctuality": 1, "status": "completed"}, headers=hr)
    assert Decimal(r.json()["overall_rating"]) == Decimal("3.25")

    locked = client.put(f"/api/hr/performance-reviews/{review['id']}", json={"goals": "x"}, headers=hr)
    assert locked.status_code == 400

    assert client.delete(f"/api/hr/performance-reviews/{review['id']}", headers=hr).status_code == 204
    assert client.get("/api/hr/performance-reviews", headers=hr).json() == []
