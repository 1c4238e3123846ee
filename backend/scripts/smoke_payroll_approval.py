# backend/scripts/smoke_payroll_approval.py
"""
Smoke test for the payroll approval workflow against a running API.

What it does:
1) Logs in (or uses AUTH_ENFORCE=false if no credentials are given)
2) Submits a two-employee batch with a unique batch_id
3) Approves one employee, rejects the other
4) Prints the final batch status and its disbursement reports

Usage:
  API_BASE=http://127.0.0.1:8000 SMOKE_EMAIL=admin@tsoam.org SMOKE_PASSWORD=... \
      python backend/scripts/smoke_payroll_approval.py
"""

from __future__ import annotations

import json
import os
import sys
import uuid
from datetime import date

import requests

BASE = os.getenv("API_BASE", "http://127.0.0.1:8000").rstrip("/")
TIMEOUT = 10


def _headers() -> dict:
    email, password = os.getenv("SMOKE_EMAIL"), os.getenv("SMOKE_PASSWORD")
    if not email or not password:
        return {}
    r = requests.post(f"{BASE}/api/auth/login", json={"email": email, "password": password}, timeout=TIMEOUT)
    r.raise_for_status()
    return {"Authorization": f"Bearer {r.json()['access_token']}"}


def main() -> int:
    h = _headers()
    batch_id = f"SMOKE-{date.today():%Y%m}-{uuid.uuid4().hex[:6].upper()}"
    payload = {
        "batch_id": batch_id,
        "period": date.today().strftime("%B %Y"),
        "employees": [
            {"employee_id": "SMOKE-1", "employee_name": "Smoke One", "gross_salary": "80000", "net_salary": "61000"},
            {"employee_id": "SMOKE-2", "employee_name": "Smoke Two", "gross_salary": "50000", "net_salary": "40500"},
        ],
    }
    url = f"{BASE}/api/finance/payroll-approvals"
    r = requests.post(url, json=payload, headers=h, timeout=TIMEOUT)
    if r.status_code != 201:
        print("SUBMIT_FAILED", r.status_code, r.text)
        return 1

    r = requests.post(f"{url}/{batch_id}/approve-individual", json={"employee_ids": ["SMOKE-1"]}, headers=h, timeout=TIMEOUT)
    r.raise_for_status()
    print("after approve:", r.json()["status"])

    r = requests.post(
        f"{url}/{batch_id}/reject-individual",
        json={"rejections": [{"employee_id": "SMOKE-2", "reason": "Smoke rejection"}]},
        headers=h,
        timeout=TIMEOUT,
    )
    r.raise_for_status()
    batch = r.json()

    reports = requests.get(f"{url}/{batch_id}/disbursement-reports", headers=h, timeout=TIMEOUT).json()
    print(json.dumps(
        {
            "batch_id": batch_id,
            "status": batch["status"],
            "items": {i["employee_id"]: i["status"] for i in batch["items"]},
            "reports": [rep["report_id"] for rep in reports],
        },
        indent=2,
    ))
    return 0 if batch["status"] == "Fully_Approved" else 1


if __name__ == "__main__":
    sys.exit(main())
