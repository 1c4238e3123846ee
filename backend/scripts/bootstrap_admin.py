# backend/scripts/bootstrap_admin.py
"""
Create the first admin account on an empty database.

Usage (from backend/):
  python scripts/bootstrap_admin.py --email admin@tsoam.org --name "Church Admin" --password 'S3cure-pass'

Refuses to run when any user already exists. Schema must be in place
(`alembic upgrade head`).
"""

from __future__ import annotations

# --- PATH SHIM: ensure 'tsoam' package is importable when running this script ---
import os, sys
SCRIPT_DIR = os.path.dirname(os.path.abspath(__file__))          # .../backend/scripts
PROJECT_ROOT = os.path.abspath(os.path.join(SCRIPT_DIR, ".."))   # .../backend
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import argparse
import getpass

from tsoam.config import configure_logging
from tsoam.db import SessionLocal
from tsoam.schemas.auth import UserCreate
from tsoam.services.auth import bootstrap_admin


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Create the first TSOAM admin user")
    ap.add_argument("--email", required=True)
    ap.add_argument("--name", required=True)
    ap.add_argument("--password", help="prompted when omitted")
    ap.add_argument("--phone")
    args = ap.parse_args(argv)

    configure_logging()
    password = args.password or getpass.getpass("Admin password: ")

    with SessionLocal() as db:
        try:
            user = bootstrap_admin(
                db,
                UserCreate(email=args.email, full_name=args.name, password=password, phone=args.phone, role="admin"),
            )
        except FileExistsError as e:
            print(f"BOOTSTRAP_SKIPPED: {e}")
            return 1
    print(f"BOOTSTRAP_OK {user.email} ({user.id})")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
