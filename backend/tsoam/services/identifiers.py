# tsoam/services/identifiers.py
"""Human-readable record numbers (TSOAM-MEM-001, EVT-014, ...)."""

from __future__ import annotations

import secrets
import string
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session


def next_formatted_id(db: Session, column, prefix: str, width: int = 3) -> str:
    """Next number after the highest existing numeric suffix for `prefix`."""
    values = db.execute(select(column).where(column.like(f"{prefix}%"))).scalars().all()
    highest = 0
    for value in values:
        suffix = value[len(prefix):]
        if suffix.isdigit():
            highest = max(highest, int(suffix))
    return f"{prefix}{highest + 1:0{width}d}"


def timestamp_ms() -> int:
    return int(datetime.now(timezone.utc).timestamp() * 1000)


def random_suffix(length: int = 6) -> str:
    alphabet = string.ascii_uppercase + string.digits
    return "".join(secrets.choice(alphabet) for _ in range(length))
