# tsoam/api/system.py
from __future__ import annotations

from datetime import datetime
from zoneinfo import ZoneInfo

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tsoam import __version__
from tsoam.config import get_settings
from tsoam.db import get_db

router = APIRouter(tags=["ops"])


def _db_driver_from_url(url: str | None) -> str | None:
    if not url or "://" not in url:
        return None
    scheme = url.split("://", 1)[0]  # e.g., "postgresql+psycopg2"
    if "+" in scheme:
        return scheme.split("+", 1)[1]
    return scheme


@router.get("/health")
def health(db: Session = Depends(get_db)):
    """Liveness check with a DB ping and church-local time."""
    settings = get_settings()
    now_local = datetime.now(ZoneInfo(settings.tz)).isoformat()

    db_state = {"status": "ok", "driver": _db_driver_from_url(settings.database_url)}
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        db_state["status"] = f"error: {type(e).__name__}"

    return {
        "status": "ok",
        "time": {"tz": settings.tz, "now": now_local},
        "db": db_state,
    }


@router.get("/version")
def version():
    settings = get_settings()
    return {
        "app": "TSOAM Church Management API",
        "version": __version__,
        "db_driver": _db_driver_from_url(settings.database_url),
        "tz": settings.tz,
        "currency": settings.currency,
    }
