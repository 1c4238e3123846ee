# tsoam/services/homecell_hierarchy.py
"""
In-process cache of the district -> zone -> home cell tree.

Used for dropdown options and id lookups. Hierarchy writes call
`invalidate()`; the next reader reloads.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tsoam.models.homecells import District, HomeCell, Zone

logger = logging.getLogger(__name__)


def row_dict(obj: Any, fields: tuple) -> Dict[str, Any]:
    return {f: getattr(obj, f) for f in fields}


DISTRICT_FIELDS = ("id", "district_id", "name", "description", "leader_id", "is_active")
ZONE_FIELDS = ("id", "zone_id", "district_pk", "name", "description", "leader_id", "is_active")
HOMECELL_FIELDS = (
    "id", "homecell_id", "zone_pk", "district_pk", "name", "leader_id",
    "meeting_day", "meeting_time", "meeting_location", "member_count", "is_active",
)


class HomeCellHierarchy:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._districts: List[Dict[str, Any]] = []
        self._zones: List[Dict[str, Any]] = []
        self._homecells: List[Dict[str, Any]] = []
        self.initialized = False

    def initialize(self, db: Session) -> bool:
        """Load the tree once. On a database error the cache is left empty and uninitialised."""
        with self._lock:
            if self.initialized:
                return True
            try:
                districts = db.execute(select(District).order_by(District.name)).scalars().all()
                zones = db.execute(select(Zone).order_by(Zone.name)).scalars().all()
                homecells = db.execute(select(HomeCell).order_by(HomeCell.name)).scalars().all()
            except SQLAlchemyError:
                db.rollback()
                logger.error("failed to load home-cell hierarchy", exc_info=True)
                self._districts, self._zones, self._homecells = [], [], []
                return False
            self._districts = [row_dict(d, DISTRICT_FIELDS) for d in districts]
            self._zones = [row_dict(z, ZONE_FIELDS) for z in zones]
            self._homecells = [row_dict(h, HOMECELL_FIELDS) for h in homecells]
            self.initialized = True
            logger.debug(
                "home-cell hierarchy loaded districts=%s zones=%s homecells=%s",
                len(self._districts), len(self._zones), len(self._homecells),
            )
            return True

    def invalidate(self) -> None:
        with self._lock:
            self.initialized = False

    def refresh(self, db: Session) -> bool:
        self.invalidate()
        return self.initialize(db)

    def districts(self) -> List[Dict[str, Any]]:
        return list(self._districts)

    def zones(self) -> List[Dict[str, Any]]:
        return list(self._zones)

    def homecells(self) -> List[Dict[str, Any]]:
        return list(self._homecells)

    def zones_by_district(self, district_pk: int) -> List[Dict[str, Any]]:
        return [z for z in self._zones if z["district_pk"] == district_pk]

    def homecells_by_zone(self, zone_pk: int) -> List[Dict[str, Any]]:
        return [h for h in self._homecells if h["zone_pk"] == zone_pk]

    def active_homecell_options(self) -> List[Dict[str, str]]:
        return [{"value": h["homecell_id"], "label": h["name"]} for h in self._homecells if h["is_active"]]

    def district(self, pk: int) -> Optional[Dict[str, Any]]:
        return next((d for d in self._districts if d["id"] == pk), None)

    def zone(self, pk: int) -> Optional[Dict[str, Any]]:
        return next((z for z in self._zones if z["id"] == pk), None)

    def homecell(self, pk: int) -> Optional[Dict[str, Any]]:
        return next((h for h in self._homecells if h["id"] == pk), None)


hierarchy = HomeCellHierarchy()
