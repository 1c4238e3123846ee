# tsoam/services/inventory.py
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from tsoam.models.inventory import InventoryItem
from tsoam.schemas.inventory import InventoryCreate, InventoryUpdate
from tsoam.services import system_logs
from tsoam.services.identifiers import next_formatted_id

logger = logging.getLogger(__name__)


def create_item(db: Session, data: InventoryCreate, user: Any = None) -> InventoryItem:
    item = InventoryItem(**data.model_dump(), item_code=next_formatted_id(db, InventoryItem.item_code, "INV-"), is_active=True)
    db.add(item)
    system_logs.record(db, action="Add inventory item", module="Inventory", user=user, entity_type="inventory_item", entity_id=item.item_code)
    db.commit()
    db.refresh(item)
    return item


def list_items(
    db: Session, *, category: Optional[str] = None, status: Optional[str] = None, search: Optional[str] = None
) -> List[InventoryItem]:
    stmt = select(InventoryItem).where(InventoryItem.is_active.is_(True))
    if category:
        stmt = stmt.where(InventoryItem.category == category)
    if status:
        stmt = stmt.where(InventoryItem.status == status)
    if search:
        like = f"%{search.strip()}%"
        stmt = stmt.where(or_(InventoryItem.name.ilike(like), InventoryItem.item_code.ilike(like)))
    return list(db.execute(stmt.order_by(InventoryItem.item_code)).scalars().all())


def get_item(db: Session, pk) -> InventoryItem:
    item = db.get(InventoryItem, pk)
    if item is None or not item.is_active:
        raise LookupError("Inventory item not found")
    return item


def update_item(db: Session, pk, data: InventoryUpdate, user: Any = None) -> InventoryItem:
    item = get_item(db, pk)
    for k, v in data.model_dump(exclude_unset=True).items():
        setattr(item, k, v)
    system_logs.record(db, action="Update inventory item", module="Inventory", user=user, entity_type="inventory_item", entity_id=item.item_code)
    db.commit()
    db.refresh(item)
    return item


def delete_item(db: Session, pk, user: Any = None) -> InventoryItem:
    item = get_item(db, pk)
    item.is_active = False
    system_logs.record(db, action="Remove inventory item", module="Inventory", user=user, entity_type="inventory_item", entity_id=item.item_code, severity="Warning")
    db.commit()
    db.refresh(item)
    return item


def inventory_stats(db: Session) -> Dict[str, Any]:
    items = list_items(db)
    by_category: Dict[str, int] = {}
    by_status: Dict[str, int] = {}
    for i in items:
        by_category[i.category] = by_category.get(i.category, 0) + 1
        by_status[i.status] = by_status.get(i.status, 0) + 1
    return {
        "total_items": len(items),
        "total_quantity": sum(i.quantity for i in items),
        "total_value": sum((Decimal(i.quantity) * Decimal(str(i.unit_cost)) for i in items), Decimal("0")),
        "by_category": by_category,
        "by_status": by_status,
    }
