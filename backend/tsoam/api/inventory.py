# tsoam/api/inventory.py
from __future__ import annotations

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from tsoam.db import get_db
from tsoam.dependencies import http_errors, require_permission
from tsoam.models.users import User
from tsoam.schemas.inventory import InventoryCreate, InventoryOut, InventoryStats, InventoryUpdate
from tsoam.services import inventory as svc

router = APIRouter(prefix="/inventory", tags=["Inventory"])

_inventory = require_permission("can_access_inventory")


@router.get("", response_model=List[InventoryOut], dependencies=[Depends(_inventory)])
def list_items(
    category: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    return svc.list_items(db, category=category, status=status, search=search)


@router.get("/stats/overview", response_model=InventoryStats, dependencies=[Depends(_inventory)])
def stats(db: Session = Depends(get_db)):
    return svc.inventory_stats(db)


@router.get("/{pk}", response_model=InventoryOut, dependencies=[Depends(_inventory)])
def get_item(pk: uuid.UUID, db: Session = Depends(get_db)):
    with http_errors(db):
        return svc.get_item(db, pk)


@router.post("", response_model=InventoryOut, status_code=status.HTTP_201_CREATED)
def create_item(payload: InventoryCreate, db: Session = Depends(get_db), user: User = Depends(_inventory)):
    with http_errors(db):
        return svc.create_item(db, payload, user)


@router.put("/{pk}", response_model=InventoryOut)
def update_item(pk: uuid.UUID, payload: InventoryUpdate, db: Session = Depends(get_db), user: User = Depends(_inventory)):
    with http_errors(db):
        return svc.update_item(db, pk, payload, user)


@router.delete("/{pk}", response_model=InventoryOut)
def delete_item(pk: uuid.UUID, db: Session = Depends(get_db), user: User = Depends(_inventory)):
    with http_errors(db):
        return svc.delete_item(db, pk, user)
