# tsoam/schemas/inventory.py
from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal
from typing import Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

Condition = Literal["Excellent", "Good", "Fair", "Poor", "Damaged"]
ItemStatus = Literal["Available", "In Use", "Maintenance", "Disposed"]


class InventoryBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    category: str = Field(..., min_length=1, max_length=60)
    description: Optional[str] = None
    quantity: int = Field(1, ge=0)
    unit_cost: Decimal = Field(Decimal("0"), ge=0)
    location: Optional[str] = None
    condition: Condition = "Good"
    status: ItemStatus = "Available"
    purchase_date: Optional[date] = None

    model_config = ConfigDict(from_attributes=True)


class InventoryCreate(InventoryBase):
    pass


class InventoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    category: Optional[str] = None
    description: Optional[str] = None
    quantity: Optional[int] = Field(None, ge=0)
    unit_cost: Optional[Decimal] = Field(None, ge=0)
    location: Optional[str] = None
    condition: Optional[Condition] = None
    status: Optional[ItemStatus] = None
    purchase_date: Optional[date] = None


class InventoryOut(InventoryBase):
    id: uuid.UUID
    item_code: str
    is_active: bool


class InventoryStats(BaseModel):
    total_items: int
    total_quantity: int
    total_value: Decimal
    by_category: Dict[str, int]
    by_status: Dict[str, int]
