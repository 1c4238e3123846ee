# tsoam/schemas/modules.py
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

LicenseType = Literal["perpetual", "trial", "subscription"]


class ModuleFeatureOut(BaseModel):
    id: int
    feature_code: str
    feature_name: str
    description: Optional[str] = None
    is_required: bool

    model_config = ConfigDict(from_attributes=True)


class ModuleOut(BaseModel):
    id: int
    module_code: str
    module_name: str
    description: Optional[str] = None
    version: str
    price_usd: Decimal
    price_kes: Decimal
    billing_cycle: str
    is_active: bool
    features: List[ModuleFeatureOut] = Field(default_factory=list)
    feature_count: int = 0

    model_config = ConfigDict(from_attributes=True)


class SubscriptionOut(BaseModel):
    id: int
    module_id: int
    license_key: str
    status: str
    purchase_date: Optional[datetime] = None
    activation_date: Optional[datetime] = None
    expiration_date: Optional[datetime] = None
    license_type: LicenseType
    max_users: int
    active_users_count: int
    notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class PurchasedModuleOut(BaseModel):
    module: ModuleOut
    subscription: SubscriptionOut


class PurchaseIn(BaseModel):
    module_id: int
    license_type: LicenseType = "subscription"
    max_users: int = Field(-1, ge=-1)
    payment_reference: Optional[str] = Field(None, max_length=100)


class AccessOut(BaseModel):
    module_id: int
    has_access: bool
    subscription: Optional[SubscriptionOut] = None


class ModuleStatusRow(BaseModel):
    id: int
    code: str
    name: str
    is_purchased: bool
    price_usd: Decimal
    price_kes: Decimal


class ModuleStatusOut(BaseModel):
    module_statuses: List[ModuleStatusRow]
    total_modules: int
    purchased_count: int
