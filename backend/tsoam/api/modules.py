# tsoam/api/modules.py
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from tsoam.db import get_db
from tsoam.dependencies import get_current_user, http_errors, require_permission
from tsoam.models.users import User
from tsoam.schemas.modules import (
    AccessOut,
    ModuleOut,
    ModuleStatusOut,
    PurchasedModuleOut,
    PurchaseIn,
    SubscriptionOut,
)
from tsoam.services import modules as svc

router = APIRouter(prefix="/modules", tags=["Modules"])

# Buying and switching modules is a settings change
_admin = require_permission("can_access_settings")


def _ip(request: Request) -> Optional[str]:
    return request.client.host if request.client else None


@router.get("", response_model=List[ModuleOut], dependencies=[Depends(get_current_user)])
def list_modules(db: Session = Depends(get_db)):
    return [svc.module_out(m) for m in svc.list_modules(db)]


@router.get("/purchased", response_model=List[PurchasedModuleOut], dependencies=[Depends(get_current_user)])
def purchased_modules(db: Session = Depends(get_db)):
    return svc.purchased_modules(db)


@router.get("/status/all", response_model=ModuleStatusOut, dependencies=[Depends(get_current_user)])
def module_statuses(db: Session = Depends(get_db)):
    return svc.module_statuses(db)


@router.post("/purchase", response_model=SubscriptionOut, status_code=status.HTTP_201_CREATED)
def purchase(payload: PurchaseIn, request: Request, db: Session = Depends(get_db), user: User = Depends(_admin)):
    with http_errors(db):
        return svc.purchase(db, payload, user, _ip(request))


@router.get("/{module_pk}", response_model=ModuleOut, dependencies=[Depends(get_current_user)])
def get_module(module_pk: int, db: Session = Depends(get_db)):
    with http_errors(db):
        return svc.module_out(svc.get_module(db, module_pk))


@router.get("/{module_pk}/access", response_model=AccessOut)
def check_access(module_pk: int, request: Request, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    with http_errors(db):
        return svc.check_access(db, module_pk, user, _ip(request))


@router.post("/{module_pk}/activate", response_model=SubscriptionOut)
def activate(module_pk: int, request: Request, db: Session = Depends(get_db), user: User = Depends(_admin)):
    with http_errors(db):
        return svc.activate(db, module_pk, user, _ip(request))


@router.post("/{module_pk}/deactivate", response_model=SubscriptionOut)
def deactivate(module_pk: int, request: Request, db: Session = Depends(get_db), user: User = Depends(_admin)):
    with http_errors(db):
        return svc.deactivate(db, module_pk, user, _ip(request))
