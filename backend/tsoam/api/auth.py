# tsoam/api/auth.py
from __future__ import annotations

import uuid
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from tsoam.config import get_settings
from tsoam.db import get_db
from tsoam.dependencies import get_current_user, http_errors, require_permission
from tsoam.models.users import User
from tsoam.schemas.auth import (
    ForgotPasswordIn,
    LoginIn,
    LoginOut,
    ProfileUpdate,
    ResetPasswordIn,
    UserCreate,
    UserOut,
    UserUpdate,
    VerifyCodeIn,
)
from tsoam.services import auth as svc
from tsoam.services.access import permissions_for, restrictions_for

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/bootstrap", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def bootstrap(payload: UserCreate, db: Session = Depends(get_db)):
    """Create the first admin account on an empty database."""
    with http_errors(db):
        return svc.bootstrap_admin(db, payload)


@router.post("/login", response_model=LoginOut)
def login(payload: LoginIn, db: Session = Depends(get_db)):
    try:
        user, token = svc.authenticate(db, payload.email, payload.password)
    except svc.AuthenticationError as e:
        raise HTTPException(status_code=401, detail=str(e))
    except svc.InactiveAccountError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"access_token": token, "user": user, "permissions": permissions_for(user.role)}


@router.post("/logout")
def logout(user: User = Depends(get_current_user)):
    # Tokens are stateless; the client drops its copy.
    return {"success": True}


@router.get("/me", response_model=UserOut)
def me(user: User = Depends(get_current_user)):
    return user


@router.put("/me", response_model=UserOut)
def update_me(payload: ProfileUpdate, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return svc.update_profile(db, user, payload)


@router.get("/permissions")
def my_permissions(user: User = Depends(get_current_user)):
    return {
        "role": user.role,
        "permissions": permissions_for(user.role),
        "restrictions": restrictions_for(user.role),
    }


@router.post(
    "/register",
    response_model=UserOut,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_permission("can_access_users"))],
)
def register(payload: UserCreate, db: Session = Depends(get_db)):
    with http_errors(db):
        return svc.create_user(db, payload)


@router.get("/users", response_model=List[UserOut], dependencies=[Depends(require_permission("can_access_users"))])
def list_users(db: Session = Depends(get_db)):
    return svc.list_users(db)


@router.put("/users/{user_id}", response_model=UserOut, dependencies=[Depends(require_permission("can_access_users"))])
def update_user(user_id: uuid.UUID, payload: UserUpdate, db: Session = Depends(get_db)):
    with http_errors(db):
        return svc.update_user(db, user_id, payload)


@router.delete("/users/{user_id}", response_model=UserOut)
def delete_user(
    user_id: uuid.UUID,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("can_delete_data")),
):
    with http_errors(db):
        return svc.deactivate_user(db, user_id, user)


# ----------------------------- password reset ----------------------------- #

@router.post("/forgot-password")
def forgot_password(payload: ForgotPasswordIn, db: Session = Depends(get_db)):
    # Same answer whether or not the email exists. The code goes to the
    # user's inbox; demo deployments also echo it back.
    code = svc.start_password_reset(db, payload.email)
    body = {"success": True, "message": "If the email exists, a reset code has been sent"}
    settings = get_settings()
    if settings.reset_code_in_response or not settings.auth_enforce:
        body.update(demo=True, resetCode=code or svc.new_reset_code())
    return body


@router.post("/verify-reset-code")
def verify_reset_code(payload: VerifyCodeIn, db: Session = Depends(get_db)):
    with http_errors(db):
        svc.verify_reset_code(db, payload.email, payload.code)
    return {"success": True}


@router.post("/reset-password")
def reset_password(payload: ResetPasswordIn, db: Session = Depends(get_db)):
    with http_errors(db):
        svc.reset_password(db, payload.email, payload.code, payload.new_password)
    return {"success": True, "message": "Password has been reset"}
