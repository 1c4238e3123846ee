# tsoam/services/auth.py
"""
Users, login, password resets and account requests.

Raises:
- ValueError       validation problems (400)
- PermissionError  bad credentials / inactive account (mapped by the router)
- LookupError      unknown user or request (404)
"""

from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from tsoam.models.users import AccountRequest, PasswordReset, User
from tsoam.schemas.auth import AccountRequestCreate, ProfileUpdate, UserCreate, UserUpdate
from tsoam.security import create_access_token, generate_temporary_password, hash_password, verify_password
from tsoam.services import messages, system_logs
from tsoam.services.access import normalize_role, permissions_for

logger = logging.getLogger(__name__)

RESET_CODE_TTL = timedelta(minutes=15)


class AuthenticationError(PermissionError):
    """Wrong email/password. Mapped to 401."""


class InactiveAccountError(PermissionError):
    """Account exists but is deactivated. Mapped to 403."""


def _utc(dt: datetime) -> datetime:
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def _by_email(db: Session, email: str) -> Optional[User]:
    return db.execute(select(User).where(User.email == email.strip().lower())).scalars().first()


def token_for(user: User) -> str:
    return create_access_token(
        {
            "sub": str(user.id),
            "email": user.email,
            "fullName": user.full_name or user.email,
            "role": user.role,
            "permissions": permissions_for(user.role),
        }
    )


# ------------------------------- users ------------------------------- #

def create_user(db: Session, data: UserCreate, *, commit: bool = True) -> User:
    if _by_email(db, data.email):
        raise ValueError(f"User with email {data.email} already exists")
    payload = data.model_dump(exclude={"password"})
    user = User(**payload, password_hash=hash_password(data.password), is_active=True)
    if user.role == "admin":
        user.can_create_accounts = True
        user.can_delete_accounts = True
    db.add(user)
    if commit:
        db.commit()
        db.refresh(user)
    logger.info("user created email=%s role=%s", user.email, user.role)
    return user


def bootstrap_admin(db: Session, data: UserCreate) -> User:
    """Create the very first account as admin. Refused once any user exists."""
    count = db.execute(select(func.count(User.id))).scalar_one()
    if count:
        raise FileExistsError("Users already exist; bootstrap is disabled")
    data = data.model_copy(update={"role": "admin"})
    user = create_user(db, data, commit=False)
    system_logs.record(db, action="Bootstrap admin", module="Auth", user=user, severity="Security")
    db.commit()
    db.refresh(user)
    return user


def authenticate(db: Session, email: Optional[str], password: Optional[str]) -> Tuple[User, str]:
    if not email or not password:
        raise ValueError("Email and password are required")
    user = _by_email(db, email)
    if user is None or not verify_password(password, user.password_hash):
        logger.warning("failed login email=%s", email)
        raise AuthenticationError("Invalid email or password")
    if not user.is_active:
        raise InactiveAccountError("User account is inactive")

    user.last_login = datetime.now(timezone.utc)
    if not user.full_name:
        user.full_name = user.email
    system_logs.record(db, action="User login", module="Auth", user=user, severity="Security")
    db.commit()
    db.refresh(user)
    logger.info("login ok email=%s role=%s", user.email, user.role)
    return user, token_for(user)


def list_users(db: Session) -> List[User]:
    return list(db.execute(select(User).order_by(User.full_name)).scalars().all())


def get_user(db: Session, user_id) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise LookupError("User not found")
    return user


def update_user(db: Session, user_id, data: UserUpdate) -> User:
    user = get_user(db, user_id)
    for k, v in data.model_dump(exclude_unset=True).items():
        setattr(user, k, v)
    db.commit()
    db.refresh(user)
    return user


def update_profile(db: Session, user: User, data: ProfileUpdate) -> User:
    for k, v in data.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(user, k, v)
    db.commit()
    db.refresh(user)
    return user


def deactivate_user(db: Session, user_id, acting: User) -> User:
    if str(user_id) == str(acting.id):
        raise ValueError("You cannot delete your own account")
    user = get_user(db, user_id)
    user.is_active = False
    system_logs.record(
        db, action="Deactivate user", module="Auth", user=acting, entity_type="user", entity_id=user.id, severity="Security"
    )
    db.commit()
    db.refresh(user)
    return user


# --------------------------- password reset --------------------------- #

def new_reset_code() -> str:
    return f"{secrets.randbelow(1_000_000):06d}"


def start_password_reset(db: Session, email: str) -> Optional[str]:
    """Issue a 6-digit code and deliver it to the user's inbox. Returns None when the email is unknown."""
    user = _by_email(db, email)
    if user is None or not user.is_active:
        logger.info("password reset requested for unknown email=%s", email)
        return None
    code = new_reset_code()
    db.add(PasswordReset(user_id=user.id, code=code, expires_at=datetime.now(timezone.utc) + RESET_CODE_TTL))
    messages.notify(
        db,
        [user.id],
        "Password reset code",
        f"Your password reset code is {code}. It expires in {int(RESET_CODE_TTL.total_seconds() // 60)} minutes.",
    )
    db.commit()
    logger.info("password reset code issued user=%s", user.email)
    return code


def _valid_reset(db: Session, email: str, code: str) -> PasswordReset:
    user = _by_email(db, email)
    if user is None:
        raise ValueError("Invalid or expired code")
    reset = (
        db.execute(
            select(PasswordReset)
            .where(PasswordReset.user_id == user.id, PasswordReset.code == code, PasswordReset.used.is_(False))
            .order_by(PasswordReset.created_at.desc())
        )
        .scalars()
        .first()
    )
    if reset is None or _utc(reset.expires_at) < datetime.now(timezone.utc):
        raise ValueError("Invalid or expired code")
    return reset


def verify_reset_code(db: Session, email: str, code: str) -> bool:
    _valid_reset(db, email, code)
    return True


def reset_password(db: Session, email: str, code: str, new_password: str) -> User:
    reset = _valid_reset(db, email, code)
    reset.used = True
    reset.user.password_hash = hash_password(new_password)
    system_logs.record(db, action="Password reset", module="Auth", user=reset.user, severity="Security")
    db.commit()
    return reset.user


# --------------------------- account requests --------------------------- #

def create_account_request(db: Session, data: AccountRequestCreate) -> AccountRequest:
    email = data.email.strip().lower()
    if _by_email(db, email):
        raise FileExistsError("An account with this email already exists")
    pending = db.execute(
        select(AccountRequest).where(AccountRequest.email == email, AccountRequest.status == "pending")
    ).scalars().first()
    if pending:
        raise FileExistsError("A pending request for this email already exists")
    req = AccountRequest(**data.model_dump(exclude={"email"}), email=email, status="pending")
    db.add(req)
    db.commit()
    db.refresh(req)
    return req


def list_account_requests(db: Session, status: Optional[str] = None) -> List[AccountRequest]:
    stmt = select(AccountRequest).order_by(AccountRequest.requested_at.desc())
    if status:
        stmt = stmt.where(AccountRequest.status == status)
    return list(db.execute(stmt).scalars().all())


def _pending_request(db: Session, request_id) -> AccountRequest:
    req = db.get(AccountRequest, request_id)
    if req is None:
        raise LookupError("Account request not found")
    if req.status != "pending":
        raise ValueError(f"Account request already {req.status}")
    return req


def approve_account_request(db: Session, request_id, reviewer: User, admin_notes: Optional[str] = None) -> Dict[str, Any]:
    req = _pending_request(db, request_id)
    temp_password = generate_temporary_password()
    user = create_user(
        db,
        UserCreate(
            email=req.email,
            full_name=req.full_name,
            phone=req.phone,
            role=normalize_role(req.role),
            department=req.department,
            password=temp_password,
        ),
        commit=False,
    )
    req.status = "approved"
    req.reviewed_at = datetime.now(timezone.utc)
    req.reviewed_by = reviewer.id
    req.admin_notes = admin_notes
    system_logs.record(
        db, action="Approve account request", module="Auth", user=reviewer, entity_type="account_request",
        entity_id=req.id, severity="Security", details={"email": req.email, "role": req.role},
    )
    db.commit()
    db.refresh(req)
    db.refresh(user)
    return {"request": req, "user": user, "temporary_password": temp_password}


def reject_account_request(db: Session, request_id, reviewer: User, reason: Optional[str]) -> AccountRequest:
    req = _pending_request(db, request_id)
    req.status = "rejected"
    req.reviewed_at = datetime.now(timezone.utc)
    req.reviewed_by = reviewer.id
    req.rejection_reason = reason
    db.commit()
    db.refresh(req)
    return req
