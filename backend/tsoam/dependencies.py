"""
Shared FastAPI dependency helpers.

- `get_current_user` resolves the caller from a ``Bearer`` JWT.
- `require_permission(flag)` enforces a role permission flag.
- `http_errors()` maps service exceptions onto HTTP status codes.

With AUTH_ENFORCE=false every request runs as a dev admin principal and no
token is needed. If the user lookup itself fails and DEMO_FALLBACK is on, the
principal is rebuilt from the verified token claims so read endpoints can
still serve their fixtures; without the fallback the request gets a 503.
"""

from __future__ import annotations

import logging
import uuid
from contextlib import contextmanager
from typing import Callable, Iterator, Optional

import jwt
from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from tsoam.config import get_settings
from tsoam.db import get_db
from tsoam.models.users import User
from tsoam.security import decode_access_token
from tsoam.services.access import has_permission, normalize_role

logger = logging.getLogger(__name__)

DEV_USER_ID = uuid.UUID("00000000-0000-0000-0000-000000000000")


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _principal_from_claims(user_id: uuid.UUID, claims: dict) -> User:
    """Transient, unsaved user built from a verified token."""
    email = claims.get("email") or ""
    return User(
        id=user_id,
        email=email,
        full_name=claims.get("fullName") or email,
        password_hash="",
        role=normalize_role(claims.get("role")),
        is_active=True,
    )


def get_current_user(
    db: Session = Depends(get_db),
    authorization: Optional[str] = Header(default=None),
) -> User:
    if not get_settings().auth_enforce:
        return User(
            id=DEV_USER_ID,
            email="dev@local",
            full_name="Dev",
            password_hash="",
            role="admin",
            is_active=True,
        )

    if not authorization or not authorization.lower().startswith("bearer "):
        raise _unauthorized("Access token required")
    token = authorization.split(" ", 1)[1].strip()

    try:
        claims = decode_access_token(token)
    except jwt.ExpiredSignatureError:
        raise _unauthorized("Token expired")
    except jwt.InvalidTokenError:
        raise _unauthorized("Invalid token")

    try:
        user_id = uuid.UUID(str(claims.get("sub")))
    except ValueError:
        raise _unauthorized("Invalid token")

    try:
        user = db.get(User, user_id)
    except SQLAlchemyError:
        db.rollback()
        if not get_settings().demo_fallback:
            logger.exception("user lookup failed; database unavailable")
            raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Database unavailable")
        logger.warning("user lookup failed; using token claims for %s", claims.get("email"))
        return _principal_from_claims(user_id, claims)

    if user is None or not user.is_active:
        raise _unauthorized("User not found or inactive")
    return user


def require_permission(flag: str) -> Callable[..., User]:
    """Dependency factory enforcing one role permission flag."""
    def _inner(user: User = Depends(get_current_user)) -> User:
        if not has_permission(user.role, flag):
            logger.info("permission denied user=%s role=%s flag=%s", user.email, user.role, flag)
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=f"Missing permission: {flag}")
        return user
    return _inner


@contextmanager
def http_errors(db: Optional[Session] = None) -> Iterator[None]:
    """Translate service-layer exceptions raised inside the block."""
    try:
        yield
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except PermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except FileExistsError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except IntegrityError as e:
        if db is not None:
            db.rollback()
        logger.debug("integrity error", exc_info=True)
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"Conflict: {e.orig}")
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
