# tests/conftest.py
import os

# Must be set before tsoam is imported (settings are cached).
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["AUTH_ENFORCE"] = "true"
os.environ["DEMO_FALLBACK"] = "true"
os.environ.setdefault("JWT_SECRET", "tsoam-test-secret-0123456789abcdef0123456789")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import tsoam.models  # noqa: F401
from tsoam.db import Base, get_db
from tsoam.main import app
from tsoam.models.users import User
from tsoam.security import hash_password
from tsoam.services.auth import token_for
from tsoam.services.homecell_hierarchy import hierarchy

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def _override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = _override_get_db


@pytest.fixture(autouse=True)
def _schema():
    Base.metadata.create_all(bind=engine)
    hierarchy.invalidate()
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


def make_user(db, role="user", email=None, password="password123", **extra) -> User:
    fields = {
        "email": email or f"{role}@tsoam.test",
        "full_name": f"{role.title()} Tester",
        "password_hash": hash_password(password),
        "role": role,
        "is_active": True,
    }
    fields.update(extra)
    user = User(**fields)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {token_for(user)}"}


@pytest.fixture
def admin(db):
    return auth_headers(make_user(db, "admin"))


@pytest.fixture
def pastor(db):
    return auth_headers(make_user(db, "pastor"))


@pytest.fixture
def hr(db):
    return auth_headers(make_user(db, "hr"))


@pytest.fixture
def finance(db):
    return auth_headers(make_user(db, "finance"))


@pytest.fixture
def member_user(db):
    return auth_headers(make_user(db, "user"))
