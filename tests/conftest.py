from __future__ import annotations

import os
from decimal import Decimal

os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["BCRYPT_ROUNDS"] = "4"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.database import Base, get_db  # noqa: E402
from app.main import app  # noqa: E402
from app.models import Category, User, UserRole  # noqa: E402
from app.security import get_password_hash, issue_session  # noqa: E402
from app.services.inventory import InventoryService  # noqa: E402

PASSWORD = "secret123"


@pytest.fixture()
def db_session():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    TestingSessionLocal = sessionmaker(
        bind=engine, autoflush=False, autocommit=False, expire_on_commit=False
    )
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


def _make_user(db_session, username: str, *, is_active: bool = True, role=UserRole.STAFF) -> User:
    user = User(
        username=username,
        email=f"{username}@example.com",
        password_hash=get_password_hash(PASSWORD),
        full_name=username.title(),
        role=role,
        is_active=is_active,
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture()
def user(db_session):
    return _make_user(db_session, "alice")


@pytest.fixture()
def inactive_user(db_session):
    return _make_user(db_session, "bob", is_active=False)


@pytest.fixture()
def category(db_session):
    category = Category(name="Hardware", description="Tools and fixings")
    db_session.add(category)
    db_session.commit()
    return category


@pytest.fixture()
def service(db_session):
    return InventoryService(db_session)


@pytest.fixture()
def make_item(service, user, category):
    def _make(name="Widget", quantity=10, unit_price="2.50", **kwargs):
        return service.create_item(
            user,
            name=name,
            category_id=category.id,
            quantity=quantity,
            unit_price=Decimal(unit_price),
            **kwargs,
        )

    return _make


@pytest.fixture()
def client(db_session):
    app.dependency_overrides[get_db] = lambda: db_session
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def auth_headers(user):
    return {"Authorization": f"Bearer {issue_session(user)}"}
