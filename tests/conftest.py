"""
Shared fixtures: an in-memory SQLite database, the app wired to it, and
bearer-token headers for each role.
"""
from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from assettag.db import Base, get_db
from assettag.main import create_app
from assettag.auth.security import create_access_token, get_password_hash
from assettag.models.models import Equipment, Maintenance, User
from assettag.services.maintenance_mode import clear_maintenance_mode_cache
from assettag.services.permissions import role_defaults
from assettag.services.scheduling import utcnow


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def app(session_factory):
    clear_maintenance_mode_cache()
    application = create_app(session_factory=session_factory)

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    application.dependency_overrides[get_db] = override_get_db
    yield application
    clear_maintenance_mode_cache()


@pytest.fixture
def client(app):
    return TestClient(app)


def make_user(db, role="User", email=None, password="secret123", status="Active", name=None, permissions=None):
    user = User(
        name=name or f"{role} Person",
        email=email or f"{role.lower()}@example.com",
        password_hash=get_password_hash(password),
        role=role,
        status=status,
        permissions=permissions if permissions is not None else role_defaults(role),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token(str(user.id), user.role)}"}


def make_asset(db, asset_id="AST-001", name="Forklift", **kwargs):
    data = {"category": "Vehicle", "location": "Warehouse A", "status": "In Use", "currency": "NGN"}
    data.update(kwargs)
    asset = Equipment(asset_id=asset_id, name=name, **data)
    db.add(asset)
    db.commit()
    db.refresh(asset)
    return asset


def make_maintenance(db, asset_id="AST-001", asset_name="Forklift", days_from_now=0, **kwargs):
    when = kwargs.pop("scheduled_date", None) or utcnow() + timedelta(days=days_from_now)
    data = {
        "service_type": "Routine Maintenance",
        "technician": "Tech One",
        "cost": 0,
        "status": "Scheduled",
        "priority": "Medium",
    }
    data.update(kwargs)
    record = Maintenance(asset_id=asset_id, asset_name=asset_name, date=when, scheduled_date=when, **data)
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


@pytest.fixture
def admin(db):
    return make_user(db, role="Administrator", email="admin@example.com", name="Ada Admin")


@pytest.fixture
def regular_user(db):
    return make_user(db, role="User", email="user@example.com", name="Uma User")


@pytest.fixture
def viewer(db):
    return make_user(db, role="Viewer", email="viewer@example.com", name="Vic Viewer")


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture
def user_headers(regular_user):
    return auth_headers(regular_user)


@pytest.fixture
def viewer_headers(viewer):
    return auth_headers(viewer)
