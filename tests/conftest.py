"""
Test configuration for the referral tracker backend.
"""
import os
import tempfile

# Settings are read at import time; point them at throwaway resources first
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("STORAGE_BACKEND", "local")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="referral-uploads-"))

from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from src.auth.models import User, UserRole
from src.core.security import create_access_token, hash_password, user_claims
from src.core.storage import LocalFileStorage, get_storage
from src.database import Base, get_db
from src.directory.models import PracticeLocation, ReferringDoctor, ReferringPractice
from src.main import app
from src.referrals.models import Referral, ReferralStatus

TEST_PASSWORD = "secret123"

# In-memory database shared by every connection of the test engine
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

# Create test session factory
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db():
    """
    Create a fresh database for each test.
    """
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def storage(tmp_path):
    """Local file storage rooted in a per-test directory."""
    return LocalFileStorage(str(tmp_path), "/uploads")


@pytest.fixture(scope="function")
def client(db, storage):
    """
    Create a test client with the test database session and storage.
    """
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: storage

    with TestClient(app) as client:
        yield client

    app.dependency_overrides = {}


def _make_user(db, email, role, full_name):
    user = User(
        email=email,
        full_name=full_name,
        password_hash=hash_password(TEST_PASSWORD),
        role=role,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def auth_headers(user):
    token = create_access_token(user_claims(user))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def staff_user(db):
    return _make_user(db, "staff@example.com", UserRole.STAFF, "Sam Staff")


@pytest.fixture
def admin_user(db):
    return _make_user(db, "admin@example.com", UserRole.ADMIN, "Ada Admin")


@pytest.fixture
def staff_headers(staff_user):
    return auth_headers(staff_user)


@pytest.fixture
def admin_headers(admin_user):
    return auth_headers(admin_user)


class Factory:
    """Builds directory and referral rows straight through the session."""

    def __init__(self, db):
        self.db = db

    def _save(self, obj):
        self.db.add(obj)
        self.db.commit()
        self.db.refresh(obj)
        return obj

    def practice(self, name="Northside Family Medicine", **fields):
        return self._save(ReferringPractice(name=name, **fields))

    def location(self, practice, name="Main Street", **fields):
        return self._save(PracticeLocation(name=name, practice_id=practice.id, **fields))

    def doctor(self, practice, name="Jane Smith", locations=(), **fields):
        doctor = ReferringDoctor(name=name, practice_id=practice.id, **fields)
        doctor.locations = list(locations)
        return self._save(doctor)

    def referral(self, first="Pat", last="Jones", referral_date=None, **fields):
        fields.setdefault("status", ReferralStatus.NEW)
        referral = Referral(
            patient_first_name=first,
            patient_last_name=last,
            referral_date=referral_date or datetime(2024, 3, 15, 10, 0),
            **fields
        )
        return self._save(referral)


@pytest.fixture
def factory(db):
    return Factory(db)
