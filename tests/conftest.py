"""
Pytest configuration for the Haven admin tests.

The environment is pinned before anything from haven_admin is imported:
an in-memory SQLite database, a fixed session secret and no AWS
credentials, so uploads land in a throwaway local directory.
"""

import os
import tempfile

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SESSION_SECRET"] = "test-session-secret"
os.environ["ENVIRONMENT"] = "test"
os.environ["LOCAL_STORAGE_DIR"] = tempfile.mkdtemp(prefix="haven-storage-")
for _key in ("AWS_ACCESS_KEY_ID", "AWS_SECRET_ACCESS_KEY", "AWS_S3_BUCKET_NAME", "STORAGE_PUBLIC_BASE_URL"):
    os.environ.pop(_key, None)

import pytest
from fastapi.testclient import TestClient

from haven_admin.database import Base, SessionLocal, engine, get_db
from haven_admin.main import app
from haven_admin.models.profile import Profile, ProfileStatus, Role
from haven_admin.services.identity_service import IdentityProvider

TEST_PASSWORD = "correct-horse-battery"


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database for each test"""
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """Create test client with overridden database"""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_profile(db_session):
    """
    Factory for an account plus profile.

    Returns (profile, provider); the account's password is TEST_PASSWORD.
    """
    counter = {"n": 0}

    def _make(
        role=Role.STANDARD_USER.value,
        status=ProfileStatus.ACTIVE.value,
        full_name=None,
        specialty=None,
        is_super_admin=False,
        email=None,
    ):
        counter["n"] += 1
        provider = IdentityProvider(db_session)
        account = provider.sign_up(email or f"member{counter['n']}@haven-clinic.org", TEST_PASSWORD)
        profile = Profile(
            id=account.id,
            email=account.email,
            full_name=full_name if full_name is not None else f"Member {counter['n']}",
            role=role,
            specialty=specialty,
            status=status,
            is_super_admin=is_super_admin,
        )
        db_session.add(profile)
        db_session.commit()
        db_session.refresh(profile)
        return profile

    return _make


@pytest.fixture
def auth_headers(db_session):
    """Sign a profile in and return Bearer headers for it"""
    def _headers(profile):
        result = IdentityProvider(db_session).sign_in(profile.email, TEST_PASSWORD)
        return {"Authorization": f"Bearer {result.access_token}"}
    return _headers


@pytest.fixture
def therapist(make_profile):
    return make_profile(role=Role.THERAPIST.value, full_name="Dr. Amara Osei", specialty="Psychologist")


@pytest.fixture
def staff_admin(make_profile):
    return make_profile(role=Role.STAFF_ADMIN.value, full_name="Jordan Staff")


@pytest.fixture
def super_admin(make_profile):
    return make_profile(role=Role.SUPER_ADMIN.value, full_name="Platform Owner")


@pytest.fixture
def patient(make_profile):
    return make_profile(full_name="Sam Patient")
