# tests/conftest.py
import pytest
import uuid

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from stevi.main import app
from stevi.db.database import Base, get_db
from stevi.auth.access import get_access_context, resolve_access
from stevi.auth.permissions import GLOBAL_ADMIN_ROLE

# Import models so metadata knows about all tables
import stevi.models  # noqa: F401
from stevi.models.organization import Organization
from stevi.models.org_role import UserOrgRole
from stevi.models.profile import Profile, UserGlobalRole
from stevi.services.backend_procedures import ensure_org_roles


@pytest.fixture(scope="session")
def engine():
    """In-memory SQLite database shared across tests (one connection)."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)


@pytest.fixture(autouse=True)
def clean_db(engine):
    """Reset all tables before each test."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)


@pytest.fixture()
def db(engine):
    """Return a new SQLAlchemy session for each test."""
    TestingSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=engine,
    )
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_org(db):
    """Create an organization with its default org roles."""
    def _make_org(name="Harbour Outreach", **fields):
        fields.setdefault("status", "active")
        fields.setdefault("is_active", True)
        organization = Organization(name=name, **fields)
        db.add(organization)
        db.flush()
        ensure_org_roles(db, organization.id)
        db.commit()
        db.refresh(organization)
        return organization
    return _make_org


@pytest.fixture
def make_profile(db):
    """Create a profile, optionally attached to an org with org roles or global roles."""
    def _make_profile(
        organization=None,
        org_roles=(),
        global_roles=(),
        affiliation_status="approved",
        user_id=None,
        display_name=None,
    ):
        profile = Profile(
            user_id=user_id or f"user_{uuid.uuid4().hex[:8]}",
            display_name=display_name,
            organization_id=organization.id if organization else None,
            affiliation_status=affiliation_status,
        )
        db.add(profile)
        db.flush()

        if organization is not None and org_roles:
            roles = ensure_org_roles(db, organization.id)
            for role_name in org_roles:
                db.add(UserOrgRole(
                    profile_id=profile.id,
                    organization_id=organization.id,
                    org_role_id=roles[role_name].id,
                ))
        for role_name in global_roles:
            db.add(UserGlobalRole(profile_id=profile.id, role_name=role_name))

        db.commit()
        db.refresh(profile)
        return profile
    return _make_profile


@pytest.fixture
def access_for(db):
    """Build the AccessContext a request from this profile would get."""
    def _access_for(profile):
        return resolve_access(db, profile.user_id)
    return _access_for


@pytest.fixture
def global_admin(make_profile, access_for):
    return access_for(make_profile(global_roles=(GLOBAL_ADMIN_ROLE,), display_name="Global Admin"))


class ActorOverride:
    """Mutable holder the client fixture reads the current AccessContext from."""

    def __init__(self):
        self.access = None

    def act_as(self, access):
        self.access = access


@pytest.fixture
def actor():
    return ActorOverride()


@pytest.fixture
def client(db, actor):
    """FastAPI test client with the DB session and caller identity overridden."""
    def override_get_db():
        try:
            yield db
        finally:
            pass

    async def override_get_access_context():
        return actor.access

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_access_context] = override_get_access_context

    test_client = TestClient(app)
    try:
        yield test_client
    finally:
        app.dependency_overrides.clear()
