"""
DevCamper API — Test Configuration (conftest.py)
=================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Every test gets a fresh in-memory SQLite database (aiosqlite +
       StaticPool, so all sessions share one connection). The app's session
       dependency is overridden to use it; geocoding is replaced by a fake.

Fixture Hierarchy:
    engine ─┬─ session_factory ─┬─ db_session      (service-level tests)
            │                   └─ test_client     (HTTPX AsyncClient → app)
            └─ make_user                           (user row + auth headers)
    fake_geocoder                                  (no network)
"""

import os
import tempfile

# Override settings for testing BEFORE any devcamper imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["JWT_SECRET"] = "test-secret-not-real"
os.environ["GEOCODER_API_KEY"] = "test-key-not-real"
os.environ["FILE_UPLOAD_PATH"] = tempfile.mkdtemp(prefix="devcamper_test_")
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["RATE_LIMIT_REQUESTS"] = "100000"
os.environ["RETRY_MIN_WAIT"] = "0"
os.environ["RETRY_JITTER"] = "0"
os.environ["CB_FAILURE_THRESHOLD"] = "3"
os.environ["CB_RECOVERY_TIMEOUT"] = "60"

from typing import Dict, Optional  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import event  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from devcamper.database import Base, get_db_session  # noqa: E402
from devcamper.exceptions import ValidationError  # noqa: E402
from devcamper.models import User  # noqa: E402
from devcamper.security import create_access_token, hash_password  # noqa: E402
from devcamper.services.bootcamp_service import bootcamp_service  # noqa: E402
from devcamper.services.geocoder_base import GeoLocation, Geocoder  # noqa: E402


# ══════════════════════════════════════════════════════════════════════════
# Database
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    # SQLite ignores ON DELETE CASCADE unless foreign keys are switched on
    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    """
    A session for calling services directly.

    Usage:
        async def test_average(db_session, make_user):
            await course_service.refresh_average_cost(db_session, bootcamp.id)
    """
    async with session_factory() as session:
        yield session


# ══════════════════════════════════════════════════════════════════════════
# Users & tokens
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def make_user(session_factory):
    """
    Factory: insert a user and return (user, Authorization headers).

    Usage:
        admin, admin_headers = await make_user("admin")
    """
    counter = {"n": 0}

    async def _make(role: str = "user", email: Optional[str] = None, password: str = "123456"):
        counter["n"] += 1
        async with session_factory() as session:
            user = User(
                name=f"{role.title()} {counter['n']}",
                email=email or f"{role}{counter['n']}@example.com",
                role=role,
                password_hash=hash_password(password),
            )
            session.add(user)
            await session.commit()
        headers: Dict[str, str] = {"Authorization": f"Bearer {create_access_token(user.id)}"}
        return user, headers

    return _make


# ══════════════════════════════════════════════════════════════════════════
# Geocoding
# ══════════════════════════════════════════════════════════════════════════

LOCATIONS = {
    "02215": GeoLocation(
        latitude=42.35919, longitude=-71.05802,
        formatted_address="233 Bay State Rd, Boston, MA 02215, US",
        street="233 Bay State Rd", city="Boston", state="MA", zipcode="02215", country="US",
    ),
    "01854": GeoLocation(
        latitude=42.66288, longitude=-71.14343,
        formatted_address="220 Pawtucket St, Lowell, MA 01854, US",
        street="220 Pawtucket St", city="Lowell", state="MA", zipcode="01854", country="US",
    ),
    "05405": GeoLocation(
        latitude=44.47642, longitude=-73.21225,
        formatted_address="85 S Prospect St, Burlington, VT 05405, US",
        street="85 S Prospect St", city="Burlington", state="VT", zipcode="05405", country="US",
    ),
}


class FakeGeocoder(Geocoder):
    """Resolves any address ending in a known zipcode; everything else is unknown."""

    def __init__(self):
        self.calls = []

    async def geocode(self, address: str) -> GeoLocation:
        self.calls.append(address)
        for zipcode, location in LOCATIONS.items():
            if address.strip().endswith(zipcode):
                return location
        raise ValidationError(message=f"Could not geocode address '{address}'", field="address")

    async def health_check(self) -> bool:
        return True


@pytest.fixture
def fake_geocoder(monkeypatch):
    fake = FakeGeocoder()
    monkeypatch.setattr(bootcamp_service, "geocoder", fake)
    return fake


# ══════════════════════════════════════════════════════════════════════════
# HTTP client
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def test_client(session_factory, fake_geocoder):
    """
    HTTPX AsyncClient talking to the app through ASGITransport.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from devcamper.main import app

    async def _override_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = _override_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def sample_image_bytes():
    """Minimal JPEG: SOI + JFIF header + EOI. Not a real photograph."""
    return (
        b'\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00'
        b'\xff\xd9'
    )


@pytest.fixture
def bootcamp_payload():
    return {
        "name": "Devworks Bootcamp",
        "description": "Full stack JavaScript bootcamp in Boston",
        "website": "https://devworks.com",
        "phone": "(111) 111-1111",
        "email": "enroll@devworks.com",
        "address": "233 Bay State Rd Boston MA 02215",
        "careers": ["Web Development", "UI/UX", "Business"],
        "housing": True,
        "job_assistance": True,
        "job_guarantee": False,
        "accept_gi": True,
    }


@pytest.fixture
def course_payload():
    return {
        "title": "Front End Web Development",
        "description": "HTML, CSS and JavaScript essentials",
        "weeks": 8,
        "tuition": 8000,
        "minimum_skill": "beginner",
        "scholarship_available": True,
    }
