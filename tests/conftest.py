"""
Shared pytest fixtures for all tests.

Every test gets a fresh in-memory SQLite database. API tests talk to the
real FastAPI app with get_db / get_settings overridden.
"""

import os

os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from clinic_api import rate_limiter  # noqa: E402
from clinic_api.auth import create_access_token  # noqa: E402
from clinic_api.config import Settings, get_settings  # noqa: E402
from clinic_api.database import Base, get_db  # noqa: E402
from clinic_api.domain.scheduling.service import BookingService  # noqa: E402
from clinic_api.main import app  # noqa: E402
from clinic_api.models import Client, Doctor  # noqa: E402


# ============================================================================
# SETTINGS / DATABASE FIXTURES
# ============================================================================


@pytest.fixture
def settings() -> Settings:
    return Settings(
        database_url="sqlite://",
        jwt_secret="test-secret",
        rate_limit_enabled=False,
        log_slow_queries=False,
    )


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(autouse=True)
def reset_rate_limits():
    rate_limiter.memory_cache.clear()
    yield
    rate_limiter.memory_cache.clear()


# ============================================================================
# DOMAIN FIXTURES
# ============================================================================


@pytest.fixture
def doctor(db) -> Doctor:
    doc = Doctor(name="Dra. Gómez", specialty="Cardiología", work_start="09:00", work_end="17:00")
    db.add(doc)
    db.commit()
    db.refresh(doc)
    return doc


@pytest.fixture
def other_doctor(db) -> Doctor:
    doc = Doctor(name="Dr. Pérez", specialty="Clínica", work_start="08:00", work_end="14:00")
    db.add(doc)
    db.commit()
    db.refresh(doc)
    return doc


@pytest.fixture
def client_record(db) -> Client:
    client = Client(name="Juan Torres", phone="1155550000", national_id="30111222")
    db.add(client)
    db.commit()
    db.refresh(client)
    return client


@pytest.fixture
def booking_service(db, settings) -> BookingService:
    return BookingService(db, settings)


# ============================================================================
# API FIXTURES
# ============================================================================


@pytest.fixture
def api(session_factory, settings):
    """TestClient bound to the per-test database"""

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: settings
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def staff_headers(settings) -> dict:
    token = create_access_token(7, "secretaria", "Ana", settings)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(settings) -> dict:
    token = create_access_token(1, "admin", "Admin Clinic", settings)
    return {"Authorization": f"Bearer {token}"}
