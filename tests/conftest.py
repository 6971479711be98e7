"""
Pytest fixtures for testing
"""
import pytest
from sqlalchemy import create_engine, JSON
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from sqlalchemy.dialects.postgresql import JSONB

from app.infrastructure.db.session import Base
import app.infrastructure.db.models  # noqa: F401  (registers tables)
from app.application.accounts import provision_account
from app.domain.role import Role


@pytest.fixture
def db_engine():
    """Create in-memory SQLite engine for tests, with JSONB→JSON mapping."""
    # StaticPool: one connection shared by TestClient's worker threads
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Monkey-patch JSONB columns to JSON for SQLite compatibility
    for table in Base.metadata.tables.values():
        for col in table.columns:
            if isinstance(col.type, JSONB):
                col.type = JSON()
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine) -> Session:
    """Create database session for tests"""
    SessionLocal = sessionmaker(bind=db_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def make_account(db_session):
    """Factory: identity + profile + role, committed"""
    def _make(
        phone="+996555000111",
        password="secret123",
        full_name="Айбек Мамытов",
        pvz_location="nariman",
        client_code=None,
        telegram_id=None,
        role=Role.USER,
    ):
        user, profile = provision_account(
            db_session,
            phone=phone,
            password=password,
            full_name=full_name,
            pvz_location=pvz_location,
            client_code=client_code,
            telegram_id=telegram_id,
            role=role,
        )
        db_session.commit()
        return user, profile
    return _make


@pytest.fixture
def admin_account(make_account):
    return make_account(
        phone="+996700900900",
        full_name="Админ Админов",
        client_code="+996700900900",
        role=Role.ADMIN,
    )


@pytest.fixture
def client(db_session):
    """Test client для FastAPI; все запросы идут в db_session"""
    from fastapi.testclient import TestClient

    from app.api.deps import get_db
    from app.main import app

    def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def login(client):
    """Log the client in by phone/password"""
    def _login(phone, password="secret123"):
        response = client.post("/auth/login", json={"phone": phone, "password": password})
        assert response.status_code == 200, response.text
        return response.json()
    return _login
