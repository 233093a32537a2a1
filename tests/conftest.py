import os

# Required settings must exist before app modules are imported
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret")

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from app.db.base import Base
from app.db.session import get_db
from app.main import app
from app.core.config import settings
from app.routers.chat import get_chat_orchestrator
from app.services import gemini_client
from app.services.chat_orchestrator import ChatOrchestrator
from app.services.response_cache import ResponseCache
import app.models as _models  # noqa: F401  register models on Base.metadata


# Use SQLite file database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False}
)


@event.listens_for(engine, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enforce foreign keys (ON DELETE CASCADE) in SQLite."""
    dbapi_conn.execute("PRAGMA foreign_keys=ON")


TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(autouse=True)
def reset_gemini_cooldowns():
    """Quota cooldowns are module-level; never leak them between tests."""
    gemini_client.reset_cooldowns()
    yield
    gemini_client.reset_cooldowns()


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def chat_orchestrator():
    """Orchestrator with an empty cache, isolated from the app-wide one."""
    return ChatOrchestrator(cache=ResponseCache())


@pytest.fixture(scope="function")
def client(db_session, chat_orchestrator):
    """Create a test client with database and orchestrator dependency overrides."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_chat_orchestrator] = lambda: chat_orchestrator
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


@pytest.fixture
def gemini_configured(monkeypatch):
    """Pretend GEMINI_API_KEY is set (calls themselves are patched per test)."""
    monkeypatch.setattr(settings, "gemini_api_key", "test-gemini-key")


@pytest.fixture
def directory_unconfigured(monkeypatch):
    """No YELP_AI_API_KEY: the business directory serves fallback data."""
    monkeypatch.setattr(settings, "yelp_ai_api_key", None)


@pytest.fixture
def register_user(client):
    """Fixture that registers a user and returns (token, user json)."""
    def _register(name="Test User", email="test@example.com", password="s3cret-pass"):
        resp = client.post(
            "/api/auth/register",
            json={"name": name, "email": email, "password": password},
        )
        assert resp.status_code == 201, resp.text
        data = resp.json()
        return data["token"], data["user"]
    return _register
