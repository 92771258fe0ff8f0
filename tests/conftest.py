import os

from cryptography.fernet import Fernet

# Settings are read from the environment; set them before any app import
os.environ["ENV"] = "test"
os.environ.setdefault("CREDENTIAL_MASTER_KEY", Fernet.generate_key().decode())
os.environ.setdefault("AUTH_JWT_SECRET", "test-jwt-secret-with-enough-length-123")
os.environ.setdefault("INTERNAL_API_TOKEN", "internal-test-token")
os.environ.setdefault("PUBLIC_BASE_URL", "https://inbox.example.com")
os.environ.setdefault("CELERY_BROKER_URL", "memory://")

from unittest.mock import patch  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

import app.models  # noqa: E402,F401
from app.db import Base, get_db  # noqa: E402
from app.tasks.routing_task import analyze_message_routing_task  # noqa: E402

pytest_plugins = [
    "tests.fixtures.auth_fixtures",
    "tests.fixtures.inbox_fixtures",
]


@pytest.fixture(scope="function")
def db():
    """SQLite in-memory database with the full schema, one per test."""
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    TestingSession = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture(autouse=True)
def routing_delay():
    """Routing is enqueued after ingestion; capture it instead of hitting a broker."""
    with patch.object(analyze_message_routing_task, "delay") as mock_delay:
        yield mock_delay


@pytest.fixture
def client(db):
    """Client with db override."""
    from app.main import create_app

    app = create_app(testing=True)

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
