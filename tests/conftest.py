"""Root-level pytest fixtures for all tests.

Provides shared fixtures:
- In-memory SQLite session
- Deterministic credential key and session secret
- Rate limiter / generated-secret resets between tests
"""

import base64
import os
import tempfile
from collections.abc import Generator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

TEST_CREDENTIAL_KEY = base64.b64encode(b"k" * 32).decode("ascii")
TEST_SESSION_SECRET = "test-session-secret-with-at-least-32-characters"


def pytest_configure(config):
    """Register custom markers and point the app at throwaway storage.

    DATABASE_URL must be set before chatrelay.db.connection is imported,
    since the module-level engine is built from it.
    """
    config.addinivalue_line(
        "markers", "integration: marks tests requiring external services"
    )
    if not os.environ.get("DATABASE_URL"):
        db_dir = tempfile.mkdtemp(prefix="chatrelay-tests-")
        os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(db_dir, 'app.db')}"
    os.environ["CHATRELAY_CREDENTIAL_KEY"] = TEST_CREDENTIAL_KEY
    os.environ["CHATRELAY_SESSION_SECRET"] = TEST_SESSION_SECRET
    os.environ["CHATRELAY_SEED_DEMO_USER"] = "false"


@pytest.fixture(autouse=True)
def _reset_process_state() -> Generator[None, None, None]:
    """Clear module-level auth state so tests stay independent."""
    from chatrelay.api.middleware.auth import reset_rate_limiter
    from chatrelay.services.session_tokens import reset_generated_secret

    reset_rate_limiter()
    reset_generated_secret()
    yield
    reset_rate_limiter()
    reset_generated_secret()


@pytest.fixture
def test_db() -> Generator[Session, None, None]:
    """Create an in-memory SQLite database for testing.

    Creates all tables, yields a session, and cleans up after test.
    """
    from chatrelay.db.models import Base

    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()
