"""Pytest fixtures for API tests.

Provides a TestClient bound to the in-memory test database and helpers
for attaching a signed session to requests.
"""

from collections.abc import Callable, Generator

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from chatrelay.api.deps import get_dispatch_engine
from chatrelay.api.main import app
from chatrelay.db.connection import get_db
from chatrelay.services.account_service import SessionUser
from chatrelay.services.dispatch_engine import DispatchEngine
from chatrelay.services.session_tokens import issue_token

ALICE = SessionUser(id="alice", name="Alice", email="alice@example.com")
BOB = SessionUser(id="bob", name=None, email="bob@example.com")


@pytest.fixture
def client(test_db: Session) -> Generator[TestClient, None, None]:
    """Create a TestClient with overridden database dependency.

    Args:
        test_db: Test database session fixture.

    Yields:
        TestClient configured for testing.
    """

    def override_get_db():
        try:
            yield test_db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def sign_in_as(client: TestClient) -> Callable[[SessionUser], TestClient]:
    """Attach a signed session token for the given user to the client."""

    def _sign_in(user: SessionUser) -> TestClient:
        client.headers["Authorization"] = f"Bearer {issue_token(user)}"
        return client

    return _sign_in


@pytest.fixture
def alice_client(sign_in_as) -> TestClient:
    return sign_in_as(ALICE)


@pytest.fixture
def mock_provider(test_db: Session):
    """Route provider HTTP calls through an httpx.MockTransport.

    Returns a setter taking a request handler; requests seen by the
    transport are collected in the returned list.
    """
    seen: list[httpx.Request] = []

    def _install(handler: Callable[[httpx.Request], httpx.Response]) -> list[httpx.Request]:
        def _record(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return handler(request)

        transport = httpx.MockTransport(_record)
        app.dependency_overrides[get_dispatch_engine] = lambda: DispatchEngine(
            test_db, adapter_factory=lambda cls: cls(transport=transport),
        )
        return seen

    return _install
