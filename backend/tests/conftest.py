"""
Shared test fixtures and utilities.

This module provides common test infrastructure used across all test modules.
"""

import pytest
from fastapi.testclient import TestClient

from api.dependencies import ServiceContainer, reset_container
from modules.auth.passwords import PasswordHasher
from modules.auth.repository import InMemoryCredentialStore
from modules.auth.service import AuthService
from modules.auth.sessions import SessionManager
from modules.auth_events.service import AuthEventLog
from modules.ratelimit.service import RateLimiter
from modules.tokens.repository import InMemoryTokenStore
from modules.tokens.service import TokenIssuer
from shared.config import Settings


# Session signing secret (only for testing)
TEST_SESSION_SECRET = "test-secret-key-for-testing-only"

# Satisfies the password policy: 8+ chars, upper, lower, digit
TEST_PASSWORD = "Password123"

# 2023-11-14T22:13:20Z
START_MS = 1_700_000_000_000


class FakeClock:
    """Manually advanced clock returning epoch milliseconds."""

    def __init__(self, start: int = START_MS):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def test_settings() -> Settings:
    """Settings isolated from the developer's environment file."""
    return Settings(
        _env_file=None,
        environment="development",
        storage_backend="memory",
        session_secret=TEST_SESSION_SECRET,
        bcrypt_rounds=4,
    )


@pytest.fixture
def hasher() -> PasswordHasher:
    """Fast hasher; the minimum cost keeps the suite quick."""
    return PasswordHasher(rounds=4)


@pytest.fixture
def limiter(clock) -> RateLimiter:
    return RateLimiter(clock=clock)


@pytest.fixture
def event_log(clock) -> AuthEventLog:
    return AuthEventLog(clock=clock)


@pytest.fixture
def token_store() -> InMemoryTokenStore:
    return InMemoryTokenStore()


@pytest.fixture
def token_issuer(token_store, clock) -> TokenIssuer:
    return TokenIssuer(token_store, clock=clock)


@pytest.fixture
def credential_store() -> InMemoryCredentialStore:
    return InMemoryCredentialStore()


@pytest.fixture
def auth_service(credential_store, token_issuer, limiter, event_log, hasher, clock) -> AuthService:
    """AuthService wired to in-memory collaborators and the fake clock."""
    return AuthService(
        credentials=credential_store,
        tokens=token_issuer,
        limiter=limiter,
        events=event_log,
        hasher=hasher,
        clock=clock,
    )


@pytest.fixture
def session_manager(clock) -> SessionManager:
    return SessionManager(secret=TEST_SESSION_SECRET, clock=clock)


@pytest.fixture
def container(test_settings, clock):
    """Fresh service container installed as the process-wide one."""
    container = ServiceContainer(settings=test_settings, clock=clock)
    reset_container(container)
    yield container
    reset_container()


@pytest.fixture
def client(container) -> TestClient:
    """Test client bound to the per-test container."""
    from api import app

    return TestClient(app)


@pytest.fixture
def registered_user(client) -> dict:
    """Register an account through the API and return its response body."""
    response = client.post(
        "/api/auth/register",
        json={
            "name": "Test User",
            "email": "test@example.com",
            "password": TEST_PASSWORD,
            "confirm_password": TEST_PASSWORD,
        },
    )
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def auth_headers(client, registered_user) -> dict[str, str]:
    """Authorization headers for the registered user."""
    response = client.post(
        "/api/auth/login",
        json={"email": "test@example.com", "password": TEST_PASSWORD},
    )
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['access_token']}"}
