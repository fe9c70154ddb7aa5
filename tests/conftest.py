"""Pytest configuration and fixtures for testing."""

import os
from collections.abc import Callable
from unittest.mock import MagicMock

import mongomock
import pytest
from fastapi.testclient import TestClient

from app.dependencies import (
    get_credential_store,
    get_github_client,
    get_summarizer,
    get_token_service,
)
from app.main import app
from app.models.api_key import ApiKey
from app.models.summary import RepositoryDigest
from app.models.user import User
from app.services import passwords
from app.services.credential_store import CredentialStore
from app.services.github_client import GitHubClient
from app.services.llm_client import ReadmeSummarizer
from app.services.tokens import TokenService

TEST_PASSWORD = "correct-horse"
README_TEXT = "# React\n\nA JavaScript library for building user interfaces."


@pytest.fixture(scope="session", autouse=True)
def setup_test_env():
    """Set up test environment variables before any tests run."""
    # MongoDB Configuration (never contacted; the store is overridden)
    os.environ["MONGO_URI"] = "mongodb://localhost:27017"
    os.environ["MONGO_DB_NAME"] = "summarizer_test"

    # Session tokens and password hashing
    os.environ["AUTH_JWT_SECRET"] = "test-secret"
    os.environ["AUTH_BCRYPT_ROUNDS"] = "4"

    # Application Configuration
    os.environ["LOG_LEVEL"] = "INFO"

    yield

    # Cleanup is optional since these are just test environment variables


@pytest.fixture
def mongo_db():
    """Fresh in-memory MongoDB database."""
    return mongomock.MongoClient()["summarizer_test"]


@pytest.fixture
def store(mongo_db) -> CredentialStore:
    credential_store = CredentialStore(mongo_db["users"], mongo_db["api_keys"])
    credential_store.ensure_indexes()
    return credential_store


@pytest.fixture
def token_service() -> TokenService:
    return TokenService(secret="test-secret")


@pytest.fixture
def github() -> MagicMock:
    client = MagicMock(spec=GitHubClient)
    client.fetch_readme.return_value = README_TEXT
    return client


@pytest.fixture
def summarizer() -> MagicMock:
    model = MagicMock(spec=ReadmeSummarizer)
    model.enabled = True
    model.summarize.return_value = RepositoryDigest(
        summary="React is a library for building user interfaces.",
        cool_facts=["Maintained by Meta", "Uses a virtual DOM"],
    )
    return model


@pytest.fixture
def test_client(store, token_service, github, summarizer):
    """Create a test client for the FastAPI application."""
    app.dependency_overrides[get_credential_store] = lambda: store
    app.dependency_overrides[get_token_service] = lambda: token_service
    app.dependency_overrides[get_github_client] = lambda: github
    app.dependency_overrides[get_summarizer] = lambda: summarizer

    client = TestClient(app)

    yield client

    app.dependency_overrides.clear()


@pytest.fixture
def make_user(store) -> Callable[..., User]:
    def _make_user(email: str = "ada@example.com", name: str | None = "Ada") -> User:
        user = User(
            email=email,
            password_hash=passwords.hash_password(TEST_PASSWORD, rounds=4),
            name=name,
        )
        return store.insert_user(user)

    return _make_user


@pytest.fixture
def user(make_user) -> User:
    return make_user()


@pytest.fixture
def auth_headers(user, token_service) -> dict[str, str]:
    return {"Authorization": f"Bearer {token_service.issue(user.email)}"}


@pytest.fixture
def make_api_key(store, user) -> Callable[..., ApiKey]:
    def _make_api_key(
        key: str = "myapp_testkey123456",
        usage: int = 0,
        rate_limit: int = 100,
        owner: User | None = None,
        name: str = "default",
    ) -> ApiKey:
        api_key = ApiKey(
            user_id=(owner or user).id,
            name=name,
            key=key,
            usage=usage,
            rate_limit=rate_limit,
        )
        return store.insert_api_key(api_key)

    return _make_api_key
