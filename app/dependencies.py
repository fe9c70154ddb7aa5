"""FastAPI dependency providers for the application's collaborators.

Routes receive the credential store, token service, GitHub client and model
wrapper through these functions, so tests swap them out with
``app.dependency_overrides``.
"""

from datetime import timedelta
from functools import lru_cache

from app.config import get_settings
from app.services import database
from app.services.credential_store import CredentialStore
from app.services.github_client import GitHubClient
from app.services.llm_client import ReadmeSummarizer
from app.services.tokens import TokenService


def get_credential_store() -> CredentialStore:
    """Credential store bound to the configured MongoDB collections."""
    settings = get_settings()
    return CredentialStore(
        users=database.get_collection(settings.mongo.users_collection),
        api_keys=database.get_collection(settings.mongo.api_keys_collection),
    )


@lru_cache
def get_token_service() -> TokenService:
    auth = get_settings().auth
    return TokenService(
        secret=auth.jwt_secret,
        algorithm=auth.jwt_algorithm,
        ttl=timedelta(days=auth.token_ttl_days),
    )


@lru_cache
def get_github_client() -> GitHubClient:
    return GitHubClient(get_settings().github)


@lru_cache
def get_summarizer() -> ReadmeSummarizer:
    return ReadmeSummarizer(get_settings().llm)
