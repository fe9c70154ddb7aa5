"""Security dependencies for the FastAPI application.

Two credentials are in play:
- session tokens (``Authorization: Bearer <jwt>``) for dashboard endpoints;
- API keys for the summarizer, validated in ``app.services.api_keys``.
"""

import logging

from fastapi import Depends, Request, Security
from fastapi.security import APIKeyHeader
from pymongo.errors import PyMongoError

from app import errors
from app.config import get_settings
from app.dependencies import get_credential_store, get_token_service
from app.services.credential_store import CredentialStore
from app.services.tokens import TokenService

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "

# Default header name used for OpenAPI docs; runtime config may override.
DEFAULT_API_KEY_HEADER = "X-API-Key"
api_key_header = APIKeyHeader(
    name=DEFAULT_API_KEY_HEADER,
    description="API key required to access the summarizer",
    auto_error=False,
)
authorization_header = APIKeyHeader(
    name="Authorization",
    description="Session token as 'Bearer <token>'",
    auto_error=False,
)


def extract_bearer_token(authorization: str | None) -> str | None:
    """Return the token from a ``Bearer`` Authorization header value."""
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        return None
    token = authorization[len(BEARER_PREFIX) :].strip()
    return token or None


def authenticate(
    authorization: str | None, store: CredentialStore, tokens: TokenService
) -> str:
    """Resolve a bearer session token to the ID of an existing user.

    Raises:
        MissingTokenError: No ``Bearer`` token in the header.
        InvalidTokenError: Bad signature, expired or malformed token.
        UserNotFoundError: The token's user no longer exists.
        InternalError: The user lookup failed.
    """
    token = extract_bearer_token(authorization)
    if token is None:
        raise errors.MissingTokenError()

    email = tokens.verify(token)
    if email is None:
        raise errors.InvalidTokenError()

    try:
        user = store.find_user_by_email(email)
    except PyMongoError as exc:
        logger.error("User lookup failed during authentication: %s", exc, exc_info=True)
        raise errors.InternalError(details=str(exc)) from exc

    if user is None:
        raise errors.UserNotFoundError()
    return user.id


def get_current_user_id(
    authorization: str | None = Security(authorization_header),
    store: CredentialStore = Depends(get_credential_store),
    tokens: TokenService = Depends(get_token_service),
) -> str:
    """Dependency returning the authenticated dashboard user's ID."""
    return authenticate(authorization, store, tokens)


def get_presented_api_key(
    request: Request,
    api_key: str | None = Security(api_key_header),
) -> str | None:
    """Dependency returning the raw API key sent with the request, if any.

    Checked in order: the configured header, ``Authorization: Bearer``, then
    ``api-key``. Header lookup is case-insensitive.
    """
    header_name = get_settings().app.api_key_header_name or DEFAULT_API_KEY_HEADER

    # Allow dynamic header name from settings if different to default
    if not api_key:
        api_key = request.headers.get(header_name)
    if not api_key:
        api_key = extract_bearer_token(request.headers.get("Authorization"))
    if not api_key:
        api_key = request.headers.get("api-key")
    return api_key
