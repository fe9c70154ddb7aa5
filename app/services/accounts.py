"""Account signup, login and session verification.

Each operation returns the stored ``User`` (and, for signup and login, a fresh
session token) or raises an ``AppError`` subclass mapped to its HTTP status.
"""

import logging
import re

from pymongo.errors import DuplicateKeyError, PyMongoError

from app import errors
from app.config import AuthConfig
from app.models.user import User, normalize_email
from app.services import passwords
from app.services.credential_store import CredentialStore
from app.services.tokens import TokenService

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def signup(
    store: CredentialStore,
    tokens: TokenService,
    auth: AuthConfig,
    email: str | None,
    password: str | None,
    name: str | None = None,
) -> tuple[User, str]:
    """Create an account and issue its first session token.

    Raises:
        ValidationError: Missing fields, bad email format or weak password.
        ConflictError: An account already uses this email.
        InternalError: The store failed.
    """
    if not email or not password:
        raise errors.ValidationError(error="Email and password are required")

    email = normalize_email(email)
    if not EMAIL_RE.match(email):
        raise errors.ValidationError(error="Invalid email format")
    if len(password) < auth.min_password_length:
        raise errors.ValidationError(
            error=(
                f"Password must be at least {auth.min_password_length} "
                "characters long"
            )
        )
    if len(password.encode("utf-8")) > passwords.MAX_PASSWORD_BYTES:
        raise errors.ValidationError(
            error=f"Password must be at most {passwords.MAX_PASSWORD_BYTES} bytes long"
        )

    try:
        if store.find_user_by_email(email) is not None:
            raise errors.ConflictError(error="User with this email already exists")

        user = User(
            email=email,
            password_hash=passwords.hash_password(password, auth.bcrypt_rounds),
            name=name.strip() if name and name.strip() else None,
        )
        # The unique index settles concurrent signups for the same email.
        store.insert_user(user)
    except DuplicateKeyError as exc:
        raise errors.ConflictError(error="User with this email already exists") from exc
    except PyMongoError as exc:
        logger.error("Failed to create user: %s", exc, exc_info=True)
        raise errors.InternalError(
            error="Failed to create user", details=str(exc)
        ) from exc

    return user, tokens.issue(user.email)


def login(
    store: CredentialStore,
    tokens: TokenService,
    email: str | None,
    password: str | None,
) -> tuple[User, str]:
    """Check credentials and issue a session token.

    Raises:
        ValidationError: Missing fields.
        AuthError: Unknown email or wrong password (indistinguishable).
        InternalError: The store failed.
    """
    if not email or not password:
        raise errors.ValidationError(error="Email and password are required")

    try:
        user = store.find_user_by_email(email)
    except PyMongoError as exc:
        logger.error("User lookup failed during login: %s", exc, exc_info=True)
        raise errors.InternalError(details=str(exc)) from exc

    if user is None or not passwords.check_password(password, user.password_hash):
        raise errors.AuthError(error="Invalid email or password")

    logger.info("User %s logged in", user.id)
    return user, tokens.issue(user.email)


def verify_user(store: CredentialStore, user_id: str | None) -> User:
    """Confirm that a client-held user ID still refers to an account."""
    if not user_id:
        raise errors.ValidationError(error="User ID is required")

    try:
        user = store.find_user_by_id(user_id)
    except PyMongoError as exc:
        logger.error("User lookup failed during verify: %s", exc, exc_info=True)
        raise errors.InternalError(details=str(exc)) from exc

    if user is None:
        raise errors.AuthError(error="Invalid user session")
    return user
