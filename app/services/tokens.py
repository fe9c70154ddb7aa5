"""Signed, time-limited session tokens for dashboard users."""

import logging
from datetime import datetime, timedelta, timezone

import jwt

logger = logging.getLogger(__name__)


class TokenService:
    """Issues and verifies HS256 JWTs bound to a user's email."""

    def __init__(
        self, secret: str, algorithm: str = "HS256", ttl: timedelta = timedelta(days=7)
    ) -> None:
        self._secret = secret
        self._algorithm = algorithm
        self._ttl = ttl

    def issue(self, email: str, now: datetime | None = None) -> str:
        """Create a token for ``email`` expiring one TTL after ``now``."""
        issued_at = now or datetime.now(timezone.utc)
        payload = {
            "email": email,
            "iat": issued_at,
            "exp": issued_at + self._ttl,
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: str | None) -> str | None:
        """Return the token's email, or None if it is not valid right now.

        Bad signatures, expired tokens and malformed input all yield None.
        """
        if not token or not isinstance(token, str):
            return None
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["exp", "email"]},
            )
        except jwt.PyJWTError as exc:
            logger.debug("Rejected session token: %s", exc)
            return None

        email = payload.get("email")
        return email if isinstance(email, str) and email else None
