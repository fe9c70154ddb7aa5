"""API key generation, validation and rate limiting.

``validate_api_key`` is the gate in front of the summarizer: it resolves a
presented key, enforces the key's usage ceiling and records the admitted
request in one conditional store update.
"""

import logging
import secrets
from datetime import datetime, timezone
from typing import NoReturn

from pymongo.errors import PyMongoError

from app import errors
from app.models.api_key import ApiKey
from app.services.credential_store import CredentialStore

logger = logging.getLogger(__name__)

MASK_CHAR = "•"


def generate_api_key(prefix: str = "myapp_") -> str:
    """Generate a new opaque API key.

    Args:
        prefix (str): Marker prepended to the random part

    Returns:
        str: API key in plain text"""
    return f"{prefix}{secrets.token_urlsafe(24)}"


def mask_api_key(key: str) -> str:
    """Hide the middle of a key so it can be logged or displayed.

    Args:
        key (str): API key in plain text

    Returns:
        str: First 8 and last 4 characters with the rest masked"""
    if len(key) <= 8:
        return key
    return key[:8] + MASK_CHAR * 12 + key[-4:]


def validate_api_key(
    store: CredentialStore, raw_key: str | None, now: datetime | None = None
) -> ApiKey:
    """Validate a presented API key and consume one unit of its quota.

    Args:
        store: Credential store holding the key records.
        raw_key: Key as sent by the caller; surrounding whitespace is ignored.
        now: Admission time, defaults to the current UTC time.

    Returns:
        The key record with ``usage`` reflecting this request.

    Raises:
        MissingKeyError: Key absent, empty or whitespace-only.
        KeyNotFoundError: No record matches the key.
        RateLimitedError: ``usage`` has reached ``rate_limit``.
        StoreError: The key lookup itself failed.
    """
    key = (raw_key or "").strip()
    if not key:
        raise errors.MissingKeyError(
            "Please provide an API key in the x-api-key, authorization, "
            "or api-key header"
        )

    masked = mask_api_key(key)
    try:
        record = store.find_api_key(key)
    except PyMongoError as exc:
        logger.error("API key lookup failed for %s: %s", masked, exc, exc_info=True)
        raise errors.StoreError(
            "API key validation is temporarily unavailable", details=str(exc)
        ) from exc

    if record is None:
        logger.info("Rejected unknown API key %s", masked)
        raise errors.KeyNotFoundError("API key validation failed")

    if record.usage >= record.rate_limit:
        logger.info(
            "API key %s rate limited (%d/%d)", masked, record.usage, record.rate_limit
        )
        raise errors.RateLimitedError(record.usage, record.rate_limit)

    now = now or datetime.now(timezone.utc)
    try:
        updated = store.consume_quota(record.id, now)
    except PyMongoError as exc:
        # Usage accounting is best-effort; the caller is still admitted.
        logger.error(
            "Failed to record usage for API key %s: %s", masked, exc, exc_info=True
        )
        return record.model_copy(update={"usage": record.usage + 1, "last_used": now})

    if updated is None:
        # Lost the race for the last slot, or the key was deleted meanwhile.
        _raise_for_failed_admission(store, record, masked)

    logger.debug(
        "Admitted API key %s (%d/%d)", masked, updated.usage, updated.rate_limit
    )
    return updated


def _raise_for_failed_admission(
    store: CredentialStore, record: ApiKey, masked: str
) -> NoReturn:
    try:
        current = store.find_api_key_by_id(record.id)
    except PyMongoError as exc:
        logger.error("API key re-read failed for %s: %s", masked, exc, exc_info=True)
        raise errors.StoreError(
            "API key validation is temporarily unavailable", details=str(exc)
        ) from exc

    if current is None:
        raise errors.KeyNotFoundError("API key validation failed")

    logger.info(
        "API key %s rate limited (%d/%d)", masked, current.usage, current.rate_limit
    )
    raise errors.RateLimitedError(current.usage, current.rate_limit)
