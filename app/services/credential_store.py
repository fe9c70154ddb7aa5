"""MongoDB-backed storage for users and API keys.

All reads and writes of account data go through ``CredentialStore``. It takes
its collections as constructor arguments so routes receive it through a
FastAPI dependency and tests can hand it in-memory collections.

Errors raised by pymongo are propagated unchanged; callers decide whether a
failure is fatal for their request.
"""

import logging
from datetime import datetime
from typing import Any

from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.collection import Collection

from app.models.api_key import DEFAULT_RATE_LIMIT, ApiKey
from app.models.user import User, normalize_email

logger = logging.getLogger(__name__)

# Aggregation expressions reading the stored counters with their defaults
_STORED_USAGE = {"$ifNull": ["$usage", 0]}
_STORED_RATE_LIMIT = {
    "$cond": [
        {"$gt": [{"$ifNull": ["$rateLimit", 0]}, 0]},
        "$rateLimit",
        DEFAULT_RATE_LIMIT,
    ]
}


class CredentialStore:
    """Query/update interface over the ``users`` and ``api_keys`` collections."""

    def __init__(self, users: Collection, api_keys: Collection) -> None:
        self._users = users
        self._api_keys = api_keys

    def ensure_indexes(self) -> None:
        """Create indexes for uniqueness and fast lookups.

        Creates indexes on:
        - users: (email) unique, for signup deduplication and login
        - api_keys: (key) unique, for API key validation
        - api_keys: (userId, createdAt) for dashboard listings
        """
        logger.info("Ensuring database indexes...")

        self._users.create_index(
            [("email", ASCENDING)],
            name="email_unique",
            unique=True,
        )
        self._api_keys.create_index(
            [("key", ASCENDING)],
            name="key_unique",
            unique=True,
        )
        self._api_keys.create_index(
            [("userId", ASCENDING), ("createdAt", DESCENDING)],
            name="user_created_idx",
        )

        logger.info("Database indexes created successfully")

    # Users

    def find_user_by_email(self, email: str) -> User | None:
        doc = self._users.find_one({"email": normalize_email(email)})
        return User.model_validate(doc) if doc else None

    def find_user_by_id(self, user_id: str) -> User | None:
        doc = self._users.find_one({"_id": user_id})
        return User.model_validate(doc) if doc else None

    def insert_user(self, user: User) -> User:
        """Insert a new user.

        Raises:
            pymongo.errors.DuplicateKeyError: If the email is already taken.
        """
        self._users.insert_one(user.model_dump(by_alias=True))
        logger.info("Created user %s", user.id)
        return user

    # API keys

    def find_api_key(self, key: str) -> ApiKey | None:
        """Look up an API key record by exact key value."""
        doc = self._api_keys.find_one({"key": key})
        return ApiKey.model_validate(doc) if doc else None

    def find_api_key_by_id(self, key_id: str) -> ApiKey | None:
        doc = self._api_keys.find_one({"_id": key_id})
        return ApiKey.model_validate(doc) if doc else None

    def consume_quota(self, key_id: str, now: datetime) -> ApiKey | None:
        """Atomically record one admitted request if the key is under quota.

        The usage check and the increment are a single conditional update
        evaluated against the stored counters, so two callers racing for the
        last slot cannot both succeed and a concurrent change to ``rateLimit``
        is honoured. Null or missing counters count as their defaults.

        Args:
            key_id: API key document ID.
            now: Timestamp stored as ``lastUsed``.

        Returns:
            The updated record, or None if the key is at its limit or gone.
        """
        doc = self._api_keys.find_one_and_update(
            {"_id": key_id, "$expr": {"$lt": [_STORED_USAGE, _STORED_RATE_LIMIT]}},
            [
                {
                    "$set": {
                        "usage": {"$add": [_STORED_USAGE, 1]},
                        "lastUsed": {"$literal": now},
                    }
                }
            ],
            return_document=ReturnDocument.AFTER,
        )
        return ApiKey.model_validate(doc) if doc else None

    def reset_usage(self, key_id: str) -> bool:
        """Set usage back to zero. Returns False if no such key."""
        result = self._api_keys.update_one({"_id": key_id}, {"$set": {"usage": 0}})
        return result.matched_count > 0

    def list_api_keys(self, user_id: str) -> list[ApiKey]:
        """All keys owned by a user, newest first."""
        cursor = self._api_keys.find({"userId": user_id}).sort("createdAt", DESCENDING)
        return [ApiKey.model_validate(doc) for doc in cursor]

    def get_api_key(self, user_id: str, key_id: str) -> ApiKey | None:
        doc = self._api_keys.find_one({"_id": key_id, "userId": user_id})
        return ApiKey.model_validate(doc) if doc else None

    def insert_api_key(self, api_key: ApiKey) -> ApiKey:
        """Insert a new API key.

        Raises:
            pymongo.errors.DuplicateKeyError: If the key value is already used.
        """
        self._api_keys.insert_one(api_key.model_dump(by_alias=True))
        logger.info("Created API key %s for user %s", api_key.id, api_key.user_id)
        return api_key

    def update_api_key(
        self, user_id: str, key_id: str, fields: dict[str, Any]
    ) -> ApiKey | None:
        """Apply ``$set`` fields to a key owned by ``user_id``.

        Args:
            user_id: Owner; keys belonging to anyone else are never matched.
            key_id: API key document ID.
            fields: Stored (camelCase) field names and their new values.

        Returns:
            The updated record, or None if not found or not owned.
        """
        doc = self._api_keys.find_one_and_update(
            {"_id": key_id, "userId": user_id},
            {"$set": fields},
            return_document=ReturnDocument.AFTER,
        )
        return ApiKey.model_validate(doc) if doc else None

    def delete_api_key(self, user_id: str, key_id: str) -> bool:
        """Delete a key owned by ``user_id``. Returns False if nothing matched."""
        result = self._api_keys.delete_one({"_id": key_id, "userId": user_id})
        return result.deleted_count > 0
