"""Tests for API key validation and rate limiting."""

import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from unittest.mock import patch

import pytest
from pymongo.errors import ServerSelectionTimeoutError

from app import errors
from app.services.api_keys import generate_api_key, mask_api_key, validate_api_key
from app.services.credential_store import CredentialStore


class SerializedCollection:
    """Runs each collection call under a lock.

    MongoDB applies every single-document operation atomically; mongomock does
    not, so concurrent tests serialize individual calls the way the server
    would. Separate calls can still interleave.
    """

    def __init__(self, collection):
        self._collection = collection
        self._lock = threading.Lock()

    def __getattr__(self, name):
        attr = getattr(self._collection, name)
        if not callable(attr):
            return attr

        def locked(*args, **kwargs):
            with self._lock:
                return attr(*args, **kwargs)

        return locked


@pytest.mark.parametrize("raw_key", [None, "", "   ", "\t\n"])
def test_missing_key_is_rejected(store, raw_key):
    with pytest.raises(errors.MissingKeyError) as exc_info:
        validate_api_key(store, raw_key)

    assert exc_info.value.status_code == 400


def test_unknown_key_is_rejected_without_mutation(store, make_api_key, mongo_db):
    make_api_key(key="myapp_known", usage=3)
    before = list(mongo_db["api_keys"].find())

    with pytest.raises(errors.KeyNotFoundError) as exc_info:
        validate_api_key(store, "myapp_unknown")

    assert exc_info.value.status_code == 401
    assert list(mongo_db["api_keys"].find()) == before


def test_successful_validation_increments_usage(store, make_api_key):
    api_key = make_api_key(usage=4, rate_limit=10)
    now = datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

    result = validate_api_key(store, api_key.key, now=now)

    assert result.id == api_key.id
    assert result.usage == 5
    stored = store.find_api_key_by_id(api_key.id)
    assert stored.usage == 5
    assert stored.last_used is not None
    assert stored.last_used.replace(tzinfo=timezone.utc) == now


def test_key_is_trimmed_before_lookup(store, make_api_key):
    api_key = make_api_key(key="myapp_trimmed")

    result = validate_api_key(store, "  myapp_trimmed \n")

    assert result.id == api_key.id
    assert result.usage == 1


def test_rate_limited_key_is_not_incremented(store, make_api_key):
    api_key = make_api_key(usage=100, rate_limit=100)

    with pytest.raises(errors.RateLimitedError) as exc_info:
        validate_api_key(store, api_key.key)

    assert exc_info.value.status_code == 429
    assert exc_info.value.usage == 100
    assert exc_info.value.rate_limit == 100
    assert exc_info.value.to_content()["rateLimit"] == 100
    assert store.find_api_key_by_id(api_key.id).usage == 100


def test_missing_counters_use_defaults(store, mongo_db):
    mongo_db["api_keys"].insert_one(
        {"_id": "legacy", "userId": "u1", "name": "legacy", "key": "myapp_legacy"}
    )

    result = validate_api_key(store, "myapp_legacy")

    assert result.usage == 1
    assert result.rate_limit == 100
    assert mongo_db["api_keys"].find_one({"_id": "legacy"})["usage"] == 1


@pytest.mark.parametrize("stored_limit", [None, 0])
def test_null_counters_use_defaults(store, mongo_db, stored_limit):
    mongo_db["api_keys"].insert_one(
        {
            "_id": "nulls",
            "userId": "u1",
            "name": "nulls",
            "key": "myapp_null",
            "usage": None,
            "rateLimit": stored_limit,
        }
    )

    first = validate_api_key(store, "myapp_null")
    second = validate_api_key(store, "myapp_null")

    assert first.usage == 1
    assert second.usage == 2
    assert second.rate_limit == 100
    assert mongo_db["api_keys"].find_one({"_id": "nulls"})["usage"] == 2


def test_null_usage_key_still_hits_its_limit(store, mongo_db):
    mongo_db["api_keys"].insert_one(
        {
            "_id": "tiny",
            "userId": "u1",
            "name": "tiny",
            "key": "myapp_tiny",
            "usage": None,
            "rateLimit": 1,
        }
    )

    validate_api_key(store, "myapp_tiny")
    with pytest.raises(errors.RateLimitedError) as exc_info:
        validate_api_key(store, "myapp_tiny")

    assert exc_info.value.usage == 1
    assert exc_info.value.rate_limit == 1


def test_lookup_failure_is_a_store_error(store, make_api_key):
    make_api_key()

    with patch.object(
        store, "find_api_key", side_effect=ServerSelectionTimeoutError("timed out")
    ):
        with pytest.raises(errors.StoreError) as exc_info:
            validate_api_key(store, "myapp_testkey123456")

    assert exc_info.value.status_code == 500


def test_usage_write_failure_still_admits(store, make_api_key):
    api_key = make_api_key(usage=7, rate_limit=10)

    with patch.object(
        store, "consume_quota", side_effect=ServerSelectionTimeoutError("timed out")
    ):
        result = validate_api_key(store, api_key.key)

    assert result.usage == 8
    assert result.last_used is not None


def test_stale_read_cannot_admit_past_the_limit(store, make_api_key):
    """Two callers both read usage=99 before either writes; only one wins."""
    api_key = make_api_key(usage=99, rate_limit=100)
    snapshot = store.find_api_key(api_key.key)

    with patch.object(store, "find_api_key", return_value=snapshot):
        first = validate_api_key(store, api_key.key)
        with pytest.raises(errors.RateLimitedError) as exc_info:
            validate_api_key(store, api_key.key)

    assert first.usage == 100
    assert exc_info.value.usage == 100
    assert exc_info.value.rate_limit == 100
    assert store.find_api_key_by_id(api_key.id).usage == 100


def test_lowered_limit_after_read_is_honoured(store, make_api_key, mongo_db):
    """The ceiling is checked against the stored value, not the one read."""
    api_key = make_api_key(usage=5, rate_limit=100)
    snapshot = store.find_api_key(api_key.key)
    mongo_db["api_keys"].update_one({"_id": api_key.id}, {"$set": {"rateLimit": 5}})

    with patch.object(store, "find_api_key", return_value=snapshot):
        with pytest.raises(errors.RateLimitedError) as exc_info:
            validate_api_key(store, api_key.key)

    assert exc_info.value.usage == 5
    assert exc_info.value.rate_limit == 5
    stored = store.find_api_key_by_id(api_key.id)
    assert stored.usage == 5
    assert stored.usage <= stored.rate_limit


def test_key_deleted_during_admission(store, make_api_key):
    api_key = make_api_key()
    snapshot = store.find_api_key(api_key.key)
    store.delete_api_key(api_key.user_id, api_key.id)

    with patch.object(store, "find_api_key", return_value=snapshot):
        with pytest.raises(errors.KeyNotFoundError):
            validate_api_key(store, api_key.key)


def test_concurrent_validations_never_exceed_limit(mongo_db, user):
    store = CredentialStore(
        SerializedCollection(mongo_db["users"]),
        SerializedCollection(mongo_db["api_keys"]),
    )
    mongo_db["api_keys"].insert_one(
        {
            "_id": "hot",
            "userId": user.id,
            "name": "hot",
            "key": "myapp_hot",
            "usage": 0,
            "rateLimit": 5,
        }
    )

    def attempt(_):
        try:
            validate_api_key(store, "myapp_hot")
            return "admitted"
        except errors.RateLimitedError:
            return "limited"

    with ThreadPoolExecutor(max_workers=8) as pool:
        outcomes = list(pool.map(attempt, range(40)))

    assert outcomes.count("admitted") == 5
    assert outcomes.count("limited") == 35
    assert mongo_db["api_keys"].find_one({"_id": "hot"})["usage"] == 5


def test_generate_api_key_is_prefixed_and_unique():
    first = generate_api_key("myapp_")
    second = generate_api_key("myapp_")

    assert first.startswith("myapp_")
    assert len(first) > len("myapp_") + 20
    assert first != second


def test_mask_api_key():
    assert mask_api_key("short") == "short"
    assert mask_api_key("myapp_abcdefghijkl") == "myapp_ab" + "•" * 12 + "ijkl"
